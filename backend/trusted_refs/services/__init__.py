"""
Reference Service Layer

Business logic for trusted references: the workflow service, its eligibility
queries, and the notification bridge it reports transitions to.
"""

from trusted_refs.services.exceptions import (
    ReferenceServiceError,
    NotEligibleRole,
    NotFriends,
    DuplicateActiveRelationship,
    CapacityExceeded,
    SelfReferenceForbidden,
    NotFound,
    ProfileNotFound,
    NotAuthorized,
    InvalidState,
    InvalidInput,
    TransientFailure,
)

__all__ = [
    "ReferenceServiceError",
    "NotEligibleRole",
    "NotFriends",
    "DuplicateActiveRelationship",
    "CapacityExceeded",
    "SelfReferenceForbidden",
    "NotFound",
    "ProfileNotFound",
    "NotAuthorized",
    "InvalidState",
    "InvalidInput",
    "TransientFailure",
]
