# backend/trusted_refs/schemas/__init__.py

# References
from .reference import (
    ProfileSummary,
    ReferenceRequestIn,
    ReferenceRespondIn,
    EndorsementIn,
    ReferenceOut,
    ReferenceLists,
    FriendCandidate,
    NotificationOut,
)

__all__ = [
    "ProfileSummary",
    "ReferenceRequestIn", "ReferenceRespondIn", "EndorsementIn",
    "ReferenceOut", "ReferenceLists",
    "FriendCandidate", "NotificationOut",
]
