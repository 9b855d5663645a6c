"""
Reference Service Domain Exceptions

All exceptions raised by the reference workflow layer. Each carries a stable
machine-readable ``code`` and the HTTP status the API maps it to.
"""


class ReferenceServiceError(Exception):
    """Base exception for reference workflow errors"""
    code = "reference_error"
    status_code = 400

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__


class NotEligibleRole(ReferenceServiceError):
    """Only players and coaches can collect trusted references."""
    code = "not_eligible_role"
    status_code = 403


class NotFriends(ReferenceServiceError):
    """References can only be requested from accepted friends."""
    code = "not_friends"
    status_code = 403


class DuplicateActiveRelationship(ReferenceServiceError):
    """An active reference already exists with this connection."""
    code = "duplicate_active_relationship"
    status_code = 409


class CapacityExceeded(ReferenceServiceError):
    """The requester already holds the maximum number of accepted references."""
    code = "capacity_exceeded"
    status_code = 409


class SelfReferenceForbidden(ReferenceServiceError):
    """A profile cannot be its own reference."""
    code = "self_reference_forbidden"
    status_code = 400


class NotFound(ReferenceServiceError):
    """Reference not found."""
    code = "not_found"
    status_code = 404


class ProfileNotFound(NotFound):
    """Profile not found."""
    code = "profile_not_found"


class NotAuthorized(ReferenceServiceError):
    """The acting profile may not perform this transition."""
    code = "not_authorized"
    status_code = 403


class InvalidState(ReferenceServiceError):
    """The reference is not in a state that allows this transition."""
    code = "invalid_state"
    status_code = 409


class InvalidInput(ReferenceServiceError):
    """Input failed validation."""
    code = "invalid_input"
    status_code = 400


class TransientFailure(ReferenceServiceError):
    """The store stayed contended after retrying; try again."""
    code = "transient_failure"
    status_code = 503
