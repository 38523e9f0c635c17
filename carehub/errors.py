"""
Typed failures raised by the stores and the authorization guard.
"""


class CareError(Exception):
    """Base class for every failure the core reports to its callers."""
    kind = "error"


class ValidationError(CareError):
    """Malformed or out-of-range input, caught before any write."""
    kind = "validation_error"


class NotFound(CareError):
    """A referenced id does not exist."""
    kind = "not_found"


class PermissionDenied(CareError):
    """The caller's role lacks the capability the operation needs."""
    kind = "permission_denied"


class InvalidTransition(CareError):
    """A consultation status edge that the lifecycle does not allow."""
    kind = "invalid_transition"
