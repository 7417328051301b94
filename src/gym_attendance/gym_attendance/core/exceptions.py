class DomainError(Exception):
    """Base exception for business rule violations.

    Subclasses carry the machine-readable ``error_code`` and the HTTP status the
    controller layer renders them with.
    """

    error_code = "DOMAIN_ERROR"
    http_status = 400


class ValidationError(DomainError):
    """Raised when input data is invalid (unparsable date, unknown status)."""

    error_code = "INVALID_INPUT"
    http_status = 400


class NotFoundError(DomainError):
    """Raised when a gym or athlete does not exist."""

    error_code = "NOT_FOUND"
    http_status = 404


class AuthenticationError(DomainError):
    """Raised by the calling layer when no identity was forwarded."""

    error_code = "UNAUTHENTICATED"
    http_status = 401


class AuthorizationError(DomainError):
    """Raised by the calling layer when a requester lacks permission."""

    error_code = "FORBIDDEN"
    http_status = 403


class ConflictError(DomainError):
    """Raised when a uniqueness or version conflict could not be resolved."""

    error_code = "CONFLICT"
    http_status = 409


class StorageError(DomainError):
    """Raised when the backing store is unavailable or fails."""

    error_code = "INTERNAL"
    http_status = 503
