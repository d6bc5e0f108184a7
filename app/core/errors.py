"""Typed errors raised by the identity services.

Every error carries the HTTP status the API boundary answers with and a
severity used to pick the log level. The boundary turns them into the
``{"success": false, "statusCode", "message"}`` envelope.
"""

from enum import Enum


class ErrorSeverity(str, Enum):
    """How an error is reported: caller mistake, security event, or our fault."""

    CLIENT = "client"
    SECURITY = "security"
    INTERNAL = "internal"


class IdentityError(Exception):
    """Base class for all identity lifecycle failures."""

    status_code: int = 500
    severity: ErrorSeverity = ErrorSeverity.INTERNAL

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class NotFoundError(IdentityError):
    """Lookup miss on an id or identifier."""

    status_code = 404
    severity = ErrorSeverity.CLIENT


class ConflictError(IdentityError):
    """Duplicate unique field, or the record is already in the requested state."""

    status_code = 409
    severity = ErrorSeverity.CLIENT


class UnauthorizedError(IdentityError):
    """Bad credential, or a bad/expired/mismatched token or signature."""

    status_code = 401
    severity = ErrorSeverity.SECURITY


class ForbiddenError(IdentityError):
    """Principal may not act: other user's resource, banned, unconfirmed, wrong role."""

    status_code = 403
    severity = ErrorSeverity.SECURITY


class ValidationFailedError(IdentityError):
    """Input rejected by a business rule."""

    status_code = 400
    severity = ErrorSeverity.CLIENT


class InternalError(IdentityError):
    """Hashing, signing, token generation, or store failure."""

    status_code = 500
    severity = ErrorSeverity.INTERNAL
