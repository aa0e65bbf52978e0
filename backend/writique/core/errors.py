# writique/core/errors.py
"""
Tagged error hierarchy for the API.

Every failure carries an explicit `kind` chosen where it is raised; the
exception handler in `writique.main` maps it to a response without looking
at message text.
"""
from enum import Enum


class ErrorKind(str, Enum):
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    UPSTREAM = "upstream"
    CONFLICT = "conflict"
    INTERNAL = "internal"


class WritiqueError(Exception):
    """Base class for errors that the API renders as JSON responses."""

    kind: ErrorKind = ErrorKind.INTERNAL
    status_code: int = 500
    default_code: str = "INTERNAL_ERROR"
    default_message: str = "Internal server error"

    def __init__(self, code: str | None = None, message: str | None = None):
        self.code = code or self.default_code
        self.message = message or self.default_message
        super().__init__(f"{self.code}: {self.message}")

    def to_dict(self) -> dict:
        return {
            "success": False,
            "error": {"kind": self.kind.value, "code": self.code, "message": self.message},
        }


class AuthenticationError(WritiqueError):
    kind = ErrorKind.AUTHENTICATION
    status_code = 401
    default_code = "AUTH_INVALID_TOKEN"
    default_message = "Invalid credentials"


class AuthorizationError(WritiqueError):
    kind = ErrorKind.AUTHORIZATION
    status_code = 403
    default_code = "FORBIDDEN"
    default_message = "Forbidden"


class NotFoundError(WritiqueError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404
    default_code = "NOT_FOUND"
    default_message = "Not found"


class ValidationError(WritiqueError):
    kind = ErrorKind.VALIDATION
    status_code = 400
    default_code = "VALIDATION_ERROR"
    default_message = "Invalid request"


class PayloadTooLargeError(ValidationError):
    status_code = 413
    default_code = "PAYLOAD_TOO_LARGE"
    default_message = "Uploaded file is too large"


class UpstreamError(WritiqueError):
    """
    An external collaborator (identity provider, media host) failed.
    The message is always generic; details go to the server log only.
    """

    kind = ErrorKind.UPSTREAM
    status_code = 500
    default_code = "UPSTREAM_ERROR"
    default_message = "An upstream service failed"


class ConflictError(WritiqueError):
    """Unique-key collision that provisioning could not resolve by re-fetching."""

    kind = ErrorKind.CONFLICT
    status_code = 409
    default_code = "CONFLICT"
    default_message = "Conflicting write"


class InternalError(WritiqueError):
    kind = ErrorKind.INTERNAL
