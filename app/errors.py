"""
Error taxonomy shared by every service and the uniform JSON error envelope.

Services raise these exceptions; ``app.main`` renders all of them (and any
unexpected exception) as ``{"error": {"kind", "reason", "message"}}``.
"""
from fastapi import status


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind = "InternalError"
    default_reason: str | None = None
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, reason: str | None = None):
        self.message = message or self.default_message
        self.reason = reason or self.default_reason
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return error_body(self.kind, self.message, self.reason)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "ValidationError"
    default_reason = "MissingField"
    default_message = "Invalid request"


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    kind = "AuthenticationError"
    default_reason = "Unauthenticated"
    default_message = "Could not validate credentials"


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    kind = "AuthorizationError"
    default_reason = "Forbidden"
    default_message = "Not authorized to perform this action"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    kind = "NotFoundError"
    default_reason = "NotFound"
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    kind = "ConflictError"
    default_message = "Resource already exists"


class InternalError(AppError):
    pass


STATUS_KINDS = {
    400: ValidationError,
    401: AuthenticationError,
    403: AuthorizationError,
    404: NotFoundError,
    409: ConflictError,
}


def error_body(kind: str, message: str, reason: str | None = None) -> dict:
    body = {"kind": kind, "message": message}
    if reason:
        body["reason"] = reason
    return {"error": body}
