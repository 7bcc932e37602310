"""Error taxonomy shared by the user directory, session store and HTTP layer.

Every business-rule failure is an :class:`ApiError` subclass carrying the
HTTP status, a stable numeric ``error_code`` and a symbolic ``error_name``.
They are raised where the rule is checked and propagate unchanged up to the
request layer, which renders them as ``{code, error_code, error_name,
error_message}``.
"""

from __future__ import annotations

from typing import Any, ClassVar


class ApiError(Exception):
    """Base class of every error that maps onto an API response."""

    status_code: ClassVar[int] = 500
    error_code: ClassVar[str] = "500"
    error_name: ClassVar[str] = "INTERNAL_ERROR"
    default_message: ClassVar[str] = "Internal server error"

    def __init__(self, message: str | None = None, detail: Any = None) -> None:
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "code": self.status_code,
            "error_code": self.error_code,
            "error_name": self.error_name,
            "error_message": self.message,
        }
        if self.detail is not None:
            body["error_detail"] = self.detail
        return body


class SchemaValidationFailed(ApiError):
    status_code = 400
    error_code = "40000"
    error_name = "SCHEMA_VALIDATION_FAILED"
    default_message = "Request validation failed"


class MissingAccount(ApiError):
    status_code = 400
    error_code = "40011"
    error_name = "REQUIRE_USER_ACCOUNT"
    default_message = "Required phone, or email in request body"


class MissingPassword(ApiError):
    status_code = 400
    error_code = "40012"
    error_name = "REQUIRE_USER_PASSWORD"
    default_message = "Required password in request body"


class InvalidUserId(ApiError):
    status_code = 400
    error_code = "40013"
    error_name = "INVALID_USER_ID"
    default_message = "Invalid user id"


class InvalidPassword(ApiError):
    status_code = 400
    error_code = "40014"
    error_name = "INVALID_USER_PASSWORD"
    default_message = "Invalid user password"


class DuplicatePhone(ApiError):
    status_code = 400
    error_code = "40015"
    error_name = "DUPLICATED_USER_PHONE"
    default_message = "Duplicated user phone"


class DuplicateEmail(ApiError):
    status_code = 400
    error_code = "40016"
    error_name = "DUPLICATED_USER_EMAIL"
    default_message = "Duplicated user email"


class InvalidAccountType(ApiError):
    status_code = 400
    error_code = "40017"
    error_name = "INVALID_USER_ACCOUNT"
    default_message = "Account must be a phone number or an email address"


class InvalidTokenFormat(ApiError):
    status_code = 400
    error_code = "40020"
    error_name = "INVALID_TOKEN_FORMAT"
    default_message = "Invalid session token format"


class Unauthorized(ApiError):
    status_code = 401
    error_code = "401"
    error_name = "UNAUTHORIZED"
    default_message = "Unauthorized"


class Forbidden(ApiError):
    status_code = 403
    error_code = "403"
    error_name = "FORBIDDEN"
    default_message = "Forbidden"


class NotFound(ApiError):
    status_code = 404
    error_code = "404"
    error_name = "NOT_FOUND"
    default_message = "Not found"


class UserNotFound(NotFound):
    error_code = "40401"
    error_name = "USER_NOT_FOUND"
    default_message = "User not found"

    @classmethod
    def for_identifier(cls, identifier: str) -> UserNotFound:
        return cls(f"User not found: {identifier}")


class SessionNotFound(NotFound):
    error_code = "40402"
    error_name = "SESSION_NOT_FOUND"
    default_message = "Session not found"

    @classmethod
    def for_token(cls, token: str) -> SessionNotFound:
        return cls(f"Session not found: {token}")


class MethodNotAllowed(ApiError):
    status_code = 405
    error_code = "405"
    error_name = "METHOD_NOT_ALLOWED"
    default_message = "Method not allowed"


class InternalError(ApiError):
    """Uncategorized failure; the message of the original exception is kept."""

    @classmethod
    def from_exception(cls, exc: BaseException) -> InternalError:
        return cls(str(exc) or type(exc).__name__)
