"""
Domain errors raised by the services and rendered by the handlers in main.py

Every error becomes {"error": <code>, "message": <text>, "details": <optional>}
with the status code carried by the exception class.
"""
from typing import Any, Dict, Optional

from fastapi import status


class StoreError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error = "InternalError"
    message = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body = {"error": self.error, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationFailed(StoreError):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "ValidationError"
    message = "Request validation failed"

    @classmethod
    def from_pydantic(cls, e, message: Optional[str] = None) -> "ValidationFailed":
        errors = e.errors(include_url=False, include_context=False, include_input=False)
        return cls(message, details=errors)


class Unauthorized(StoreError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error = "Unauthorized"
    message = "Missing, invalid or expired token"


class InvalidCredentials(StoreError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error = "InvalidCredentials"
    message = "Invalid username or password"


class PasswordMismatch(InvalidCredentials):
    """Wrong current password on a profile edit; the session itself is still valid"""
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Old password is incorrect"


class Forbidden(StoreError):
    status_code = status.HTTP_403_FORBIDDEN
    error = "Forbidden"
    message = "You do not have access to this resource"


class NotFound(StoreError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "NotFound"
    message = "Resource not found"


class DuplicateUsername(StoreError):
    status_code = status.HTTP_409_CONFLICT
    error = "Conflict"
    message = "Username already taken"


class StorageError(StoreError):
    message = "Failed to store file"


class ConfigurationError(StoreError):
    message = "Server is misconfigured"
