"""Custom exceptions for taskhub.

All exceptions derive from :class:`TaskHubError` so callers can catch the
entire family with a single ``except TaskHubError`` clause.  Every class
carries the HTTP ``status_code`` the API layer renders it with.

Hierarchy::

    TaskHubError
    ├── ValidationError
    ├── DuplicateEmailError
    ├── InvalidCredentialsError
    ├── InvalidAssignmentError
    ├── InvalidInviteError
    ├── SelfModificationError
    ├── ConflictError
    ├── UnauthenticatedError
    │   └── TenantRequiredError
    ├── ForbiddenError
    ├── NotFoundError
    ├── StorageError
    └── ServerError
"""

from __future__ import annotations

from typing import Any


class TaskHubError(Exception):
    """Base exception for all taskhub errors."""

    status_code: int = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details: dict[str, Any] = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | details={self.details}"
        return self.message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r})"


class ValidationError(TaskHubError):
    """Raised when input fails field-level validation.

    ``errors`` is a list of ``{"field": ..., "message": ...}`` dicts.
    """

    status_code = 400

    def __init__(
        self,
        errors: list[dict[str, str]],
        message: str = "Validation failed",
    ) -> None:
        super().__init__(message)
        self.errors = errors

    @classmethod
    def for_field(cls, field: str, message: str) -> ValidationError:
        return cls([{"field": field, "message": message}])


class DuplicateEmailError(TaskHubError):
    """Raised when an email address is already registered."""

    status_code = 400

    def __init__(self, email: str | None = None) -> None:
        super().__init__("User already exists")
        self.email = email


class InvalidCredentialsError(TaskHubError):
    """Raised on failed login.

    The message never distinguishes an unknown email from a wrong password.
    """

    status_code = 400

    def __init__(self) -> None:
        super().__init__("Invalid credentials")


class InvalidAssignmentError(TaskHubError):
    """Raised when a task assignee is not an active member of the organization."""

    status_code = 400

    def __init__(self, user_id: str | None = None) -> None:
        super().__init__("Invalid assigned user")
        self.user_id = user_id


class InvalidInviteError(TaskHubError):
    """Raised when an invite token is unknown, already used, or expired."""

    status_code = 400

    def __init__(self) -> None:
        super().__init__("Invalid or expired invite token")


class SelfModificationError(TaskHubError):
    """Raised when an admin targets their own account with a member operation."""

    status_code = 400

    def __init__(self, operation: str) -> None:
        super().__init__(f"Cannot {operation}")
        self.operation = operation


class ConflictError(TaskHubError):
    """Raised by a store when a uniqueness constraint is violated."""

    status_code = 409

    def __init__(self, field: str, value: str | None = None) -> None:
        super().__init__(f"Duplicate value for {field!r}")
        self.field = field
        self.value = value


class UnauthenticatedError(TaskHubError):
    """Raised when a request carries no valid session token."""

    status_code = 401

    def __init__(self, reason: str = "Authentication required") -> None:
        super().__init__(reason)
        self.reason = reason


class TenantRequiredError(UnauthenticatedError):
    """Raised when an authenticated user is not bound to an organization."""

    def __init__(self, user_id: str | None = None) -> None:
        super().__init__("Organization context required")
        self.user_id = user_id


class ForbiddenError(TaskHubError):
    """Raised when the authorization policy denies an action."""

    status_code = 403

    def __init__(self, message: str = "Access denied", action: str | None = None) -> None:
        super().__init__(message)
        self.action = action


class NotFoundError(TaskHubError):
    """Raised when a record does not exist within the caller's organization."""

    status_code = 404

    def __init__(self, resource: str, identifier: str | None = None) -> None:
        super().__init__(f"{resource} not found")
        self.resource = resource
        self.identifier = identifier


class StorageError(TaskHubError):
    """Raised when the underlying store fails.

    The message is logged but never returned to API callers.
    """

    status_code = 500

    def __init__(self, operation: str, reason: str) -> None:
        super().__init__(f"Storage operation {operation!r} failed: {reason}")
        self.operation = operation
        self.reason = reason


class ServerError(TaskHubError):
    """Catch-all for unexpected failures."""

    status_code = 500

    def __init__(self, message: str = "Server error") -> None:
        super().__init__(message)


__all__ = [
    "ConflictError",
    "DuplicateEmailError",
    "ForbiddenError",
    "InvalidAssignmentError",
    "InvalidCredentialsError",
    "InvalidInviteError",
    "NotFoundError",
    "SelfModificationError",
    "ServerError",
    "StorageError",
    "TaskHubError",
    "TenantRequiredError",
    "UnauthenticatedError",
    "ValidationError",
]
