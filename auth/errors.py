"""
auth/errors.py -- Failure taxonomy for the directory and auth services.

Services raise these; the action router catches AuthError and renders
{"success": false, "message": exc.message}. Nothing here ever crosses the
HTTP boundary as a raised exception.

StoreError subclasses are raised by the directory when the store rejects a
write. Services translate them into AuthError subclasses where a caller
needs a user-facing message.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for every expected failure of an auth operation."""

    code = "auth_error"
    default_message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


# Validation


class MissingField(AuthError):
    code = "missing_field"
    default_message = "Required fields are missing"


class InvalidField(AuthError):
    code = "invalid_field"
    default_message = "A field has an invalid value"


class WeakPassword(AuthError):
    code = "weak_password"
    default_message = "Password does not meet security requirements"


# Authorization


class InvalidCredentials(AuthError):
    """Unknown username and wrong password share this error on purpose."""

    code = "invalid_credentials"
    default_message = "Invalid username or password"


class InactiveAccount(AuthError):
    code = "inactive_account"
    default_message = "Account is not active"


class AlreadySetUp(AuthError):
    code = "already_set_up"
    default_message = "Account setup already completed"


class SessionExpired(AuthError):
    code = "session_expired"
    default_message = "Session expired"


class Unauthorized(AuthError):
    code = "unauthorized"
    default_message = "Unauthorized"


# Conflict / not found


class UsernameTaken(AuthError):
    code = "username_taken"
    default_message = "Username already taken"


class UserExists(AuthError):
    code = "user_exists"
    default_message = "User with this email already exists"


class UserNotFound(AuthError):
    code = "user_not_found"
    default_message = "User not found"


# ---------------------------------------------------------------------------
# Store-level errors
# ---------------------------------------------------------------------------


class StoreError(Exception):
    """Base class for write rejections reported by the tabular store."""


class DuplicateError(StoreError):
    """A UNIQUE column (email or username) already holds the value."""


class NotFoundError(StoreError):
    """No row matched the key of a mutation that requires one."""
