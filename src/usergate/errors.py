"""Application exception types.

Every error the API surfaces derives from UsergateError, which carries the
HTTP status, a stable machine-readable code and a human message. The
exception handler registered in main.py renders them as
``{"error": message, "code": code}``.
"""

from typing import Optional


class UsergateError(Exception):
    """Base for errors that map directly to an HTTP error payload."""

    status_code = 500
    code = "internal_error"
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


# ─── Authentication outcomes ─────────────────────────────


class AuthError(UsergateError):
    """A request failed the authentication gate."""

    status_code = 401
    code = "unauthorized"
    message = "Unauthorized"


class MissingCredentialError(AuthError):
    code = "missing_credential"
    message = "Access denied. No token provided."


class MalformedCredentialError(AuthError):
    """Bad signature, bad structure or missing claims."""

    code = "malformed_credential"
    message = "Invalid token"


class ExpiredCredentialError(AuthError):
    code = "expired_credential"
    message = "Token has expired. Please login again."


class StaleCredentialError(AuthError):
    """Token verified, but its subject no longer exists."""

    code = "stale_credential"
    message = "User not found. Token invalid."


class DependencyFailureError(AuthError):
    """The identity store failed or timed out while resolving a token."""

    status_code = 500
    code = "dependency_failure"
    message = "Server error during authentication"


# ─── Everything else ─────────────────────────────────────


class ForbiddenError(UsergateError):
    status_code = 403
    code = "forbidden"
    message = "Access denied"


class InvalidLoginError(UsergateError):
    status_code = 401
    code = "invalid_login"
    message = "Invalid email or password"


class DuplicateUserError(UsergateError):
    """Email or username already belongs to another user."""

    status_code = 409
    code = "duplicate_user"

    def __init__(self, field: str):
        self.field = field
        if field == "email":
            message = "Email already registered"
        else:
            message = "Username already taken"
        super().__init__(message)


class NotFoundError(UsergateError):
    status_code = 404
    code = "not_found"
    message = "Not found"
