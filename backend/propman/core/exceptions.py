"""
Application exception hierarchy.

WHY: The access layer, the membership service and the startup sequence
all fail in ways a caller needs to tell apart without parsing text:
a cross-tenant write, a role that doesn't allow an action, an encrypted
store with no passphrase. Each failure gets its own class carrying an
HTTP status and a context dict; the API layer turns both into a JSON
body (see exception_handlers.py).
"""

from typing import Any, Dict, Optional

# Context keys never echoed back to API clients
SENSITIVE_CONTEXT_KEYS = frozenset({"password", "token", "secret", "key", "api_key", "passphrase"})


class AppException(Exception):
    """
    Root of every exception the application raises on purpose.

    Subclasses set `status_code` and `default_message`; keyword arguments
    passed at raise time become `context` for logging and the response body.
    """

    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        **context: Any,
    ):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Response body; sensitive context keys are dropped."""
        details = {
            k: v for k, v in self.context.items() if k.lower() not in SENSITIVE_CONTEXT_KEYS
        }
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "status_code": self.status_code,
            "details": details or None,
        }


# ============================================================================
# Authentication & Authorization Exceptions
# ============================================================================


class AuthenticationError(AppException):
    """No usable credentials (HTTP 401)."""

    status_code = 401
    default_message = "Authentication failed"


class TokenExpiredError(AuthenticationError):
    """Raised when a bearer token has expired."""

    default_message = "Token has expired"


class TokenInvalidError(AuthenticationError):
    """Raised when a bearer token is malformed or has an invalid signature."""

    default_message = "Token is invalid"


class AuthorizationError(AppException):
    """
    Raised when the caller lacks permission for an action.

    WHY: Distinguishing authorization (403) from authentication (401) helps
    clients show "You don't have permission" instead of "Please log in".

    HTTP Status: 403 Forbidden
    """

    status_code = 403
    default_message = "You do not have permission to perform this action"


class UnauthenticatedAccessError(AuthorizationError):
    """
    Raised when a tenant-scoped operation runs without a resolved user.

    WHY: Every scoped read or write needs a user id for auditing and for
    resolving the active organization. Anonymous callers never reach the
    store.

    HTTP Status: 401 Unauthorized
    """

    status_code = 401
    default_message = "User is not authenticated"


class InsufficientPermissionsError(AuthorizationError):
    """
    Raised when the caller's organization role doesn't allow an action.

    HTTP Status: 403 Forbidden
    """

    default_message = "Insufficient permissions"


class OrganizationAccessDenied(AuthorizationError):
    """
    Raised when a write targets a record owned by another organization,
    or when a scoped write runs without an active organization.

    WHY: Using 404 instead of 403 prevents disclosing that the record
    exists in someone else's organization.

    HTTP Status: 404 Not Found
    """

    status_code = 404
    default_message = "Resource not found"


# ============================================================================
# Validation & Input Exceptions
# ============================================================================


class ValidationError(AppException):
    """
    Raised when request input or an entity fails validation.

    Field-level detail goes in context (field=...).

    HTTP Status: 400 Bad Request
    """

    status_code = 400
    default_message = "Validation failed"


# ============================================================================
# Resource Exceptions
# ============================================================================


class ResourceNotFoundError(AppException):
    """A named resource is missing or not visible to the caller (HTTP 404)."""

    status_code = 404
    default_message = "Resource not found"


class BackupNotFoundError(ResourceNotFoundError):
    """Raised when a named backup file doesn't exist."""

    default_message = "Backup not found"


# ============================================================================
# Business Logic Exceptions
# ============================================================================


class BusinessRuleViolation(AppException):
    """
    Raised when a business rule is violated.

    WHY: Rules like "the owner cannot be removed from their organization"
    are different from malformed input. 422 indicates the request was
    well-formed but semantically refused.

    HTTP Status: 422 Unprocessable Entity
    """

    status_code = 422
    default_message = "Business rule violation"


class OrganizationUserLimitError(BusinessRuleViolation):
    """Raised when granting access would exceed the per-organization user limit."""

    default_message = "Organization user limit reached"


# ============================================================================
# Database Exceptions
# ============================================================================


class DatabaseError(AppException):
    """
    Raised when database operations fail.

    WHY: Store and file-level failures surface with a fixed message; SQL
    and file paths stay in the log.

    HTTP Status: 500 Internal Server Error
    """

    status_code = 500
    default_message = "Database error"


class DatabaseEncryptionError(DatabaseError):
    """
    Raised when the store is encrypted and no passphrase is available.

    WHY: Opening an encrypted store without its key can never succeed.
    This is fatal at startup; the process must not serve traffic.
    """

    default_message = "Database is encrypted but no passphrase is available"


class MigrationError(DatabaseError):
    """
    Raised when a schema migration fails or leaves the store unhealthy.

    WHY: By the time this is raised the pre-migration backup has already
    been restored, so the store is back at its previous schema. Startup
    aborts so the operator can investigate.
    """

    default_message = "Database migration failed"


# ============================================================================
# Encryption Exceptions
# ============================================================================


class EncryptionError(AppException):
    """
    Raised when the file-backed secret store cannot encrypt or decrypt.

    The message never says whether a key exists.
    """

    status_code = 500
    default_message = "Encryption operation failed"
