"""
Application exception hierarchy.

Stores raise these; a single handler registered in ``main.py`` turns them
into ``{"errors": {"body": [message]}}`` responses using the class's
``status_code``.

    ConduitError (base)                       500
    ├── NotFoundError                         404
    ├── UniqueConstraintViolationError        409
    ├── ConstraintViolationError              409
    ├── InvalidCredentialError                401
    ├── AuthenticationRequiredError           401
    ├── ForbiddenError                        403
    ├── ConnectionUnavailableError            500
    └── UnsupportedDatabaseError              500
"""

from typing import Any, Dict, Optional


class ConduitError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  client-facing description, safe to return in a response
        context:  extra debug info, logged but never returned
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class NotFoundError(ConduitError):
    """A lookup by id, username or email matched nothing."""

    status_code = 404

    def __init__(
        self,
        resource: str = "resource",
        lookup: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if lookup:
            ctx["lookup"] = lookup
        super().__init__(message=message, context=ctx)
        self.resource = resource


class UniqueConstraintViolationError(ConduitError):
    """Signup or profile update collides with an existing email / username."""

    status_code = 409

    def __init__(
        self,
        field: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["field"] = field
        super().__init__(message=f"{field} has already been taken", context=ctx)
        self.field = field


class ConstraintViolationError(ConduitError):
    status_code = 409

    def __init__(
        self,
        message: str = "The request conflicts with existing data",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidCredentialError(ConduitError):
    """Password mismatch on sign-in, or a token that fails verification."""

    status_code = 401

    def __init__(
        self,
        message: str = "email or password is invalid",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthenticationRequiredError(ConduitError):
    status_code = 401

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="authentication required", context=context)


class ForbiddenError(ConduitError):
    """The caller is authenticated but does not own the resource."""

    status_code = 403

    def __init__(
        self,
        message: str = "you are not allowed to modify this resource",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ConnectionUnavailableError(ConduitError):
    """
    No database connection could be obtained (pool exhausted or the
    server is unreachable). The client gets a generic message; the
    underlying driver error is logged only.
    """

    status_code = 500

    def __init__(
        self,
        message: str = "The service is temporarily unavailable. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UnsupportedDatabaseError(ConduitError):
    """``DATABASE_URL`` points at a backend other than PostgreSQL or SQLite."""

    status_code = 500

    def __init__(self, dialect: str, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["dialect"] = dialect
        super().__init__(context=ctx)
        self.dialect = dialect
