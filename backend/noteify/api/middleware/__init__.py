"""FastAPI middleware for authentication and error handling."""

from .auth_middleware import (
    AuthContext,
    get_auth_context,
    get_auth_service,
    get_public_store,
    get_user_store,
)
from .error_handlers import (
    http_exception_handler,
    internal_exception_handler,
    register_error_handlers,
    validation_exception_handler,
)

__all__ = [
    "AuthContext",
    "get_auth_context",
    "get_auth_service",
    "get_user_store",
    "get_public_store",
    "register_error_handlers",
    "validation_exception_handler",
    "http_exception_handler",
    "internal_exception_handler",
]
