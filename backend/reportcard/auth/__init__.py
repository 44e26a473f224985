"""All authentication-related modules and routes."""

from .auth_routes import configure_auth_router
from .security_manager import SecurityManager, TokenClaims
from .validation import Validate

__all__ = [
    "SecurityManager",
    "TokenClaims",
    "Validate",
    "configure_auth_router",
]
