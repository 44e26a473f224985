"""Role provisioning and scoped directory access."""

from .guard import Decision, PermissionGuard, ProvisioningAction
from .queries import DirectoryQueries
from .resolver import ScopeResolver
from .routes import configure_directory_router
from .service import DirectoryService

__all__ = [
    "Decision",
    "DirectoryQueries",
    "DirectoryService",
    "PermissionGuard",
    "ProvisioningAction",
    "ScopeResolver",
    "configure_directory_router",
]
