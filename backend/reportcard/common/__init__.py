"""Common data models and utilities for the application."""

from .errors import (
    AuthenticationError,
    ConflictError,
    ConflictKind,
    DenialReason,
    ErrorKind,
    InfrastructureError,
    NotFoundError,
    PartialDeletionError,
    PermissionDeniedError,
    ProvisioningError,
    ValidationError,
)
from .results import ActionResult
from .roles import Role
from .scope import (
    AdminScope,
    BigAdminScope,
    Scope,
    ScopeFields,
    SuperAdminScope,
    UserScope,
    scope_for_role,
)
from .user import Account, AccountStatus, Invitation, InviteStatus, normalize_email

__all__ = [
    "AuthenticationError",
    "Account",
    "AccountStatus",
    "ActionResult",
    "AdminScope",
    "BigAdminScope",
    "ConflictError",
    "ConflictKind",
    "DenialReason",
    "ErrorKind",
    "InfrastructureError",
    "InviteStatus",
    "Invitation",
    "NotFoundError",
    "PartialDeletionError",
    "PermissionDeniedError",
    "ProvisioningError",
    "Role",
    "Scope",
    "ScopeFields",
    "SuperAdminScope",
    "UserScope",
    "ValidationError",
    "normalize_email",
    "scope_for_role",
]
