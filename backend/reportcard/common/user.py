"""Fundamental directory records: accounts and invitations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from .roles import Role
from .scope import Scope, ScopeFields, empty_scope, scope_for_role


class AccountStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class InviteStatus(StrEnum):
    PENDING = "pending"
    COMPLETED = "completed"


def normalize_email(email: str) -> str:
    """Trim and lower-case an email address before any comparison or storage."""
    return email.strip().lower()


@dataclass
class Account:
    """A live directory account. The acting account in any request is its actor.

    :param id: Account identifier
    :param email: Normalized, unique email address
    :param role: Directory role
    :param status: Whether the account may sign in
    :param scope: Organizational scope at the role's depth
    """

    id: str
    email: str
    role: Role
    status: AccountStatus = AccountStatus.ACTIVE
    scope: Scope = field(default_factory=empty_scope)
    name: str | None = None
    telephone: str | None = None
    created_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatus.ACTIVE

    @property
    def fields(self) -> ScopeFields:
        return ScopeFields.from_record(self.scope.as_fields())


@dataclass
class Invitation:
    """Intent to grant access to an email address.

    An invitation without a role is valid: the address is allowed to exist in
    the directory but registration stays blocked until a role is assigned.
    """

    id: str
    email: str
    status: InviteStatus = InviteStatus.PENDING
    role: Role | None = None
    scope: Scope = field(default_factory=empty_scope)
    created_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == InviteStatus.PENDING

    @property
    def fields(self) -> ScopeFields:
        return ScopeFields.from_record(self.scope.as_fields())


def stored_scope(role: Role | None, fields: ScopeFields) -> Scope:
    """Rebuild the scope variant of a stored row.

    Rows without a role keep whatever clamped fields they were created with,
    so they read back at the deepest variant holding those fields.
    """
    if role is not None:
        return scope_for_role(role, fields)
    return scope_for_role(Role.USER, fields)
