"""Request and response models for directory operations."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from reportcard.common import ScopeFields
from reportcard.common.scope import SCOPE_FIELDS

if TYPE_CHECKING:
    from reportcard.common import Account, Invitation


class ScopeInput(BaseModel):
    """Scope values a client asks for. The resolver decides what is kept."""

    region: str | None = None
    district: str | None = None
    circuit: str | None = None
    school_name: str | None = None
    class_names: list[str] = Field(default_factory=list)

    def to_fields(self) -> ScopeFields:
        return ScopeFields.create(**self.model_dump(include=set(SCOPE_FIELDS)))


class ScopeResponse(BaseModel):
    region: str | None = None
    district: str | None = None
    circuit: str | None = None
    school_name: str | None = None
    class_names: list[str] | None = None


class CreateInviteRequest(ScopeInput):
    email: str
    role: str | None = None


class UpdateInviteRequest(ScopeInput):
    role: str | None = None


class UpdateUserRequest(ScopeInput):
    role: str


class UpdateStatusRequest(BaseModel):
    status: str


class RegisterRequest(BaseModel):
    email: str
    password: str
    name: str
    telephone: str | None = None


class AccountResponse(BaseModel):
    """Directory account as returned to clients."""

    id: str
    email: str
    name: str | None
    telephone: str | None
    role: str
    status: str
    scope: ScopeResponse
    created_at: datetime | None

    @classmethod
    def from_account(cls, account: Account) -> AccountResponse:
        return cls(
            id=account.id,
            email=account.email,
            name=account.name,
            telephone=account.telephone,
            role=str(account.role),
            status=str(account.status),
            scope=ScopeResponse(**account.scope.as_fields()),
            created_at=account.created_at,
        )


class InviteResponse(BaseModel):
    """Invitation as returned to clients. A null role means not yet assigned."""

    id: str
    email: str
    status: str
    role: str | None
    scope: ScopeResponse
    created_at: datetime | None
    completed_at: datetime | None

    @classmethod
    def from_invite(cls, invite: Invitation) -> InviteResponse:
        return cls(
            id=invite.id,
            email=invite.email,
            status=str(invite.status),
            role=str(invite.role) if invite.role else None,
            scope=ScopeResponse(**invite.scope.as_fields()),
            created_at=invite.created_at,
            completed_at=invite.completed_at,
        )


class LoginResponse(BaseModel):
    """Response model for login requests.

    :param access_token: The JWT access token
    :param account: The authenticated account
    """

    access_token: str
    token_type: str = "bearer"
    account: AccountResponse
