"""Public directory operations.

Each operation returns an ActionResult and never raises: provisioning
errors keep their own message, store failures get remediation text, and
anything else is logged and reported as an unexpected error.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import aiosqlite

from reportcard.common import (
    ActionResult,
    ConflictError,
    ConflictKind,
    ErrorKind,
    InfrastructureError,
    ProvisioningError,
    ScopeFields,
    ValidationError,
    normalize_email,
)

from .accounts import AccountProvisioner
from .duplicates import DuplicateDetector
from .guard import PermissionGuard
from .invites import InviteManager
from .listing import DirectoryFilter
from .models import AccountResponse, InviteResponse, LoginResponse
from .resolver import ScopeResolver
from .validators import validate_email, validate_required

if TYPE_CHECKING:
    from reportcard.auth.security_manager import SecurityManager
    from reportcard.common import Account, AccountStatus, Role

    from .queries import DirectoryQueries

LOGGER = logging.getLogger(__name__)

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred. Please try again."

# substring of the sqlite error -> what an operator should do about it
_REMEDIATIONS = (
    (
        "no such table",
        "The directory tables are missing; restart the service so it can "
        "create them, or check DATABASE_PATH.",
    ),
    (
        "no such column",
        "The directory schema is out of date; migrate the database at DATABASE_PATH.",
    ),
    ("locked", "Another process holds the database lock; retry shortly."),
    (
        "unable to open",
        "Check that DATABASE_PATH points to a writable location.",
    ),
    ("readonly", "Check that DATABASE_PATH points to a writable location."),
)


def classify_store_error(error: aiosqlite.Error) -> InfrastructureError:
    """Describe a store failure with actionable remediation text."""
    text = str(error).lower()
    for needle, remediation in _REMEDIATIONS:
        if needle in text:
            return InfrastructureError("The directory store is unavailable.", remediation)
    return InfrastructureError(
        "The directory store is unavailable.",
        "Check the server logs and the database at DATABASE_PATH.",
    )


def failure(operation: str, error: Exception) -> ActionResult:
    """Turn any exception raised by an operation into a failure result."""
    if isinstance(error, ProvisioningError):
        LOGGER.info("%s failed (%s): %s", operation, error.kind, error.message)
        return ActionResult.from_error(error)
    if isinstance(error, aiosqlite.Error):
        LOGGER.error("%s failed on the store: %s", operation, error)
        return ActionResult.from_error(classify_store_error(error))
    LOGGER.exception("%s failed unexpectedly", operation, exc_info=error)
    return ActionResult.fail(ErrorKind.UNEXPECTED, UNEXPECTED_ERROR_MESSAGE)


class DirectoryService:
    """Entry point for every provisioning and directory operation."""

    def __init__(
        self,
        queries: DirectoryQueries,
        security_manager: SecurityManager,
    ) -> None:
        self.queries = queries
        self.security_manager = security_manager
        self.guard = PermissionGuard()
        self.resolver = ScopeResolver()
        self.detector = DuplicateDetector(queries)
        self.invites = InviteManager(queries, self.guard, self.resolver, self.detector)
        self.accounts = AccountProvisioner(
            queries,
            self.guard,
            self.resolver,
            security_manager,
        )
        self.directory = DirectoryFilter(queries, self.guard)

    async def register_user(
        self,
        email: str,
        password: str,
        name: str,
        telephone: str | None = None,
    ) -> ActionResult:
        """Register an invited email, consuming its pending invitation."""
        try:
            email = validate_email(normalize_email(email))
            name = validate_required(name, "name", "Full name")
            error = self.security_manager.validate_password(password)
            if error:
                raise ValidationError("password", error)

            availability = await self.detector.check_available(email)
            if availability.conflict == ConflictKind.EXISTING_ACCOUNT:
                msg = f"{email} is already registered; sign in instead"
                raise ConflictError(ConflictKind.EXISTING_ACCOUNT, msg)

            account = await self.invites.consume(
                email,
                self.security_manager.hash_password(password),
                name=name,
                telephone=telephone.strip() if telephone else None,
            )
        except Exception as e:  # noqa: BLE001
            return failure("registerUser", e)
        return ActionResult.ok(
            AccountResponse.from_account(account),
            f"Registration complete. Welcome, {account.name}! "
            f"You have been registered as {account.role}.",
        )

    async def login(self, email: str, password: str) -> ActionResult:
        """Authenticate and issue an access token."""
        try:
            account = await self.accounts.authenticate(email, password)
        except Exception as e:  # noqa: BLE001
            return failure("login", e)
        return ActionResult.ok(
            LoginResponse(
                access_token=self.security_manager.create_access_token(account),
                account=AccountResponse.from_account(account),
            ),
            "Login successful",
        )

    async def create_invite(
        self,
        actor: Account,
        email: str,
        role: str | Role | None,
        scope: ScopeFields,
    ) -> ActionResult:
        try:
            invite = await self.invites.create(actor, email, role, scope)
        except Exception as e:  # noqa: BLE001
            return failure("createInvite", e)
        if invite.role is None:
            message = (
                f"Invite created for {invite.email}. "
                "Assign a role before they can register."
            )
        else:
            message = f"Invite created for {invite.email} as {invite.role}."
        return ActionResult.ok(InviteResponse.from_invite(invite), message)

    async def update_invite(
        self,
        actor: Account,
        invite_id: str,
        role: str | Role | None,
        scope: ScopeFields,
    ) -> ActionResult:
        try:
            invite = await self.invites.update(actor, invite_id, role, scope)
        except Exception as e:  # noqa: BLE001
            return failure("updateInvite", e)
        return ActionResult.ok(
            InviteResponse.from_invite(invite),
            f"Invite for {invite.email} updated.",
        )

    async def delete_invite(self, actor: Account, invite_id: str) -> ActionResult:
        try:
            invite = await self.invites.delete(actor, invite_id)
        except Exception as e:  # noqa: BLE001
            return failure("deleteInvite", e)
        return ActionResult.ok({"id": invite.id}, f"Invite for {invite.email} deleted.")

    async def update_user_role_and_scope(
        self,
        actor: Account,
        user_id: str,
        role: str | Role | None,
        scope: ScopeFields,
    ) -> ActionResult:
        try:
            account = await self.accounts.update_role_and_scope(
                actor,
                user_id,
                role,
                scope,
            )
        except Exception as e:  # noqa: BLE001
            return failure("updateUserRoleAndScope", e)
        return ActionResult.ok(
            AccountResponse.from_account(account),
            f"{account.email} is now {account.role}.",
        )

    async def update_user_status(
        self,
        actor: Account,
        user_id: str,
        status: str | AccountStatus,
    ) -> ActionResult:
        try:
            account = await self.accounts.update_status(actor, user_id, status)
        except Exception as e:  # noqa: BLE001
            return failure("updateUserStatus", e)
        return ActionResult.ok(
            AccountResponse.from_account(account),
            f"{account.email} has been set to {account.status}.",
        )

    async def delete_user(self, actor: Account, user_id: str) -> ActionResult:
        try:
            account = await self.accounts.delete(actor, user_id)
        except Exception as e:  # noqa: BLE001
            return failure("deleteUser", e)
        return ActionResult.ok(
            {"id": account.id},
            f"{account.email} has been permanently removed.",
        )

    async def list_users(self, actor: Account) -> ActionResult:
        try:
            accounts = await self.directory.list_accounts(actor)
        except Exception as e:  # noqa: BLE001
            return failure("listUsers", e)
        return ActionResult.ok([AccountResponse.from_account(a) for a in accounts])

    async def list_invites(self, actor: Account) -> ActionResult:
        try:
            invites = await self.directory.list_invitations(actor)
        except Exception as e:  # noqa: BLE001
            return failure("listInvites", e)
        return ActionResult.ok([InviteResponse.from_invite(i) for i in invites])

    async def bootstrap(self, email: str, password: str | None = None) -> Account:
        """Seed the super-administrator at start-up. Failures propagate."""
        return await self.accounts.bootstrap_super_admin(email, password)
