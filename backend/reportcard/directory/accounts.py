"""Live account provisioning: bootstrap, login fallback, edits and deletion."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import aiosqlite

from reportcard.common import (
    Account,
    AccountStatus,
    AuthenticationError,
    ConflictError,
    ConflictKind,
    DenialReason,
    NotFoundError,
    PartialDeletionError,
    PermissionDeniedError,
    Role,
    ScopeFields,
    SuperAdminScope,
    UserScope,
    normalize_email,
)

from .guard import ProvisioningAction
from .queries import new_id
from .validators import parse_status, validate_email

if TYPE_CHECKING:
    from reportcard.auth.security_manager import SecurityManager

    from .guard import PermissionGuard
    from .queries import DirectoryQueries
    from .resolver import ScopeResolver

LOGGER = logging.getLogger(__name__)


class AccountProvisioner:
    """Creates and updates live directory accounts."""

    def __init__(
        self,
        queries: DirectoryQueries,
        guard: PermissionGuard,
        resolver: ScopeResolver,
        security_manager: SecurityManager,
    ) -> None:
        self.queries = queries
        self.guard = guard
        self.resolver = resolver
        self.security_manager = security_manager

    async def get(self, account_id: str) -> Account:
        """Fetch an account by id.

        :raises NotFoundError: If no such account exists
        """
        account = await self.queries.get_account(account_id)
        if account is None:
            msg = f"User {account_id} not found"
            raise NotFoundError(msg)
        return account

    async def bootstrap_super_admin(
        self,
        email: str,
        password: str | None = None,
    ) -> Account:
        """Seed the configured super-administrator. Safe to run on every start.

        The account is created if missing, or brought back to an active
        super-admin with no scope if it drifted. A credential is stored only
        when a password is given and none exists yet.

        :param email: Address of the super-administrator
        :param password: Initial password, if the credential should be seeded
        :return: The super-administrator account
        """
        email = validate_email(normalize_email(email), "SUPER_ADMIN_EMAIL")
        account = await self.queries.get_account_by_email(email)

        if account is None:
            account = await self.queries.add_account(
                Account(
                    id=new_id(),
                    email=email,
                    role=Role.SUPER_ADMIN,
                    status=AccountStatus.ACTIVE,
                    scope=SuperAdminScope(),
                    name="Super Admin",
                ),
            )
            LOGGER.info("Created super-admin account for %s", email)
        else:
            # stored_scope hides stray columns on read, so always rewrite them
            await self.queries.update_account_role_and_scope(
                account.id,
                Role.SUPER_ADMIN,
                ScopeFields(),
            )
            if account.role != Role.SUPER_ADMIN or not account.is_active:
                await self.queries.update_account_status(
                    account.id,
                    AccountStatus.ACTIVE,
                )
                LOGGER.warning(
                    "Restored %s to an active super-admin (was %s, %s)",
                    email,
                    account.role,
                    account.status,
                )
            account = await self.get(account.id)

        if password and await self.queries.get_credential(email) is None:
            error = self.security_manager.validate_password(password)
            if error:
                LOGGER.error("Super-admin password rejected: %s", error)
            else:
                await self.queries.add_credential(
                    email,
                    self.security_manager.hash_password(password),
                )
                LOGGER.info("Created super-admin credential for %s", email)
        return account

    async def ensure_login_account(self, email: str) -> Account:
        """Return the account of an authenticated email, creating a minimal one.

        A credential without a directory account means the identity was made
        out of band. Login still succeeds, as an active user with no scope.
        """
        account = await self.queries.get_account_by_email(email)
        if account is not None:
            return account

        LOGGER.warning("No account record for %s; creating a fallback user", email)
        try:
            return await self.queries.add_account(
                Account(
                    id=new_id(),
                    email=email,
                    role=Role.USER,
                    status=AccountStatus.ACTIVE,
                    scope=UserScope(),
                ),
            )
        except ConflictError:
            # a concurrent login created it first
            account = await self.queries.get_account_by_email(email)
            if account is None:
                raise
            return account

    async def authenticate(self, email: str, password: str) -> Account:
        """Check a login and return the signed-in account.

        :raises AuthenticationError: If the email and password do not match
        :raises PermissionDeniedError: If the account is inactive
        """
        email = normalize_email(email)
        hashed_password = await self.queries.get_credential(email)
        if hashed_password is None or not self.security_manager.check_password(
            password,
            hashed_password,
        ):
            LOGGER.debug("Failed login for %s", email)
            msg = "Invalid email or password"
            raise AuthenticationError(msg)

        account = await self.ensure_login_account(email)
        if not account.is_active:
            raise PermissionDeniedError(
                DenialReason.INSUFFICIENT_ROLE,
                "This account is inactive; contact your administrator",
            )
        return account

    async def update_role_and_scope(
        self,
        actor: Account,
        account_id: str,
        role: str | Role | None,
        client_scope: ScopeFields,
    ) -> Account:
        """Change the role and scope of an existing account.

        Uses the same guard and resolver pipeline as editing an invitation.
        """
        target_role = self.guard.require(actor, ProvisioningAction.UPDATE_ACCOUNT, role)
        account = await self.get(account_id)
        self.guard.require_in_scope(actor, account)

        scope = self.resolver.resolve(actor, target_role, client_scope)
        if not await self.queries.update_account_role_and_scope(
            account.id,
            target_role,
            ScopeFields.from_record(scope.as_fields()),
        ):
            msg = f"User {account_id} not found"
            raise NotFoundError(msg)

        account.role = target_role
        account.scope = scope
        LOGGER.info(
            "%s set %s to %s with scope %s",
            actor.email,
            account.email,
            target_role,
            scope,
        )
        return account

    async def update_status(
        self,
        actor: Account,
        account_id: str,
        status: str | AccountStatus,
    ) -> Account:
        """Activate or deactivate an account."""
        self.guard.require(actor, ProvisioningAction.UPDATE_ACCOUNT_STATUS)
        new_status = parse_status(status)
        account = await self.get(account_id)

        if account.id == actor.id:
            LOGGER.warning("%s is setting their own account %s", actor.email, new_status)

        if not await self.queries.update_account_status(account.id, new_status):
            msg = f"User {account_id} not found"
            raise NotFoundError(msg)
        account.status = new_status
        LOGGER.info("%s set %s %s", actor.email, account.email, new_status)
        return account

    async def delete(self, actor: Account, account_id: str) -> Account:
        """Permanently delete an inactive account and its credential.

        :raises ConflictError: If the account is still active
        :raises PartialDeletionError: If the credential went but the record stayed
        """
        self.guard.require(actor, ProvisioningAction.DELETE_ACCOUNT)
        account = await self.get(account_id)
        if account.is_active:
            msg = f"{account.email} is active; deactivate the account before deleting it"
            raise ConflictError(ConflictKind.TARGET_ACTIVE, msg)

        if not await self.queries.delete_credential(account.email):
            LOGGER.warning("No credential stored for %s", account.email)

        try:
            deleted = await self.queries.delete_account(account.id)
        except aiosqlite.Error as e:
            LOGGER.exception("Credential of %s deleted but account record kept", account.email)
            msg = f"The login for {account.email} was deleted but the directory record was not."
            raise PartialDeletionError(
                msg,
                "Retry the deletion to remove the remaining record.",
            ) from e
        if not deleted:
            msg = f"User {account_id} not found"
            raise NotFoundError(msg)

        LOGGER.info("%s deleted account %s", actor.email, account.email)
        return account
