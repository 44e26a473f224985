"""Invitation lifecycle: create, edit, delete and consume at registration.

An invitation moves from pending to completed exactly once. Completion is
triggered by a registration, never by an administrator.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from reportcard.common import (
    Account,
    AccountStatus,
    ConflictError,
    ConflictKind,
    Invitation,
    NotFoundError,
    ScopeFields,
    normalize_email,
    scope_for_role,
)

from .guard import ProvisioningAction
from .queries import new_id
from .validators import validate_email

if TYPE_CHECKING:
    from reportcard.common import Role

    from .duplicates import DuplicateDetector
    from .guard import PermissionGuard
    from .queries import DirectoryQueries
    from .resolver import ScopeResolver

LOGGER = logging.getLogger(__name__)


class InviteManager:
    """Creates, edits, deletes and consumes invitation records."""

    def __init__(
        self,
        queries: DirectoryQueries,
        guard: PermissionGuard,
        resolver: ScopeResolver,
        detector: DuplicateDetector,
    ) -> None:
        self.queries = queries
        self.guard = guard
        self.resolver = resolver
        self.detector = detector

    async def get(self, invite_id: str) -> Invitation:
        """Fetch an invitation by id.

        :raises NotFoundError: If no such invitation exists
        """
        invite = await self.queries.get_invite(invite_id)
        if invite is None:
            msg = f"Invite {invite_id} not found"
            raise NotFoundError(msg)
        return invite

    async def create(
        self,
        actor: Account,
        email: str,
        role: str | Role | None,
        client_scope: ScopeFields,
    ) -> Invitation:
        """Create a pending invitation, optionally with a role already assigned.

        :param actor: The inviting account
        :param email: Address being invited, normalized here
        :param role: Role to pre-assign, or None to assign later
        :param client_scope: Scope values requested by the client
        :return: The stored invitation
        """
        target_role = self.guard.require(actor, ProvisioningAction.CREATE_INVITE, role)
        email = validate_email(normalize_email(email))
        await self.detector.require_available(email)

        invite = Invitation(
            id=new_id(),
            email=email,
            role=target_role,
            scope=self.resolver.resolve(actor, target_role, client_scope),
        )
        await self.queries.add_invite(invite)
        LOGGER.info(
            "Invite %s created for %s as %s by %s",
            invite.id,
            email,
            target_role or "unassigned",
            actor.email,
        )
        return invite

    async def update(
        self,
        actor: Account,
        invite_id: str,
        role: str | Role | None,
        client_scope: ScopeFields,
    ) -> Invitation:
        """Reassign role and scope of a pending invitation.

        The scope is resolved again against the actor's current scope.

        :raises ConflictError: If the invitation is no longer pending
        """
        target_role = self.guard.require(actor, ProvisioningAction.UPDATE_INVITE, role)
        invite = await self.get(invite_id)
        if not invite.is_pending:
            msg = f"The invite for {invite.email} is not pending and cannot be edited"
            raise ConflictError(ConflictKind.NOT_PENDING, msg)
        self.guard.require_in_scope(actor, invite)

        scope = self.resolver.resolve(actor, target_role, client_scope)
        if not await self.queries.update_pending_invite(
            invite.id,
            target_role,
            ScopeFields.from_record(scope.as_fields()),
        ):
            msg = f"The invite for {invite.email} is not pending and cannot be edited"
            raise ConflictError(ConflictKind.NOT_PENDING, msg)

        invite.role = target_role
        invite.scope = scope
        LOGGER.info(
            "Invite %s updated to %s by %s",
            invite.id,
            target_role or "unassigned",
            actor.email,
        )
        return invite

    async def delete(self, actor: Account, invite_id: str) -> Invitation:
        """Delete an invitation whatever its status.

        :raises NotFoundError: If the invitation does not exist
        """
        self.guard.require(actor, ProvisioningAction.DELETE_INVITE)
        invite = await self.get(invite_id)
        if invite.role is not None:
            self.guard.require(actor, ProvisioningAction.DELETE_INVITE, invite.role)
        self.guard.require_in_scope(actor, invite)

        if not await self.queries.delete_invite(invite.id):
            msg = f"Invite {invite_id} not found"
            raise NotFoundError(msg)
        LOGGER.info("Invite %s for %s deleted by %s", invite.id, invite.email, actor.email)
        return invite

    async def consume(
        self,
        email: str,
        hashed_password: bytes,
        name: str | None = None,
        telephone: str | None = None,
    ) -> Account:
        """Turn the pending invitation for an email into a live account.

        The account takes the invitation's role and scope as they are.

        :param email: Normalized registration email
        :param hashed_password: Password hash for the new credential
        :param name: Display name of the registrant
        :param telephone: Telephone number of the registrant
        :return: The created account
        :raises NotFoundError: If no pending invite exists for the email
        :raises ConflictError: If the invite has no role assigned yet
        """
        invite = await self.queries.get_pending_invite_by_email(email)
        if invite is None:
            msg = (
                f"No pending invite found for {email}. "
                "Ask an administrator to invite you before registering."
            )
            raise NotFoundError(msg)
        if invite.role is None:
            msg = (
                f"The invite for {email} is pending role assignment. "
                "Ask an administrator to assign you a role before registering."
            )
            raise ConflictError(ConflictKind.ROLE_UNASSIGNED, msg)

        account = Account(
            id=new_id(),
            email=email,
            role=invite.role,
            status=AccountStatus.ACTIVE,
            scope=scope_for_role(invite.role, invite.fields),
            name=name,
            telephone=telephone,
        )
        return await self.queries.consume_invite(invite, account, hashed_password)
