"""Directory listings filtered by the viewer's own role and scope."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from .guard import ProvisioningAction, can_view

if TYPE_CHECKING:
    from reportcard.common import Account, Invitation

    from .guard import PermissionGuard
    from .queries import DirectoryQueries

LOGGER = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=UTC)


def newest_first(records: list) -> list:
    """Sort records most recently created first, undated records last."""
    return sorted(
        records,
        key=lambda record: (
            record.created_at is not None,
            record.created_at or _OLDEST,
        ),
        reverse=True,
    )


class DirectoryFilter:
    """Lists accounts and invitations the viewer is allowed to manage."""

    def __init__(self, queries: DirectoryQueries, guard: PermissionGuard) -> None:
        self.queries = queries
        self.guard = guard

    async def list_accounts(self, actor: Account) -> list[Account]:
        """List accounts visible to the actor, never including the actor."""
        self.guard.require(actor, ProvisioningAction.LIST_DIRECTORY)
        accounts = await self.queries.list_accounts()
        visible = [
            account
            for account in accounts
            if account.id != actor.id and can_view(actor, account)
        ]
        LOGGER.debug(
            "Listing %d of %d accounts for %s",
            len(visible),
            len(accounts),
            actor.email,
        )
        return newest_first(visible)

    async def list_invitations(self, actor: Account) -> list[Invitation]:
        """List invitations visible to the actor."""
        self.guard.require(actor, ProvisioningAction.LIST_DIRECTORY)
        invites = await self.queries.list_invites()
        visible = [invite for invite in invites if can_view(actor, invite)]
        LOGGER.debug(
            "Listing %d of %d invites for %s",
            len(visible),
            len(invites),
            actor.email,
        )
        return newest_first(visible)
