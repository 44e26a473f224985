"""Email availability checks against accounts and pending invites."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from reportcard.common import ConflictError, ConflictKind

if TYPE_CHECKING:
    from .queries import DirectoryQueries

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Availability:
    """Whether an email is free, and what it collides with if not."""

    conflict: ConflictKind | None = None

    @property
    def available(self) -> bool:
        return self.conflict is None


class DuplicateDetector:
    """Checks an email against existing accounts and pending invitations.

    The check is advisory. The unique indexes of the store decide when two
    requests race for the same address.
    """

    def __init__(self, queries: DirectoryQueries) -> None:
        self.queries = queries

    async def check_available(self, email: str) -> Availability:
        """Check a normalized email for an existing account or pending invite.

        :param email: Normalized email address
        :return: The availability of the address
        """
        if await self.queries.get_credential(email) is not None:
            return Availability(ConflictKind.EXISTING_ACCOUNT)
        if await self.queries.get_account_by_email(email) is not None:
            return Availability(ConflictKind.EXISTING_ACCOUNT)
        if await self.queries.get_pending_invite_by_email(email) is not None:
            return Availability(ConflictKind.PENDING_INVITE)
        return Availability()

    async def require_available(self, email: str) -> None:
        """Raise if the email is already taken.

        :raises ConflictError: If an account or pending invite exists
        """
        availability = await self.check_available(email)
        if availability.available:
            return

        LOGGER.debug("Email %s unavailable: %s", email, availability.conflict)
        if availability.conflict == ConflictKind.EXISTING_ACCOUNT:
            msg = f"An account for {email} already exists"
        else:
            msg = f"A pending invite for {email} already exists"
        raise ConflictError(availability.conflict, msg)
