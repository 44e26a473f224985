"""Permission guard for provisioning actions.

The guard is a predicate: it looks at the actor, the action and the role
being granted, and answers allow or deny with a reason. It runs before any
scope is resolved or anything is written.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from reportcard.common import (
    DenialReason,
    PermissionDeniedError,
    Role,
    ValidationError,
)

if TYPE_CHECKING:
    from reportcard.common import Account, Invitation

LOGGER = logging.getLogger(__name__)


def can_view(actor: Account, record: Account | Invitation) -> bool:
    """Check whether a record falls inside what the actor manages.

    super-admin sees everything. big-admin sees admins and users of its own
    district, admin sees users of its own school. Invitations without a role
    yet are visible wherever their clamped scope matches.

    :param actor: The viewing account
    :param record: An account or invitation
    :return: True if the record is inside the actor's managed scope
    """
    if actor.role == Role.SUPER_ADMIN:
        return True
    if not actor.role.is_administrator:
        return False

    if record.role is not None and not actor.role.can_assign(record.role):
        return False

    if actor.role == Role.BIG_ADMIN:
        return (
            actor.fields.district is not None
            and record.fields.district == actor.fields.district
        )
    return (
        actor.fields.school_name is not None
        and record.fields.school_name == actor.fields.school_name
    )


class ProvisioningAction(StrEnum):
    CREATE_INVITE = "create-invite"
    UPDATE_INVITE = "update-invite"
    DELETE_INVITE = "delete-invite"
    UPDATE_ACCOUNT = "update-account"
    UPDATE_ACCOUNT_STATUS = "update-account-status"
    DELETE_ACCOUNT = "delete-account"
    LIST_DIRECTORY = "list-directory"


# actions that attach the actor's scope to what they grant
SCOPE_DEPENDENT_ACTIONS = frozenset(
    {
        ProvisioningAction.CREATE_INVITE,
        ProvisioningAction.UPDATE_INVITE,
        ProvisioningAction.UPDATE_ACCOUNT,
    },
)

_VERBS = {
    ProvisioningAction.CREATE_INVITE: "invite",
    ProvisioningAction.UPDATE_INVITE: "invite",
    ProvisioningAction.DELETE_INVITE: "revoke an invite for",
    ProvisioningAction.UPDATE_ACCOUNT: "assign",
}


@dataclass(frozen=True)
class Decision:
    """Outcome of a guard check.

    :param allowed: Whether the action may proceed
    :param denial: Category of the refusal, None when allowed
    :param reason: Human readable refusal naming the violated rule
    :param target_role: The parsed target role, when one was given
    """

    allowed: bool
    denial: DenialReason | None = None
    reason: str | None = None
    target_role: Role | None = None

    @classmethod
    def allow(cls, target_role: Role | None = None) -> Decision:
        return cls(allowed=True, target_role=target_role)

    @classmethod
    def deny(cls, denial: DenialReason, reason: str) -> Decision:
        return cls(allowed=False, denial=denial, reason=reason)


class PermissionGuard:
    """Decides whether an actor may perform a provisioning action."""

    def authorize(
        self,
        actor: Account,
        action: ProvisioningAction,
        target_role: str | Role | None = None,
    ) -> Decision:
        """Check an action against the role hierarchy and the actor's scope.

        :param actor: The account performing the action
        :param action: The provisioning action requested
        :param target_role: The role being granted or acted upon, if any
        :return: An allow or deny decision
        """
        if not actor.role.is_administrator:
            return Decision.deny(
                DenialReason.INSUFFICIENT_ROLE,
                f"{actor.role} accounts have no administrative capability",
            )

        if action == ProvisioningAction.DELETE_ACCOUNT and actor.role != Role.SUPER_ADMIN:
            return Decision.deny(
                DenialReason.INSUFFICIENT_ROLE,
                "Only a super-admin can delete accounts",
            )

        try:
            role = Role.parse(target_role)
        except ValueError:
            return Decision.deny(
                DenialReason.MALFORMED_TARGET_ROLE,
                f"'{target_role}' is not a valid role",
            )

        if action == ProvisioningAction.UPDATE_ACCOUNT and role is None:
            return Decision.deny(
                DenialReason.MALFORMED_TARGET_ROLE,
                "A role is required when updating an account",
            )

        if role is not None and action in _VERBS and not actor.role.can_assign(role):
            return Decision.deny(
                DenialReason.INSUFFICIENT_ROLE,
                f"{actor.role} cannot {_VERBS[action]} {role}",
            )

        if action in SCOPE_DEPENDENT_ACTIONS:
            missing = actor.scope.missing_fields()
            if missing:
                return Decision.deny(
                    DenialReason.ACTOR_SCOPE_INCOMPLETE,
                    f"Your {actor.role} account is missing "
                    f"{', '.join(missing)}; ask a super-admin to complete it",
                )

        return Decision.allow(role)

    def require(
        self,
        actor: Account,
        action: ProvisioningAction,
        target_role: str | Role | None = None,
    ) -> Role | None:
        """Authorize an action or raise.

        :return: The parsed target role
        :raises ValidationError: If the target role is malformed
        :raises PermissionDeniedError: If the action is otherwise denied
        """
        decision = self.authorize(actor, action, target_role)
        if decision.allowed:
            return decision.target_role

        LOGGER.info(
            "Denied %s for %s (%s): %s",
            action,
            actor.email,
            decision.denial,
            decision.reason,
        )
        if decision.denial == DenialReason.MALFORMED_TARGET_ROLE:
            raise ValidationError("role", decision.reason)
        raise PermissionDeniedError(decision.denial, decision.reason)

    def require_in_scope(self, actor: Account, record: Account | Invitation) -> None:
        """Refuse acting on a record outside the actor's managed scope.

        :raises PermissionDeniedError: If the record is not visible to the actor
        """
        if not can_view(actor, record):
            LOGGER.info("Denied %s acting on %s: out of scope", actor.email, record.id)
            raise PermissionDeniedError(
                DenialReason.OUT_OF_SCOPE,
                f"{record.email} is outside the scope you manage",
            )
