"""Scope resolution for role grants.

Given who is granting, which role is granted and what the client asked for,
compute the scope that gets stored. Scope only narrows going down the
hierarchy: whatever sits at or above the actor's own level is copied from
the actor, never from the client.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from reportcard.common import Role, ScopeFields, scope_for_role

if TYPE_CHECKING:
    from reportcard.common import Account, Scope

LOGGER = logging.getLogger(__name__)

# fields an actor of each role pins to its own values
CLAMPED_FIELDS: dict[Role, tuple[str, ...]] = {
    Role.SUPER_ADMIN: (),
    Role.BIG_ADMIN: ("region", "district"),
    Role.ADMIN: ("region", "district", "circuit", "school_name"),
}


class ScopeResolver:
    """Computes the sanitized scope to persist for a grant."""

    def resolve(
        self,
        actor: Account,
        target_role: Role | None,
        client_scope: ScopeFields,
    ) -> Scope:
        """Resolve the scope to store for a role granted by the actor.

        Values at or above the actor's level come from the actor. Values
        below it come from the client. The result is cut to the target
        role's depth. With no target role (an invite whose role is not yet
        assigned) only the actor's clamped values are kept.

        :param actor: The granting account; must have passed the guard
        :param target_role: The role granted, or None if not yet assigned
        :param client_scope: Scope values supplied by the client
        :return: The scope variant for the target role
        :raises ValueError: If the actor holds no provisioning capability
        """
        if actor.role not in CLAMPED_FIELDS:
            msg = f"{actor.role} accounts cannot grant scope"
            raise ValueError(msg)

        clamped = CLAMPED_FIELDS[actor.role]
        actor_fields = actor.fields

        if target_role is None:
            values = {name: getattr(actor_fields, name) for name in clamped}
            return scope_for_role(actor.role, ScopeFields.create(**values))

        values = {
            name: getattr(actor_fields if name in clamped else client_scope, name)
            for name in ("region", "district", "circuit", "school_name")
        }
        scope = scope_for_role(
            target_role,
            ScopeFields.create(**values, class_names=client_scope.class_names),
        )
        LOGGER.debug(
            "Resolved scope for %s grant by %s: %s",
            target_role,
            actor.email,
            scope,
        )
        return scope
