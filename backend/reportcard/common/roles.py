"""Fixed role hierarchy for the report card directory."""

from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    """Directory roles, from the widest authority to the narrowest."""

    SUPER_ADMIN = "super-admin"
    BIG_ADMIN = "big-admin"
    ADMIN = "admin"
    USER = "user"

    @property
    def is_administrator(self) -> bool:
        """Whether the role carries any provisioning capability."""
        return bool(ASSIGNABLE_ROLES[self])

    def can_assign(self, target: Role) -> bool:
        """Check whether this role may grant the target role to someone.

        :param target: The role being granted
        :return: True if the hierarchy allows the assignment
        """
        return target in ASSIGNABLE_ROLES[self]

    @classmethod
    def parse(cls, value: str | Role | None) -> Role | None:
        """Parse a client-supplied role name.

        :param value: Role name, Role, or None
        :return: The matching Role, or None when no role was given
        :raises ValueError: If the value names no known role
        """
        if value is None or isinstance(value, Role):
            return value
        cleaned = value.strip().lower()
        if not cleaned:
            return None
        return cls(cleaned)


ASSIGNABLE_ROLES: dict[Role, frozenset[Role]] = {
    Role.SUPER_ADMIN: frozenset({Role.BIG_ADMIN, Role.ADMIN, Role.USER}),
    Role.BIG_ADMIN: frozenset({Role.ADMIN, Role.USER}),
    Role.ADMIN: frozenset({Role.USER}),
    Role.USER: frozenset(),
}
