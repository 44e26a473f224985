"""Organizational scope attached to a directory role.

A scope is one of four variants, one per role. Each variant only has the
fields meaningful at that role's depth, so a big-admin scope has nowhere to
keep a school name. ``as_fields`` flattens any variant back into the
five-column record the store keeps, with everything beyond the depth NULL.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from .roles import Role

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

SCOPE_FIELDS = ("region", "district", "circuit", "school_name", "class_names")


def _clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _clean_class_names(values: Iterable[str] | None) -> tuple[str, ...]:
    if not values:
        return ()
    if isinstance(values, str):
        values = [values]
    return tuple(sorted({name.strip() for name in values if name and name.strip()}))


@dataclass(frozen=True)
class ScopeFields:
    """Flat, untrusted scope values as a client or a stored row supplies them."""

    region: str | None = None
    district: str | None = None
    circuit: str | None = None
    school_name: str | None = None
    class_names: tuple[str, ...] = ()

    @classmethod
    def create(
        cls,
        region: str | None = None,
        district: str | None = None,
        circuit: str | None = None,
        school_name: str | None = None,
        class_names: Iterable[str] | None = None,
    ) -> ScopeFields:
        """Build a cleaned field set: trimmed, blanks to None, classes sorted."""
        return cls(
            region=_clean_text(region),
            district=_clean_text(district),
            circuit=_clean_text(circuit),
            school_name=_clean_text(school_name),
            class_names=_clean_class_names(class_names),
        )

    @classmethod
    def from_record(cls, record: Mapping[str, object]) -> ScopeFields:
        """Read scope values out of a stored row or a request payload."""
        return cls.create(**{name: record.get(name) for name in SCOPE_FIELDS})


@dataclass(frozen=True)
class SuperAdminScope:
    """Global authority; no organizational fields."""

    role: ClassVar[Role] = Role.SUPER_ADMIN

    def as_fields(self) -> dict[str, object]:
        values = {name: getattr(self, name, None) for name in SCOPE_FIELDS}
        values["class_names"] = list(values["class_names"] or ()) or None
        return values

    def missing_fields(self) -> list[str]:
        """Names of fields at this depth that are required but empty."""
        return []


@dataclass(frozen=True)
class BigAdminScope(SuperAdminScope):
    """District-level authority."""

    role: ClassVar[Role] = Role.BIG_ADMIN

    region: str | None = None
    district: str | None = None

    def missing_fields(self) -> list[str]:
        return [name for name in ("region", "district") if not getattr(self, name)]


@dataclass(frozen=True)
class AdminScope(BigAdminScope):
    """School-level authority."""

    role: ClassVar[Role] = Role.ADMIN

    circuit: str | None = None
    school_name: str | None = None

    def missing_fields(self) -> list[str]:
        # circuit is optional: not every school sits in a named circuit
        return [
            name
            for name in ("region", "district", "school_name")
            if not getattr(self, name)
        ]


@dataclass(frozen=True)
class UserScope(AdminScope):
    """Class-level scope for instructors."""

    role: ClassVar[Role] = Role.USER

    class_names: tuple[str, ...] = field(default_factory=tuple)

    def missing_fields(self) -> list[str]:
        return []


Scope = SuperAdminScope | BigAdminScope | AdminScope | UserScope

_VARIANTS: dict[Role, type[SuperAdminScope]] = {
    Role.SUPER_ADMIN: SuperAdminScope,
    Role.BIG_ADMIN: BigAdminScope,
    Role.ADMIN: AdminScope,
    Role.USER: UserScope,
}

SCOPE_DEPTH: dict[Role, tuple[str, ...]] = {
    Role.SUPER_ADMIN: (),
    Role.BIG_ADMIN: ("region", "district"),
    Role.ADMIN: ("region", "district", "circuit", "school_name"),
    Role.USER: SCOPE_FIELDS,
}


def scope_for_role(role: Role, fields: ScopeFields) -> Scope:
    """Build the scope variant for a role, keeping only fields at its depth.

    :param role: Role the scope belongs to
    :param fields: Candidate values; anything beyond the depth is dropped
    :return: The scope variant for the role
    """
    variant = _VARIANTS[role]
    return variant(**{name: getattr(fields, name) for name in SCOPE_DEPTH[role]})


def empty_scope() -> Scope:
    """Scope of an account with global authority or none assigned yet."""
    return SuperAdminScope()
