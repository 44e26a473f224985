"""Tests for the role hierarchy."""

from typing import get_type_hints

import pytest

from reportcard.common import Role

ASSIGNMENTS = {
    Role.SUPER_ADMIN: {Role.BIG_ADMIN, Role.ADMIN, Role.USER},
    Role.BIG_ADMIN: {Role.ADMIN, Role.USER},
    Role.ADMIN: {Role.USER},
    Role.USER: set(),
}


@pytest.mark.parametrize("actor", list(Role))
@pytest.mark.parametrize("target", list(Role))
def test_can_assign_matrix(actor: Role, target: Role) -> None:
    """Every actor/target pair follows the assignment table."""
    assert actor.can_assign(target) == (target in ASSIGNMENTS[actor])


def test_nobody_assigns_super_admin() -> None:
    assert not any(role.can_assign(Role.SUPER_ADMIN) for role in Role)


def test_is_administrator() -> None:
    assert Role.SUPER_ADMIN.is_administrator
    assert Role.BIG_ADMIN.is_administrator
    assert Role.ADMIN.is_administrator
    assert not Role.USER.is_administrator


def test_annotations_resolve() -> None:
    """Role methods refer to Role itself in their signatures."""
    assert get_type_hints(Role.can_assign)["target"] is Role
    assert get_type_hints(Role.parse)["return"] == Role | None


def test_parse() -> None:
    assert Role.parse("big-admin") == Role.BIG_ADMIN
    assert Role.parse("  Admin ") == Role.ADMIN
    assert Role.parse(Role.USER) == Role.USER
    assert Role.parse(None) is None
    assert Role.parse("   ") is None

    with pytest.raises(ValueError):
        Role.parse("owner")
