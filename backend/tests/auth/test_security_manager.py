"""Tests for password hashing and access tokens."""

from datetime import UTC, datetime, timedelta

import jwt
import pytest
from conftest import TEST_SECRET_KEY, make_account

from reportcard.auth import SecurityManager
from reportcard.common import Role


@pytest.fixture
def security_manager() -> SecurityManager:
    return SecurityManager(secret_key=TEST_SECRET_KEY, password_min_length=8)


def test_short_secret_key_is_replaced() -> None:
    manager = SecurityManager(secret_key="short")
    assert manager.secret_key != "short"
    assert len(manager.secret_key) >= SecurityManager.MINIMUM_JWT_SECRET_KEY_LENGTH


def test_validate_password(security_manager: SecurityManager) -> None:
    assert security_manager.validate_password("long-enough") is None
    assert security_manager.validate_password("short") == (
        "Password must be at least 8 characters long"
    )


def test_hash_and_check_password(security_manager: SecurityManager) -> None:
    hashed = security_manager.hash_password("long-enough")
    assert hashed != b"long-enough"
    assert security_manager.check_password("long-enough", hashed)
    assert not security_manager.check_password("wrong-guess", hashed)


def test_password_over_bcrypt_limit(security_manager: SecurityManager) -> None:
    """bcrypt only accepts 72 bytes, so longer passwords never reach it."""
    assert security_manager.validate_password("x" * 72) is None
    assert security_manager.validate_password("x" * 73) == (
        "Password must be at most 72 bytes long"
    )
    # 37 two-byte characters pass the character count but not the byte count
    assert security_manager.validate_password("\u00e9" * 37) is not None

    hashed = security_manager.hash_password("x" * 72)
    assert not security_manager.check_password("x" * 100, hashed)


def test_token_round_trip(security_manager: SecurityManager) -> None:
    account = make_account(Role.BIG_ADMIN, region="Ashanti", district="Kumasi Metro")

    claims = security_manager.verify_token(security_manager.create_access_token(account))

    assert claims is not None
    assert claims.account_id == account.id
    assert claims.email == account.email
    assert claims.role == Role.BIG_ADMIN


def test_expired_token(security_manager: SecurityManager) -> None:
    now = datetime.now(UTC)
    token = jwt.encode(
        {
            "sub": "1",
            "email": "a@school.test",
            "role": "user",
            "type": "access_token",
            "iat": now - timedelta(hours=2),
            "exp": now - timedelta(hours=1),
        },
        TEST_SECRET_KEY,
        algorithm=security_manager.algorithm,
    )
    assert security_manager.verify_token(token) is None


def test_foreign_token(security_manager: SecurityManager) -> None:
    other = SecurityManager(secret_key="x" * 64)
    token = other.create_access_token(make_account(Role.USER))
    assert security_manager.verify_token(token) is None
    assert security_manager.verify_token("not-a-token") is None


def test_token_with_unknown_role(security_manager: SecurityManager) -> None:
    token = jwt.encode(
        {
            "sub": "1",
            "email": "a@school.test",
            "role": "owner",
            "type": "access_token",
            "exp": datetime.now(UTC) + timedelta(hours=1),
        },
        TEST_SECRET_KEY,
        algorithm=security_manager.algorithm,
    )
    assert security_manager.verify_token(token) is None
