"""Tests for environment configuration loading."""

import logging
import os

import pytest

from reportcard.config import (
    AppConfig,
    configure_logging,
    get_env_int,
    get_env_list,
    load_config_from_env,
)


@pytest.fixture
def env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Minimal valid environment."""
    for name in (
        "DATABASE_PATH",
        "LOGGING_LEVEL",
        "ROOT_PATH",
        "SUPER_ADMIN_PASSWORD",
        "SECRET_KEY",
        "ALGORITHM",
        "ACCESS_TOKEN_EXPIRE_MINUTES",
        "PASSWORD_MIN_LENGTH",
        "CORS_ORIGINS",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SUPER_ADMIN_EMAIL", "root@school.test")
    return monkeypatch


def test_defaults(env: pytest.MonkeyPatch) -> None:
    config = load_config_from_env(None)

    assert config.database_path == "./reportcard_access.db"
    assert config.super_admin_email == "root@school.test"
    assert config.super_admin_password is None
    assert config.algorithm == "HS512"
    assert config.access_token_expire_minutes == 60 * 24
    assert config.password_min_length == 6
    assert config.cors_origins == ["*"]
    assert config.security_manager.password_min_length == 6


def test_super_admin_email_required(env: pytest.MonkeyPatch) -> None:
    env.delenv("SUPER_ADMIN_EMAIL")
    with pytest.raises(ValueError, match="SUPER_ADMIN_EMAIL is required"):
        load_config_from_env(None)


def test_invalid_algorithm(env: pytest.MonkeyPatch) -> None:
    env.setenv("ALGORITHM", "ROT13")
    with pytest.raises(ValueError, match="ALGORITHM"):
        load_config_from_env(None)


def test_env_file(env: pytest.MonkeyPatch, tmp_path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text(
        "SUPER_ADMIN_PASSWORD=bootstrap-pass\n"
        "PASSWORD_MIN_LENGTH=10\n"
        "CORS_ORIGINS=https://a.test, https://b.test\n",
    )

    try:
        config = load_config_from_env(env_file)
    finally:
        # load_dotenv writes straight to os.environ
        for name in ("SUPER_ADMIN_PASSWORD", "PASSWORD_MIN_LENGTH", "CORS_ORIGINS"):
            os.environ.pop(name, None)

    assert config.super_admin_password == "bootstrap-pass"  # noqa: S105
    assert config.password_min_length == 10
    assert config.cors_origins == ["https://a.test", "https://b.test"]


def test_get_env_int(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SOME_NUMBER", "12")
    assert get_env_int("SOME_NUMBER", 1) == 12

    monkeypatch.setenv("SOME_NUMBER", "")
    assert get_env_int("SOME_NUMBER", 1) == 1

    monkeypatch.setenv("SOME_NUMBER", "twelve")
    with pytest.raises(ValueError, match="must be an integer"):
        get_env_int("SOME_NUMBER", 1)

    monkeypatch.setenv("SOME_NUMBER", "0")
    with pytest.raises(ValueError, match="invalid value"):
        get_env_int("SOME_NUMBER", 1, lambda value: value > 0)


def test_get_env_list(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SOME_LIST", raising=False)
    assert get_env_list("SOME_LIST", ["*"]) == ["*"]
    monkeypatch.setenv("SOME_LIST", "a,,b ")
    assert get_env_list("SOME_LIST", ["*"]) == ["a", "b"]


def test_configure_logging_invalid_level(caplog: pytest.LogCaptureFixture) -> None:
    config = AppConfig(
        database_path=":memory:",
        logging_level="LOUD",
        root_path="",
        super_admin_email="root@school.test",
        super_admin_password=None,
        secret_key="k" * 64,
        algorithm="HS512",
        access_token_expire_minutes=5,
        password_min_length=6,
    )
    with caplog.at_level(logging.WARNING, logger="reportcard.config"):
        configure_logging(config)
    assert "Invalid log level: LOUD" in caplog.text
