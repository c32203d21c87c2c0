"""Unit tests for core/config.py -- Settings validation.

Each test builds Settings directly with _env_file=None so a developer's local
.env never leaks in; monkeypatch controls the process environment.
"""

import pytest

from core.config import Settings

GOOD_SECRET = "x" * 40


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("DEBUG", "JWT_SECRET", "BCRYPT_ROUNDS", "TOKEN_EXPIRE_SECONDS", "LOGIN_RATE_LIMIT"):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = Settings(_env_file=None, jwt_secret=GOOD_SECRET)
    assert settings.token_expire_seconds == 60
    assert settings.bcrypt_rounds == 10
    assert settings.port == 3000
    assert settings.login_rate_limit == "10/minute"


def test_production_requires_secret():
    with pytest.raises(ValueError, match="JWT_SECRET is required"):
        Settings(_env_file=None)


def test_debug_generates_secret():
    settings = Settings(_env_file=None, debug=True)
    assert len(settings.jwt_secret.get_secret_value()) == 64


def test_short_secret_rejected():
    with pytest.raises(ValueError, match="at least 32 characters"):
        Settings(_env_file=None, jwt_secret="too-short")


def test_secret_read_from_environment(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", GOOD_SECRET)
    assert Settings(_env_file=None).jwt_secret.get_secret_value() == GOOD_SECRET


def test_secret_hidden_from_repr():
    settings = Settings(_env_file=None, jwt_secret=GOOD_SECRET)
    assert GOOD_SECRET not in repr(settings)
    assert GOOD_SECRET not in str(settings.model_dump())


def test_token_lifetime_configurable(monkeypatch):
    monkeypatch.setenv("TOKEN_EXPIRE_SECONDS", "900")
    assert Settings(_env_file=None, jwt_secret=GOOD_SECRET).token_expire_seconds == 900


@pytest.mark.parametrize("value", [0, -5, 604801])
def test_token_lifetime_bounds(value):
    with pytest.raises(ValueError, match="TOKEN_EXPIRE_SECONDS"):
        Settings(_env_file=None, jwt_secret=GOOD_SECRET, token_expire_seconds=value)


@pytest.mark.parametrize("value", [3, 32])
def test_bcrypt_rounds_bounds(value):
    with pytest.raises(ValueError, match="BCRYPT_ROUNDS"):
        Settings(_env_file=None, jwt_secret=GOOD_SECRET, bcrypt_rounds=value)
