"""Unit tests for auth/login.py -- the login orchestrator.

Covers:
- Success returns id/username/role/token; the token decodes to the stored role
- Unknown username and wrong password are indistinguishable (same class, same message)
- Missing username or password is a validation failure
- Store failures, signing failures and malformed stored hashes surface as
  InternalError with the generic message
- The stage reached is logged: RESPONDED on success, FAILED after an internal error
"""

import logging

import pytest

from auth.errors import AuthenticationError, InternalError, ValidationError
from auth.login import LoginService
from auth.models import LoginResult, Role, User
from auth.passwords import hash_password
from auth.store import UserStore
from auth.tokens import TokenService

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def seeded_store(user_store):
    user_store.create_user(User(username="admin1", hashed_password=hash_password("password3"), role=Role.admin))
    user_store.create_user(User(username="advisor1", hashed_password=hash_password("password2"), role=Role.advisor))
    return user_store


@pytest.fixture
def service(seeded_store, token_service):
    return LoginService(seeded_store, token_service, bcrypt_rounds=4)


class _UnreachableStore:
    def find_by_username(self, username):
        raise ConnectionError("database is down")


# ---------------------------------------------------------------------------
# Success
# ---------------------------------------------------------------------------


def test_login_success(service, token_service):
    result = service.login("admin1", "password3")
    assert isinstance(result, LoginResult)
    assert result.username == "admin1"
    assert result.role is Role.admin
    claims = token_service.verify(result.token)
    assert claims.role is Role.admin
    assert claims.id == result.id


def test_result_has_no_hash(service):
    result = service.login("advisor1", "password2")
    assert not hasattr(result, "hashed_password")
    assert "$2b$" not in result.token


# ---------------------------------------------------------------------------
# Credential failures
# ---------------------------------------------------------------------------


def test_unknown_user_and_wrong_password_are_identical(service):
    with pytest.raises(AuthenticationError) as unknown:
        service.login("ghost", "password3")
    with pytest.raises(AuthenticationError) as wrong:
        service.login("admin1", "wrong-password")
    assert type(unknown.value) is type(wrong.value)
    assert unknown.value.message == wrong.value.message == "Invalid credentials"
    assert unknown.value.status_code == wrong.value.status_code == 401


@pytest.mark.parametrize(
    "username,password",
    [("", "password3"), ("admin1", ""), (None, "password3"), ("admin1", None), (None, None)],
)
def test_missing_fields(service, username, password):
    with pytest.raises(ValidationError) as exc_info:
        service.login(username, password)
    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "Username and password required"


# ---------------------------------------------------------------------------
# Internal failures
# ---------------------------------------------------------------------------


def test_unreachable_store_is_internal_error(token_service):
    service = LoginService(_UnreachableStore(), token_service)
    with pytest.raises(InternalError) as exc_info:
        service.login("admin1", "password3")
    assert exc_info.value.message == "Server error"
    assert "database is down" not in exc_info.value.message


def test_store_not_connected_is_internal_error(token_service):
    service = LoginService(UserStore("sqlite:///:memory:"), token_service)
    with pytest.raises(InternalError):
        service.login("admin1", "password3")


def test_signing_failure_is_internal_error(seeded_store):
    service = LoginService(seeded_store, TokenService(secret_key="", expire_seconds=60), bcrypt_rounds=4)
    with pytest.raises(InternalError) as exc_info:
        service.login("admin1", "password3")
    assert exc_info.value.status_code == 500


def test_malformed_stored_hash_is_internal_error(user_store, token_service):
    user_store.create_user(User(username="broken", hashed_password="plaintext?!", role=Role.user))
    service = LoginService(user_store, token_service, bcrypt_rounds=4)
    with pytest.raises(InternalError):
        service.login("broken", "whatever")


def test_success_logs_responded_stage(service, caplog):
    with caplog.at_level(logging.INFO, logger="authgate.auth"):
        service.login("admin1", "password3")
    assert "stage=responded" in caplog.text


def test_internal_failure_logs_failed_with_stage_reached(user_store, token_service, caplog):
    user_store.create_user(User(username="broken", hashed_password="plaintext?!", role=Role.user))
    service = LoginService(user_store, token_service, bcrypt_rounds=4)
    with caplog.at_level(logging.INFO, logger="authgate.auth"), pytest.raises(InternalError) as exc_info:
        service.login("broken", "whatever")
    assert "Login failed after stage=user_looked_up" in caplog.text
    assert exc_info.value.detail == "login failed at user_looked_up"


def test_login_never_writes(service, seeded_store):
    before = seeded_store.find_by_username("admin1")
    service.login("admin1", "password3")
    assert seeded_store.find_by_username("admin1") == before
