"""
tests/conftest.py -- Shared test fixtures for authgate.

This module provides:
  - user_store:    connected in-memory UserStore for unit tests
  - token_service: TokenService signed with the test secret
  - api_client:    TestClient over the real app with demo users seeded

Design: Named shared-memory SQLite URIs (not plain :memory:) are used for the
API client because TestClient runs sync route handlers in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread. The named URI format shares one in-memory instance across all
connections in the same process.

Environment variables must be set before any project import so get_settings()
caches the test configuration (fixed secret, cheap bcrypt, generous login
rate limit).
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

TEST_SECRET = "test-secret-0123456789abcdef0123456789abcdef"

# CRITICAL: set before any auth/core/api import -- get_settings() is cached.
os.environ.setdefault("DEBUG", "true")
os.environ["JWT_SECRET"] = TEST_SECRET
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOGIN_RATE_LIMIT"] = "1000/minute"
os.environ["TOKEN_EXPIRE_SECONDS"] = "60"

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.login import LoginService
from auth.store import UserStore
from auth.tokens import TokenService
from main import seed_users

# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore("sqlite:///:memory:")
    store.connect()
    yield store
    store.close()


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(secret_key=TEST_SECRET, expire_seconds=60)


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(user_store: UserStore, tokens: TokenService):
    """Return an async context manager that replaces the real lifespan.

    Wires the pre-seeded test store into app.state so TestClient routes see
    an isolated in-memory DB rather than the configured database file.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.tokens = tokens
        app.state.login_service = LoginService(user_store, tokens, bcrypt_rounds=4)
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client() -> Generator[TestClient, None, None]:
    """Yield a TestClient whose store holds user1 / advisor1 / admin1.

    Passwords are the demo ones: password1, password2, password3.
    """
    store = UserStore("sqlite:///file:test_auth_api?mode=memory&cache=shared&uri=true")
    store.connect()
    seed_users(store)

    tokens = TokenService(secret_key=TEST_SECRET, expire_seconds=60)
    app.router.lifespan_context = _patch_lifespan(store, tokens)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client

    store.close()
