"""
tests/conftest.py -- Shared test fixtures for Vaani-Nyay auth tests.

This module provides:
  - make_test_store(): an isolated in-memory UserStore
  - _patch_lifespan(): wires test collaborators into app.state, bypassing real startup
  - hasher / issuer / store / service: unit-test collaborators
  - api_client: TestClient over the real app with a fresh store per test

Design: Named shared-memory SQLite URIs (not plain :memory:) are required for
the API client because TestClient runs sync route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to
each worker thread. The named URI format shares one in-memory instance across
all connections in the same process.

DEBUG and BCRYPT_ROUNDS must be set before any api/ import: api.main reads
get_settings() at import time, and DEBUG lets it fall back to the dev secret
instead of raising. Cost 4 is bcrypt's minimum and keeps the suite fast.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set before any api/ or core/ import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.passwords import PasswordHasher
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import TokenIssuer

TEST_SECRET = "test-secret-key-that-is-at-least-32-characters-long"


def make_test_store() -> UserStore:
    """Return a UserStore on a uniquely named shared-memory SQLite database."""
    return UserStore(db_url=f"sqlite:///file:test_auth_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(store: UserStore, service: AuthService, issuer: TokenIssuer):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-built test collaborators into app.state so TestClient routes
    see an isolated test DB rather than the production database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = store
        app.state.token_issuer = issuer
        app.state.auth_service = service
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Unit-test collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def signing_secret() -> str:
    return TEST_SECRET


@pytest.fixture
def issuer(signing_secret: str) -> TokenIssuer:
    return TokenIssuer(secret_key=signing_secret)


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = make_test_store()
    yield s
    s.close()


@pytest.fixture
def service(store: UserStore, hasher: PasswordHasher, issuer: TokenIssuer) -> AuthService:
    return AuthService(store=store, hasher=hasher, issuer=issuer)


# ---------------------------------------------------------------------------
# API client -- function-scoped so every test starts with an empty user table
# ---------------------------------------------------------------------------


@pytest.fixture
def api_client(store: UserStore, service: AuthService, issuer: TokenIssuer) -> Generator[TestClient, None, None]:
    """Yield a TestClient over the real app, backed by this test's store."""
    app.router.lifespan_context = _patch_lifespan(store, service, issuer)
    with TestClient(app, raise_server_exceptions=True) as client:
        yield client
