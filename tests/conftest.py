"""
tests/conftest.py -- Shared test fixtures for ReelHub auth tests.

This module provides:
  - hasher / tokens / store / service: unit-level components with cheap
    bcrypt rounds and an in-memory SQLite store
  - _patch_lifespan(): wires a test store into app.state, bypassing real startup
  - api_client: TestClient over the real FastAPI app with an isolated store

Design: Named shared-memory SQLite URIs (not plain :memory:) are used for the
API client because TestClient runs sync route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to each
worker thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

Environment must be set before any api/auth/core import: DEBUG lets
get_settings() auto-generate SECRET_KEY, BCRYPT_ROUNDS keeps hashing fast,
RATE_LIMIT_ENABLED=false stops the shared limiter from throttling the suite,
and ALLOWED_HOSTS admits TestClient's "testserver" host.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set env before any project import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')

import pytest
from fastapi.testclient import TestClient

from api.main import app, build_auth_components
from auth.passwords import PasswordHasher
from auth.service import AuthService
from auth.store import IdentityStore
from auth.tokens import TokenService

TEST_SECRET = "test-secret-key-0123456789abcdef0123456789abcdef"


# ---------------------------------------------------------------------------
# Unit-level components
# ---------------------------------------------------------------------------


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(secret_key=TEST_SECRET, lifetime_seconds=3600)


@pytest.fixture
def store() -> Generator[IdentityStore, None, None]:
    s = IdentityStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def service(store: IdentityStore, hasher: PasswordHasher, tokens: TokenService) -> AuthService:
    return AuthService(store=store, hasher=hasher, tokens=tokens)


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------


def _patch_lifespan(store: IdentityStore):
    """Return an async context manager that replaces the real lifespan.

    Uses the same build_auth_components() as production so the test app is
    assembled identically, only against an isolated database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        build_auth_components(app, store)
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request) -> Generator[TestClient, None, None]:
    """Yield a TestClient backed by a per-module in-memory identity store.

    The module name is used as the DB suffix so test modules never share
    identities.
    """
    suffix = request.module.__name__.rsplit(".", 1)[-1]
    store = IdentityStore(f"sqlite:///file:test_auth_{suffix}?mode=memory&cache=shared&uri=true")
    app.router.lifespan_context = _patch_lifespan(store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client

    store.close()


def register(client: TestClient, email: str, password: str = "Secure1!") -> dict:
    """POST /register and return the JSON body, asserting success."""
    resp = client.post("/register", json={"email": email, "password": password})
    assert resp.status_code == 201, f"Expected 201, got {resp.status_code}: {resp.text}"
    return resp.json()


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
