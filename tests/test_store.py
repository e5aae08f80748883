"""Unit tests for auth/store.py -- identity persistence.

Covers:
- create() generates opaque unique ids and normalizes email
- find_by_email() is case-insensitive; find_by_id() round-trips
- missing rows raise IdentityNotFound
- duplicate email raises DuplicateEmail, including under concurrent inserts
- update_password() replaces the hash and stamps updated_at
- infrastructure faults surface as StoreUnavailable
"""

from __future__ import annotations

import threading

import pytest

from auth.errors import DuplicateEmail, IdentityNotFound, StoreUnavailable
from auth.store import IdentityStore, normalize_email


class TestCreate:
    def test_create_returns_identity(self, store: IdentityStore) -> None:
        identity = store.create("a@x.com", "$2b$04$hash")
        assert len(identity.id) == 32
        assert identity.email == "a@x.com"
        assert identity.password_hash == "$2b$04$hash"
        assert identity.created_at
        assert identity.updated_at is None

    def test_ids_are_unique(self, store: IdentityStore) -> None:
        ids = {store.create(f"user{i}@x.com", "h").id for i in range(50)}
        assert len(ids) == 50

    def test_email_normalized_on_write(self, store: IdentityStore) -> None:
        identity = store.create("  Alice@Example.COM ", "h")
        assert identity.email == "alice@example.com"

    def test_duplicate_email_rejected(self, store: IdentityStore) -> None:
        store.create("a@x.com", "h1")
        with pytest.raises(DuplicateEmail):
            store.create("A@X.COM", "h2")
        assert store.count() == 1

    def test_store_usable_after_duplicate(self, store: IdentityStore) -> None:
        store.create("a@x.com", "h1")
        with pytest.raises(DuplicateEmail):
            store.create("a@x.com", "h2")
        store.create("b@x.com", "h3")
        assert store.count() == 2


class TestLookup:
    def test_find_by_email_case_insensitive(self, store: IdentityStore) -> None:
        created = store.create("a@x.com", "h")
        assert store.find_by_email("A@x.COM").id == created.id

    def test_find_by_id(self, store: IdentityStore) -> None:
        created = store.create("a@x.com", "h")
        found = store.find_by_id(created.id)
        assert found.email == "a@x.com"
        assert found.created_at == created.created_at

    def test_missing_email(self, store: IdentityStore) -> None:
        with pytest.raises(IdentityNotFound):
            store.find_by_email("nobody@x.com")

    def test_missing_id(self, store: IdentityStore) -> None:
        with pytest.raises(IdentityNotFound):
            store.find_by_id("0" * 32)

    def test_repr_hides_hash(self, store: IdentityStore) -> None:
        identity = store.create("a@x.com", "$2b$04$secrethashvalue")
        assert "secrethashvalue" not in repr(identity)


class TestUpdatePassword:
    def test_update_replaces_hash(self, store: IdentityStore) -> None:
        created = store.create("a@x.com", "old")
        store.update_password(created.id, "new")
        found = store.find_by_id(created.id)
        assert found.password_hash == "new"
        assert found.updated_at is not None

    def test_update_unknown_id(self, store: IdentityStore) -> None:
        with pytest.raises(IdentityNotFound):
            store.update_password("0" * 32, "new")


def test_normalize_email() -> None:
    assert normalize_email("  MiXeD@Case.Org\n") == "mixed@case.org"


def test_ping(store: IdentityStore) -> None:
    assert store.ping() is True


def test_unreachable_database_raises_store_unavailable(tmp_path) -> None:
    missing_dir = tmp_path / "does-not-exist" / "auth.db"
    with pytest.raises(StoreUnavailable):
        IdentityStore(f"sqlite:///{missing_dir}")


def test_concurrent_registration_creates_one_identity(tmp_path) -> None:
    """Racing inserts of one email: exactly one wins, the rest see DuplicateEmail.

    File-backed so every thread gets its own real connection to one database.
    """
    store = IdentityStore(f"sqlite:///{tmp_path / 'race.db'}")
    workers = 8
    barrier = threading.Barrier(workers)
    outcomes: list[str] = []
    lock = threading.Lock()

    def attempt(n: int) -> None:
        barrier.wait()
        try:
            store.create("Race@X.com" if n % 2 else "race@x.com", f"hash-{n}")
            result = "created"
        except DuplicateEmail:
            result = "duplicate"
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=attempt, args=(n,)) for n in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    try:
        assert outcomes.count("created") == 1
        assert outcomes.count("duplicate") == workers - 1
        assert store.count() == 1
    finally:
        store.close()
