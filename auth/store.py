"""
auth/store.py -- SQLAlchemy Core persistence layer for identities.

Pattern: Repository + Data Mapper.
IdentityStore is the repository; _row_to_identity is the mapper.
Service, dependency, and route code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  Email uniqueness is a UNIQUE constraint on the normalized email column.
  create() relies on it instead of a read-then-insert check, so two concurrent
  registrations for the same address cannot both succeed: the loser gets
  IntegrityError, surfaced as DuplicateEmail.

  Identity ids are uuid4 hex strings (122 random bits) generated here, so ids
  are not guessable or enumerable the way autoincrement integers are.

Failures:
  IdentityNotFound for lookups that match nothing.
  StoreUnavailable for any OperationalError (database missing, locked, ...).

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, event, select, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, OperationalError

from auth.errors import DuplicateEmail, IdentityNotFound, StoreUnavailable
from auth.models import Identity

logger = logging.getLogger("reelhub.auth")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_identities = Table(
    "identities",
    _metadata,
    Column("id", String(32), primary_key=True),  # uuid4().hex
    Column("email", String(254), nullable=False, unique=True),  # normalized
    Column("password_hash", Text, nullable=False),  # bcrypt record
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32)),  # last password change
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def normalize_email(email: str) -> str:
    """Canonical form used for storage and lookup: stripped and lower-cased."""
    return email.strip().lower()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class IdentityStore:
    """Repository for Identity records.

    Usage:
        store = IdentityStore("sqlite:///reelhub_auth.db")
        identity = store.create("a@x.com", hasher.hash("Secure1!"))
        same = store.find_by_email("A@X.com")
        store.close()
    """

    def __init__(self, db_url: str = "sqlite:///reelhub_auth.db") -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        with self._connect() as conn:
            _metadata.create_all(conn)
            conn.commit()

    @contextmanager
    def _connect(self) -> Iterator[Connection]:
        """Yield a connection, translating infrastructure faults to StoreUnavailable."""
        try:
            with self.engine.connect() as conn:
                yield conn
        except OperationalError as exc:
            logger.error("Identity store unavailable: %s", exc.orig)
            raise StoreUnavailable() from exc

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create(self, email: str, password_hash: str) -> Identity:
        """Insert a new identity and return it.

        Raises DuplicateEmail if the normalized email already exists. The check
        is the UNIQUE index itself, so it is atomic with the insert.
        """
        identity = Identity(
            id=uuid.uuid4().hex,
            email=normalize_email(email),
            password_hash=password_hash,
            created_at=_now_iso(),
        )
        with self._connect() as conn:
            try:
                conn.execute(
                    _identities.insert().values(
                        id=identity.id,
                        email=identity.email,
                        password_hash=identity.password_hash,
                        created_at=identity.created_at,
                    )
                )
                conn.commit()
            except IntegrityError as exc:
                conn.rollback()
                raise DuplicateEmail() from exc
        return identity

    def update_password(self, identity_id: str, password_hash: str) -> None:
        """Replace the stored hash. Raises IdentityNotFound if no row matched."""
        with self._connect() as conn:
            result = conn.execute(
                _identities.update()
                .where(_identities.c.id == identity_id)
                .values(password_hash=password_hash, updated_at=_now_iso())
            )
            conn.commit()
        if result.rowcount == 0:
            raise IdentityNotFound(identity_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_by_email(self, email: str) -> Identity:
        """Look up by normalized email. Raises IdentityNotFound if absent."""
        normalized = normalize_email(email)
        with self._connect() as conn:
            row = conn.execute(select(_identities).where(_identities.c.email == normalized)).fetchone()
        if row is None:
            raise IdentityNotFound(normalized)
        return _row_to_identity(row)

    def find_by_id(self, identity_id: str) -> Identity:
        """Look up by primary key. Raises IdentityNotFound if absent."""
        with self._connect() as conn:
            row = conn.execute(select(_identities).where(_identities.c.id == identity_id)).fetchone()
        if row is None:
            raise IdentityNotFound(identity_id)
        return _row_to_identity(row)

    def count(self) -> int:
        with self._connect() as conn:
            return conn.execute(text("SELECT COUNT(*) FROM identities")).scalar() or 0

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self._connect() as conn:
                conn.execute(text("SELECT 1"))
        except StoreUnavailable:
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_identity(row) -> Identity:
    return Identity(
        id=row.id,
        email=row.email,
        password_hash=row.password_hash,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
