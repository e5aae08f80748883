"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Dataclasses own domain
shape; the store, services, and routes do the work.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Identity:
    """A registered account.

    id is an opaque uuid4 hex string generated by the store at creation time.
    Downstream resources (videos, comments, follows) foreign-key against it.

    email is always stored normalized (stripped, lower-cased), so two
    registrations differing only in case collide on the UNIQUE index.

    password_hash is a bcrypt record. The raw password never reaches this class.
    """

    id: str
    email: str
    password_hash: str
    created_at: str
    updated_at: str | None = None

    def __repr__(self) -> str:
        # Keep the hash out of logs and tracebacks.
        return f"Identity(id={self.id!r}, email={self.email!r}, created_at={self.created_at!r})"


@dataclass(frozen=True)
class Claims:
    """Decoded and verified contents of an access token."""

    subject: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class AuthContext:
    """Request-scoped identity attached by the bearer gateway.

    Frozen so a downstream handler cannot rewrite the identity it was given.
    """

    identity_id: str
    expires_at: datetime
