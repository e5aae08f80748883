"""
auth/passwords.py -- bcrypt password hashing with a configurable work factor.

Using bcrypt directly rather than passlib: passlib's wrap-bug detection feeds
bcrypt a password longer than 72 bytes, which bcrypt 4.x+ rejects.

Security design:
  Salt: bcrypt.gensalt() draws a fresh 128-bit salt per call and embeds it in
      the record, so hashing the same password twice gives different records.

  Work factor: embedded in the record ("$2b$12$..."). Old records keep
      verifying after BCRYPT_ROUNDS changes; needs_rehash() flags them so the
      login flow can upgrade them after a successful verify.

  Timing: bcrypt.checkpw recomputes the hash and compares in constant time.
      dummy_verify() runs the same work against a placeholder record so that
      "unknown email" and "wrong password" cost the same.

  72-byte limit: bcrypt only reads the first 72 bytes of input and current
      releases raise on longer input. hash() rejects such passwords outright;
      verify() answers False after doing equivalent work.
"""

from __future__ import annotations

import logging

import bcrypt

from auth.errors import PasswordPolicyError

logger = logging.getLogger("reelhub.auth")

MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """One-way password transform plus a constant-time comparator."""

    def __init__(self, rounds: int = 12) -> None:
        if not 4 <= rounds <= 31:
            raise ValueError("bcrypt rounds must be between 4 and 31.")
        self.rounds = rounds
        # Computed once so the first login attempt is not measurably slower.
        self._dummy_hash = bcrypt.hashpw(b"reelhub_timing_dummy", bcrypt.gensalt(rounds))

    def hash(self, secret: str) -> str:
        """Return a salted bcrypt record for secret.

        Raises PasswordPolicyError for an empty secret or one longer than
        72 UTF-8 bytes.
        """
        raw = secret.encode("utf-8")
        if not raw:
            raise PasswordPolicyError("Password must not be empty.")
        if len(raw) > MAX_PASSWORD_BYTES:
            raise PasswordPolicyError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
        return bcrypt.hashpw(raw, bcrypt.gensalt(self.rounds)).decode("ascii")

    def verify(self, secret: str, record: str) -> bool:
        """Return True if secret matches record. Never raises on bad input."""
        raw = secret.encode("utf-8")
        if len(raw) > MAX_PASSWORD_BYTES:
            self.dummy_verify(secret)
            return False
        try:
            return bcrypt.checkpw(raw, record.encode("ascii"))
        except (ValueError, UnicodeEncodeError):
            logger.warning("Unparseable password hash record encountered during verify")
            self.dummy_verify(secret)
            return False

    def dummy_verify(self, secret: str) -> None:
        """Spend one full bcrypt verification without a real record."""
        bcrypt.checkpw(secret.encode("utf-8")[:MAX_PASSWORD_BYTES], self._dummy_hash)

    def needs_rehash(self, record: str) -> bool:
        """True if record was produced with a different cost or is unparseable.

        bcrypt records look like $2b$<cost>$<22-char salt><31-char digest>.
        """
        parts = record.split("$")
        if len(parts) != 4 or not parts[2].isdigit():
            return True
        return int(parts[2]) != self.rounds
