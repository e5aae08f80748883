"""
auth/service.py -- Registration, login, and password-change orchestration.

AuthService ties the three leaf components together:
  IdentityStore   -- who exists
  PasswordHasher  -- is this the right password
  TokenService    -- prove it for the next hour

Login timing equalization:
  Always runs one bcrypt verification whether or not the email exists.
  - Unknown email:  dummy_verify() against a placeholder of the same cost
  - Wrong password: verify() against the real record
  Both paths then raise the same InvalidCredentials. Do NOT add an early
  return before the bcrypt call -- that re-opens email enumeration.

Registration may disclose "email taken" (409). That is the conventional
trade-off for sign-up forms; login never discloses it.

All bcrypt work here is CPU-bound and synchronous. Route handlers calling
these methods are declared with plain `def` so FastAPI runs them in its
threadpool instead of on the event loop.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
import re

from auth.errors import DuplicateEmail, IdentityNotFound, InvalidCredentials, StoreUnavailable, ValidationError
from auth.models import Identity
from auth.passwords import PasswordHasher
from auth.store import IdentityStore, normalize_email
from auth.tokens import TokenService

logger = logging.getLogger("reelhub.auth")

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MAX_EMAIL_LENGTH = 254


def validate_email(email: str) -> str:
    """Return the normalized email or raise ValidationError."""
    normalized = normalize_email(email)
    if not normalized or len(normalized) > MAX_EMAIL_LENGTH or not _EMAIL_RE.match(normalized):
        raise ValidationError("A valid email address is required.")
    return normalized


class AuthService:
    """Entry points for POST /register, POST /login, and password changes."""

    def __init__(self, store: IdentityStore, hasher: PasswordHasher, tokens: TokenService) -> None:
        self.store = store
        self.hasher = hasher
        self.tokens = tokens

    def register(self, email: str, password: str) -> tuple[Identity, str]:
        """Create an identity and return it with a fresh access token.

        Raises:
            ValidationError:     bad email shape or password policy violation.
            DuplicateEmail:      the normalized email is already registered.
            StoreUnavailable:    database fault.
        """
        normalized = validate_email(email)
        try:
            self.store.find_by_email(normalized)
        except IdentityNotFound:
            pass
        else:
            raise DuplicateEmail()

        password_hash = self.hasher.hash(password)
        # The UNIQUE index is the real guard; the lookup above only spares a
        # bcrypt round for the common duplicate case.
        identity = self.store.create(normalized, password_hash)
        logger.info("Registered identity %s", identity.id)
        return identity, self.tokens.issue(identity.id)

    def authenticate(self, email: str, password: str) -> Identity:
        """Return the identity for a correct email/password pair.

        Raises InvalidCredentials for every failure mode, including a
        malformed email, so callers cannot tell them apart.

        Both failure paths run exactly one bcrypt check. The unknown-email
        path always pays the configured cost, so a record still hashed at a
        lower legacy cost answers faster until its next successful login
        upgrades it.
        """
        try:
            identity = self.store.find_by_email(email)
        except IdentityNotFound:
            # Equalize timing -- do NOT return before running bcrypt.
            self.hasher.dummy_verify(password)
            raise InvalidCredentials() from None

        if not self.hasher.verify(password, identity.password_hash):
            raise InvalidCredentials()
        return identity

    def login(self, email: str, password: str) -> str:
        """Authenticate and return a signed access token."""
        identity = self.authenticate(email, password)
        if self.hasher.needs_rehash(identity.password_hash):
            self._upgrade_hash(identity, password)
        return self.tokens.issue(identity.id)

    def change_password(self, identity_id: str, current_password: str, new_password: str) -> None:
        """Replace the password after re-checking the current one.

        Tokens issued before the change stay valid until they expire; there is
        no revocation list in this core.
        """
        try:
            identity = self.store.find_by_id(identity_id)
        except IdentityNotFound:
            self.hasher.dummy_verify(current_password)
            raise InvalidCredentials() from None
        if not self.hasher.verify(current_password, identity.password_hash):
            raise InvalidCredentials()
        self.store.update_password(identity.id, self.hasher.hash(new_password))
        logger.info("Password changed for identity %s", identity.id)

    def _upgrade_hash(self, identity: Identity, password: str) -> None:
        """Re-hash with the current work factor after a successful login.

        Best-effort: the login already succeeded, so a failed upgrade is logged
        and retried naturally on the next login.
        """
        try:
            self.store.update_password(identity.id, self.hasher.hash(password))
        except (StoreUnavailable, IdentityNotFound, ValidationError) as exc:
            logger.warning("Password hash upgrade failed for identity %s: %s", identity.id, exc.code)
        else:
            logger.info("Upgraded password hash cost for identity %s", identity.id)
