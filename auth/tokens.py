"""
auth/tokens.py -- JWT issuance and verification.

Security design decisions:
  JWT: python-jose, HMAC family (HS256 by default). The algorithm comes from
       Settings and is passed to decode() as the only allowed value, so a
       token that names another algorithm in its header ("none", RS256 with a
       public key as secret, ...) fails signature verification.

  Payload: sub (identity id), iat, exp -- nothing else. The token is encoded,
       not encrypted; email or role flags would leak PII and go stale.

  Failures: verify() raises a TokenError subclass naming the internal kind
       (malformed, bad_signature, expired, missing_claim). The gateway logs
       the kind and returns the same generic 401 for all of them.

  Clock: issuance and expiry both read the injectable clock. A token is
       valid only while clock() < exp; python-jose's own exp check is turned
       off because it compares whole seconds and lets exp == now through.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from jose.exceptions import JWTClaimsError

from auth.errors import BadSignature, ExpiredToken, MalformedToken, MissingClaim
from auth.models import Claims
from core.config import Settings

logger = logging.getLogger("reelhub.auth")

_REQUIRED_CLAIMS = ("sub", "iat", "exp")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Issues and verifies signed, time-bounded access tokens.

    Stateless: the only state is the immutable signing configuration, so one
    instance is shared across all requests and threads.

    Usage:
        tokens = TokenService(secret_key=settings.secret_key, lifetime_seconds=3600)
        token = tokens.issue(identity.id)
        claims = tokens.verify(token)   # raises TokenError subclasses
    """

    def __init__(
        self,
        secret_key: str,
        lifetime_seconds: int = 3600,
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if lifetime_seconds <= 0:
            raise ValueError("Token lifetime must be positive.")
        self._secret_key = secret_key
        self.lifetime_seconds = lifetime_seconds
        self.algorithm = algorithm
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenService:
        return cls(
            secret_key=settings.secret_key,
            lifetime_seconds=settings.token_expire_seconds,
            algorithm=settings.jwt_algorithm,
        )

    def issue(self, identity_id: str) -> str:
        """Encode a signed JWT for identity_id, valid for lifetime_seconds."""
        if not identity_id:
            raise ValueError("identity_id must not be empty.")
        now = self._clock()
        payload = {
            "sub": identity_id,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=self.lifetime_seconds)).timestamp()),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> Claims:
        """Decode token, check signature, expiry, and required claims.

        Raises:
            MalformedToken: token is not a decodable compact JWS.
            BadSignature:   signature mismatch or disallowed algorithm.
            ExpiredToken:   exp <= clock().
            MissingClaim:   sub, iat, or exp absent, or sub empty.
        """
        try:
            # Parses all three segments without trusting any of them.
            jwt.get_unverified_header(token)
        except JWTError as exc:
            raise MalformedToken(str(exc)) from exc

        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={
                    "verify_exp": False,
                    "require_sub": True,
                    "require_iat": True,
                    "require_exp": True,
                },
            )
        except JWTClaimsError as exc:
            # Signature is checked before claims: we signed it, the claims are unusable.
            raise MissingClaim(str(exc)) from exc
        except JWTError as exc:
            raise BadSignature(str(exc)) from exc

        missing = [name for name in _REQUIRED_CLAIMS if name not in payload]
        if missing or not payload.get("sub"):
            raise MissingClaim(f"missing claims: {', '.join(missing) or 'sub'}")

        try:
            claims = Claims(
                subject=str(payload["sub"]),
                issued_at=datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc),
                expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
            )
        except (TypeError, ValueError, OverflowError) as exc:
            raise MissingClaim(str(exc)) from exc

        if claims.expires_at <= self._clock():
            raise ExpiredToken(f"token expired at {claims.expires_at.isoformat()}")
        return claims
