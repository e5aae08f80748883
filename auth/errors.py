"""
auth/errors.py -- Exception taxonomy for the authentication core.

Two tiers:
  Internal kinds (TokenError subclasses, IdentityNotFound) are precise so
  logs can tell a tampered token from an expired one.
  Public kinds (ValidationError, DuplicateEmail, InvalidCredentials,
  StoreUnavailable) are what api/ maps to HTTP responses. Every TokenError
  collapses to one generic 401 at the boundary.

Each public kind carries the HTTP status and error code the API layer uses,
so the mapping lives next to the taxonomy rather than in every route.

Layer rule: no imports from api/.
"""

from __future__ import annotations


class AuthCoreError(Exception):
    """Base class for every error raised by the auth core."""

    status_code: int = 500
    code: str = "internal_error"
    public_message: str = "An unexpected error occurred."


# ---------------------------------------------------------------------------
# Public kinds
# ---------------------------------------------------------------------------


class ValidationError(AuthCoreError):
    """Malformed client input (bad email shape, empty password, ...)."""

    status_code = 400
    code = "validation_error"

    def __init__(self, message: str = "Request validation failed.") -> None:
        super().__init__(message)
        self.public_message = message


class PasswordPolicyError(ValidationError):
    """The password cannot be hashed under the current policy."""


class DuplicateEmail(AuthCoreError):
    """Registration conflict: the normalized email is already taken."""

    status_code = 409
    code = "duplicate_email"
    public_message = "An account with that email already exists."


class InvalidCredentials(AuthCoreError):
    """Login failure. Deliberately says nothing about which part was wrong."""

    status_code = 401
    code = "invalid_credentials"
    public_message = "Invalid email or password."


class Unauthorized(AuthCoreError):
    """Missing or invalid bearer credential, as seen by the client."""

    status_code = 401
    code = "unauthorized"
    public_message = "Unauthorized"


class StoreUnavailable(AuthCoreError):
    """The identity database could not be reached or is locked."""

    status_code = 500
    code = "store_unavailable"
    public_message = "An unexpected error occurred."


# ---------------------------------------------------------------------------
# Internal kinds
# ---------------------------------------------------------------------------


class IdentityNotFound(AuthCoreError):
    """No identity matches the lookup key. Callers decide what this means."""

    status_code = 404
    code = "not_found"
    public_message = "Not found."


class TokenError(Unauthorized):
    """Base for token verification failures. Internal detail only."""

    kind = "invalid"


class MissingCredentials(TokenError):
    kind = "missing"


class MalformedToken(TokenError):
    kind = "malformed"


class BadSignature(TokenError):
    kind = "bad_signature"


class ExpiredToken(TokenError):
    kind = "expired"


class MissingClaim(TokenError):
    kind = "missing_claim"
