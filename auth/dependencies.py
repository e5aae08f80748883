"""
auth/dependencies.py -- FastAPI Depends() helpers for bearer authentication.

BearerAuthGateway walks one request through:
  Unauthenticated -> TokenExtracted -> TokenVerified -> IdentityAttached
and short-circuits to a 401 at any step. Each step is a method so the
gateway can be subclassed or swapped per router (e.g. a cookie extractor)
without touching route code.

All failure kinds (missing header, malformed, bad signature, expired,
missing claim) are logged with their internal kind and answered with the
same generic 401 body. Nothing is retried.

require_identity     -- the shared gateway; yields a read-only AuthContext.
get_current_identity -- loads the full Identity for handlers that need it.
                        Most handlers only need the id and should not pay
                        for a store read on every request.

Layer rule: may import from fastapi (Depends/HTTPException/Request) because
this module is part of the FastAPI dependency injection system. No imports
from api/.
"""

from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, Request

from auth.errors import IdentityNotFound, MissingCredentials, TokenError, Unauthorized
from auth.models import AuthContext, Claims, Identity
from auth.store import IdentityStore
from auth.tokens import TokenService

logger = logging.getLogger("reelhub.auth")


def unauthorized() -> HTTPException:
    """The one 401 every authentication failure turns into."""
    return HTTPException(
        status_code=401,
        detail={"code": Unauthorized.code, "message": Unauthorized.public_message},
        headers={"WWW-Authenticate": "Bearer"},
    )


class BearerAuthGateway:
    """Pluggable {extract, verify, attach} capability used as a dependency.

    Use as a FastAPI dependency:
        @router.get("/videos")
        def list_videos(auth: AuthContext = Depends(require_identity)): ...
    """

    scheme = "bearer"

    def extract(self, request: Request) -> str:
        """Return the raw token from the Authorization header."""
        header = request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")
        token = token.strip()
        if scheme.lower() != self.scheme or not token:
            raise MissingCredentials("no bearer credential")
        return token

    def verify(self, request: Request, token: str) -> Claims:
        tokens: TokenService = request.app.state.token_service
        return tokens.verify(token)

    def attach(self, request: Request, claims: Claims) -> AuthContext:
        context = AuthContext(identity_id=claims.subject, expires_at=claims.expires_at)
        request.state.auth = context
        return context

    def __call__(self, request: Request) -> AuthContext:
        try:
            token = self.extract(request)
            claims = self.verify(request, token)
        except TokenError as exc:
            logger.info(
                "Rejected request %s %s: %s",
                request.method,
                request.url.path,
                exc.kind,
            )
            raise unauthorized() from exc
        return self.attach(request, claims)


require_identity = BearerAuthGateway()


def get_current_identity(request: Request, auth: AuthContext = Depends(require_identity)) -> Identity:
    """Resolve the full Identity for the authenticated subject.

    A valid token whose subject no longer exists is treated like any other
    invalid credential.
    """
    store: IdentityStore = request.app.state.identity_store
    try:
        return store.find_by_id(auth.identity_id)
    except IdentityNotFound:
        logger.info("Rejected request %s %s: unknown_subject", request.method, request.url.path)
        raise unauthorized() from None
