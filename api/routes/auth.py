"""
api/routes/auth.py -- Registration, login, and identity REST endpoints.

Routes:
  POST /register        -- create identity; 201 {id, token}
  POST /login           -- password login; 200 {token, token_type, expires_in}
  GET  /me              -- current identity (requires auth)
  POST /me/password     -- change password (requires auth); 204

Security:
  POST /register and POST /login are rate-limited per client IP.
  AuthService.login() provides timing equalization -- use it, never inline
      store lookups plus hasher.verify() here.
  Cache-Control: no-store on every response that carries a token.
  Handlers that run bcrypt are plain `def`: FastAPI runs them in its
      threadpool so hashing never blocks the event loop.

Errors are raised as auth.errors kinds and mapped to HTTP by the exception
handlers in api/main.py.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from api.limiter import limiter, login_limit, register_limit
from api.models import LoginRequest, LoginResponse, MeResponse, PasswordChangeRequest, RegisterRequest, RegisterResponse
from auth.dependencies import get_current_identity, require_identity
from auth.models import AuthContext, Identity
from auth.service import AuthService

# Auth policy:
# - POST /register:      public
# - POST /login:         public
# - GET  /me:            requires auth (get_current_identity)
# - POST /me/password:   requires auth (require_identity)
router = APIRouter()


def _service(request: Request) -> AuthService:
    return request.app.state.auth_service


def _no_store(resp: JSONResponse) -> JSONResponse:
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/register", response_model=RegisterResponse, status_code=201)
@limiter.limit(register_limit)
def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Create an identity and log it in.

    409 if the email is already registered (case-insensitive), 400 if the
    email or password fails validation.
    """
    identity, token = _service(request).register(body.email, body.password)
    return _no_store(
        JSONResponse(
            status_code=201,
            content=RegisterResponse(id=identity.id, token=token).model_dump(),
        )
    )


@router.post("/login", response_model=LoginResponse)
@limiter.limit(login_limit)  # brute-force mitigation
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Exchange email and password for an access token.

    Unknown email and wrong password produce the same 401 body and the same
    bcrypt cost.
    """
    service = _service(request)
    token = service.login(body.email, body.password)
    return _no_store(
        JSONResponse(
            status_code=200,
            content=LoginResponse(
                token=token,
                token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
                expires_in=service.tokens.lifetime_seconds,
            ).model_dump(),
        )
    )


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/me", response_model=MeResponse)
def me(identity: Identity = Depends(get_current_identity)) -> MeResponse:
    """Return the authenticated identity."""
    return MeResponse(id=identity.id, email=identity.email, created_at=identity.created_at)


@router.post("/me/password", status_code=204)
def change_password(
    request: Request,
    body: PasswordChangeRequest,
    auth: AuthContext = Depends(require_identity),
) -> Response:
    """Change the caller's password. 401 if current_password is wrong.

    Tokens issued before the change remain valid until they expire.
    """
    _service(request).change_password(auth.identity_id, body.current_password, body.new_password)
    return Response(status_code=204)
