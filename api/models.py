"""
API request and response models for ReelHub auth endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Email shape is checked by auth.service.validate_email, not here, so the same
rule applies to every caller of AuthService, HTTP or not.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /register."""

    email: str = Field(min_length=1, max_length=254)
    # 72 is bcrypt's byte limit; PasswordHasher enforces the byte count.
    password: str = Field(min_length=1, max_length=72)


class LoginRequest(BaseModel):
    """Request body for POST /login.

    No length bounds: any wrong-shaped credential fails as a 401 from
    AuthService.login.
    """

    email: str
    password: str


class PasswordChangeRequest(BaseModel):
    """Request body for POST /me/password."""

    current_password: str = Field(min_length=1, max_length=72)
    new_password: str = Field(min_length=1, max_length=72)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class RegisterResponse(BaseModel):
    """Response for POST /register (201)."""

    model_config = ConfigDict(frozen=True)

    id: str
    token: str


class LoginResponse(BaseModel):
    """Response for POST /login (200)."""

    model_config = ConfigDict(frozen=True)

    token: str
    token_type: str = "bearer"
    expires_in: int


class MeResponse(BaseModel):
    """Response for GET /me."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    created_at: str


class ErrorResponse(BaseModel):
    """Flat error body returned on every 4xx/5xx response."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
