"""
API request and response models for PolicyLab REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Request models only cap sizes. Semantic rules (e-mail shape, password
strength) are enforced by the auth core so every caller gets the same
InvalidInput answer -- a 400 with code "invalid_input", not a 422.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import LoginResult, PublicUser

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register."""

    identity: str = Field(max_length=255, examples=["alice@example.com"])
    password: str = Field(max_length=255, examples=["Secret123"])
    display_name: str = Field(max_length=255, examples=["Alice"])


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login."""

    identity: str = Field(max_length=255)
    password: str = Field(max_length=255)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public view of an account. Never carries the password hash."""

    model_config = ConfigDict(frozen=True)

    id: int
    identity: str
    display_name: str

    @classmethod
    def from_public(cls, user: PublicUser) -> "UserResponse":
        return cls(id=user.id, identity=user.identity, display_name=user.display_name)


class LoginResponse(BaseModel):
    """Response body for a successful POST /api/v1/auth/login."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    id: int
    identity: str
    display_name: str

    @classmethod
    def from_result(cls, result: LoginResult) -> "LoginResponse":
        return cls(
            access_token=result.token,
            expires_in=result.expires_in,
            id=result.user.id,
            identity=result.user.identity,
            display_name=result.user.display_name,
        )


class SessionResponse(BaseModel):
    """Verified claims of the caller's current bearer token."""

    model_config = ConfigDict(frozen=True)

    subject_id: int
    issued_at: datetime
    expires_at: datetime


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
