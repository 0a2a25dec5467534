"""
API request and response models for the Vaani-Nyay auth REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Input format rules live here, not in AuthService: the service only enforces
email uniqueness and credential correctness.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.models import UserAccount

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Deliberately loose shape check -- no nested quantifiers, so no ReDoS.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# 10-digit Indian mobile number.
PHONE_PATTERN = r"^[6-9]\d{9}$"


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register.

    Whitespace is stripped from name, email and phone before the length and
    pattern checks run. Email case is preserved -- accounts are matched
    exactly as stored. The password is never stripped.
    """

    name: str = Field(min_length=2, max_length=50)
    email: str = Field(max_length=255, pattern=EMAIL_PATTERN)
    phone: str = Field(pattern=PHONE_PATTERN)
    password: str = Field(min_length=8, max_length=255)

    @field_validator("name", "email", "phone", mode="before")
    @classmethod
    def strip_whitespace(cls, value):
        return value.strip() if isinstance(value, str) else value


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login.

    No password length floor here: a short password is simply wrong, and must
    get the same invalid_credentials answer as any other wrong password.
    """

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)

    @field_validator("email", mode="before")
    @classmethod
    def strip_whitespace(cls, value):
        return value.strip() if isinstance(value, str) else value


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class PublicUser(BaseModel):
    """Client-safe account projection. Never carries the password hash."""

    model_config = ConfigDict(frozen=True)

    name: str
    email: str
    phone: str

    @classmethod
    def from_account(cls, account: UserAccount) -> "PublicUser":
        return cls(**account.public())


class AuthResponse(BaseModel):
    """Response for successful register and login calls."""

    model_config = ConfigDict(frozen=True)

    token: str
    token_type: str = "bearer"
    expires_in: int
    user: PublicUser


class ProfileUser(PublicUser):
    id: str
    created_at: str


class ProfileResponse(BaseModel):
    """Response for GET /api/v1/auth/profile."""

    model_config = ConfigDict(frozen=True)

    user: ProfileUser


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class ErrorDetail(BaseModel):
    """Structured error detail included in every error response."""

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
