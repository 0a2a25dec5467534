"""
api/routes/v1/auth.py -- Registration, login and session REST endpoints.

Routes:
  POST /api/v1/auth/register   -- create account; 201 with token + public user
  POST /api/v1/auth/login      -- password login; 200 with token + public user
  GET  /api/v1/auth/profile    -- current account (Bearer token required)
  POST /api/v1/auth/logout     -- stateless; the client discards its token

Security:
  Domain errors (DuplicateEmailError, InvalidCredentialsError) are raised by
  AuthService and rendered by the AuthError handler in api/main.py -- routes
  do not catch them. Unknown email and wrong password therefore share one
  code path to the client and produce byte-identical responses.
  Cache-Control: no-store on every response that carries a token.

Concurrency:
  register/login/profile are plain `def` routes. FastAPI runs them on its
  worker threadpool, so bcrypt's CPU time never blocks the event loop.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    ProfileResponse,
    ProfileUser,
    PublicUser,
    RegisterRequest,
)
from auth.dependencies import get_current_user
from auth.models import AuthResult, UserAccount
from auth.service import AuthService
from auth.tokens import TokenIssuer

# Auth policy:
# - POST /api/v1/auth/register: public
# - POST /api/v1/auth/login:    public
# - POST /api/v1/auth/logout:   public -- there is no server-side session to end
# - GET  /api/v1/auth/profile:  requires auth (get_current_user)
router = APIRouter()


def _token_response(request: Request, result: AuthResult, status_code: int) -> JSONResponse:
    issuer: TokenIssuer = request.app.state.token_issuer
    resp = JSONResponse(
        status_code=status_code,
        content=AuthResponse(
            token=result.token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- token type, not a password
            expires_in=int(issuer.lifetime.total_seconds()),
            user=PublicUser.from_account(result.user),
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/register", response_model=AuthResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Create an account and sign the caller in.

    Returns 400 duplicate_email if the email is already registered, including
    when a concurrent request wins the race for the same address.
    """
    service: AuthService = request.app.state.auth_service
    result = service.register(body.name, body.email, body.phone, body.password)
    return _token_response(request, result, status_code=201)


@router.post("/auth/login", response_model=AuthResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password.

    Returns the same 400 invalid_credentials for unknown email and wrong
    password, to avoid leaking which half of the pair was wrong.
    """
    service: AuthService = request.app.state.auth_service
    result = service.login(body.email, body.password)
    return _token_response(request, result, status_code=200)


@router.get("/auth/profile", response_model=ProfileResponse)
def profile(current_user: UserAccount = Depends(get_current_user)) -> ProfileResponse:
    """Return the account the bearer token belongs to."""
    return ProfileResponse(
        user=ProfileUser(
            id=current_user.id,
            created_at=current_user.created_at or "",
            **current_user.public(),
        )
    )


@router.post("/auth/logout", response_model=MessageResponse)
async def logout() -> MessageResponse:
    """Acknowledge logout. Tokens are stateless and stay valid until they expire."""
    return MessageResponse(message="Logged out.")
