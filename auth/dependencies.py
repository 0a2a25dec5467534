"""
auth/dependencies.py -- FastAPI Depends() helpers for token authentication.

Tokens arrive as "Authorization: Bearer <token>". The response body of the
login/register endpoints is the only place a token is handed out; how the
client stores it is the client's business.

try_get_current_user() is the soft variant (returns None on failure).
get_current_user() wraps it and raises HTTP 401 if unauthenticated.

Every failure -- missing header, malformed token, bad signature, expired
token, unknown or inactive account -- produces the same 401. The specific
TokenError subclass is logged at DEBUG and never reaches the client.

Layer rule: no imports from api/.
  auth/dependencies.py may import from fastapi (for HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request

from auth.errors import TokenError
from auth.models import UserAccount
from auth.store import CredentialStore
from auth.tokens import TokenIssuer

logger = logging.getLogger("vaaninyay.auth")


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


def try_get_current_user(request: Request) -> UserAccount | None:
    """Authenticate the request via its Bearer token.

    Returns the UserAccount on success, None on any failure. Never raises.
    """
    token = _bearer_token(request)
    if token is None:
        return None

    issuer: TokenIssuer = request.app.state.token_issuer
    try:
        user_id = issuer.verify(token)
    except TokenError as exc:
        logger.debug("Rejected bearer token: %s", type(exc).__name__)
        return None

    store: CredentialStore = request.app.state.user_store
    user = store.get_by_id(user_id)
    if user is None or not user.is_active:
        return None
    return user


def get_current_user(request: Request) -> UserAccount:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: UserAccount = Depends(get_current_user)): ...
    """
    user = try_get_current_user(request)
    if user is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
