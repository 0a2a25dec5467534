"""
auth/tokens.py -- Signed session tokens (JWT).

Security design decisions:
  JWT: python-jose with HS256. Tokens carry only the user id (sub), the issue
       time (iat) and the expiry (exp). They are never stored server-side;
       validity is re-derived from the signature and exp on every request.

  SECRET_KEY: injected into TokenIssuer at construction (api/main.py lifespan
       builds it from core.config.get_settings()). The issuer never reads
       configuration itself, and the key cannot be changed after construction.

  Failure modes: verify() distinguishes malformed / bad signature / expired
       for callers that care (tests, logs). The HTTP layer maps every one of
       them to the same 401 so a forger learns nothing from the response.

  Verification order: claims are first decoded without verification purely to
       tell "not a JWT at all" apart from "a JWT with a wrong signature". The
       unverified claims are never trusted; the returned id always comes from
       the verified decode.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt

from auth.errors import BadSignatureError, ExpiredTokenError, MalformedTokenError

_ALGORITHM = "HS256"

DEFAULT_TOKEN_LIFETIME = timedelta(hours=2)


class TokenIssuer:
    """Issue and verify time-bounded HS256 session tokens.

    Usage:
        issuer = TokenIssuer(secret_key=settings.secret_key)
        token = issuer.issue(user.id)
        user_id = issuer.verify(token)  # raises TokenError subclasses
    """

    __slots__ = ("_secret_key", "_lifetime")

    def __init__(self, secret_key: str, lifetime: timedelta = DEFAULT_TOKEN_LIFETIME) -> None:
        if not secret_key:
            raise ValueError("TokenIssuer requires a non-empty secret key.")
        self._secret_key = secret_key
        self._lifetime = lifetime

    @property
    def lifetime(self) -> timedelta:
        return self._lifetime

    def issue(self, user_id: str, now: datetime | None = None) -> str:
        """Encode a signed JWT for user_id expiring `lifetime` after now.

        Args:
            user_id: Opaque account identifier assigned by the store.
            now:     Issue time. Defaults to the current UTC time; tests pass
                     a past value to mint already-expired tokens.
        """
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "iat": issued_at,
            "exp": issued_at + self._lifetime,
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def verify(self, token: str) -> str:
        """Return the user id embedded in a valid token.

        Raises:
            MalformedTokenError: token is not a decodable JWT, or sub/exp are
                                 missing or of the wrong type.
            BadSignatureError:   signature does not match this issuer's key.
            ExpiredTokenError:   exp has passed.
        """
        try:
            unverified = jwt.get_unverified_claims(token)
        except (JWTError, AttributeError) as exc:
            raise MalformedTokenError("Token could not be decoded.") from exc
        if not isinstance(unverified.get("sub"), str) or "exp" not in unverified:
            raise MalformedTokenError("Token is missing required claims.")

        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM])
        except ExpiredSignatureError as exc:
            raise ExpiredTokenError("Token has expired.") from exc
        except JWTError as exc:
            # jose checks the signature before any claim, so a JWTError here
            # on an otherwise decodable token means the signature is wrong --
            # except for a non-numeric exp, which jose reports the same way.
            if not isinstance(unverified["exp"], (int, float)):
                raise MalformedTokenError("Token expiry claim is invalid.") from exc
            raise BadSignatureError("Token signature verification failed.") from exc
        return payload["sub"]
