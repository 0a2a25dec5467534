"""
auth/errors.py -- Exception taxonomy for the authentication subsystem.

Three families, handled at different layers:

  AuthError        Domain errors. Expected and user-correctable. The API layer
                   turns them into a 4xx with a stable, non-leaking message.

  TokenError       Token verification failures. Callers of TokenIssuer.verify()
                   may inspect the subclass; the HTTP layer collapses all of
                   them into a single 401 so forgers learn nothing.

  ConflictError    Raised by the credential store only, when the storage-level
                   UNIQUE(email) constraint rejects an insert. AuthService
                   translates it into DuplicateEmailError.

Anything else (store unreachable, driver errors) is an infrastructure fault and
propagates untouched to the generic 500 handler.

Layer rule: no imports from api/.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for domain errors surfaced to the client as a 4xx."""

    code = "auth_error"
    message = "Authentication failed."
    status_code = 400

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class DuplicateEmailError(AuthError):
    code = "duplicate_email"
    message = "Email already registered."


class InvalidCredentialsError(AuthError):
    """Unknown email, wrong password and inactive account all raise this.

    The message must stay identical for every cause so responses cannot be
    used to enumerate registered emails.
    """

    code = "invalid_credentials"
    message = "Invalid email or password."


class ConflictError(Exception):
    """The store refused a write that would violate a uniqueness constraint."""


class TokenError(Exception):
    """Base class for session token verification failures."""


class MalformedTokenError(TokenError):
    pass


class BadSignatureError(TokenError):
    pass


class ExpiredTokenError(TokenError):
    pass
