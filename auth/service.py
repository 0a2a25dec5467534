"""
auth/service.py -- Registration and login use cases.

AuthService holds all authentication business logic. It talks to persistence
through the CredentialStore gateway and receives its PasswordHasher and
TokenIssuer by constructor injection, so it never reaches into configuration
or app state.

Both operations are stateless per call. The only cross-request state is the
durable store and the (read-only) signing secret inside the TokenIssuer.

Error contract:
  register() -> DuplicateEmailError when the email is taken, whether found
                by the pre-check or rejected by the store's UNIQUE constraint.
  login()    -> InvalidCredentialsError for unknown email, wrong password and
                inactive account alike. Never differentiate these.
  Anything the store raises besides ConflictError propagates unchanged; the
  API layer turns it into an opaque 500. No local retries.

Timing: login() runs bcrypt on every path, including unknown email, so
response time does not reveal whether an email is registered.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging

from auth.errors import ConflictError, DuplicateEmailError, InvalidCredentialsError
from auth.models import AuthResult, NewUser
from auth.passwords import PasswordHasher
from auth.store import CredentialStore
from auth.tokens import TokenIssuer

logger = logging.getLogger("vaaninyay.auth")


class AuthService:
    def __init__(self, *, store: CredentialStore, hasher: PasswordHasher, issuer: TokenIssuer) -> None:
        self._store = store
        self._hasher = hasher
        self._issuer = issuer

    def register(self, name: str, email: str, phone: str, password: str) -> AuthResult:
        """Create an account and return a session token for it.

        Input format validation belongs to the caller (the HTTP layer); this
        method only enforces email uniqueness.
        """
        if self._store.find_by_email(email) is not None:
            logger.info("Registration rejected: email already registered")
            raise DuplicateEmailError()

        new_user = NewUser(name=name, email=email, phone=phone, password_hash=self._hasher.hash(password))
        try:
            account = self._store.create(new_user)
        except ConflictError as exc:
            # Lost the race against a concurrent registration for this email.
            logger.info("Registration rejected: email taken by concurrent request")
            raise DuplicateEmailError() from exc

        token = self._issuer.issue(account.id)
        logger.info("Registered user %s", account.id)
        return AuthResult(token=token, user=account)

    def login(self, email: str, password: str) -> AuthResult:
        """Verify an email/password pair and return a fresh session token."""
        account = self._store.find_by_email(email)
        if account is None:
            # Equalize timing -- do NOT return before running bcrypt.
            self._hasher.verify_dummy(password)
            logger.warning("Failed login attempt")
            raise InvalidCredentialsError()

        if not self._hasher.verify(password, account.password_hash) or not account.is_active:
            logger.warning("Failed login attempt for user %s", account.id)
            raise InvalidCredentialsError()

        token = self._issuer.issue(account.id)
        logger.info("User %s logged in", account.id)
        return AuthResult(token=token, user=account)
