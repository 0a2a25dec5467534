"""Unit tests for auth/service.py -- registration and login use cases.

Covers:
- register() persists a hashed (never plaintext) password and returns a working token
- register() rejects a taken email with DuplicateEmailError
- A lost race (pre-check passes, UNIQUE constraint fires) is also DuplicateEmailError
- Concurrent registrations for one email: exactly one succeeds
- login() success, wrong password, unknown email, inactive account
- Infrastructure errors propagate untouched
"""

from __future__ import annotations

import threading
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from auth.errors import ConflictError, DuplicateEmailError, InvalidCredentialsError
from auth.passwords import PasswordHasher
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import TokenIssuer


def _register_asha(service: AuthService):
    return service.register("Asha", "asha@x.in", "9990000000", "Secret123")


class _StalePrecheckStore(UserStore):
    """A store whose pre-check always misses, as if a concurrent insert had
    not yet committed when find_by_email() ran."""

    def find_by_email(self, email):
        return None


# ---------------------------------------------------------------------------
# register()
# ---------------------------------------------------------------------------


def test_register_returns_token_for_new_account(service: AuthService, issuer: TokenIssuer) -> None:
    result = _register_asha(service)
    assert issuer.verify(result.token) == result.user.id
    assert result.user.public() == {"name": "Asha", "email": "asha@x.in", "phone": "9990000000"}


def test_register_stores_hash_not_plaintext(service: AuthService, store: UserStore, hasher: PasswordHasher) -> None:
    _register_asha(service)
    stored = store.find_by_email("asha@x.in")
    assert stored.password_hash != "Secret123"
    assert hasher.verify("Secret123", stored.password_hash)


def test_register_duplicate_email_rejected(service: AuthService) -> None:
    _register_asha(service)
    with pytest.raises(DuplicateEmailError):
        service.register("Someone Else", "asha@x.in", "9123456789", "Another123")


def test_register_lost_race_maps_to_duplicate(hasher: PasswordHasher, issuer: TokenIssuer) -> None:
    store = _StalePrecheckStore(db_url="sqlite:///:memory:")
    service = AuthService(store=store, hasher=hasher, issuer=issuer)
    _register_asha(service)
    with pytest.raises(DuplicateEmailError) as excinfo:
        _register_asha(service)
    assert isinstance(excinfo.value.__cause__, ConflictError)
    store.close()


def test_concurrent_registrations_only_one_wins(tmp_path, hasher: PasswordHasher, issuer: TokenIssuer) -> None:
    store = UserStore(db_url=f"sqlite:///{tmp_path / 'race.db'}")
    service = AuthService(store=store, hasher=hasher, issuer=issuer)
    barrier = threading.Barrier(4)
    outcomes: list[str] = []
    lock = threading.Lock()

    def attempt() -> None:
        barrier.wait()
        try:
            _register_asha(service)
            outcome = "ok"
        except DuplicateEmailError:
            outcome = "duplicate"
        with lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=attempt) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    store.close()

    assert sorted(outcomes) == ["duplicate", "duplicate", "duplicate", "ok"]


def test_register_store_failure_propagates(hasher: PasswordHasher, issuer: TokenIssuer) -> None:
    store = MagicMock()
    store.find_by_email.side_effect = OperationalError("SELECT", {}, Exception("database is down"))
    service = AuthService(store=store, hasher=hasher, issuer=issuer)
    with pytest.raises(OperationalError):
        _register_asha(service)
    store.create.assert_not_called()


# ---------------------------------------------------------------------------
# login()
# ---------------------------------------------------------------------------


def test_login_success_issues_fresh_token(service: AuthService, issuer: TokenIssuer) -> None:
    registered = _register_asha(service)
    result = service.login("asha@x.in", "Secret123")
    assert issuer.verify(result.token) == registered.user.id
    assert result.user.email == "asha@x.in"


def test_login_wrong_password(service: AuthService) -> None:
    _register_asha(service)
    with pytest.raises(InvalidCredentialsError):
        service.login("asha@x.in", "wrong")


def test_login_unknown_email_runs_dummy_verification(store: UserStore, issuer: TokenIssuer) -> None:
    hasher = MagicMock(spec=PasswordHasher)
    service = AuthService(store=store, hasher=hasher, issuer=issuer)
    with pytest.raises(InvalidCredentialsError):
        service.login("nobody@x.in", "whatever")
    hasher.verify_dummy.assert_called_once_with("whatever")


def test_login_failures_are_indistinguishable(service: AuthService, store: UserStore) -> None:
    _register_asha(service)
    with pytest.raises(InvalidCredentialsError) as unknown:
        service.login("nobody@x.in", "whatever")
    with pytest.raises(InvalidCredentialsError) as wrong:
        service.login("asha@x.in", "wrong")
    store.set_active(store.find_by_email("asha@x.in").id, False)
    with pytest.raises(InvalidCredentialsError) as inactive:
        service.login("asha@x.in", "Secret123")
    assert str(unknown.value) == str(wrong.value) == str(inactive.value)


def test_login_email_is_case_sensitive(service: AuthService) -> None:
    _register_asha(service)
    with pytest.raises(InvalidCredentialsError):
        service.login("ASHA@x.in", "Secret123")


def test_login_makes_no_writes(hasher: PasswordHasher, issuer: TokenIssuer, service: AuthService) -> None:
    account = _register_asha(service).user
    store = MagicMock()
    store.find_by_email.return_value = account
    AuthService(store=store, hasher=hasher, issuer=issuer).login("asha@x.in", "Secret123")
    store.create.assert_not_called()
