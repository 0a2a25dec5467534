"""
auth/store.py -- Credential store gateway and its SQLAlchemy Core adapter.

Pattern: Repository + Data Mapper.
CredentialStore is the gateway contract the service depends on; UserStore is
the SQLAlchemy Core implementation and _row_to_user is its mapper. Service and
route code never touch SQL directly, so the engine (SQLite, Postgres, or a
document store behind another adapter) can change without touching them.

Security:
  All queries use bound parameters. No f-strings in SQL.

  UNIQUE(email) is enforced by the database. The service pre-checks with
  find_by_email(), but two concurrent registrations can both pass that check;
  the constraint is the final arbiter and create() reports the loser as
  ConflictError.

DB path: auth/vaaninyay_auth.db unless DATABASE_URL says otherwise.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Protocol

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.errors import ConflictError
from auth.models import NewUser, UserAccount

# ---------------------------------------------------------------------------
# Gateway contract
# ---------------------------------------------------------------------------


class CredentialStore(Protocol):
    """What AuthService needs from persistence. Nothing more."""

    def find_by_email(self, email: str) -> UserAccount | None: ...

    def create(self, new_user: NewUser) -> UserAccount: ...

    def get_by_id(self, user_id: str) -> UserAccount | None: ...


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(32), primary_key=True),  # uuid4 hex, opaque to callers
    Column("email", String(255), nullable=False, unique=True),
    Column("name", String(100), nullable=False),
    Column("phone", String(20), nullable=False),
    Column("password_hash", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("is_active", Integer, nullable=False, server_default="1"),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """SQLAlchemy Core repository for UserAccount records.

    Usage:
        store = UserStore("sqlite:///auth.db")
        account = store.create(NewUser(name="Asha", email="asha@x.in", phone="9990000000",
                                       password_hash=hasher.hash("Secret123")))
        store.find_by_email("asha@x.in")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def find_by_email(self, email: str) -> UserAccount | None:
        """Look up an account by exact email (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: str) -> UserAccount | None:
        """Look up an account by its store-assigned id. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def create(self, new_user: NewUser) -> UserAccount:
        """Insert a new account and return it with its assigned id.

        Raises ConflictError if the email is already taken -- including the
        case where a concurrent request inserted it after our caller's
        pre-check. Other database errors propagate unchanged.
        """
        account = UserAccount(
            id=uuid.uuid4().hex,
            name=new_user.name,
            email=new_user.email,
            phone=new_user.phone,
            password_hash=new_user.password_hash,
            created_at=_now_iso(),
            is_active=True,
        )
        try:
            with self.engine.connect() as conn:
                conn.execute(
                    _users.insert().values(
                        id=account.id,
                        email=account.email,
                        name=account.name,
                        phone=account.phone,
                        password_hash=account.password_hash,
                        created_at=account.created_at,
                        is_active=1,
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            raise ConflictError(f"email already exists: {new_user.email!r}") from exc
        return account

    def set_active(self, user_id: str, is_active: bool) -> bool:
        """Enable or disable an account. Returns True if a row was updated."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update().where(_users.c.id == user_id).values(is_active=1 if is_active else 0)
            )
            conn.commit()
        return result.rowcount > 0

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> UserAccount:
    return UserAccount(
        id=row.id,
        name=row.name,
        email=row.email,
        phone=row.phone,
        password_hash=row.password_hash,
        created_at=row.created_at,
        is_active=bool(row.is_active),
    )
