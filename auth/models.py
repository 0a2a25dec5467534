"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, near-zero logic). Stores and the
service do the work; the HTTP layer owns its own Pydantic models.

NewUser is what the service hands to the store. It has no plaintext field at
all, so a record can only be constructed once the password has been hashed.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class NewUser:
    """Fields for a not-yet-persisted account. id/created_at are store-assigned."""

    name: str
    email: str
    phone: str
    password_hash: str


@dataclass
class UserAccount:
    """A persisted identity record.

    email is unique and compared case-sensitively, exactly as stored.
    password_hash is a bcrypt digest -- never the plaintext.
    """

    id: str
    name: str
    email: str
    phone: str
    password_hash: str
    created_at: str | None = None
    is_active: bool = True

    def public(self) -> dict[str, str]:
        """Client-safe projection. Never includes the hash or the id."""
        return {"name": self.name, "email": self.email, "phone": self.phone}


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a successful registration or login."""

    token: str
    user: UserAccount
