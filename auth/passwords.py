"""
auth/passwords.py -- bcrypt password hashing.

Security design decisions:
  bcrypt directly, no passlib wrapper. passlib's wrap-bug detection builds a
  password longer than 72 bytes, which bcrypt 4.x rejects outright.

  Salt: bcrypt.gensalt() draws a fresh random salt on every hash() call and
  embeds it in the digest, so two hashes of the same password never compare
  equal and precomputed tables are useless.

  Comparison: bcrypt.checkpw() re-derives the digest with the embedded salt
  and compares in constant time. Never compare digests with ==.

  Cost factor: fixed at construction from Settings.bcrypt_rounds. Callers
  cannot pass a per-request cost.

  72-byte limit: bcrypt only ever looked at the first 72 bytes. Current bcrypt
  releases raise ValueError on longer input instead of truncating, so we
  truncate explicitly in both hash() and verify() to keep them consistent.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging

import bcrypt

logger = logging.getLogger("vaaninyay.auth")

_BCRYPT_MAX_BYTES = 72


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


class PasswordHasher:
    """Salted one-way hashing with a fixed bcrypt work factor.

    Usage:
        hasher = PasswordHasher(rounds=12)
        digest = hasher.hash("Secret123")
        hasher.verify("Secret123", digest)  # True
    """

    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds
        # Timing equalization dummy hash. Computed once here so the first
        # unknown-email login is not measurably slower than later ones.
        self._dummy_hash = self.hash("vaaninyay_timing_dummy")

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash(self, plain: str) -> str:
        """Return a bcrypt digest of plain using a freshly generated salt."""
        return bcrypt.hashpw(_encode(plain), bcrypt.gensalt(rounds=self._rounds)).decode("utf-8")

    def verify(self, plain: str, hashed: str) -> bool:
        """Return True if plain matches the bcrypt digest.

        A digest that is not a valid bcrypt string (corrupted row, legacy
        plaintext) verifies as False rather than raising.
        """
        try:
            return bcrypt.checkpw(_encode(plain), hashed.encode("utf-8"))
        except ValueError:
            logger.warning("Stored password hash is not a valid bcrypt digest")
            return False

    def verify_dummy(self, plain: str) -> None:
        """Burn one verification's worth of CPU against the dummy hash.

        Call this on the unknown-email path so its response time matches the
        wrong-password path.
        """
        self.verify(plain, self._dummy_hash)
