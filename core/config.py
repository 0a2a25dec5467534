"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for Vaani-Nyay happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead,
and pass the values a component needs into its constructor.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Type coercion and validation
      are built in. The model is frozen, so the signing secret cannot be
      reassigned once the process has started.

Security notes:
  The signing secret is read from JWT_SECRET (or SECRET_KEY). When neither is
  set and DEBUG=true, the well-known DEV_SECRET_KEY constant is used and a
  warning is logged on every startup. Anyone who has read this file can forge
  tokens for such a deployment, so production mode (DEBUG unset or false)
  refuses to start without a real secret.

  Secrets shorter than 32 characters are rejected outright. HMAC-SHA256
  signing relies on key entropy -- a short key weakens every token.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("vaaninyay.config")

# Development-only fallback. Never use in production -- it is public.
DEV_SECRET_KEY = "vaaninyay-dev-only-insecure-jwt-secret-do-not-deploy"

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'auth' / 'vaaninyay_auth.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file, provided DEBUG=true.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Empty string is the sentinel for "not configured". The validator below
    # either substitutes the dev constant or raises, so callers never see "".
    secret_key: str = Field(default="", validation_alias=AliasChoices("JWT_SECRET", "SECRET_KEY"))

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    token_expire_seconds: int = Field(default=2 * 60 * 60, gt=0)
    # bcrypt accepts 4..31.
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # ------------------------------------------------------------------
    # Storage / HTTP
    # ------------------------------------------------------------------

    database_url: str = _DEFAULT_DB_URL
    frontend_url: str = "http://localhost:3000"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("secret_key", mode="after")
    @classmethod
    def validate_secret_key(cls, value: str, info: ValidationInfo) -> str:
        """Enforce the signing secret policy.

        Dev mode (DEBUG=true): fall back to DEV_SECRET_KEY with a warning.
        Production mode: refuse to start without a configured secret.
        Both modes: reject secrets shorter than 32 characters.
        """
        if not value:
            if info.data.get("debug"):
                logger.warning(
                    "WARNING: JWT_SECRET is not set -- using the insecure development secret. "
                    "Tokens can be forged by anyone who knows it. Never run like this in production."
                )
                return DEV_SECRET_KEY
            raise ValueError(
                "JWT_SECRET is required in production mode. "
                "Set JWT_SECRET in your environment or .env file. "
                "To run in development mode, set DEBUG=true."
            )
        if len(value) < 32:
            raise ValueError("JWT_SECRET must be at least 32 characters.")
        return value


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
