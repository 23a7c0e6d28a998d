"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for Roster happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. session_timeout_ms -> SESSION_TIMEOUT_MS).

  @model_validator(mode="after"): Cross-field validation once every field is
      resolved. Rejects unusable session and hashing parameters at startup
      instead of at the first login.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
or mail/.
"""

import logging
from datetime import timedelta
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("roster.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'auth' / 'roster.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False

    # ------------------------------------------------------------------
    # Store
    # ------------------------------------------------------------------

    database_url: str = _DEFAULT_DB_URL
    users_table: str = "users"
    sessions_table: str = "sessions"

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    admin_email: str = ""
    # 24 hours. Kept in milliseconds so existing deployments can carry
    # their configured value over unchanged.
    session_timeout_ms: int = 86_400_000
    session_sweep_on_create: bool = True
    session_sweep_interval_seconds: int = 3600
    # Accept unsalted SHA-256 digests and plaintext rows from a legacy import.
    legacy_password_import: bool = False
    bcrypt_rounds: int = 12

    # ------------------------------------------------------------------
    # Mail (empty SMTP_HOST means invitations are logged, not delivered)
    # ------------------------------------------------------------------

    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = False
    mail_from: str = ""
    setup_url: str = "[YOUR_USER_SETUP_URL]"
    organization_name: str = "Admin Console"

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def session_timeout(self) -> timedelta:
        return timedelta(milliseconds=self.session_timeout_ms)

    @property
    def sender_address(self) -> str:
        return self.mail_from or self.admin_email

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_auth_parameters(self) -> "Settings":
        """Reject settings that would make every login fail or never expire.

        SESSION_TIMEOUT_MS must be positive: a zero timeout would mint tokens
        that are already expired.

        BCRYPT_ROUNDS must be inside bcrypt's accepted range (4..31).

        LEGACY_PASSWORD_IMPORT is allowed but always logged, since it weakens
        verification for every row that still holds a legacy value.
        """
        if self.session_timeout_ms <= 0:
            raise ValueError("SESSION_TIMEOUT_MS must be a positive number of milliseconds.")
        if self.session_sweep_interval_seconds < 0:
            raise ValueError("SESSION_SWEEP_INTERVAL_SECONDS must be >= 0 (0 disables the sweep task).")
        if not 4 <= self.bcrypt_rounds <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31.")
        if self.legacy_password_import:
            logger.warning(
                "WARNING: LEGACY_PASSWORD_IMPORT is enabled. "
                "Unsalted SHA-256 and plaintext password rows will be accepted."
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
