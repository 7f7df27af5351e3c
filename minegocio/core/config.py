"""
Configuration helpers for the MiNegocio backend.

Routers and services read settings through get_settings() instead of touching
os.environ directly, so tests can swap env vars and clear the cache.
"""

from dataclasses import dataclass
from functools import lru_cache
import os


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    public_base_url: str
    database_url: str
    smtp_host: str
    smtp_port: int
    smtp_user: str
    smtp_password: str
    smtp_from: str
    email_verification_ttl_seconds: int
    session_ttl_seconds: int
    resend_rate_limit: int
    resend_rate_window_seconds: int
    log_level: str

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_password and self.smtp_from and self.smtp_port)


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        public_base_url=os.getenv("PUBLIC_BASE_URL", "https://minegocio.com.ar").rstrip("/"),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./minegocio.db"),
        smtp_host=os.getenv("SMTP_HOST", ""),
        smtp_port=_int(os.getenv("SMTP_PORT", "465"), 465),
        smtp_user=os.getenv("SMTP_USER", ""),
        smtp_password=os.getenv("SMTP_PASSWORD", ""),
        smtp_from=os.getenv("SMTP_FROM", os.getenv("SMTP_USER", "")),
        email_verification_ttl_seconds=_int(os.getenv("EMAIL_VERIFICATION_TTL_SECONDS", "86400"), 86400),
        session_ttl_seconds=_int(os.getenv("SESSION_TTL_SECONDS", "86400"), 86400),
        resend_rate_limit=_int(os.getenv("RESEND_RATE_LIMIT", "5"), 5),
        resend_rate_window_seconds=_int(os.getenv("RESEND_RATE_WINDOW_SECONDS", "300"), 300),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )
