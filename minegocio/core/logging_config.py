"""Logging setup shared by the API and the CLI scripts."""

from __future__ import annotations

import logging

from .config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def configure_logging(level: str | None = None) -> None:
    """Attach a single stream handler to the package logger (idempotent)."""
    global _configured
    settings = get_settings()
    resolved = (level or settings.log_level or "INFO").upper()
    root = logging.getLogger("minegocio")
    root.setLevel(getattr(logging, resolved, logging.INFO))
    if _configured:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.propagate = False
    _configured = True


def mask_token(token: str | None) -> str:
    """Shorten a token for log lines; never log the full credential."""
    value = token or ""
    if len(value) <= 8:
        return "***"
    return f"{value[:4]}...{value[-2:]}"
