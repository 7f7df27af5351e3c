from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Garantiza que el paquete minegocio sea importable en los tests locales
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from minegocio.core import config as core_config  # noqa: E402
from minegocio.core.rate_limiter import reset_rate_limits  # noqa: E402
from minegocio.db import migrations  # noqa: E402
from minegocio.db import models  # noqa: E402
from minegocio.db import session as db_session  # noqa: E402
import minegocio.services.notification_service as notification_service  # noqa: E402


def _clear_caches() -> None:
    core_config.get_settings.cache_clear()
    db_session.get_engine.cache_clear()
    db_session._get_sessionmaker.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture()
def db_env(tmp_path, monkeypatch):
    """Configura un SQLite temporario con el esquema migrado y resetea caches de settings/engine."""
    db_file = tmp_path / "test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_file}")
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("PUBLIC_BASE_URL", "https://app.test")
    for var in ("SMTP_HOST", "SMTP_USER", "SMTP_PASSWORD", "SMTP_FROM"):
        monkeypatch.delenv(var, raising=False)
    _clear_caches()
    reset_rate_limits()

    engine = db_session.get_engine()
    migrations.apply_pending(engine)

    yield engine

    try:
        models.Base.metadata.drop_all(bind=engine)
    except Exception:
        pass
    try:
        engine.dispose()
    except Exception:
        pass
    _clear_caches()
    reset_rate_limits()


@pytest.fixture()
def sent_emails(monkeypatch):
    """Captura los emails en lugar de enviarlos; devuelve la lista de (asunto, destino, html, texto)."""
    outbox: list[tuple] = []

    def _fake_send(subject, to_email, html_body, text_body=None):
        outbox.append((subject, to_email, html_body, text_body))
        return True

    monkeypatch.setattr(notification_service, "send_email", _fake_send)
    return outbox


@pytest.fixture()
def client(db_env, sent_emails):
    from fastapi.testclient import TestClient

    from minegocio.app import create_app

    with TestClient(create_app()) as test_client:
        yield test_client
