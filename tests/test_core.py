from __future__ import annotations

import smtplib

import pytest
from fastapi import HTTPException

from minegocio.core import config as core_config
from minegocio.core import mailer, rate_limiter
from minegocio.core.logging_config import mask_token
from minegocio.core.security import hash_password, new_token, verify_password
from minegocio.core.utils import absolute_url, normalize_email


@pytest.fixture()
def env(monkeypatch):
    for var in ("APP_ENV", "SMTP_HOST", "SMTP_USER", "SMTP_PASSWORD", "SMTP_FROM", "SMTP_PORT", "RESEND_RATE_LIMIT"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("PUBLIC_BASE_URL", "https://app.test/")
    core_config.get_settings.cache_clear()
    yield monkeypatch
    core_config.get_settings.cache_clear()


def _smtp_env(monkeypatch, port="465"):
    monkeypatch.setenv("SMTP_HOST", "smtp.test")
    monkeypatch.setenv("SMTP_PORT", port)
    monkeypatch.setenv("SMTP_USER", "bot@minegocio.test")
    monkeypatch.setenv("SMTP_PASSWORD", "secret")
    core_config.get_settings.cache_clear()


def test_settings_defaults_and_parsing(env):
    env.setenv("RESEND_RATE_LIMIT", "no-es-numero")
    settings = core_config.get_settings()

    assert settings.app_env == "dev"
    assert settings.public_base_url == "https://app.test"
    assert settings.email_verification_ttl_seconds == 86400
    assert settings.resend_rate_limit == 5
    assert settings.smtp_configured is False
    assert settings.is_prod is False


def test_absolute_url_drops_empty_params(env):
    assert absolute_url("/verificar-email", {"token": "abc", "subdominio": ""}) == "https://app.test/verificar-email?token=abc"
    assert absolute_url("ruta", base="https://otro.test/") == "https://otro.test/ruta"
    assert absolute_url("https://x.test/a") == "https://x.test/a"
    assert normalize_email("  Ana@X.COM ") == "ana@x.com"


def test_password_hash_and_tokens():
    hashed = hash_password("supersecreta")
    assert hashed.startswith("argon2$")
    assert verify_password("supersecreta", hashed)
    assert not verify_password("supersecreta", "plano")
    assert not verify_password("supersecreta", "argon2$basura")
    assert new_token() != new_token()


def test_mask_token():
    assert mask_token("short") == "***"
    masked = mask_token("abcdefghijklmnop")
    assert masked.startswith("abcd") and "efghijklmn" not in masked


def test_send_email_without_smtp_outside_prod_is_logged(env):
    assert mailer.send_email("Hola", "a@x.com", "<p>hola</p>") is True


def test_send_email_without_smtp_in_prod_fails(env):
    env.setenv("APP_ENV", "prod")
    core_config.get_settings.cache_clear()
    with pytest.raises(mailer.MailDeliveryError):
        mailer.send_email("Hola", "a@x.com", "<p>hola</p>")


class _FakeSMTP:
    sent: list = []

    def __init__(self, host, port, **_kw):
        self.host = host
        self.port = port

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def ehlo(self):
        pass

    def starttls(self, **_kw):
        pass

    def login(self, user, password):
        pass

    def sendmail(self, sender, recipients, body):
        self.sent.append((sender, recipients, body))


class _BrokenSMTP(_FakeSMTP):
    def login(self, user, password):
        raise smtplib.SMTPAuthenticationError(535, b"bad credentials")


def test_send_email_over_ssl(env):
    _smtp_env(env)
    _FakeSMTP.sent = []
    env.setattr(mailer.smtplib, "SMTP_SSL", _FakeSMTP)

    assert mailer.send_email("Hola", "a@x.com", "<p>hola</p>", "hola") is True
    sender, recipients, _body = _FakeSMTP.sent[0]
    assert sender == "bot@minegocio.test"
    assert recipients == ["a@x.com"]


def test_send_email_starttls_port(env):
    _smtp_env(env, port="587")
    _FakeSMTP.sent = []
    env.setattr(mailer.smtplib, "SMTP", _FakeSMTP)

    assert mailer.send_email("Hola", "a@x.com", "<p>hola</p>") is True
    assert len(_FakeSMTP.sent) == 1


def test_send_email_smtp_error_raises(env):
    _smtp_env(env)
    env.setattr(mailer.smtplib, "SMTP_SSL", _BrokenSMTP)

    with pytest.raises(mailer.MailDeliveryError):
        mailer.send_email("Hola", "a@x.com", "<p>hola</p>")


def test_rate_limiter_prunes_expired_windows(monkeypatch):
    clock = {"now": 1000.0}
    monkeypatch.setattr(rate_limiter.time, "time", lambda: clock["now"])
    limiter = rate_limiter._RateLimiter()

    for ip in ("10.0.0.1", "10.0.0.2", "10.0.0.3"):
        limiter.check(f"verification:resend:{ip}", limit=5, window_seconds=10)
    assert limiter.tracked_keys() == 3

    clock["now"] += rate_limiter.PRUNE_INTERVAL_SECONDS + 11
    limiter.check("verification:resend:10.0.0.9", limit=5, window_seconds=10)
    assert limiter.tracked_keys() == 1


def test_rate_limiter_blocks_within_window(monkeypatch):
    clock = {"now": 1000.0}
    monkeypatch.setattr(rate_limiter.time, "time", lambda: clock["now"])
    limiter = rate_limiter._RateLimiter()

    limiter.check("k", limit=1, window_seconds=10)
    with pytest.raises(HTTPException) as excinfo:
        limiter.check("k", limit=1, window_seconds=10)
    assert excinfo.value.status_code == 429

    clock["now"] += 11
    limiter.check("k", limit=1, window_seconds=10)
