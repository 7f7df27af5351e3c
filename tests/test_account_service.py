from __future__ import annotations

import logging

import pytest

import minegocio.services.notification_service as notification_service
from minegocio.core.mailer import MailDeliveryError
from minegocio.core.security import verify_password
from minegocio.repositories.account_repository import AccountRepository
from minegocio.repositories.token_store import TokenStore
from minegocio.services.account_service import AccountService, RegistrationError


def test_register_user_stores_unverified_account_with_argon2_hash(db_env, sent_emails):
    result = AccountService().register_user(" Ana@X.com ", "supersecreta", "Ana")

    account = AccountRepository().get_account(result.account_id)
    assert account.email == "ana@x.com"
    assert account.kind == "usuario"
    assert account.rol == "ADMINISTRADOR"
    assert account.is_verified is False
    assert account.activo is False
    assert verify_password("supersecreta", account.password_hash)
    assert not verify_password("otra-clave", account.password_hash)
    assert result.verify_url.startswith("https://app.test/verificar-email?token=")


@pytest.mark.parametrize(
    "email,password,message",
    [
        ("", "supersecreta", "Email inválido"),
        ("sin-arroba", "supersecreta", "Email inválido"),
        ("a@x.com", "corta", "Contraseña muy corta. Usa al menos 8 caracteres"),
    ],
)
def test_register_user_validation(db_env, sent_emails, email, password, message):
    with pytest.raises(RegistrationError) as excinfo:
        AccountService().register_user(email, password)
    assert excinfo.value.message == message
    assert sent_emails == []


def test_register_user_rejects_duplicates_and_unknown_tenant(db_env, sent_emails):
    svc = AccountService()
    svc.register_user("a@x.com", "supersecreta")

    with pytest.raises(RegistrationError):
        svc.register_user("A@x.com", "supersecreta")
    with pytest.raises(RegistrationError):
        svc.register_user("b@x.com", "supersecreta", empresa_id=999)
    with pytest.raises(RegistrationError):
        svc.register_user("c@x.com", "supersecreta", rol="DUENO")


def test_same_customer_email_allowed_in_two_tenants(db_env, sent_emails):
    svc = AccountService()
    svc.create_tenant("Acme", "acme")
    svc.create_tenant("Otra", "otra")

    first = svc.register_customer("b@y.com", "supersecreta", "Beto", "acme")
    second = svc.register_customer("b@y.com", "supersecreta", "Beto", "otra")

    assert first.account_id != second.account_id
    with pytest.raises(RegistrationError):
        svc.register_customer("b@y.com", "supersecreta", "Beto", "acme")
    with pytest.raises(RegistrationError):
        svc.register_customer("b@y.com", "supersecreta", "Beto", "nada")


def test_create_tenant_validates_subdominio(db_env):
    svc = AccountService()
    tenant = svc.create_tenant("Acme", "Acme-Store")
    assert tenant.subdominio == "acme-store"

    with pytest.raises(RegistrationError):
        svc.create_tenant("Acme 2", "acme-store")
    with pytest.raises(RegistrationError):
        svc.create_tenant("Mala", "-mala-")
    with pytest.raises(RegistrationError):
        svc.create_tenant("", "vacio")


def test_registration_survives_delivery_failure(db_env, monkeypatch):
    def _broken(*_a, **_kw):
        raise MailDeliveryError("smtp down")

    monkeypatch.setattr(notification_service, "send_email", _broken)
    result = AccountService().register_user("a@x.com", "supersecreta")

    assert result.email_sent is False
    assert result.verify_url == ""
    assert AccountRepository().get_account(result.account_id) is not None
    assert TokenStore().get_outstanding_for_account(result.account_id) is None


def test_concurrent_user_registration_hits_unique_index(db_env, sent_emails, monkeypatch):
    svc = AccountService()
    svc.register_user("a@x.com", "supersecreta")
    # the second request checked for duplicates before the first one committed
    monkeypatch.setattr(svc.accounts, "find_by_email", lambda *_a, **_kw: None)

    with pytest.raises(RegistrationError) as excinfo:
        svc.register_user("a@x.com", "supersecreta")
    assert excinfo.value.message == "Ya existe un usuario con ese email"


def test_dev_delivery_does_not_log_the_verification_link(db_env, caplog, monkeypatch):
    monkeypatch.setattr(logging.getLogger("minegocio"), "propagate", True)
    with caplog.at_level(logging.DEBUG, logger="minegocio"):
        result = AccountService().register_user("a@x.com", "supersecreta")

    token = TokenStore().get_outstanding_for_account(result.account_id).token
    messages = [record.getMessage() for record in caplog.records]
    assert any("dev delivery to a@x.com" in message for message in messages)
    assert not [message for message in messages if token in message]
