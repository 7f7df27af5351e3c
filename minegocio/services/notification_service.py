"""Verification and welcome emails for accounts."""

from __future__ import annotations

import html

from minegocio.core.mailer import send_email
from minegocio.core.utils import absolute_url
from minegocio.db.models import ACCOUNT_KIND_CUSTOMER, Account

USER_VERIFY_PATH = "/verificar-email"
CUSTOMER_VERIFY_PATH = "/verificar-email-cliente"


class NotificationService:
    """Builds verification links and hands the emails to the mailer."""

    def verification_url(self, account: Account, token: str, subdominio: str | None = None) -> str:
        if account.kind == ACCOUNT_KIND_CUSTOMER:
            return absolute_url(CUSTOMER_VERIFY_PATH, {"token": token, "subdominio": subdominio or ""})
        return absolute_url(USER_VERIFY_PATH, {"token": token})

    def send_verification_email(self, account: Account, token: str, subdominio: str | None = None) -> str:
        """Deliver the verification link; returns the URL sent. Raises MailDeliveryError."""
        verify_url = self.verification_url(account, token, subdominio)
        send_email(
            "Verifica tu email - MiNegocio",
            account.email,
            self._verify_email_html(account.nombre, verify_url),
            f"Hola {account.nombre or ''}! Confirma tu email ingresando a: {verify_url}",
        )
        return verify_url

    def send_welcome_email(self, account: Account) -> None:
        name = html.escape(account.nombre or "")
        send_email(
            "Bienvenido a MiNegocio",
            account.email,
            f"<p>Hola {name}!</p><p>Tu email fue verificado y tu cuenta ya está activa.</p><p>Equipo MiNegocio</p>",
            "Tu email fue verificado y tu cuenta ya está activa.",
        )

    def _verify_email_html(self, nombre: str, verify_url: str) -> str:
        url = html.escape(verify_url)
        return f"""
        <p>Hola {html.escape(nombre or "")}!</p>
        <p>Para activar tu cuenta, confirma tu email con el botón de abajo:</p>
        <p><a href="{url}" style="background:#2563eb;color:#fff;padding:12px 18px;border-radius:8px;text-decoration:none;">Verificar mi email</a></p>
        <p>Si el botón no funciona, copia y pega este enlace en el navegador:</p>
        <p><a href="{url}">{url}</a></p>
        <p>Equipo MiNegocio</p>
        """
