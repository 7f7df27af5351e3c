"""
Email adapter for the MiNegocio backend.

The default implementation uses SMTP, reading credentials from Settings.
"""

from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
import logging
import smtplib
import ssl

from .config import get_settings

logger = logging.getLogger(__name__)


class MailDeliveryError(Exception):
    """Raised when an email could not be handed to the SMTP server."""


def _build_message(subject: str, sender: str, to_email: str, html_body: str, text_body: str | None) -> MIMEMultipart:
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = sender
    msg["To"] = to_email
    plain = text_body or html_body
    msg.attach(MIMEText(plain, "plain", "utf-8"))
    msg.attach(MIMEText(html_body, "html", "utf-8"))
    return msg


def send_email(subject: str, to_email: str, html_body: str, text_body: str | None = None) -> bool:
    """
    Send an email using the SMTP credentials from the environment.

    Without SMTP configuration only the recipient and subject are logged outside prod (dev
    delivery); in prod that is a delivery failure. SMTP errors raise
    MailDeliveryError so callers can roll back whatever depended on the email.
    """
    settings = get_settings()
    if not settings.smtp_configured:
        if settings.is_prod:
            raise MailDeliveryError("Configuración SMTP ausente")
        # body not logged: it carries single-use links
        logger.info("SMTP not configured; dev delivery to %s: %s", to_email, subject)
        return True
    msg = _build_message(subject, settings.smtp_from, to_email, html_body, text_body)
    port = settings.smtp_port or 465
    try:
        if port == 465:
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(settings.smtp_host, port, context=context) as server:
                server.login(settings.smtp_user, settings.smtp_password)
                server.sendmail(settings.smtp_from, [to_email], msg.as_string())
        else:
            with smtplib.SMTP(settings.smtp_host, port) as server:
                server.ehlo()
                server.starttls(context=ssl.create_default_context())
                server.login(settings.smtp_user, settings.smtp_password)
                server.sendmail(settings.smtp_from, [to_email], msg.as_string())
    except (smtplib.SMTPException, OSError) as exc:
        logger.error("Failed to send email to %s: %s", to_email, exc)
        raise MailDeliveryError(str(exc)) from exc
    logger.info("Email sent to %s: %s", to_email, subject)
    return True
