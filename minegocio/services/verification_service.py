"""
Email verification use cases: redeem a token, rotate and resend a token.

Both platform users and tenant customers go through the same workflow; the
customer variant is scoped by the tenant subdomain.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from minegocio.core.config import get_settings
from minegocio.core.logging_config import mask_token
from minegocio.core.mailer import MailDeliveryError
from minegocio.core.utils import normalize_email
from minegocio.db.models import ACCOUNT_KIND_CUSTOMER, ACCOUNT_KIND_USER, ACCOUNT_KINDS, Account
from minegocio.repositories.account_repository import AccountRepository
from minegocio.repositories.token_store import ACCOUNT_VERIFIED, TOKEN_CONSUMED, TokenStore
from minegocio.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class VerificationError(Exception):
    """Base class for verification failures reported to the caller."""

    status_code = 400
    default_message = "Token inválido o expirado. Solicita un nuevo enlace de verificación."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(VerificationError):
    default_message = "Datos de la solicitud incompletos"


class TokenNotFoundError(VerificationError):
    pass


class TokenExpiredError(VerificationError):
    default_message = "El enlace de verificación expiró. Solicita uno nuevo."


class TokenAlreadyConsumedError(VerificationError):
    default_message = "Este enlace de verificación ya fue utilizado."


class AccountNotEligibleError(VerificationError):
    default_message = "No se pudo reenviar el email. Verifica que el email esté registrado y no verificado."


class AlreadyVerifiedError(VerificationError):
    default_message = "El email ya fue verificado."


class DeliveryFailedError(VerificationError):
    status_code = 500
    default_message = "No se pudo enviar el email de verificación. Intenta nuevamente más tarde."


@dataclass
class VerifyOutcome:
    account_id: int
    email: str
    kind: str


@dataclass
class ResendOutcome:
    account_id: int
    email: str
    token: str
    verify_url: str


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    return value.astimezone(timezone.utc) if value.tzinfo else value.replace(tzinfo=timezone.utc)


@dataclass
class VerificationService:
    """Verifies email ownership through single-use tokens and resends them."""

    accounts: Optional[AccountRepository] = None
    tokens: Optional[TokenStore] = None
    notifier: Optional[NotificationService] = None
    ttl_seconds: Optional[int] = None

    def __post_init__(self):
        self.settings = get_settings()
        self.accounts = self.accounts or AccountRepository()
        self.tokens = self.tokens or TokenStore()
        self.notifier = self.notifier or NotificationService()
        if self.ttl_seconds is None:
            self.ttl_seconds = self.settings.email_verification_ttl_seconds

    # -------------------------------------- helpers --------------------------------------
    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _token_expired(self, expires_at: datetime | None, now: datetime) -> bool:
        if expires_at is None:
            return True
        return _as_utc(expires_at) <= now

    def _issue_and_send(self, account: Account, subdominio: str | None = None) -> tuple[str, str]:
        """Rotate the account's token and deliver it; undo the rotation if delivery fails."""
        entity = self.tokens.create_or_replace_for_account(account.id, self.ttl_seconds)
        try:
            verify_url = self.notifier.send_verification_email(account, entity.token, subdominio=subdominio)
        except MailDeliveryError as exc:
            self.tokens.delete_token(entity.token)
            logger.warning("Verification email to account %s not delivered; token %s discarded", account.id, mask_token(entity.token))
            raise DeliveryFailedError() from exc
        logger.info("Verification token %s issued for account %s", mask_token(entity.token), account.id)
        return entity.token, verify_url

    def issue_for_account(self, account: Account, subdominio: str | None = None) -> tuple[str, str]:
        """Issue the first token for a freshly registered account."""
        if account.is_verified:
            raise AlreadyVerifiedError()
        return self._issue_and_send(account, subdominio)

    # -------------------------------------- verificación --------------------------------------
    def verify(self, token: str, subdominio: str | None = None) -> VerifyOutcome:
        token_value = (token or "").strip()
        if not token_value:
            raise InvalidInputError("Token de verificación requerido")
        entity = self.tokens.find_by_token(token_value)
        if not entity:
            logger.info("Verification attempted with unknown token %s", mask_token(token_value))
            raise TokenNotFoundError()
        account = self.accounts.get_account(entity.account_id)
        if not account:
            self.tokens.delete_token(token_value)
            raise TokenNotFoundError()
        tenant_value = (subdominio or "").strip().lower()
        if tenant_value:
            tenant = self.accounts.get_tenant_by_subdominio(tenant_value)
            if not tenant or account.empresa_id != tenant.id:
                logger.info("Token %s does not belong to tenant %s", mask_token(token_value), tenant_value)
                raise TokenNotFoundError()
        if entity.consumed_at is not None:
            raise TokenAlreadyConsumedError()
        now = self._now()
        if self._token_expired(entity.expires_at, now):
            raise TokenExpiredError()
        if account.is_verified:
            self.tokens.mark_consumed(token_value, now)
            raise AlreadyVerifiedError()
        redeemed = self.tokens.redeem(token_value, account.id, now)
        if redeemed == TOKEN_CONSUMED:
            raise TokenAlreadyConsumedError()
        if redeemed == ACCOUNT_VERIFIED:
            raise AlreadyVerifiedError()
        logger.info("Account %s (%s) verified", account.id, account.kind)
        try:
            self.notifier.send_welcome_email(account)
        except MailDeliveryError:
            logger.warning("Welcome email for account %s not delivered", account.id)
        return VerifyOutcome(account_id=account.id, email=account.email, kind=account.kind)

    # -------------------------------------- reenvío --------------------------------------
    def resend(self, email: str, subdominio: str | None = None, kind: str | None = None) -> ResendOutcome:
        email_value = normalize_email(email)
        if not email_value:
            raise InvalidInputError("Email requerido")
        tenant_value = (subdominio or "").strip().lower()
        variant = kind or (ACCOUNT_KIND_CUSTOMER if tenant_value else ACCOUNT_KIND_USER)
        if variant not in ACCOUNT_KINDS:
            raise InvalidInputError("Tipo de cuenta inválido")
        if variant == ACCOUNT_KIND_CUSTOMER:
            if not tenant_value:
                raise InvalidInputError("Subdominio requerido")
            tenant = self.accounts.get_tenant_by_subdominio(tenant_value)
            if not tenant:
                # Indistinguible de "cuenta inexistente" para quien llama.
                logger.info("Resend for %s rejected: unknown tenant %s", email_value, tenant_value)
                raise AccountNotEligibleError()
            account = self.accounts.find_by_email(email_value, kind=ACCOUNT_KIND_CUSTOMER, empresa_id=tenant.id)
        else:
            account = self.accounts.find_by_email(email_value, kind=ACCOUNT_KIND_USER)
        if not account:
            logger.info("Resend for %s rejected: no %s account", email_value, variant)
            raise AccountNotEligibleError()
        if account.is_verified:
            raise AlreadyVerifiedError()
        token, verify_url = self._issue_and_send(account, tenant_value or None)
        return ResendOutcome(account_id=account.id, email=account.email, token=token, verify_url=verify_url)
