"""Tenant and account registration use cases."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError

from minegocio.core.security import hash_password
from minegocio.core.utils import normalize_email
from minegocio.db.models import ACCOUNT_KIND_CUSTOMER, ACCOUNT_KIND_USER, ROLE_ADMIN, USER_ROLES, Empresa
from minegocio.repositories.account_repository import AccountRepository
from minegocio.services.verification_service import DeliveryFailedError, VerificationService

logger = logging.getLogger(__name__)

SUBDOMINIO_PATTERN = re.compile(r"[a-z0-9](?:[a-z0-9-]{1,61}[a-z0-9])?")
MIN_PASSWORD_LENGTH = 8


class RegistrationError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


@dataclass
class RegisterResult:
    account_id: int
    email: str
    verify_url: str
    email_sent: bool


@dataclass
class AccountService:
    """Creates tenants and unverified accounts, issuing their first verification token."""

    accounts: Optional[AccountRepository] = None
    verification: Optional[VerificationService] = None

    def __post_init__(self):
        self.accounts = self.accounts or AccountRepository()
        self.verification = self.verification or VerificationService(accounts=self.accounts)

    def create_tenant(self, nombre: str, subdominio: str) -> Empresa:
        name = (nombre or "").strip()
        sub = (subdominio or "").strip().lower()
        if not name:
            raise RegistrationError("Nombre de empresa requerido")
        if not SUBDOMINIO_PATTERN.fullmatch(sub):
            raise RegistrationError("Subdominio inválido. Usa letras minúsculas, números y guiones")
        if self.accounts.get_tenant_by_subdominio(sub):
            raise RegistrationError("El subdominio ya está en uso")
        return self.accounts.create_tenant(name, sub)

    def _validate(self, email: str, password: str) -> str:
        raw_email = normalize_email(email)
        if not raw_email or "@" not in raw_email:
            raise RegistrationError("Email inválido")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise RegistrationError("Contraseña muy corta. Usa al menos 8 caracteres")
        return raw_email

    def _issue(self, account, subdominio: str | None = None) -> RegisterResult:
        try:
            _token, verify_url = self.verification.issue_for_account(account, subdominio)
        except DeliveryFailedError:
            # La cuenta queda registrada; el usuario puede pedir un reenvío.
            return RegisterResult(account_id=account.id, email=account.email, verify_url="", email_sent=False)
        return RegisterResult(account_id=account.id, email=account.email, verify_url=verify_url, email_sent=True)

    def register_user(
        self,
        email: str,
        password: str,
        nombre: str = "",
        empresa_id: int | None = None,
        rol: str = ROLE_ADMIN,
    ) -> RegisterResult:
        raw_email = self._validate(email, password)
        if rol not in USER_ROLES:
            raise RegistrationError("Rol inválido")
        if empresa_id is not None and not self.accounts.get_tenant(empresa_id):
            raise RegistrationError("Empresa no encontrada")
        if self.accounts.find_by_email(raw_email, kind=ACCOUNT_KIND_USER):
            raise RegistrationError("Ya existe un usuario con ese email")
        try:
            account = self.accounts.create_account(
                raw_email,
                hash_password(password),
                kind=ACCOUNT_KIND_USER,
                nombre=(nombre or "").strip(),
                empresa_id=empresa_id,
                rol=rol,
            )
        except IntegrityError as exc:
            # concurrent registration won the unique index
            raise RegistrationError("Ya existe un usuario con ese email") from exc
        logger.info("User account %s registered", account.id)
        return self._issue(account)

    def register_customer(self, email: str, password: str, nombre: str, subdominio: str) -> RegisterResult:
        raw_email = self._validate(email, password)
        tenant = self.accounts.get_tenant_by_subdominio(subdominio)
        if not tenant:
            raise RegistrationError("Empresa no encontrada")
        if self.accounts.find_by_email(raw_email, kind=ACCOUNT_KIND_CUSTOMER, empresa_id=tenant.id):
            raise RegistrationError("Ya existe un cliente con ese email en esta empresa")
        try:
            account = self.accounts.create_account(
                raw_email,
                hash_password(password),
                kind=ACCOUNT_KIND_CUSTOMER,
                nombre=(nombre or "").strip(),
                empresa_id=tenant.id,
            )
        except IntegrityError as exc:
            raise RegistrationError("Ya existe un cliente con ese email en esta empresa") from exc
        logger.info("Customer account %s registered for tenant %s", account.id, tenant.subdominio)
        return self._issue(account, tenant.subdominio)
