"""Tenant and account data access backed by SQLAlchemy."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select

from minegocio.db.models import (
    ACCOUNT_KIND_CUSTOMER,
    ACCOUNT_KIND_USER,
    ROLE_ADMIN,
    ROLE_CUSTOMER,
    Account,
    Empresa,
)
from minegocio.db.session import get_session


class AccountRepository:
    """CRUD helpers for tenants (empresas) and accounts (usuarios/clientes)."""

    # -------------------------- tenants --------------------------
    def get_tenant(self, empresa_id: int) -> Optional[Empresa]:
        with get_session() as session:
            return session.get(Empresa, empresa_id)

    def get_tenant_by_subdominio(self, subdominio: str) -> Optional[Empresa]:
        value = (subdominio or "").strip().lower()
        if not value:
            return None
        with get_session() as session:
            stmt = select(Empresa).where(Empresa.subdominio == value)
            return session.execute(stmt).scalar_one_or_none()

    def create_tenant(self, nombre: str, subdominio: str, activa: bool = True) -> Empresa:
        entity = Empresa(nombre=nombre, subdominio=subdominio.strip().lower(), activa=activa)
        with get_session() as session:
            session.add(entity)
            session.commit()
            session.refresh(entity)
            return entity

    def list_tenants(self) -> list[Empresa]:
        with get_session() as session:
            return session.execute(select(Empresa).order_by(Empresa.id)).scalars().all()

    # -------------------------- accounts --------------------------
    def get_account(self, account_id: int) -> Optional[Account]:
        with get_session() as session:
            return session.get(Account, account_id)

    def find_by_email(self, email: str, *, kind: str = ACCOUNT_KIND_USER, empresa_id: int | None = None) -> Optional[Account]:
        """Users are looked up globally; customers only inside their tenant."""
        with get_session() as session:
            stmt = select(Account).where(Account.kind == kind, Account.email == email)
            if kind == ACCOUNT_KIND_CUSTOMER:
                if empresa_id is None:
                    return None
                stmt = stmt.where(Account.empresa_id == empresa_id)
            return session.execute(stmt.order_by(Account.id)).scalars().first()

    def create_account(
        self,
        email: str,
        password_hash: str,
        *,
        kind: str = ACCOUNT_KIND_USER,
        nombre: str = "",
        empresa_id: int | None = None,
        rol: str | None = None,
    ) -> Account:
        now = datetime.now(timezone.utc)
        entity = Account(
            kind=kind,
            email=email,
            nombre=nombre,
            password_hash=password_hash,
            rol=rol or (ROLE_CUSTOMER if kind == ACCOUNT_KIND_CUSTOMER else ROLE_ADMIN),
            activo=False,
            empresa_id=empresa_id,
            email_verified_at=None,
            created_at=now,
            updated_at=now,
        )
        with get_session() as session:
            session.add(entity)
            session.commit()
            session.refresh(entity)
            return entity

    def list_accounts(self, kind: str = ACCOUNT_KIND_USER) -> list[Account]:
        with get_session() as session:
            stmt = select(Account).where(Account.kind == kind).order_by(Account.id)
            return session.execute(stmt).scalars().all()

    def count_accounts(self, kind: str | None = None) -> int:
        with get_session() as session:
            stmt = select(func.count(Account.id))
            if kind:
                stmt = stmt.where(Account.kind == kind)
            return int(session.execute(stmt).scalar_one())

    def count_tenants(self) -> int:
        with get_session() as session:
            return int(session.execute(select(func.count(Empresa.id))).scalar_one())
