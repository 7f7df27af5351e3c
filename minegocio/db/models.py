"""SQLAlchemy models for tenants, accounts, verification and inventory data."""
from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import relationship

from .session import Base

ACCOUNT_KIND_USER = "usuario"
ACCOUNT_KIND_CUSTOMER = "cliente"
ACCOUNT_KINDS = (ACCOUNT_KIND_USER, ACCOUNT_KIND_CUSTOMER)

ROLE_ADMIN = "ADMINISTRADOR"
ROLE_ASSIGNED = "ASIGNADO"
ROLE_SUPER_ADMIN = "SUPER_ADMIN"
ROLE_CUSTOMER = "CLIENTE"
USER_ROLES = (ROLE_ADMIN, ROLE_ASSIGNED, ROLE_SUPER_ADMIN)


class Empresa(Base):
    """Tenant: a company addressed by its subdomain."""

    __tablename__ = "empresas"

    id = Column(Integer, primary_key=True, autoincrement=True)
    nombre = Column(String(255), nullable=False)
    subdominio = Column(String(63), unique=True, nullable=False)
    activa = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    accounts = relationship("Account", back_populates="empresa")


class Account(Base):
    """Platform user or tenant customer subject to email verification."""

    __tablename__ = "accounts"
    # customers are unique per tenant; users are unique globally, whatever their empresa_id
    __table_args__ = (
        UniqueConstraint("kind", "empresa_id", "email", name="uq_accounts_kind_empresa_email"),
        Index(
            "uq_accounts_user_email",
            "email",
            unique=True,
            sqlite_where=text("kind = 'usuario'"),
            postgresql_where=text("kind = 'usuario'"),
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    kind = Column(String(16), nullable=False, default=ACCOUNT_KIND_USER)
    email = Column(String(255), nullable=False, index=True)
    nombre = Column(String(255), nullable=False, default="")
    password_hash = Column(Text, nullable=False, default="")
    rol = Column(String(32), nullable=False, default=ROLE_ADMIN)
    activo = Column(Boolean, default=False, nullable=False)
    empresa_id = Column(Integer, ForeignKey("empresas.id", ondelete="CASCADE"), nullable=True)
    email_verified_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    empresa = relationship("Empresa", back_populates="accounts")
    tokens = relationship("VerificationToken", back_populates="account", cascade="all,delete-orphan")

    @property
    def is_verified(self) -> bool:
        return self.email_verified_at is not None


class VerificationToken(Base):
    __tablename__ = "verification_tokens"
    # at most one outstanding token per account
    __table_args__ = (
        Index(
            "uq_verification_tokens_outstanding",
            "account_id",
            unique=True,
            sqlite_where=text("consumed_at IS NULL"),
            postgresql_where=text("consumed_at IS NULL"),
        ),
    )

    token = Column(String(255), primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    consumed_at = Column(DateTime(timezone=True), nullable=True)

    account = relationship("Account", back_populates="tokens")


class UserSession(Base):
    __tablename__ = "sessions"

    token = Column(String(128), primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


# Inventory rows. Product/sector references are plain integers: legacy data
# left dangling references behind and the cleanup job exists to remove them.
class Producto(Base):
    __tablename__ = "productos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    empresa_id = Column(Integer, ForeignKey("empresas.id", ondelete="CASCADE"), nullable=False, index=True)
    nombre = Column(String(255), nullable=False)
    stock = Column(Integer, default=0, nullable=False)


class Sector(Base):
    __tablename__ = "sectores"

    id = Column(Integer, primary_key=True, autoincrement=True)
    empresa_id = Column(Integer, ForeignKey("empresas.id", ondelete="CASCADE"), nullable=False, index=True)
    nombre = Column(String(255), nullable=False)


class StockPorSector(Base):
    __tablename__ = "stock_por_sector"

    id = Column(Integer, primary_key=True, autoincrement=True)
    empresa_id = Column(Integer, ForeignKey("empresas.id", ondelete="CASCADE"), nullable=False, index=True)
    producto_id = Column(Integer, nullable=True)
    sector_id = Column(Integer, nullable=True)
    cantidad = Column(Integer, default=0, nullable=False)


class DetalleRemitoIngreso(Base):
    __tablename__ = "detalles_remito_ingreso"

    id = Column(Integer, primary_key=True, autoincrement=True)
    empresa_id = Column(Integer, ForeignKey("empresas.id", ondelete="CASCADE"), nullable=False, index=True)
    producto_id = Column(Integer, nullable=True)
    cantidad = Column(Integer, default=0, nullable=False)


class DetallePlanillaDevolucion(Base):
    __tablename__ = "detalles_planilla_devolucion"

    id = Column(Integer, primary_key=True, autoincrement=True)
    empresa_id = Column(Integer, ForeignKey("empresas.id", ondelete="CASCADE"), nullable=False, index=True)
    producto_id = Column(Integer, nullable=True)
    cantidad = Column(Integer, default=0, nullable=False)


class RoturaPerdida(Base):
    __tablename__ = "roturas_perdidas"

    id = Column(Integer, primary_key=True, autoincrement=True)
    empresa_id = Column(Integer, ForeignKey("empresas.id", ondelete="CASCADE"), nullable=False, index=True)
    producto_id = Column(Integer, nullable=True)
    cantidad = Column(Integer, default=0, nullable=False)


class SchemaMigration(Base):
    __tablename__ = "schema_migrations"

    version = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(255), nullable=False)
    applied_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
