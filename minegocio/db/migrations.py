"""
Versioned, idempotent schema migrations applied at deploy time.

Usage:
  python -m minegocio.db.migrations

Each migration runs in its own transaction and is recorded in
schema_migrations; re-running the command only applies what is pending.
"""
from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy import insert, select, update
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from . import models
from .session import Base, get_engine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Migration:
    version: int
    name: str
    apply: Callable[[Connection], None]


def _create_base_schema(conn: Connection) -> None:
    tables = [
        models.Empresa.__table__,
        models.Account.__table__,
        models.VerificationToken.__table__,
        models.UserSession.__table__,
        models.Producto.__table__,
        models.Sector.__table__,
        models.StockPorSector.__table__,
        models.DetalleRemitoIngreso.__table__,
        models.DetallePlanillaDevolucion.__table__,
        models.RoturaPerdida.__table__,
    ]
    Base.metadata.create_all(bind=conn, tables=tables, checkfirst=True)


def _ensure_outstanding_token_index(conn: Connection) -> None:
    for index in models.VerificationToken.__table__.indexes:
        index.create(bind=conn, checkfirst=True)


def _activate_verified_accounts(conn: Connection) -> None:
    stmt = (
        update(models.Account)
        .where(models.Account.email_verified_at.is_not(None), models.Account.activo.is_(False))
        .values(activo=True)
    )
    conn.execute(stmt)


def _ensure_unique_user_email_index(conn: Connection) -> None:
    # fails if duplicated user emails already exist; those must be merged by hand first
    for index in models.Account.__table__.indexes:
        if index.name == "uq_accounts_user_email":
            index.create(bind=conn, checkfirst=True)


MIGRATIONS: tuple[Migration, ...] = (
    Migration(1, "create_base_schema", _create_base_schema),
    Migration(2, "outstanding_verification_token_index", _ensure_outstanding_token_index),
    Migration(3, "activate_verified_accounts", _activate_verified_accounts),
    Migration(4, "unique_user_email_index", _ensure_unique_user_email_index),
)


def applied_versions(engine: Engine) -> set[int]:
    with engine.connect() as conn:
        rows = conn.execute(select(models.SchemaMigration.version)).scalars().all()
    return set(rows)


def apply_pending(engine: Optional[Engine] = None) -> list[int]:
    """Apply every migration not yet recorded; returns the versions applied now."""
    engine = engine or get_engine()
    models.SchemaMigration.__table__.create(bind=engine, checkfirst=True)
    done = applied_versions(engine)
    applied: list[int] = []
    for migration in sorted(MIGRATIONS, key=lambda m: m.version):
        if migration.version in done:
            continue
        logger.info("Applying migration %04d %s", migration.version, migration.name)
        with engine.begin() as conn:
            migration.apply(conn)
            conn.execute(
                insert(models.SchemaMigration.__table__).values(version=migration.version, name=migration.name)
            )
        applied.append(migration.version)
    return applied


def main() -> None:
    from minegocio.core.logging_config import configure_logging

    configure_logging()
    applied = apply_pending()
    if applied:
        print(f"Migrations applied: {', '.join(str(v) for v in applied)}")
    else:
        print("Database schema is up to date.")


if __name__ == "__main__":
    try:
        main()
    except SQLAlchemyError as exc:
        sys.stderr.write(f"Failed to apply migrations: {exc}\n")
        raise SystemExit(1)
