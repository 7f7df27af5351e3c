"""Inventory rows used by the per-tenant data cleanup."""
from __future__ import annotations

from sqlalchemy import delete, func, select

from minegocio.db.models import (
    DetallePlanillaDevolucion,
    DetalleRemitoIngreso,
    Producto,
    RoturaPerdida,
    Sector,
    StockPorSector,
)
from minegocio.db.session import get_session


class InventoryRepository:
    """Lookups and orphan removal for products, sectors and their detail rows."""

    # -------------------------- inserts --------------------------
    def add_product(self, empresa_id: int, nombre: str, stock: int = 0) -> Producto:
        entity = Producto(empresa_id=empresa_id, nombre=nombre, stock=stock)
        with get_session() as session:
            session.add(entity)
            session.commit()
            session.refresh(entity)
            return entity

    def add_sector(self, empresa_id: int, nombre: str) -> Sector:
        entity = Sector(empresa_id=empresa_id, nombre=nombre)
        with get_session() as session:
            session.add(entity)
            session.commit()
            session.refresh(entity)
            return entity

    def add_stock(self, empresa_id: int, producto_id: int | None, sector_id: int | None, cantidad: int) -> StockPorSector:
        entity = StockPorSector(empresa_id=empresa_id, producto_id=producto_id, sector_id=sector_id, cantidad=cantidad)
        with get_session() as session:
            session.add(entity)
            session.commit()
            session.refresh(entity)
            return entity

    def add_detail(self, model, empresa_id: int, producto_id: int | None, cantidad: int = 1):
        """Insert a remito/devolucion/rotura row (model is one of those classes)."""
        entity = model(empresa_id=empresa_id, producto_id=producto_id, cantidad=cantidad)
        with get_session() as session:
            session.add(entity)
            session.commit()
            session.refresh(entity)
            return entity

    def count_rows(self, model, empresa_id: int) -> int:
        with get_session() as session:
            stmt = select(func.count()).select_from(model).where(model.empresa_id == empresa_id)
            return int(session.execute(stmt).scalar_one())

    # -------------------------- orphan removal --------------------------
    def _delete_dangling(self, model, column, reference, empresa_id: int) -> int:
        existing = select(reference.id).where(reference.empresa_id == empresa_id)
        stmt = (
            delete(model)
            .where(model.empresa_id == empresa_id, column.is_not(None), column.not_in(existing))
            .execution_options(synchronize_session=False)
        )
        with get_session() as session:
            result = session.execute(stmt)
            session.commit()
            return int(result.rowcount or 0)

    def delete_stock_without_product(self, empresa_id: int) -> int:
        return self._delete_dangling(StockPorSector, StockPorSector.producto_id, Producto, empresa_id)

    def delete_stock_without_sector(self, empresa_id: int) -> int:
        return self._delete_dangling(StockPorSector, StockPorSector.sector_id, Sector, empresa_id)

    def delete_remito_details_without_product(self, empresa_id: int) -> int:
        return self._delete_dangling(DetalleRemitoIngreso, DetalleRemitoIngreso.producto_id, Producto, empresa_id)

    def delete_devolucion_details_without_product(self, empresa_id: int) -> int:
        return self._delete_dangling(
            DetallePlanillaDevolucion, DetallePlanillaDevolucion.producto_id, Producto, empresa_id
        )

    def delete_roturas_without_product(self, empresa_id: int) -> int:
        return self._delete_dangling(RoturaPerdida, RoturaPerdida.producto_id, Producto, empresa_id)

    # -------------------------- consistency --------------------------
    def products_out_of_sync(self, empresa_id: int) -> list[Producto]:
        """Products whose stock differs from the sum of their per-sector quantities."""
        totals = (
            select(StockPorSector.producto_id, func.sum(StockPorSector.cantidad).label("total"))
            .where(StockPorSector.empresa_id == empresa_id)
            .group_by(StockPorSector.producto_id)
            .subquery()
        )
        stmt = (
            select(Producto)
            .join(totals, totals.c.producto_id == Producto.id)
            .where(Producto.empresa_id == empresa_id, Producto.stock != totals.c.total)
            .order_by(Producto.id)
        )
        with get_session() as session:
            return session.execute(stmt).scalars().all()
