"""Per-tenant removal of inventory rows that reference missing products or sectors."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Optional

from minegocio.repositories.inventory_repository import InventoryRepository

logger = logging.getLogger(__name__)


@dataclass
class CleanupResult:
    stock_sector_productos_eliminados: int = 0
    stock_sector_sectores_eliminados: int = 0
    detalles_remito_eliminados: int = 0
    detalles_devolucion_eliminados: int = 0
    detalles_rotura_eliminados: int = 0
    productos_inconsistentes: int = 0

    @property
    def total_eliminados(self) -> int:
        return (
            self.stock_sector_productos_eliminados
            + self.stock_sector_sectores_eliminados
            + self.detalles_remito_eliminados
            + self.detalles_devolucion_eliminados
            + self.detalles_rotura_eliminados
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        return {
            "stockSectorProductosEliminados": data["stock_sector_productos_eliminados"],
            "stockSectorSectoresEliminados": data["stock_sector_sectores_eliminados"],
            "detallesRemitoEliminados": data["detalles_remito_eliminados"],
            "detallesDevolucionEliminados": data["detalles_devolucion_eliminados"],
            "detallesRoturaEliminados": data["detalles_rotura_eliminados"],
            "productosInconsistentes": data["productos_inconsistentes"],
            "totalEliminados": self.total_eliminados,
        }


class CleanupService:
    def __init__(self, inventory: Optional[InventoryRepository] = None) -> None:
        self.inventory = inventory or InventoryRepository()

    def run(self, empresa_id: int) -> CleanupResult:
        """Delete dangling stock/detail rows of one tenant and report stock drift."""
        logger.info("Starting data cleanup for empresa %s", empresa_id)
        result = CleanupResult(
            stock_sector_productos_eliminados=self.inventory.delete_stock_without_product(empresa_id),
            stock_sector_sectores_eliminados=self.inventory.delete_stock_without_sector(empresa_id),
            detalles_remito_eliminados=self.inventory.delete_remito_details_without_product(empresa_id),
            detalles_devolucion_eliminados=self.inventory.delete_devolucion_details_without_product(empresa_id),
            detalles_rotura_eliminados=self.inventory.delete_roturas_without_product(empresa_id),
        )
        drifted = self.inventory.products_out_of_sync(empresa_id)
        for producto in drifted:
            logger.warning("Stock mismatch for producto %s (%s) in empresa %s", producto.id, producto.nombre, empresa_id)
        result.productos_inconsistentes = len(drifted)
        logger.info("Data cleanup for empresa %s finished: %s", empresa_id, result.to_dict())
        return result
