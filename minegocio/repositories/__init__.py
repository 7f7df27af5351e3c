"""
Persistence adapters.

These modules encapsulate how data is stored/retrieved (SQLAlchemy today).
Services depend on these repositories rather than opening sessions themselves.
"""

from .account_repository import AccountRepository
from .inventory_repository import InventoryRepository
from .token_store import TokenStore

__all__ = ["AccountRepository", "InventoryRepository", "TokenStore"]
