"""SQLite storage implementations."""

from src.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
)
from src.infrastructure.storage.sqlite.policy_store import SQLiteCostingPolicySource
from src.infrastructure.storage.sqlite.workshop_store import SQLiteWorkshopStore

# Type aliases for convenience
WorkshopStore = SQLiteWorkshopStore
CostingPolicySource = SQLiteCostingPolicySource

# Singleton instances
_workshop_store: SQLiteWorkshopStore | None = None
_costing_policy_source: SQLiteCostingPolicySource | None = None


async def get_workshop_store() -> SQLiteWorkshopStore:
    """Get singleton workshop store instance."""
    global _workshop_store
    if _workshop_store is None:
        _workshop_store = SQLiteWorkshopStore()
    return _workshop_store


async def get_costing_policy_source() -> SQLiteCostingPolicySource:
    """Get singleton costing policy source instance."""
    global _costing_policy_source
    if _costing_policy_source is None:
        _costing_policy_source = SQLiteCostingPolicySource()
    return _costing_policy_source


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    # Store classes
    "SQLiteWorkshopStore",
    "SQLiteCostingPolicySource",
    # Type aliases
    "WorkshopStore",
    "CostingPolicySource",
    # Factory functions
    "get_workshop_store",
    "get_costing_policy_source",
]
