"""Storage infrastructure implementations."""

from src.infrastructure.storage.memory import (
    InMemoryWorkshopStore,
    SettingsCostingPolicySource,
)
from src.infrastructure.storage.sqlite import (
    SQLiteCostingPolicySource,
    SQLiteWorkshopStore,
    close_pool,
    get_connection,
    get_costing_policy_source,
    get_pool,
    get_transaction,
    get_workshop_store,
)

__all__ = [
    # SQLite stores
    "SQLiteWorkshopStore",
    "SQLiteCostingPolicySource",
    "get_workshop_store",
    "get_costing_policy_source",
    # Connection pool
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    # In-memory
    "InMemoryWorkshopStore",
    "SettingsCostingPolicySource",
]
