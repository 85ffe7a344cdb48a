"""In-memory storage implementations."""

from src.infrastructure.storage.memory.policy_source import SettingsCostingPolicySource
from src.infrastructure.storage.memory.workshop_store import InMemoryWorkshopStore

__all__ = [
    "InMemoryWorkshopStore",
    "SettingsCostingPolicySource",
]
