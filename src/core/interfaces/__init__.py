"""Core interfaces (ports) for dependency injection."""

from src.core.interfaces.costing_policy import (
    ICostingPolicySource,
    IMutableCostingPolicySource,
)
from src.core.interfaces.workshop_store import IWorkshopStore

__all__ = [
    # Storage interfaces
    "IWorkshopStore",
    # Policy interfaces
    "ICostingPolicySource",
    "IMutableCostingPolicySource",
]
