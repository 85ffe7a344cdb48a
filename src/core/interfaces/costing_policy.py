"""Abstract interface for the active costing policy."""

from abc import ABC, abstractmethod

from src.core.entities.inventory import CostingMethod


class ICostingPolicySource(ABC):
    """
    Source of the workshop's current costing method.

    Read once per operation; a change only affects settlements started
    after it. Completed job cards keep the method recorded on them.
    """

    @abstractmethod
    async def get_costing_method(self) -> CostingMethod:
        """Current costing method."""
        pass


class IMutableCostingPolicySource(ICostingPolicySource):
    """Policy source that can also be changed (settings screen)."""

    @abstractmethod
    async def set_costing_method(self, method: CostingMethod) -> None:
        """Change the costing method for future settlements."""
        pass
