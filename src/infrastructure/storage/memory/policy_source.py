"""Settings-backed costing policy source."""

from src.config import get_settings
from src.core.entities.inventory import CostingMethod
from src.core.interfaces.costing_policy import IMutableCostingPolicySource


class SettingsCostingPolicySource(IMutableCostingPolicySource):
    """
    Costing method held in memory.

    Starts from ``costing.default_method`` unless a method is given.
    """

    def __init__(self, method: CostingMethod | None = None):
        if method is None:
            method = CostingMethod(get_settings().costing.default_method)
        self._method = method

    async def get_costing_method(self) -> CostingMethod:
        return self._method

    async def set_costing_method(self, method: CostingMethod) -> None:
        self._method = method
