"""SQLite-backed costing policy source."""

from src.config import get_logger, get_settings
from src.core.entities.inventory import CostingMethod
from src.core.interfaces.costing_policy import IMutableCostingPolicySource
from src.infrastructure.storage.sqlite.connection import get_connection, get_transaction

logger = get_logger(__name__)

COSTING_METHOD_KEY = "costing_method"


class SQLiteCostingPolicySource(IMutableCostingPolicySource):
    """
    Costing method stored in the workshop_settings table.

    Falls back to ``costing.default_method`` from settings until the
    method has been set explicitly.
    """

    def __init__(self, default_method: CostingMethod | None = None):
        self._default_method = default_method

    def _default(self) -> CostingMethod:
        if self._default_method is not None:
            return self._default_method
        return CostingMethod(get_settings().costing.default_method)

    async def get_costing_method(self) -> CostingMethod:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT value FROM workshop_settings WHERE key = ?",
                (COSTING_METHOD_KEY,),
            )
            row = await cursor.fetchone()

        if row is None:
            return self._default()

        try:
            return CostingMethod(row["value"])
        except ValueError:
            logger.warning("unknown_costing_method_stored", value=row["value"])
            return self._default()

    async def set_costing_method(self, method: CostingMethod) -> None:
        async with get_transaction("set_costing_method") as conn:
            await conn.execute(
                """
                INSERT INTO workshop_settings (key, value, updated_at)
                VALUES (?, ?, datetime('now'))
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (COSTING_METHOD_KEY, method.value),
            )
        logger.info("costing_method_changed", method=method.value)
