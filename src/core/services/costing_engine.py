"""
Costing engine.

Computes what consuming a quantity of a stock item would cost under a
costing method, without touching the item. Stock sufficiency is reported,
not enforced: settlement decides whether a shortfall is acceptable.
"""

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from src.core.entities.identifiers import BatchId
from src.core.entities.inventory import CostingMethod, StockItem
from src.core.exceptions import InvalidQuantityError
from src.core.services.batch_ledger import QUANTITY_EPSILON, fifo_order


@dataclass(frozen=True)
class BatchDraw:
    """Quantity taken from one batch; ``batch_id`` is None for an average draw."""

    batch_id: BatchId | None
    quantity: float
    unit_cost: float

    @property
    def cost(self) -> float:
        return self.quantity * self.unit_cost


@dataclass(frozen=True)
class CostBreakdown:
    """Result of a cost preview."""

    method: CostingMethod
    quantity_requested: float
    quantity_available: float
    total_cost: float
    draws: tuple[BatchDraw, ...]

    @property
    def shortfall(self) -> float:
        return max(0.0, self.quantity_requested - self.quantity_available)

    @property
    def is_fully_covered(self) -> bool:
        return self.shortfall <= QUANTITY_EPSILON


def round_currency(value: float) -> float:
    """Round to cents for presentation. Never used inside cost arithmetic."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _fifo_draws(item: StockItem, quantity: float) -> tuple[BatchDraw, ...]:
    draws: list[BatchDraw] = []
    remaining = quantity
    for batch in fifo_order(item.batches):
        if remaining <= QUANTITY_EPSILON:
            break
        taken = min(batch.quantity, remaining)
        if taken <= 0:
            continue
        draws.append(BatchDraw(batch.batch_id, taken, batch.unit_cost))
        remaining -= taken
    return tuple(draws)


def preview_cost(
    item: StockItem,
    quantity: float,
    method: CostingMethod,
) -> CostBreakdown:
    """
    Cost of consuming ``quantity`` units of ``item`` under ``method``.

    FIFO walks batches oldest to newest; WEIGHTED_AVERAGE prices every unit
    at the item's average cost and reports a single synthetic draw. When the
    item holds less than requested, FIFO prices only what is available and
    the shortfall is exposed on the breakdown.

    Raises:
        InvalidQuantityError: If quantity is zero or negative.
    """
    if quantity <= 0:
        raise InvalidQuantityError(quantity)

    if method == CostingMethod.FIFO:
        draws = _fifo_draws(item, quantity)
    else:
        draws = (BatchDraw(None, quantity, item.average_cost),)

    return CostBreakdown(
        method=method,
        quantity_requested=quantity,
        quantity_available=item.total_quantity,
        total_cost=math.fsum(draw.cost for draw in draws),
        draws=draws,
    )
