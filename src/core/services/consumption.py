"""
Consumption processor.

Applies a consumption to a stock item's batch ledger and records it in the
item's history. Callers validate stock sufficiency beforehand; the drain
never takes a batch below zero.
"""

from dataclasses import dataclass
from datetime import date

from src.config import get_logger
from src.core.entities.identifiers import AssetId, JobCardId
from src.core.entities.inventory import (
    CostingMethod,
    StockItem,
    UsageRecord,
    WriteoffRecord,
)
from src.core.services.batch_ledger import (
    QUANTITY_EPSILON,
    compute_total_quantity,
    fifo_order,
    refresh_aggregates,
    round_quantity,
)
from src.core.services.costing_engine import CostBreakdown, preview_cost

logger = get_logger(__name__)


@dataclass(frozen=True)
class ConsumptionContext:
    """Labels for the usage record, resolved by the caller."""

    consumed_on: date
    job_card_id: JobCardId | None = None
    job_card_title: str = ""
    asset_id: AssetId | None = None
    asset_name: str = ""


def _drain_fifo(item: StockItem, quantity: float) -> None:
    remaining = quantity
    kept = []
    for batch in fifo_order(item.batches):
        if remaining <= QUANTITY_EPSILON:
            kept.append(batch)
        elif batch.quantity <= remaining + QUANTITY_EPSILON:
            remaining -= batch.quantity
        else:
            batch.quantity -= remaining
            remaining = 0.0
            kept.append(batch)
    item.batches = kept
    refresh_aggregates(item)


def _drain_proportional(item: StockItem, quantity: float) -> None:
    total = item.total_quantity
    if total <= QUANTITY_EPSILON:
        return
    ratio = max(0.0, (total - quantity) / total)

    kept = []
    for batch in item.batches:
        batch.quantity = round_quantity(batch.quantity * ratio)
        if batch.quantity > 0:
            kept.append(batch)
    item.batches = kept
    item.total_quantity = compute_total_quantity(kept)
    # The average describes the remaining mix, which proportional
    # reduction leaves unchanged.
    if not kept:
        item.average_cost = 0.0


def drain(item: StockItem, quantity: float, method: CostingMethod) -> None:
    """Remove ``quantity`` units from the item's batches under ``method``."""
    if method == CostingMethod.FIFO:
        _drain_fifo(item, quantity)
    else:
        _drain_proportional(item, quantity)


def _apply(item: StockItem, quantity: float, method: CostingMethod) -> CostBreakdown:
    breakdown = preview_cost(item, quantity, method)
    drain(item, quantity, method)
    return breakdown


def consume(
    item: StockItem,
    quantity: float,
    method: CostingMethod,
    context: ConsumptionContext,
) -> UsageRecord:
    """
    Consume stock for a job and append a usage record.

    Args:
        item: Stock item, mutated in place.
        quantity: Units consumed, must be positive.
        method: Costing method governing both cost and depletion.
        context: Job card and asset labels for the usage record.

    Returns:
        The appended usage record, carrying the cost charged.
    """
    breakdown = _apply(item, quantity, method)

    record = UsageRecord(
        usage_date=context.consumed_on,
        quantity=quantity,
        cost=breakdown.total_cost,
        job_card_id=context.job_card_id,
        job_card_title=context.job_card_title,
        asset_id=context.asset_id,
        asset_name=context.asset_name,
        costing_method=method,
    )
    item.usage_history.append(record)

    logger.info(
        "stock_consumed",
        stock_id=item.id,
        quantity=quantity,
        cost=round(record.cost, 4),
        method=method.value,
        job_card_id=context.job_card_id,
        remaining_qty=item.total_quantity,
    )
    return record


def write_off(
    item: StockItem,
    quantity: float,
    method: CostingMethod,
    *,
    reason: str,
    written_off_on: date,
    notes: str = "",
) -> WriteoffRecord:
    """Remove stock without a job card and append a write-off record."""
    breakdown = _apply(item, quantity, method)

    record = WriteoffRecord(
        writeoff_date=written_off_on,
        quantity=quantity,
        cost=breakdown.total_cost,
        reason=reason,
        notes=notes,
        costing_method=method,
    )
    item.writeoffs.append(record)

    logger.info(
        "stock_written_off",
        stock_id=item.id,
        quantity=quantity,
        cost=round(record.cost, 4),
        reason=reason,
        remaining_qty=item.total_quantity,
    )
    return record
