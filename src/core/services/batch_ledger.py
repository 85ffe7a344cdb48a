"""
Batch ledger operations for a single stock item.

Batches are kept oldest-first so FIFO consumption is a linear scan.
Purchases at a unit cost matching an existing batch (within the merge
tolerance) are folded into that batch instead of adding a new row.
"""

import math
from collections.abc import Iterable, Sequence
from datetime import UTC, date, datetime
from decimal import ROUND_HALF_UP, Decimal

from src.config import get_logger
from src.core.entities.inventory import Batch, StockItem
from src.core.exceptions import (
    InvalidQuantityError,
    LedgerIntegrityError,
    ValidationError,
)

logger = get_logger(__name__)

# Purchases whose unit cost differs by less than this merge into one batch
DEFAULT_MERGE_TOLERANCE = 0.01

# Quantities at or below this are treated as zero
QUANTITY_EPSILON = 1e-9


def fifo_order(batches: Iterable[Batch]) -> list[Batch]:
    """Return batches oldest-first (stable for equal dates)."""
    return sorted(batches, key=lambda batch: batch.purchase_date)


def compute_total_quantity(batches: Iterable[Batch]) -> float:
    return math.fsum(batch.quantity for batch in batches)


def compute_average_cost(batches: Sequence[Batch]) -> float:
    """Weighted average unit cost of the remaining batches (0 when empty)."""
    total_quantity = compute_total_quantity(batches)
    if total_quantity <= QUANTITY_EPSILON:
        return 0.0
    return math.fsum(batch.quantity * batch.unit_cost for batch in batches) / total_quantity


def round_quantity(quantity: float) -> float:
    """Round a quantity to 2 decimals, halves away from zero."""
    return float(Decimal(str(quantity)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def refresh_aggregates(item: StockItem) -> None:
    """Re-sort batches and recompute cached quantity and average cost."""
    item.batches = fifo_order(item.batches)
    item.total_quantity = compute_total_quantity(item.batches)
    item.average_cost = compute_average_cost(item.batches)
    item.updated_at = datetime.now(UTC)


def find_batch_by_cost(
    item: StockItem,
    unit_cost: float,
    tolerance: float = DEFAULT_MERGE_TOLERANCE,
) -> Batch | None:
    """Find a batch priced within ``tolerance`` of ``unit_cost``."""
    for batch in item.batches:
        if abs(batch.unit_cost - unit_cost) < tolerance:
            return batch
    return None


def add_batch(
    item: StockItem,
    purchase_date: date,
    quantity: float,
    unit_cost: float,
    invoice_number: str | None = None,
    merge_tolerance: float = DEFAULT_MERGE_TOLERANCE,
) -> Batch:
    """
    Record a purchase on the item's ledger.

    Args:
        item: Stock item to update in place.
        purchase_date: Purchase date, used as the FIFO key.
        quantity: Units purchased, must be positive.
        unit_cost: Cost per unit, must not be negative.
        invoice_number: Optional supplier invoice reference.
        merge_tolerance: Unit-cost distance under which an existing
            batch absorbs the purchase; 0 always adds a new batch.

    Returns:
        The batch that now holds the purchase (new or merged).
    """
    if quantity <= 0:
        raise InvalidQuantityError(quantity)
    if unit_cost < 0:
        raise ValidationError("unit_cost", "Unit cost cannot be negative", unit_cost)

    batch = find_batch_by_cost(item, unit_cost, merge_tolerance)
    if batch is not None:
        batch.quantity += quantity
        batch.purchase_date = purchase_date
        merged = True
    else:
        batch = Batch(
            purchase_date=purchase_date,
            quantity=quantity,
            unit_cost=unit_cost,
            invoice_number=invoice_number,
        )
        item.batches.append(batch)
        merged = False

    refresh_aggregates(item)

    logger.debug(
        "batch_added",
        stock_id=item.id,
        batch_id=batch.batch_id,
        merged=merged,
        quantity=quantity,
        unit_cost=unit_cost,
        total_quantity=item.total_quantity,
    )
    return batch


def check_invariants(item: StockItem, average_tolerance: float = 0.01) -> None:
    """
    Verify cached aggregates against the batch ledger.

    ``average_tolerance`` is relative to the ledger value; weighted-average
    consumption rounds batch quantities, so the cached average may drift
    slightly from the exact mix.

    Raises:
        LedgerIntegrityError: On negative or empty batches, or mismatched
            cached aggregates.
    """
    for batch in item.batches:
        if batch.quantity < 0:
            raise LedgerIntegrityError(item.id, f"batch {batch.batch_id} has negative quantity")
        if batch.quantity <= QUANTITY_EPSILON:
            raise LedgerIntegrityError(item.id, f"batch {batch.batch_id} is empty")

    total = compute_total_quantity(item.batches)
    if not math.isclose(item.total_quantity, total, rel_tol=1e-9, abs_tol=1e-6):
        raise LedgerIntegrityError(
            item.id,
            f"total_quantity {item.total_quantity} != batch sum {total}",
        )

    value = math.fsum(batch.value for batch in item.batches)
    if not item.batches:
        if item.average_cost != 0:
            raise LedgerIntegrityError(item.id, "empty ledger must have zero average cost")
        return

    allowed = average_tolerance * max(value, 1.0)
    if abs(item.average_cost * item.total_quantity - value) > allowed:
        raise LedgerIntegrityError(
            item.id,
            f"average_cost {item.average_cost} inconsistent with ledger value {value}",
        )
