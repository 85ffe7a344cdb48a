"""Export and import of a stock item's full ledger."""

from typing import Any

from pydantic import ValidationError as PydanticValidationError

from src.core.entities.inventory import StockItem
from src.core.exceptions import LedgerIntegrityError
from src.core.services.batch_ledger import check_invariants, fifo_order


def export_ledger(item: StockItem) -> dict[str, Any]:
    """Snapshot an item's batches, aggregates and history as JSON-ready data."""
    return item.model_dump(mode="json")


def import_ledger(data: dict[str, Any]) -> StockItem:
    """
    Rebuild a stock item from an exported snapshot.

    Cached aggregates are kept as exported, after checking them against the
    batches, so an export/import round trip reproduces them exactly.

    Raises:
        LedgerIntegrityError: If the snapshot is malformed or inconsistent.
    """
    try:
        item = StockItem.model_validate(data)
    except PydanticValidationError as e:
        raise LedgerIntegrityError(str(data.get("id", "?")), str(e)) from e

    if [b.batch_id for b in fifo_order(item.batches)] != [b.batch_id for b in item.batches]:
        raise LedgerIntegrityError(item.id, "batches are not in purchase-date order")

    check_invariants(item)
    return item
