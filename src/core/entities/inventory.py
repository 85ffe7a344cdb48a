"""Inventory domain entities."""

from datetime import UTC, date, datetime
from enum import Enum

from pydantic import BaseModel, Field

from src.core.entities.identifiers import (
    AssetId,
    BatchId,
    JobCardId,
    StockId,
    SupplierId,
    new_batch_id,
    new_stock_id,
)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CostingMethod(str, Enum):
    """Inventory costing policies."""

    FIFO = "FIFO"
    WEIGHTED_AVERAGE = "WEIGHTED_AVERAGE"


class Batch(BaseModel):
    """A purchase batch: remaining quantity bought at one unit cost."""

    batch_id: BatchId = Field(default_factory=new_batch_id, frozen=True)
    purchase_date: date  # FIFO ordering key
    quantity: float = Field(ge=0)  # remaining units
    unit_cost: float = Field(ge=0, frozen=True)
    invoice_number: str | None = None

    @property
    def value(self) -> float:
        return self.quantity * self.unit_cost


class UsageRecord(BaseModel):
    """Stock consumed by a job card."""

    id: int | None = None
    usage_date: date
    quantity: float
    cost: float
    job_card_id: JobCardId | None = None
    job_card_title: str = ""
    asset_id: AssetId | None = None
    asset_name: str = ""
    costing_method: CostingMethod


class WriteoffRecord(BaseModel):
    """Stock removed without a job card (damage, loss, expiry)."""

    id: int | None = None
    writeoff_date: date
    quantity: float
    cost: float
    reason: str
    notes: str = ""
    costing_method: CostingMethod


class StockItem(BaseModel):
    """A stock item with its batch ledger and consumption history.

    ``total_quantity`` and ``average_cost`` are cached aggregates of
    ``batches``; they are maintained by the batch ledger services.
    """

    id: StockId = Field(default_factory=new_stock_id)
    name: str
    category: str = "Parts"
    supplier_id: SupplierId | None = None
    part_number: str | None = None
    description: str | None = None

    batches: list[Batch] = Field(default_factory=list)
    total_quantity: float = 0.0
    average_cost: float = 0.0

    usage_history: list[UsageRecord] = Field(default_factory=list)
    writeoffs: list[WriteoffRecord] = Field(default_factory=list)

    version: int = 0  # 0 = never persisted
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def total_value(self) -> float:
        """Total inventory value = sum of batch values."""
        return sum(batch.value for batch in self.batches)

    @property
    def is_empty(self) -> bool:
        return not self.batches
