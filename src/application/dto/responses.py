"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between use cases and API layer.
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from src.core.entities.inventory import StockItem, UsageRecord, WriteoffRecord
from src.core.entities.job_card import JobCard
from src.core.services.costing_engine import round_currency

# --- Stock ---


class BatchResponse(BaseModel):
    """Purchase batch in a stock item ledger."""

    batch_id: str
    purchase_date: date
    quantity: float
    unit_cost: float
    value: float
    invoice_number: str | None = None


class UsageRecordResponse(BaseModel):
    """Stock consumed by a job card."""

    id: int | None = None
    usage_date: date
    quantity: float
    cost: float
    job_card_id: str | None = None
    job_card_title: str = ""
    asset_id: str | None = None
    asset_name: str = ""
    costing_method: str

    @classmethod
    def from_record(cls, record: UsageRecord) -> "UsageRecordResponse":
        return cls(
            id=record.id,
            usage_date=record.usage_date,
            quantity=record.quantity,
            cost=round_currency(record.cost),
            job_card_id=record.job_card_id,
            job_card_title=record.job_card_title,
            asset_id=record.asset_id,
            asset_name=record.asset_name,
            costing_method=record.costing_method.value,
        )


class WriteoffRecordResponse(BaseModel):
    """Stock written off."""

    id: int | None = None
    writeoff_date: date
    quantity: float
    cost: float
    reason: str
    notes: str = ""
    costing_method: str

    @classmethod
    def from_record(cls, record: WriteoffRecord) -> "WriteoffRecordResponse":
        return cls(
            id=record.id,
            writeoff_date=record.writeoff_date,
            quantity=record.quantity,
            cost=round_currency(record.cost),
            reason=record.reason,
            notes=record.notes,
            costing_method=record.costing_method.value,
        )


class StockItemResponse(BaseModel):
    """Stock item response DTO."""

    id: str
    name: str
    category: str
    supplier_id: str | None = None
    part_number: str | None = None
    description: str | None = None
    total_quantity: float
    average_cost: float
    total_value: float
    version: int
    batches: list[BatchResponse] = Field(default_factory=list)
    usage_history: list[UsageRecordResponse] = Field(default_factory=list)
    writeoffs: list[WriteoffRecordResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, item: StockItem, include_history: bool = False) -> "StockItemResponse":
        """Build from a StockItem; history lists only when asked for."""
        return cls(
            id=item.id,
            name=item.name,
            category=item.category,
            supplier_id=item.supplier_id,
            part_number=item.part_number,
            description=item.description,
            total_quantity=item.total_quantity,
            average_cost=round_currency(item.average_cost),
            total_value=round_currency(item.total_value),
            version=item.version,
            batches=[
                BatchResponse(
                    batch_id=batch.batch_id,
                    purchase_date=batch.purchase_date,
                    quantity=batch.quantity,
                    unit_cost=batch.unit_cost,
                    value=round_currency(batch.value),
                    invoice_number=batch.invoice_number,
                )
                for batch in item.batches
            ],
            usage_history=(
                [UsageRecordResponse.from_record(r) for r in item.usage_history]
                if include_history
                else []
            ),
            writeoffs=(
                [WriteoffRecordResponse.from_record(w) for w in item.writeoffs]
                if include_history
                else []
            ),
            created_at=item.created_at,
            updated_at=item.updated_at,
        )


class StockListResponse(BaseModel):
    """Stock item list response."""

    items: list[StockItemResponse]
    total: int
    total_value: float


class ReceiveStockResponse(BaseModel):
    """Response for a stock receipt."""

    stock_item: StockItemResponse
    created: bool = False  # True if a new stock item was created


class PurchaseInvoiceResponse(BaseModel):
    """Response for a received supplier invoice."""

    supplier_id: str | None = None
    invoice_number: str
    invoice_date: date
    invoice_total: float
    stock_items: list[StockItemResponse]
    created_count: int


class WriteOffResponse(BaseModel):
    """Response for a stock write-off."""

    stock_item: StockItemResponse
    writeoff: WriteoffRecordResponse


class LedgerExportResponse(BaseModel):
    """Ledger snapshot of one stock item."""

    stock_id: str
    ledger: dict[str, Any]


# --- Job cards ---


class JobCardLineResponse(BaseModel):
    """Job card line response DTO."""

    stock_id: str | None = None
    quantity: float
    description: str = ""
    actual_cost: float


class JobCardResponse(BaseModel):
    """Job card response DTO."""

    id: str
    title: str
    asset_id: str | None = None
    job_date: date
    description: str = ""
    status: str
    costing_method: str | None = None
    items: list[JobCardLineResponse] = Field(default_factory=list)
    items_cost: float
    labor_cost: float
    total_cost: float
    completed_at: datetime | None = None
    created_at: datetime
    version: int = 0

    @classmethod
    def from_entity(cls, card: JobCard) -> "JobCardResponse":
        return cls(
            id=card.id,
            title=card.title,
            asset_id=card.asset_id,
            job_date=card.job_date,
            description=card.description,
            status=card.status.value,
            costing_method=card.costing_method.value if card.costing_method else None,
            items=[
                JobCardLineResponse(
                    stock_id=line.stock_id,
                    quantity=line.quantity,
                    description=line.description,
                    actual_cost=round_currency(line.actual_cost),
                )
                for line in card.items
            ],
            items_cost=round_currency(card.items_cost),
            labor_cost=round_currency(card.labor_cost),
            total_cost=round_currency(card.total_cost),
            completed_at=card.completed_at,
            created_at=card.created_at,
            version=card.version,
        )


class JobCardListResponse(BaseModel):
    """Job card list response."""

    job_cards: list[JobCardResponse]
    total: int


class LinePreviewResponse(BaseModel):
    """Advisory cost of one job card line."""

    index: int
    stock_id: str | None = None
    quantity: float
    cost: float
    available: float | None = None
    shortfall: float = 0.0


class JobCardPreviewResponse(BaseModel):
    """Advisory job card costing; nothing is consumed."""

    method: str
    lines: list[LinePreviewResponse]
    items_cost: float
    labor_cost: float
    total_cost: float
    has_shortfall: bool


class SettleJobCardResponse(BaseModel):
    """Response for a settled job card."""

    job_card: JobCardResponse
    stock_items: list[StockItemResponse]
    total_cost: float
    attempts: int = 1


class DeleteJobCardResponse(BaseModel):
    """Response for a deleted job card."""

    job_card_id: str
    was_completed: bool
    restored_items: list[StockItemResponse] = Field(default_factory=list)


# --- Reports ---


class AssetExpenseResponse(BaseModel):
    """Per-asset job costs."""

    asset_id: str | None = None
    asset_name: str | None = None
    job_count: int
    parts_cost: float
    labor_cost: float
    total_cost: float


class AssetExpenseListResponse(BaseModel):
    """Per-asset job costs, most expensive first."""

    assets: list[AssetExpenseResponse]
    total_cost: float


# --- Settings ---


class CostingMethodResponse(BaseModel):
    """Active costing method."""

    method: str


# --- Health / errors ---


class ProviderHealthResponse(BaseModel):
    """Dependency health status."""

    name: str
    available: bool
    latency_ms: float | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: ProviderHealthResponse | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. INSUFFICIENT_STOCK)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    details: dict[str, Any] = Field(default_factory=dict, description="Structured details")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=datetime.now)


# --- Cost preview ---


class BatchDrawResponse(BaseModel):
    """Quantity drawn from one batch (or from the average)."""

    batch_id: str | None = None
    quantity: float
    unit_cost: float
    cost: float


class CostPreviewResponse(BaseModel):
    """Advisory cost of consuming a quantity of one stock item."""

    stock_id: str
    method: str
    quantity_requested: float
    quantity_available: float
    total_cost: float
    shortfall: float
    draws: list[BatchDrawResponse] = Field(default_factory=list)
