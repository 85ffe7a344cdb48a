"""Job card domain entities."""

from datetime import UTC, date, datetime
from enum import Enum

from pydantic import BaseModel, Field

from src.core.entities.identifiers import AssetId, JobCardId, StockId, new_job_card_id
from src.core.entities.inventory import CostingMethod


class JobCardStatus(str, Enum):
    """Job card lifecycle: draft -> completed (one way)."""

    DRAFT = "draft"
    COMPLETED = "completed"


class JobCardLineItem(BaseModel):
    """A part or consumable used on a job.

    Lines without a ``stock_id`` are free-text sundries; their
    ``actual_cost`` is taken as entered.
    """

    stock_id: StockId | None = None
    quantity: float = 1.0
    description: str = ""
    actual_cost: float = 0.0

    @property
    def is_stocked(self) -> bool:
        return bool(self.stock_id)


class JobCard(BaseModel):
    """Work performed on an asset, costed against stock at settlement."""

    id: JobCardId = Field(default_factory=new_job_card_id)
    title: str
    asset_id: AssetId | None = None
    job_date: date = Field(default_factory=date.today)
    description: str = ""
    items: list[JobCardLineItem] = Field(default_factory=list)
    labor_cost: float = Field(default=0.0, ge=0)
    status: JobCardStatus = JobCardStatus.DRAFT
    costing_method: CostingMethod | None = None
    completed_at: datetime | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    version: int = 0  # 0 = never persisted

    @property
    def is_completed(self) -> bool:
        return self.status == JobCardStatus.COMPLETED

    @property
    def items_cost(self) -> float:
        return sum(item.actual_cost for item in self.items)

    @property
    def total_cost(self) -> float:
        """Parts plus labour."""
        return self.items_cost + self.labor_cost
