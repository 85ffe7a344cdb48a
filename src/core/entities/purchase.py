"""Purchase invoice entities."""

from datetime import date
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from src.core.entities.identifiers import StockId, SupplierId


class NewStockLine(BaseModel):
    """Invoice line that creates a new stock item."""

    kind: Literal["new"] = "new"
    name: str
    category: str = "Parts"
    part_number: str | None = None
    description: str | None = None
    quantity: float
    unit_cost: float


class ExistingStockLine(BaseModel):
    """Invoice line that restocks an existing item."""

    kind: Literal["existing"] = "existing"
    stock_id: StockId
    quantity: float
    unit_cost: float


InvoiceLine = Annotated[NewStockLine | ExistingStockLine, Field(discriminator="kind")]


class PurchaseInvoice(BaseModel):
    """Supplier invoice received into stock."""

    supplier_id: SupplierId | None = None
    invoice_number: str = ""
    invoice_date: date = Field(default_factory=date.today)
    notes: str = ""
    items: list[InvoiceLine] = Field(default_factory=list)

    @property
    def invoice_total(self) -> float:
        return sum(line.quantity * line.unit_cost for line in self.items)
