"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and use cases.

Quantities are not range-checked here: the domain services reject
non-positive quantities with InvalidQuantityError.
"""

from typing import Any

from pydantic import BaseModel, Field

from src.core.entities.inventory import CostingMethod
from src.core.entities.purchase import InvoiceLine

# --- Stock ---


class ReceiveStockRequest(BaseModel):
    """Request to receive a purchase into stock.

    Either ``stock_id`` (restock an existing item) or ``name`` (create a new
    item) must be given.
    """

    stock_id: str | None = Field(default=None, description="Existing stock item ID")
    name: str | None = Field(default=None, description="Name for a new stock item")
    category: str = Field(default="Parts", description="Category for a new stock item")
    part_number: str | None = Field(default=None, description="Manufacturer part number")
    description: str | None = Field(default=None, description="Item description")
    supplier_id: str | None = Field(default=None, description="Supplier ID")
    quantity: float = Field(..., description="Quantity received")
    unit_cost: float = Field(..., description="Cost per unit")
    invoice_number: str | None = Field(default=None, description="Supplier invoice number")
    purchase_date: str | None = Field(
        default=None,
        description="Purchase date in ISO format (defaults to today)",
    )


class PurchaseInvoiceRequest(BaseModel):
    """Request to receive a whole supplier invoice."""

    supplier_id: str | None = Field(default=None, description="Supplier ID")
    invoice_number: str = Field(default="", description="Supplier invoice number")
    invoice_date: str | None = Field(
        default=None,
        description="Invoice date in ISO format (defaults to today)",
    )
    notes: str = Field(default="", description="Additional notes")
    items: list[InvoiceLine] = Field(
        default_factory=list,
        description="Invoice lines; kind 'new' creates an item, 'existing' restocks one",
    )


class WriteOffStockRequest(BaseModel):
    """Request to write off stock (damage, loss, expiry)."""

    stock_id: str = Field(..., description="Stock item ID")
    quantity: float = Field(..., description="Quantity to write off")
    reason: str = Field(..., min_length=1, description="Reason for the write-off")
    notes: str = Field(default="", description="Additional notes")
    writeoff_date: str | None = Field(
        default=None,
        description="Write-off date in ISO format (defaults to today)",
    )


class ImportLedgerRequest(BaseModel):
    """Request to import a stock item ledger snapshot."""

    ledger: dict[str, Any] = Field(..., description="Snapshot produced by the export endpoint")


# --- Job cards ---


class JobCardLineRequest(BaseModel):
    """A line on a job card."""

    stock_id: str | None = Field(
        default=None,
        description="Stock item consumed; omit for a free-text sundry",
    )
    quantity: float = Field(default=1.0, description="Quantity used")
    description: str = Field(default="", description="Line description")
    actual_cost: float = Field(
        default=0.0,
        ge=0,
        description="Cost of a sundry line; computed at settlement for stocked lines",
    )


class SaveJobCardRequest(BaseModel):
    """Request to create or update a draft job card."""

    job_card_id: str | None = Field(default=None, description="Existing draft to update")
    title: str = Field(..., min_length=1, description="Job title")
    asset_id: str | None = Field(default=None, description="Asset the work was done on")
    asset_name: str | None = Field(
        default=None,
        description="Asset display name; registers or renames the asset",
    )
    job_date: str | None = Field(
        default=None,
        description="Job date in ISO format (defaults to today)",
    )
    description: str = Field(default="", description="Work description")
    labor_cost: float = Field(default=0.0, ge=0, description="Labour cost")
    items: list[JobCardLineRequest] = Field(default_factory=list, description="Lines")


class PreviewJobCardRequest(BaseModel):
    """Request for an advisory job card cost.

    Previews a stored card when ``job_card_id`` is set, otherwise the lines
    given here.
    """

    job_card_id: str | None = Field(default=None, description="Stored job card to preview")
    items: list[JobCardLineRequest] = Field(default_factory=list, description="Lines")
    labor_cost: float = Field(default=0.0, ge=0, description="Labour cost")
    method: CostingMethod | None = Field(
        default=None,
        description="Costing method (defaults to the workshop setting)",
    )


class SettleJobCardRequest(BaseModel):
    """Request to settle (complete) a draft job card."""

    job_card_id: str = Field(..., description="Job card ID")


class DeleteJobCardRequest(BaseModel):
    """Request to delete a job card, restoring consumed stock if completed."""

    job_card_id: str = Field(..., description="Job card ID")


# --- Settings ---


class SetCostingMethodRequest(BaseModel):
    """Request to change the workshop costing method."""

    method: CostingMethod = Field(..., description="FIFO or WEIGHTED_AVERAGE")
