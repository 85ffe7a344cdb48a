"""Core domain entities."""

from src.core.entities.identifiers import (
    AssetId,
    BatchId,
    JobCardId,
    StockId,
    SupplierId,
)
from src.core.entities.inventory import (
    Batch,
    CostingMethod,
    StockItem,
    UsageRecord,
    WriteoffRecord,
)
from src.core.entities.job_card import (
    JobCard,
    JobCardLineItem,
    JobCardStatus,
)
from src.core.entities.purchase import (
    ExistingStockLine,
    InvoiceLine,
    NewStockLine,
    PurchaseInvoice,
)

__all__ = [
    # Identifiers
    "StockId",
    "BatchId",
    "JobCardId",
    "AssetId",
    "SupplierId",
    # Inventory entities
    "Batch",
    "CostingMethod",
    "StockItem",
    "UsageRecord",
    "WriteoffRecord",
    # Job card entities
    "JobCard",
    "JobCardLineItem",
    "JobCardStatus",
    # Purchase entities
    "PurchaseInvoice",
    "InvoiceLine",
    "NewStockLine",
    "ExistingStockLine",
]
