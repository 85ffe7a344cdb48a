"""
Core business logic services.

Layer-pure services that depend only on:
- src/core/entities/*
- src/core/exceptions.py

Synchronous and free of I/O. Persistence happens in the application layer
after these services have produced their results.
"""

from src.core.services.asset_expenses import AssetExpense, summarize_asset_expenses
from src.core.services.batch_ledger import (
    DEFAULT_MERGE_TOLERANCE,
    add_batch,
    check_invariants,
    compute_average_cost,
    compute_total_quantity,
    refresh_aggregates,
)
from src.core.services.consumption import ConsumptionContext, consume, drain, write_off
from src.core.services.costing_engine import (
    BatchDraw,
    CostBreakdown,
    preview_cost,
    round_currency,
)
from src.core.services.ledger_export import export_ledger, import_ledger
from src.core.services.settlement import (
    JobCardPreview,
    JobCardSettlement,
    LinePreview,
    RestorationMode,
    SettlementResult,
    ensure_draft,
)

__all__ = [
    # Batch ledger
    "DEFAULT_MERGE_TOLERANCE",
    "add_batch",
    "check_invariants",
    "compute_average_cost",
    "compute_total_quantity",
    "refresh_aggregates",
    # Costing engine
    "BatchDraw",
    "CostBreakdown",
    "preview_cost",
    "round_currency",
    # Consumption
    "ConsumptionContext",
    "consume",
    "drain",
    "write_off",
    # Settlement
    "JobCardSettlement",
    "JobCardPreview",
    "LinePreview",
    "RestorationMode",
    "SettlementResult",
    "ensure_draft",
    # Ledger export
    "export_ledger",
    "import_ledger",
    # Asset expenses
    "AssetExpense",
    "summarize_asset_expenses",
]
