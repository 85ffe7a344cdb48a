"""
Dependency injection container for FastAPI.

Provides store and use case instances to route handlers.
"""

from functools import lru_cache

from src.application.use_cases import (
    AssetExpenseReportUseCase,
    DeleteJobCardUseCase,
    ExportLedgerUseCase,
    ImportLedgerUseCase,
    PreviewJobCardCostUseCase,
    ProcessPurchaseInvoiceUseCase,
    ReceiveStockUseCase,
    SaveJobCardDraftUseCase,
    SettleJobCardUseCase,
    WriteOffStockUseCase,
)
from src.config import Settings, get_settings
from src.core.interfaces import IMutableCostingPolicySource, IWorkshopStore
from src.infrastructure.storage.sqlite import (
    get_costing_policy_source,
    get_workshop_store,
)


@lru_cache
def get_app_settings() -> Settings:
    """Get cached application settings."""
    return get_settings()


# Store dependencies
async def get_store() -> IWorkshopStore:
    """Get workshop store."""
    return await get_workshop_store()


async def get_policy_source() -> IMutableCostingPolicySource:
    """Get costing policy source."""
    return await get_costing_policy_source()


# Use case dependencies
def get_receive_stock_use_case() -> ReceiveStockUseCase:
    """Get receive stock use case."""
    return ReceiveStockUseCase()


def get_purchase_invoice_use_case() -> ProcessPurchaseInvoiceUseCase:
    """Get purchase invoice use case."""
    return ProcessPurchaseInvoiceUseCase()


def get_write_off_use_case() -> WriteOffStockUseCase:
    """Get write-off use case."""
    return WriteOffStockUseCase()


def get_export_ledger_use_case() -> ExportLedgerUseCase:
    """Get ledger export use case."""
    return ExportLedgerUseCase()


def get_import_ledger_use_case() -> ImportLedgerUseCase:
    """Get ledger import use case."""
    return ImportLedgerUseCase()


def get_save_job_card_use_case() -> SaveJobCardDraftUseCase:
    """Get save draft use case."""
    return SaveJobCardDraftUseCase()


def get_preview_job_card_use_case() -> PreviewJobCardCostUseCase:
    """Get job card preview use case."""
    return PreviewJobCardCostUseCase()


def get_settle_job_card_use_case() -> SettleJobCardUseCase:
    """Get settle use case."""
    return SettleJobCardUseCase()


def get_delete_job_card_use_case() -> DeleteJobCardUseCase:
    """Get delete job card use case."""
    return DeleteJobCardUseCase()


def get_asset_expense_use_case() -> AssetExpenseReportUseCase:
    """Get asset expense report use case."""
    return AssetExpenseReportUseCase()
