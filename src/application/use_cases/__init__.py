"""Application use cases."""

from src.application.use_cases.delete_job_card import DeleteJobCardResult, DeleteJobCardUseCase
from src.application.use_cases.preview_job_card_cost import PreviewJobCardCostUseCase
from src.application.use_cases.process_purchase_invoice import (
    ProcessPurchaseInvoiceUseCase,
    PurchaseInvoiceResult,
)
from src.application.use_cases.receive_stock import ReceiveStockResult, ReceiveStockUseCase
from src.application.use_cases.save_job_card_draft import SaveJobCardDraftUseCase
from src.application.use_cases.settle_job_card import SettleJobCardResult, SettleJobCardUseCase
from src.application.use_cases.summarize_asset_expenses import (
    AssetExpenseReport,
    AssetExpenseReportUseCase,
)
from src.application.use_cases.transfer_ledger import ExportLedgerUseCase, ImportLedgerUseCase
from src.application.use_cases.write_off_stock import WriteOffResult, WriteOffStockUseCase

__all__ = [
    "ReceiveStockUseCase",
    "ReceiveStockResult",
    "ProcessPurchaseInvoiceUseCase",
    "PurchaseInvoiceResult",
    "WriteOffStockUseCase",
    "WriteOffResult",
    "SaveJobCardDraftUseCase",
    "PreviewJobCardCostUseCase",
    "SettleJobCardUseCase",
    "SettleJobCardResult",
    "DeleteJobCardUseCase",
    "DeleteJobCardResult",
    "ExportLedgerUseCase",
    "ImportLedgerUseCase",
    "AssetExpenseReportUseCase",
    "AssetExpenseReport",
]
