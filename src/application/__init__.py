"""
Application layer - Use cases, DTOs, and service factories.

This layer orchestrates business logic by:
1. Defining request/response DTOs for API contracts
2. Implementing use cases that coordinate core services
3. Providing factory functions for dependency injection

Use cases are the only entry point for API handlers.
"""

from src.application.dto.requests import (
    DeleteJobCardRequest,
    ImportLedgerRequest,
    PreviewJobCardRequest,
    PurchaseInvoiceRequest,
    ReceiveStockRequest,
    SaveJobCardRequest,
    SetCostingMethodRequest,
    SettleJobCardRequest,
    WriteOffStockRequest,
)
from src.application.dto.responses import (
    ErrorResponse,
    HealthResponse,
    JobCardResponse,
    StockItemResponse,
)
from src.application.services import (
    get_job_card_settlement,
    get_restoration_mode,
    reset_services,
)
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

__all__ = [
    # Request DTOs
    "ReceiveStockRequest",
    "PurchaseInvoiceRequest",
    "WriteOffStockRequest",
    "ImportLedgerRequest",
    "SaveJobCardRequest",
    "PreviewJobCardRequest",
    "SettleJobCardRequest",
    "DeleteJobCardRequest",
    "SetCostingMethodRequest",
    # Response DTOs
    "StockItemResponse",
    "JobCardResponse",
    "HealthResponse",
    "ErrorResponse",
    # Use Cases
    "ReceiveStockUseCase",
    "ProcessPurchaseInvoiceUseCase",
    "WriteOffStockUseCase",
    "SaveJobCardDraftUseCase",
    "PreviewJobCardCostUseCase",
    "SettleJobCardUseCase",
    "DeleteJobCardUseCase",
    "ExportLedgerUseCase",
    "ImportLedgerUseCase",
    "AssetExpenseReportUseCase",
    # Service factories
    "get_job_card_settlement",
    "get_restoration_mode",
    "reset_services",
]
