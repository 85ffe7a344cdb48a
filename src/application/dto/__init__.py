"""Data Transfer Objects for API layer.

Request DTOs: Validate and parse incoming API requests.
Response DTOs: Structure and serialize API responses.

These are the ONLY contracts between API handlers and use cases.
"""

from src.application.dto.requests import (
    DeleteJobCardRequest,
    ImportLedgerRequest,
    JobCardLineRequest,
    PreviewJobCardRequest,
    PurchaseInvoiceRequest,
    ReceiveStockRequest,
    SaveJobCardRequest,
    SetCostingMethodRequest,
    SettleJobCardRequest,
    WriteOffStockRequest,
)
from src.application.dto.responses import (
    AssetExpenseListResponse,
    AssetExpenseResponse,
    BatchDrawResponse,
    BatchResponse,
    CostPreviewResponse,
    CostingMethodResponse,
    DeleteJobCardResponse,
    ErrorResponse,
    HealthResponse,
    JobCardLineResponse,
    JobCardListResponse,
    JobCardPreviewResponse,
    JobCardResponse,
    LedgerExportResponse,
    LinePreviewResponse,
    ProviderHealthResponse,
    PurchaseInvoiceResponse,
    ReceiveStockResponse,
    SettleJobCardResponse,
    StockItemResponse,
    StockListResponse,
    UsageRecordResponse,
    WriteOffResponse,
    WriteoffRecordResponse,
)

__all__ = [
    # Requests
    "ReceiveStockRequest",
    "PurchaseInvoiceRequest",
    "WriteOffStockRequest",
    "ImportLedgerRequest",
    "JobCardLineRequest",
    "SaveJobCardRequest",
    "PreviewJobCardRequest",
    "SettleJobCardRequest",
    "DeleteJobCardRequest",
    "SetCostingMethodRequest",
    # Responses
    "BatchResponse",
    "BatchDrawResponse",
    "CostPreviewResponse",
    "UsageRecordResponse",
    "WriteoffRecordResponse",
    "StockItemResponse",
    "StockListResponse",
    "ReceiveStockResponse",
    "PurchaseInvoiceResponse",
    "WriteOffResponse",
    "LedgerExportResponse",
    "JobCardLineResponse",
    "JobCardResponse",
    "JobCardListResponse",
    "LinePreviewResponse",
    "JobCardPreviewResponse",
    "SettleJobCardResponse",
    "DeleteJobCardResponse",
    "AssetExpenseResponse",
    "AssetExpenseListResponse",
    "CostingMethodResponse",
    "HealthResponse",
    "ProviderHealthResponse",
    "ErrorResponse",
]
