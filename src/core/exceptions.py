"""
Domain exceptions for the workshop costing application.

Provides specific exception types for different error scenarios.
"""

from typing import Any


class WorkshopError(Exception):
    """Base exception for all workshop errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Storage Exceptions
class StorageError(WorkshopError):
    """Base exception for storage operations."""

    pass


class StockItemNotFoundError(StorageError):
    """Stock item not found in storage."""

    def __init__(self, stock_id: str):
        super().__init__(
            f"Stock item not found: {stock_id}",
            code="STOCK_ITEM_NOT_FOUND",
            details={"stock_id": stock_id},
        )


class JobCardNotFoundError(StorageError):
    """Job card not found in storage."""

    def __init__(self, job_card_id: str):
        super().__init__(
            f"Job card not found: {job_card_id}",
            code="JOB_CARD_NOT_FOUND",
            details={"job_card_id": job_card_id},
        )


class StaleReferenceError(StorageError):
    """Stored entity changed since it was loaded (optimistic concurrency)."""

    def __init__(self, entity: str, entity_id: str, expected_version: int):
        super().__init__(
            f"{entity} {entity_id} was modified concurrently "
            f"(expected version {expected_version})",
            code="STALE_REFERENCE",
            details={
                "entity": entity,
                "entity_id": entity_id,
                "expected_version": expected_version,
            },
        )


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


# Inventory Exceptions
class InventoryError(WorkshopError):
    """Base exception for inventory and costing rules."""

    pass


class InsufficientStockError(InventoryError):
    """Requested consumption exceeds the available quantity."""

    def __init__(
        self,
        stock_id: str,
        requested: float,
        available: float,
        name: str | None = None,
    ):
        label = name or stock_id
        super().__init__(
            f"Not enough stock for {label}. "
            f"Requested: {requested:g}, available: {available:g}",
            code="INSUFFICIENT_STOCK",
            details={
                "stock_id": stock_id,
                "name": name,
                "requested": requested,
                "available": available,
            },
        )


class JobCardStateError(InventoryError):
    """Operation is not allowed in the job card's current status."""

    def __init__(self, job_card_id: str, status: str, operation: str):
        super().__init__(
            f"Cannot {operation} job card {job_card_id} in status '{status}'",
            code="JOB_CARD_STATE",
            details={
                "job_card_id": job_card_id,
                "status": status,
                "operation": operation,
            },
        )


class LedgerIntegrityError(InventoryError):
    """Cached stock aggregates disagree with the batch ledger."""

    def __init__(self, stock_id: str, reason: str):
        super().__init__(
            f"Ledger integrity check failed for {stock_id}: {reason}",
            code="LEDGER_INTEGRITY",
            details={"stock_id": stock_id, "reason": reason},
        )


# Validation Exceptions
class ValidationError(WorkshopError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )


class InvalidQuantityError(ValidationError):
    """Zero or negative quantity requested."""

    def __init__(self, quantity: float, field: str = "quantity"):
        super().__init__(
            field=field,
            message=f"Quantity must be greater than zero, got {quantity:g}",
            value=quantity,
        )
        self.code = "INVALID_QUANTITY"
        self.details["quantity"] = quantity


class ConfigurationError(WorkshopError):
    """Configuration error."""

    pass
