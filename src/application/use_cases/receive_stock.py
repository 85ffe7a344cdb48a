"""Receive Stock Use Case: purchase into a new or existing stock item."""

from dataclasses import dataclass

from src.application.dto.requests import ReceiveStockRequest
from src.application.dto.responses import ReceiveStockResponse, StockItemResponse
from src.application.use_cases.support import parse_iso_date, run_with_commit_retry
from src.config import get_logger, get_settings
from src.core.entities.identifiers import StockId, SupplierId
from src.core.entities.inventory import StockItem
from src.core.exceptions import StockItemNotFoundError, ValidationError
from src.core.interfaces.workshop_store import IWorkshopStore
from src.core.services.batch_ledger import add_batch

logger = get_logger(__name__)


@dataclass
class ReceiveStockResult:
    """Result of receiving stock."""

    stock_item: StockItem
    created: bool = False  # True if a new stock item was created


class ReceiveStockUseCase:
    """Receive stock as a new purchase batch."""

    def __init__(
        self,
        workshop_store: IWorkshopStore | None = None,
    ):
        self._workshop_store = workshop_store

    async def _get_store(self) -> IWorkshopStore:
        if self._workshop_store is None:
            from src.infrastructure.storage.sqlite import get_workshop_store

            self._workshop_store = await get_workshop_store()
        return self._workshop_store

    async def execute(self, request: ReceiveStockRequest) -> ReceiveStockResult:
        """Execute receive stock use case."""
        logger.info(
            "receive_stock_started",
            stock_id=request.stock_id,
            quantity=request.quantity,
            unit_cost=request.unit_cost,
        )

        store = await self._get_store()
        merge_tolerance = get_settings().costing.merge_tolerance
        purchase_date = parse_iso_date(request.purchase_date, "purchase_date")

        if request.stock_id:
            stock_id = StockId(request.stock_id)

            async def attempt() -> StockItem:
                item = await store.get_stock_item(stock_id)
                if item is None:
                    raise StockItemNotFoundError(stock_id)
                add_batch(
                    item,
                    purchase_date,
                    request.quantity,
                    request.unit_cost,
                    invoice_number=request.invoice_number,
                    merge_tolerance=merge_tolerance,
                )
                return await store.save_stock_item(item)

            saved, _ = await run_with_commit_retry(attempt)
            created = False
        else:
            if not request.name or not request.name.strip():
                raise ValidationError("name", "A new stock item needs a name", request.name)
            item = StockItem(
                name=request.name.strip(),
                category=request.category,
                supplier_id=SupplierId(request.supplier_id) if request.supplier_id else None,
                part_number=request.part_number,
                description=request.description,
            )
            add_batch(
                item,
                purchase_date,
                request.quantity,
                request.unit_cost,
                invoice_number=request.invoice_number,
                merge_tolerance=merge_tolerance,
            )
            saved = await store.save_stock_item(item)
            created = True

        logger.info(
            "receive_stock_complete",
            stock_id=saved.id,
            created=created,
            total_quantity=saved.total_quantity,
            average_cost=round(saved.average_cost, 4),
        )

        return ReceiveStockResult(stock_item=saved, created=created)

    def to_response(self, result: ReceiveStockResult) -> ReceiveStockResponse:
        """Convert result to API response."""
        return ReceiveStockResponse(
            stock_item=StockItemResponse.from_entity(result.stock_item),
            created=result.created,
        )
