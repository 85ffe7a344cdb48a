"""Write Off Stock Use Case: remove damaged or lost stock at cost."""

from dataclasses import dataclass

from src.application.dto.requests import WriteOffStockRequest
from src.application.dto.responses import (
    StockItemResponse,
    WriteOffResponse,
    WriteoffRecordResponse,
)
from src.application.use_cases.support import parse_iso_date, run_with_commit_retry
from src.config import get_logger
from src.core.entities.identifiers import StockId
from src.core.entities.inventory import StockItem, WriteoffRecord
from src.core.exceptions import (
    InsufficientStockError,
    InvalidQuantityError,
    StockItemNotFoundError,
)
from src.core.interfaces.costing_policy import ICostingPolicySource
from src.core.interfaces.workshop_store import IWorkshopStore
from src.core.services.batch_ledger import QUANTITY_EPSILON
from src.core.services.consumption import write_off

logger = get_logger(__name__)


@dataclass
class WriteOffResult:
    """Result of writing off stock."""

    stock_item: StockItem
    writeoff: WriteoffRecord
    attempts: int = 1


class WriteOffStockUseCase:
    """Write off stock under the active costing method."""

    def __init__(
        self,
        workshop_store: IWorkshopStore | None = None,
        policy_source: ICostingPolicySource | None = None,
    ):
        self._workshop_store = workshop_store
        self._policy_source = policy_source

    async def _get_store(self) -> IWorkshopStore:
        if self._workshop_store is None:
            from src.infrastructure.storage.sqlite import get_workshop_store

            self._workshop_store = await get_workshop_store()
        return self._workshop_store

    async def _get_policy_source(self) -> ICostingPolicySource:
        if self._policy_source is None:
            from src.infrastructure.storage.sqlite import get_costing_policy_source

            self._policy_source = await get_costing_policy_source()
        return self._policy_source

    async def execute(self, request: WriteOffStockRequest) -> WriteOffResult:
        """Execute write-off use case."""
        logger.info(
            "write_off_started",
            stock_id=request.stock_id,
            quantity=request.quantity,
            reason=request.reason,
        )

        if request.quantity <= 0:
            raise InvalidQuantityError(request.quantity)

        store = await self._get_store()
        method = await (await self._get_policy_source()).get_costing_method()
        written_off_on = parse_iso_date(request.writeoff_date, "writeoff_date")
        stock_id = StockId(request.stock_id)

        async def attempt() -> StockItem:
            item = await store.get_stock_item(stock_id)
            if item is None:
                raise StockItemNotFoundError(stock_id)
            if request.quantity > item.total_quantity + QUANTITY_EPSILON:
                raise InsufficientStockError(
                    stock_id=stock_id,
                    requested=request.quantity,
                    available=item.total_quantity,
                    name=item.name,
                )
            write_off(
                item,
                request.quantity,
                method,
                reason=request.reason,
                written_off_on=written_off_on,
                notes=request.notes,
            )
            return await store.save_stock_item(item)

        saved, attempts = await run_with_commit_retry(attempt)

        logger.info(
            "write_off_complete",
            stock_id=saved.id,
            method=method.value,
            remaining_qty=saved.total_quantity,
        )

        return WriteOffResult(
            stock_item=saved,
            writeoff=saved.writeoffs[-1],
            attempts=attempts,
        )

    def to_response(self, result: WriteOffResult) -> WriteOffResponse:
        """Convert result to API response."""
        return WriteOffResponse(
            stock_item=StockItemResponse.from_entity(result.stock_item),
            writeoff=WriteoffRecordResponse.from_record(result.writeoff),
        )
