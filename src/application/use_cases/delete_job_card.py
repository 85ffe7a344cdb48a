"""Delete Job Card Use Case: remove a card, returning consumed stock."""

from dataclasses import dataclass, field

from src.application.dto.requests import DeleteJobCardRequest
from src.application.dto.responses import DeleteJobCardResponse, StockItemResponse
from src.application.services import get_job_card_settlement, get_restoration_mode
from src.application.use_cases.support import run_with_commit_retry
from src.config import get_logger
from src.core.entities.identifiers import JobCardId, StockId
from src.core.entities.inventory import StockItem
from src.core.exceptions import JobCardNotFoundError
from src.core.interfaces.workshop_store import IWorkshopStore
from src.core.services.settlement import JobCardSettlement, RestorationMode

logger = get_logger(__name__)


@dataclass
class DeleteJobCardResult:
    """Result of deleting a job card."""

    job_card_id: JobCardId
    was_completed: bool
    restored_items: list[StockItem] = field(default_factory=list)
    attempts: int = 1


class DeleteJobCardUseCase:
    """
    Delete a job card.

    Drafts are simply removed. Completed cards first return their stock
    to the ledger; restoration and deletion commit together.
    """

    def __init__(
        self,
        workshop_store: IWorkshopStore | None = None,
        settlement: JobCardSettlement | None = None,
        restoration_mode: RestorationMode | None = None,
    ):
        self._workshop_store = workshop_store
        self._settlement = settlement or get_job_card_settlement()
        self._restoration_mode = restoration_mode or get_restoration_mode()

    async def _get_store(self) -> IWorkshopStore:
        if self._workshop_store is None:
            from src.infrastructure.storage.sqlite import get_workshop_store

            self._workshop_store = await get_workshop_store()
        return self._workshop_store

    async def execute(self, request: DeleteJobCardRequest) -> DeleteJobCardResult:
        """Execute delete use case."""
        store = await self._get_store()
        job_card_id = JobCardId(request.job_card_id)

        async def attempt() -> DeleteJobCardResult:
            card = await store.get_job_card(job_card_id)
            if card is None:
                raise JobCardNotFoundError(job_card_id)

            if not card.is_completed:
                await store.commit_job_card_deletion(card, [])
                return DeleteJobCardResult(job_card_id=card.id, was_completed=False)

            stock_items: dict[StockId, StockItem] = {}
            for line in card.items:
                if line.stock_id and line.stock_id not in stock_items:
                    item = await store.get_stock_item(line.stock_id)
                    if item is not None:
                        stock_items[item.id] = item

            restored = self._settlement.restore_for_deletion(
                card, stock_items, self._restoration_mode
            )
            saved = await store.commit_job_card_deletion(card, restored)
            return DeleteJobCardResult(
                job_card_id=card.id,
                was_completed=True,
                restored_items=saved,
            )

        result, attempts = await run_with_commit_retry(attempt)
        result.attempts = attempts

        logger.info(
            "job_card_deleted",
            job_card_id=job_card_id,
            was_completed=result.was_completed,
            restored_items=len(result.restored_items),
            mode=self._restoration_mode.value,
        )
        return result

    def to_response(self, result: DeleteJobCardResult) -> DeleteJobCardResponse:
        """Convert result to API response."""
        return DeleteJobCardResponse(
            job_card_id=result.job_card_id,
            was_completed=result.was_completed,
            restored_items=[StockItemResponse.from_entity(i) for i in result.restored_items],
        )
