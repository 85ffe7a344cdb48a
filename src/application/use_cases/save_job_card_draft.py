"""Save Job Card Draft Use Case: create or edit a draft job card."""

from src.application.dto.requests import JobCardLineRequest, SaveJobCardRequest
from src.application.dto.responses import JobCardResponse
from src.application.use_cases.support import parse_iso_date, run_with_commit_retry
from src.config import get_logger
from src.core.entities.identifiers import AssetId, JobCardId, StockId
from src.core.entities.job_card import JobCard, JobCardLineItem
from src.core.exceptions import JobCardNotFoundError
from src.core.interfaces.workshop_store import IWorkshopStore
from src.core.services.settlement import ensure_draft

logger = get_logger(__name__)


def build_line_items(lines: list[JobCardLineRequest]) -> list[JobCardLineItem]:
    """Convert request lines to entities.

    Stocked lines start at zero cost; settlement prices them.
    """
    return [
        JobCardLineItem(
            stock_id=StockId(line.stock_id) if line.stock_id else None,
            quantity=line.quantity,
            description=line.description,
            actual_cost=0.0 if line.stock_id else line.actual_cost,
        )
        for line in lines
    ]


class SaveJobCardDraftUseCase:
    """
    Create a draft job card or update an existing draft.

    Edits are version checked. If the card changed after it was loaded the
    edit is retried from a fresh load, so a card settled or deleted in the
    meantime is reported as such instead of being written back as a draft.
    """

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

    async def execute(self, request: SaveJobCardRequest) -> JobCard:
        """Execute save draft use case."""
        store = await self._get_store()

        fields = dict(
            title=request.title.strip(),
            asset_id=AssetId(request.asset_id) if request.asset_id else None,
            job_date=parse_iso_date(request.job_date, "job_date"),
            description=request.description,
            items=build_line_items(request.items),
            labor_cost=request.labor_cost,
        )

        created = not request.job_card_id
        if created:
            card = await store.save_job_card(JobCard(**fields))
        else:
            job_card_id = JobCardId(request.job_card_id)

            async def attempt() -> JobCard:
                existing = await store.get_job_card(job_card_id)
                if existing is None:
                    raise JobCardNotFoundError(job_card_id)
                ensure_draft(existing, "edit")
                return await store.save_job_card(existing.model_copy(update=fields))

            card, _ = await run_with_commit_retry(attempt)

        if card.asset_id and request.asset_name:
            await store.save_asset(card.asset_id, request.asset_name.strip())

        logger.info(
            "job_card_draft_saved",
            job_card_id=card.id,
            created=created,
            lines=len(card.items),
        )
        return card

    def to_response(self, card: JobCard) -> JobCardResponse:
        """Convert result to API response."""
        return JobCardResponse.from_entity(card)
