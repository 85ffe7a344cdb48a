"""Preview Job Card Cost Use Case: advisory costing without consuming stock."""

from src.application.dto.requests import PreviewJobCardRequest
from src.application.dto.responses import JobCardPreviewResponse, LinePreviewResponse
from src.application.services import get_job_card_settlement
from src.application.use_cases.save_job_card_draft import build_line_items
from src.config import get_logger
from src.core.entities.identifiers import JobCardId, StockId
from src.core.entities.inventory import CostingMethod, StockItem
from src.core.entities.job_card import JobCard
from src.core.exceptions import JobCardNotFoundError
from src.core.interfaces.costing_policy import ICostingPolicySource
from src.core.interfaces.workshop_store import IWorkshopStore
from src.core.services.costing_engine import round_currency
from src.core.services.settlement import JobCardPreview, JobCardSettlement, LinePreview

logger = get_logger(__name__)


class PreviewJobCardCostUseCase:
    """
    Cost a job card under the current (or a given) costing method.

    Nothing is written. Shortfalls are reported on the lines instead of
    raised; settlement is where stock sufficiency is enforced. Completed
    cards report the costs frozen at settlement.
    """

    def __init__(
        self,
        workshop_store: IWorkshopStore | None = None,
        policy_source: ICostingPolicySource | None = None,
        settlement: JobCardSettlement | None = None,
    ):
        self._workshop_store = workshop_store
        self._policy_source = policy_source
        self._settlement = settlement or get_job_card_settlement()

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

    async def execute(self, request: PreviewJobCardRequest) -> JobCardPreview:
        """Execute preview use case."""
        store = await self._get_store()

        if request.job_card_id:
            card = await store.get_job_card(JobCardId(request.job_card_id))
            if card is None:
                raise JobCardNotFoundError(request.job_card_id)
        else:
            card = JobCard(
                title="Preview",
                items=build_line_items(request.items),
                labor_cost=request.labor_cost,
            )

        if card.is_completed:
            return self._frozen_preview(card)

        method = request.method or await (await self._get_policy_source()).get_costing_method()

        stock_items: dict[StockId, StockItem] = {}
        for line in card.items:
            if line.stock_id and line.stock_id not in stock_items:
                item = await store.get_stock_item(line.stock_id)
                if item is not None:
                    stock_items[item.id] = item

        preview = self._settlement.preview(card, stock_items, method)

        logger.debug(
            "job_card_previewed",
            job_card_id=card.id,
            method=method.value,
            total_cost=round(preview.total_cost, 4),
            has_shortfall=preview.has_shortfall,
        )
        return preview

    @staticmethod
    def _frozen_preview(card: JobCard) -> JobCardPreview:
        return JobCardPreview(
            method=card.costing_method or CostingMethod.FIFO,
            lines=[
                LinePreview(index, line.stock_id, line.quantity, line.actual_cost)
                for index, line in enumerate(card.items)
            ],
            labor_cost=card.labor_cost,
        )

    def to_response(self, preview: JobCardPreview) -> JobCardPreviewResponse:
        """Convert result to API response."""
        return JobCardPreviewResponse(
            method=preview.method.value,
            lines=[
                LinePreviewResponse(
                    index=line.index,
                    stock_id=line.stock_id,
                    quantity=line.quantity,
                    cost=round_currency(line.cost),
                    available=(
                        line.breakdown.quantity_available if line.breakdown else None
                    ),
                    shortfall=line.breakdown.shortfall if line.breakdown else 0.0,
                )
                for line in preview.lines
            ],
            items_cost=round_currency(preview.items_cost),
            labor_cost=round_currency(preview.labor_cost),
            total_cost=round_currency(preview.total_cost),
            has_shortfall=preview.has_shortfall,
        )
