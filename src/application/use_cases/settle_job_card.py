"""Settle Job Card Use Case: consume stock and complete a draft job card."""

from dataclasses import dataclass, field

from src.application.dto.requests import SettleJobCardRequest
from src.application.dto.responses import (
    JobCardResponse,
    SettleJobCardResponse,
    StockItemResponse,
)
from src.application.services import get_job_card_settlement
from src.application.use_cases.support import run_with_commit_retry
from src.config import get_logger
from src.core.entities.identifiers import JobCardId, StockId
from src.core.entities.inventory import CostingMethod, StockItem, UsageRecord
from src.core.entities.job_card import JobCard
from src.core.exceptions import JobCardNotFoundError
from src.core.interfaces.costing_policy import ICostingPolicySource
from src.core.interfaces.workshop_store import IWorkshopStore
from src.core.services.costing_engine import round_currency
from src.core.services.settlement import JobCardSettlement, ensure_draft

logger = get_logger(__name__)

UNKNOWN_ASSET = "Unknown"


@dataclass
class SettleJobCardResult:
    """Result of settling a job card."""

    job_card: JobCard
    stock_items: list[StockItem]
    usage_records: list[UsageRecord] = field(default_factory=list)
    attempts: int = 1

    @property
    def total_cost(self) -> float:
        return self.job_card.total_cost


class SettleJobCardUseCase:
    """
    Settle a draft job card against stock.

    Reads the costing method once, then loads the card and its stock,
    settles on copies and commits everything in one transaction. A
    concurrent change to any stock item restarts the attempt from a fresh
    load.
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

    async def execute(self, request: SettleJobCardRequest) -> SettleJobCardResult:
        """Execute settle use case."""
        logger.info("settle_job_card_started", job_card_id=request.job_card_id)

        store = await self._get_store()
        method = await (await self._get_policy_source()).get_costing_method()
        job_card_id = JobCardId(request.job_card_id)

        async def attempt() -> SettleJobCardResult:
            return await self._settle_once(store, job_card_id, method)

        result, attempts = await run_with_commit_retry(attempt)
        result.attempts = attempts

        logger.info(
            "settle_job_card_complete",
            job_card_id=result.job_card.id,
            method=method.value,
            total_cost=round(result.total_cost, 4),
            attempts=attempts,
        )
        return result

    async def _settle_once(
        self,
        store: IWorkshopStore,
        job_card_id: JobCardId,
        method: CostingMethod,
    ) -> SettleJobCardResult:
        card = await store.get_job_card(job_card_id)
        if card is None:
            raise JobCardNotFoundError(job_card_id)
        ensure_draft(card, "settle")

        stock_items: dict[StockId, StockItem] = {}
        for line in card.items:
            if line.stock_id and line.stock_id not in stock_items:
                item = await store.get_stock_item(line.stock_id)
                if item is not None:
                    stock_items[item.id] = item

        asset_name = UNKNOWN_ASSET
        if card.asset_id:
            asset_name = await store.get_asset_name(card.asset_id) or UNKNOWN_ASSET

        settled = self._settlement.settle(card, stock_items, method, asset_name=asset_name)
        saved_items, completed = await store.commit_settlement(
            settled.stock_items, settled.job_card
        )

        return SettleJobCardResult(
            job_card=completed,
            stock_items=saved_items,
            usage_records=settled.usage_records,
        )

    def to_response(self, result: SettleJobCardResult) -> SettleJobCardResponse:
        """Convert result to API response."""
        return SettleJobCardResponse(
            job_card=JobCardResponse.from_entity(result.job_card),
            stock_items=[StockItemResponse.from_entity(i) for i in result.stock_items],
            total_cost=round_currency(result.total_cost),
            attempts=result.attempts,
        )
