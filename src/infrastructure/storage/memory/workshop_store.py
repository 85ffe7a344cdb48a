"""In-memory implementation of workshop storage."""

import asyncio
from collections.abc import Sequence
from datetime import UTC, datetime
from itertools import count

from src.config import get_logger
from src.core.entities.identifiers import AssetId, JobCardId, StockId
from src.core.entities.inventory import StockItem
from src.core.entities.job_card import JobCard
from src.core.exceptions import StaleReferenceError
from src.core.interfaces.workshop_store import IWorkshopStore

logger = get_logger(__name__)


class InMemoryWorkshopStore(IWorkshopStore):
    """
    Workshop store kept in process memory.

    Entities are copied on the way in and out, so callers never share
    state with the store. Version checks behave as in the SQLite store.
    """

    def __init__(self) -> None:
        self._stock_items: dict[StockId, StockItem] = {}
        self._job_cards: dict[JobCardId, JobCard] = {}
        self._assets: dict[AssetId, str] = {}
        self._record_ids = count(1)
        self._lock = asyncio.Lock()

    async def load_stock_items(self) -> list[StockItem]:
        items = sorted(self._stock_items.values(), key=lambda i: (i.name, i.id))
        return [item.model_copy(deep=True) for item in items]

    async def get_stock_item(self, stock_id: StockId) -> StockItem | None:
        item = self._stock_items.get(stock_id)
        return item.model_copy(deep=True) if item else None

    async def save_stock_item(self, item: StockItem) -> StockItem:
        async with self._lock:
            self._check_version(item)
            return self._put_stock_item(item)

    async def load_job_cards(self) -> list[JobCard]:
        cards = sorted(
            self._job_cards.values(),
            key=lambda c: (c.job_date, c.created_at),
            reverse=True,
        )
        return [card.model_copy(deep=True) for card in cards]

    async def get_job_card(self, job_card_id: JobCardId) -> JobCard | None:
        card = self._job_cards.get(job_card_id)
        return card.model_copy(deep=True) if card else None

    async def save_job_card(self, card: JobCard) -> JobCard:
        async with self._lock:
            self._check_card_version(card)
            return self._put_job_card(card)

    async def delete_job_card(self, job_card_id: JobCardId) -> bool:
        async with self._lock:
            return self._job_cards.pop(job_card_id, None) is not None

    async def commit_stock_items(self, stock_items: Sequence[StockItem]) -> list[StockItem]:
        async with self._lock:
            for item in stock_items:
                self._check_version(item)
            saved = [self._put_stock_item(item) for item in stock_items]
        logger.info("stock_items_committed", stock_items=len(saved))
        return saved

    async def commit_settlement(
        self, stock_items: Sequence[StockItem], card: JobCard
    ) -> tuple[list[StockItem], JobCard]:
        async with self._lock:
            # Check every version before writing anything
            self._check_card_version(card)
            for item in stock_items:
                self._check_version(item)
            saved = [self._put_stock_item(item) for item in stock_items]
            committed = self._put_job_card(card)
        logger.info("settlement_committed", job_card_id=card.id, stock_items=len(saved))
        return saved, committed

    async def commit_job_card_deletion(
        self, card: JobCard, stock_items: Sequence[StockItem]
    ) -> list[StockItem]:
        async with self._lock:
            self._check_card_version(card)
            for item in stock_items:
                self._check_version(item)
            saved = [self._put_stock_item(item) for item in stock_items]
            self._job_cards.pop(card.id, None)
        logger.info(
            "job_card_deletion_committed",
            job_card_id=card.id,
            restored_items=len(saved),
        )
        return saved

    async def get_asset_name(self, asset_id: AssetId) -> str | None:
        return self._assets.get(asset_id)

    async def save_asset(self, asset_id: AssetId, name: str) -> None:
        self._assets[asset_id] = name

    def _check_version(self, item: StockItem) -> None:
        stored = self._stock_items.get(item.id)
        stored_version = stored.version if stored else 0
        if stored_version != item.version:
            raise StaleReferenceError("StockItem", item.id, item.version)

    def _check_card_version(self, card: JobCard) -> None:
        stored = self._job_cards.get(card.id)
        stored_version = stored.version if stored else 0
        if stored_version != card.version:
            raise StaleReferenceError("JobCard", card.id, card.version)

    def _put_job_card(self, card: JobCard) -> JobCard:
        saved = card.model_copy(deep=True)
        saved.version = card.version + 1
        self._job_cards[saved.id] = saved
        return saved.model_copy(deep=True)

    def _put_stock_item(self, item: StockItem) -> StockItem:
        saved = item.model_copy(deep=True)
        saved.version = item.version + 1
        saved.updated_at = datetime.now(UTC)
        for record in saved.usage_history:
            if record.id is None:
                record.id = next(self._record_ids)
        for writeoff in saved.writeoffs:
            if writeoff.id is None:
                writeoff.id = next(self._record_ids)
        self._stock_items[saved.id] = saved
        return saved.model_copy(deep=True)
