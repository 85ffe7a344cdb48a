"""Fixtures for use case tests."""

from datetime import date

import pytest

from src.application.dto.requests import SettleJobCardRequest
from src.application.use_cases.settle_job_card import SettleJobCardUseCase
from src.core.entities.inventory import CostingMethod, StockItem
from src.core.entities.job_card import JobCard
from src.core.services.batch_ledger import add_batch
from src.infrastructure.storage.memory import InMemoryWorkshopStore, SettingsCostingPolicySource


class RacingStore(InMemoryWorkshopStore):
    """In-memory store where another writer restocks an item right after each read.

    ``races`` limits how many reads are followed by a concurrent write.
    """

    def __init__(self, races: int = 1):
        super().__init__()
        self.races = races
        self.reads = 0

    async def get_stock_item(self, stock_id):
        item = await super().get_stock_item(stock_id)
        self.reads += 1
        if item is not None and self.races > 0:
            self.races -= 1
            concurrent = item.model_copy(deep=True)
            add_batch(concurrent, date(2024, 2, 20), 2, 30.0)
            await self.save_stock_item(concurrent)
        return item


class SettleOnReadStore(InMemoryWorkshopStore):
    """In-memory store where the first read of a draft card is followed by its settlement.

    The caller gets the draft as it was loaded, while the stored card is
    already completed.
    """

    def __init__(self, policy_source):
        super().__init__()
        self.policy_source = policy_source
        self.settled = False

    async def get_job_card(self, job_card_id):
        card = await super().get_job_card(job_card_id)
        if card is not None and not card.is_completed and not self.settled:
            self.settled = True
            settle = SettleJobCardUseCase(workshop_store=self, policy_source=self.policy_source)
            await settle.execute(SettleJobCardRequest(job_card_id=job_card_id))
        return card

@pytest.fixture
def store() -> InMemoryWorkshopStore:
    return InMemoryWorkshopStore()


@pytest.fixture
def fifo_policy() -> SettingsCostingPolicySource:
    return SettingsCostingPolicySource(CostingMethod.FIFO)


@pytest.fixture
def average_policy() -> SettingsCostingPolicySource:
    return SettingsCostingPolicySource(CostingMethod.WEIGHTED_AVERAGE)


@pytest.fixture
async def stocked_store(
    store: InMemoryWorkshopStore,
    two_batch_item: StockItem,
    draft_card: JobCard,
) -> InMemoryWorkshopStore:
    """Store holding the two-batch item and the draft card."""
    await store.save_stock_item(two_batch_item)
    await store.save_job_card(draft_card)
    await store.save_asset("AST-truck12", "Truck 12")
    return store


@pytest.fixture
def make_settling_store():
    """Factory for stores that settle a draft right after it is first read."""
    return SettleOnReadStore


@pytest.fixture
def make_racing_store():
    """Factory for stores that race every read with a concurrent restock."""
    return RacingStore
