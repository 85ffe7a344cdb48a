"""Tests for the in-memory workshop store and policy source."""

from datetime import date
from unittest.mock import MagicMock, patch

import pytest

from src.core.entities.inventory import CostingMethod
from src.core.entities.job_card import JobCard, JobCardStatus
from src.core.exceptions import StaleReferenceError
from src.core.services.batch_ledger import add_batch
from src.core.services.consumption import ConsumptionContext, consume
from src.infrastructure.storage.memory import InMemoryWorkshopStore, SettingsCostingPolicySource


class TestInMemoryWorkshopStore:
    async def test_copies_in_and_out(self, two_batch_item):
        store = InMemoryWorkshopStore()
        saved = await store.save_stock_item(two_batch_item)

        saved.batches[0].quantity = 0
        two_batch_item.name = "Changed"
        fetched = await store.get_stock_item(two_batch_item.id)

        assert fetched.batches[0].quantity == 5
        assert fetched.name == "Oil Filter"
        assert fetched.version == 1

    async def test_version_conflict(self, two_batch_item):
        store = InMemoryWorkshopStore()
        saved = await store.save_stock_item(two_batch_item)
        await store.save_stock_item(saved)

        with pytest.raises(StaleReferenceError):
            await store.save_stock_item(saved)

    async def test_new_item_over_existing_rejected(self, two_batch_item):
        store = InMemoryWorkshopStore()
        await store.save_stock_item(two_batch_item)

        with pytest.raises(StaleReferenceError):
            await store.save_stock_item(two_batch_item)

    async def test_commit_settlement_checks_all_versions_first(
        self, make_item, draft_card
    ):
        store = InMemoryWorkshopStore()
        fresh = await store.save_stock_item(make_item("Fresh", [(date(2024, 1, 1), 5, 1.0)]))
        stale = await store.save_stock_item(make_item("Stale", [(date(2024, 1, 1), 5, 1.0)]))
        await store.save_stock_item(stale)

        context = ConsumptionContext(consumed_on=date(2024, 3, 1))
        consume(fresh, 1, CostingMethod.FIFO, context)
        card = draft_card.model_copy(update={"status": JobCardStatus.COMPLETED})

        with pytest.raises(StaleReferenceError):
            await store.commit_settlement([fresh, stale], card)

        assert (await store.get_stock_item(fresh.id)).version == 1
        assert await store.get_job_card(draft_card.id) is None

    async def test_record_ids_assigned(self, two_batch_item):
        store = InMemoryWorkshopStore()
        consume(
            two_batch_item,
            1,
            CostingMethod.FIFO,
            ConsumptionContext(consumed_on=date(2024, 3, 1)),
        )

        saved = await store.save_stock_item(two_batch_item)

        assert saved.usage_history[0].id == 1

    async def test_job_cards_newest_first(self):
        store = InMemoryWorkshopStore()
        await store.save_job_card(JobCard(title="Old", job_date=date(2024, 1, 1)))
        await store.save_job_card(JobCard(title="New", job_date=date(2024, 5, 1)))

        assert [c.title for c in await store.load_job_cards()] == ["New", "Old"]

    async def test_commit_job_card_deletion(self, two_batch_item, draft_card):
        store = InMemoryWorkshopStore()
        item = await store.save_stock_item(two_batch_item)
        card = await store.save_job_card(draft_card)
        add_batch(item, date(2024, 3, 1), 1, 50.0)

        [saved] = await store.commit_job_card_deletion(card, [item])

        assert saved.version == 2
        assert await store.get_job_card(draft_card.id) is None
        assert await store.delete_job_card(draft_card.id) is False

    async def test_job_card_versions(self, draft_card):
        store = InMemoryWorkshopStore()
        saved = await store.save_job_card(draft_card)
        edited = await store.save_job_card(saved.model_copy(update={"title": "Edited"}))

        assert (saved.version, edited.version) == (1, 2)
        with pytest.raises(StaleReferenceError):
            await store.save_job_card(saved)
        with pytest.raises(StaleReferenceError):
            await store.save_job_card(draft_card)

    async def test_settling_a_deleted_card_moves_no_stock(self, two_batch_item, draft_card):
        store = InMemoryWorkshopStore()
        item = await store.save_stock_item(two_batch_item)
        draft = await store.save_job_card(draft_card)
        await store.delete_job_card(draft.id)

        consume(item, 7, CostingMethod.FIFO, ConsumptionContext(consumed_on=date(2024, 3, 1)))
        card = draft.model_copy(update={"status": JobCardStatus.COMPLETED})

        with pytest.raises(StaleReferenceError):
            await store.commit_settlement([item], card)

        assert await store.get_job_card(draft.id) is None
        assert (await store.get_stock_item(item.id)).total_quantity == 10

    async def test_commit_stock_items_is_all_or_nothing(self, make_item):
        store = InMemoryWorkshopStore()
        bolt = await store.save_stock_item(make_item("Bolt", [(date(2024, 1, 1), 5, 1.0)]))
        nut = await store.save_stock_item(make_item("Nut", [(date(2024, 1, 1), 9, 0.5)]))
        await store.save_stock_item(nut)
        add_batch(bolt, date(2024, 2, 1), 10, 1.2)

        with pytest.raises(StaleReferenceError):
            await store.commit_stock_items([bolt, nut])

        assert (await store.get_stock_item(bolt.id)).total_quantity == 5

        [saved_bolt] = await store.commit_stock_items([bolt])
        assert saved_bolt.version == 2

    async def test_assets(self):
        store = InMemoryWorkshopStore()
        await store.save_asset("AST-1", "Loader")
        assert await store.get_asset_name("AST-1") == "Loader"
        assert await store.get_asset_name("AST-2") is None


class TestSettingsCostingPolicySource:
    async def test_explicit_method(self):
        source = SettingsCostingPolicySource(CostingMethod.WEIGHTED_AVERAGE)
        assert await source.get_costing_method() == CostingMethod.WEIGHTED_AVERAGE

    async def test_default_from_settings(self):
        mock_settings = MagicMock()
        mock_settings.costing.default_method = "WEIGHTED_AVERAGE"
        with patch(
            "src.infrastructure.storage.memory.policy_source.get_settings",
            return_value=mock_settings,
        ):
            source = SettingsCostingPolicySource()
        assert await source.get_costing_method() == CostingMethod.WEIGHTED_AVERAGE

    async def test_set(self):
        source = SettingsCostingPolicySource(CostingMethod.FIFO)
        await source.set_costing_method(CostingMethod.WEIGHTED_AVERAGE)
        assert await source.get_costing_method() == CostingMethod.WEIGHTED_AVERAGE
