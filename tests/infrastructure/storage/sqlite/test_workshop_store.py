"""Tests for SQLite workshop store."""

from datetime import UTC, date, datetime

import pytest

from src.core.entities.inventory import CostingMethod, StockItem
from src.core.entities.job_card import JobCard, JobCardLineItem, JobCardStatus
from src.core.exceptions import StaleReferenceError
from src.core.services.batch_ledger import add_batch
from src.core.services.consumption import ConsumptionContext, consume, write_off
from src.infrastructure.storage.sqlite.connection import get_connection
from src.infrastructure.storage.sqlite.workshop_store import SQLiteWorkshopStore


class TestStockItems:
    """Stock item persistence with optimistic versioning."""

    async def test_insert_and_get(self, sqlite_db, two_batch_item):
        store = SQLiteWorkshopStore()

        saved = await store.save_stock_item(two_batch_item)
        fetched = await store.get_stock_item(two_batch_item.id)

        assert saved.version == 1
        assert fetched is not None
        assert fetched.version == 1
        assert fetched.name == "Oil Filter"
        assert [b.batch_id for b in fetched.batches] == [b.batch_id for b in two_batch_item.batches]
        assert [(b.quantity, b.unit_cost) for b in fetched.batches] == [(5, 10.0), (5, 20.0)]
        assert fetched.total_quantity == 10
        assert fetched.average_cost == pytest.approx(15.0)
        assert fetched.created_at == two_batch_item.created_at

    async def test_get_missing(self, sqlite_db):
        store = SQLiteWorkshopStore()
        assert await store.get_stock_item("STK-none") is None

    async def test_update_bumps_version_and_replaces_batches(self, sqlite_db, two_batch_item):
        store = SQLiteWorkshopStore()
        saved = await store.save_stock_item(two_batch_item)

        add_batch(saved, date(2024, 3, 1), 2, 30.0)
        updated = await store.save_stock_item(saved)
        fetched = await store.get_stock_item(saved.id)

        assert updated.version == 2
        assert fetched.version == 2
        assert len(fetched.batches) == 3
        assert fetched.total_quantity == 12

    async def test_stale_update_rejected(self, sqlite_db, two_batch_item):
        store = SQLiteWorkshopStore()
        saved = await store.save_stock_item(two_batch_item)
        first = saved.model_copy(deep=True)
        second = saved.model_copy(deep=True)

        add_batch(first, date(2024, 3, 1), 1, 30.0)
        await store.save_stock_item(first)
        add_batch(second, date(2024, 3, 1), 1, 40.0)

        with pytest.raises(StaleReferenceError):
            await store.save_stock_item(second)

        fetched = await store.get_stock_item(saved.id)
        assert fetched.version == 2
        assert fetched.batches[-1].unit_cost == 30.0

    async def test_insert_over_existing_rejected(self, sqlite_db, two_batch_item):
        store = SQLiteWorkshopStore()
        await store.save_stock_item(two_batch_item)

        with pytest.raises(StaleReferenceError):
            await store.save_stock_item(two_batch_item)

    async def test_history_rows_get_ids_once(self, sqlite_db, two_batch_item):
        store = SQLiteWorkshopStore()
        saved = await store.save_stock_item(two_batch_item)

        consume(saved, 2, CostingMethod.FIFO, ConsumptionContext(consumed_on=date(2024, 3, 1)))
        write_off(
            saved,
            1,
            CostingMethod.FIFO,
            reason="Damaged",
            written_off_on=date(2024, 3, 2),
        )
        saved = await store.save_stock_item(saved)
        assert saved.usage_history[0].id is not None
        assert saved.writeoffs[0].id is not None

        # Re-saving must not duplicate history rows
        saved = await store.save_stock_item(saved)
        fetched = await store.get_stock_item(saved.id)

        assert len(fetched.usage_history) == 1
        assert fetched.usage_history[0].cost == pytest.approx(20.0)
        assert fetched.usage_history[0].costing_method == CostingMethod.FIFO
        assert len(fetched.writeoffs) == 1
        assert fetched.writeoffs[0].reason == "Damaged"
        assert fetched.total_quantity == 7

    async def test_load_all_sorted_by_name(self, sqlite_db, make_item):
        store = SQLiteWorkshopStore()
        await store.save_stock_item(make_item("Wiper", [(date(2024, 1, 1), 2, 5.0)]))
        await store.save_stock_item(make_item("Bulb", [(date(2024, 1, 1), 3, 1.0)]))
        await store.save_stock_item(StockItem(name="Empty"))

        items = await store.load_stock_items()

        assert [i.name for i in items] == ["Bulb", "Empty", "Wiper"]
        assert items[0].batches[0].quantity == 3
        assert items[1].batches == []


class TestJobCards:
    async def test_save_and_get(self, sqlite_db, draft_card):
        store = SQLiteWorkshopStore()

        await store.save_job_card(draft_card)
        fetched = await store.get_job_card(draft_card.id)

        assert fetched is not None
        assert fetched.title == "Service truck 12"
        assert fetched.status == JobCardStatus.DRAFT
        assert fetched.costing_method is None
        assert [line.description for line in fetched.items] == ["Filters", "Rags"]
        assert fetched.items[1].actual_cost == 4.5
        assert fetched.labor_cost == 50.0

    async def test_update_replaces_lines(self, sqlite_db, draft_card):
        store = SQLiteWorkshopStore()
        saved = await store.save_job_card(draft_card)

        completed = saved.model_copy(deep=True)
        completed.items = completed.items[:1]
        completed.items[0].actual_cost = 90.0
        completed.status = JobCardStatus.COMPLETED
        completed.costing_method = CostingMethod.FIFO
        completed.completed_at = datetime(2024, 3, 2, tzinfo=UTC)
        updated = await store.save_job_card(completed)

        fetched = await store.get_job_card(draft_card.id)
        assert updated.version == 2
        assert fetched.version == 2
        assert fetched.is_completed
        assert fetched.costing_method == CostingMethod.FIFO
        assert fetched.completed_at == datetime(2024, 3, 2, tzinfo=UTC)
        assert len(fetched.items) == 1
        assert fetched.items_cost == 90.0

    async def test_load_newest_first(self, sqlite_db):
        store = SQLiteWorkshopStore()
        await store.save_job_card(JobCard(title="Old", job_date=date(2024, 1, 1)))
        await store.save_job_card(JobCard(title="New", job_date=date(2024, 6, 1)))

        cards = await store.load_job_cards()

        assert [c.title for c in cards] == ["New", "Old"]

    async def test_delete_cascades_lines(self, sqlite_db, draft_card):
        store = SQLiteWorkshopStore()
        await store.save_job_card(draft_card)

        assert await store.delete_job_card(draft_card.id) is True
        assert await store.delete_job_card(draft_card.id) is False
        assert await store.get_job_card(draft_card.id) is None

        async with get_connection() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM job_card_items")
            row = await cursor.fetchone()
        assert row[0] == 0

    async def test_stale_card_rejected(self, sqlite_db, draft_card):
        store = SQLiteWorkshopStore()
        saved = await store.save_job_card(draft_card)
        first = saved.model_copy(update={"title": "First"})
        second = saved.model_copy(update={"title": "Second"})

        await store.save_job_card(first)
        with pytest.raises(StaleReferenceError):
            await store.save_job_card(second)

        assert (await store.get_job_card(draft_card.id)).title == "First"

    async def test_deleted_card_is_not_written_back(self, sqlite_db, draft_card):
        store = SQLiteWorkshopStore()
        saved = await store.save_job_card(draft_card)
        await store.delete_job_card(saved.id)

        with pytest.raises(StaleReferenceError):
            await store.save_job_card(saved.model_copy(update={"title": "Edited"}))

        assert await store.get_job_card(saved.id) is None


class TestCommitPoints:
    """Multi-entity commits are all-or-nothing."""

    async def test_commit_settlement(self, sqlite_db, two_batch_item, draft_card):
        store = SQLiteWorkshopStore()
        item = await store.save_stock_item(two_batch_item)
        draft = await store.save_job_card(draft_card)

        consume(item, 7, CostingMethod.FIFO, ConsumptionContext(consumed_on=date(2024, 3, 1)))
        card = draft.model_copy(update={"status": JobCardStatus.COMPLETED})

        saved, committed = await store.commit_settlement([item], card)

        assert saved[0].version == 2
        assert committed.version == 2
        assert saved[0].usage_history[0].id is not None
        assert (await store.get_job_card(card.id)).is_completed

    async def test_stale_item_rolls_back_everything(self, sqlite_db, make_item, draft_card):
        store = SQLiteWorkshopStore()
        fresh = await store.save_stock_item(make_item("Fresh", [(date(2024, 1, 1), 5, 1.0)]))
        stale = await store.save_stock_item(make_item("Stale", [(date(2024, 1, 1), 5, 1.0)]))
        draft = await store.save_job_card(draft_card)

        # Someone else updates "Stale" after it was loaded
        concurrent = stale.model_copy(deep=True)
        add_batch(concurrent, date(2024, 2, 1), 1, 9.0)
        await store.save_stock_item(concurrent)

        consume(fresh, 1, CostingMethod.FIFO, ConsumptionContext(consumed_on=date(2024, 3, 1)))
        consume(stale, 1, CostingMethod.FIFO, ConsumptionContext(consumed_on=date(2024, 3, 1)))
        card = draft.model_copy(update={"status": JobCardStatus.COMPLETED})

        with pytest.raises(StaleReferenceError):
            await store.commit_settlement([fresh, stale], card)

        fetched_fresh = await store.get_stock_item(fresh.id)
        assert fetched_fresh.version == 1
        assert fetched_fresh.total_quantity == 5
        assert fetched_fresh.usage_history == []
        assert (await store.get_job_card(draft_card.id)).status == JobCardStatus.DRAFT

    async def test_commit_job_card_deletion(self, sqlite_db, two_batch_item, draft_card):
        store = SQLiteWorkshopStore()
        item = await store.save_stock_item(two_batch_item)
        card = await store.save_job_card(draft_card)

        add_batch(item, date(2024, 3, 1), 7, 12.0)
        saved = await store.commit_job_card_deletion(card, [item])

        assert saved[0].total_quantity == 17
        assert await store.get_job_card(draft_card.id) is None

    async def test_settling_a_deleted_card_moves_no_stock(
        self, sqlite_db, two_batch_item, draft_card
    ):
        store = SQLiteWorkshopStore()
        item = await store.save_stock_item(two_batch_item)
        draft = await store.save_job_card(draft_card)
        await store.delete_job_card(draft.id)

        consume(item, 7, CostingMethod.FIFO, ConsumptionContext(consumed_on=date(2024, 3, 1)))
        card = draft.model_copy(update={"status": JobCardStatus.COMPLETED})

        with pytest.raises(StaleReferenceError):
            await store.commit_settlement([item], card)

        assert await store.get_job_card(draft.id) is None
        fetched = await store.get_stock_item(item.id)
        assert fetched.version == 1
        assert fetched.total_quantity == 10
        assert fetched.usage_history == []

    async def test_settling_a_card_twice_is_rejected(
        self, sqlite_db, make_item, draft_card
    ):
        store = SQLiteWorkshopStore()
        stocked = await store.save_stock_item(
            make_item("Filter", [(date(2024, 1, 1), 10, 5.0)], stock_id="STK-filter")
        )
        draft = await store.save_job_card(draft_card)
        context = ConsumptionContext(consumed_on=date(2024, 3, 1))

        # Two settlements both loaded the same draft
        first = stocked.model_copy(deep=True)
        consume(first, 6, CostingMethod.FIFO, context)
        completed = draft.model_copy(update={"status": JobCardStatus.COMPLETED})
        [after_first], _ = await store.commit_settlement([first], completed)

        second = after_first.model_copy(deep=True)
        consume(second, 4, CostingMethod.FIFO, context)
        with pytest.raises(StaleReferenceError):
            await store.commit_settlement([second], completed)

        fetched = await store.get_stock_item(stocked.id)
        assert fetched.total_quantity == 4
        assert len(fetched.usage_history) == 1

    async def test_deletion_of_a_changed_card_rejected(
        self, sqlite_db, two_batch_item, draft_card
    ):
        store = SQLiteWorkshopStore()
        item = await store.save_stock_item(two_batch_item)
        loaded = await store.save_job_card(draft_card)
        await store.save_job_card(
            loaded.model_copy(update={"status": JobCardStatus.COMPLETED})
        )

        with pytest.raises(StaleReferenceError):
            await store.commit_job_card_deletion(loaded, [])

        assert (await store.get_job_card(loaded.id)).is_completed
        assert (await store.get_stock_item(item.id)).version == 1

    async def test_commit_stock_items(self, sqlite_db, make_item):
        store = SQLiteWorkshopStore()
        bolt = make_item("Bolt", [(date(2024, 1, 1), 5, 1.0)])
        nut = make_item("Nut", [(date(2024, 1, 1), 9, 0.5)])

        saved = await store.commit_stock_items([bolt, nut])

        assert [i.version for i in saved] == [1, 1]
        assert [i.name for i in await store.load_stock_items()] == ["Bolt", "Nut"]

    async def test_commit_stock_items_is_all_or_nothing(self, sqlite_db, make_item):
        store = SQLiteWorkshopStore()
        bolt = await store.save_stock_item(make_item("Bolt", [(date(2024, 1, 1), 5, 1.0)]))
        nut = await store.save_stock_item(make_item("Nut", [(date(2024, 1, 1), 9, 0.5)]))
        await store.save_stock_item(nut)

        add_batch(bolt, date(2024, 2, 1), 10, 1.2)
        add_batch(nut, date(2024, 2, 1), 10, 0.6)
        washer = make_item("Washer", [(date(2024, 2, 1), 100, 0.1)])

        with pytest.raises(StaleReferenceError):
            await store.commit_stock_items([bolt, washer, nut])

        fetched = await store.get_stock_item(bolt.id)
        assert fetched.version == 1
        assert fetched.total_quantity == 5
        assert await store.get_stock_item(washer.id) is None


class TestAssets:
    async def test_upsert_and_lookup(self, sqlite_db):
        store = SQLiteWorkshopStore()

        assert await store.get_asset_name("AST-1") is None
        await store.save_asset("AST-1", "Truck")
        await store.save_asset("AST-1", "Truck 1")

        assert await store.get_asset_name("AST-1") == "Truck 1"


class TestJobCardLineTypes:
    async def test_sundry_line_has_no_stock_id(self, sqlite_db):
        store = SQLiteWorkshopStore()
        card = JobCard(title="Wash", items=[JobCardLineItem(description="Soap", actual_cost=2)])
        await store.save_job_card(card)

        fetched = await store.get_job_card(card.id)

        assert fetched.items[0].stock_id is None
        assert not fetched.items[0].is_stocked
