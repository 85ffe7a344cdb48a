"""Tests for job card settlement and restoration."""

from datetime import UTC, date, datetime

import pytest

from src.core.entities.inventory import CostingMethod
from src.core.entities.job_card import JobCard, JobCardLineItem, JobCardStatus
from src.core.exceptions import (
    InsufficientStockError,
    InvalidQuantityError,
    JobCardStateError,
    StockItemNotFoundError,
)
from src.core.services.batch_ledger import add_batch, check_invariants
from src.core.services.settlement import JobCardSettlement, RestorationMode, ensure_draft


@pytest.fixture
def settlement() -> JobCardSettlement:
    return JobCardSettlement()


def _card(stock_id: str, *quantities: float) -> JobCard:
    return JobCard(
        title="Multi-line",
        job_date=date(2024, 3, 1),
        items=[JobCardLineItem(stock_id=stock_id, quantity=q) for q in quantities],
    )


class TestSettle:
    """Tests for settling draft job cards."""

    def test_fifo_settlement(self, settlement, draft_card, two_batch_item):
        completed_at = datetime(2024, 3, 2, tzinfo=UTC)
        result = settlement.settle(
            draft_card,
            {two_batch_item.id: two_batch_item},
            CostingMethod.FIFO,
            asset_name="Truck 12",
            completed_at=completed_at,
        )

        card = result.job_card
        assert card.status == JobCardStatus.COMPLETED
        assert card.costing_method == CostingMethod.FIFO
        assert card.completed_at == completed_at
        assert card.items[0].actual_cost == pytest.approx(90.0)
        assert card.items[1].actual_cost == 4.5
        assert result.total_cost == pytest.approx(144.5)

        [updated] = result.stock_items
        assert updated.total_quantity == 3
        check_invariants(updated)

        [record] = result.usage_records
        assert record.asset_name == "Truck 12"
        assert record.job_card_id == draft_card.id
        assert updated.usage_history == [record]

    def test_weighted_average_settlement(self, settlement, draft_card, two_batch_item):
        result = settlement.settle(
            draft_card, {two_batch_item.id: two_batch_item}, CostingMethod.WEIGHTED_AVERAGE
        )

        assert result.job_card.items[0].actual_cost == pytest.approx(105.0)
        assert result.job_card.costing_method == CostingMethod.WEIGHTED_AVERAGE
        assert result.stock_items[0].average_cost == pytest.approx(15.0)

    def test_inputs_left_untouched(self, settlement, draft_card, two_batch_item):
        card_before = draft_card.model_dump()
        item_before = two_batch_item.model_dump()

        settlement.settle(draft_card, {two_batch_item.id: two_batch_item}, CostingMethod.FIFO)

        assert draft_card.model_dump() == card_before
        assert two_batch_item.model_dump() == item_before

    def test_lines_on_same_item_cost_in_order(self, settlement, two_batch_item):
        card = _card(two_batch_item.id, 3, 4)
        result = settlement.settle(card, {two_batch_item.id: two_batch_item}, CostingMethod.FIFO)

        assert [line.actual_cost for line in result.job_card.items] == pytest.approx([30.0, 60.0])
        assert len(result.stock_items) == 1
        assert len(result.usage_records) == 2

    def test_sundry_only_card(self, settlement):
        card = JobCard(
            title="Wash",
            items=[JobCardLineItem(description="Soap", actual_cost=3.0)],
            labor_cost=10.0,
        )
        result = settlement.settle(card, {}, CostingMethod.FIFO)

        assert result.stock_items == []
        assert result.total_cost == 13.0

    def test_default_completed_at_is_now(self, settlement, draft_card, two_batch_item):
        stock = {two_batch_item.id: two_batch_item}
        result = settlement.settle(draft_card, stock, CostingMethod.FIFO)
        assert result.job_card.completed_at is not None
        assert result.job_card.completed_at.tzinfo is not None


class TestSettleValidation:
    """Validation failures must leave everything unchanged."""

    def test_insufficient_stock(self, settlement, two_batch_item):
        card = _card(two_batch_item.id, 11)
        before = two_batch_item.model_dump()

        with pytest.raises(InsufficientStockError) as exc_info:
            settlement.settle(card, {two_batch_item.id: two_batch_item}, CostingMethod.FIFO)

        assert exc_info.value.details["requested"] == 11
        assert exc_info.value.details["available"] == 10
        assert "Oil Filter" in exc_info.value.message
        assert two_batch_item.model_dump() == before
        assert card.status == JobCardStatus.DRAFT

    def test_demand_is_aggregated_per_item(self, settlement, two_batch_item):
        card = _card(two_batch_item.id, 6, 5)
        with pytest.raises(InsufficientStockError) as exc_info:
            settlement.settle(card, {two_batch_item.id: two_batch_item}, CostingMethod.FIFO)
        assert exc_info.value.details["requested"] == 11

    def test_exact_quantity_allowed(self, settlement, two_batch_item):
        card = _card(two_batch_item.id, 10)
        result = settlement.settle(card, {two_batch_item.id: two_batch_item}, CostingMethod.FIFO)
        assert result.stock_items[0].is_empty

    def test_missing_stock_item(self, settlement):
        card = _card("STK-missing", 1)
        with pytest.raises(StockItemNotFoundError):
            settlement.settle(card, {}, CostingMethod.FIFO)

    @pytest.mark.parametrize("quantity", [0, -2])
    def test_invalid_line_quantity(self, settlement, two_batch_item, quantity):
        card = _card(two_batch_item.id, quantity)
        with pytest.raises(InvalidQuantityError):
            settlement.settle(card, {two_batch_item.id: two_batch_item}, CostingMethod.FIFO)

    def test_cannot_settle_twice(self, settlement, draft_card, two_batch_item):
        stock = {two_batch_item.id: two_batch_item}
        result = settlement.settle(draft_card, stock, CostingMethod.FIFO)

        with pytest.raises(JobCardStateError) as exc_info:
            settlement.settle(result.job_card, stock, CostingMethod.FIFO)
        assert exc_info.value.details["operation"] == "settle"

    def test_ensure_draft(self, draft_card):
        ensure_draft(draft_card, "edit")
        completed = draft_card.model_copy(update={"status": JobCardStatus.COMPLETED})
        with pytest.raises(JobCardStateError):
            ensure_draft(completed, "edit")


class TestPreview:
    """Advisory costing."""

    def test_preview_matches_settlement(self, settlement, draft_card, two_batch_item):
        stock = {two_batch_item.id: two_batch_item}
        preview = settlement.preview(draft_card, stock, CostingMethod.FIFO)

        assert [line.cost for line in preview.lines] == pytest.approx([90.0, 4.5])
        assert preview.items_cost == pytest.approx(94.5)
        assert preview.total_cost == pytest.approx(144.5)
        assert not preview.has_shortfall

    def test_preview_is_idempotent(self, settlement, draft_card, two_batch_item):
        stock = {two_batch_item.id: two_batch_item}
        item_before = two_batch_item.model_dump()

        first = settlement.preview(draft_card, stock, CostingMethod.WEIGHTED_AVERAGE)
        second = settlement.preview(draft_card, stock, CostingMethod.WEIGHTED_AVERAGE)

        assert first.total_cost == second.total_cost == pytest.approx(159.5)
        assert two_batch_item.model_dump() == item_before
        assert draft_card.status == JobCardStatus.DRAFT

    def test_preview_reports_shortfall(self, settlement, two_batch_item):
        preview = settlement.preview(
            _card(two_batch_item.id, 12), {two_batch_item.id: two_batch_item}, CostingMethod.FIFO
        )
        assert preview.has_shortfall
        assert preview.lines[0].breakdown.shortfall == pytest.approx(2.0)

    def test_preview_prices_unknown_and_invalid_lines_at_zero(self, settlement, two_batch_item):
        card = JobCard(
            title="Odd",
            items=[
                JobCardLineItem(stock_id="STK-missing", quantity=1),
                JobCardLineItem(stock_id=two_batch_item.id, quantity=0),
            ],
        )
        preview = settlement.preview(card, {two_batch_item.id: two_batch_item}, CostingMethod.FIFO)

        assert [line.cost for line in preview.lines] == [0.0, 0.0]
        assert all(line.breakdown is None for line in preview.lines)


class TestRestoreForDeletion:
    """Stock returned when a completed card is deleted."""

    def _settled(self, settlement, draft_card, two_batch_item, method=CostingMethod.FIFO):
        result = settlement.settle(draft_card, {two_batch_item.id: two_batch_item}, method)
        return result.job_card, {item.id: item for item in result.stock_items}

    def test_reconstruct_restores_value(self, settlement, draft_card, two_batch_item):
        card, stock = self._settled(settlement, draft_card, two_batch_item)

        [restored] = settlement.restore_for_deletion(card, stock, RestorationMode.RECONSTRUCT)

        assert restored.total_quantity == 10
        assert restored.total_value == pytest.approx(150.0)
        new_batch = restored.batches[-1]
        assert new_batch.purchase_date == card.job_date
        assert new_batch.unit_cost == pytest.approx(90.0 / 7)
        assert new_batch.invoice_number == f"RESTORED:{card.id}"
        check_invariants(restored)

    def test_average_mode_uses_current_average(self, settlement, draft_card, two_batch_item):
        card, stock = self._settled(settlement, draft_card, two_batch_item)

        [restored] = settlement.restore_for_deletion(card, stock, RestorationMode.AVERAGE)

        # Remaining stock is 3 @ 20; the restored 7 come back at that average
        assert [(b.quantity, b.unit_cost) for b in restored.batches] == [(3, 20.0), (7, 20.0)]
        assert restored.batches[1].invoice_number == f"RESTORED:{card.id}"
        check_invariants(restored)

    def test_restored_stock_leaves_later_purchases_alone(self, settlement, make_item):
        item = make_item("Wiper", [(date(2024, 1, 1), 5, 10.0)])
        card = JobCard(
            title="Wipers",
            job_date=date(2024, 1, 5),
            items=[JobCardLineItem(stock_id=item.id, quantity=5)],
        )
        settled = settlement.settle(card, {item.id: item}, CostingMethod.FIFO)
        [emptied] = settled.stock_items
        add_batch(emptied, date(2024, 3, 1), 5, 20.0, invoice_number="INV-MAR")
        add_batch(emptied, date(2024, 6, 1), 5, 10.0, invoice_number="INV-JUN")

        [restored] = settlement.restore_for_deletion(
            settled.job_card, {emptied.id: emptied}, RestorationMode.RECONSTRUCT
        )

        assert [
            (b.purchase_date, b.quantity, b.unit_cost, b.invoice_number)
            for b in restored.batches
        ] == [
            (date(2024, 1, 5), 5, 10.0, f"RESTORED:{card.id}"),
            (date(2024, 3, 1), 5, 20.0, "INV-MAR"),
            (date(2024, 6, 1), 5, 10.0, "INV-JUN"),
        ]
        check_invariants(restored)

    def test_average_mode_on_empty_item_uses_charged_cost(self, settlement, two_batch_item):
        card, stock = self._settled(settlement, _card(two_batch_item.id, 10), two_batch_item)

        [restored] = settlement.restore_for_deletion(
            card, stock, RestorationMode.AVERAGE, restored_on=date(2024, 6, 1)
        )

        assert restored.total_quantity == 10
        assert restored.average_cost == pytest.approx(15.0)
        assert restored.batches[0].purchase_date == date(2024, 6, 1)

    def test_draft_restores_nothing(self, settlement, draft_card, two_batch_item):
        restored = settlement.restore_for_deletion(
            draft_card, {two_batch_item.id: two_batch_item}, RestorationMode.RECONSTRUCT
        )
        assert restored == []

    def test_missing_item_is_skipped(self, settlement, draft_card, two_batch_item):
        card, _ = self._settled(settlement, draft_card, two_batch_item)
        assert settlement.restore_for_deletion(card, {}, RestorationMode.RECONSTRUCT) == []

    def test_inputs_left_untouched(self, settlement, draft_card, two_batch_item):
        card, stock = self._settled(settlement, draft_card, two_batch_item)
        before = stock[two_batch_item.id].model_dump()

        settlement.restore_for_deletion(card, stock, RestorationMode.RECONSTRUCT)

        assert stock[two_batch_item.id].model_dump() == before
