"""
Job card settlement.

Settling a draft job card validates stock for every stocked line, freezes
each line's cost, consumes the stock and marks the card completed. All work
happens on copies: the caller receives the completed card and the updated
stock items and persists them at a single commit point. If any line fails
validation nothing is mutated.
"""

import math
from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from enum import Enum

from src.config import get_logger
from src.core.entities.identifiers import StockId
from src.core.entities.inventory import CostingMethod, StockItem, UsageRecord
from src.core.entities.job_card import JobCard, JobCardStatus
from src.core.exceptions import (
    InsufficientStockError,
    InvalidQuantityError,
    JobCardStateError,
    StockItemNotFoundError,
)
from src.core.services.batch_ledger import QUANTITY_EPSILON, add_batch
from src.core.services.consumption import ConsumptionContext, consume
from src.core.services.costing_engine import CostBreakdown, preview_cost

logger = get_logger(__name__)


class RestorationMode(str, Enum):
    """How stock comes back when a completed job card is deleted.

    RECONSTRUCT re-adds each line as a batch at the unit cost actually
    charged. AVERAGE only restores the quantity, booked at the item's
    current average cost.
    """

    RECONSTRUCT = "reconstruct"
    AVERAGE = "average"


@dataclass
class SettlementResult:
    """Outcome of settling a job card."""

    job_card: JobCard
    stock_items: list[StockItem]
    usage_records: list[UsageRecord] = field(default_factory=list)

    @property
    def total_cost(self) -> float:
        return self.job_card.total_cost


@dataclass
class LinePreview:
    """Advisory cost of one job card line."""

    index: int
    stock_id: StockId | None
    quantity: float
    cost: float
    breakdown: CostBreakdown | None = None


@dataclass
class JobCardPreview:
    """Advisory costing of a whole job card."""

    method: CostingMethod
    lines: list[LinePreview]
    labor_cost: float

    @property
    def items_cost(self) -> float:
        return math.fsum(line.cost for line in self.lines)

    @property
    def total_cost(self) -> float:
        return self.items_cost + self.labor_cost

    @property
    def has_shortfall(self) -> bool:
        return any(
            line.breakdown is not None and not line.breakdown.is_fully_covered
            for line in self.lines
        )


def ensure_draft(card: JobCard, operation: str) -> None:
    """Raise if the card is no longer editable."""
    if card.status != JobCardStatus.DRAFT:
        raise JobCardStateError(card.id, card.status.value, operation)


def _demand_by_item(card: JobCard) -> dict[StockId, float]:
    demand: dict[StockId, float] = defaultdict(float)
    for line in card.items:
        if line.is_stocked:
            demand[line.stock_id] += line.quantity  # type: ignore[index]
    return dict(demand)


class JobCardSettlement:
    """
    Settles job cards against the stock ledger.

    The costing method is passed to every call; the settlement holds no
    policy state of its own.
    """

    def validate(
        self,
        card: JobCard,
        stock_items: Mapping[StockId, StockItem],
    ) -> None:
        """
        Check that the card can be settled without mutating anything.

        Demand is summed per stock item so two lines drawing on the same
        item are checked together.

        Raises:
            JobCardStateError: If the card is already completed.
            InvalidQuantityError: If a stocked line has quantity <= 0.
            StockItemNotFoundError: If a line references unknown stock.
            InsufficientStockError: If demand exceeds the available quantity.
        """
        ensure_draft(card, "settle")

        for line in card.items:
            if line.is_stocked and line.quantity <= 0:
                raise InvalidQuantityError(line.quantity)

        for stock_id, requested in _demand_by_item(card).items():
            item = stock_items.get(stock_id)
            if item is None:
                raise StockItemNotFoundError(stock_id)
            if requested > item.total_quantity + QUANTITY_EPSILON:
                raise InsufficientStockError(
                    stock_id=stock_id,
                    requested=requested,
                    available=item.total_quantity,
                    name=item.name,
                )

    def preview(
        self,
        card: JobCard,
        stock_items: Mapping[StockId, StockItem],
        method: CostingMethod,
    ) -> JobCardPreview:
        """
        Advisory cost of every line under ``method``.

        Lines drawing on the same item are priced in order, each against
        the stock left by the previous ones. Unknown stock items and
        non-positive quantities price at zero; sundry lines keep their
        entered cost.
        """
        working = {
            stock_id: item.model_copy(deep=True) for stock_id, item in stock_items.items()
        }
        context = ConsumptionContext(consumed_on=card.job_date)
        lines: list[LinePreview] = []

        for index, line in enumerate(card.items):
            if not line.is_stocked:
                lines.append(LinePreview(index, None, line.quantity, line.actual_cost))
                continue

            item = working.get(line.stock_id)  # type: ignore[arg-type]
            if item is None or line.quantity <= 0:
                lines.append(LinePreview(index, line.stock_id, line.quantity, 0.0))
                continue

            breakdown = preview_cost(item, line.quantity, method)
            lines.append(
                LinePreview(index, line.stock_id, line.quantity, breakdown.total_cost, breakdown)
            )
            consume(item, line.quantity, method, context)

        return JobCardPreview(method=method, lines=lines, labor_cost=card.labor_cost)

    def settle(
        self,
        card: JobCard,
        stock_items: Mapping[StockId, StockItem],
        method: CostingMethod,
        *,
        asset_name: str = "Unknown",
        completed_at: datetime | None = None,
    ) -> SettlementResult:
        """
        Settle a draft job card.

        Args:
            card: Draft job card; left untouched.
            stock_items: Stock items referenced by the card, keyed by id;
                left untouched.
            method: Costing method to apply and record on the card.
            asset_name: Asset label for the usage records.
            completed_at: Completion timestamp (defaults to now).

        Returns:
            SettlementResult with the completed card, the updated copies
            of every referenced stock item and the usage records appended.
        """
        self.validate(card, stock_items)

        working = {
            stock_id: stock_items[stock_id].model_copy(deep=True)
            for stock_id in _demand_by_item(card)
        }
        completed = card.model_copy(deep=True)
        context = ConsumptionContext(
            consumed_on=card.job_date,
            job_card_id=card.id,
            job_card_title=card.title,
            asset_id=card.asset_id,
            asset_name=asset_name,
        )

        records: list[UsageRecord] = []
        for line in completed.items:
            if not line.is_stocked:
                continue
            item = working[line.stock_id]  # type: ignore[index]
            # Cost is frozen against the stock left by earlier lines
            line.actual_cost = preview_cost(item, line.quantity, method).total_cost
            records.append(consume(item, line.quantity, method, context))

        completed.status = JobCardStatus.COMPLETED
        completed.costing_method = method
        completed.completed_at = completed_at or datetime.now(UTC)

        logger.info(
            "job_card_settled",
            job_card_id=completed.id,
            method=method.value,
            lines=len(completed.items),
            items_cost=round(completed.items_cost, 4),
            total_cost=round(completed.total_cost, 4),
        )

        return SettlementResult(
            job_card=completed,
            stock_items=list(working.values()),
            usage_records=records,
        )

    def restore_for_deletion(
        self,
        card: JobCard,
        stock_items: Mapping[StockId, StockItem],
        mode: RestorationMode,
        *,
        restored_on: date | None = None,
    ) -> list[StockItem]:
        """
        Return consumed stock before a completed job card is deleted.

        Drafts consumed nothing and restore nothing. Lines whose stock item
        no longer exists are skipped. Restored quantities go through the
        batch ledger so the ledger invariants keep holding. Each line comes
        back as its own ``RESTORED:`` batch and never merges into a purchase
        batch, whose date and invoice must stay as bought.

        Returns:
            Updated copies of the stock items that received stock.
        """
        if not card.is_completed:
            return []

        working: dict[StockId, StockItem] = {}
        for line in card.items:
            if not line.is_stocked or line.quantity <= 0:
                continue
            stock_id = StockId(line.stock_id or "")
            source = working.get(stock_id) or stock_items.get(stock_id)
            if source is None:
                logger.warning(
                    "restore_skipped_missing_item",
                    job_card_id=card.id,
                    stock_id=line.stock_id,
                )
                continue
            item = working.setdefault(source.id, source.model_copy(deep=True))

            if mode == RestorationMode.RECONSTRUCT or item.is_empty:
                unit_cost = line.actual_cost / line.quantity
            else:
                unit_cost = item.average_cost

            add_batch(
                item,
                restored_on or card.job_date,
                line.quantity,
                unit_cost,
                invoice_number=f"RESTORED:{card.id}",
                merge_tolerance=0.0,
            )

        logger.info(
            "job_card_stock_restored",
            job_card_id=card.id,
            mode=mode.value,
            items=len(working),
        )
        return list(working.values())
