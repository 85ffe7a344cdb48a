"""Per-asset expense totals from completed job cards."""

from collections.abc import Iterable
from dataclasses import dataclass

from src.core.entities.identifiers import AssetId
from src.core.entities.job_card import JobCard


@dataclass
class AssetExpense:
    """Parts and labour spent on one asset."""

    asset_id: AssetId | None
    job_count: int = 0
    parts_cost: float = 0.0
    labor_cost: float = 0.0

    @property
    def total_cost(self) -> float:
        return self.parts_cost + self.labor_cost


def summarize_asset_expenses(job_cards: Iterable[JobCard]) -> list[AssetExpense]:
    """
    Total completed job card costs per asset, most expensive first.

    Drafts are ignored: their costs are not frozen yet. Cards without an
    asset are grouped under ``asset_id=None``.
    """
    totals: dict[AssetId | None, AssetExpense] = {}
    for card in job_cards:
        if not card.is_completed:
            continue
        expense = totals.setdefault(card.asset_id, AssetExpense(asset_id=card.asset_id))
        expense.job_count += 1
        expense.parts_cost += card.items_cost
        expense.labor_cost += card.labor_cost

    return sorted(totals.values(), key=lambda e: e.total_cost, reverse=True)
