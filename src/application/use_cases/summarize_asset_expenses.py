"""Asset expense report use case."""

import math
from dataclasses import dataclass

from src.application.dto.responses import AssetExpenseListResponse, AssetExpenseResponse
from src.config import get_logger
from src.core.interfaces.workshop_store import IWorkshopStore
from src.core.services.asset_expenses import AssetExpense, summarize_asset_expenses
from src.core.services.costing_engine import round_currency

logger = get_logger(__name__)


@dataclass
class AssetExpenseReport:
    """Per-asset expenses with display names."""

    expenses: list[AssetExpense]
    asset_names: dict[str, str]

    @property
    def total_cost(self) -> float:
        return math.fsum(e.total_cost for e in self.expenses)


class AssetExpenseReportUseCase:
    """Total completed job card costs per asset."""

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

    async def execute(self) -> AssetExpenseReport:
        """Execute report use case."""
        store = await self._get_store()
        expenses = summarize_asset_expenses(await store.load_job_cards())

        names: dict[str, str] = {}
        for expense in expenses:
            if expense.asset_id:
                name = await store.get_asset_name(expense.asset_id)
                if name:
                    names[expense.asset_id] = name

        logger.info("asset_expense_report", assets=len(expenses))
        return AssetExpenseReport(expenses=expenses, asset_names=names)

    def to_response(self, report: AssetExpenseReport) -> AssetExpenseListResponse:
        """Convert result to API response."""
        return AssetExpenseListResponse(
            assets=[
                AssetExpenseResponse(
                    asset_id=e.asset_id,
                    asset_name=report.asset_names.get(e.asset_id) if e.asset_id else None,
                    job_count=e.job_count,
                    parts_cost=round_currency(e.parts_cost),
                    labor_cost=round_currency(e.labor_cost),
                    total_cost=round_currency(e.total_cost),
                )
                for e in report.expenses
            ],
            total_cost=round_currency(report.total_cost),
        )
