"""Reporting endpoints."""

from fastapi import APIRouter, Depends

from src.api.dependencies import get_asset_expense_use_case
from src.application.dto.responses import AssetExpenseListResponse
from src.application.use_cases import AssetExpenseReportUseCase

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("/asset-expenses", response_model=AssetExpenseListResponse)
async def asset_expenses(
    use_case: AssetExpenseReportUseCase = Depends(get_asset_expense_use_case),
) -> AssetExpenseListResponse:
    """Parts and labour per asset over completed job cards."""
    report = await use_case.execute()
    return use_case.to_response(report)
