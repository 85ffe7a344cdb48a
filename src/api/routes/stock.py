"""Stock endpoints: receipts, write-offs, cost previews and ledger transfer."""

import math

from fastapi import APIRouter, Depends, status

from src.api.dependencies import (
    get_export_ledger_use_case,
    get_import_ledger_use_case,
    get_policy_source,
    get_receive_stock_use_case,
    get_store,
    get_write_off_use_case,
)
from src.application.dto.requests import (
    ImportLedgerRequest,
    ReceiveStockRequest,
    WriteOffStockRequest,
)
from src.application.dto.responses import (
    BatchDrawResponse,
    CostPreviewResponse,
    ErrorResponse,
    LedgerExportResponse,
    ReceiveStockResponse,
    StockItemResponse,
    StockListResponse,
    WriteOffResponse,
)
from src.application.use_cases import (
    ExportLedgerUseCase,
    ImportLedgerUseCase,
    ReceiveStockUseCase,
    WriteOffStockUseCase,
)
from src.core.entities.identifiers import StockId
from src.core.entities.inventory import CostingMethod
from src.core.exceptions import StockItemNotFoundError
from src.core.interfaces import ICostingPolicySource, IWorkshopStore
from src.core.services.costing_engine import preview_cost, round_currency

router = APIRouter(prefix="/api/stock", tags=["stock"])


@router.get("", response_model=StockListResponse)
async def list_stock(
    category: str | None = None,
    in_stock_only: bool = False,
    store: IWorkshopStore = Depends(get_store),
) -> StockListResponse:
    """List stock items with their batches."""
    items = await store.load_stock_items()
    if category:
        items = [i for i in items if i.category == category]
    if in_stock_only:
        items = [i for i in items if not i.is_empty]

    return StockListResponse(
        items=[StockItemResponse.from_entity(i) for i in items],
        total=len(items),
        total_value=round_currency(math.fsum(i.total_value for i in items)),
    )


@router.post(
    "/receive",
    response_model=ReceiveStockResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def receive_stock(
    request: ReceiveStockRequest,
    use_case: ReceiveStockUseCase = Depends(get_receive_stock_use_case),
) -> ReceiveStockResponse:
    """Receive a purchase as a new batch."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.post(
    "/write-off",
    response_model=WriteOffResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def write_off_stock(
    request: WriteOffStockRequest,
    use_case: WriteOffStockUseCase = Depends(get_write_off_use_case),
) -> WriteOffResponse:
    """Write off damaged or lost stock at cost."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.post(
    "/ledger/import",
    response_model=StockItemResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ErrorResponse}},
)
async def import_ledger(
    request: ImportLedgerRequest,
    use_case: ImportLedgerUseCase = Depends(get_import_ledger_use_case),
) -> StockItemResponse:
    """Import a ledger snapshot."""
    item = await use_case.execute(request)
    return use_case.to_response(item)


@router.get(
    "/{stock_id}",
    response_model=StockItemResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_stock_item(
    stock_id: str,
    store: IWorkshopStore = Depends(get_store),
) -> StockItemResponse:
    """Get a stock item with batches, usage and write-offs."""
    item = await store.get_stock_item(StockId(stock_id))
    if item is None:
        raise StockItemNotFoundError(stock_id)
    return StockItemResponse.from_entity(item, include_history=True)


@router.get(
    "/{stock_id}/cost-preview",
    response_model=CostPreviewResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def preview_stock_cost(
    stock_id: str,
    quantity: float,
    method: CostingMethod | None = None,
    store: IWorkshopStore = Depends(get_store),
    policy: ICostingPolicySource = Depends(get_policy_source),
) -> CostPreviewResponse:
    """What consuming ``quantity`` would cost now. Nothing is consumed."""
    item = await store.get_stock_item(StockId(stock_id))
    if item is None:
        raise StockItemNotFoundError(stock_id)

    breakdown = preview_cost(item, quantity, method or await policy.get_costing_method())
    return CostPreviewResponse(
        stock_id=item.id,
        method=breakdown.method.value,
        quantity_requested=breakdown.quantity_requested,
        quantity_available=breakdown.quantity_available,
        total_cost=round_currency(breakdown.total_cost),
        shortfall=breakdown.shortfall,
        draws=[
            BatchDrawResponse(
                batch_id=draw.batch_id,
                quantity=draw.quantity,
                unit_cost=draw.unit_cost,
                cost=round_currency(draw.cost),
            )
            for draw in breakdown.draws
        ],
    )


@router.get(
    "/{stock_id}/ledger",
    response_model=LedgerExportResponse,
    responses={404: {"model": ErrorResponse}},
)
async def export_ledger(
    stock_id: str,
    use_case: ExportLedgerUseCase = Depends(get_export_ledger_use_case),
) -> LedgerExportResponse:
    """Export a stock item's full ledger."""
    ledger = await use_case.execute(stock_id)
    return use_case.to_response(ledger)
