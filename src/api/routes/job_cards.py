"""Job card endpoints: drafts, cost previews, settlement and deletion."""

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import (
    get_delete_job_card_use_case,
    get_preview_job_card_use_case,
    get_save_job_card_use_case,
    get_settle_job_card_use_case,
    get_store,
)
from src.application.dto.requests import (
    DeleteJobCardRequest,
    PreviewJobCardRequest,
    SaveJobCardRequest,
    SettleJobCardRequest,
)
from src.application.dto.responses import (
    DeleteJobCardResponse,
    ErrorResponse,
    JobCardListResponse,
    JobCardPreviewResponse,
    JobCardResponse,
    SettleJobCardResponse,
)
from src.application.use_cases import (
    DeleteJobCardUseCase,
    PreviewJobCardCostUseCase,
    SaveJobCardDraftUseCase,
    SettleJobCardUseCase,
)
from src.core.entities.identifiers import JobCardId
from src.core.entities.job_card import JobCardStatus
from src.core.exceptions import JobCardNotFoundError
from src.core.interfaces import IWorkshopStore

router = APIRouter(prefix="/api/job-cards", tags=["job-cards"])


@router.get("", response_model=JobCardListResponse)
async def list_job_cards(
    status_filter: JobCardStatus | None = Query(default=None, alias="status"),
    asset_id: str | None = None,
    store: IWorkshopStore = Depends(get_store),
) -> JobCardListResponse:
    """List job cards, newest first."""
    cards = await store.load_job_cards()
    if status_filter:
        cards = [c for c in cards if c.status == status_filter]
    if asset_id:
        cards = [c for c in cards if c.asset_id == asset_id]

    return JobCardListResponse(
        job_cards=[JobCardResponse.from_entity(c) for c in cards],
        total=len(cards),
    )


@router.post(
    "",
    response_model=JobCardResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_job_card(
    request: SaveJobCardRequest,
    use_case: SaveJobCardDraftUseCase = Depends(get_save_job_card_use_case),
) -> JobCardResponse:
    """Create a draft job card."""
    card = await use_case.execute(request.model_copy(update={"job_card_id": None}))
    return use_case.to_response(card)


@router.post(
    "/preview",
    response_model=JobCardPreviewResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def preview_job_card(
    request: PreviewJobCardRequest,
    use_case: PreviewJobCardCostUseCase = Depends(get_preview_job_card_use_case),
) -> JobCardPreviewResponse:
    """Advisory cost of unsaved job card lines."""
    preview = await use_case.execute(request)
    return use_case.to_response(preview)


@router.get(
    "/{job_card_id}",
    response_model=JobCardResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_job_card(
    job_card_id: str,
    store: IWorkshopStore = Depends(get_store),
) -> JobCardResponse:
    """Get a job card."""
    card = await store.get_job_card(JobCardId(job_card_id))
    if card is None:
        raise JobCardNotFoundError(job_card_id)
    return JobCardResponse.from_entity(card)


@router.put(
    "/{job_card_id}",
    response_model=JobCardResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def update_job_card(
    job_card_id: str,
    request: SaveJobCardRequest,
    use_case: SaveJobCardDraftUseCase = Depends(get_save_job_card_use_case),
) -> JobCardResponse:
    """Update a draft job card. Completed cards cannot be edited."""
    card = await use_case.execute(request.model_copy(update={"job_card_id": job_card_id}))
    return use_case.to_response(card)


@router.get(
    "/{job_card_id}/preview",
    response_model=JobCardPreviewResponse,
    responses={404: {"model": ErrorResponse}},
)
async def preview_saved_job_card(
    job_card_id: str,
    use_case: PreviewJobCardCostUseCase = Depends(get_preview_job_card_use_case),
) -> JobCardPreviewResponse:
    """Advisory cost of a saved job card."""
    preview = await use_case.execute(PreviewJobCardRequest(job_card_id=job_card_id))
    return use_case.to_response(preview)


@router.post(
    "/{job_card_id}/settle",
    response_model=SettleJobCardResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def settle_job_card(
    job_card_id: str,
    use_case: SettleJobCardUseCase = Depends(get_settle_job_card_use_case),
) -> SettleJobCardResponse:
    """Consume stock for every line and complete the job card."""
    result = await use_case.execute(SettleJobCardRequest(job_card_id=job_card_id))
    return use_case.to_response(result)


@router.delete(
    "/{job_card_id}",
    response_model=DeleteJobCardResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def delete_job_card(
    job_card_id: str,
    use_case: DeleteJobCardUseCase = Depends(get_delete_job_card_use_case),
) -> DeleteJobCardResponse:
    """Delete a job card, returning consumed stock if it was completed."""
    result = await use_case.execute(DeleteJobCardRequest(job_card_id=job_card_id))
    return use_case.to_response(result)
