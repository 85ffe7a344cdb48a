"""Workshop settings endpoints."""

from fastapi import APIRouter, Depends

from src.api.dependencies import get_policy_source
from src.application.dto.requests import SetCostingMethodRequest
from src.application.dto.responses import CostingMethodResponse
from src.core.interfaces import IMutableCostingPolicySource

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("/costing-method", response_model=CostingMethodResponse)
async def get_costing_method(
    policy: IMutableCostingPolicySource = Depends(get_policy_source),
) -> CostingMethodResponse:
    """Costing method applied to new settlements and write-offs."""
    method = await policy.get_costing_method()
    return CostingMethodResponse(method=method.value)


@router.put("/costing-method", response_model=CostingMethodResponse)
async def set_costing_method(
    request: SetCostingMethodRequest,
    policy: IMutableCostingPolicySource = Depends(get_policy_source),
) -> CostingMethodResponse:
    """
    Change the costing method.

    Only later settlements are affected; completed job cards keep the
    method they were settled with.
    """
    await policy.set_costing_method(request.method)
    return CostingMethodResponse(method=request.method.value)
