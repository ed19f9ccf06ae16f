"""Model blend API router."""

from fastapi import APIRouter, HTTPException, status

from api.dependencies import BlendServiceDep
from api.models import BlendExecuteRequest
from api.utils.error_handler import handle_async_api_operation
from modelviz.log import get_logger
from modelviz.models import BlendExecutionResult, BlendPerformanceStats

logger = get_logger(__name__)

router = APIRouter(prefix="/v1/blends", tags=["blends"])


@router.post("/execute", response_model=BlendExecutionResult)
async def execute_blend(
    request: BlendExecuteRequest,
    blend_service: BlendServiceDep,
) -> BlendExecutionResult:
    """Run a prompt through every model of a blend and aggregate the answers.

    Raises:
        HTTPException: 400 for an invalid blend, 502 when every model failed
    """

    async def execute_operation() -> BlendExecutionResult:
        return await blend_service.execute_blend(
            request.config,
            request.prompt,
            system_prompt=request.system_prompt,
            settings=request.settings,
        )

    return await handle_async_api_operation(
        execute_operation, error_message="Failed to execute blend"
    )


@router.get("/{blend_id}/stats", response_model=BlendPerformanceStats)
async def get_blend_stats(
    blend_id: str, blend_service: BlendServiceDep
) -> BlendPerformanceStats:
    stats = blend_service.get_blend_stats(blend_id)
    if stats is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No executions recorded for blend {blend_id}",
        )
    return stats
