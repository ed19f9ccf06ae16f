"""Model comparison API router."""

from fastapi import APIRouter, Query
from fastapi.responses import PlainTextResponse

from api.dependencies import ComparisonServiceDep
from api.models import (
    ComparisonCreateRequest,
    ComparisonDeleteResponse,
    ComparisonRunResponse,
)
from api.utils.error_handler import handle_api_operation, handle_async_api_operation
from modelviz.exceptions import SessionNotFoundError
from modelviz.log import get_logger
from modelviz.models import ComparisonSession
from modelviz.services import ComparisonService
from modelviz.types import ExportFormat

logger = get_logger(__name__)

router = APIRouter(prefix="/v1/comparisons", tags=["comparisons"])

EXPORT_MEDIA_TYPES = {
    ExportFormat.JSON: "application/json",
    ExportFormat.MARKDOWN: "text/markdown",
    ExportFormat.CSV: "text/csv",
}


def _require_session(service: ComparisonService, session_id: str) -> ComparisonSession:
    session = service.load_session(session_id)
    if session is None:
        raise SessionNotFoundError(f"Comparison session {session_id} not found")
    return session


@router.post("", response_model=ComparisonRunResponse)
async def run_comparison(
    request: ComparisonCreateRequest,
    comparison_service: ComparisonServiceDep,
) -> ComparisonRunResponse:
    """Run a prompt across the requested models and rank the results."""

    async def run_operation() -> ComparisonRunResponse:
        session = comparison_service.create_session(
            name=request.name,
            prompt=request.prompt,
            models=request.models,
            system_prompt=request.system_prompt,
            description=request.description,
            tags=request.tags,
            saved=request.save,
        )
        session = await comparison_service.run_comparison(session)
        analysis = comparison_service.analyze(session)
        return ComparisonRunResponse(session=session, analysis=analysis)

    return await handle_async_api_operation(
        run_operation, error_message="Failed to run comparison"
    )


@router.get("", response_model=list[ComparisonSession])
async def list_comparisons(
    comparison_service: ComparisonServiceDep,
) -> list[ComparisonSession]:
    return handle_api_operation(
        comparison_service.list_sessions, error_message="Failed to list comparisons"
    )


@router.get("/{session_id}", response_model=ComparisonSession)
async def get_comparison(
    session_id: str, comparison_service: ComparisonServiceDep
) -> ComparisonSession:
    return handle_api_operation(
        lambda: _require_session(comparison_service, session_id),
        error_message="Failed to load comparison",
    )


@router.delete("/{session_id}", response_model=ComparisonDeleteResponse)
async def delete_comparison(
    session_id: str, comparison_service: ComparisonServiceDep
) -> ComparisonDeleteResponse:
    def delete_operation() -> ComparisonDeleteResponse:
        if not comparison_service.delete_session(session_id):
            raise SessionNotFoundError(f"Comparison session {session_id} not found")
        return ComparisonDeleteResponse(session_id=session_id, deleted=True)

    return handle_api_operation(
        delete_operation, error_message="Failed to delete comparison"
    )


@router.get("/{session_id}/export", response_class=PlainTextResponse)
async def export_comparison(
    session_id: str,
    comparison_service: ComparisonServiceDep,
    export_format: ExportFormat = Query(default=ExportFormat.JSON, alias="format"),
) -> PlainTextResponse:
    """Export a saved session with its analysis as JSON, Markdown or CSV."""

    def export_operation() -> str:
        session = _require_session(comparison_service, session_id)
        return comparison_service.export_results(
            session, export_format=export_format
        )

    content = handle_api_operation(
        export_operation, error_message="Failed to export comparison"
    )
    return PlainTextResponse(content, media_type=EXPORT_MEDIA_TYPES[export_format])
