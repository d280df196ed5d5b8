"""HTTP route definitions for the service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response

from app.schemas import DateRangeResponse, HistoryResponse
from services.errors import EmptyResultError, FetchError, ValidationError
from services.history import NO_DATA_MESSAGE, HistoryResult, HistoryService, build_default_service

router = APIRouter()


def get_service() -> HistoryService:
    return build_default_service()


async def _load(service: HistoryService, start_date: str, end_date: str) -> HistoryResult:
    try:
        return await service.load(start_date, end_date)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except FetchError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to fetch historical data",
        ) from exc


@router.get(
    "/history",
    response_model=HistoryResponse,
    summary="Aligned sensor channels and timelapse frames for a date range.",
)
async def get_history(
    start_date: str = Query(..., description="Inclusive start date, YYYY-MM-DD."),
    end_date: str = Query(..., description="Inclusive end date, YYYY-MM-DD."),
    service: HistoryService = Depends(get_service),
) -> HistoryResponse:
    result = await _load(service, start_date, end_date)
    return HistoryResponse.from_result(result)


@router.get(
    "/history/export",
    response_class=Response,
    summary="Download the raw metrics for a date range as CSV.",
)
async def export_history(
    start_date: str = Query(..., description="Inclusive start date, YYYY-MM-DD."),
    end_date: str = Query(..., description="Inclusive end date, YYYY-MM-DD."),
    service: HistoryService = Depends(get_service),
) -> Response:
    result = await _load(service, start_date, end_date)
    try:
        artifact = service.export(result)
    except EmptyResultError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=NO_DATA_MESSAGE,
        ) from exc
    return Response(
        content=artifact.content.encode("utf-8"),
        media_type=artifact.media_type,
        headers={"Content-Disposition": f'attachment; filename="{artifact.filename}"'},
    )


@router.get(
    "/history/default-range",
    response_model=DateRangeResponse,
    summary="Range preselected in the history form.",
)
async def default_range(
    service: HistoryService = Depends(get_service),
) -> DateRangeResponse:
    return DateRangeResponse.from_range(service.default_range())


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
