# services/api/routers/drawings.py
from __future__ import annotations

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from core.aggregator import DrawingAggregator
from core.errors import DrawingServiceError
from core.validation import clamp_pagination
from main import get_drawing_aggregator, get_settings  # DI helpers

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/drawings", tags=["drawings"])

Aggregator = Annotated[DrawingAggregator, Depends(get_drawing_aggregator)]


def _error(exc: DrawingServiceError) -> JSONResponse:
    # These two routes answer with {"error": ...} instead of {"message": ...}
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@router.get("")
async def list_drawings(
    aggregator: Aggregator,
    page: Optional[int] = Query(None),
    pageSize: Optional[int] = Query(None),
    projectId: Optional[str] = Query(None),
):
    """
    Merged drawing list across all three sources, newest submission first.

    page >= 1, pageSize clamped to [1, MAX_PAGE_SIZE].
    """
    settings = get_settings()
    p, size = clamp_pagination(page, pageSize, settings.default_page_size, settings.max_page_size)
    try:
        result = await aggregator.list_drawings(p, size, project_id=projectId)
        return result.to_api()
    except DrawingServiceError as e:
        return _error(e)
    except Exception as e:
        logger.error("Error fetching drawings: %s", e, exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Failed to fetch drawings"})


@router.get("/search")
async def search_drawing(aggregator: Aggregator, dwgNo: Optional[str] = Query(None)):
    """Case-insensitive lookup by drawing number, enriched with the project name."""
    try:
        record = await aggregator.search_drawing(dwgNo)
        return record.to_api()
    except DrawingServiceError as e:
        if e.status_code >= 500:
            return JSONResponse(status_code=e.status_code, content={"error": "Failed to search drawing"})
        return _error(e)
    except Exception as e:
        logger.error("Error searching drawing: %s", e, exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Failed to search drawing"})
