# services/api/core/aggregator.py
"""
Drawing aggregation and search.

Three backing collections (drawing log, yet-to-release, yet-to-return)
are merged into one list of DrawingRecord. Ids are only unique per
collection, so the merge never deduplicates; search matches on the
drawing number and the first collection in SOURCE_PRIORITY wins.
"""
from __future__ import annotations

import asyncio
import logging
import math
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from cachetools import TTLCache

from core.aging import sort_timestamp
from core.errors import InvalidInput, NotFound, UpstreamFetchError
from models import SOURCE_PRIORITY, DrawingRecord, DrawingSource, PaginatedDrawings, Pagination
from models.converters import SOURCE_CONVERTERS

logger = logging.getLogger(__name__)

_MISSING = object()


def normalize_dwg_no(value: Optional[str]) -> str:
    return (value or "").strip().upper()


def paginate(items: Sequence[DrawingRecord], page: int, page_size: int) -> PaginatedDrawings:
    """Slice an already merged and sorted list. `page` is 1-based."""
    total = len(items)
    total_pages = math.ceil(total / page_size) if page_size else 0
    start = (page - 1) * page_size
    return PaginatedDrawings(
        data=list(items[start:start + page_size]),
        pagination=Pagination(
            page=page,
            page_size=page_size,
            total=total,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_previous_page=page > 1,
        ),
    )


class DrawingAggregator:
    """
    Read side of the drawing tracker.

    `storage` is any DrawingStorage; its fetches are blocking and run on
    worker threads. Project names used for search enrichment are cached
    for `project_cache_ttl` seconds.
    """

    def __init__(
        self,
        storage,
        project_cache_ttl: float = 60.0,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.storage = storage
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._project_names: TTLCache = TTLCache(maxsize=512, ttl=project_cache_ttl)
        self._project_names_lock = threading.Lock()

    def _fetcher(self, source: DrawingSource) -> Callable[[], List[Dict[str, Any]]]:
        return {
            DrawingSource.DRAWING_LOG: self.storage.fetch_drawing_log,
            DrawingSource.YET_TO_RELEASE: self.storage.fetch_yet_to_release,
            DrawingSource.YET_TO_RETURN: self.storage.fetch_yet_to_return,
        }[source]

    async def _fetch_source(self, source: DrawingSource) -> List[Dict[str, Any]]:
        try:
            return await asyncio.to_thread(self._fetcher(source))
        except Exception as e:
            logger.error("Fetching %s failed: %s", source.value, e)
            raise UpstreamFetchError() from e

    async def merged_drawings(self, project_id: Optional[str] = None) -> List[DrawingRecord]:
        """
        All drawings across the three sources, newest submission first.

        The fetches run concurrently; any single failure fails the whole
        call. Undated rows sort last, and equal dates keep source order.
        """
        fetched = await asyncio.gather(*(self._fetch_source(s) for s in SOURCE_PRIORITY))

        now = self._clock()
        rows: List[DrawingRecord] = []
        for source, raw_rows in zip(SOURCE_PRIORITY, fetched):
            convert = SOURCE_CONVERTERS[source]
            rows.extend(convert(r, now=now) for r in raw_rows or [])

        if project_id:
            rows = [r for r in rows if r.project_id == project_id]

        rows.sort(key=lambda r: sort_timestamp(r.latest_submitted_date), reverse=True)
        return rows

    async def list_drawings(
        self,
        page: int,
        page_size: int,
        project_id: Optional[str] = None,
    ) -> PaginatedDrawings:
        rows = await self.merged_drawings(project_id=project_id)
        return paginate(rows, page, page_size)

    async def search_drawing(self, dwg_no: Optional[str]) -> DrawingRecord:
        """
        Case-insensitive exact match on drawing number.

        Sources are probed one at a time in priority order and the first
        hit is returned without looking at the rest.
        """
        target = normalize_dwg_no(dwg_no)
        if not target:
            raise InvalidInput("Drawing number (dwgNo) is required")

        now = self._clock()
        for source in SOURCE_PRIORITY:
            raw_rows = await self._fetch_source(source)
            convert = SOURCE_CONVERTERS[source]
            for raw in raw_rows or []:
                record = convert(raw, now=now)
                if normalize_dwg_no(record.dwg_no) == target:
                    logger.info("Drawing %s found in %s", target, source.value)
                    return await self._with_project_name(record)

        raise NotFound("Drawing not found")

    async def _with_project_name(self, record: DrawingRecord) -> DrawingRecord:
        if not record.project_id:
            return record
        name = await asyncio.to_thread(self._project_name, record.project_id)
        if name:
            return record.model_copy(update={"project_name": name})
        return record

    def _project_name(self, project_id: str) -> Optional[str]:
        """Best-effort lookup; failures are logged and leave the name unset."""
        with self._project_names_lock:
            cached = self._project_names.get(project_id, _MISSING)
        if cached is not _MISSING:
            return cached
        try:
            project = self.storage.get_project(project_id)
        except Exception as e:
            logger.warning("Project lookup for %s failed: %s", project_id, e)
            return None
        name = ((project or {}).get("project_name") or "").strip() or None
        with self._project_names_lock:
            self._project_names[project_id] = name
        return name
