from __future__ import annotations

import json
import math
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Union

from core.aging import calculate_weeks_since
from . import DrawingRecord, DrawingRevision, DrawingSource, DrawingStatus


# Raw status code -> canonical status. Anything else falls back to PND.
STATUS_MAP: Dict[str, DrawingStatus] = {
    "APP": DrawingStatus.APP,
    "R&R": DrawingStatus.REV,
    "REV": DrawingStatus.REV,
    "REJ": DrawingStatus.REJ,
    "PND": DrawingStatus.PND,
    "FFU": DrawingStatus.FFU,
}


def map_status(raw: Any) -> DrawingStatus:
    if raw is None:
        return DrawingStatus.PND
    return STATUS_MAP.get(str(raw).strip(), DrawingStatus.PND)


def _str_or_none(v: Any) -> Optional[str]:
    """Sheets hands back "" for empty cells; treat that like a missing value."""
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def _first(row: Dict[str, Any], *keys: str) -> Any:
    for k in keys:
        v = row.get(k)
        if v is not None and v != "":
            return v
    return None


def _weight(v: Any) -> Union[int, float]:
    """Whole tonnages stay ints on the wire; NaN, inf and junk become 0."""
    if v is None:
        return 0
    try:
        s = str(v).replace(",", "").strip()
        f = float(s) if s else 0.0
    except ValueError:
        return 0
    if not math.isfinite(f):
        return 0
    return int(f) if f.is_integer() else f


def _drawing_from_row(
    row: Dict[str, Any],
    *,
    source: DrawingSource,
    status: DrawingStatus,
    dwg_keys: tuple[str, ...],
    weight_keys: tuple[str, ...],
    now: Optional[datetime],
) -> DrawingRecord:
    submitted = _str_or_none(row.get("latest_submitted_date")) or ""
    return DrawingRecord(
        id=str(row.get("id") or ""),
        dwg_no=str(_first(row, *dwg_keys) or "").strip(),
        status=status,
        description=_str_or_none(row.get("description")) or "",
        total_weight_tons=_weight(_first(row, *weight_keys)),
        latest_submitted_date=submitted,
        weeks_since_sent=calculate_weeks_since(submitted, now=now),
        release_status=_str_or_none(row.get("release_status")),
        project_id=_str_or_none(row.get("project_id")),
        pdf_path=_str_or_none(row.get("pdf_path")),
        source=source,
    )


def drawing_from_log_row(row: Dict[str, Any], now: Optional[datetime] = None) -> DrawingRecord:
    """`drawing_log` rows use `dwg` / `total_weight` and carry a raw status code."""
    return _drawing_from_row(
        row,
        source=DrawingSource.DRAWING_LOG,
        status=map_status(row.get("status")),
        dwg_keys=("dwg", "dwg_no"),
        weight_keys=("total_weight", "total_weight_tons"),
        now=now,
    )


def drawing_from_yet_to_release_row(row: Dict[str, Any], now: Optional[datetime] = None) -> DrawingRecord:
    """Always FFU, whatever the row's own status column says."""
    return _drawing_from_row(
        row,
        source=DrawingSource.YET_TO_RELEASE,
        status=DrawingStatus.FFU,
        dwg_keys=("dwg_no", "dwg"),
        weight_keys=("total_weight_tons", "total_weight"),
        now=now,
    )


def drawing_from_yet_to_return_row(row: Dict[str, Any], now: Optional[datetime] = None) -> DrawingRecord:
    """Always PND, whatever the row's own status column says."""
    return _drawing_from_row(
        row,
        source=DrawingSource.YET_TO_RETURN,
        status=DrawingStatus.PND,
        dwg_keys=("dwg_no", "dwg"),
        weight_keys=("total_weight_tons", "total_weight"),
        now=now,
    )


SOURCE_CONVERTERS: Dict[DrawingSource, Callable[..., DrawingRecord]] = {
    DrawingSource.DRAWING_LOG: drawing_from_log_row,
    DrawingSource.YET_TO_RELEASE: drawing_from_yet_to_release_row,
    DrawingSource.YET_TO_RETURN: drawing_from_yet_to_return_row,
}


def _annotations_from_cell(v: Any) -> list:
    if v is None or v == "":
        return []
    if isinstance(v, list):
        return v
    try:
        parsed = json.loads(v)
    except (TypeError, ValueError):
        return []
    return parsed if isinstance(parsed, list) else []


def _int_or(v: Any, default: int) -> int:
    try:
        s = str(v).strip()
        return int(float(s)) if s else default
    except (TypeError, ValueError):
        return default


def revision_from_row(row: Dict[str, Any]) -> DrawingRevision:
    """
    Convert a raw `drawing_annotations` row (any backend) into a DrawingRevision.
    Sheets stores `annotations` as a JSON string; sqlite/json keep the list.
    """
    return DrawingRevision(
        id=str(row.get("id") or ""),
        drawing_id=str(row.get("drawing_id") or ""),
        revision_number=_int_or(row.get("revision_number"), 1),
        revision_status=_str_or_none(row.get("revision_status")) or "REVISION",
        annotations=_annotations_from_cell(row.get("annotations")),
        pdf_url=str(row.get("pdf_url") or ""),
        corrected_date=str(row.get("corrected_date") or ""),
        editor_id=str(row.get("editor_id") or ""),
        editor_name=str(row.get("editor_name") or ""),
        created_at=str(row.get("created_at") or ""),
    )
