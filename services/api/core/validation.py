"""
Validation utilities for the drawing tracking service.
Ensures data integrity and provides clear error messages.
"""
import json
from typing import Any, Dict, List, Optional, Tuple

from core.errors import InvalidInput
from models import ReleaseStatus

MAX_REVISION_NUMBER = 2**31 - 1

ANNOTATION_TYPES = frozenset({
    "highlight",
    "underline",
    "strikethrough",
    "pen",
    "rectangle",
    "circle",
    "arrow",
    "text",
    "stamp",
    "note",
})


def parse_annotations(raw: Any) -> List[Dict[str, Any]]:
    """
    Decode and validate an annotation payload.

    Rules:
    - Must be present (a JSON string or an already-decoded list)
    - Must decode to a JSON array
    - Every element must be an object
    - An element's optional `type` must be a known markup kind

    Raises:
        InvalidInput: if validation fails
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise InvalidInput("Missing required fields: annotations")

    if isinstance(raw, (str, bytes)):
        try:
            payload = json.loads(raw)
        except ValueError:
            raise InvalidInput("annotations must be valid JSON")
    else:
        payload = raw

    if not isinstance(payload, list):
        raise InvalidInput("annotations must be a JSON array")

    for i, item in enumerate(payload):
        if not isinstance(item, dict):
            raise InvalidInput(f"annotations[{i}] must be an object")
        kind = item.get("type")
        if kind is not None and kind not in ANNOTATION_TYPES:
            raise InvalidInput(f"annotations[{i}]: unknown annotation type {kind!r}")

    return payload


def parse_revision_number(raw: Any) -> int:
    """
    Coerce a caller-supplied revision number.

    Absent or blank means 1. Anything else must be a positive integer no
    larger than MAX_REVISION_NUMBER; it is NOT checked against existing
    revisions.

    Raises:
        InvalidInput: if the value is not a positive integer
    """
    if raw is None:
        return 1
    if isinstance(raw, bool):
        raise InvalidInput(f"revisionNumber must be a positive integer, got {raw!r}")
    if isinstance(raw, int):
        value = raw
    else:
        s = str(raw).strip()
        if not s:
            return 1
        try:
            value = int(s)
        except ValueError:
            raise InvalidInput(f"revisionNumber must be a positive integer, got {raw!r}")
    if value < 1:
        raise InvalidInput(f"revisionNumber must be a positive integer, got {raw!r}")
    if value > MAX_REVISION_NUMBER:
        raise InvalidInput(f"revisionNumber must be at most {MAX_REVISION_NUMBER}")
    return value


def parse_release_status(raw: Optional[str]) -> ReleaseStatus:
    """
    Exact, case-sensitive match against the two release states.
    No trimming and no case folding: anything else is rejected.
    """
    for status in ReleaseStatus:
        if raw == status.value:
            return status
    raise InvalidInput(
        "Invalid release status. Must be 'Partially Released' or 'Yet to Be Released'"
    )


def clamp_pagination(
    page: Optional[int],
    page_size: Optional[int],
    default_page_size: int = 20,
    max_page_size: int = 100,
) -> Tuple[int, int]:
    """
    Clamp paging input: page >= 1, page_size within [1, max_page_size].

    Missing values fall back to page 1 and `default_page_size`.
    """
    p = page if page is not None else 1
    size = page_size if page_size is not None else default_page_size
    return max(1, p), min(max(1, size), max_page_size)
