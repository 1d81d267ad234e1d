from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DrawingStatus(str, Enum):
    APP = "APP"
    REV = "REV"
    REJ = "REJ"
    PND = "PND"
    FFU = "FFU"


class ReleaseStatus(str, Enum):
    PARTIALLY_RELEASED = "Partially Released"
    YET_TO_BE_RELEASED = "Yet to Be Released"


class DrawingSource(str, Enum):
    """Backing collection a drawing row was read from (value = table/tab name)."""
    DRAWING_LOG = "drawing_log"
    YET_TO_RELEASE = "drawings_yet_to_release"
    YET_TO_RETURN = "drawings_yet_to_return"


# Concatenation order for listings and tie-break order for search.
SOURCE_PRIORITY = (
    DrawingSource.DRAWING_LOG,
    DrawingSource.YET_TO_RELEASE,
    DrawingSource.YET_TO_RETURN,
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_api(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class DrawingRecord(_CamelModel):
    """
    Canonical drawing row after aggregation.

    `id` is only unique within `source`; `dwg_no` is the natural key used
    for search.
    """
    id: str
    dwg_no: str = ""
    status: DrawingStatus = DrawingStatus.PND
    description: str = ""
    total_weight_tons: Union[int, float] = 0
    latest_submitted_date: str = ""
    weeks_since_sent: int = 0

    release_status: Optional[str] = None
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    pdf_path: Optional[str] = None

    source: DrawingSource = Field(exclude=True)


class Pagination(_CamelModel):
    page: int
    page_size: int
    total: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


class PaginatedDrawings(_CamelModel):
    data: List[DrawingRecord]
    pagination: Pagination


class DrawingRevision(_CamelModel):
    """
    One immutable annotated-PDF snapshot of a drawing.

    Never mutated after insert. Ordering between revisions is by
    `created_at`, not by `revision_number`.
    """
    id: str
    drawing_id: str
    revision_number: int = 1
    revision_status: str = "REVISION"
    annotations: List[Dict[str, Any]] = Field(default_factory=list)
    pdf_url: str
    corrected_date: str
    editor_id: str
    editor_name: str
    created_at: str


@dataclass(frozen=True)
class Editor:
    """Identity resolved upstream; only consumed here."""
    editor_id: str
    editor_name: str


__all__ = [
    "DrawingStatus",
    "ReleaseStatus",
    "DrawingSource",
    "SOURCE_PRIORITY",
    "DrawingRecord",
    "Pagination",
    "PaginatedDrawings",
    "DrawingRevision",
    "Editor",
]
