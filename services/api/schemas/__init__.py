"""
Pydantic schemas for API request/response validation.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ============ Release status ============


class ReleaseStatusUpdate(_CamelSchema):
    """PATCH body. Value is validated by the gate, not here, so bad values get a 400 with our message."""
    release_status: Optional[str] = Field(None, alias="releaseStatus")


class ReleaseStatusOut(_CamelSchema):
    success: bool = True
    message: str = "Release status updated successfully"
    release_status: str = Field(..., alias="releaseStatus")


# ============ Annotations ============


class AnnotationsSaved(_CamelSchema):
    """Response after saving a new revision."""
    success: bool = True
    message: str = "Drawing corrections saved successfully"
    pdf_url: str = Field(..., alias="pdfUrl")
    revision_number: int = Field(..., alias="revisionNumber")


class LatestAnnotations(_CamelSchema):
    """Latest revision of a drawing; `{[], null, 0}` when there is none yet."""
    annotations: List[Dict[str, Any]] = Field(default_factory=list)
    pdf_url: Optional[str] = Field(None, alias="pdfUrl")
    revision_number: int = Field(0, alias="revisionNumber")


class RevisionHistory(_CamelSchema):
    drawing_id: str = Field(..., alias="drawingId")
    revisions: List[Dict[str, Any]] = Field(default_factory=list)
    count: int = 0


# ============ Health Check ============


class HealthCheck(BaseModel):
    """Health check response."""
    status: str = "healthy"
    backend: Optional[str] = None
    blob_backend: Optional[str] = None
    version: str = "1.0"


__all__ = [
    "ReleaseStatusUpdate",
    "ReleaseStatusOut",
    "AnnotationsSaved",
    "LatestAnnotations",
    "RevisionHistory",
    "HealthCheck",
]
