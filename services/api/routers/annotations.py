# services/api/routers/annotations.py
from __future__ import annotations

import asyncio
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from core.revisions import RevisionStore
from models import Editor
from schemas import AnnotationsSaved, LatestAnnotations, RevisionHistory
from main import get_current_editor, get_revision_store  # DI helpers

router = APIRouter(prefix="/drawings", tags=["annotations"])

Store = Annotated[RevisionStore, Depends(get_revision_store)]
CurrentEditor = Annotated[Editor, Depends(get_current_editor)]


@router.post("/{drawing_id}/annotations")
async def save_annotations(
    drawing_id: str,
    editor: CurrentEditor,
    store: Store,
    annotations: Optional[str] = Form(None),
    pdfBlob: Optional[UploadFile] = File(None),
    revisionNumber: Optional[str] = Form(None),
    revisionStatus: Optional[str] = Form(None),
):
    """
    Save a new revision: annotated PDF + annotation JSON.

    Multipart fields:
    - annotations: JSON array (required)
    - pdfBlob: the rendered PDF (required)
    - revisionNumber: positive int, default 1
    - revisionStatus: free-form label, default "REVISION"
    """
    pdf_bytes = await pdfBlob.read() if pdfBlob is not None else None

    revision = await asyncio.to_thread(
        store.save_revision,
        drawing_id,
        pdf_bytes,
        annotations,
        editor,
        revisionNumber,
        revisionStatus,
    )
    return AnnotationsSaved(
        pdf_url=revision.pdf_url,
        revision_number=revision.revision_number,
    ).model_dump(by_alias=True)


@router.get("/{drawing_id}/annotations")
async def get_latest_annotations(drawing_id: str, editor: CurrentEditor, store: Store):
    latest = await asyncio.to_thread(store.get_latest_revision, drawing_id)
    if latest is None:
        return LatestAnnotations().model_dump(by_alias=True)
    return LatestAnnotations(
        annotations=latest.annotations,
        pdf_url=latest.pdf_url or None,
        revision_number=latest.revision_number,
    ).model_dump(by_alias=True)


@router.get("/{drawing_id}/annotations/history")
async def get_annotation_history(drawing_id: str, editor: CurrentEditor, store: Store):
    """Every revision of the drawing, newest first."""
    revisions = await asyncio.to_thread(store.list_revisions, drawing_id)
    return RevisionHistory(
        drawing_id=drawing_id,
        revisions=[r.to_api() for r in revisions],
        count=len(revisions),
    ).model_dump(by_alias=True)
