# services/api/routers/release_status.py
from __future__ import annotations

import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends

from core.release_status import ReleaseStatusGate
from models import Editor
from schemas import ReleaseStatusOut, ReleaseStatusUpdate
from main import get_current_editor, get_release_gate  # DI helpers

router = APIRouter(prefix="/drawings", tags=["release-status"])


@router.patch("/{drawing_id}/release-status")
async def update_release_status(
    drawing_id: str,
    body: ReleaseStatusUpdate,
    editor: Annotated[Editor, Depends(get_current_editor)],
    gate: Annotated[ReleaseStatusGate, Depends(get_release_gate)],
):
    """Set "Partially Released" or "Yet to Be Released". Anything else is a 400."""
    status = await asyncio.to_thread(gate.set_release_status, drawing_id, body.release_status)
    return ReleaseStatusOut(release_status=status.value).model_dump(by_alias=True)
