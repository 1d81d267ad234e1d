# services/api/core/release_status.py
from __future__ import annotations

import logging
from typing import Optional

from core.aging import utc_now_iso
from core.errors import NotFound
from core.validation import parse_release_status
from models import ReleaseStatus

logger = logging.getLogger(__name__)


class ReleaseStatusGate:
    """
    Two-valued release state on a drawing row.

    Any state (including unset) may move to either value; a third value is
    rejected before anything is written. The stored value is overwritten,
    no history is kept.
    """

    def __init__(self, storage) -> None:
        self.storage = storage

    def set_release_status(self, drawing_id: str, new_status: Optional[str]) -> ReleaseStatus:
        status = parse_release_status(new_status)
        updated = self.storage.update_drawing(
            drawing_id,
            {"release_status": status.value, "updated_at": utc_now_iso()},
        )
        if not updated:
            raise NotFound(f"Drawing {drawing_id} not found")
        logger.info("Drawing %s release status -> %s", drawing_id, status.value)
        return status
