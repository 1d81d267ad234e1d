# services/api/core/revisions.py
"""
Append-only revision history of annotated drawing PDFs.

A save runs four steps in order:

  1. put the PDF bytes into blob storage under a fresh name
  2. resolve the blob's public URL
  3. insert the revision row (authoritative record)
  4. copy revision fields onto the owning drawing row (best-effort)

1-2 failing -> StorageError, nothing persisted.
3 failing   -> PersistenceError, the blob is left behind (orphan).
4 failing   -> logged only; the save still succeeds.
"""
from __future__ import annotations

import logging
import time
import uuid
from typing import Any, List, Optional

from tenacity import Retrying, stop_after_attempt, wait_fixed

from adapters.base import DrawingStorage
from core.aging import utc_now_iso
from core.blob_store import BlobStore
from core.errors import InvalidInput, PersistenceError, StorageError
from core.validation import parse_annotations, parse_revision_number
from models import DrawingRevision, Editor
from models.converters import revision_from_row

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"
DEFAULT_REVISION_STATUS = "REVISION"


def blob_name_for(drawing_id: str, revision_number: int) -> str:
    """Unique per call: drawing id + revision + ns timestamp + random suffix."""
    return f"drawing-{drawing_id}-rev-{revision_number}-{time.time_ns()}-{uuid.uuid4().hex[:8]}.pdf"


class RevisionStore:
    def __init__(
        self,
        storage: DrawingStorage,
        blobs: BlobStore,
        upload_attempts: int = 1,
        retry_wait: float = 0.5,
    ) -> None:
        self.storage = storage
        self.blobs = blobs
        self.upload_attempts = max(1, upload_attempts)
        self.retry_wait = retry_wait

    def _put_blob(self, name: str, data: bytes) -> None:
        # Same name on every attempt
        for attempt in Retrying(
            stop=stop_after_attempt(self.upload_attempts),
            wait=wait_fixed(self.retry_wait),
            reraise=True,
        ):
            with attempt:
                self.blobs.put(name, data, PDF_CONTENT_TYPE)

    def save_revision(
        self,
        drawing_id: str,
        pdf_bytes: Optional[bytes],
        annotations: Any,
        editor: Editor,
        revision_number: Any = None,
        revision_status: Optional[str] = None,
    ) -> DrawingRevision:
        # Validate everything before the first write
        if not pdf_bytes:
            raise InvalidInput("Missing required fields: pdfBlob")
        payload = parse_annotations(annotations)
        rev_no = parse_revision_number(revision_number)
        rev_status = (revision_status or "").strip() or DEFAULT_REVISION_STATUS

        name = blob_name_for(drawing_id, rev_no)
        try:
            self._put_blob(name, pdf_bytes)
            pdf_url = self.blobs.get_public_url(name)
        except Exception as e:
            logger.error("Blob upload failed for drawing %s (%s): %s", drawing_id, name, e)
            raise StorageError() from e

        now = utc_now_iso()
        record = {
            "drawing_id": drawing_id,
            "annotations": payload,
            "pdf_url": pdf_url,
            "revision_number": rev_no,
            "revision_status": rev_status,
            "corrected_date": now,
            "editor_id": editor.editor_id,
            "editor_name": editor.editor_name,
            "created_at": now,
        }
        try:
            row = self.storage.insert_revision(record)
        except Exception as e:
            logger.error(
                "Revision insert failed for drawing %s; orphaned blob %s: %s",
                drawing_id, name, e,
            )
            raise PersistenceError(orphan_blob=name) from e

        self._update_drawing(drawing_id, record)
        logger.info("Saved revision %s of drawing %s (%s)", rev_no, drawing_id, name)
        return revision_from_row(row)

    def _update_drawing(self, drawing_id: str, record: dict) -> None:
        updates = {
            "revision_status": record["revision_status"],
            "revision_number": record["revision_number"],
            "corrected_date": record["corrected_date"],
            "editor_id": record["editor_id"],
            "editor_name": record["editor_name"],
            "pdf_path": record["pdf_url"],
            "updated_at": utc_now_iso(),
        }
        try:
            if not self.storage.update_drawing(drawing_id, updates):
                logger.warning("No drawing row %s to update after revision save", drawing_id)
        except Exception as e:
            logger.warning("Drawing %s update after revision save failed: %s", drawing_id, e)

    def get_latest_revision(self, drawing_id: str) -> Optional[DrawingRevision]:
        """None means "no revisions yet", not an error."""
        row = self.storage.get_latest_revision(drawing_id)
        return revision_from_row(row) if row else None

    def list_revisions(self, drawing_id: str) -> List[DrawingRevision]:
        return [revision_from_row(r) for r in self.storage.list_revisions(drawing_id)]
