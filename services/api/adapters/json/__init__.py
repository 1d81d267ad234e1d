"""
JSON file storage adapter for the drawing tracking service.
Simple file-based storage for quick demos and testing.
Not production-ready (process-local locking only, no cross-process safety).
"""
import json
import threading
import uuid
from typing import List, Dict, Any, Optional
from pathlib import Path

from core.aging import sort_timestamp, utc_now_iso

COLLECTIONS = (
    "drawing_log",
    "drawings_yet_to_release",
    "drawings_yet_to_return",
    "projects",
    "drawings",
    "drawing_annotations",
)


class JsonAdapter:
    """
    JSON file-based storage adapter.
    Stores each collection in its own JSON file under the data directory.
    Uses atomic file operations for basic consistency.
    """

    def __init__(self, data_dir: str = "data"):
        """
        Initialize the JSON adapter.

        Args:
            data_dir: Directory to store JSON files
        """
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

        self.files = {name: self.data_dir / f"{name}.json" for name in COLLECTIONS}

        # Initialize files if they don't exist
        for file in self.files.values():
            if not file.exists():
                self._write_file(file, [])

    def _read_file(self, filepath: Path) -> List[Dict[str, Any]]:
        """Read and parse a JSON file."""
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                return json.load(f)
        except (FileNotFoundError, json.JSONDecodeError):
            return []

    def _write_file(self, filepath: Path, data: List[Dict[str, Any]]) -> None:
        """Write data to a JSON file atomically."""
        # Write to temporary file first
        tmp_file = filepath.with_suffix(".tmp")
        with open(tmp_file, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False, default=str)

        # Atomic rename
        tmp_file.replace(filepath)

    def _read(self, collection: str) -> List[Dict[str, Any]]:
        return self._read_file(self.files[collection])

    # ========== Seeding (not part of DrawingStorage) ==========

    def add_rows(self, collection: str, rows: List[Dict[str, Any]]) -> None:
        """Append raw rows to a collection, assigning ids where missing."""
        with self._lock:
            existing = self._read(collection)
            for row in rows:
                existing.append({"id": str(uuid.uuid4()), **row})
            self._write_file(self.files[collection], existing)

    # ========== Drawing sources ==========

    def fetch_drawing_log(self) -> List[Dict[str, Any]]:
        return self._read("drawing_log")

    def fetch_yet_to_release(self) -> List[Dict[str, Any]]:
        return self._read("drawings_yet_to_release")

    def fetch_yet_to_return(self) -> List[Dict[str, Any]]:
        return self._read("drawings_yet_to_return")

    # ========== Projects / drawings ==========

    def get_project(self, project_id: str) -> Optional[Dict[str, Any]]:
        return next((p for p in self._read("projects") if str(p.get("id")) == project_id), None)

    def get_drawing(self, drawing_id: str) -> Optional[Dict[str, Any]]:
        return next((d for d in self._read("drawings") if str(d.get("id")) == drawing_id), None)

    def update_drawing(self, drawing_id: str, updates: Dict[str, Any]) -> bool:
        with self._lock:
            drawings = self._read("drawings")
            target = next((d for d in drawings if str(d.get("id")) == drawing_id), None)
            if target is None:
                return False
            target.update(updates)
            self._write_file(self.files["drawings"], drawings)
            return True

    # ========== Revisions ==========

    def insert_revision(self, record: Dict[str, Any]) -> Dict[str, Any]:
        row = dict(record)
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", utc_now_iso())
        with self._lock:
            revisions = self._read("drawing_annotations")
            revisions.append(row)
            self._write_file(self.files["drawing_annotations"], revisions)
        return row

    def list_revisions(self, drawing_id: str) -> List[Dict[str, Any]]:
        # File order is insertion order; enumerate() index breaks created_at ties.
        matching = [
            (i, r)
            for i, r in enumerate(self._read("drawing_annotations"))
            if str(r.get("drawing_id")) == drawing_id
        ]
        matching.sort(key=lambda pair: (sort_timestamp(pair[1].get("created_at")), pair[0]), reverse=True)
        return [r for _, r in matching]

    def get_latest_revision(self, drawing_id: str) -> Optional[Dict[str, Any]]:
        revisions = self.list_revisions(drawing_id)
        return revisions[0] if revisions else None

    # ========== Health ==========

    def ping(self) -> None:
        if not self.data_dir.is_dir():
            raise RuntimeError(f"JSON data dir missing: {self.data_dir}")
