"""
Storage adapter interface for the drawing tracking service.
Defines the contract that all storage backends must implement.
"""

from typing import Protocol, List, Dict, Any, Optional


class DrawingStorage(Protocol):
    """
    Protocol defining the interface for all storage adapters.

    This allows swapping between Google Sheets, SQLite and JSON files
    without changing the router or business logic code.

    NOTE:
    - Rows are returned as loosely-typed dicts. Field names differ per
      source collection (drawing_log uses dwg/total_weight, the other two
      use dwg_no/total_weight_tons); the converters absorb that skew.
    - Sheets returns every cell as a string; callers must be tolerant.
    """

    # ========== Drawing sources ==========

    def fetch_drawing_log(self) -> List[Dict[str, Any]]:
        """
        Return all rows of the `drawing_log` collection.

        Rows carry at least:
            - id, dwg, status, description, total_weight,
              latest_submitted_date, project_id, pdf_path, release_status
        """
        ...

    def fetch_yet_to_release(self) -> List[Dict[str, Any]]:
        """
        Return all rows of `drawings_yet_to_release`
        (id, dwg_no, description, total_weight_tons, latest_submitted_date, ...).
        """
        ...

    def fetch_yet_to_return(self) -> List[Dict[str, Any]]:
        """
        Return all rows of `drawings_yet_to_return`
        (same shape as yet-to-release).
        """
        ...

    # ========== Projects ==========

    def get_project(self, project_id: str) -> Optional[Dict[str, Any]]:
        """
        Single-row project lookup.

        Returns:
            Dict with at least `id` and `project_name`, or None if not found.
        """
        ...

    # ========== Drawings (denormalized current state) ==========

    def get_drawing(self, drawing_id: str) -> Optional[Dict[str, Any]]:
        """Fetch a row of the `drawings` collection by id, or None."""
        ...

    def update_drawing(self, drawing_id: str, updates: Dict[str, Any]) -> bool:
        """
        Overwrite only the provided keys on a `drawings` row.

        Returns:
            True if a row was updated, False if no row has this id.
        """
        ...

    # ========== Revisions (drawing_annotations) ==========

    def insert_revision(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """
        Append a revision row. Never updates an existing row.

        The adapter assigns `id` (if missing) and `created_at` (if missing).

        Returns:
            The stored row including `id` and `created_at`.
        """
        ...

    def get_latest_revision(self, drawing_id: str) -> Optional[Dict[str, Any]]:
        """
        Most recently created revision for a drawing, or None.

        "Most recent" = greatest created_at; ties broken by insertion order.
        """
        ...

    def list_revisions(self, drawing_id: str) -> List[Dict[str, Any]]:
        """All revisions for a drawing, newest first."""
        ...

    # ========== Health ==========

    def ping(self) -> None:
        """Cheap connectivity check; raises if the backend is unreachable."""
        ...
