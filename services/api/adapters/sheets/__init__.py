# services/api/adapters/sheets/__init__.py
from __future__ import annotations

import json
import uuid
from typing import Any, Dict, List, Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from core.aging import sort_timestamp, utc_now_iso
from ..base import DrawingStorage

# ========== Sheet schema (HEADERS) ==========

HEADERS = {
    # Source collections: note the dwg / dwg_no and total_weight /
    # total_weight_tons naming skew between the log and the other two.
    "drawing_log": [
        "id",
        "project_id",
        "dwg",
        "status",
        "description",
        "total_weight",
        "latest_submitted_date",
        "release_status",
        "pdf_path",
        "created_at",
    ],
    "drawings_yet_to_release": [
        "id",
        "project_id",
        "dwg_no",
        "status",
        "description",
        "total_weight_tons",
        "latest_submitted_date",
        "release_status",
        "pdf_path",
        "created_at",
    ],
    "drawings_yet_to_return": [
        "id",
        "project_id",
        "dwg_no",
        "status",
        "description",
        "total_weight_tons",
        "latest_submitted_date",
        "release_status",
        "pdf_path",
        "created_at",
    ],
    "projects": [
        "id",
        "project_name",
        "project_number",
    ],
    # Current state per drawing (denormalized from the latest revision)
    "drawings": [
        "id",
        "project_id",
        "dwg_no",
        "release_status",
        "revision_status",
        "revision_number",
        "corrected_date",
        "editor_id",
        "editor_name",
        "pdf_path",
        "updated_at",
    ],
    # Append-only revision history
    "drawing_annotations": [
        "id",
        "drawing_id",
        "annotations",     # JSON string
        "pdf_url",
        "revision_number",
        "revision_status",
        "corrected_date",
        "editor_id",
        "editor_name",
        "created_at",
    ],
}

SHEET_TAB_ORDER = [
    "drawing_log",
    "drawings_yet_to_release",
    "drawings_yet_to_return",
    "projects",
    "drawings",
    "drawing_annotations",
]


def _uuid() -> str:
    return str(uuid.uuid4())


def _sa_client_from_json_or_path(google_sa_json: str) -> gspread.Client:
    """
    Accepts either:
      - absolute/relative path to a service-account JSON file, OR
      - a literal JSON string.
    Returns an authorized gspread Client.
    """
    if not google_sa_json:
        raise ValueError("GOOGLE_SA_JSON is required (path to file or inline JSON).")

    # Try to treat as inline JSON first
    try:
        parsed = json.loads(google_sa_json)
        creds = Credentials.from_service_account_info(
            parsed,
            scopes=["https://www.googleapis.com/auth/spreadsheets"],
        )
        return gspread.authorize(creds)
    except json.JSONDecodeError:
        # Not JSON; treat as file path
        creds = Credentials.from_service_account_file(
            google_sa_json,
            scopes=["https://www.googleapis.com/auth/spreadsheets"],
        )
        return gspread.authorize(creds)


# ========== Retry decorator for Google Sheets API calls ==========
def retry_sheets_api(func):
    """Decorator to retry Sheets API calls with exponential backoff on quota errors."""
    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type((gspread.exceptions.APIError,)),
        reraise=True,
    )
    def wrapper(*args, **kwargs):
        return func(*args, **kwargs)

    return wrapper


class SheetsAdapter(DrawingStorage):
    """
    Google Sheets implementation, one tab per collection.

    - Every read is a full-tab read (tabs are small; no indexes)
    - Writes go through retry_sheets_api
    - Row order in drawing_annotations is insertion order
    """

    def __init__(self, google_sa_json: Optional[str], spreadsheet_id: Optional[str]) -> None:
        if not google_sa_json or not spreadsheet_id:
            raise ValueError("SheetsAdapter requires GOOGLE_SA_JSON and SHEETS_SPREADSHEET_ID")

        self.gc = _sa_client_from_json_or_path(google_sa_json)
        self.ss = self.gc.open_by_key(spreadsheet_id)

        self.ws: dict[str, gspread.Worksheet] = {}
        self.colmap: dict[str, dict[str, int]] = {}
        for tab in SHEET_TAB_ORDER:
            self.ws[tab] = self._ensure_worksheet(tab)
            self.colmap[tab] = self._ensure_headers(tab)

    # ========== Worksheet helpers ==========

    def _ensure_worksheet(self, name: str) -> gspread.Worksheet:
        try:
            return self.ss.worksheet(name)
        except gspread.WorksheetNotFound:
            return self.ss.add_worksheet(
                title=name,
                rows=200,
                cols=len(HEADERS[name]) + 2,
            )

    def _ensure_headers(self, name: str) -> dict[str, int]:
        ws = self.ws[name]
        values = ws.get_values("1:1")
        existing = values[0] if values else []

        base = HEADERS[name][:]
        if not existing:
            ws.update("A1", [base])
            header = base
        else:
            # Missing base columns are appended; extra columns already
            # present in the sheet are kept.
            missing = [c for c in base if c not in existing]
            header = existing + missing if missing else existing
            if header != existing:
                ws.update("1:1", [header])

        return {col: idx + 1 for idx, col in enumerate(header)}

    @retry_sheets_api
    def _get_all_dicts(self, tab: str) -> list[dict[str, Any]]:
        """Get all rows from a tab as dictionaries. WITH RETRY."""
        rows = self.ws[tab].get_all_values()
        if not rows:
            return []
        header = rows[0]
        out = []
        for r in rows[1:]:
            out.append({header[i]: (r[i] if i < len(r) else "") for i in range(len(header))})
        return out

    @retry_sheets_api
    def _append_rows(self, tab: str, rows: list[list[Any]]) -> None:
        """Append rows to tab. WITH RETRY."""
        if rows:
            # RAW keeps drawing numbers like "R-1" and ISO dates as typed text
            self.ws[tab].append_rows(rows, value_input_option="RAW")

    @retry_sheets_api
    def _update_cells(self, tab: str, row_idx: int, updates: dict[str, Any]) -> None:
        """Update specific cells in a row. WITH RETRY."""
        colmap = self.colmap[tab]
        data = []
        for k, v in updates.items():
            if k not in colmap:
                continue
            a1 = gspread.utils.rowcol_to_a1(row_idx, colmap[k])
            data.append({"range": a1, "values": [[v]]})
        if data:
            self.ws[tab].batch_update(data)

    @retry_sheets_api
    def _find_row_by_value(self, tab: str, col_name: str, value: str) -> Optional[int]:
        """Find 1-based sheet row index by column value. WITH RETRY."""
        col_idx = self.colmap[tab][col_name]
        col_vals = self.ws[tab].col_values(col_idx)
        for i, v in enumerate(col_vals[1:], start=2):  # skip header
            if v == value:
                return i
        return None

    def _append_dict_row(self, tab: str, data: dict[str, Any]) -> None:
        """Append one row using the SHEET'S CURRENT HEADER order."""
        header = sorted(self.colmap[tab], key=self.colmap[tab].get)
        row = [data.get(col, "") for col in header]
        self._append_rows(tab, [row])

    # ========== Drawing sources ==========

    def fetch_drawing_log(self) -> list[dict[str, Any]]:
        return self._get_all_dicts("drawing_log")

    def fetch_yet_to_release(self) -> list[dict[str, Any]]:
        return self._get_all_dicts("drawings_yet_to_release")

    def fetch_yet_to_return(self) -> list[dict[str, Any]]:
        return self._get_all_dicts("drawings_yet_to_return")

    # ========== Projects / drawings ==========

    def get_project(self, project_id: str) -> dict[str, Any] | None:
        return next(
            (p for p in self._get_all_dicts("projects") if p.get("id") == project_id),
            None,
        )

    def get_drawing(self, drawing_id: str) -> dict[str, Any] | None:
        return next(
            (d for d in self._get_all_dicts("drawings") if d.get("id") == drawing_id),
            None,
        )

    def update_drawing(self, drawing_id: str, updates: dict[str, Any]) -> bool:
        row_idx = self._find_row_by_value("drawings", "id", drawing_id)
        if not row_idx:
            return False
        self._update_cells("drawings", row_idx, updates)
        return True

    # ========== Revisions ==========

    def insert_revision(self, record: dict[str, Any]) -> dict[str, Any]:
        row = dict(record)
        row.setdefault("id", _uuid())
        row.setdefault("created_at", utc_now_iso())

        cells = dict(row)
        cells["annotations"] = json.dumps(row.get("annotations") or [], ensure_ascii=False)
        self._append_dict_row("drawing_annotations", cells)
        return row

    def list_revisions(self, drawing_id: str) -> list[dict[str, Any]]:
        rows = [
            (i, r)
            for i, r in enumerate(self._get_all_dicts("drawing_annotations"))
            if r.get("drawing_id") == drawing_id
        ]
        # Sheet row position breaks created_at ties (append order)
        rows.sort(key=lambda pair: (sort_timestamp(pair[1].get("created_at")), pair[0]), reverse=True)
        return [r for _, r in rows]

    def get_latest_revision(self, drawing_id: str) -> dict[str, Any] | None:
        revisions = self.list_revisions(drawing_id)
        return revisions[0] if revisions else None

    # ========== Health ==========

    def ping(self) -> None:
        # Quick check - read single cell
        self.ws["drawings"].acell("A1")
