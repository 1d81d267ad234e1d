# services/api/core/drive_client.py
from __future__ import annotations
import logging
import os
import json
from io import BytesIO
from typing import Optional
from pathlib import Path

from google.oauth2.credentials import Credentials as UserCredentials
from google.auth.transport.requests import Request
from googleapiclient.discovery import build
from googleapiclient.http import MediaIoBaseUpload

logger = logging.getLogger(__name__)

_drive_service = None

# "drive.file" = upload + manage files created by this app only
SCOPES = ["https://www.googleapis.com/auth/drive.file"]

# Paths relative to services/api/
BASE_DIR = Path(__file__).resolve().parent.parent
CREDS_DIR = BASE_DIR / "creds"
TOKEN_FILE = CREDS_DIR / "drive_token.json"
CLIENT_SECRET_FILE = CREDS_DIR / "drive_oauth_client.json"

FOLDER_MIME = "application/vnd.google-apps.folder"


def _get_drive_credentials() -> UserCredentials:
    """
    Load user OAuth credentials.

    Priority:
    1) DRIVE_TOKEN_JSON env var (deployed environments).
    2) Local creds/drive_token.json written by drive_oauth_init.py (dev).
    """
    token_env = os.getenv("DRIVE_TOKEN_JSON")

    if token_env:
        try:
            info = json.loads(token_env)
            creds = UserCredentials.from_authorized_user_info(info, SCOPES)
        except Exception as e:
            logger.exception("Failed to load DRIVE_TOKEN_JSON from env: %s", e)
            raise
    else:
        if not TOKEN_FILE.exists():
            msg = (
                f"Drive token not found in env or at {TOKEN_FILE}. "
                "Either set DRIVE_TOKEN_JSON or run drive_oauth_init.py once."
            )
            logger.error(msg)
            raise RuntimeError(msg)

        creds = UserCredentials.from_authorized_user_file(str(TOKEN_FILE), SCOPES)

    if creds.expired and creds.refresh_token:
        try:
            logger.info("Refreshing Google Drive OAuth token...")
            creds.refresh(Request())

            # Persist only file-based creds
            if not token_env:
                CREDS_DIR.mkdir(parents=True, exist_ok=True)
                TOKEN_FILE.write_text(creds.to_json())
                logger.info("Google Drive OAuth token refreshed and saved.")
        except Exception as e:
            logger.exception("Failed to refresh Drive OAuth token: %s", e)
            raise

    return creds


def get_drive_service():
    """Lazily construct and cache a Google Drive v3 service client."""
    global _drive_service
    if _drive_service is None:
        creds = _get_drive_credentials()
        _drive_service = build(
            "drive",
            "v3",
            credentials=creds,
            cache_discovery=False,
        )
        logger.info("Initialized Google Drive client using OAuth user credentials.")
    return _drive_service


def _escape_query(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _safe_segment(value: str, fallback: str = "UNKNOWN") -> str:
    """
    Clean folder name segments so Drive accepts them nicely.
    """
    if not value:
        return fallback
    v = value.strip()
    if not v:
        return fallback
    v = v.replace("/", "_").replace("\\", "_")
    return v[:120]


def ensure_folder(service, name: str, parent_id: Optional[str] = None) -> str:
    """
    Find (or create) a folder with given name under parent_id (or My Drive root).
    Returns the folder ID.
    """
    folder_name = _safe_segment(name, "UNTITLED")
    safe_name = _escape_query(folder_name)
    q = f"mimeType = '{FOLDER_MIME}' and name = '{safe_name}' and trashed = false"
    if parent_id:
        q += f" and '{parent_id}' in parents"

    result = service.files().list(
        q=q,
        spaces="drive",
        fields="files(id, name)",
        pageSize=1,
    ).execute()

    files = result.get("files", [])
    if files:
        return files[0]["id"]

    metadata = {"name": folder_name, "mimeType": FOLDER_MIME}
    if parent_id:
        metadata["parents"] = [parent_id]

    created = service.files().create(body=metadata, fields="id").execute()
    return created["id"]


def upload_file(service, *, folder_id: str, file_name: str, data: bytes, mimetype: str) -> str:
    """
    Upload bytes as a new Drive file and make it readable by link.

    Returns the Drive file id. Raises on upload failure; a failed
    permission grant is only logged (the file exists, the link may
    just need sharing by hand).
    """
    media = MediaIoBaseUpload(BytesIO(data), mimetype=mimetype, resumable=False)
    created = service.files().create(
        body={"name": file_name, "parents": [folder_id]},
        media_body=media,
        fields="id",
    ).execute()
    file_id = created["id"]

    try:
        service.permissions().create(
            fileId=file_id,
            body={"role": "reader", "type": "anyone"},
            fields="id",
        ).execute()
    except Exception as e:
        logger.warning("Failed to set public permission for drive file %s: %s", file_id, e)

    logger.info("Uploaded %s to Drive file_id=%s (%d bytes)", file_name, file_id, len(data))
    return file_id


def find_file_id(service, *, folder_id: str, file_name: str) -> Optional[str]:
    q = (
        f"name = '{_escape_query(file_name)}' "
        f"and '{folder_id}' in parents "
        "and trashed = false"
    )
    result = service.files().list(q=q, spaces="drive", fields="files(id)", pageSize=1).execute()
    files = result.get("files", [])
    return files[0]["id"] if files else None


def download_url(file_id: str) -> str:
    return f"https://drive.google.com/uc?export=download&id={file_id}"
