# services/api/core/blob_store.py
"""
Blob storage for annotated drawing PDFs.

The revision store only needs two calls: `put` the bytes under a name it
chose, then resolve a durable public URL for that name.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Protocol
from urllib.parse import quote

from cachetools import LRUCache

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    def put(self, name: str, data: bytes, content_type: str) -> str:
        """Store `data` under `name`; returns the public URL. Must not overwrite."""
        ...

    def get_public_url(self, name: str) -> str:
        """Durable, publicly resolvable URL of a stored blob."""
        ...


def _check_name(name: str) -> str:
    n = (name or "").strip()
    if not n or n in (".", "..") or "/" in n or "\\" in n or "\x00" in n:
        raise ValueError(f"Invalid blob name: {name!r}")
    return n


class LocalBlobStore:
    """
    Filesystem-backed blobs under `root_dir`, served by main.py at
    `public_base_url` (StaticFiles mount).
    """

    def __init__(self, root_dir: str, public_base_url: str) -> None:
        self.root = Path(root_dir)
        self.root.mkdir(parents=True, exist_ok=True)
        self.public_base_url = public_base_url.rstrip("/")

    def _path(self, name: str) -> Path:
        return self.root / _check_name(name)

    def put(self, name: str, data: bytes, content_type: str) -> str:
        path = self._path(name)
        if path.exists():
            raise FileExistsError(f"Blob already exists: {name}")
        tmp = path.with_name(path.name + ".part")
        try:
            tmp.write_bytes(data)
            os.replace(tmp, path)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise
        logger.info("Stored blob %s (%d bytes, %s)", name, len(data), content_type)
        return self.get_public_url(name)

    def get_public_url(self, name: str) -> str:
        path = self._path(name)
        if not path.exists():
            raise FileNotFoundError(f"Blob not found: {name}")
        return f"{self.public_base_url}/{quote(path.name)}"


class DriveBlobStore:
    """
    Google Drive-backed blobs:

        <root folder>/<drawings subfolder>/<name>

    Files are shared read-by-link; the public URL is the direct
    download link for the file id.
    """

    def __init__(
        self,
        *,
        root_folder_name: str,
        root_folder_id: str = "",
        drawings_subfolder: str = "Annotated_Drawings",
        service=None,
        file_id_cache_size: int = 256,
    ) -> None:
        self.root_folder_name = root_folder_name
        self.root_folder_id = (root_folder_id or "").strip()
        self.drawings_subfolder = drawings_subfolder
        self._service = service
        self._folder_id: Optional[str] = None
        self._file_ids: LRUCache = LRUCache(maxsize=file_id_cache_size)

    @property
    def service(self):
        if self._service is None:
            from core.drive_client import get_drive_service
            self._service = get_drive_service()
        return self._service

    def _target_folder(self) -> str:
        from core.drive_client import ensure_folder

        if self._folder_id is None:
            root_id = self.root_folder_id or ensure_folder(self.service, self.root_folder_name)
            self._folder_id = ensure_folder(self.service, self.drawings_subfolder, parent_id=root_id)
        return self._folder_id

    def put(self, name: str, data: bytes, content_type: str) -> str:
        from core.drive_client import download_url, upload_file

        name = _check_name(name)
        file_id = upload_file(
            self.service,
            folder_id=self._target_folder(),
            file_name=name,
            data=data,
            mimetype=content_type,
        )
        self._file_ids[name] = file_id
        return download_url(file_id)

    def get_public_url(self, name: str) -> str:
        from core.drive_client import download_url, find_file_id

        name = _check_name(name)
        file_id = self._file_ids.get(name)
        if not file_id:
            file_id = find_file_id(self.service, folder_id=self._target_folder(), file_name=name)
        if not file_id:
            raise FileNotFoundError(f"Drive file not found: {name}")
        self._file_ids[name] = file_id
        return download_url(file_id)
