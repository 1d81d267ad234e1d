"""
Shared fixtures.

main.py builds its storage adapter and blob store at import time, so the
environment is pointed at throwaway JSON/local-blob directories before
anything imports it.
"""
import os
import sys
import tempfile

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

_SESSION_DIR = tempfile.mkdtemp(prefix="drawing-tracker-tests-")
os.environ["STORAGE_BACKEND"] = "json"
os.environ["JSON_DATA_DIR"] = os.path.join(_SESSION_DIR, "data")
os.environ["BLOB_BACKEND"] = "local"
os.environ["BLOB_LOCAL_DIR"] = os.path.join(_SESSION_DIR, "blobs")
os.environ["BLOB_PUBLIC_BASE_URL"] = "http://testserver/blobs"

from adapters.json import JsonAdapter  # noqa: E402
from core.blob_store import LocalBlobStore  # noqa: E402

EDITOR_HEADERS = {"X-Editor-Id": "user-1", "X-Editor-Name": "Jane Doe"}


@pytest.fixture
def storage(tmp_path):
    return JsonAdapter(str(tmp_path / "data"))


@pytest.fixture
def blobs(tmp_path):
    return LocalBlobStore(str(tmp_path / "blobs"), "http://testserver/blobs")


@pytest.fixture
def client(storage, blobs):
    from fastapi.testclient import TestClient

    import main

    main.app.dependency_overrides[main.get_storage_adapter] = lambda: storage
    main.app.dependency_overrides[main.get_blob_store] = lambda: blobs
    try:
        yield TestClient(main.app)
    finally:
        main.app.dependency_overrides.clear()


@pytest.fixture
def editor_headers():
    return dict(EDITOR_HEADERS)
