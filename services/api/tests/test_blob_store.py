"""
Tests for the local and Drive blob stores.
"""
from pathlib import Path

import pytest

from core.blob_store import DriveBlobStore, LocalBlobStore


class TestLocalBlobStore:
    """Filesystem-backed blobs."""

    def test_put_and_url(self, blobs):
        url = blobs.put("drawing-1.pdf", b"%PDF", "application/pdf")
        assert url == "http://testserver/blobs/drawing-1.pdf"
        assert blobs.get_public_url("drawing-1.pdf") == url
        assert (blobs.root / "drawing-1.pdf").read_bytes() == b"%PDF"

    def test_url_is_quoted(self, blobs):
        assert blobs.put("rev 1.pdf", b"x", "application/pdf").endswith("/rev%201.pdf")

    def test_refuses_overwrite(self, blobs):
        blobs.put("a.pdf", b"one", "application/pdf")
        with pytest.raises(FileExistsError):
            blobs.put("a.pdf", b"two", "application/pdf")
        assert (blobs.root / "a.pdf").read_bytes() == b"one"

    @pytest.mark.parametrize("name", ["", "..", "../escape.pdf", "sub/dir.pdf", "a\\b.pdf"])
    def test_rejects_unsafe_names(self, blobs, name):
        with pytest.raises(ValueError):
            blobs.put(name, b"x", "application/pdf")

    def test_unknown_blob(self, blobs):
        with pytest.raises(FileNotFoundError):
            blobs.get_public_url("missing.pdf")

    def test_trailing_slash_in_base_url(self, tmp_path):
        store = LocalBlobStore(str(tmp_path), "http://cdn.example/blobs/")
        assert store.put("x.pdf", b"x", "application/pdf") == "http://cdn.example/blobs/x.pdf"

    def test_failed_write_leaves_no_temp_file(self, blobs, monkeypatch):
        def short_write(path, data):
            with open(path, "wb") as fh:
                fh.write(data[:2])
            raise OSError("disk full")

        monkeypatch.setattr(Path, "write_bytes", short_write)
        with pytest.raises(OSError):
            blobs.put("a.pdf", b"%PDF", "application/pdf")
        assert list(blobs.root.iterdir()) == []


class _Request:
    def __init__(self, result):
        self.result = result

    def execute(self):
        return self.result


class FakeDrive:
    """Just enough of the Drive v3 files()/permissions() surface."""

    def __init__(self):
        self.folder_names = {}
        self.uploaded = {}
        self.grants = []
        self._next = 0

    def _id(self, prefix):
        self._next += 1
        return f"{prefix}{self._next}"

    # service.files()
    def files(self):
        return self

    def permissions(self):
        return _Permissions(self)

    def list(self, q, **kwargs):
        if "application/vnd.google-apps.folder" in q:
            hits = [{"id": fid, "name": n} for fid, n in self.folder_names.items() if f"name = '{n}'" in q]
        else:
            hits = [{"id": fid} for fid, meta in self.uploaded.items() if f"name = '{meta['name']}'" in q]
        return _Request({"files": hits[:1]})

    def create(self, body, fields="id", media_body=None):
        if media_body is None:
            fid = self._id("folder")
            self.folder_names[fid] = body["name"]
        else:
            fid = self._id("file")
            self.uploaded[fid] = body
        return _Request({"id": fid})


class _Permissions:
    def __init__(self, drive):
        self.drive = drive

    def create(self, fileId, body, fields="id"):
        self.drive.grants.append((fileId, body))
        return _Request({"id": "perm"})


class TestDriveBlobStore:
    """Drive-backed blobs against an in-memory fake service."""

    def test_put_creates_folders_once_and_shares(self):
        drive = FakeDrive()
        store = DriveBlobStore(root_folder_name="Drawing_Revisions", service=drive)

        url1 = store.put("a.pdf", b"1", "application/pdf")
        url2 = store.put("b.pdf", b"2", "application/pdf")

        assert sorted(drive.folder_names.values()) == ["Annotated_Drawings", "Drawing_Revisions"]
        assert url1.startswith("https://drive.google.com/uc?export=download&id=file")
        assert url1 != url2
        assert [p[1] for p in drive.grants] == [{"role": "reader", "type": "anyone"}] * 2

    def test_root_folder_id_skips_lookup(self):
        drive = FakeDrive()
        store = DriveBlobStore(root_folder_name="ignored", root_folder_id="root-123", service=drive)
        store.put("a.pdf", b"1", "application/pdf")
        assert list(drive.folder_names.values()) == ["Annotated_Drawings"]

    def test_public_url_falls_back_to_lookup(self):
        drive = FakeDrive()
        DriveBlobStore(root_folder_name="R", service=drive).put("a.pdf", b"1", "application/pdf")

        fresh = DriveBlobStore(root_folder_name="R", service=drive)
        assert fresh.get_public_url("a.pdf").endswith("id=file3")
        with pytest.raises(FileNotFoundError):
            fresh.get_public_url("missing.pdf")

    def test_file_id_cache_is_bounded(self):
        drive = FakeDrive()
        store = DriveBlobStore(root_folder_name="R", service=drive, file_id_cache_size=2)
        first = store.put("a.pdf", b"1", "application/pdf")
        store.put("b.pdf", b"2", "application/pdf")
        store.put("c.pdf", b"3", "application/pdf")

        assert len(store._file_ids) == 2
        assert "a.pdf" not in store._file_ids
        assert store.get_public_url("a.pdf") == first
