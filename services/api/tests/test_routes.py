"""
HTTP contract tests (TestClient + dependency overrides).
"""
import json
import os

import pytest

PDF = b"%PDF-1.4\n% annotated\n"
MARKUP = json.dumps([{"type": "circle", "page": 1, "cx": 0.5, "cy": 0.5, "r": 0.1}])


@pytest.fixture
def seeded(storage):
    storage.add_rows("projects", [{"id": "p1", "project_name": "Warehouse"}])
    storage.add_rows("drawing_log", [
        {"id": "1", "dwg": "R-1", "status": "APP", "latest_submitted_date": "2024-01-15", "project_id": "p1"},
    ])
    storage.add_rows("drawings_yet_to_release", [
        {"id": "1", "dwg_no": "B-4", "status": "APP", "latest_submitted_date": "2024-03-01"},
    ])
    storage.add_rows("drawings_yet_to_return", [
        {"id": "1", "dwg_no": "R-3", "total_weight_tons": 71500, "latest_submitted_date": "2023-09-06",
         "project_id": "p1"},
    ])
    storage.add_rows("drawings", [{"id": "d1", "dwg_no": "R-1"}])
    return storage


def _save(client, headers, drawing_id="d1", **form):
    data = {"annotations": MARKUP, **form}
    return client.post(
        f"/drawings/{drawing_id}/annotations",
        data=data,
        files={"pdfBlob": ("drawing.pdf", PDF, "application/pdf")},
        headers=headers,
    )


class TestListDrawings:
    """GET /drawings"""

    def test_merged_and_sorted(self, client, seeded):
        resp = client.get("/drawings")
        assert resp.status_code == 200
        body = resp.json()
        assert [d["dwgNo"] for d in body["data"]] == ["B-4", "R-1", "R-3"]
        assert body["data"][0]["status"] == "FFU"
        assert body["pagination"] == {
            "page": 1,
            "pageSize": 20,
            "total": 3,
            "totalPages": 1,
            "hasNextPage": False,
            "hasPreviousPage": False,
        }

    def test_page_size_clamped(self, client, seeded):
        body = client.get("/drawings", params={"page": 0, "pageSize": 5000}).json()
        assert body["pagination"]["page"] == 1
        assert body["pagination"]["pageSize"] == 100

    def test_second_page(self, client, seeded):
        body = client.get("/drawings", params={"page": 2, "pageSize": 2}).json()
        assert [d["dwgNo"] for d in body["data"]] == ["R-3"]
        assert body["pagination"]["hasPreviousPage"] is True

    def test_project_filter(self, client, seeded):
        body = client.get("/drawings", params={"projectId": "p1"}).json()
        assert [d["dwgNo"] for d in body["data"]] == ["R-1", "R-3"]

    def test_source_failure(self, client, seeded, monkeypatch):
        def boom():
            raise ConnectionError("tab gone")

        monkeypatch.setattr(seeded, "fetch_yet_to_return", boom)
        resp = client.get("/drawings")
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to fetch drawings"}

    def test_request_id_header(self, client, seeded):
        assert len(client.get("/drawings").headers["X-Request-ID"]) == 8


class TestSearch:
    """GET /drawings/search"""

    def test_found_case_insensitive(self, client, seeded):
        resp = client.get("/drawings/search", params={"dwgNo": "r-3"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["dwgNo"] == "R-3"
        assert body["status"] == "PND"
        assert body["totalWeightTons"] == 71500
        assert isinstance(body["weeksSinceSent"], int) and body["weeksSinceSent"] >= 52
        assert body["projectName"] == "Warehouse"

    def test_missing_param(self, client, seeded):
        resp = client.get("/drawings/search")
        assert resp.status_code == 400
        assert resp.json() == {"error": "Drawing number (dwgNo) is required"}

    def test_not_found(self, client, seeded):
        resp = client.get("/drawings/search", params={"dwgNo": "Z-9"})
        assert resp.status_code == 404
        assert resp.json() == {"error": "Drawing not found"}


class TestAnnotations:
    """POST/GET /drawings/{id}/annotations"""

    def test_requires_editor(self, client, seeded, blobs):
        resp = _save(client, headers={})
        assert resp.status_code == 401
        assert resp.json() == {"message": "Unauthorized"}
        assert os.listdir(blobs.root) == []

    def test_missing_fields(self, client, seeded, blobs, editor_headers):
        resp = client.post("/drawings/d1/annotations", data={"annotations": MARKUP}, headers=editor_headers)
        assert resp.status_code == 400
        assert "message" in resp.json()

        resp = client.post(
            "/drawings/d1/annotations",
            files={"pdfBlob": ("drawing.pdf", PDF, "application/pdf")},
            headers=editor_headers,
        )
        assert resp.status_code == 400
        assert os.listdir(blobs.root) == []

    def test_save_then_fetch(self, client, seeded, editor_headers):
        resp = _save(client, editor_headers, revisionNumber="2", revisionStatus="IFC")
        assert resp.status_code == 200
        saved = resp.json()
        assert saved["success"] is True
        assert saved["revisionNumber"] == 2
        assert saved["pdfUrl"].startswith("http://testserver/blobs/drawing-d1-rev-2-")

        latest = client.get("/drawings/d1/annotations", headers=editor_headers).json()
        assert latest == {
            "annotations": json.loads(MARKUP),
            "pdfUrl": saved["pdfUrl"],
            "revisionNumber": 2,
        }
        assert seeded.get_drawing("d1")["pdf_path"] == saved["pdfUrl"]

    def test_editor_name_falls_back_to_email(self, client, seeded):
        _save(client, {"X-Editor-Id": "u-9", "X-Editor-Email": "pm@example.com"})
        assert seeded.get_latest_revision("d1")["editor_name"] == "pm@example.com"

    def test_no_revisions_yet(self, client, seeded, editor_headers):
        resp = client.get("/drawings/d1/annotations", headers=editor_headers)
        assert resp.status_code == 200
        assert resp.json() == {"annotations": [], "pdfUrl": None, "revisionNumber": 0}

    def test_later_save_wins(self, client, seeded, editor_headers):
        _save(client, editor_headers, revisionNumber="5")
        second = _save(client, editor_headers, revisionNumber="3").json()
        latest = client.get("/drawings/d1/annotations", headers=editor_headers).json()
        assert latest["pdfUrl"] == second["pdfUrl"]
        assert latest["revisionNumber"] == 3

    def test_history(self, client, seeded, editor_headers):
        _save(client, editor_headers, revisionNumber="1")
        _save(client, editor_headers, revisionNumber="2")
        body = client.get("/drawings/d1/annotations/history", headers=editor_headers).json()
        assert body["drawingId"] == "d1"
        assert body["count"] == 2
        assert [r["revisionNumber"] for r in body["revisions"]] == [2, 1]
        assert body["revisions"][0]["editorName"] == "Jane Doe"

    def test_storage_failure(self, client, seeded, blobs, editor_headers, monkeypatch):
        def boom(name, data, content_type):
            raise IOError("disk full")

        monkeypatch.setattr(blobs, "put", boom)
        resp = _save(client, editor_headers)
        assert resp.status_code == 500
        assert resp.json() == {"message": "Failed to upload annotated PDF"}
        assert seeded.list_revisions("d1") == []


class TestReleaseStatus:
    """PATCH /drawings/{id}/release-status"""

    def test_update(self, client, seeded, editor_headers):
        resp = client.patch(
            "/drawings/d1/release-status",
            json={"releaseStatus": "Partially Released"},
            headers=editor_headers,
        )
        assert resp.status_code == 200
        assert resp.json() == {
            "success": True,
            "message": "Release status updated successfully",
            "releaseStatus": "Partially Released",
        }
        assert seeded.get_drawing("d1")["release_status"] == "Partially Released"

    def test_invalid_value(self, client, seeded, editor_headers):
        resp = client.patch(
            "/drawings/d1/release-status",
            json={"releaseStatus": "Somewhere Else"},
            headers=editor_headers,
        )
        assert resp.status_code == 400
        assert "Partially Released" in resp.json()["message"]
        assert seeded.get_drawing("d1").get("release_status") is None

    def test_missing_value(self, client, seeded, editor_headers):
        resp = client.patch("/drawings/d1/release-status", json={}, headers=editor_headers)
        assert resp.status_code == 400

    def test_requires_editor(self, client, seeded):
        resp = client.patch("/drawings/d1/release-status", json={"releaseStatus": "Partially Released"})
        assert resp.status_code == 401
        assert seeded.get_drawing("d1").get("release_status") is None

    def test_unknown_drawing(self, client, seeded, editor_headers):
        resp = client.patch(
            "/drawings/ghost/release-status",
            json={"releaseStatus": "Yet to Be Released"},
            headers=editor_headers,
        )
        assert resp.status_code == 404


class TestHealth:
    """Health probes."""

    def test_healthz(self, client):
        assert client.get("/healthz").json()["status"] == "ok"

    def test_health_and_readyz(self, client):
        assert client.get("/health").status_code == 200
        assert client.get("/readyz").json()["status"] == "ready"
