"""Integration tests for the CV HTTP routes."""

import json
import uuid

import pytest

from app import create_app
from config import TestConfig
from errors import StorageError
from storage import RecordStore


class BrokenStore(RecordStore):
    def put(self, identifier, payload):
        raise StorageError("disk full", details={"id": identifier})

    def get(self, identifier):
        raise StorageError("disk gone", details={"id": identifier})


@pytest.mark.integration
def test_store_and_retrieve_scenario(client):
    """Test POST then GET returns the document verbatim and unknown ids 404."""
    doc = {"personalInfo": {"fullName": "Ana Pérez"}}

    r = client.post("/api/cvs", json={"id": "abc123", "data": doc})
    assert r.status_code == 200
    assert r.get_json() == {"success": True}

    r = client.get("/api/cvs/abc123")
    assert r.status_code == 200
    assert r.get_json() == doc

    r = client.get("/api/cvs/nonexistent")
    assert r.status_code == 404
    assert r.get_json() == {"error": "CV not found"}


@pytest.mark.integration
def test_overwrite_over_http(client, sample_cv):
    """Test a second POST fully replaces the first."""
    client.post("/api/cvs", json={"id": "abc", "data": sample_cv})
    client.post("/api/cvs", json={"id": "abc", "data": {"professionalProfile": "solo"}})

    assert client.get("/api/cvs/abc").get_json() == {"professionalProfile": "solo"}


@pytest.mark.integration
def test_key_order_is_preserved(client):
    """Test the response keeps the stored key order."""
    doc = {"zeta": 1, "alpha": 2, "mid": {"b": 1, "a": 2}}
    client.post("/api/cvs", json={"id": "ordered", "data": doc})

    body = client.get("/api/cvs/ordered").get_data(as_text=True)
    assert list(json.loads(body)) == ["zeta", "alpha", "mid"]


@pytest.mark.integration
@pytest.mark.parametrize("body", [
    {"data": {"a": 1}},
    {"id": "abc"},
    {"id": "", "data": {"a": 1}},
    {"id": "abc", "data": None},
    {"id": "abc", "data": ""},
    {"id": "abc", "data": 0},
    {"id": "abc", "data": False},
    ["abc", {"a": 1}],
])
def test_incomplete_store_is_bad_request(client, body):
    """Test missing id or data is a 400 and persists nothing."""
    r = client.post("/api/cvs", json=body)
    assert r.status_code == 400
    assert r.get_json() == {"error": "Missing id or data"}
    assert client.get("/api/cvs/abc").status_code == 404


@pytest.mark.integration
def test_empty_containers_are_stored(client):
    """Test {} and [] are valid documents over HTTP."""
    for cv_id, data in (("obj", {}), ("arr", [])):
        assert client.post("/api/cvs", json={"id": cv_id, "data": data}).status_code == 200
        assert client.get(f"/api/cvs/{cv_id}").get_json() == data


@pytest.mark.integration
def test_unencodable_text_is_storage_failure(client):
    """Test a lone surrogate yields the JSON storage error, not an HTML 500."""
    body = '{"id": "sur", "data": {"personalInfo": {"fullName": "\\ud800"}}}'
    r = client.post("/api/cvs", data=body, content_type="application/json")

    assert r.status_code == 500
    assert r.get_json() == {"error": "Storage failure"}
    assert client.get("/api/cvs/sur").status_code == 404


@pytest.mark.integration
def test_non_json_body_is_bad_request(client):
    """Test a body that is not JSON is a 400."""
    r = client.post("/api/cvs", data="id=abc", content_type="application/x-www-form-urlencoded")
    assert r.status_code == 400

    r = client.post("/api/cvs", data="{broken", content_type="application/json")
    assert r.status_code == 400


@pytest.mark.integration
def test_oversized_body_is_rejected(db_path):
    """Test bodies above MAX_CONTENT_LENGTH get a 413."""
    app = create_app(TestConfig, overrides={"SQLITE_PATH": db_path, "MAX_CONTENT_LENGTH": 1024})
    client = app.test_client()
    photo = "data:image/png;base64," + "A" * 2048

    r = client.post("/api/cvs", json={"id": "big", "data": {"personalInfo": {"photo": photo}}})

    assert r.status_code == 413
    assert client.get("/api/cvs/big").status_code == 404
    app.extensions["cv_store"].close()


@pytest.mark.integration
def test_storage_failure_is_generic_500():
    """Test storage errors are reported without internal details."""
    app = create_app(TestConfig, store=BrokenStore())
    client = app.test_client()

    r = client.post("/api/cvs", json={"id": "abc", "data": {"a": 1}})
    assert r.status_code == 500
    assert r.get_json() == {"error": "Storage failure"}

    r = client.get("/api/cvs/abc")
    assert r.status_code == 500
    assert "disk" not in r.get_data(as_text=True)


@pytest.mark.integration
def test_issue_identifier(client):
    """Test the server hands out fresh UUIDs."""
    a = client.post("/api/ids")
    b = client.post("/api/ids")

    assert a.status_code == 201
    assert a.get_json()["id"] != b.get_json()["id"]
    uuid.UUID(a.get_json()["id"])


@pytest.mark.integration
def test_health(client):
    """Test the health probe."""
    assert client.get("/health").get_json() == {"ok": True}


@pytest.mark.integration
def test_security_headers_allow_inline_photos(client):
    """Test the CSP lets data: images through for embedded photos."""
    r = client.get("/health")
    csp = r.headers.get("Content-Security-Policy", "")
    assert "img-src 'self' data:" in csp
    assert r.headers.get("X-Frame-Options") == "DENY"


@pytest.mark.integration
def test_frontend_not_built(client):
    """Test the SPA routes 404 cleanly when no bundle is configured."""
    r = client.get("/")
    assert r.status_code == 404
    assert r.get_json() == {"error": "front end not built"}


@pytest.mark.integration
def test_frontend_serves_assets_and_falls_back_to_index(tmp_path, db_path):
    """Test static files are served and unknown paths get index.html."""
    dist = tmp_path / "dist"
    (dist / "assets").mkdir(parents=True)
    (dist / "index.html").write_text("<html>builder</html>", encoding="utf-8")
    (dist / "assets" / "app.js").write_text("console.log(1)", encoding="utf-8")

    app = create_app(TestConfig, overrides={"SQLITE_PATH": db_path, "STATIC_DIR": str(dist)})
    client = app.test_client()

    assert b"builder" in client.get("/").data
    assert client.get("/assets/app.js").data == b"console.log(1)"
    assert b"builder" in client.get("/preview?id=abc").data
    assert client.get("/api/unknown").status_code == 404
    app.extensions["cv_store"].close()
