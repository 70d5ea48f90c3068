"""
Service-level tests for the HTTP API.

Each test runs the real application (lifespan included) against a temporary
data directory. The external extraction tool is replaced by an in-process
fake so the upload flow can be driven end to end.
"""

import base64
import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from gst_backend.main import create_app

BOUNDARY = "xyzBOUNDARYxyz"


@pytest.fixture
def extractor(settings, make_extractor):
    return make_extractor(
        settings.primary_path,
        payload={
            "articles": [
                {"title": "Circular 12/2024", "category": "Circulars"},
                {"title": "Ruling", "category": "Case Law"},
                {"title": "Untitled"},
            ]
        },
    )


@pytest.fixture
def client(settings, extractor):
    settings.db_path.write_text(json.dumps({"sets": [{"id": "s1"}], "articles": []}))
    app = create_app(settings, extractor=extractor)
    with TestClient(app) as client:
        yield client


def multipart_body(filename: str, content_type: str, payload: bytes) -> bytes:
    return (
        f"--{BOUNDARY}\r\n"
        f'Content-Disposition: form-data; name="pdf"; filename="{filename}"\r\n'
        f"Content-Type: {content_type}\r\n\r\n"
    ).encode() + payload + f"\r\n--{BOUNDARY}--\r\n".encode()


def uploads(settings):
    return sorted(settings.uploads_path.iterdir())


def test_health_reports_counts_and_data(client):
    client.post("/api/users", json={"phone": "999"})

    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert isinstance(body["updatedAt"], int)
    assert body["counts"] == {
        "sets": 1, "articles": 0, "trending": 0, "plans": 0,
        "aiMessages": 0, "notifications": 0, "users": 1,
    }
    assert body["data"]["sets"] == [{"id": "s1"}]
    assert body["data"]["users"][0]["phone"] == "999"


def test_content_end_to_end(client):
    response = client.post("/api/content", json={"title": "New Circular", "kind": "circular"})

    assert response.status_code == 201
    assert response.json() == {"title": "New Circular", "category": "Circulars", "date": "", "author": ""}

    dashboard = client.get("/api/dashboard").json()
    assert {"title": "New Circular", "category": "Circulars", "date": "", "author": ""} in dashboard["articles"]
    assert set(dashboard) == {"sets", "articles", "trending", "plans", "aiMessages", "notifications"}


@pytest.mark.parametrize(
    "payload, category",
    [
        ({"title": "t", "kind": "caseLaw"}, "Case Law"),
        ({"title": "t"}, "Updates"),
        ({"title": "t", "kind": "circular", "category": "Custom"}, "Custom"),
    ],
)
def test_content_category_derivation(client, payload, category):
    assert client.post("/api/content", json=payload).json()["category"] == category


def test_content_requires_title(client):
    response = client.post("/api/content", json={"kind": "circular"})

    assert response.status_code == 400
    assert response.json() == {"error": "title is required"}


def test_notifications(client):
    response = client.post("/api/notifications", json={"title": "Due date", "message": "GSTR-3B on 20th"})

    assert response.status_code == 201
    item = response.json()
    assert item["id"] and item["createdAt"]
    assert client.get("/api/dashboard").json()["notifications"] == [item]

    missing = client.post("/api/notifications", json={"title": "only title"})
    assert missing.status_code == 400
    assert missing.json() == {"error": "title and message are required"}


def test_user_without_phone_is_rejected(client):
    response = client.post("/api/users", json={"name": "No Phone"})

    assert response.status_code == 400
    assert response.json() == {"error": "phone is required"}
    assert client.get("/api/users").json() == []


def test_two_users_get_distinct_ids(client):
    first = client.post("/api/users", json={"phone": "1"}).json()
    second = client.post("/api/users", json={"phone": "2"}).json()

    assert first["id"] != second["id"]
    assert [user["phone"] for user in client.get("/api/users").json()] == ["1", "2"]


def test_malformed_json_is_a_400(client):
    response = client.post(
        "/api/content", content=b"{not json", headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400
    assert "error" in response.json()


def test_json_body_over_cap_is_rejected(settings, extractor):
    settings.max_json_bytes = 64
    with TestClient(create_app(settings, extractor=extractor)) as client:
        response = client.post("/api/content", json={"title": "x" * 200})

    assert response.status_code == 413


def test_multipart_upload_success(client, settings, extractor):
    response = client.post(
        "/api/upload",
        content=multipart_body("March update.pdf", "application/pdf", b"%PDF-1.4 body"),
        headers={"Content-Type": f"multipart/form-data; boundary={BOUNDARY}"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "PDF uploaded and data extracted successfully"
    assert body["fileName"].endswith("-March_update.pdf")
    assert body["totalArticles"] == 3
    assert body["categories"] == {"Circulars": 1, "Case Law": 1, "Other": 1}
    assert (settings.uploads_path / body["fileName"]).read_bytes() == b"%PDF-1.4 body"
    assert len(client.get("/api/dashboard").json()["articles"]) == 3


def test_multipart_without_boundary_writes_nothing(client, settings):
    response = client.post(
        "/api/upload",
        content=multipart_body("a.pdf", "application/pdf", b"%PDF"),
        headers={"Content-Type": "multipart/form-data"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "No boundary found"}
    assert uploads(settings) == []


def test_multipart_without_pdf_part(client, settings):
    response = client.post(
        "/api/upload",
        content=multipart_body("a.png", "image/png", b"png"),
        headers={"Content-Type": f"multipart/form-data; boundary={BOUNDARY}"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "No PDF file found in upload"}
    assert uploads(settings) == []


def test_multipart_over_cap_is_rejected(settings, extractor):
    settings.max_upload_bytes = 100
    with TestClient(create_app(settings, extractor=extractor)) as client:
        response = client.post(
            "/api/upload",
            content=multipart_body("a.pdf", "application/pdf", b"x" * 500),
            headers={"Content-Type": f"multipart/form-data; boundary={BOUNDARY}"},
        )

    assert response.status_code == 413
    assert response.json() == {"error": "File too large"}


def test_multipart_extraction_failure(settings, make_extractor):
    failing = make_extractor(settings.primary_path, error="cannot parse PDF")
    with TestClient(create_app(settings, extractor=failing)) as client:
        response = client.post(
            "/api/upload",
            content=multipart_body("a.pdf", "application/pdf", b"%PDF"),
            headers={"Content-Type": f"multipart/form-data; boundary={BOUNDARY}"},
        )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "PDF uploaded but extraction failed"
    assert body["error"] == "cannot parse PDF"
    assert (settings.uploads_path / body["fileName"]).exists()


def test_envelope_upload_success(client, settings):
    data = base64.b64encode(b"%PDF-1.7").decode()

    response = client.post("/api/upload/pdf", json={"fileName": "notice.pdf", "data": data})

    assert response.status_code == 201
    body = response.json()
    assert body == {"ok": True, "message": "Uploaded and extracted", "path": body["path"]}
    assert body["path"].endswith("-notice.pdf")


def test_envelope_upload_requires_data(client, settings):
    response = client.post("/api/upload/pdf", json={"fileName": "notice.pdf"})

    assert response.status_code == 400
    assert response.json() == {"error": "data is required (base64)"}
    assert uploads(settings) == []


def test_envelope_extraction_failure_is_soft(settings, make_extractor):
    failing = make_extractor(settings.primary_path, error="exit status 1")
    data = base64.b64encode(b"%PDF").decode()
    with TestClient(create_app(settings, extractor=failing)) as client:
        response = client.post("/api/upload/pdf", json={"data": data})

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["message"] == "Uploaded but extraction failed"
    assert body["error"] == "exit status 1"
    assert body["path"].endswith("-upload.pdf")
    assert Path(body["path"]).exists()


def test_same_file_uploaded_twice(client, settings):
    data = base64.b64encode(b"%PDF").decode()

    first = client.post("/api/upload/pdf", json={"fileName": "same.pdf", "data": data}).json()
    second = client.post("/api/upload/pdf", json={"fileName": "same.pdf", "data": data}).json()

    assert first["path"] != second["path"]
    assert len(uploads(settings)) == 2


def test_options_preflight(client):
    response = client.options("/anything/at/all")

    assert response.status_code == 204
    assert response.content == b""
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-methods"] == "GET,POST,OPTIONS"


def test_cors_headers_on_every_response(client):
    assert client.get("/api/dashboard").headers["access-control-allow-origin"] == "*"
    assert client.get("/nope").headers["access-control-allow-origin"] == "*"


def test_proxy_prefix_is_stripped(client):
    response = client.post("/admin/api/content", json={"title": "Via proxy"})

    assert response.status_code == 201
    assert client.get("/admin/api/dashboard").json()["articles"][-1]["title"] == "Via proxy"


@pytest.mark.parametrize("method, path", [("GET", "/api/missing"), ("GET", "/"), ("DELETE", "/api/users")])
def test_unmatched_routes(client, method, path):
    response = client.request(method, path)

    assert response.status_code == 404
    assert response.json() == {"error": "Route not found"}


def test_numeric_fields_are_accepted(client):
    user = client.post("/api/users", json={"phone": 9876543210, "name": "Asha"})

    assert user.status_code == 201
    assert user.json()["phone"] == "9876543210"

    article = client.post("/api/content", json={"title": 2024, "kind": "circular"})

    assert article.status_code == 201
    assert article.json()["title"] == "2024"
    assert article.json()["category"] == "Circulars"

    note = client.post("/api/notifications", json={"title": 1, "message": 2})
    assert note.status_code == 201


def test_server_errors_carry_cors_headers(settings, extractor):
    def explode(*args, **kwargs):
        raise RuntimeError("disk on fire")

    app = create_app(settings, extractor=extractor)
    with TestClient(app, raise_server_exceptions=False) as client:
        app.state.ingestor.ingest = explode
        data = base64.b64encode(b"%PDF").decode()
        response = client.post("/api/upload/pdf", json={"data": data})

    assert response.status_code == 500
    assert response.json()["error"] == "Internal server error"
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-methods"] == "GET,POST,OPTIONS"


def test_odd_categories_from_extraction_are_summarized(settings, make_extractor):
    odd = make_extractor(
        settings.primary_path,
        payload={"articles": [{"category": ["GST", "ITC"]}, {"category": 7}, {"category": {"a": 1}}]},
    )
    with TestClient(create_app(settings, extractor=odd)) as client:
        response = client.post(
            "/api/upload",
            content=multipart_body("a.pdf", "application/pdf", b"%PDF"),
            headers={"Content-Type": f"multipart/form-data; boundary={BOUNDARY}"},
        )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["categories"] == {"['GST', 'ITC']": 1, "7": 1, "{'a': 1}": 1}
