from fastapi.testclient import TestClient

from rssreader.main import create_app


def test_request_id_header_present_on_response(service):
    client = TestClient(create_app(service))
    resp = client.get("/health")

    assert resp.status_code == 200
    assert "X-Request-ID" in resp.headers
    assert len(resp.headers["X-Request-ID"]) == 32


def test_request_id_unique_per_request(service):
    client = TestClient(create_app(service))
    first = client.get("/health").headers["X-Request-ID"]
    second = client.get("/health").headers["X-Request-ID"]
    assert first != second
