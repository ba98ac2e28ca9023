"""
API tests for service endpoints and the error envelope
"""

from fastapi.testclient import TestClient

from docsign.core.exceptions import StorageError
from docsign.main import create_app


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "operational"


def test_health(client):
    """Test that database and storage checks are reported"""
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["checks"]["database"]["status"] == "healthy"
    assert data["checks"]["storage"]["type"] == "memory"


def test_health_reports_unhealthy_storage(client, blob_store, monkeypatch):
    async def unhealthy():
        return {"status": "unhealthy", "error": "down", "type": "memory"}

    monkeypatch.setattr(blob_store, "health_check", unhealthy)

    assert client.get("/health").status_code == 503


def test_domain_errors_use_envelope(blob_store):
    app = create_app(blob_store=blob_store)

    @app.get("/boom")
    async def boom():
        raise StorageError("bucket unavailable", object_id="documents/a.pdf")

    response = TestClient(app).get("/boom")

    assert response.status_code == 502
    assert response.json() == {
        "success": False,
        "code": "STORAGE_ERROR",
        "message": "bucket unavailable",
        "details": {},
    }
