"""
API tests for user administration routes
"""

import uuid

import pytest

from docsign.models import UserRole
from tests.conftest import TEST_PASSWORD

USERS_URL = "/api/v1/users"
ADMIN_TOKEN = "operator-token"


@pytest.fixture
def admin_headers(monkeypatch):
    monkeypatch.setenv("ADMIN_API_TOKEN", ADMIN_TOKEN)
    return {"X-Admin-Token": ADMIN_TOKEN}


def test_list_users(client, uploader, signer, other_signer, auth_headers):
    response = client.get(f"{USERS_URL}/", params={"limit": 2}, headers=auth_headers(uploader))

    data = response.json()
    assert data["total"] == 3
    assert len(data["users"]) == 2
    assert data["pages"] == 2
    assert data["has_next"] is True


def test_list_users_requires_authentication(client, uploader):
    assert client.get(f"{USERS_URL}/").status_code == 401


def test_list_active_signers(client, make_user, uploader, signer, other_signer, auth_headers):
    """Test the signer picker: active signers only, ordered by name"""
    make_user("Zed Inactive", "zed@example.com", UserRole.SIGNER, is_active=False)

    response = client.get(f"{USERS_URL}/role/signer", headers=auth_headers(uploader))

    assert [user["name"] for user in response.json()] == ["Carol Signer", "Jane Signer"]


def test_list_unknown_role(client, uploader, auth_headers):
    response = client.get(f"{USERS_URL}/role/admin", headers=auth_headers(uploader))

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_get_user(client, uploader, signer, auth_headers):
    response = client.get(f"{USERS_URL}/{signer.id}", headers=auth_headers(uploader))

    assert response.json()["email"] == signer.email
    assert client.get(f"{USERS_URL}/{uuid.uuid4()}", headers=auth_headers(uploader)).status_code == 404


def test_mutations_require_admin_token(client, signer, monkeypatch):
    monkeypatch.delenv("ADMIN_API_TOKEN", raising=False)
    payload = {"name": "X", "email": "x@example.com", "password": "hunter22", "role": "signer"}

    assert client.post(f"{USERS_URL}/", json=payload, headers={"X-Admin-Token": "guess"}).status_code == 403

    monkeypatch.setenv("ADMIN_API_TOKEN", ADMIN_TOKEN)
    assert client.post(f"{USERS_URL}/", json=payload, headers={"X-Admin-Token": "guess"}).status_code == 403
    assert client.delete(f"{USERS_URL}/{signer.id}").status_code == 403


def test_create_user(client, admin_headers):
    payload = {"name": "Eve Signer", "email": "Eve@Example.com", "password": "hunter22", "role": "signer"}

    response = client.post(f"{USERS_URL}/", json=payload, headers=admin_headers)

    assert response.status_code == 201
    assert response.json()["email"] == "eve@example.com"

    duplicate = client.post(f"{USERS_URL}/", json=payload, headers=admin_headers)
    assert duplicate.status_code == 400


def test_deactivate_user_blocks_login(client, signer, admin_headers):
    response = client.put(f"{USERS_URL}/{signer.id}", json={"is_active": False}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["is_active"] is False

    login = client.post("/auth/login", json={"email": signer.email, "password": TEST_PASSWORD})
    assert login.status_code == 401


def test_update_user_email_conflict(client, signer, other_signer, admin_headers):
    response = client.put(f"{USERS_URL}/{signer.id}", json={"email": other_signer.email}, headers=admin_headers)

    assert response.status_code == 400


def test_update_user_email_follows_to_assigned_documents(client, db, pending_document, signer, admin_headers):
    response = client.put(f"{USERS_URL}/{signer.id}", json={"email": "renamed@x.com"}, headers=admin_headers)

    assert response.status_code == 200
    db.refresh(pending_document)
    assert pending_document.signer_email == "renamed@x.com"
    assert pending_document.assigned_signer_id == signer.id


def test_reset_password(client, signer, admin_headers):
    response = client.put(f"{USERS_URL}/{signer.id}/password", json={"password": "reset-pass"},
                          headers=admin_headers)
    assert response.status_code == 200

    login = client.post("/auth/login", json={"email": signer.email, "password": "reset-pass"})
    assert login.status_code == 200


def test_delete_unreferenced_user(client, other_signer, admin_headers):
    response = client.delete(f"{USERS_URL}/{other_signer.id}", headers=admin_headers)

    assert response.status_code == 200


def test_delete_referenced_user_refused(client, pending_document, signer, admin_headers):
    """Test that users attached to documents are kept"""
    response = client.delete(f"{USERS_URL}/{signer.id}", headers=admin_headers)

    assert response.status_code == 409
    assert response.json()["code"] == "INVALID_STATE"
