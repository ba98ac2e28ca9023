"""
API tests for registration, login and profile routes
"""

import pytest

from docsign.models import UserRole
from tests.conftest import TEST_PASSWORD


def register(client, **overrides):
    payload = {
        "name": "New User",
        "email": "New.User@Example.com",
        "password": "hunter22",
        "role": "signer",
    }
    payload.update(overrides)
    return client.post("/auth/register", json=payload)


def test_register_returns_token(client):
    """Test registering a signer account"""
    response = register(client)

    assert response.status_code == 201
    data = response.json()
    assert data["access_token"]
    assert data["token_type"] == "bearer"
    assert data["user"]["email"] == "new.user@example.com"
    assert data["user"]["role"] == "signer"
    assert data["user"]["is_active"] is True
    assert "password_hash" not in data["user"]


def test_register_duplicate_email(client):
    register(client)

    response = register(client, email="new.user@example.com")

    assert response.status_code == 400


@pytest.mark.parametrize("overrides", [
    {"password": "short"},
    {"role": "admin"},
    {"email": "not-an-email"},
    {"name": ""},
])
def test_register_rejects_invalid_payload(client, overrides):
    assert register(client, **overrides).status_code == 422


def test_login(client, uploader):
    response = client.post("/auth/login", json={"email": "ALICE@example.com", "password": TEST_PASSWORD})

    assert response.status_code == 200
    assert response.json()["user"]["id"] == str(uploader.id)


def test_login_wrong_password(client, uploader):
    response = client.post("/auth/login", json={"email": uploader.email, "password": "wrong-password"})

    assert response.status_code == 401


def test_login_deactivated_account(client, make_user):
    user = make_user("Old Account", "old@example.com", UserRole.SIGNER, is_active=False)

    response = client.post("/auth/login", json={"email": user.email, "password": TEST_PASSWORD})

    assert response.status_code == 401
    assert "deactivated" in response.json()["detail"]


def test_token_from_register_authenticates(client):
    token = register(client).json()["access_token"]

    response = client.get("/auth/profile", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.json()["email"] == "new.user@example.com"


def test_profile_requires_token(client):
    assert client.get("/auth/profile").status_code == 401


def test_profile_rejects_bad_token(client):
    response = client.get("/auth/profile", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


def test_update_profile(client, uploader, auth_headers):
    response = client.put("/auth/profile", json={"name": "Alice Renamed"}, headers=auth_headers(uploader))

    assert response.status_code == 200
    assert response.json()["name"] == "Alice Renamed"
    assert response.json()["email"] == uploader.email


def test_update_profile_email_taken(client, uploader, signer, auth_headers):
    response = client.put("/auth/profile", json={"email": signer.email}, headers=auth_headers(uploader))

    assert response.status_code == 400


def test_update_profile_email_follows_to_assigned_documents(client, db, pending_document, signer, auth_headers):
    """Test that documents assigned to the signer carry the new email"""
    response = client.put("/auth/profile", json={"email": "New@X.com"}, headers=auth_headers(signer))

    assert response.json()["email"] == "new@x.com"
    db.refresh(pending_document)
    assert pending_document.signer_email == "new@x.com"


def test_change_password(client, uploader, auth_headers):
    """Test changing the password and logging in with the new one"""
    response = client.put(
        "/auth/change-password",
        json={"current_password": TEST_PASSWORD, "new_password": "brand-new-pass"},
        headers=auth_headers(uploader)
    )
    assert response.status_code == 200

    login = client.post("/auth/login", json={"email": uploader.email, "password": "brand-new-pass"})
    assert login.status_code == 200


def test_change_password_wrong_current(client, uploader, auth_headers):
    response = client.put(
        "/auth/change-password",
        json={"current_password": "not-it", "new_password": "brand-new-pass"},
        headers=auth_headers(uploader)
    )

    assert response.status_code == 400
