"""Tests for registration, login and profile updates."""
from crm_api.app.core.db import get_cursor
from crm_api.app.core.security import verify_password


def _stored_password(account_id):
    with get_cursor() as cursor:
        return cursor.execute("SELECT password FROM accounts WHERE id = ?", (account_id,)).fetchone()["password"]


def test_register_returns_public_view(client):
    response = client.post(
        "/api/v1/accounts/",
        json={"name": "  Pat Smith ", "email": " pat@example.com ", "password": "secret123"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Pat Smith"
    assert data["email"] == "pat@example.com"
    assert "password" not in data


def test_register_duplicate_email_conflicts(client, make_account):
    make_account(email="dup@example.com")
    response = client.post(
        "/api/v1/accounts/",
        json={"name": "Other", "email": "dup@example.com", "password": "secret123"},
    )
    assert response.status_code == 409
    assert response.json()["detail"] == "Email is already in use"


def test_email_uniqueness_is_case_sensitive(client, make_account):
    make_account(email="case@example.com")
    response = client.post(
        "/api/v1/accounts/",
        json={"name": "Other", "email": "Case@example.com", "password": "secret123"},
    )
    assert response.status_code == 201


def test_register_rejects_short_password(client):
    response = client.post(
        "/api/v1/accounts/",
        json={"name": "Pat", "email": "pat@example.com", "password": "abc"},
    )
    assert response.status_code == 400


def test_login_with_wrong_password(client, make_account):
    account = make_account(email="login@example.com")
    response = client.post("/api/v1/accounts/login", json={"email": account["email"], "password": "nope"})
    assert response.status_code == 401


def test_me_requires_token(client):
    assert client.get("/api/v1/accounts/me").status_code == 401
    response = client.get("/api/v1/accounts/me", headers={"Authorization": "Bearer not.a.token"})
    assert response.status_code == 401


def test_update_email_to_existing_conflicts(client, make_account):
    make_account(email="taken@example.com")
    account = make_account(email="mine@example.com")
    response = client.patch(
        "/api/v1/accounts/me", json={"email": "taken@example.com"}, headers=account["headers"]
    )
    assert response.status_code == 409


def test_update_email_to_own_email_is_allowed(client, make_account):
    account = make_account(email="mine@example.com")
    response = client.patch(
        "/api/v1/accounts/me",
        json={"email": "mine@example.com", "name": "Renamed"},
        headers=account["headers"],
    )
    assert response.status_code == 200
    assert response.json()["name"] == "Renamed"


def test_short_password_rejected_and_valid_password_hashed(client, make_account):
    account = make_account(email="pw@example.com")
    before = _stored_password(account["id"])

    for short in ("abc", "abcde"):
        response = client.patch("/api/v1/accounts/me", json={"password": short}, headers=account["headers"])
        assert response.status_code == 400
    assert _stored_password(account["id"]) == before

    response = client.patch("/api/v1/accounts/me", json={"password": "abcdef"}, headers=account["headers"])
    assert response.status_code == 200
    assert "password" not in response.json()

    stored = _stored_password(account["id"])
    assert stored != "abcdef"
    assert verify_password("abcdef", stored)

    login = client.post("/api/v1/accounts/login", json={"email": "pw@example.com", "password": "abcdef"})
    assert login.status_code == 200


def test_empty_patch_rejected(client, make_account):
    account = make_account()
    response = client.patch("/api/v1/accounts/me", json={}, headers=account["headers"])
    assert response.status_code == 400
    assert response.json()["detail"] == "No valid fields provided"


def test_unknown_fields_only_rejected(client, make_account):
    account = make_account()
    response = client.patch("/api/v1/accounts/me", json={"nickname": "x"}, headers=account["headers"])
    assert response.status_code == 400


def test_present_but_empty_name_rejected(client, make_account):
    account = make_account(name="Original")
    response = client.patch("/api/v1/accounts/me", json={"name": "   "}, headers=account["headers"])
    assert response.status_code == 400
    assert response.json()["detail"] == "Name cannot be empty"
    assert client.get("/api/v1/accounts/me", headers=account["headers"]).json()["name"] == "Original"


def test_absent_fields_left_unchanged(client, make_account):
    account = make_account(email="keep@example.com", name="Keep")
    response = client.patch("/api/v1/accounts/me", json={"name": "New Name"}, headers=account["headers"])
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "New Name"
    assert data["email"] == "keep@example.com"


def test_profile_changes_are_audited_without_secrets(client, make_account):
    account = make_account()
    client.patch("/api/v1/accounts/me", json={"password": "abcdef"}, headers=account["headers"])
    logs = client.get("/api/v1/audit/logs?object_type=account&action=update", headers=account["headers"]).json()
    assert len(logs) == 1
    assert logs[0]["details"] == {"fields": ["password"]}
