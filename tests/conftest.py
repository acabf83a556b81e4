import itertools

import pytest
from fastapi.testclient import TestClient

from crm_api.app.core.config import settings
from crm_api.app.core.db import init_db
from crm_api.app.main import app


@pytest.fixture(scope="function")
def db(tmp_path, monkeypatch):
    """Point the app at a fresh SQLite file for each test."""
    monkeypatch.setattr(settings, "database_url", str(tmp_path / "crm_test.db"))
    init_db()
    yield


@pytest.fixture(scope="function")
def client(db):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(scope="function")
def make_account(client):
    """Register an account, log in and return its id and auth headers."""
    counter = itertools.count(1)

    def _make(email=None, password="secret123", name="Owner"):
        email = email or f"owner{next(counter)}@example.com"
        response = client.post(
            "/api/v1/accounts/",
            json={"name": name, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        login = client.post("/api/v1/accounts/login", json={"email": email, "password": password})
        assert login.status_code == 200, login.text
        token = login.json()["access_token"]
        return {
            "id": response.json()["id"],
            "email": email,
            "headers": {"Authorization": f"Bearer {token}"},
        }

    return _make


@pytest.fixture(scope="function")
def make_customer(client):
    def _make(account, **fields):
        payload = {"name": "Jane Doe", "phone": "555-1234", "address": "1 Main St"}
        payload.update(fields)
        response = client.post("/api/v1/customers/", json=payload, headers=account["headers"])
        assert response.status_code == 201, response.text
        return response.json()

    return _make


@pytest.fixture(scope="function")
def make_visit(client):
    def _make(account, customer_id, **fields):
        payload = {
            "customer_id": customer_id,
            "service_name": "Lawn mowing",
            "service_date": "2024-05-01",
        }
        payload.update(fields)
        response = client.post("/api/v1/service-visits/", json=payload, headers=account["headers"])
        assert response.status_code == 201, response.text
        return response.json()

    return _make
