"""Tests for customer listing, search and single-record access."""
import datetime


def _list(client, account, **params):
    response = client.get("/api/v1/customers/", params=params, headers=account["headers"])
    assert response.status_code == 200, response.text
    return response.json()


def test_search_is_scoped_to_owner(client, make_account, make_customer):
    owner = make_account()
    other = make_account()
    make_customer(owner, name="Jane Doe", phone="555-1234", address="1 Main St")

    found = _list(client, owner, search="jane")
    assert [c["name"] for c in found] == ["Jane Doe"]
    assert _list(client, other, search="jane") == []
    assert _list(client, other) == []


def test_search_matches_phone_or_address(client, make_account, make_customer):
    owner = make_account()
    make_customer(owner, name="Alice", phone="555-0001", address="9 Elm Road")
    make_customer(owner, name="Bob", phone="777-2222", address="4 Oak Ave")

    assert [c["name"] for c in _list(client, owner, search="ELM")] == ["Alice"]
    assert [c["name"] for c in _list(client, owner, search="2222")] == ["Bob"]
    assert _list(client, owner, search="nowhere") == []


def test_search_and_interval_are_and_combined(client, make_account, make_customer):
    owner = make_account()
    make_customer(owner, name="Ann Weekly", service_interval=7)
    make_customer(owner, name="Ann Monthly", service_interval=30)
    make_customer(owner, name="Ben Weekly", service_interval=7)

    assert [c["name"] for c in _list(client, owner, search="ann", service_interval="7")] == ["Ann Weekly"]
    assert [c["name"] for c in _list(client, owner, service_interval=7)] == ["Ann Weekly", "Ben Weekly"]


def test_non_numeric_interval_filter_is_rejected(client, make_account):
    owner = make_account()
    response = client.get("/api/v1/customers/", params={"service_interval": "weekly"}, headers=owner["headers"])
    assert response.status_code == 400


def test_empty_filters_impose_nothing(client, make_account, make_customer):
    owner = make_account()
    make_customer(owner, name="Zed")
    make_customer(owner, name="Amy")
    names = [c["name"] for c in _list(client, owner, search="", service_interval="")]
    assert names == ["Amy", "Zed"]


def test_list_reports_visit_count(client, make_account, make_customer, make_visit):
    owner = make_account()
    busy = make_customer(owner, name="Busy")
    make_customer(owner, name="Idle")
    make_visit(owner, busy["id"])
    make_visit(owner, busy["id"])

    counts = {c["name"]: c["visit_count"] for c in _list(client, owner)}
    assert counts == {"Busy": 2, "Idle": 0}


def test_create_trims_and_parses_interval(client, make_account, make_customer):
    owner = make_account()
    customer = make_customer(
        owner, name="  Jane  ", phone=" 555 ", address=" 1 Main St ", email="  ", service_interval="14"
    )
    assert customer["name"] == "Jane"
    assert customer["phone"] == "555"
    assert customer["address"] == "1 Main St"
    assert customer["email"] is None
    assert customer["service_interval"] == 14


def test_create_requires_name_phone_address(client, make_account):
    owner = make_account()
    response = client.post(
        "/api/v1/customers/", json={"name": "Jane", "phone": "555"}, headers=owner["headers"]
    )
    assert response.status_code == 400
    response = client.post(
        "/api/v1/customers/",
        json={"name": "   ", "phone": "555", "address": "1 Main St"},
        headers=owner["headers"],
    )
    assert response.status_code == 400


def test_create_rejects_invalid_interval(client, make_account):
    owner = make_account()
    response = client.post(
        "/api/v1/customers/",
        json={"name": "Jane", "phone": "555", "address": "1 Main St", "service_interval": "soon"},
        headers=owner["headers"],
    )
    assert response.status_code == 400
    assert _list(client, owner) == []


def test_foreign_customer_is_not_found(client, make_account, make_customer):
    owner = make_account()
    other = make_account()
    customer = make_customer(owner)
    path = f"/api/v1/customers/{customer['id']}"

    missing = client.get("/api/v1/customers/99999", headers=other["headers"])
    foreign = client.get(path, headers=other["headers"])
    assert foreign.status_code == missing.status_code == 404
    assert foreign.json() == missing.json()

    assert client.patch(path, json={"name": "Hijack"}, headers=other["headers"]).status_code == 404
    assert client.delete(path, headers=other["headers"]).status_code == 404
    assert client.get(path, headers=owner["headers"]).json()["name"] == "Jane Doe"


def test_patch_customer_presence_semantics(client, make_account, make_customer):
    owner = make_account()
    customer = make_customer(owner, email="jane@example.com", service_interval=7)
    path = f"/api/v1/customers/{customer['id']}"

    response = client.patch(path, json={"phone": " 555-9999 "}, headers=owner["headers"])
    assert response.status_code == 200
    data = response.json()
    assert data["phone"] == "555-9999"
    assert data["email"] == "jane@example.com"
    assert data["service_interval"] == 7

    response = client.patch(path, json={"email": None, "service_interval": None}, headers=owner["headers"])
    assert response.json()["email"] is None
    assert response.json()["service_interval"] is None

    assert client.patch(path, json={"address": ""}, headers=owner["headers"]).status_code == 400
    assert client.patch(path, json={}, headers=owner["headers"]).status_code == 400


def test_delete_refused_while_visits_exist(client, make_account, make_customer, make_visit):
    owner = make_account()
    customer = make_customer(owner)
    visit = make_visit(owner, customer["id"])
    path = f"/api/v1/customers/{customer['id']}"

    response = client.delete(path, headers=owner["headers"])
    assert response.status_code == 400
    assert "1 service visit" in response.json()["detail"]

    client.delete(f"/api/v1/service-visits/{visit['id']}", headers=owner["headers"])
    assert client.delete(path, headers=owner["headers"]).status_code == 204
    assert client.get(path, headers=owner["headers"]).status_code == 404


def test_search_folds_case_beyond_ascii(client, make_account, make_customer):
    owner = make_account()
    make_customer(owner, name="JOSÉ ÅSTRÖM", address="Øster Allé 1")
    make_customer(owner, name="Grete Strauß", address="2 Elm Road")

    assert [c["name"] for c in _list(client, owner, search="josé")] == ["JOSÉ ÅSTRÖM"]
    assert [c["name"] for c in _list(client, owner, search="øster allé")] == ["JOSÉ ÅSTRÖM"]
    assert [c["name"] for c in _list(client, owner, search="STRAUSS")] == ["Grete Strauß"]


def test_blank_search_is_ignored(client, make_account, make_customer):
    owner = make_account()
    make_customer(owner, name="Amy")
    make_customer(owner, name="Zed")
    assert [c["name"] for c in _list(client, owner, search="   ")] == ["Amy", "Zed"]


def test_customer_reports_last_visit_and_due_date(client, make_account, make_customer, make_visit):
    today = datetime.date.today()
    owner = make_account()
    regular = make_customer(owner, name="Regular", service_interval=10)
    make_customer(owner, name="New", service_interval=10)
    make_visit(owner, regular["id"], service_name="Spring clean", service_date=str(today - datetime.timedelta(days=20)))
    make_visit(owner, regular["id"], service_name="Gutter check", service_date=str(today - datetime.timedelta(days=3)))

    listed = {c["name"]: c for c in _list(client, owner)}
    assert listed["Regular"]["last_service_name"] == "Gutter check"
    assert listed["Regular"]["last_service_date"] == str(today - datetime.timedelta(days=3))
    assert listed["Regular"]["next_due_date"] == str(today + datetime.timedelta(days=7))
    assert listed["Regular"]["days_until_due"] == 7
    assert listed["Regular"]["due_status"] == "due-soon"
    assert listed["New"]["last_service_date"] is None
    assert listed["New"]["due_status"] is None

    detail = client.get(f"/api/v1/customers/{regular['id']}", headers=owner["headers"]).json()
    assert detail["due_status"] == "due-soon"
    assert detail["last_service_name"] == "Gutter check"


def test_customer_without_interval_has_no_due_date(client, make_account, make_customer, make_visit):
    owner = make_account()
    customer = make_customer(owner)
    make_visit(owner, customer["id"])
    detail = client.get(f"/api/v1/customers/{customer['id']}", headers=owner["headers"]).json()
    assert detail["last_service_date"] == "2024-05-01"
    assert detail["next_due_date"] is None
    assert detail["days_until_due"] is None
