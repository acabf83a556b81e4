"""Tests for failure logging from the service layer."""
import asyncio
import logging

import pytest

from crm_api.app.core.errors import ValidationError
from crm_api.app.core.logging_config import FailureFormatter
from crm_api.app.services.customer_service import CustomerService


def _failures(caplog):
    return [r for r in caplog.records if getattr(r, "operation", None)]


def test_validation_failure_is_logged_with_context(caplog, make_account):
    owner = make_account()
    caplog.set_level(logging.WARNING)
    with pytest.raises(ValidationError):
        asyncio.run(CustomerService.create_customer(owner["id"], {"name": "No phone"}))

    (record,) = _failures(caplog)
    assert record.operation == "create_customer"
    assert record.target == owner["id"]
    assert record.kind == "validation"
    assert record.levelno == logging.WARNING


def test_delete_refusal_is_logged(caplog, client, make_account, make_customer, make_visit):
    owner = make_account()
    customer = make_customer(owner)
    make_visit(owner, customer["id"])
    caplog.set_level(logging.WARNING)
    assert client.delete(f"/api/v1/customers/{customer['id']}", headers=owner["headers"]).status_code == 400

    (record,) = _failures(caplog)
    assert (record.operation, record.target, record.kind) == ("delete_customer", customer["id"], "validation")


def test_conflict_and_not_found_are_logged(caplog, client, make_account):
    owner = make_account(email="taken@example.com")
    other = make_account()
    caplog.set_level(logging.WARNING)

    response = client.patch("/api/v1/accounts/me", json={"email": "taken@example.com"}, headers=other["headers"])
    assert response.status_code == 409
    assert client.get("/api/v1/customers/424242", headers=owner["headers"]).status_code == 404

    assert [(r.operation, r.target, r.kind) for r in _failures(caplog)] == [
        ("update_profile", other["id"], "conflict"),
        ("get_customer", 424242, "not_found"),
    ]


def test_formatter_appends_failure_fields():
    formatter = FailureFormatter("%(message)s")
    record = logging.LogRecord("crm", logging.WARNING, __file__, 1, "add_time_entry failed: %s", ("bad",), None)
    record.operation, record.target, record.kind = "add_time_entry", 7, "validation"
    assert formatter.format(record) == "add_time_entry failed: bad [operation=add_time_entry target=7 kind=validation]"

    plain = logging.LogRecord("crm", logging.INFO, __file__, 1, "started", (), None)
    assert formatter.format(plain) == "started"
