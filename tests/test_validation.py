"""Unit tests for the customer query builder and field validators."""
import pytest

from crm_api.app.core.errors import ValidationError
from crm_api.app.services.customer_query import build_customer_query, customer_list_sql
from crm_api.app.services.validation import (
    MISSING,
    parse_date,
    parse_service_interval,
    validate_customer_create,
    validate_time_entry_update,
)


def test_query_always_scoped_to_caller():
    predicate = build_customer_query(7, {})
    assert predicate.sql == "c.account_id = ?"
    assert predicate.params == (7,)


def test_query_search_or_across_three_columns():
    predicate = build_customer_query(7, {"search": "Jane"})
    assert predicate.params == (7, "Jane", "Jane", "Jane")
    for column in ("c.name", "c.phone", "c.address"):
        assert f"casefold({column})" in predicate.sql
    assert predicate.sql.count(" OR ") == 2


def test_query_interval_filter_parsed():
    predicate = build_customer_query(7, {"search": None, "service_interval": "30"})
    assert predicate.params == (7, 30)
    with pytest.raises(ValidationError):
        build_customer_query(7, {"service_interval": "monthly"})


def test_list_sql_orders_by_name_and_counts_visits():
    sql, params = customer_list_sql(build_customer_query(3), limit=10, offset=20)
    assert "ORDER BY c.name ASC" in sql
    assert "visit_count" in sql
    assert params == (3, 10, 20)


def test_missing_marker_is_falsy_and_distinct_from_none():
    assert not MISSING
    assert MISSING is not None
    assert repr(MISSING) == "MISSING"


@pytest.mark.parametrize("value, expected", [(None, None), ("", None), ("  ", None), (14, 14), (" 7 ", 7)])
def test_parse_service_interval(value, expected):
    assert parse_service_interval(value) == expected


@pytest.mark.parametrize("value", ["weekly", 0, -3, True, 2.5])
def test_parse_service_interval_rejects(value):
    with pytest.raises(ValidationError):
        parse_service_interval(value)


def test_parse_date_accepts_datetime_strings():
    assert parse_date("2024-05-01", "date") == "2024-05-01"
    assert parse_date("2024-05-01T09:30:00Z", "date") == "2024-05-01"


def test_customer_create_optional_fields():
    data = validate_customer_create({"name": "A", "phone": "1", "address": "B"})
    assert data["email"] is None
    assert data["service_interval"] is None


def test_customer_create_rejects_non_object():
    with pytest.raises(ValidationError):
        validate_customer_create(["name"])


def test_time_entry_update_keeps_absent_fields_out():
    assert validate_time_entry_update({"description": "  "}) == {"description": None}
    with pytest.raises(ValidationError):
        validate_time_entry_update({})
