"""
Composable predicates for customer list queries.

``build_customer_query`` turns the optional list filters into a
``Predicate`` that always starts with the caller's ownership clause;
``customer_list_sql`` wraps a predicate into the final SELECT with the
visit count, the latest visit and deterministic ordering.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Tuple

from crm_api.app.core.errors import ValidationError
from crm_api.app.services.validation import parse_int


SEARCH_COLUMNS = ("c.name", "c.phone", "c.address")

LAST_VISIT_COLUMNS = (
    "(SELECT sv.service_date FROM service_visits sv WHERE sv.customer_id = c.id "
    "ORDER BY sv.service_date DESC, sv.id DESC LIMIT 1) AS last_service_date, "
    "(SELECT sv.service_name FROM service_visits sv WHERE sv.customer_id = c.id "
    "ORDER BY sv.service_date DESC, sv.id DESC LIMIT 1) AS last_service_name"
)


@dataclass(frozen=True)
class Predicate:
    """A SQL boolean expression with its positional parameters."""

    sql: str
    params: Tuple[Any, ...] = ()

    def __and__(self, other: "Predicate") -> "Predicate":
        return Predicate(f"({self.sql}) AND ({other.sql})", self.params + other.params)

    def __or__(self, other: "Predicate") -> "Predicate":
        return Predicate(f"({self.sql}) OR ({other.sql})", self.params + other.params)


def equals(column: str, value: Any) -> Predicate:
    return Predicate(f"{column} = ?", (value,))


def contains_ci(column: str, text: str) -> Predicate:
    """Case-insensitive substring match, Unicode aware (see ``db.get_connection``)."""
    return Predicate(f"instr(casefold({column}), casefold(?)) > 0", (text,))


def any_of(predicates: Iterable[Predicate]) -> Predicate:
    predicates = list(predicates)
    combined = predicates[0]
    for predicate in predicates[1:]:
        combined = combined | predicate
    return combined


def build_customer_query(caller_id: int, filters: Optional[Mapping[str, Any]] = None) -> Predicate:
    """Build the WHERE predicate for listing ``caller_id``'s customers.

    - ``search``: matches name, phone or address, case-insensitively.
    - ``service_interval``: exact match; non-numeric input is rejected.

    Filters are AND-combined; absent or empty filters add nothing.
    """
    filters = filters or {}
    predicate = equals("c.account_id", caller_id)

    search = filters.get("search")
    if search is not None:
        if not isinstance(search, str):
            raise ValidationError("search must be a string")
        search = search.strip()
    if search:
        predicate = predicate & any_of(contains_ci(column, search) for column in SEARCH_COLUMNS)

    interval = filters.get("service_interval")
    if interval is not None and interval != "":
        predicate = predicate & equals("c.service_interval", parse_int(interval, "service_interval"))

    return predicate


def customer_list_sql(predicate: Predicate, limit: int, offset: int) -> Tuple[str, Tuple[Any, ...]]:
    sql = (
        "SELECT c.id, c.name, c.phone, c.email, c.address, c.service_interval, "
        "c.created_at, c.updated_at, "
        f"{LAST_VISIT_COLUMNS}, "
        "(SELECT COUNT(*) FROM service_visits sv WHERE sv.customer_id = c.id) AS visit_count "
        f"FROM customers c WHERE {predicate.sql} "
        "ORDER BY c.name ASC, c.id ASC LIMIT ? OFFSET ?"
    )
    return sql, predicate.params + (limit, offset)
