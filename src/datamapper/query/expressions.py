"""
Filter and ordering primitives shared by the row stores.

Filters are plain mappings from ``column`` or ``column__lookup`` to a value.
Supported lookups are ``exact`` (the default), ``in`` and ``not_in``.
Ordering terms are column names, prefixed with ``-`` for descending order.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

LOOKUPS = ("exact", "in", "not_in")

Filters = Mapping[str, Any]
Row = Dict[str, Any]


def split_lookup(key: str) -> Tuple[str, str]:
    if "__" in key:
        column, lookup = key.rsplit("__", 1)
    else:
        column, lookup = key, "exact"
    if lookup not in LOOKUPS:
        raise ValueError(f"Unsupported lookup '{lookup}'")
    if not column:
        raise ValueError("Filter columns must not be empty.")
    return column, lookup


def split_ordering(term: str) -> Tuple[str, bool]:
    term = term.strip()
    descending = term.startswith("-")
    column = term[1:] if descending else term
    if not column:
        raise ValueError("Ordering columns must not be empty.")
    return column, descending


def _same(left: Any, right: Any) -> bool:
    if left == right:
        return True
    # Rows may hold numbers as strings and the other way around.
    return left is not None and right is not None and str(left) == str(right)


def row_matches(row: Mapping[str, Any], filters: Filters) -> bool:
    for key, value in filters.items():
        column, lookup = split_lookup(key)
        actual = row.get(column)
        if lookup == "exact":
            if value is None:
                if actual is not None:
                    return False
            elif not _same(actual, value):
                return False
        elif lookup == "in":
            if not any(_same(actual, candidate) for candidate in value):
                return False
        elif any(_same(actual, candidate) for candidate in value):
            return False
    return True


def _sort_key(value: Any) -> Tuple[int, Any]:
    if value is None:
        return (0, 0)
    if isinstance(value, (int, float)):
        return (1, value)
    return (2, str(value))


def order_rows(rows: Iterable[Row], order_by: Sequence[str]) -> List[Row]:
    ordered = list(rows)
    # Stable sorts applied from the last term to the first one.
    for term in reversed(order_by):
        column, descending = split_ordering(term)
        ordered.sort(key=lambda row: _sort_key(row.get(column)), reverse=descending)
    return ordered
