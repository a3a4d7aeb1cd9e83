"""In-process search and sort for listing tables.

Mirrors what the dashboard's data table does: a case-insensitive substring
search across the displayed columns, and a per-column sort that cycles
asc → desc → none.
"""

from __future__ import annotations

from typing import Any, Iterable, Literal

SortDirection = Literal["asc", "desc"] | None


def filter_rows(rows: list[dict[str, Any]], search: str | None, columns: Iterable[str]) -> list[dict[str, Any]]:
    if not search:
        return list(rows)
    needle = search.lower()
    cols = list(columns)
    return [
        row
        for row in rows
        if any(row.get(c) is not None and needle in str(row.get(c)).lower() for c in cols)
    ]


def _sort_key(value: Any) -> tuple[int, Any]:
    if isinstance(value, bool):
        return (1, int(value))
    if isinstance(value, (int, float)):
        return (1, value)
    return (2, str(value).lower())


def sort_rows(rows: list[dict[str, Any]], column: str | None, direction: SortDirection) -> list[dict[str, Any]]:
    """Stable sort on ``column``; rows with a missing value always go last."""
    if not column or direction is None:
        return list(rows)
    present = [r for r in rows if r.get(column) is not None]
    missing = [r for r in rows if r.get(column) is None]
    present.sort(key=lambda r: _sort_key(r[column]), reverse=direction == "desc")
    return present + missing


def next_sort_direction(
    sort_column: str | None,
    sort_direction: SortDirection,
    clicked: str,
) -> tuple[str | None, SortDirection]:
    """Header click: a new column starts ascending; the same column cycles asc → desc → off."""
    if sort_column != clicked:
        return clicked, "asc"
    if sort_direction == "asc":
        return clicked, "desc"
    if sort_direction == "desc":
        return None, None
    return clicked, "asc"
