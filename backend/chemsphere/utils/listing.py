"""In-memory search / filter / sort / paginate for list endpoints.

All functions are pure: given the same items and parameters they return
the same result. Items may be pydantic models, ORM rows or plain dicts.

Sorting rules:
  - date / datetime values compare as UTC timestamps; a missing date
    sorts as epoch 0, i.e. first in ascending order
  - numeric values compare numerically; missing numbers sort as 0
  - everything else compares case-insensitively; missing values sort as ""
  - the sort is stable, so ties keep their input order in both directions
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Any, Iterable, Sequence

DATE_FIELDS = {
    "created_at",
    "updated_at",
    "date",
    "timestamp",
    "date_of_arrival",
    "expiration_date",
    "purchase_date",
    "warranty_expiration",
    "last_maintenance",
    "next_maintenance",
    "last_login",
}


@dataclass
class Page:
    items: list[Any] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 10
    total_pages: int = 0


def get_value(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def to_timestamp(value: date | datetime | str | None) -> float:
    """Convert a date or datetime to a UTC epoch timestamp (None -> 0)."""
    if value is None or value == "":
        return 0.0
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp()
    return datetime.combine(value, time.min, tzinfo=timezone.utc).timestamp()


def filter_items(
    items: Iterable[Any],
    search_term: str | None = None,
    search_fields: Sequence[str] = ("name",),
    filter_field: str | None = None,
    filter_value: str | None = None,
) -> list[Any]:
    """Keep items whose search fields contain `search_term` and whose
    `filter_field` equals `filter_value`.

    An empty search term matches everything; a filter value of "all" (or
    empty) disables the categorical filter.
    """
    term = (search_term or "").strip().lower()
    use_filter = bool(filter_field) and filter_value not in (None, "", "all")

    result = []
    for item in items:
        if term:
            haystack = [
                str(get_value(item, f)).lower()
                for f in search_fields
                if get_value(item, f) is not None
            ]
            if not any(term in h for h in haystack):
                continue
        if use_filter and str(get_value(item, filter_field)) != filter_value:
            continue
        result.append(item)
    return result


def _field_kind(items: Sequence[Any], name: str) -> str:
    if name in DATE_FIELDS:
        return "date"
    for item in items:
        value = get_value(item, name)
        if value is None:
            continue
        if isinstance(value, (date, datetime)):
            return "date"
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return "number"
        return "text"
    return "text"


def sort_items(
    items: Sequence[Any],
    sort_field: str | None = None,
    direction: str = "asc",
) -> list[Any]:
    """Stable sort by `sort_field`; `direction` is "asc" or "desc"."""
    if not sort_field:
        return list(items)

    kind = _field_kind(items, sort_field)

    def key(item: Any):
        value = get_value(item, sort_field)
        if kind == "date":
            return to_timestamp(value)
        if kind == "number":
            return float(value) if value is not None else 0.0
        return "" if value is None else str(value).lower()

    return sorted(items, key=key, reverse=direction == "desc")


def paginate(items: Sequence[Any], page: int = 1, page_size: int = 10) -> Page:
    """Slice `items` into 1-based pages of `page_size`.

    A page past the end comes back empty with the real totals.
    """
    page_size = max(1, page_size)
    page = max(1, page)
    total = len(items)
    start = (page - 1) * page_size
    return Page(
        items=list(items[start:start + page_size]),
        total=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size),
    )


def filter_sort_paginate(
    items: Iterable[Any],
    *,
    search_term: str | None = None,
    search_fields: Sequence[str] = ("name",),
    filter_field: str | None = None,
    filter_value: str | None = None,
    sort_field: str | None = None,
    direction: str = "asc",
    page: int = 1,
    page_size: int = 10,
) -> Page:
    filtered = filter_items(items, search_term, search_fields, filter_field, filter_value)
    return paginate(sort_items(filtered, sort_field, direction), page, page_size)
