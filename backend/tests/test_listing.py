"""Tests for in-memory search / filter / sort / paginate."""

from datetime import date, datetime

import pytest

from chemsphere.utils.listing import (
    filter_items,
    filter_sort_paginate,
    paginate,
    sort_items,
    to_timestamp,
)


def _items():
    return [
        {"name": "Ethanol", "brand": "Sigma", "safety_class": "flammable",
         "current_quantity": 8, "expiration_date": date(2026, 2, 15)},
        {"name": "acetone", "brand": "BDH", "safety_class": "flammable",
         "current_quantity": 10, "expiration_date": None},
        {"name": "Phenol", "brand": "Merck", "safety_class": "toxic",
         "current_quantity": 1, "expiration_date": date(2025, 8, 1)},
        {"name": "Hydrochloric Acid", "brand": "Merck", "safety_class": "corrosive",
         "current_quantity": 3, "expiration_date": date(2025, 12, 30)},
    ]


@pytest.mark.unit
class TestFilter:

    def test_empty_search_with_all_returns_everything(self):
        items = _items()
        result = filter_items(items, "", ("name",), "safety_class", "all")
        assert result == items

    def test_search_is_case_insensitive_across_fields(self):
        result = filter_items(_items(), "MERCK", ("name", "brand"))
        assert [i["name"] for i in result] == ["Phenol", "Hydrochloric Acid"]

    def test_categorical_filter(self):
        result = filter_items(_items(), None, ("name",), "safety_class", "flammable")
        assert {i["name"] for i in result} == {"Ethanol", "acetone"}

    def test_search_and_filter_combine(self):
        result = filter_items(_items(), "e", ("name",), "safety_class", "toxic")
        assert [i["name"] for i in result] == ["Phenol"]


@pytest.mark.unit
class TestSort:

    def test_text_sort_ignores_case(self):
        result = sort_items(_items(), "name", "asc")
        assert [i["name"] for i in result] == [
            "acetone", "Ethanol", "Hydrochloric Acid", "Phenol",
        ]

    def test_missing_dates_sort_first(self):
        result = sort_items(_items(), "expiration_date", "asc")
        assert result[0]["name"] == "acetone"
        assert [i["name"] for i in result[1:]] == ["Phenol", "Hydrochloric Acid", "Ethanol"]

    def test_numbers_sort_numerically_descending(self):
        result = sort_items(_items(), "current_quantity", "desc")
        assert [i["current_quantity"] for i in result] == [10, 8, 3, 1]

    def test_sort_is_stable(self):
        items = [{"name": "a", "k": 1}, {"name": "b", "k": 1}, {"name": "c", "k": 0}]
        assert [i["name"] for i in sort_items(items, "k", "asc")] == ["c", "a", "b"]

    def test_no_sort_field_keeps_order(self):
        items = _items()
        assert sort_items(items, None) == items

    def test_empty_search_all_filter_keeps_sort_order(self):
        page = filter_sort_paginate(
            _items(), search_term="", filter_field="safety_class", filter_value="all",
            sort_field="name", page_size=100,
        )
        assert [i["name"] for i in page.items] == [
            "acetone", "Ethanol", "Hydrochloric Acid", "Phenol",
        ]


@pytest.mark.unit
class TestPaginate:

    def test_twenty_three_items_make_three_pages(self):
        items = list(range(23))
        last = paginate(items, page=3, page_size=10)
        assert last.total == 23
        assert last.total_pages == 3
        assert last.items == [20, 21, 22]

    def test_page_past_end_is_empty(self):
        page = paginate(list(range(5)), page=4, page_size=2)
        assert page.items == []
        assert page.total_pages == 3

    def test_empty_input(self):
        page = paginate([], page=1, page_size=10)
        assert page.items == []
        assert page.total == 0
        assert page.total_pages == 0


@pytest.mark.unit
def test_to_timestamp_handles_dates_and_strings():
    assert to_timestamp(None) == 0
    assert to_timestamp(date(1970, 1, 2)) == 86400
    assert to_timestamp("1970-01-01T01:00:00") == 3600
    assert to_timestamp(datetime(1970, 1, 1, 0, 1)) == 60
