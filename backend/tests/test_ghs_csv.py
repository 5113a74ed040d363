"""Tests for GHS canonicalisation and CSV parsing / rendering."""

from datetime import date

import pytest

from chemsphere.utils.csv_io import (
    ExportColumn,
    FieldDef,
    coerce_date,
    coerce_float,
    join_list,
    parse_csv_text,
    write_csv,
)
from chemsphere.utils.ghs import canonicalize_ghs, parse_ghs_field


@pytest.mark.unit
class TestGhs:

    def test_json_list(self):
        assert canonicalize_ghs('["Flame","Corrosion"]') == ["Flame", "Corrosion"]

    def test_single_value(self):
        assert canonicalize_ghs("Flame") == ["Flame"]

    def test_comma_separated(self):
        assert canonicalize_ghs("Flame, Exclamation Mark") == ["Flame", "Exclamation Mark"]

    def test_escaped_json_from_spreadsheet(self):
        assert canonicalize_ghs('[\\"Flame\\"]') == ["Flame"]

    def test_legacy_aliases_and_duplicates(self):
        assert canonicalize_ghs(["flammable", "Flame", "toxic"]) == [
            "Flame", "Skull and Crossbones",
        ]

    def test_case_insensitive(self):
        assert canonicalize_ghs(["skull and crossbones"]) == ["Skull and Crossbones"]

    def test_empty_values(self):
        assert parse_ghs_field(None) == []
        assert parse_ghs_field("") == []
        assert canonicalize_ghs([]) == []

    def test_unknown_symbol_rejected(self):
        with pytest.raises(ValueError):
            canonicalize_ghs("Banana")


FIELDS = [
    FieldDef(column="name", db_field="name", required=True),
    FieldDef(column="quantity", db_field="quantity", required=True, coerce=coerce_float),
    FieldDef(column="kind", db_field="kind", choices=("liquid", "solid"), default="liquid"),
    FieldDef(column="expires", db_field="expires", coerce=coerce_date),
    FieldDef(column="ghs", db_field="ghs", coerce=canonicalize_ghs),
]


@pytest.mark.unit
class TestParseCsv:

    def test_valid_rows(self):
        text = (
            "name,quantity,kind,expires,ghs\n"
            'Ethanol,10,LIQUID,2026-02-15,"Flame,Exclamation Mark"\n'
            "Salt,2.5,,,\n"
        )
        result = parse_csv_text(text, FIELDS)

        assert result.total_rows == 2
        assert result.errors == []
        assert result.row_numbers == [2, 3]
        assert result.rows[0] == {
            "name": "Ethanol",
            "quantity": 10.0,
            "kind": "liquid",
            "expires": date(2026, 2, 15),
            "ghs": ["Flame", "Exclamation Mark"],
        }
        assert result.rows[1]["kind"] == "liquid"
        assert result.rows[1]["expires"] is None

    def test_row_errors_keep_file_row_numbers(self):
        text = (
            "name,quantity,kind,expires,ghs\n"
            "Ethanol,10,liquid,,\n"
            ",abc,gas,not-a-date,\n"
            "\n"
            "Acetone,1,solid,,Banana\n"
        )
        result = parse_csv_text(text, FIELDS)

        assert result.total_rows == 3
        assert [e.row for e in result.errors] == [3, 5]
        messages = " ".join(result.errors[0].errors)
        assert "'name' is required" in messages
        assert "'quantity'" in messages
        assert "'kind'" in messages
        assert "'expires'" in messages

    def test_missing_optional_columns_are_none(self):
        result = parse_csv_text("name,quantity\nX,1\n", FIELDS)
        assert result.rows == [{
            "name": "X", "quantity": 1.0, "kind": "liquid", "expires": None, "ghs": None,
        }]


@pytest.mark.unit
def test_write_csv_formats_values():
    rows = [
        {"name": "Ethanol", "qty": 8.0, "opened": False,
         "exp": date(2026, 2, 15), "ghs": ["Flame", "Corrosion"]},
        {"name": "Salt", "qty": 2.5, "opened": True, "exp": None, "ghs": None},
    ]
    columns = [
        ExportColumn("name", "name"),
        ExportColumn("qty", "qty"),
        ExportColumn("opened", "opened"),
        ExportColumn("exp", "exp"),
        ExportColumn("ghs", "ghs", join_list),
    ]

    lines = write_csv(rows, columns).splitlines()

    assert lines[0] == "name,qty,opened,exp,ghs"
    assert lines[1] == 'Ethanol,8,false,2026-02-15,"Flame,Corrosion"'
    assert lines[2] == "Salt,2.5,true,,"
