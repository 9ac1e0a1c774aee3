# CSV record parser tests: header-based column matching, numeric casts, and malformed input.
from __future__ import annotations

import pytest

from realty.errors import ParseError
from realty.imports.parser import ParsedPropertyRow, cast_value, parse_property_csv

HEADER = "address,city,state,zipCode,sector,propertyType,longitude,latitude,valuation,bedrooms,bathrooms,squareFeet,yearBuilt"


def test_cast_value_by_column():
    assert cast_value("123.45", "longitude") == 123.45
    assert cast_value("250000", "valuation") == 250000.0
    assert cast_value("3", "bedrooms") == 3
    assert isinstance(cast_value("3", "bedrooms"), int)
    assert cast_value("100", "squareFeet") == 100
    assert cast_value("test", "address") == "test"
    # zip codes keep their leading zeros
    assert cast_value("02134", "zipCode") == "02134"


def test_cast_value_leaves_header_cells_alone():
    assert cast_value("header", "any", header=True) == "header"
    assert cast_value("bedrooms", "bedrooms", header=True) == "bedrooms"


def test_cast_value_accepts_integral_floats_for_int_columns():
    assert cast_value("2.0", "bathrooms") == 2
    with pytest.raises(ValueError):
        cast_value("2.5", "bathrooms")


def test_cast_value_rejects_non_numeric():
    with pytest.raises(ValueError):
        cast_value("three", "bedrooms")
    with pytest.raises(ValueError):
        cast_value("", "valuation")
    with pytest.raises(ValueError):
        cast_value("nan", "latitude")


def test_parse_single_row():
    data = (
        HEADER + "\n"
        "123 Main St,Test City,TS,12345,Downtown,House,-74.0060,40.7128,250000,3,2,1500,2020\n"
    ).encode()

    rows = parse_property_csv(data)

    assert rows == [
        ParsedPropertyRow(
            address="123 Main St",
            city="Test City",
            state="TS",
            zip_code="12345",
            sector="Downtown",
            property_type="House",
            longitude=-74.006,
            latitude=40.7128,
            valuation=250000.0,
            bedrooms=3,
            bathrooms=2,
            square_feet=1500,
            year_built=2020,
        )
    ]


def test_columns_matched_by_header_name_not_position():
    data = (
        "yearBuilt,squareFeet,bathrooms,bedrooms,valuation,latitude,longitude,propertyType,sector,zipCode,state,city,address,notes\n"
        "1999,900,1,2,120000.50,41.5,-87.6,Condo,North,60601,IL,Chicago,\"9 Lake Shore Dr, Apt 4\",corner unit\n"
    ).encode()

    [row] = parse_property_csv(data)

    assert row.address == "9 Lake Shore Dr, Apt 4"
    assert row.city == "Chicago"
    assert row.year_built == 1999
    assert row.valuation == 120000.5
    assert row.longitude == -87.6


def test_empty_lines_are_skipped_and_bom_is_ignored():
    data = (
        "\ufeff" + HEADER + "\n"
        "\n"
        "1 A St,X,ST,1,S,House,1,2,3,1,1,1,2001\n"
        "\n"
        "2 B St,X,ST,1,S,House,1,2,3,1,1,1,2002\n"
        "\n"
    ).encode("utf-8")

    rows = parse_property_csv(data)

    assert [r.address for r in rows] == ["1 A St", "2 B St"]


def test_header_only_file_yields_no_rows():
    assert parse_property_csv((HEADER + "\n").encode()) == []
    assert parse_property_csv(b"") == []


def test_inconsistent_column_count_raises_with_line_number():
    data = (
        HEADER + "\n"
        "1 A St,X,ST,1,S,House,1,2,3,1,1,1,2001\n"
        "2 B St,X,ST,1,S,House,1,2,3,1,1\n"
    ).encode()

    with pytest.raises(ParseError) as excinfo:
        parse_property_csv(data)

    assert excinfo.value.line == 3
    assert "expected 13 columns" in str(excinfo.value)


def test_unbalanced_quoting_raises():
    data = (
        HEADER + "\n"
        '"1 A St"x,X,ST,1,S,House,1,2,3,1,1,1,2001\n'
    ).encode()

    with pytest.raises(ParseError):
        parse_property_csv(data)


def test_missing_required_column_raises():
    data = b"address,city\n1 A St,X\n"

    with pytest.raises(ParseError) as excinfo:
        parse_property_csv(data)

    assert "missing required columns" in str(excinfo.value)
    assert "yearBuilt" in str(excinfo.value)


def test_non_numeric_cell_rejects_the_file():
    data = (
        HEADER + "\n"
        "1 A St,X,ST,1,S,House,1,2,3,1,1,1,2001\n"
        "2 B St,X,ST,1,S,House,1,2,lots,1,1,1,2002\n"
    ).encode()

    with pytest.raises(ParseError) as excinfo:
        parse_property_csv(data)

    assert excinfo.value.line == 3
    assert "valuation" in str(excinfo.value)


def test_undecodable_bytes_raise():
    with pytest.raises(ParseError):
        parse_property_csv(b"\xff\xfe\x00bad")
