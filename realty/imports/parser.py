# CSV record parser for bulk property imports.
# Turns an uploaded byte buffer into typed rows; columns are matched by header name, not position.
from __future__ import annotations

import csv
import io
from dataclasses import asdict, dataclass
from typing import Dict, List, Union

from ..errors import ParseError

# Wire (CSV header) name -> row attribute name
COLUMN_MAP: Dict[str, str] = {
    "address": "address",
    "city": "city",
    "state": "state",
    "zipCode": "zip_code",
    "sector": "sector",
    "propertyType": "property_type",
    "longitude": "longitude",
    "latitude": "latitude",
    "valuation": "valuation",
    "bedrooms": "bedrooms",
    "bathrooms": "bathrooms",
    "squareFeet": "square_feet",
    "yearBuilt": "year_built",
}

FLOAT_COLUMNS = frozenset({"longitude", "latitude", "valuation"})
INT_COLUMNS = frozenset({"bedrooms", "bathrooms", "squareFeet", "yearBuilt"})

CellValue = Union[str, int, float]


@dataclass(frozen=True)
class ParsedPropertyRow:
    address: str
    city: str
    state: str
    zip_code: str
    sector: str
    property_type: str
    longitude: float
    latitude: float
    valuation: float
    bedrooms: int
    bathrooms: int
    square_feet: int
    year_built: int

    def to_values(self, tenant_id: str) -> dict:
        """Column values for an insert into the properties table."""
        values = asdict(self)
        values["tenant_id"] = tenant_id
        return values


def _to_int(value: str) -> int:
    text = value.strip()
    try:
        return int(text)
    except ValueError:
        # Spreadsheet exports often write integral counts as "3.0"
        number = float(text)
        if not number.is_integer():
            raise ValueError(f"invalid integer literal: {value!r}")
        return int(number)


def _to_float(value: str) -> float:
    number = float(value.strip())
    if number != number or number in (float("inf"), float("-inf")):
        raise ValueError(f"non-finite number: {value!r}")
    return number


def cast_value(value: str, column: str, header: bool = False) -> CellValue:
    """
    Cast one CSV cell according to its column.

    - Header cells are returned unchanged.
    - longitude/latitude/valuation -> float
    - bedrooms/bathrooms/squareFeet/yearBuilt -> int
    - anything else passes through as the raw string

    Raises ValueError when a numeric column holds a value that is not a finite number.
    """
    if header:
        return value
    if column in FLOAT_COLUMNS:
        return _to_float(value)
    if column in INT_COLUMNS:
        return _to_int(value)
    return value


def _decode(buffer: bytes) -> str:
    try:
        # utf-8-sig drops the BOM that Excel prepends to CSV exports
        return buffer.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ParseError(f"file is not valid UTF-8 ({exc.reason})") from exc


def parse_property_csv(buffer: bytes) -> List[ParsedPropertyRow]:
    """
    Parse a CSV byte buffer (header row required) into ParsedPropertyRow values.

    Empty lines are skipped. Any malformed input raises ParseError and nothing
    is returned; there is no partial parse.
    """
    reader = csv.reader(io.StringIO(_decode(buffer), newline=""), strict=True)
    rows: List[ParsedPropertyRow] = []
    header: List[str] = []

    try:
        for cells in reader:
            if not cells or all(not c.strip() for c in cells):
                continue
            line = reader.line_num
            if not header:
                header = [c.strip() for c in cells]
                missing = [name for name in COLUMN_MAP if name not in header]
                if missing:
                    raise ParseError(f"missing required columns: {', '.join(missing)}", line=line)
                continue
            if len(cells) != len(header):
                raise ParseError(
                    f"expected {len(header)} columns, found {len(cells)}",
                    line=line,
                )
            record: Dict[str, CellValue] = {}
            for column, raw in zip(header, cells):
                if column not in COLUMN_MAP:
                    continue
                try:
                    record[COLUMN_MAP[column]] = cast_value(raw, column)
                except ValueError as exc:
                    raise ParseError(f"invalid value {raw!r} for column {column}", line=line) from exc
            rows.append(ParsedPropertyRow(**record))
    except csv.Error as exc:
        raise ParseError(str(exc), line=reader.line_num) from exc

    return rows
