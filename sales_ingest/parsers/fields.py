"""Field layout and value coercions for sales extract records.

The B (sale) record is positional. ``SALE_FIELDS`` is the single place
that maps a ``SaleRecord`` attribute to its semicolon-delimited index, so
a revision of the source format only needs to change this table.

Example B line::

    B;214;2876965;1;20251215 01:08;;;84;MERRIVILLE RD;KELLYVILLE RIDGE;2155;456.1;M;20251025;20251208;1565000;R2;R;RESIDENCE;;RKR;;;AV687428;
"""

from __future__ import annotations

import math
import re
from typing import Any, Callable

from sales_ingest.models.sales import SaleRecord

# Index 6 sits between the unit and house numbers and is always empty in
# the current format.
SKIPPED_SALE_FIELD = 6

SALE_FIELDS: dict[str, int] = {
    "district_code": 1,
    "property_id": 2,
    "sale_sequence": 3,
    "record_timestamp": 4,
    "unit_number": 5,
    "house_number": 7,
    "street_name": 8,
    "suburb": 9,
    "postcode": 10,
    "area": 11,
    "area_unit": 12,
    "contract_date": 13,
    "settlement_date": 14,
    "purchase_price": 15,
    "zone_code": 16,
    "zone_category": 17,
    "property_type": 18,
    "property_description": 19,
    "nature_of_property": 20,
    "strata_lot_number": 21,
    "component_code": 22,
    "sale_code": 23,
    "dealing_number": 24,
}

SALE_FIELD_COUNT = max(SALE_FIELDS.values()) + 1

HEADER_FIELDS: dict[str, int] = {
    "data_type": 1,
    "district_code": 2,
    "timestamp": 3,
    "source": 4,
}

# C and D records share the sale identity prefix.
CHILD_KEY_FIELDS: dict[str, int] = {
    "district_code": 1,
    "property_id": 2,
    "sale_sequence": 3,
}
LEGAL_DESCRIPTION_FIELD = 5
INTEREST_TYPE_FIELD = 5
INTEREST_DETAIL_START = 6

_LEADING_INT = re.compile(r"^[+-]?\d+")
_PRICE_NOISE = re.compile(r"[,\s]")


def field_at(fields: list[str], index: int) -> str | None:
    """Return the field at ``index``, or None when missing or empty."""
    if index < len(fields) and fields[index] != "":
        return fields[index]
    return None


def parse_date(value: str | None) -> str | None:
    """Convert ``YYYYMMDD`` to ``YYYY-MM-DD``; anything not 8 characters is None."""
    if not value or len(value) != 8:
        return None
    return f"{value[0:4]}-{value[4:6]}-{value[6:8]}"


def parse_price(value: str | None) -> int | None:
    """Parse a price, ignoring thousands separators and whitespace."""
    if not value:
        return None
    match = _LEADING_INT.match(_PRICE_NOISE.sub("", value))
    return int(match.group()) if match else None


def parse_area(value: str | None) -> float | None:
    if not value:
        return None
    try:
        area = float(value)
    except ValueError:
        return None
    return area if math.isfinite(area) else None


def parse_sequence(value: str | None) -> int:
    """Sale sequence is part of the natural key, so it is never None.

    Missing, non-numeric and zero values all become 1.
    """
    if not value:
        return 1
    match = _LEADING_INT.match(value.strip())
    if not match:
        return 1
    return int(match.group()) or 1


_SALE_COERCIONS: dict[str, Callable[[str | None], Any]] = {
    "sale_sequence": parse_sequence,
    "area": parse_area,
    "contract_date": parse_date,
    "settlement_date": parse_date,
    "purchase_price": parse_price,
}


def sale_from_fields(
    fields: list[str],
    file_date: str | None = None,
    source_file: str | None = None,
) -> SaleRecord:
    """Build a SaleRecord from the split fields of a B line."""
    values: dict[str, Any] = {}
    for name, index in SALE_FIELDS.items():
        raw = field_at(fields, index)
        coerce = _SALE_COERCIONS.get(name)
        values[name] = coerce(raw) if coerce else raw
    return SaleRecord(**values, file_date=file_date, source_file=source_file)


def _format_date(value: str | None) -> str:
    return value.replace("-", "") if value else ""


def _format_area(value: float | None) -> str:
    if value is None:
        return ""
    return str(int(value)) if value.is_integer() else repr(value)


_SALE_FORMATTERS: dict[str, Callable[[Any], str]] = {
    "sale_sequence": str,
    "area": _format_area,
    "contract_date": _format_date,
    "settlement_date": _format_date,
    "purchase_price": lambda v: "" if v is None else str(v),
}


def sale_to_fields(sale: SaleRecord) -> list[str]:
    """Render a SaleRecord back into B line fields (inverse of ``sale_from_fields``)."""
    fields = [""] * SALE_FIELD_COUNT
    fields[0] = "B"
    for name, index in SALE_FIELDS.items():
        value = getattr(sale, name)
        formatter = _SALE_FORMATTERS.get(name)
        if formatter:
            fields[index] = formatter(value)
        else:
            fields[index] = value or ""
    return fields
