"""Tests for shared serialization utilities."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from sales_ingest.models.enums import ImportStatus
from sales_ingest.models.imports import ImportCounts, ImportAttempt
from sales_ingest.sinks.serialization import serialize_value, to_dict


@dataclass
class _Summary:
    suburb: str
    avg_price: Decimal
    latest_sale: date


class TestToDict:
    """Tests for to_dict function."""

    def test_dataclass(self) -> None:
        result = to_dict(_Summary("PARRAMATTA", Decimal("820000"), date(2025, 11, 1)))

        assert result == {"suburb": "PARRAMATTA", "avg_price": 820000, "latest_sale": "2025-11-01"}

    def test_enum_field(self) -> None:
        attempt = ImportAttempt(id=1, filename="a.DAT", district_code="214", status=ImportStatus.COMPLETED)

        assert to_dict(attempt)["status"] == "completed"

    def test_dict(self) -> None:
        assert to_dict({"price": Decimal("1.5")}) == {"price": 1.5}

    def test_other_type(self) -> None:
        assert to_dict(42) == {"value": "42"}


class TestSerializeValue:
    """Tests for serialize_value function."""

    def test_integral_decimal(self) -> None:
        assert serialize_value(Decimal("1192500.000")) == 1192500

    def test_fractional_decimal(self) -> None:
        assert serialize_value(Decimal("456.10")) == 456.1

    def test_datetime(self) -> None:
        assert serialize_value(datetime(2025, 12, 15, 1, 8)) == "2025-12-15T01:08:00"

    def test_nested(self) -> None:
        data = {"counts": ImportCounts(processed=2, inserted=2), "dates": (date(2025, 1, 2),)}

        assert serialize_value(data) == {
            "counts": {"processed": 2, "inserted": 2, "skipped": 0, "errors": 0},
            "dates": ["2025-01-02"],
        }
