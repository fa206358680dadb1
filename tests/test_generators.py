"""Tests for the synthetic extract generator."""

from datetime import date
from pathlib import Path

from sales_ingest.generators import SalesExtractGenerator, extract_filename
from sales_ingest.parsers import parse_dat_file, parse_filename
from sales_ingest.store.reference import ZONE_CODES

FILE_DATE = date(2025, 12, 15)


class TestExtractFilename:
    """Tests for extract file naming."""

    def test_format(self) -> None:
        assert extract_filename("214", FILE_DATE) == "214_SALES_DATA_NNME_15122025.DAT"

    def test_parseable(self) -> None:
        assert parse_filename(extract_filename("001", date(2024, 3, 4))) == ("001", "20240304")


class TestSalesExtractGenerator:
    """Tests for SalesExtractGenerator."""

    def test_generate_sale(self, seed: int) -> None:
        sale = SalesExtractGenerator(seed=seed).generate_sale("214", FILE_DATE)

        assert sale.district_code == "214"
        assert sale.sale_sequence == 1
        assert sale.zone_code in ZONE_CODES
        assert sale.purchase_price > 0
        assert sale.contract_date < sale.settlement_date <= FILE_DATE.isoformat()
        assert len(sale.postcode) == 4
        assert len(sale.legal_descriptions) == 1
        assert [i.interest_type for i in sale.interests] == ["P", "V"]

    def test_reproducible(self, seed: int) -> None:
        first = SalesExtractGenerator(seed=seed).generate_sales("214", FILE_DATE, 5)
        second = SalesExtractGenerator(seed=seed).generate_sales("214", FILE_DATE, 5)

        assert first == second

    def test_property_ids_unique(self, seed: int) -> None:
        sales = SalesExtractGenerator(seed=seed).generate_sales("214", FILE_DATE, 200)

        assert len({s.property_id for s in sales}) == 200

    def test_written_file_parses_back(self, seed: int, tmp_path: Path) -> None:
        generator = SalesExtractGenerator(seed=seed)
        sales = generator.generate_sales("214", FILE_DATE, 10)

        path = generator.write_file(tmp_path, "214", FILE_DATE, sales)
        parsed = parse_dat_file(path)

        assert parsed.parse_errors == []
        assert parsed.header.district_code == "214"
        assert len(parsed.sales) == 10
        for original, read in zip(sales, parsed.sales):
            assert read.natural_key == original.natural_key
            assert read.suburb == original.suburb
            assert read.unit_number == original.unit_number
            assert read.area == original.area
            assert read.area_unit == original.area_unit
            assert read.purchase_price == original.purchase_price
            assert read.settlement_date == original.settlement_date
            assert read.legal_descriptions == original.legal_descriptions
            assert read.interests == original.interests

    def test_write_files_cycles_districts(self, seed: int, tmp_path: Path) -> None:
        generator = SalesExtractGenerator(seed=seed, district_codes=("001", "214"))

        paths = generator.write_files(tmp_path, files=3, sales_per_file=2, end_date=FILE_DATE)

        assert [p.name for p in paths] == [
            "001_SALES_DATA_NNME_15122025.DAT",
            "214_SALES_DATA_NNME_15122025.DAT",
            "001_SALES_DATA_NNME_08122025.DAT",
        ]
        assert all(p.is_file() for p in paths)
