"""Tests for SQLite storage, schema and sale writer."""

from pathlib import Path
from unittest.mock import patch

import pytest

from sales_ingest.exceptions import ConfigurationError, DuplicateSaleError, StorageError
from sales_ingest.models.sales import SaleRecord
from sales_ingest.parsers import parse_dat_content
from sales_ingest.store import SaleWriter, SqliteDatabase, connect, initialize_schema
from sales_ingest.store.database import PostgresDatabase
from sales_ingest.store.reference import PROPERTY_TYPES, ZONE_CODES, load_district_codes
from sales_ingest.store.schema import SCHEMA_TABLES, register_district, schema_statements, seed_reference_data

from samples import SAMPLE_FILENAME


def _sale(property_id: str = "100", sequence: int = 1, contract_date: str | None = "2025-01-02") -> SaleRecord:
    return SaleRecord(
        district_code="214",
        property_id=property_id,
        sale_sequence=sequence,
        suburb="KELLYVILLE",
        postcode="2155",
        contract_date=contract_date,
        purchase_price=900000,
    )


class TestConnect:
    """Tests for backend selection."""

    def test_sqlite_url(self, tmp_path: Path) -> None:
        db = connect(f"sqlite:///{tmp_path}/nested/sales.db")
        try:
            assert isinstance(db, SqliteDatabase)
            assert (tmp_path / "nested").is_dir()
        finally:
            db.close()

    def test_bare_path(self, tmp_path: Path) -> None:
        with connect(str(tmp_path / "sales.db")) as db:
            assert db.dialect == "sqlite"

    def test_postgres_url(self) -> None:
        with patch("sales_ingest.store.database.psycopg.connect") as mock_connect:
            db = connect("postgresql://u:p@localhost:5432/sales")

        assert isinstance(db, PostgresDatabase)
        mock_connect.assert_called_once_with("postgresql://u:p@localhost:5432/sales", autocommit=True)


class TestSchema:
    """Tests for schema creation and reference data."""

    def test_creates_all_tables(self, db: SqliteDatabase) -> None:
        initialize_schema(db)

        tables = {row[0] for row in db.fetchall("SELECT name FROM sqlite_master WHERE type = 'table'")}
        views = {row[0] for row in db.fetchall("SELECT name FROM sqlite_master WHERE type = 'view'")}
        assert set(SCHEMA_TABLES) <= tables
        assert {"v_recent_sales", "v_suburb_stats"} <= views

    def test_initialize_is_idempotent(self, db: SqliteDatabase) -> None:
        initialize_schema(db, {"214": "HORNSBY"})
        initialize_schema(db, {"214": "HORNSBY"})

        assert db.count("zone_codes") == len(ZONE_CODES)
        assert db.count("property_types") == len(PROPERTY_TYPES)
        assert db.count("districts") == 1

    def test_seed_counts(self, db: SqliteDatabase) -> None:
        initialize_schema(db)
        counts = seed_reference_data(db, {"001": "SYDNEY"})

        assert counts == {"districts": 1, "zone_codes": len(ZONE_CODES), "property_types": len(PROPERTY_TYPES)}

    def test_registered_district_gets_name_later(self, db: SqliteDatabase) -> None:
        initialize_schema(db)
        register_district(db, "214")
        seed_reference_data(db, {"214": "HORNSBY"})

        assert db.scalar("SELECT district_name FROM districts WHERE district_code = '214'") == "HORNSBY"

    def test_seed_does_not_overwrite_names(self, db: SqliteDatabase) -> None:
        initialize_schema(db, {"214": "HORNSBY"})
        seed_reference_data(db, {"214": "OTHER"})

        assert db.scalar("SELECT district_name FROM districts WHERE district_code = '214'") == "HORNSBY"

    def test_dialects_differ_only_in_tokens(self) -> None:
        sqlite = schema_statements("sqlite")
        postgres = schema_statements("postgres")

        assert len(sqlite) == len(postgres)
        assert any("AUTOINCREMENT" in s for s in sqlite)
        assert any("BIGSERIAL" in s for s in postgres)
        assert all("{" not in s for s in sqlite + postgres)


class TestSqliteDatabase:
    """Tests for transaction and savepoint behaviour."""

    def test_transaction_rolls_back(self, db: SqliteDatabase) -> None:
        initialize_schema(db)

        with pytest.raises(RuntimeError):
            with db.transaction():
                register_district(db, "999")
                raise RuntimeError("boom")

        assert db.count("districts") == 0

    def test_savepoint_keeps_outer_work(self, db: SqliteDatabase) -> None:
        initialize_schema(db)

        with db.transaction():
            register_district(db, "001")
            with pytest.raises(RuntimeError):
                with db.savepoint():
                    register_district(db, "002")
                    raise RuntimeError("boom")

        codes = [row[0] for row in db.fetchall("SELECT district_code FROM districts")]
        assert codes == ["001"]

    def test_sql_error_becomes_storage_error(self, db: SqliteDatabase) -> None:
        with pytest.raises(StorageError):
            db.execute("SELECT * FROM no_such_table")

    def test_fetchall_dicts(self, db: SqliteDatabase) -> None:
        initialize_schema(db)
        register_district(db, "214")

        assert db.fetchall_dicts("SELECT district_code, district_name FROM districts") == [
            {"district_code": "214", "district_name": None}
        ]


class TestSaleWriter:
    """Tests for sale inserts and per-record isolation."""

    def test_insert_with_children(self, db: SqliteDatabase, sample_content: str) -> None:
        initialize_schema(db)
        sale = parse_dat_content(sample_content, SAMPLE_FILENAME).sales[0]

        sale_id = SaleWriter(db).insert_sale(sale, "weekly")

        row = db.fetchone(
            "SELECT suburb, purchase_price, contract_date, area, file_type, source_file FROM property_sales WHERE id = ?",
            (sale_id,),
        )
        assert row == ("KELLYVILLE RIDGE", 1565000, "2025-10-25", 456.1, "weekly", SAMPLE_FILENAME)
        assert db.fetchall("SELECT lot_number, plan_number, plan_type FROM legal_descriptions") == [
            ("13", "1032686", "DP")
        ]
        assert db.scalar("SELECT COUNT(*) FROM sale_interests WHERE sale_id = ?", (sale_id,)) == 2

    def test_duplicate_natural_key_raises(self, db: SqliteDatabase) -> None:
        initialize_schema(db)
        writer = SaleWriter(db)
        writer.insert_sale(_sale())

        with pytest.raises(DuplicateSaleError):
            writer.insert_sale(_sale())

    def test_missing_contract_date_still_collides(self, db: SqliteDatabase) -> None:
        initialize_schema(db)
        writer = SaleWriter(db)
        writer.insert_sale(_sale(contract_date=None))

        with pytest.raises(DuplicateSaleError):
            writer.insert_sale(_sale(contract_date=None))
        writer.insert_sale(_sale(contract_date="2025-01-02"))
        assert writer.total_sales() == 2

    def test_sequence_distinguishes_sales(self, db: SqliteDatabase) -> None:
        initialize_schema(db)
        writer = SaleWriter(db)
        writer.insert_sale(_sale(sequence=1))
        writer.insert_sale(_sale(sequence=2))

        assert writer.total_sales() == 2

    def test_write_batch_counts(self, db: SqliteDatabase) -> None:
        initialize_schema(db)
        writer = SaleWriter(db)

        with db.transaction():
            counts = writer.write_batch([_sale("1"), _sale("2"), _sale("1")], "weekly")

        assert (counts.processed, counts.inserted, counts.skipped, counts.errors) == (3, 2, 1, 0)
        assert writer.total_sales() == 2

    def test_write_batch_isolates_failed_record(self, db: SqliteDatabase) -> None:
        initialize_schema(db)
        writer = SaleWriter(db)
        broken = _sale("2")
        broken.district_code = None  # NOT NULL violation

        with db.transaction():
            counts = writer.write_batch([_sale("1"), broken, _sale("3")])

        assert (counts.inserted, counts.skipped, counts.errors) == (2, 0, 1)
        assert writer.total_sales() == 2

    def test_failed_child_rolls_back_its_sale(self, db: SqliteDatabase, sample_content: str) -> None:
        initialize_schema(db)
        sale = parse_dat_content(sample_content, SAMPLE_FILENAME).sales[0]
        sale.interests[1].interest_type = None  # NOT NULL violation on the second child

        with db.transaction():
            counts = SaleWriter(db).write_batch([sale])

        assert counts.errors == 1
        assert db.count("property_sales") == 0
        assert db.count("legal_descriptions") == 0
        assert db.count("sale_interests") == 0


class TestLoadDistrictCodes:
    """Tests for the district names CSV."""

    def test_reads_and_pads_codes(self, tmp_path: Path) -> None:
        path = tmp_path / "districts.csv"
        path.write_text("district_code,district_name\n1,SYDNEY\n214,HORNSBY\n", encoding="utf-8")

        assert load_district_codes(path) == {"001": "SYDNEY", "214": "HORNSBY"}

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError):
            load_district_codes(tmp_path / "nope.csv")

    def test_missing_columns(self, tmp_path: Path) -> None:
        path = tmp_path / "districts.csv"
        path.write_text("code,name\n1,SYDNEY\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            load_district_codes(path)
