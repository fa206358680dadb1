"""Tests for the PostgreSQL backend with a mocked psycopg connection."""

from unittest.mock import MagicMock, PropertyMock, patch

import psycopg
import pytest
from psycopg import errors as pg_errors

from sales_ingest.exceptions import DuplicateSaleError, StorageError
from sales_ingest.store.database import NATURAL_KEY_CONSTRAINT, PostgresDatabase


@pytest.fixture
def mock_conn() -> MagicMock:
    return MagicMock()


@pytest.fixture
def pg(mock_conn: MagicMock) -> PostgresDatabase:
    with patch("sales_ingest.store.database.psycopg.connect", return_value=mock_conn):
        return PostgresDatabase("postgresql://u:p@localhost:5432/sales")


class TestPostgresDatabase:
    """Tests for SQL preparation, ids and error translation."""

    def test_placeholders_rewritten(self, pg: PostgresDatabase, mock_conn: MagicMock) -> None:
        pg.execute("SELECT id FROM import_log WHERE filename = ? AND district_code = ?", ["a.DAT", "214"])

        mock_conn.execute.assert_called_once_with(
            "SELECT id FROM import_log WHERE filename = %s AND district_code = %s",
            ("a.DAT", "214"),
        )

    def test_insert_returning_id(self, pg: PostgresDatabase, mock_conn: MagicMock) -> None:
        mock_conn.execute.return_value.fetchone.return_value = (17,)

        sale_id = pg.insert_returning_id("INSERT INTO districts (district_code) VALUES (?)", ("214",))

        assert sale_id == 17
        sql = mock_conn.execute.call_args[0][0]
        assert sql == "INSERT INTO districts (district_code) VALUES (%s) RETURNING id"

    def test_connect_failure(self) -> None:
        with patch(
            "sales_ingest.store.database.psycopg.connect",
            side_effect=psycopg.OperationalError("connection refused"),
        ):
            with pytest.raises(StorageError, match="Cannot connect"):
                PostgresDatabase("postgresql://u:p@nowhere:5432/sales")

    def test_driver_error_becomes_storage_error(self, pg: PostgresDatabase, mock_conn: MagicMock) -> None:
        mock_conn.execute.side_effect = psycopg.OperationalError("server closed the connection")

        with pytest.raises(StorageError) as exc_info:
            pg.execute("SELECT 1")

        assert not isinstance(exc_info.value, DuplicateSaleError)

    def test_natural_key_violation_is_duplicate(self, pg: PostgresDatabase, mock_conn: MagicMock) -> None:
        mock_conn.execute.side_effect = pg_errors.UniqueViolation("duplicate key")
        diag = MagicMock(constraint_name=NATURAL_KEY_CONSTRAINT)

        with patch.object(pg_errors.UniqueViolation, "diag", new_callable=PropertyMock, return_value=diag):
            with pytest.raises(DuplicateSaleError):
                pg.execute("INSERT INTO property_sales (district_code) VALUES (?)", ("214",))

    def test_other_unique_violation_is_storage_error(self, pg: PostgresDatabase, mock_conn: MagicMock) -> None:
        mock_conn.execute.side_effect = pg_errors.UniqueViolation("duplicate key")
        diag = MagicMock(constraint_name="import_log_filename_district_code_key")

        with patch.object(pg_errors.UniqueViolation, "diag", new_callable=PropertyMock, return_value=diag):
            with pytest.raises(StorageError) as exc_info:
                pg.execute("INSERT INTO import_log (filename) VALUES (?)", ("a.DAT",))

        assert not isinstance(exc_info.value, DuplicateSaleError)

    def test_table_columns(self, pg: PostgresDatabase, mock_conn: MagicMock) -> None:
        mock_conn.execute.return_value.fetchall.return_value = [
            ("id", "bigint", "NO", "nextval('property_sales_id_seq'::regclass)", True),
            ("suburb", "text", "YES", None, False),
        ]

        columns = pg.table_columns("property_sales")

        assert columns == [
            {
                "name": "id",
                "type": "bigint",
                "nullable": False,
                "defaultValue": "nextval('property_sales_id_seq'::regclass)",
                "isPrimaryKey": True,
            },
            {"name": "suburb", "type": "text", "nullable": True, "defaultValue": None, "isPrimaryKey": False},
        ]
        sql, params = mock_conn.execute.call_args[0]
        assert "information_schema.columns" in sql
        assert "?" not in sql
        assert params == ("property_sales", "property_sales")

    def test_savepoint_nests_transactions(self, pg: PostgresDatabase, mock_conn: MagicMock) -> None:
        with pg.transaction():
            with pg.savepoint():
                pg.execute("SELECT 1")

        assert mock_conn.transaction.call_count == 2

    def test_dialect(self, pg: PostgresDatabase) -> None:
        assert pg.dialect == "postgres"
