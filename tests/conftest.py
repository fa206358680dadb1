"""Pytest configuration and fixtures."""

import logging
from pathlib import Path

import pytest

from sales_ingest.ingest import SalesIngester
from sales_ingest.store.database import SqliteDatabase

from samples import (
    HEADER_LINE,
    LEGAL_LINE,
    PURCHASER_LINE,
    SALE_LINE,
    SAMPLE_FILENAME,
    SECOND_LEGAL_LINE,
    SECOND_SALE_LINE,
    VENDOR_LINE,
)


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def sample_lines() -> list[str]:
    """A header and two complete sales."""
    return [
        HEADER_LINE,
        SALE_LINE,
        LEGAL_LINE,
        PURCHASER_LINE,
        VENDOR_LINE,
        SECOND_SALE_LINE,
        SECOND_LEGAL_LINE,
    ]


@pytest.fixture
def sample_content(sample_lines: list[str]) -> str:
    return "\n".join(sample_lines) + "\n"


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    path = tmp_path / "raw"
    path.mkdir()
    return path


@pytest.fixture
def sample_file(source_dir: Path, sample_content: str) -> Path:
    """The sample content written under its district/date filename."""
    path = source_dir / SAMPLE_FILENAME
    path.write_text(sample_content, encoding="utf-8")
    return path


@pytest.fixture
def db(tmp_path: Path):
    """Empty SQLite database in a temporary directory."""
    database = SqliteDatabase(tmp_path / "data" / "property_sales.db")
    yield database
    database.close()


@pytest.fixture
def ingester(db: SqliteDatabase) -> SalesIngester:
    """Ingester over an initialized database."""
    ingester = SalesIngester(db)
    ingester.initialize()
    return ingester


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo handler changes made by setup_logging."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    package_level = logging.getLogger("sales_ingest").level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("sales_ingest").setLevel(package_level)
