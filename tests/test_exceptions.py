"""Tests for custom exception hierarchy."""

from sales_ingest.exceptions import (
    ConfigurationError,
    DuplicateSaleError,
    ParseError,
    SalesIngestError,
    SourceNotFoundError,
    StorageError,
)


class TestExceptionHierarchy:
    """Test exception inheritance chain."""

    def test_base_is_exception(self) -> None:
        assert isinstance(SalesIngestError("test"), Exception)

    def test_direct_subclasses(self) -> None:
        for cls in (ConfigurationError, SourceNotFoundError, ParseError, StorageError):
            assert isinstance(cls("test"), SalesIngestError)

    def test_duplicate_is_storage_error(self) -> None:
        err = DuplicateSaleError("test")
        assert isinstance(err, StorageError)
        assert isinstance(err, SalesIngestError)

    def test_parse_error_is_not_storage_error(self) -> None:
        assert not isinstance(ParseError("test"), StorageError)

    def test_exception_message(self) -> None:
        err = SourceNotFoundError("Source path does not exist: /raw")
        assert str(err) == "Source path does not exist: /raw"
