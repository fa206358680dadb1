"""Custom exception hierarchy for sales-ingest."""


class SalesIngestError(Exception):
    """Base exception for all sales-ingest errors."""


class ConfigurationError(SalesIngestError):
    """Raised when configuration is invalid or missing."""


class SourceNotFoundError(SalesIngestError):
    """Raised when a source directory or file does not exist."""


class ParseError(SalesIngestError):
    """Raised when a whole extract file cannot be read or decoded."""


class StorageError(SalesIngestError):
    """Raised when a storage operation fails."""


class DuplicateSaleError(StorageError):
    """Raised when a sale violates the natural-key uniqueness constraint."""
