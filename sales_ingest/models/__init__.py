"""Domain models for sales extract ingestion."""

from sales_ingest.models.enums import (
    AreaUnit,
    FileOutcome,
    FileType,
    ImportStatus,
    InterestType,
    PlanType,
    RecordType,
)
from sales_ingest.models.imports import (
    DirectoryReport,
    FileResult,
    ImportAttempt,
    ImportCounts,
)
from sales_ingest.models.sales import (
    BatchParseResult,
    FileParseError,
    HeaderRecord,
    InterestRecord,
    LegalDescription,
    LineError,
    ParsedFile,
    SaleRecord,
)

__all__ = [
    "AreaUnit",
    "BatchParseResult",
    "DirectoryReport",
    "FileOutcome",
    "FileParseError",
    "FileResult",
    "FileType",
    "HeaderRecord",
    "ImportAttempt",
    "ImportCounts",
    "ImportStatus",
    "InterestRecord",
    "InterestType",
    "LegalDescription",
    "LineError",
    "ParsedFile",
    "PlanType",
    "RecordType",
    "SaleRecord",
]
