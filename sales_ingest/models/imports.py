"""Import ledger and run report models."""

from dataclasses import dataclass, field

from sales_ingest.models.enums import FileOutcome, ImportStatus


@dataclass
class ImportCounts:
    """Per-file record counters."""

    processed: int = 0
    inserted: int = 0
    skipped: int = 0
    errors: int = 0


@dataclass
class ImportAttempt:
    """One row of the import ledger, keyed by (filename, district_code)."""

    id: int
    filename: str
    district_code: str
    status: ImportStatus
    file_path: str | None = None
    file_type: str | None = None
    file_date: str | None = None
    records_processed: int = 0
    records_inserted: int = 0
    records_skipped: int = 0
    records_error: int = 0
    error_message: str | None = None
    started_at: str | None = None
    completed_at: str | None = None


@dataclass
class FileResult:
    """Outcome of ingesting a single file."""

    filename: str
    status: FileOutcome
    district_code: str | None = None
    counts: ImportCounts = field(default_factory=ImportCounts)
    error: str | None = None
    parse_errors: int = 0


@dataclass
class DirectoryReport:
    """Aggregate outcome of ingesting a directory."""

    total: int = 0
    processed: int = 0
    skipped: int = 0
    errors: int = 0
    inserted: int = 0
    results: list[FileResult] = field(default_factory=list)

    def add(self, result: FileResult) -> None:
        """Fold a file result into the totals."""
        self.results.append(result)
        if result.status == FileOutcome.SKIPPED:
            self.skipped += 1
        elif result.status == FileOutcome.PROCESSED:
            self.processed += 1
            self.inserted += result.counts.inserted
        else:
            self.errors += 1
