"""Ingestion of sales extract directories into storage.

Files are processed one at a time in filename order. Each file's sales
are written in a single transaction, and the import ledger records
whether the file completed so unchanged directories can be re-run
without writing anything.
"""

from __future__ import annotations

import logging
from pathlib import Path

from sales_ingest.config import FILE_TYPES, IngestConfig
from sales_ingest.exceptions import ConfigurationError, ParseError, SalesIngestError, SourceNotFoundError
from sales_ingest.models.enums import FileOutcome
from sales_ingest.models.imports import DirectoryReport, FileResult
from sales_ingest.parsers.dat import parse_dat_file, parse_filename
from sales_ingest.store.database import Database
from sales_ingest.store.ledger import ImportLedger
from sales_ingest.store.sales import SaleWriter
from sales_ingest.store.schema import initialize_schema, register_district

logger = logging.getLogger(__name__)

UNKNOWN_DISTRICT = "unknown"


class SalesIngester:
    """Load sales extract files into a database.

    Parameters
    ----------
    db : Database
        Open storage connection. The ingester is its only writer.
    config : IngestConfig | None
        Discovery and parsing options.
    district_codes : dict[str, str] | None
        District names seeded by ``initialize``.
    """

    def __init__(
        self,
        db: Database,
        config: IngestConfig | None = None,
        district_codes: dict[str, str] | None = None,
    ) -> None:
        self.db = db
        self.config = config or IngestConfig()
        self.district_codes = district_codes
        self.ledger = ImportLedger(db)
        self.writer = SaleWriter(db)

    def initialize(self) -> None:
        """Create the schema if absent and seed reference tables."""
        initialize_schema(self.db, self.district_codes)

    def discover_files(self, directory: str | Path) -> list[Path]:
        """List extract files in ``directory``, sorted by filename.

        Raises
        ------
        SourceNotFoundError
            If ``directory`` does not exist or is not a directory.
        """
        root = Path(directory)
        if not root.is_dir():
            raise SourceNotFoundError(f"Source path does not exist: {root}")

        extension = self.config.source_extension.lower()
        return sorted(
            (p for p in root.iterdir() if p.is_file() and p.name.lower().endswith(extension)),
            key=lambda p: p.name,
        )

    def process_file(
        self,
        file_path: str | Path,
        file_type: str | None = None,
        force: bool = False,
    ) -> FileResult:
        """Parse one file and load its sales.

        Parameters
        ----------
        file_path : str | Path
            Extract file.
        file_type : str | None
            "weekly" or "annual" (defaults to the configured type).
        force : bool
            Reprocess the file even if the ledger marks it completed.

        Returns
        -------
        FileResult
            ``skipped`` when already imported, ``failed`` when the file
            could not be parsed or its transaction failed, otherwise
            ``processed`` with insert/skip/error counts.
        """
        path = Path(file_path)
        file_type = self._check_file_type(file_type)
        filename = path.name

        try:
            parsed = parse_dat_file(path, preview_length=self.config.preview_length)
        except ParseError as e:
            district_code, file_date = parse_filename(filename)
            district_code = district_code or UNKNOWN_DISTRICT
            logger.error(
                "  ✗ %s: %s",
                filename,
                e,
                extra={"source_file": filename, "district_code": district_code},
            )
            attempt_id = self.ledger.begin(filename, str(path), file_type, file_date, district_code)
            self.ledger.fail(attempt_id, str(e))
            return FileResult(
                filename=filename,
                status=FileOutcome.FAILED,
                district_code=district_code,
                error=str(e),
            )

        district_code = (
            parsed.district_code
            or (parsed.header.district_code if parsed.header else None)
            or UNKNOWN_DISTRICT
        )

        context = {"source_file": filename, "district_code": district_code}

        if not force and self.ledger.is_completed(filename, district_code):
            logger.info("  Skipping %s (already imported)", filename, extra=context)
            return FileResult(filename=filename, status=FileOutcome.SKIPPED, district_code=district_code)

        attempt_id = self.ledger.begin(filename, str(path), file_type, parsed.file_date, district_code)

        try:
            with self.db.transaction():
                register_district(self.db, district_code)
                counts = self.writer.write_batch(parsed.sales, file_type)
        except Exception as e:
            self.ledger.fail(attempt_id, str(e))
            logger.error("  ✗ %s: %s", filename, e, extra={**context, "attempt_id": attempt_id})
            return FileResult(
                filename=filename,
                status=FileOutcome.FAILED,
                district_code=district_code,
                error=str(e),
                parse_errors=len(parsed.parse_errors),
            )

        self.ledger.complete(attempt_id, counts)

        if parsed.parse_errors:
            logger.warning(
                "  %s: %d lines could not be parsed",
                filename,
                len(parsed.parse_errors),
                extra=context,
            )
        logger.info(
            "  ✓ %s: %d inserted, %d duplicates, %d errors",
            filename,
            counts.inserted,
            counts.skipped,
            counts.errors,
            extra={**context, "attempt_id": attempt_id},
        )
        return FileResult(
            filename=filename,
            status=FileOutcome.PROCESSED,
            district_code=district_code,
            counts=counts,
            parse_errors=len(parsed.parse_errors),
        )

    def process_directory(
        self,
        directory: str | Path,
        file_type: str | None = None,
        force: bool = False,
    ) -> DirectoryReport:
        """Ingest every extract file in ``directory``.

        A failing file is counted in ``errors`` and the run continues with
        the next file.

        Raises
        ------
        SourceNotFoundError
            If ``directory`` does not exist.
        """
        file_type = self._check_file_type(file_type)

        logger.info("Processing directory: %s", directory)
        logger.info("File type: %s", file_type)
        logger.info("Force re-import: %s", force)
        logger.info("-" * 60)

        files = self.discover_files(directory)
        logger.info("Found %d DAT files", len(files))

        report = DirectoryReport(total=len(files))
        for path in files:
            try:
                result = self.process_file(path, file_type, force)
            except SalesIngestError as e:
                logger.error("  ✗ %s: %s", path.name, e)
                result = FileResult(filename=path.name, status=FileOutcome.FAILED, error=str(e))
            report.add(result)

        log_report(report)
        return report

    def _check_file_type(self, file_type: str | None) -> str:
        file_type = file_type or self.config.default_file_type
        if file_type not in FILE_TYPES:
            raise ConfigurationError(f"file_type must be one of {FILE_TYPES}, got {file_type!r}")
        return file_type


def log_report(report: DirectoryReport) -> None:
    """Log the run summary."""
    logger.info("=" * 60)
    logger.info("SUMMARY")
    logger.info("=" * 60)
    logger.info("Total files: %d", report.total)
    logger.info("Processed: %d", report.processed)
    logger.info("Skipped (already imported): %d", report.skipped)
    logger.info("Errors: %d", report.errors)
    logger.info("Total records inserted: %d", report.inserted)
