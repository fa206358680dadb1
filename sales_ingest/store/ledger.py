"""Import ledger: which extract files have been fully ingested."""

from __future__ import annotations

import logging

from sales_ingest.models.enums import ImportStatus
from sales_ingest.models.imports import ImportAttempt, ImportCounts
from sales_ingest.store.database import Database

logger = logging.getLogger(__name__)

_ATTEMPT_COLUMNS = (
    "id, filename, district_code, status, file_path, file_type, file_date, "
    "records_processed, records_inserted, records_skipped, records_error, "
    "error_message, started_at, completed_at"
)


def _to_attempt(row: tuple) -> ImportAttempt:
    values = list(row)
    values[3] = ImportStatus(values[3])
    for idx in (12, 13):
        if values[idx] is not None:
            values[idx] = str(values[idx])
    return ImportAttempt(*values)


class ImportLedger:
    """Per (filename, district_code) import status and counters.

    The ledger never retries anything itself; whether to skip or
    reprocess a file is decided by the caller.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    def is_completed(self, filename: str, district_code: str) -> bool:
        """Return True if the file has a completed import attempt."""
        row = self.db.fetchone(
            "SELECT id FROM import_log WHERE filename = ? AND district_code = ? AND status = ?",
            (filename, district_code, ImportStatus.COMPLETED.value),
        )
        return row is not None

    def begin(
        self,
        filename: str,
        file_path: str | None,
        file_type: str | None,
        file_date: str | None,
        district_code: str,
    ) -> int:
        """Move the attempt for this file to ``processing``.

        Creates the row when absent; otherwise resets status, start time
        and any previous error so a forced re-run starts clean. Returns
        the attempt id.
        """
        self.db.execute(
            """
            INSERT INTO import_log
                (filename, file_path, file_type, file_date, district_code, status, started_at)
            VALUES (?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT (filename, district_code) DO UPDATE SET
                file_path = excluded.file_path,
                file_type = excluded.file_type,
                file_date = excluded.file_date,
                status = excluded.status,
                started_at = CURRENT_TIMESTAMP,
                completed_at = NULL,
                error_message = NULL
            """,
            (filename, file_path, file_type, file_date, district_code, ImportStatus.PROCESSING.value),
        )
        attempt_id = self.db.scalar(
            "SELECT id FROM import_log WHERE filename = ? AND district_code = ?",
            (filename, district_code),
        )
        logger.debug("Import attempt %s for %s (%s) is processing", attempt_id, filename, district_code)
        return int(attempt_id)

    def complete(self, attempt_id: int, counts: ImportCounts) -> None:
        """Mark an attempt completed with its final counters."""
        self.db.execute(
            """
            UPDATE import_log SET
                status = ?,
                records_processed = ?,
                records_inserted = ?,
                records_skipped = ?,
                records_error = ?,
                completed_at = CURRENT_TIMESTAMP
            WHERE id = ?
            """,
            (
                ImportStatus.COMPLETED.value,
                counts.processed,
                counts.inserted,
                counts.skipped,
                counts.errors,
                attempt_id,
            ),
        )

    def fail(self, attempt_id: int, message: str) -> None:
        """Mark an attempt failed with the error message."""
        self.db.execute(
            "UPDATE import_log SET status = ?, error_message = ?, completed_at = CURRENT_TIMESTAMP WHERE id = ?",
            (ImportStatus.FAILED.value, message, attempt_id),
        )

    def get(self, filename: str, district_code: str) -> ImportAttempt | None:
        row = self.db.fetchone(
            f"SELECT {_ATTEMPT_COLUMNS} FROM import_log WHERE filename = ? AND district_code = ?",  # noqa: S608
            (filename, district_code),
        )
        return _to_attempt(row) if row else None

    def recent(self, limit: int = 10) -> list[ImportAttempt]:
        """Most recently completed attempts, newest first."""
        rows = self.db.fetchall(
            f"SELECT {_ATTEMPT_COLUMNS} FROM import_log WHERE status = ? "  # noqa: S608
            "ORDER BY completed_at DESC, id DESC LIMIT ?",
            (ImportStatus.COMPLETED.value, limit),
        )
        return [_to_attempt(row) for row in rows]

    def completed_count(self) -> int:
        return int(
            self.db.scalar(
                "SELECT COUNT(*) FROM import_log WHERE status = ?",
                (ImportStatus.COMPLETED.value,),
            )
        )
