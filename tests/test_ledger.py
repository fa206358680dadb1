"""Tests for the import ledger."""

from sales_ingest.models.enums import ImportStatus
from sales_ingest.models.imports import ImportCounts
from sales_ingest.store import ImportLedger, SqliteDatabase, initialize_schema


class TestImportLedger:
    """Tests for attempt lifecycle."""

    def _ledger(self, db: SqliteDatabase) -> ImportLedger:
        initialize_schema(db)
        return ImportLedger(db)

    def test_unknown_file_not_completed(self, db: SqliteDatabase) -> None:
        ledger = self._ledger(db)

        assert ledger.is_completed("a.DAT", "214") is False
        assert ledger.get("a.DAT", "214") is None

    def test_begin_creates_processing_attempt(self, db: SqliteDatabase) -> None:
        ledger = self._ledger(db)

        attempt_id = ledger.begin("a.DAT", "/raw/a.DAT", "weekly", "20251215", "214")
        attempt = ledger.get("a.DAT", "214")

        assert attempt.id == attempt_id
        assert attempt.status == ImportStatus.PROCESSING
        assert attempt.file_type == "weekly"
        assert attempt.file_date == "20251215"
        assert attempt.started_at is not None
        assert attempt.completed_at is None
        assert ledger.is_completed("a.DAT", "214") is False

    def test_complete_records_counts(self, db: SqliteDatabase) -> None:
        ledger = self._ledger(db)
        attempt_id = ledger.begin("a.DAT", None, "weekly", None, "214")

        ledger.complete(attempt_id, ImportCounts(processed=5, inserted=3, skipped=1, errors=1))
        attempt = ledger.get("a.DAT", "214")

        assert attempt.status == ImportStatus.COMPLETED
        assert (attempt.records_processed, attempt.records_inserted) == (5, 3)
        assert (attempt.records_skipped, attempt.records_error) == (1, 1)
        assert attempt.completed_at is not None
        assert ledger.is_completed("a.DAT", "214") is True

    def test_fail_records_message(self, db: SqliteDatabase) -> None:
        ledger = self._ledger(db)
        attempt_id = ledger.begin("a.DAT", None, "weekly", None, "214")

        ledger.fail(attempt_id, "disk full")
        attempt = ledger.get("a.DAT", "214")

        assert attempt.status == ImportStatus.FAILED
        assert attempt.error_message == "disk full"
        assert ledger.is_completed("a.DAT", "214") is False

    def test_begin_again_reuses_row_and_clears_error(self, db: SqliteDatabase) -> None:
        ledger = self._ledger(db)
        first_id = ledger.begin("a.DAT", None, "weekly", None, "214")
        ledger.fail(first_id, "disk full")

        second_id = ledger.begin("a.DAT", None, "annual", None, "214")
        attempt = ledger.get("a.DAT", "214")

        assert second_id == first_id
        assert attempt.status == ImportStatus.PROCESSING
        assert attempt.error_message is None
        assert attempt.file_type == "annual"
        assert db.count("import_log") == 1

    def test_same_filename_other_district_is_separate(self, db: SqliteDatabase) -> None:
        ledger = self._ledger(db)
        first = ledger.begin("a.DAT", None, "weekly", None, "214")
        ledger.complete(first, ImportCounts())

        assert ledger.is_completed("a.DAT", "001") is False
        assert ledger.begin("a.DAT", None, "weekly", None, "001") != first

    def test_recent_and_completed_count(self, db: SqliteDatabase) -> None:
        ledger = self._ledger(db)
        for name in ("a.DAT", "b.DAT", "c.DAT"):
            ledger.complete(ledger.begin(name, None, "weekly", None, "214"), ImportCounts())
        ledger.fail(ledger.begin("d.DAT", None, "weekly", None, "214"), "bad")

        recent = ledger.recent(limit=2)

        assert ledger.completed_count() == 3
        assert len(recent) == 2
        assert all(a.status == ImportStatus.COMPLETED for a in recent)
        assert recent[0].filename == "c.DAT"
