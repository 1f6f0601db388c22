"""Tests for GLImportService."""

from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

import pytest
from ledgerline.domain import gl_import
from ledgerline.domain.entities import AccountType, ImportJobStatus
from ledgerline.domain.errors import (
    ConflictError,
    NotFoundError,
    UnsupportedFileTypeError,
    ValidationError,
)
from ledgerline.domain.gl_import import GLImportService, cap_errors


HEADER = ["Date", "Reference", "Account", "Description", "Debit", "Credit"]


def _entry_rows(reference, entry_date, debit_account, credit_account, amount, description="Entry"):
    return [
        [entry_date, reference, debit_account, description, amount, ""],
        [entry_date, reference, credit_account, description, "", amount],
    ]


class TestParse:
    """Preview parsing."""

    def test_parse_csv_fixture(self, import_service, sample_client, sample_accounts, fixtures_dir):
        result = import_service.parse_file(sample_client.id, fixtures_dir / "journal_entries.csv")
        assert result.file_name == "journal_entries.csv"
        assert result.detected_format == "JOURNAL_ENTRY"
        assert result.summary["journal_entries_count"] == 3
        assert result.summary["unmatched_accounts"] == 0
        assert result.total_debits == Decimal("2420.00")
        assert result.is_balanced

    def test_parse_xlsx(self, import_service, sample_client, sample_accounts, tmp_path):
        import openpyxl

        path = tmp_path / "journal.xlsx"
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.append(HEADER)
        ws.append([datetime(2024, 4, 2), "GJ000123", "610-000", "Stationery", 45.5, None])
        ws.append([datetime(2024, 4, 2), "GJ000123", "106-000", "Stationery", None, 45.5])
        wb.save(path)

        result = import_service.parse_file(sample_client.id, path)
        assert len(result.journal_entries) == 1
        entry = result.journal_entries[0]
        assert entry.reference == "GJ000123"
        assert entry.entry_date == date(2024, 4, 2)
        assert entry.total_debit == Decimal("45.5")
        assert entry.is_balanced

    def test_parse_xlsx_numeric_four_digit_accounts(self, import_service, account_service, sample_client, tmp_path):
        import openpyxl

        cash = account_service.create_account(sample_client.id, "1000", "Cash", AccountType.ASSET)
        office = account_service.create_account(sample_client.id, "6100", "Office", AccountType.EXPENSE)
        path = tmp_path / "journal.xlsx"
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.append(["Date", "Journal", "Account", "Description", "Debit", "Credit"])
        ws.append([datetime(2026, 3, 1), "JE-0001", 6100, "Paper", 100, None])
        ws.append([None, None, 1000, "Paper", None, 100])
        wb.save(path)

        result = import_service.parse_file(sample_client.id, path)
        assert result.unclassified_rows == []
        assert len(result.journal_entries) == 1
        entry = result.journal_entries[0]
        assert [line.resolved_account_id for line in entry.lines] == [office, cash]
        assert entry.is_balanced

    def test_non_utf8_csv(self, import_service, sample_client, tmp_path):
        path = tmp_path / "latin1.csv"
        path.write_bytes("Date,Reference,Account\n2024-01-15,JE-0001,106-000 Caf\xe9\n".encode("latin-1"))
        with pytest.raises(ValidationError, match="not UTF-8"):
            import_service.parse_file(sample_client.id, path)

    def test_parse_writes_nothing(self, import_service, journal_service, sample_client, sample_accounts, fixtures_dir):
        import_service.parse_file(sample_client.id, fixtures_dir / "journal_entries.csv")
        assert journal_service.list_entries(sample_client.id) == []

    def test_unsupported_file_type(self, import_service, sample_client, tmp_path):
        path = tmp_path / "ledger.pdf"
        path.write_text("not a ledger")
        with pytest.raises(UnsupportedFileTypeError):
            import_service.parse_file(sample_client.id, path)

    def test_empty_file(self, import_service, sample_client, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("")
        with pytest.raises(ValidationError, match="empty"):
            import_service.parse_file(sample_client.id, path)

    def test_missing_file(self, import_service, sample_client, tmp_path):
        with pytest.raises(NotFoundError):
            import_service.parse_file(sample_client.id, tmp_path / "missing.csv")

    def test_unknown_client(self, import_service):
        with pytest.raises(NotFoundError):
            import_service.parse_grid(999, [HEADER])


class TestCommit:
    """Committing parsed entries."""

    def test_commit_fixture(self, import_service, journal_service, balance_service, sample_client, sample_accounts, fixtures_dir):
        parsed = import_service.parse_file(sample_client.id, fixtures_dir / "journal_entries.csv")
        result = import_service.commit_import(sample_client.id, parsed)

        assert (result.imported, result.skipped) == (3, 0)
        assert result.errors == ()
        entries = journal_service.list_entries(sample_client.id)
        assert [e.reference for e in entries] == ["JE-0001", "JE-0002", "JE-0003"]

        bank = balance_service.account_balance(sample_client.id, sample_accounts["Bank"], date(2024, 12, 31))
        assert bank == Decimal("-820.00")

    def test_sectioned_fixture(self, import_service, journal_service, sample_client, sample_accounts, fixtures_dir):
        parsed = import_service.parse_file(sample_client.id, fixtures_dir / "sectioned_ledger.csv")
        result = import_service.commit_import(sample_client.id, parsed)
        assert result.imported == 2
        rent = journal_service.list_entries(sample_client.id, account_id=sample_accounts["Rent"])
        assert len(rent) == 1
        assert rent[0].total_debit == Decimal("900.00")

    def test_reimport_skips_duplicates(self, import_service, sample_client, sample_accounts, fixtures_dir):
        path = fixtures_dir / "journal_entries.csv"
        import_service.commit_import(sample_client.id, import_service.parse_file(sample_client.id, path))
        second = import_service.commit_import(sample_client.id, import_service.parse_file(sample_client.id, path))
        assert (second.imported, second.skipped) == (0, 3)
        assert "Entry JE-0001: already imported" in second.errors

    def test_unbalanced_entry_skipped(self, import_service, journal_service, sample_client, sample_accounts):
        grid = [
            HEADER,
            ["2024-01-10", "JE-0001", "610-000", "Paper", "100", ""],
            ["2024-01-10", "JE-0001", "106-000", "Paper", "", "90"],
            *_entry_rows("JE-0002", "2024-01-11", "620-000", "106-000", "50"),
        ]
        parsed = import_service.parse_grid(sample_client.id, grid)
        result = import_service.commit_import(sample_client.id, parsed)

        assert (result.imported, result.skipped) == (1, 1)
        assert result.errors[0].startswith("Entry JE-0001: unbalanced")
        assert [e.reference for e in journal_service.list_entries(sample_client.id)] == ["JE-0002"]

    def test_unknown_account_skips_journal_entry(self, import_service, sample_client, sample_accounts):
        grid = [HEADER, *_entry_rows("JE-0001", "2024-01-10", "999-000 Mystery", "106-000", "25")]
        result = import_service.commit_import(sample_client.id, import_service.parse_grid(sample_client.id, grid))
        assert (result.imported, result.skipped) == (0, 1)
        assert result.errors == ("Entry JE-0001: unknown account(s) 999-000",)

    def test_unknown_account_lines_dropped_in_sectioned_ledger(self, import_service, journal_service, sample_client, sample_accounts):
        grid = [
            ["106-000 Bank"],
            ["", "2024-03-01", "1001", "Rent", "", "100"],
            ["620-000 Rent"],
            ["", "2024-03-01", "1001", "Rent", "100", ""],
            ["999-000 Suspense"],
            ["", "2024-03-01", "1001", "Rent", "40", ""],
            ["999-100 Clearing"],
            ["", "2024-03-01", "1001", "Rent", "", "40"],
        ]
        result = import_service.commit_import(sample_client.id, import_service.parse_grid(sample_client.id, grid))
        assert result.imported == 1
        assert result.errors == ("Entry 1001: dropped line(s) for unknown account(s) 999-000, 999-100",)
        entry = journal_service.list_entries(sample_client.id)[0]
        assert len(journal_service.require_entry(entry.id).lines) == 2

    def test_sectioned_entry_unbalanced_after_drop_is_skipped(self, import_service, sample_client, sample_accounts):
        grid = [
            ["106-000 Bank"],
            ["", "2024-03-01", "1001", "Rent", "", "100"],
            ["620-000 Rent"],
            ["", "2024-03-01", "1001", "Rent", "60", ""],
            ["999-000 Suspense"],
            ["", "2024-03-01", "1001", "Rent", "40", ""],
        ]
        result = import_service.commit_import(sample_client.id, import_service.parse_grid(sample_client.id, grid))
        assert (result.imported, result.skipped) == (0, 1)
        assert "Entry 1001: unbalanced after dropping unknown accounts" in result.errors

    def test_create_missing_accounts(self, import_service, account_service, sample_client, sample_accounts):
        grid = [HEADER, *_entry_rows("JE-0001", "2024-01-10", "106-000", "450-000 Consulting Income", "300")]
        result = import_service.commit_import(
            sample_client.id,
            import_service.parse_grid(sample_client.id, grid),
            create_missing_accounts=True,
        )
        assert result.imported == 1
        assert result.created_accounts == ("450-000",)
        created = account_service.find_by_number(sample_client.id, "450000")
        assert created.name == "Consulting Income"
        assert created.account_type == AccountType.INCOME

    def test_created_account_uses_default_type_without_hint(self, import_service, account_service, sample_client, sample_accounts):
        grid = [HEADER, *_entry_rows("JE-0001", "2024-01-10", "0100", "106-000", "5")]
        import_service.commit_import(
            sample_client.id,
            import_service.parse_grid(sample_client.id, grid),
            create_missing_accounts=True,
            default_account_type=AccountType.LIABILITY,
        )
        created = account_service.find_by_number(sample_client.id, "0100")
        assert created.account_type == AccountType.LIABILITY
        assert created.name == "Account 0100"

    def test_account_overrides(self, import_service, journal_service, sample_client, sample_accounts):
        grid = [HEADER, *_entry_rows("JE-0001", "2024-01-10", "106-000", "4000", "75")]
        result = import_service.commit_import(
            sample_client.id,
            import_service.parse_grid(sample_client.id, grid),
            account_overrides={"4000": sample_accounts["Sales"]},
        )
        assert result.imported == 1
        sales = journal_service.list_entries(sample_client.id, account_id=sample_accounts["Sales"])
        assert len(sales) == 1

    def test_invalid_override_is_reported(self, import_service, sample_client, sample_accounts):
        grid = [HEADER, *_entry_rows("JE-0001", "2024-01-10", "106-000", "4000", "75")]
        result = import_service.commit_import(
            sample_client.id,
            import_service.parse_grid(sample_client.id, grid),
            account_overrides={"4000": 9999},
        )
        assert result.skipped == 1
        assert "Override for account 4000: account 9999 not found" in result.errors

    def test_errors_are_capped(self, import_service, sample_client, sample_accounts):
        grid = [HEADER]
        for i in range(55):
            grid.append(["2024-01-10", f"JE-{i:04d}", "610-000", "Lonely line", "10", ""])
        result = import_service.commit_import(sample_client.id, import_service.parse_grid(sample_client.id, grid))
        assert result.skipped == 55
        assert len(result.errors) == 51
        assert result.errors[-1] == "... and 5 more"


class TestImportJobs:
    """Job tracking around commits."""

    def test_progress_in_batches(self, temp_db, sample_client, sample_accounts, fixtures_dir):
        service = GLImportService(temp_db, batch_size=2)
        parsed = service.parse_file(sample_client.id, fixtures_dir / "journal_entries.csv")
        result = service.commit_import(sample_client.id, parsed)

        progress = service.get_progress(sample_client.id)
        assert progress.import_id == result.import_id
        assert not progress.is_active
        assert progress.status == ImportJobStatus.COMPLETED
        assert (progress.total_count, progress.processed_count) == (3, 3)
        assert (progress.total_batches, progress.current_batch) == (2, 2)
        assert progress.imported_count == 3

    def test_progress_without_imports(self, import_service, sample_client):
        progress = import_service.get_progress(sample_client.id)
        assert progress.import_id is None
        assert not progress.is_active
        assert progress.processed_count == 0

    def test_active_import_blocks_another(self, temp_db, import_service, sample_client, sample_accounts, fixtures_dir):
        temp_db.create_import_job(sample_client.id, total_count=10, total_batches=1)
        parsed = import_service.parse_file(sample_client.id, fixtures_dir / "journal_entries.csv")
        with pytest.raises(ConflictError):
            import_service.commit_import(sample_client.id, parsed)

    def test_stale_import_is_abandoned(self, temp_db, import_service, sample_client, sample_accounts, fixtures_dir, monkeypatch):
        stale_id = temp_db.create_import_job(sample_client.id, total_count=10, total_batches=1)
        monkeypatch.setattr(gl_import, "STALE_JOB_AFTER", timedelta(seconds=-1))

        parsed = import_service.parse_file(sample_client.id, fixtures_dir / "journal_entries.csv")
        result = import_service.commit_import(sample_client.id, parsed)

        assert result.imported == 3
        assert temp_db.get_import_job(stale_id).status == ImportJobStatus.ABANDONED

    def test_failure_marks_job_failed(self, import_service, sample_client, sample_accounts, fixtures_dir, monkeypatch):
        def boom(**kwargs):
            raise RuntimeError("disk full")

        monkeypatch.setattr(import_service.journal_service, "create_entry", boom)
        parsed = import_service.parse_file(sample_client.id, fixtures_dir / "journal_entries.csv")
        with pytest.raises(RuntimeError):
            import_service.commit_import(sample_client.id, parsed)

        progress = import_service.get_progress(sample_client.id)
        assert progress.status == ImportJobStatus.FAILED
        assert "disk full" in progress.errors
        assert not progress.is_active

    def test_import_swept_mid_run_stops(self, temp_db, import_service, sample_client, sample_accounts, fixtures_dir, monkeypatch):
        create_entry = import_service.journal_service.create_entry

        def create_and_sweep(**kwargs):
            temp_db.abandon_stale_import_jobs(sample_client.id, datetime.now(UTC) + timedelta(minutes=1))
            return create_entry(**kwargs)

        monkeypatch.setattr(import_service.journal_service, "create_entry", create_and_sweep)
        parsed = import_service.parse_file(sample_client.id, fixtures_dir / "journal_entries.csv")
        with pytest.raises(ConflictError, match="abandoned"):
            import_service.commit_import(sample_client.id, parsed)

        progress = import_service.get_progress(sample_client.id)
        assert progress.status == ImportJobStatus.ABANDONED

    def test_invalid_batch_size(self, temp_db):
        with pytest.raises(ValueError):
            GLImportService(temp_db, batch_size=0)


def test_cap_errors():
    assert cap_errors(["a", "b"], limit=5) == ["a", "b"]
    assert cap_errors(["a", "b", "c"], limit=2) == ["a", "b", "... and 1 more"]
