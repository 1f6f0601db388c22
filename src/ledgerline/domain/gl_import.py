"""General-ledger import domain service."""

import logging
import math
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Mapping, Optional

from ledgerline.database.base import Database
from ledgerline.domain.account import AccountService, guess_account_type
from ledgerline.domain.entities import (
    AccountType,
    ImportCandidate,
    ImportJob,
    ImportJobStatus,
    ImportProgress,
    ImportResult,
    LineDraft,
    ParseResult,
)
from ledgerline.domain.errors import (
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
    client_not_found,
)
from ledgerline.domain.gl_formats import SectionedLedgerFormat
from ledgerline.domain.gl_normalizer import GLNormalizer
from ledgerline.domain.journal import JournalService
from ledgerline.utils.account_matcher import AccountIndex
from ledgerline.utils.grid_reader import read_grid

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100
MAX_REPORTED_ERRORS = 50
STALE_JOB_AFTER = timedelta(minutes=30)


def cap_errors(errors: list[str], limit: int = MAX_REPORTED_ERRORS) -> list[str]:
    """Keep the first ``limit`` errors and summarize the rest."""
    if len(errors) <= limit:
        return list(errors)
    return errors[:limit] + [f"... and {len(errors) - limit} more"]


class GLImportService:
    """Service for previewing and committing general-ledger imports.

    Parsing is side-effect free. Committing runs as a durable import job so
    progress can be polled and only one import per client runs at a time.
    """

    def __init__(self, db: Database, batch_size: int = DEFAULT_BATCH_SIZE):
        """Initialize GL import service.

        Args:
            db: Database instance
            batch_size: Number of candidate entries per progress update
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.db = db
        self.batch_size = batch_size
        self.account_service = AccountService(db)
        self.journal_service = JournalService(db)

    def _require_client(self, client_id: int) -> None:
        if self.db.get_client(client_id) is None:
            raise NotFoundError(client_not_found(client_id))

    def parse_grid(
        self, client_id: int, grid: list[list], file_name: Optional[str] = None
    ) -> ParseResult:
        """Parse an in-memory grid against a client's accounts."""
        self._require_client(client_id)
        normalizer = GLNormalizer(self.db.list_accounts(client_id))
        return normalizer.normalize(grid, file_name=file_name)

    def parse_file(self, client_id: int, file_path: str | Path) -> ParseResult:
        """Parse a ledger file without writing anything.

        Args:
            client_id: Client ID
            file_path: Path to a .csv, .tsv, .txt, .xlsx or .xlsm file

        Returns:
            ParseResult preview

        Raises:
            NotFoundError: If the client or file doesn't exist
            UnsupportedFileTypeError: If the file type is not supported
            ValidationError: If the file has no rows
        """
        self._require_client(client_id)
        grid = read_grid(file_path)
        if not grid:
            raise ValidationError(f"File is empty: {file_path}")
        logger.info("Read %d rows from %s", len(grid), file_path)
        return self.parse_grid(client_id, grid, file_name=Path(file_path).name)

    def _start_job(self, client_id: int, total_count: int) -> int:
        stale_before = datetime.now(UTC) - STALE_JOB_AFTER
        abandoned = self.db.abandon_stale_import_jobs(client_id, stale_before)
        if abandoned:
            logger.warning("Marked %d stale import job(s) abandoned for client %s", abandoned, client_id)
        total_batches = math.ceil(total_count / self.batch_size) if total_count else 0
        return self.db.create_import_job(client_id, total_count, total_batches)

    def _resolve_accounts(
        self,
        client_id: int,
        parse_result: ParseResult,
        create_missing_accounts: bool,
        default_account_type: AccountType,
        account_overrides: Mapping[str, int],
        errors: list[str],
    ) -> tuple[dict[str, int], list[str]]:
        """Map every raw account token of the parse result to an account ID."""
        index = AccountIndex.build(self.db.list_accounts(client_id))
        resolved: dict[str, int] = {}
        created: list[str] = []

        names: dict[str, Optional[str]] = {}
        for candidate in parse_result.journal_entries:
            for line in candidate.lines:
                names.setdefault(line.account_number, line.account_name)

        for token, name in names.items():
            if token in account_overrides:
                account = self.db.get_account(account_overrides[token])
                if account is None or account.client_id != client_id:
                    errors.append(f"Override for account {token}: account {account_overrides[token]} not found")
                    continue
                resolved[token] = account.id
                continue

            account = index.lookup(token)
            if account is not None:
                resolved[token] = account.id
                continue

            if create_missing_accounts:
                account_type = guess_account_type(token, default_account_type)
                account_id = self.account_service.create_account(
                    client_id, token, name or f"Account {token}", account_type
                )
                new_account = self.db.get_account(account_id)
                index.add(new_account)
                resolved[token] = account_id
                created.append(token)
                logger.info("Created account %s (%s) during import", token, account_type.value)

        return resolved, created

    def _candidate_lines(
        self,
        candidate: ImportCandidate,
        resolved: Mapping[str, int],
        label: str,
        errors: list[str],
    ) -> Optional[list[LineDraft]]:
        """Build ledger lines for a candidate, or None if it must be skipped."""
        unresolved = [line for line in candidate.lines if line.account_number not in resolved]
        if unresolved:
            numbers = ", ".join(sorted({line.account_number for line in unresolved}))
            if candidate.source_format != SectionedLedgerFormat.name:
                errors.append(f"{label}: unknown account(s) {numbers}")
                return None
            # Sectioned files drop the unknown lines and keep the rest if it balances
            errors.append(f"{label}: dropped line(s) for unknown account(s) {numbers}")
            candidate.lines = [line for line in candidate.lines if line.account_number in resolved]
            candidate.recompute_totals()
            if not candidate.lines:
                return None
            if not candidate.is_balanced:
                errors.append(f"{label}: unbalanced after dropping unknown accounts")
                return None

        return [
            LineDraft(
                account_id=resolved[line.account_number],
                debit_amount=line.debit,
                credit_amount=line.credit,
                description=line.description,
            )
            for line in candidate.lines
        ]

    def _commit_candidate(
        self,
        client_id: int,
        candidate: ImportCandidate,
        resolved: Mapping[str, int],
        errors: list[str],
    ) -> bool:
        """Commit one candidate. Returns True if it was imported."""
        label = f"Entry {candidate.reference or f'at row {candidate.row_number}'}"
        candidate.recompute_totals()
        if not candidate.is_balanced:
            errors.append(
                f"{label}: unbalanced (debits {candidate.total_debit}, credits {candidate.total_credit})"
            )
            return False

        lines = self._candidate_lines(candidate, resolved, label, errors)
        if lines is None:
            return False

        if candidate.reference and self.db.journal_entry_exists(
            client_id, candidate.reference, candidate.entry_date, candidate.total_debit
        ):
            errors.append(f"{label}: already imported")
            return False

        try:
            self.journal_service.create_entry(
                client_id=client_id,
                entry_date=candidate.entry_date,
                lines=lines,
                description=candidate.description,
                reference=candidate.reference,
            )
        except DomainError as e:
            errors.append(f"{label}: {e}")
            return False
        return True

    def commit_import(
        self,
        client_id: int,
        parse_result: ParseResult,
        create_missing_accounts: bool = False,
        default_account_type: AccountType = AccountType.EXPENSE,
        account_overrides: Optional[Mapping[str, int]] = None,
    ) -> ImportResult:
        """Write the candidate entries of a parse result to the ledger.

        Args:
            client_id: Client ID
            parse_result: Result of parse_file/parse_grid
            create_missing_accounts: Create accounts for unknown numbers
            default_account_type: Type for created accounts whose number gives no hint
            account_overrides: Raw account token -> account ID chosen by the user

        Returns:
            ImportResult with counts, capped error list and created accounts

        Raises:
            NotFoundError: If client doesn't exist
            ConflictError: If another import is active for the client
        """
        self._require_client(client_id)
        candidates = parse_result.journal_entries
        import_id = self._start_job(client_id, len(candidates))
        logger.info(
            "Started import %s for client %s: %d entries in batches of %d",
            import_id, client_id, len(candidates), self.batch_size,
        )

        imported = skipped = 0
        errors: list[str] = []
        created: list[str] = []
        try:
            resolved, created = self._resolve_accounts(
                client_id,
                parse_result,
                create_missing_accounts,
                default_account_type,
                account_overrides or {},
                errors,
            )

            for batch_number, start in enumerate(range(0, len(candidates), self.batch_size), start=1):
                for candidate in candidates[start:start + self.batch_size]:
                    if self._commit_candidate(client_id, candidate, resolved, errors):
                        imported += 1
                    else:
                        skipped += 1
                self.db.update_import_job(
                    import_id,
                    processed_count=imported + skipped,
                    imported_count=imported,
                    skipped_count=skipped,
                    current_batch=batch_number,
                )
                logger.debug("Import %s: batch %d done", import_id, batch_number)
        except Exception as e:
            logger.exception("Import %s failed", import_id)
            try:
                self.db.finish_import_job(
                    import_id, ImportJobStatus.FAILED, cap_errors(errors + [str(e)])
                )
            except ConflictError:
                # Job was already swept as abandoned
                logger.warning("Import %s is no longer active", import_id)
            raise

        reported = cap_errors(errors)
        self.db.finish_import_job(import_id, ImportJobStatus.COMPLETED, reported)
        logger.info(
            "Import %s completed: %d imported, %d skipped", import_id, imported, skipped
        )
        return ImportResult(
            import_id=import_id,
            imported=imported,
            skipped=skipped,
            errors=tuple(reported),
            created_accounts=tuple(created),
        )

    def get_job(self, import_id: int) -> Optional[ImportJob]:
        """Get an import job by ID."""
        return self.db.get_import_job(import_id)

    def get_progress(self, client_id: int) -> ImportProgress:
        """Return progress of the client's latest import.

        A client that never imported gets an inactive, zeroed record.
        """
        self._require_client(client_id)
        job = self.db.get_latest_import_job(client_id)
        if job is None:
            return ImportProgress(
                import_id=None,
                is_active=False,
                status=None,
                processed_count=0,
                imported_count=0,
                skipped_count=0,
                total_count=0,
                total_batches=0,
                current_batch=0,
            )
        return ImportProgress(
            import_id=job.id,
            is_active=job.is_active,
            status=job.status,
            processed_count=job.processed_count,
            imported_count=job.imported_count,
            skipped_count=job.skipped_count,
            total_count=job.total_count,
            total_batches=job.total_batches,
            current_batch=job.current_batch,
            errors=job.errors,
        )
