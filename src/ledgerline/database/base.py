"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional, Sequence
from datetime import date, datetime

# Import entities directly to avoid circular import through domain/__init__.py
from ledgerline.domain.entities import (
    Account,
    AccountType,
    Client,
    EntryStatus,
    ImportJob,
    ImportJobStatus,
    JournalEntry,
    LedgerPosting,
    LineDraft,
)


class Database(ABC):
    """Abstract database interface for ledgerline."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Client operations
    @abstractmethod
    def create_client(
        self, name: str, fiscal_year_end_month: int = 12, fiscal_year_end_day: int = 31
    ) -> int:
        """Create a client. Returns client ID."""
        pass

    @abstractmethod
    def get_client(self, client_id: int) -> Optional[Client]:
        """Get client by ID."""
        pass

    @abstractmethod
    def get_client_by_name(self, name: str) -> Optional[Client]:
        """Get client by name."""
        pass

    @abstractmethod
    def list_clients(self) -> list[Client]:
        """List all clients."""
        pass

    @abstractmethod
    def update_client_fiscal_year_end(self, client_id: int, month: int, day: int) -> None:
        """Update a client's fiscal year end."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        client_id: int,
        number: str,
        name: str,
        account_type: AccountType,
        is_active: bool = True,
    ) -> int:
        """Create a new account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def list_accounts(self, client_id: int, include_inactive: bool = True) -> list[Account]:
        """List a client's accounts ordered by number."""
        pass

    @abstractmethod
    def update_account(
        self,
        account_id: int,
        name: Optional[str] = None,
        is_active: Optional[bool] = None,
        number: Optional[str] = None,
        account_type: Optional[AccountType] = None,
    ) -> None:
        """Update account fields that are not None."""
        pass

    @abstractmethod
    def delete_account(self, account_id: int) -> None:
        """Delete an account."""
        pass

    @abstractmethod
    def get_account_line_count(self, account_id: int) -> int:
        """Count journal lines that reference an account."""
        pass

    # Journal entry operations
    @abstractmethod
    def create_journal_entry(
        self,
        client_id: int,
        entry_date: date,
        lines: Sequence[LineDraft],
        description: Optional[str] = None,
        reference: Optional[str] = None,
        status: EntryStatus = EntryStatus.POSTED,
    ) -> int:
        """Create an entry and all of its lines in one transaction. Returns entry ID."""
        pass

    @abstractmethod
    def replace_journal_entry(
        self,
        entry_id: int,
        lines: Sequence[LineDraft],
        entry_date: Optional[date] = None,
        description: Optional[str] = None,
        reference: Optional[str] = None,
    ) -> None:
        """Replace all lines of an entry (and optionally header fields) atomically."""
        pass

    @abstractmethod
    def update_journal_entry_status(self, entry_id: int, status: EntryStatus) -> None:
        """Change an entry's status."""
        pass

    @abstractmethod
    def get_journal_entry(self, entry_id: int) -> Optional[JournalEntry]:
        """Get entry with its lines."""
        pass

    @abstractmethod
    def list_journal_entries(
        self,
        client_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
    ) -> list[JournalEntry]:
        """List entries with their lines, ordered by date then ID."""
        pass

    @abstractmethod
    def delete_journal_entry(self, entry_id: int) -> None:
        """Delete an entry and its lines."""
        pass

    @abstractmethod
    def journal_entry_exists(
        self, client_id: int, reference: str, entry_date: date, total_debit
    ) -> bool:
        """Check whether an entry with the same reference, date and total exists."""
        pass

    @abstractmethod
    def list_postings(
        self, client_id: int, end_date: Optional[date] = None
    ) -> list[LedgerPosting]:
        """List posted lines up to end_date ordered by (entry date, entry ID, line ID)."""
        pass

    # Import job operations
    @abstractmethod
    def create_import_job(self, client_id: int, total_count: int, total_batches: int) -> int:
        """Create an active import job. Raises ConflictError if one is already active."""
        pass

    @abstractmethod
    def get_import_job(self, import_id: int) -> Optional[ImportJob]:
        """Get import job by ID."""
        pass

    @abstractmethod
    def get_latest_import_job(self, client_id: int) -> Optional[ImportJob]:
        """Get the most recently started import job for a client."""
        pass

    @abstractmethod
    def update_import_job(
        self,
        import_id: int,
        processed_count: int,
        imported_count: int,
        skipped_count: int,
        current_batch: int,
    ) -> None:
        """Record progress of an active import job.

        Raises:
            ConflictError: If the job is no longer active.
        """
        pass

    @abstractmethod
    def finish_import_job(
        self, import_id: int, status: ImportJobStatus, errors: Sequence[str] = ()
    ) -> None:
        """Mark an import job finished.

        Raises:
            ConflictError: If the job is no longer active.
        """
        pass

    @abstractmethod
    def abandon_stale_import_jobs(self, client_id: int, updated_before: datetime) -> int:
        """Mark active jobs not updated since updated_before as abandoned. Returns count."""
        pass
