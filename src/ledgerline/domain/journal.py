"""Journal entry (ledger store) domain service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence
from ledgerline.database.base import Database
from ledgerline.domain.entities import (
    BALANCE_TOLERANCE,
    ZERO,
    EntryStatus,
    JournalEntry as JournalEntryEntity,
    LineDraft,
)
from ledgerline.domain.errors import (
    NotFoundError,
    UnbalancedEntryError,
    ValidationError,
    account_not_found,
    client_not_found,
    entry_not_found,
    unbalanced_entry,
)

logger = logging.getLogger(__name__)


def check_balanced(total_debit: Decimal, total_credit: Decimal) -> bool:
    """Return True if debit and credit totals agree within tolerance."""
    return abs(total_debit - total_credit) <= BALANCE_TOLERANCE


def line_totals(lines: Sequence[LineDraft]) -> tuple[Decimal, Decimal]:
    """Sum the debit and credit sides of a set of lines."""
    total_debit = sum((line.debit_amount for line in lines), ZERO)
    total_credit = sum((line.credit_amount for line in lines), ZERO)
    return total_debit, total_credit


class JournalService:
    """Service for creating and maintaining journal entries.

    Entries are written together with their lines in a single database
    transaction. Corrections are made by full replacement or by posting a
    reversing entry.
    """

    def __init__(self, db: Database):
        """Initialize journal service.

        Args:
            db: Database instance
        """
        self.db = db

    def validate_lines(self, client_id: int, lines: Sequence[LineDraft]) -> None:
        """Validate lines of a new or replacement entry.

        Raises:
            ValidationError: If there are no lines or a line is malformed
            NotFoundError: If a line references an unknown account
            UnbalancedEntryError: If debits and credits differ beyond tolerance
        """
        if not lines:
            raise ValidationError("A journal entry needs at least one line")

        for i, line in enumerate(lines, start=1):
            if line.debit_amount < 0 or line.credit_amount < 0:
                raise ValidationError(f"Line {i}: amounts cannot be negative")
            if line.debit_amount > 0 and line.credit_amount > 0:
                raise ValidationError(f"Line {i}: cannot have both a debit and a credit")

            account = self.db.get_account(line.account_id)
            if account is None:
                raise NotFoundError(f"Line {i}: {account_not_found(line.account_id)}")
            if account.client_id != client_id:
                raise ValidationError(
                    f"Line {i}: account {line.account_id} belongs to another client"
                )
            if not account.is_active:
                raise ValidationError(
                    f"Line {i}: account {account.number} {account.name} is inactive"
                )

        total_debit, total_credit = line_totals(lines)
        if not check_balanced(total_debit, total_credit):
            raise UnbalancedEntryError(unbalanced_entry(total_debit, total_credit))

    def create_entry(
        self,
        client_id: int,
        entry_date: date,
        lines: Sequence[LineDraft],
        description: Optional[str] = None,
        reference: Optional[str] = None,
        status: EntryStatus = EntryStatus.POSTED,
    ) -> int:
        """Create a journal entry with its lines.

        Args:
            client_id: Owning client ID
            entry_date: Entry date
            lines: Line drafts; must balance
            description: Optional description
            reference: Optional reference (e.g., an imported journal number)
            status: Draft or posted

        Returns:
            Journal entry ID

        Raises:
            NotFoundError: If client or an account doesn't exist
            ValidationError: If lines are malformed
            UnbalancedEntryError: If the entry doesn't balance
        """
        if self.db.get_client(client_id) is None:
            raise NotFoundError(client_not_found(client_id))
        self.validate_lines(client_id, lines)

        return self.db.create_journal_entry(
            client_id=client_id,
            entry_date=entry_date,
            lines=lines,
            description=description,
            reference=reference,
            status=status,
        )

    def get_entry(self, entry_id: int) -> Optional[JournalEntryEntity]:
        """Get journal entry by ID.

        Args:
            entry_id: Journal entry ID

        Returns:
            Journal entry entity or None if not found
        """
        return self.db.get_journal_entry(entry_id)

    def require_entry(self, entry_id: int) -> JournalEntryEntity:
        """Get journal entry by ID or raise NotFoundError."""
        entry = self.db.get_journal_entry(entry_id)
        if entry is None:
            raise NotFoundError(entry_not_found(entry_id))
        return entry

    def list_entries(
        self,
        client_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
    ) -> list[JournalEntryEntity]:
        """List journal entries with filters.

        Args:
            client_id: Client ID
            start_date: Optional start date filter
            end_date: Optional end date filter
            account_id: Optional filter on entries touching an account

        Returns:
            List of journal entry entities ordered by date
        """
        return self.db.list_journal_entries(
            client_id, start_date=start_date, end_date=end_date, account_id=account_id
        )

    def replace_entry(
        self,
        entry_id: int,
        lines: Sequence[LineDraft],
        entry_date: Optional[date] = None,
        description: Optional[str] = None,
        reference: Optional[str] = None,
    ) -> None:
        """Replace all lines of an entry.

        Raises:
            NotFoundError: If entry doesn't exist
            ValidationError: If new lines are malformed or unbalanced
        """
        entry = self.require_entry(entry_id)
        self.validate_lines(entry.client_id, lines)
        self.db.replace_journal_entry(
            entry_id,
            lines,
            entry_date=entry_date,
            description=description,
            reference=reference,
        )

    def post_entry(self, entry_id: int) -> None:
        """Post a draft entry so it counts towards balances."""
        entry = self.require_entry(entry_id)
        if entry.status == EntryStatus.POSTED:
            return
        self.db.update_journal_entry_status(entry_id, EntryStatus.POSTED)

    def reverse_entry(
        self, entry_id: int, reversal_date: date, description: Optional[str] = None
    ) -> int:
        """Post a new entry that reverses an existing one.

        Returns:
            ID of the reversing entry
        """
        entry = self.require_entry(entry_id)
        lines = [
            LineDraft(
                account_id=line.account_id,
                debit_amount=line.credit_amount,
                credit_amount=line.debit_amount,
                description=line.description,
            )
            for line in entry.lines
        ]
        reference = f"REV-{entry.reference or entry.id}"
        reversal_id = self.create_entry(
            client_id=entry.client_id,
            entry_date=reversal_date,
            lines=lines,
            description=description or f"Reversal of entry {entry.id}",
            reference=reference,
        )
        logger.info("Reversed journal entry %s with entry %s", entry_id, reversal_id)
        return reversal_id

    def delete_entry(self, entry_id: int) -> None:
        """Delete a journal entry and its lines.

        Raises:
            NotFoundError: If entry doesn't exist
        """
        self.require_entry(entry_id)
        self.db.delete_journal_entry(entry_id)
        logger.info("Deleted journal entry %s", entry_id)
