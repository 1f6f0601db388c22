"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so the business layer never sees
ORM instances or database-specific column types.
"""

import json
from decimal import Decimal

from ledgerline.domain import entities as domain
from ledgerline.database.models import (
    Account as ORMAccount,
    Client as ORMClient,
    ImportJob as ORMImportJob,
    JournalEntry as ORMJournalEntry,
    JournalEntryLine as ORMJournalEntryLine,
)


def _money(value) -> Decimal:
    if value is None:
        return domain.ZERO
    return value if isinstance(value, Decimal) else Decimal(str(value))


def client_to_domain(orm_client: ORMClient) -> domain.Client:
    """Convert SQLAlchemy Client model to domain Client entity."""
    return domain.Client(
        id=orm_client.id,
        name=orm_client.name,
        fiscal_year_end_month=orm_client.fiscal_year_end_month,
        fiscal_year_end_day=orm_client.fiscal_year_end_day,
        created_at=orm_client.created_at,
    )


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        client_id=orm_account.client_id,
        number=orm_account.number,
        name=orm_account.name,
        account_type=domain.AccountType(orm_account.account_type),
        is_active=orm_account.is_active,
        created_at=orm_account.created_at,
    )


def line_to_domain(orm_line: ORMJournalEntryLine) -> domain.JournalEntryLine:
    """Convert SQLAlchemy JournalEntryLine model to domain entity."""
    return domain.JournalEntryLine(
        id=orm_line.id,
        journal_entry_id=orm_line.journal_entry_id,
        account_id=orm_line.account_id,
        debit_amount=_money(orm_line.debit_amount),
        credit_amount=_money(orm_line.credit_amount),
        description=orm_line.description,
    )


def journal_entry_to_domain(orm_entry: ORMJournalEntry) -> domain.JournalEntry:
    """Convert SQLAlchemy JournalEntry model (with lines) to domain entity."""
    return domain.JournalEntry(
        id=orm_entry.id,
        client_id=orm_entry.client_id,
        entry_date=orm_entry.entry_date,
        description=orm_entry.description,
        reference=orm_entry.reference,
        status=domain.EntryStatus(orm_entry.status),
        total_debit=_money(orm_entry.total_debit),
        total_credit=_money(orm_entry.total_credit),
        created_at=orm_entry.created_at,
        lines=tuple(line_to_domain(line) for line in orm_entry.lines),
    )


def posting_to_domain(
    orm_entry: ORMJournalEntry, orm_line: ORMJournalEntryLine
) -> domain.LedgerPosting:
    """Convert a joined entry/line row to a domain LedgerPosting."""
    return domain.LedgerPosting(
        entry_id=orm_entry.id,
        entry_date=orm_entry.entry_date,
        reference=orm_entry.reference,
        description=orm_line.description or orm_entry.description,
        line_id=orm_line.id,
        account_id=orm_line.account_id,
        debit_amount=_money(orm_line.debit_amount),
        credit_amount=_money(orm_line.credit_amount),
    )


def import_job_to_domain(orm_job: ORMImportJob) -> domain.ImportJob:
    """Convert SQLAlchemy ImportJob model to domain entity."""
    errors = tuple(json.loads(orm_job.errors)) if orm_job.errors else ()
    return domain.ImportJob(
        id=orm_job.id,
        client_id=orm_job.client_id,
        status=domain.ImportJobStatus(orm_job.status),
        total_count=orm_job.total_count,
        processed_count=orm_job.processed_count,
        imported_count=orm_job.imported_count,
        skipped_count=orm_job.skipped_count,
        total_batches=orm_job.total_batches,
        current_batch=orm_job.current_batch,
        errors=errors,
        started_at=orm_job.started_at,
        updated_at=orm_job.updated_at,
        finished_at=orm_job.finished_at,
    )
