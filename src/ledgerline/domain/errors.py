"""Shared domain error messages and error types."""

from decimal import Decimal


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class UnbalancedEntryError(ValidationError):
    """Journal entry debits and credits differ beyond tolerance."""


class UnsupportedFileTypeError(ValidationError):
    """Import file type cannot be read."""


class NotFoundError(DomainError):
    """Requested domain entity or path does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


def client_not_found(client: int | str) -> str:
    """Return message for missing client."""
    if isinstance(client, int):
        return f"Client {client} not found"
    return f"Client '{client}' not found"


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def entry_not_found(entry_id: int) -> str:
    """Return message for missing journal entry."""
    return f"Journal entry {entry_id} not found"


def import_job_not_found(import_id: int) -> str:
    """Return message for missing import job."""
    return f"Import job {import_id} not found"


def duplicate_account_number(number: str, client_id: int) -> str:
    """Return message for an account number already used by a client."""
    return f"Account number '{number}' already exists for client {client_id}"


def unbalanced_entry(total_debit: Decimal, total_credit: Decimal) -> str:
    """Return message for an entry whose sides do not agree."""
    return (
        f"Entry is not balanced: debits {total_debit:.2f} != credits {total_credit:.2f}"
    )


def import_job_not_active(import_id: int, status: str) -> str:
    """Return message when an import job is no longer active."""
    return f"Import job {import_id} is {status}, not active; it can no longer be updated"


def import_already_active(client_id: int, import_id: int) -> str:
    """Return message when a client already has an import in flight."""
    return (
        f"An import is already in progress for client {client_id} "
        f"(import {import_id}); wait for it to finish"
    )


def account_delete_blocked(account_id: int, line_count: int) -> str:
    """Return message when an account has dependent journal lines."""
    return (
        f"Cannot delete account {account_id}: it has "
        f"{line_count} journal line{'s' if line_count != 1 else ''}. "
        "Deactivate it instead."
    )


def account_change_blocked(account_id: int, line_count: int) -> str:
    """Return message when a referenced account's number or type would change."""
    return (
        f"Cannot change number or type of account {account_id}: it is referenced by "
        f"{line_count} journal line{'s' if line_count != 1 else ''}"
    )
