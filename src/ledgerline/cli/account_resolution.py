"""CLI helpers for client and account resolution."""

from __future__ import annotations

import click
from ledgerline.domain.account import AccountService
from ledgerline.domain.client import ClientService
from ledgerline.domain.entities import Account, Client
from ledgerline.domain.errors import DomainError
from ledgerline.cli.error_handling import handle_domain_error


def resolve_client_or_exit(ctx: click.Context, client: str) -> Client:
    """Resolve client name or ID, or exit with a CLI error."""
    try:
        return ClientService(ctx.obj["db"]).resolve_client(client)
    except DomainError as exc:
        handle_domain_error(ctx, exc)


def resolve_account_or_exit(
    ctx: click.Context, client_id: int, account: str | int
) -> Account:
    """Resolve an account number or ID within a client, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return AccountService(ctx.obj["db"]).resolve_account(client_id, account)
    except DomainError as exc:
        handle_domain_error(ctx, exc)
