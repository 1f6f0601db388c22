"""Account (chart of accounts) management commands."""

import click
from ledgerline.cli.account_resolution import resolve_account_or_exit, resolve_client_or_exit
from ledgerline.cli.error_handling import handle_domain_error
from ledgerline.domain.account import AccountService
from ledgerline.domain.entities import AccountType
from ledgerline.domain.errors import DomainError


ACCOUNT_TYPE_CHOICES = [t.value for t in AccountType]


@click.group()
def account_group():
    """Manage a client's chart of accounts."""
    pass


@account_group.command("create")
@click.argument("client", metavar="CLIENT")
@click.argument("number", metavar="ACCOUNT_NUMBER")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option(
    "--type",
    "account_type",
    required=True,
    type=click.Choice(ACCOUNT_TYPE_CHOICES, case_sensitive=False),
    help="Account type",
)
@click.pass_context
def create_account(ctx, client: str, number: str, name: str, account_type: str):
    """Create a new account.

    CLIENT can be a client name or ID.

    Examples:
        ledgerline account create "Acme Ltd" 106-000 "Bank" --type asset
        ledgerline account create 1 330-000 "Retained Earnings" --type equity
    """
    client_obj = resolve_client_or_exit(ctx, client)
    service = AccountService(ctx.obj["db"])

    try:
        account_id = service.create_account(client_obj.id, number, name, account_type)
        click.echo(f"Created account {number} '{name}' (ID: {account_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.argument("client", metavar="CLIENT")
@click.option("--active-only", is_flag=True, help="Hide inactive accounts")
@click.pass_context
def list_accounts(ctx, client: str, active_only: bool):
    """List a client's accounts."""
    client_obj = resolve_client_or_exit(ctx, client)
    service = AccountService(ctx.obj["db"])

    accounts = service.list_accounts(client_obj.id, include_inactive=not active_only)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo(f"\nAccounts for {client_obj.name}:")
    click.echo("-" * 72)
    for acc in accounts:
        status = "" if acc.is_active else " (inactive)"
        click.echo(
            f"ID: {acc.id:4d} | {acc.number:12s} | {acc.name:30s} | {acc.account_type.value}{status}"
        )


@account_group.command("rename")
@click.argument("account_id", metavar="ACCOUNT_ID", type=int)
@click.argument("new_name", metavar="NEW_NAME")
@click.pass_context
def rename_account(ctx, account_id: int, new_name: str) -> None:
    """Rename an account.

    Examples:
        ledgerline account rename 3 "Operating Bank"
    """
    service = AccountService(ctx.obj["db"])

    try:
        service.rename_account(account_id, new_name)
        click.echo(f"Renamed account to '{new_name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


def _set_active(ctx, account_id: int, is_active: bool) -> None:
    service = AccountService(ctx.obj["db"])
    try:
        service.set_active(account_id, is_active)
        state = "Activated" if is_active else "Deactivated"
        click.echo(f"{state} account {account_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("deactivate")
@click.argument("account_id", metavar="ACCOUNT_ID", type=int)
@click.pass_context
def deactivate_account(ctx, account_id: int) -> None:
    """Deactivate an account so it accepts no new lines."""
    _set_active(ctx, account_id, False)


@account_group.command("activate")
@click.argument("account_id", metavar="ACCOUNT_ID", type=int)
@click.pass_context
def activate_account(ctx, account_id: int) -> None:
    """Reactivate an account."""
    _set_active(ctx, account_id, True)


@account_group.command("delete")
@click.argument("client", metavar="CLIENT")
@click.argument("account", metavar="ACCOUNT")
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_account(ctx, client: str, account: str, yes: bool) -> None:
    """Delete an account.

    ACCOUNT can be an account number or ID.

    The account can only be deleted if no journal lines reference it.
    Deactivate it instead to keep its history.

    Examples:
        ledgerline account delete "Acme Ltd" 106-000
    """
    client_obj = resolve_client_or_exit(ctx, client)
    account_obj = resolve_account_or_exit(ctx, client_obj.id, account)
    service = AccountService(ctx.obj["db"])

    if not yes and not click.confirm(
        f"Are you sure you want to delete account {account_obj.number} '{account_obj.name}'?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_account(account_obj.id)
        click.echo(f"Deleted account {account_obj.number} '{account_obj.name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
