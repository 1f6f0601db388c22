"""Client management commands."""

import click
from ledgerline.cli.account_resolution import resolve_client_or_exit
from ledgerline.cli.error_handling import handle_domain_error
from ledgerline.domain.client import ClientService
from ledgerline.domain.errors import DomainError
from ledgerline.domain.fiscal import parse_fiscal_year_end


@click.group()
def client_group():
    """Manage clients."""
    pass


@client_group.command("create")
@click.argument("name", metavar="CLIENT_NAME")
@click.option(
    "--fiscal-year-end",
    default="12-31",
    show_default=True,
    help="Fiscal year end as MM-DD",
)
@click.pass_context
def create_client(ctx, name: str, fiscal_year_end: str):
    """Create a new client.

    Examples:
        ledgerline client create "Acme Ltd"
        ledgerline client create "Northwind" --fiscal-year-end 06-30
    """
    service = ClientService(ctx.obj["db"])

    try:
        config = parse_fiscal_year_end(fiscal_year_end)
        client_id = service.create_client(
            name,
            fiscal_year_end_month=config.fiscal_year_end_month,
            fiscal_year_end_day=config.fiscal_year_end_day,
        )
        click.echo(f"Created client '{name}' (ID: {client_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@client_group.command("list")
@click.pass_context
def list_clients(ctx):
    """List all clients."""
    service = ClientService(ctx.obj["db"])

    clients = service.list_clients()
    if not clients:
        click.echo("No clients found.")
        return

    click.echo("\nClients:")
    click.echo("-" * 60)
    for c in clients:
        fye = f"{c.fiscal_year_end_month:02d}-{c.fiscal_year_end_day:02d}"
        click.echo(f"ID: {c.id:3d} | {c.name:30s} | Fiscal year end: {fye}")


@client_group.command("set-fiscal-year-end")
@click.argument("client", metavar="CLIENT")
@click.argument("fiscal_year_end", metavar="MM-DD")
@click.pass_context
def set_fiscal_year_end(ctx, client: str, fiscal_year_end: str):
    """Change a client's fiscal year end.

    CLIENT can be a client name or ID.

    Examples:
        ledgerline client set-fiscal-year-end "Acme Ltd" 03-31
    """
    service = ClientService(ctx.obj["db"])
    client_obj = resolve_client_or_exit(ctx, client)

    try:
        config = parse_fiscal_year_end(fiscal_year_end)
        service.set_fiscal_year_end(
            client_obj.id, config.fiscal_year_end_month, config.fiscal_year_end_day
        )
        click.echo(f"Fiscal year end for '{client_obj.name}' set to {fiscal_year_end}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register client commands with main CLI."""
    cli.add_command(client_group, name="client")
