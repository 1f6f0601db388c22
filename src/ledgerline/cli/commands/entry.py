"""Journal entry commands."""

from datetime import date

import click
from ledgerline.cli.account_resolution import resolve_account_or_exit, resolve_client_or_exit
from ledgerline.cli.date_filters import parse_date_option
from ledgerline.cli.error_handling import handle_domain_error
from ledgerline.domain.entities import ZERO, EntryStatus, LineDraft
from ledgerline.domain.errors import DomainError
from ledgerline.domain.journal import JournalService
from ledgerline.utils.amount_parser import parse_amount, round_money


def _parse_line(ctx, client_id: int, value: str) -> LineDraft:
    """Parse ACCOUNT:DEBIT:CREDIT into a line draft."""
    parts = value.rsplit(":", 2)
    if len(parts) != 3:
        click.echo(f"Error: Invalid line '{value}'. Expected ACCOUNT:DEBIT:CREDIT", err=True)
        ctx.exit(1)
    account, debit, credit = parts
    try:
        debit_amount = parse_amount(debit) if debit.strip() else ZERO
        credit_amount = parse_amount(credit) if credit.strip() else ZERO
    except ValueError as e:
        click.echo(f"Error: Invalid line '{value}': {e}", err=True)
        ctx.exit(1)
    account_obj = resolve_account_or_exit(ctx, client_id, account)
    return LineDraft(
        account_id=account_obj.id, debit_amount=debit_amount, credit_amount=credit_amount
    )


@click.group()
def entry_group():
    """Manage journal entries."""
    pass


@entry_group.command("add")
@click.argument("client", metavar="CLIENT")
@click.option("--date", "entry_date", help="Entry date (default: today)")
@click.option(
    "--line",
    "lines",
    multiple=True,
    required=True,
    help="Line as ACCOUNT:DEBIT:CREDIT (repeat for each line)",
)
@click.option("--description", help="Entry description")
@click.option("--reference", help="Entry reference")
@click.option("--draft", is_flag=True, help="Save as draft (not counted in balances)")
@click.pass_context
def add_entry(
    ctx,
    client: str,
    entry_date: str | None,
    lines: tuple[str, ...],
    description: str | None,
    reference: str | None,
    draft: bool,
):
    """Add a balanced journal entry.

    CLIENT can be a client name or ID. ACCOUNT can be an account number
    or ID.

    Examples:
        ledgerline entry add "Acme Ltd" --date 2024-03-01 \\
            --line 610-000:100:0 --line 106-000:0:100 --description "Office supplies"
    """
    client_obj = resolve_client_or_exit(ctx, client)
    when = parse_date_option(ctx, entry_date, "date") or date.today()
    drafts = [_parse_line(ctx, client_obj.id, value) for value in lines]
    service = JournalService(ctx.obj["db"])

    try:
        entry_id = service.create_entry(
            client_id=client_obj.id,
            entry_date=when,
            lines=drafts,
            description=description,
            reference=reference,
            status=EntryStatus.DRAFT if draft else EntryStatus.POSTED,
        )
        state = "draft" if draft else "posted"
        click.echo(f"Created {state} journal entry (ID: {entry_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@entry_group.command("list")
@click.argument("client", metavar="CLIENT")
@click.option("--start-date", help="Start date")
@click.option("--end-date", help="End date")
@click.option("--account", help="Only entries touching this account (number or ID)")
@click.pass_context
def list_entries(ctx, client: str, start_date: str | None, end_date: str | None, account: str | None):
    """List journal entries."""
    client_obj = resolve_client_or_exit(ctx, client)
    start = parse_date_option(ctx, start_date, "start date")
    end = parse_date_option(ctx, end_date, "end date")
    account_id = resolve_account_or_exit(ctx, client_obj.id, account).id if account else None
    service = JournalService(ctx.obj["db"])

    entries = service.list_entries(client_obj.id, start_date=start, end_date=end, account_id=account_id)
    if not entries:
        click.echo("No journal entries found.")
        return

    click.echo(f"\n{'ID':>5}  {'Date':10}  {'Reference':14}  {'Status':6}  {'Amount':>14}  Description")
    click.echo("-" * 80)
    for e in entries:
        click.echo(
            f"{e.id:5d}  {e.entry_date.isoformat():10}  {(e.reference or ''):14.14}  "
            f"{e.status.value:6}  {round_money(e.total_debit):>14,}  {e.description or ''}"
        )


@entry_group.command("show")
@click.argument("entry_id", type=int)
@click.pass_context
def show_entry(ctx, entry_id: int):
    """Show a journal entry and its lines."""
    db = ctx.obj["db"]
    service = JournalService(db)

    try:
        entry = service.require_entry(entry_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nEntry {entry.id} ({entry.status.value})")
    click.echo(f"  Date:        {entry.entry_date.isoformat()}")
    click.echo(f"  Reference:   {entry.reference or ''}")
    click.echo(f"  Description: {entry.description or ''}")
    click.echo("-" * 72)
    for line in entry.lines:
        account = db.get_account(line.account_id)
        label = f"{account.number} {account.name}" if account else str(line.account_id)
        debit = round_money(line.debit_amount) if line.debit_amount else ""
        credit = round_money(line.credit_amount) if line.credit_amount else ""
        click.echo(f"  {label:40.40} {str(debit):>14} {str(credit):>14}")
    click.echo("-" * 72)
    click.echo(
        f"  {'Total':40} {str(round_money(entry.total_debit)):>14} {str(round_money(entry.total_credit)):>14}"
    )


@entry_group.command("post")
@click.argument("entry_id", type=int)
@click.pass_context
def post_entry(ctx, entry_id: int):
    """Post a draft entry."""
    service = JournalService(ctx.obj["db"])
    try:
        service.post_entry(entry_id)
        click.echo(f"Posted journal entry {entry_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@entry_group.command("reverse")
@click.argument("entry_id", type=int)
@click.option("--date", "reversal_date", help="Reversal date (default: today)")
@click.option("--description", help="Description of the reversing entry")
@click.pass_context
def reverse_entry(ctx, entry_id: int, reversal_date: str | None, description: str | None):
    """Post an entry that reverses an existing one."""
    when = parse_date_option(ctx, reversal_date, "date") or date.today()
    service = JournalService(ctx.obj["db"])
    try:
        reversal_id = service.reverse_entry(entry_id, when, description=description)
        click.echo(f"Reversed entry {entry_id} with entry {reversal_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@entry_group.command("delete")
@click.argument("entry_id", type=int)
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_entry(ctx, entry_id: int, yes: bool):
    """Delete a journal entry and its lines."""
    service = JournalService(ctx.obj["db"])
    if not yes and not click.confirm(f"Are you sure you want to delete journal entry {entry_id}?"):
        click.echo("Deletion cancelled.")
        return
    try:
        service.delete_entry(entry_id)
        click.echo(f"Deleted journal entry {entry_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register entry commands with main CLI."""
    cli.add_command(entry_group, name="entry")
