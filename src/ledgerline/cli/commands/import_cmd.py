"""General-ledger import commands."""

import click
from ledgerline.cli.account_resolution import resolve_client_or_exit
from ledgerline.cli.error_handling import handle_domain_error
from ledgerline.domain.entities import AccountType, ParseResult
from ledgerline.domain.errors import DomainError
from ledgerline.domain.gl_import import DEFAULT_BATCH_SIZE, GLImportService
from ledgerline.utils.amount_parser import round_money


def _print_preview(result: ParseResult, show_entries: bool) -> None:
    summary = result.summary
    click.echo(f"\nFile: {result.file_name}")
    click.echo(f"  Format:            {result.detected_format}")
    click.echo(f"  Rows:              {result.total_rows}")
    click.echo(f"  Journal entries:   {summary['journal_entries_count']}")
    click.echo(f"  Lines:             {summary['total_lines']}")
    click.echo(f"  Balanced entries:  {summary['balanced_entries']}")
    click.echo(f"  Unbalanced:        {summary['unbalanced_entries']}")
    click.echo(f"  Total debits:      {round_money(result.total_debits):,}")
    click.echo(f"  Total credits:     {round_money(result.total_credits):,}")
    click.echo(f"  File balanced:     {'yes' if result.is_balanced else 'no'}")

    if result.account_sections:
        click.echo("\nAccount sections:")
        for section in result.account_sections:
            click.echo(
                f"  {section.account_number:12s} {section.account_name:30.30s} "
                f"{section.transaction_count:5d} transactions"
            )

    click.echo(
        f"\nAccounts: {summary['matched_accounts']} matched, "
        f"{summary['unmatched_accounts']} unmatched"
    )
    for match in result.account_matches.values():
        if match.matched:
            continue
        hint = f" (did you mean {match.suggestion}?)" if match.suggestion else ""
        click.echo(f"  Unmatched: {match.account_number} {match.account_name}{hint}")

    if show_entries:
        click.echo("\nEntries:")
        for entry in result.journal_entries:
            flag = "" if entry.is_balanced else "  UNBALANCED"
            click.echo(
                f"  {entry.entry_date.isoformat()}  {(entry.reference or '-'):12s} "
                f"{len(entry.lines):3d} lines  {round_money(entry.total_debit):>14,}{flag}"
            )

    if result.unclassified_rows:
        rows = ", ".join(str(r) for r in result.unclassified_rows[:20])
        more = "..." if len(result.unclassified_rows) > 20 else ""
        click.echo(f"\nUnclassified rows: {rows}{more}")
    for warning in result.warnings:
        click.echo(f"Warning: {warning}", err=True)


@click.group()
def import_group():
    """Import general-ledger exports."""
    pass


@import_group.command("parse")
@click.argument("client", metavar="CLIENT")
@click.argument("ledger_file", type=click.Path(exists=True))
@click.option("--show-entries", is_flag=True, help="List every candidate entry")
@click.pass_context
def parse_ledger(ctx, client: str, ledger_file: str, show_entries: bool):
    """Preview a ledger file without importing it.

    Examples:
        ledgerline import parse "Acme Ltd" journal.xlsx
    """
    client_obj = resolve_client_or_exit(ctx, client)
    service = GLImportService(ctx.obj["db"])

    try:
        result = service.parse_file(client_obj.id, ledger_file)
    except DomainError as e:
        handle_domain_error(ctx, e)
    _print_preview(result, show_entries)


@import_group.command("commit")
@click.argument("client", metavar="CLIENT")
@click.argument("ledger_file", type=click.Path(exists=True))
@click.option("--create-missing-accounts", is_flag=True, help="Create accounts for unknown numbers")
@click.option(
    "--default-type",
    type=click.Choice([t.value for t in AccountType], case_sensitive=False),
    default=AccountType.EXPENSE.value,
    show_default=True,
    help="Type for created accounts whose number gives no hint",
)
@click.option(
    "--map",
    "mappings",
    multiple=True,
    help="Map a file account to an existing account ID as FILE_ACCOUNT=ACCOUNT_ID",
)
@click.option("--batch-size", type=int, default=DEFAULT_BATCH_SIZE, show_default=True)
@click.pass_context
def commit_ledger(
    ctx,
    client: str,
    ledger_file: str,
    create_missing_accounts: bool,
    default_type: str,
    mappings: tuple[str, ...],
    batch_size: int,
):
    """Import a ledger file into the client's journal.

    Unbalanced entries, entries with unknown accounts and entries already
    imported are skipped and reported.

    Examples:
        ledgerline import commit "Acme Ltd" gl.csv --create-missing-accounts
        ledgerline import commit 1 gl.csv --map 106000=3
    """
    client_obj = resolve_client_or_exit(ctx, client)

    overrides: dict[str, int] = {}
    for mapping in mappings:
        token, _, account_id = mapping.rpartition("=")
        if not token or not account_id.strip().isdigit():
            click.echo(f"Error: Invalid mapping '{mapping}'. Expected FILE_ACCOUNT=ACCOUNT_ID", err=True)
            ctx.exit(1)
        overrides[token.strip()] = int(account_id)

    try:
        service = GLImportService(ctx.obj["db"], batch_size=batch_size)
        parsed = service.parse_file(client_obj.id, ledger_file)
        result = service.commit_import(
            client_obj.id,
            parsed,
            create_missing_accounts=create_missing_accounts,
            default_account_type=AccountType(default_type.lower()),
            account_overrides=overrides,
        )
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)

    click.echo("\nImport complete:")
    click.echo(f"  Import ID: {result.import_id}")
    click.echo(f"  Imported: {result.imported} entries")
    click.echo(f"  Skipped: {result.skipped} entries")
    if result.created_accounts:
        click.echo(f"  Created accounts: {', '.join(result.created_accounts)}")
    if result.errors:
        click.echo(f"  Errors: {len(result.errors)}")
        for error in result.errors:
            click.echo(f"    {error}", err=True)


@import_group.command("progress")
@click.argument("client", metavar="CLIENT")
@click.pass_context
def import_progress(ctx, client: str):
    """Show progress of the client's latest import."""
    client_obj = resolve_client_or_exit(ctx, client)
    service = GLImportService(ctx.obj["db"])

    progress = service.get_progress(client_obj.id)
    if progress.import_id is None:
        click.echo("No imports found.")
        return

    click.echo(f"Import {progress.import_id}: {progress.status.value}")
    click.echo(f"  Processed: {progress.processed_count}/{progress.total_count}")
    click.echo(f"  Batch: {progress.current_batch}/{progress.total_batches}")
    click.echo(f"  Imported: {progress.imported_count}")
    click.echo(f"  Skipped: {progress.skipped_count}")
    for error in progress.errors:
        click.echo(f"    {error}")


def register_commands(cli):
    """Register import commands with main CLI."""
    cli.add_command(import_group, name="import")
