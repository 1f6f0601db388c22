"""Main CLI entry point."""

import logging

import click
from ledgerline.database.factories import create_sqlite_database

# Import and register all commands at module level
from ledgerline.cli.commands import (
    account,
    client,
    entry,
    import_cmd,
    report,
)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides LEDGERLINE_DB_PATH environment variable)",
    envvar="LEDGERLINE_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging level (overrides LEDGERLINE_LOG_LEVEL environment variable)",
    envvar="LEDGERLINE_LOG_LEVEL",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str):
    """Ledgerline - General ledger import and balances.

    Import general-ledger exports (journal listings or account-sectioned
    ledgers) into a double-entry ledger and report trial balances, balance
    sheets and profit and loss per client fiscal year.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
client.register_commands(cli)
account.register_commands(cli)
entry.register_commands(cli)
import_cmd.register_commands(cli)
report.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
