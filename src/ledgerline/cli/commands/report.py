"""Financial report commands."""

from datetime import date
from decimal import Decimal

import click
from ledgerline.cli.account_resolution import resolve_account_or_exit, resolve_client_or_exit
from ledgerline.cli.date_filters import parse_date_option, resolve_cli_date_range
from ledgerline.cli.error_handling import handle_domain_error
from ledgerline.domain.balances import BalanceService
from ledgerline.domain.entities import ReportSection
from ledgerline.domain.errors import DomainError
from ledgerline.domain.reports import ReportService
from ledgerline.utils.amount_parser import round_money

LABEL_WIDTH = 50
AMOUNT_WIDTH = 16


def _money(amount: Decimal) -> str:
    return f"{round_money(amount):,}"


def _row(label: str, amount: Decimal, indent: int = 0) -> str:
    width = LABEL_WIDTH - indent
    return f"{' ' * indent}{label:<{width}.{width}} {_money(amount):>{AMOUNT_WIDTH}}"


def _print_section(section: ReportSection) -> None:
    click.echo(f"\n{section.title}")
    for line in section.lines:
        label = f"{line.account_number} {line.account_name}".strip()
        click.echo(_row(label, line.amount, indent=4))
    click.echo(_row(f"Total {section.title}", section.total))


def period_options(command):
    """Attach the shared report period options to a command."""
    options = [
        click.option("--start-date", help="Start date"),
        click.option("--end-date", help="End date"),
        click.option("--this-fiscal-year", is_flag=True, help="Current fiscal year"),
        click.option("--last-fiscal-year", is_flag=True, help="Last completed fiscal year"),
        click.option("--ytd", is_flag=True, help="Fiscal year to date"),
    ]
    for option in reversed(options):
        command = option(command)
    return command


def _period(ctx, client_obj, start_date, end_date, this_fiscal_year, last_fiscal_year, ytd):
    return resolve_cli_date_range(
        ctx,
        config=client_obj.fiscal_config,
        start_date=start_date,
        end_date=end_date,
        period_flags={
            "this_fiscal_year": this_fiscal_year,
            "last_fiscal_year": last_fiscal_year,
            "ytd": ytd,
        },
    )


@click.group()
def report_group():
    """Financial reports."""
    pass


@report_group.command("trial-balance")
@click.argument("client", metavar="CLIENT")
@click.option("--as-of", help="As-of date (default: today)")
@click.option("--start-date", help="Start of period activity (default: fiscal year start)")
@click.option("--include-zero", is_flag=True, help="Include accounts with no activity")
@click.pass_context
def trial_balance(ctx, client: str, as_of: str | None, start_date: str | None, include_zero: bool):
    """Trial balance with the virtual year-end close applied.

    Examples:
        ledgerline report trial-balance "Acme Ltd" --as-of 2024-12-31
    """
    client_obj = resolve_client_or_exit(ctx, client)
    as_of_date = parse_date_option(ctx, as_of, "as-of date") or date.today()
    start = parse_date_option(ctx, start_date, "start date")
    service = BalanceService(ctx.obj["db"])

    try:
        tb = service.trial_balance(client_obj.id, as_of_date, start, include_zero=include_zero)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nTrial Balance - {client_obj.name}")
    click.echo(
        f"As of {tb.as_of_date.isoformat()} (fiscal year from {tb.fiscal_year_start.isoformat()})"
    )
    click.echo("-" * 86)
    click.echo(f"{'Account':12} {'Name':40} {'Debit':>16} {'Credit':>16}")
    click.echo("-" * 86)
    for row in tb.accounts:
        debit = _money(row.debit_balance) if row.debit_balance else ""
        credit = _money(row.credit_balance) if row.credit_balance else ""
        click.echo(f"{row.account_number:12.12} {row.account_name:40.40} {debit:>16} {credit:>16}")
    click.echo("-" * 86)
    click.echo(f"{'Total':53} {_money(tb.total_debit):>16} {_money(tb.total_credit):>16}")
    if not tb.is_balanced:
        click.echo("Warning: trial balance does not balance", err=True)


@report_group.command("balance-sheet")
@click.argument("client", metavar="CLIENT")
@click.option("--as-of", help="As-of date (default: today)")
@click.pass_context
def balance_sheet(ctx, client: str, as_of: str | None):
    """Balance sheet as of a date."""
    client_obj = resolve_client_or_exit(ctx, client)
    as_of_date = parse_date_option(ctx, as_of, "as-of date") or date.today()
    service = ReportService(ctx.obj["db"])

    try:
        bs = service.balance_sheet(client_obj.id, as_of_date)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nBalance Sheet - {client_obj.name}")
    click.echo(f"As of {bs.as_of_date.isoformat()}")
    _print_section(bs.assets)
    _print_section(bs.liabilities)
    _print_section(bs.equity)
    click.echo()
    click.echo(_row("Total Liabilities and Equity", bs.total_liabilities_and_equity))
    if not bs.is_balanced:
        click.echo("Warning: balance sheet does not balance", err=True)


@report_group.command("profit-loss")
@click.argument("client", metavar="CLIENT")
@period_options
@click.pass_context
def profit_loss(ctx, client: str, start_date, end_date, this_fiscal_year, last_fiscal_year, ytd):
    """Profit and loss for a period (default: current fiscal year)."""
    client_obj = resolve_client_or_exit(ctx, client)
    start, end = _period(ctx, client_obj, start_date, end_date, this_fiscal_year, last_fiscal_year, ytd)
    service = ReportService(ctx.obj["db"])

    try:
        pl = service.profit_and_loss(client_obj.id, start, end)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nProfit and Loss - {client_obj.name}")
    click.echo(f"{pl.start_date.isoformat()} to {pl.end_date.isoformat()}")
    _print_section(pl.income)
    _print_section(pl.cost_of_sales)
    click.echo(_row("Gross Profit", pl.gross_profit))
    _print_section(pl.expenses)
    click.echo(_row("Operating Income", pl.operating_income))
    _print_section(pl.other_income)
    _print_section(pl.other_expenses)
    click.echo()
    click.echo(_row("Net Income", pl.net_income))


@report_group.command("cash-flow")
@click.argument("client", metavar="CLIENT")
@period_options
@click.pass_context
def cash_flow(ctx, client: str, start_date, end_date, this_fiscal_year, last_fiscal_year, ytd):
    """Cash receipts and payments for a period."""
    client_obj = resolve_client_or_exit(ctx, client)
    start, end = _period(ctx, client_obj, start_date, end_date, this_fiscal_year, last_fiscal_year, ytd)
    service = ReportService(ctx.obj["db"])

    try:
        cf = service.cash_flow(client_obj.id, start, end)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nCash Flow - {client_obj.name}")
    click.echo(f"{cf.start_date.isoformat()} to {cf.end_date.isoformat()}")
    click.echo()
    click.echo(_row("Opening cash", cf.opening_cash))
    click.echo(_row("Receipts", cf.receipts))
    click.echo(_row("Payments", -cf.payments))
    click.echo(_row("Net change", cf.net_change))
    click.echo(_row("Closing cash", cf.closing_cash))
    if cf.accounts:
        click.echo("\nCash accounts:")
        for line in cf.accounts:
            click.echo(_row(f"{line.account_number} {line.account_name}", line.amount, indent=4))


@report_group.command("ledger")
@click.argument("client", metavar="CLIENT")
@click.argument("account", metavar="ACCOUNT")
@click.option("--start-date", help="Start date (default: fiscal year start)")
@click.option("--end-date", help="End date (default: today)")
@click.pass_context
def ledger(ctx, client: str, account: str, start_date: str | None, end_date: str | None):
    """Postings of one account with a running balance.

    ACCOUNT can be an account number or ID.
    """
    client_obj = resolve_client_or_exit(ctx, client)
    account_obj = resolve_account_or_exit(ctx, client_obj.id, account)
    start = parse_date_option(ctx, start_date, "start date")
    end = parse_date_option(ctx, end_date, "end date")
    service = BalanceService(ctx.obj["db"])

    try:
        result = service.account_ledger(client_obj.id, account_obj.id, start, end)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nLedger - {account_obj.number} {account_obj.name}")
    click.echo(f"{result.start_date.isoformat()} to {result.end_date.isoformat()}")
    click.echo("-" * 100)
    click.echo(f"{'Date':10} {'Reference':12} {'Description':30} {'Debit':>14} {'Credit':>14} {'Balance':>14}")
    click.echo("-" * 100)
    click.echo(f"{'':10} {'':12} {'Opening balance':30} {'':>14} {'':>14} {_money(result.opening_balance):>14}")
    for line in result.lines:
        debit = _money(line.debit) if line.debit else ""
        credit = _money(line.credit) if line.credit else ""
        click.echo(
            f"{line.entry_date.isoformat():10} {(line.reference or ''):12.12} "
            f"{(line.description or ''):30.30} {debit:>14} {credit:>14} "
            f"{_money(line.running_balance):>14}"
        )
    click.echo("-" * 100)
    click.echo(
        f"{'':10} {'':12} {'Closing balance':30} {_money(result.total_debit):>14} "
        f"{_money(result.total_credit):>14} {_money(result.closing_balance):>14}"
    )


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
