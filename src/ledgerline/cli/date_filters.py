"""CLI helpers for date and fiscal period resolution."""

from datetime import date

import click

from ledgerline.domain.entities import FiscalPeriodConfig
from ledgerline.domain.fiscal import fiscal_year_with_offset, last_completed_fiscal_year, year_to_date
from ledgerline.utils.date_parser import parse_date

PERIOD_FLAG_NAMES = "--this-fiscal-year, --last-fiscal-year, --ytd"


def parse_date_option(ctx, value: str | None, label: str) -> date | None:
    """Parse an optional date option, exiting with a CLI error if invalid."""
    if not value:
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def fiscal_period_range(
    config: FiscalPeriodConfig, period: str, today: date | None = None
) -> tuple[date, date]:
    """Return (start, end) for a named fiscal period flag."""
    if period == "this_fiscal_year":
        current = fiscal_year_with_offset(config, 0, today)
        return current.fiscal_year_start, current.fiscal_year_end
    if period == "last_fiscal_year":
        last = last_completed_fiscal_year(config, today)
        return last.fiscal_year_start, last.fiscal_year_end
    if period == "ytd":
        return year_to_date(config, today)
    raise ValueError(f"Unknown period: {period}")


def resolve_cli_date_range(
    ctx,
    *,
    config: FiscalPeriodConfig,
    start_date: str | None,
    end_date: str | None,
    period_flags: dict[str, bool],
    default_period: str = "this_fiscal_year",
) -> tuple[date, date]:
    """Resolve a report date range from fiscal period flags or explicit dates.

    Without flags or dates the default fiscal period is used. A missing end
    date defaults to today; a missing start date to the fiscal year start
    of the end date.
    """
    period_count = sum(1 for is_set in period_flags.values() if is_set)

    if period_count > 1:
        click.echo(
            f"Error: Only one period option ({PERIOD_FLAG_NAMES}) can be specified at a time.",
            err=True,
        )
        ctx.exit(1)

    if period_count > 0 and (start_date or end_date):
        click.echo(
            f"Error: Period options ({PERIOD_FLAG_NAMES}) cannot be combined with --start-date or --end-date.",
            err=True,
        )
        ctx.exit(1)

    if period_count == 1:
        period = next(name for name, is_set in period_flags.items() if is_set)
        return fiscal_period_range(config, period)

    start = parse_date_option(ctx, start_date, "start date")
    end = parse_date_option(ctx, end_date, "end date")
    if start is None and end is None:
        return fiscal_period_range(config, default_period)

    end = end or date.today()
    if start is None:
        start = fiscal_year_with_offset(config, 0, end).fiscal_year_start
    if start > end:
        click.echo("Error: Start date must be on or before end date.", err=True)
        ctx.exit(1)
    return start, end
