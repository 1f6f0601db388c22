"""Fiscal period resolution.

Pure functions from a client's fiscal-year-end month/day and a reference date
to fiscal-year boundaries. Nothing here touches the database.
"""

import calendar
from datetime import date, timedelta
from typing import Optional

from ledgerline.domain.entities import FiscalPeriod, FiscalPeriodConfig
from ledgerline.domain.errors import ValidationError


def validate_fiscal_config(config: FiscalPeriodConfig) -> FiscalPeriodConfig:
    """Check that the month/day pair names a real calendar day.

    February 29 is accepted and clamped in non-leap years.

    Raises:
        ValidationError: If month or day is out of range
    """
    month = config.fiscal_year_end_month
    day = config.fiscal_year_end_day
    if not 1 <= month <= 12:
        raise ValidationError(f"Fiscal year end month must be 1-12, got {month}")
    # 2000 is a leap year, so Feb 29 passes
    max_day = calendar.monthrange(2000, month)[1]
    if not 1 <= day <= max_day:
        raise ValidationError(
            f"Fiscal year end day must be 1-{max_day} for month {month}, got {day}"
        )
    return config


def parse_fiscal_year_end(value: str) -> FiscalPeriodConfig:
    """Parse 'MM-DD' or 'MM/DD' into a validated config."""
    parts = value.replace("/", "-").split("-")
    if len(parts) != 2 or not all(p.strip().isdigit() for p in parts):
        raise ValidationError(f"Fiscal year end must be MM-DD, got '{value}'")
    config = FiscalPeriodConfig(
        fiscal_year_end_month=int(parts[0]), fiscal_year_end_day=int(parts[1])
    )
    return validate_fiscal_config(config)


def fiscal_year_end_in(config: FiscalPeriodConfig, year: int) -> date:
    """Return the configured fiscal year end within a calendar year."""
    month = config.fiscal_year_end_month
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(config.fiscal_year_end_day, last_day))


def _period_ending(config: FiscalPeriodConfig, end_year: int) -> FiscalPeriod:
    fiscal_year_end = fiscal_year_end_in(config, end_year)
    prior_end = fiscal_year_end_in(config, end_year - 1)
    return FiscalPeriod(
        fiscal_year_start=prior_end + timedelta(days=1),
        fiscal_year_end=fiscal_year_end,
        prior_fiscal_year_end=prior_end,
    )


def resolve(config: FiscalPeriodConfig, reference_date: date) -> FiscalPeriod:
    """Resolve the fiscal year containing reference_date.

    The year ends on the configured month/day of the reference year if the
    reference date is on or before it, otherwise in the following year.
    """
    end_year = reference_date.year
    if reference_date > fiscal_year_end_in(config, end_year):
        end_year += 1
    return _period_ending(config, end_year)


def fiscal_year(config: FiscalPeriodConfig, fiscal_year_label: int) -> FiscalPeriod:
    """Return the fiscal year that ends in calendar year fiscal_year_label."""
    return _period_ending(config, fiscal_year_label)


def fiscal_year_with_offset(
    config: FiscalPeriodConfig, offset: int = 0, today: Optional[date] = None
) -> FiscalPeriod:
    """Return the current fiscal year shifted by offset years (-1 is last year)."""
    current = resolve(config, today or date.today())
    return _period_ending(config, current.fiscal_year_end.year + offset)


def last_completed_fiscal_year(
    config: FiscalPeriodConfig, today: Optional[date] = None
) -> FiscalPeriod:
    """Return the most recent fiscal year that has fully ended."""
    return fiscal_year_with_offset(config, -1, today)


def year_to_date(
    config: FiscalPeriodConfig, today: Optional[date] = None
) -> tuple[date, date]:
    """Return (fiscal year start, today) for the fiscal year containing today.

    Year-to-date is always relative to today, not to a report's as-of date.
    """
    today = today or date.today()
    return resolve(config, today).fiscal_year_start, today
