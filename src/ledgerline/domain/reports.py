"""Financial report assembly on top of the balance aggregator."""

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from ledgerline.database.base import Database
from ledgerline.domain.balances import BalanceService
from ledgerline.domain.entities import (
    ZERO,
    AccountBalance,
    AccountType,
    BalanceSheet,
    CashFlowSummary,
    ProfitAndLoss,
    ReportLine,
    ReportSection,
)
from ledgerline.domain.errors import NotFoundError, ValidationError, client_not_found
from ledgerline.domain.fiscal import resolve, year_to_date
from ledgerline.domain.journal import check_balanced


CASH_ACCOUNT_KEYWORDS = ("cash", "bank", "checking", "chequing", "savings", "petty")


def _line(balance: AccountBalance, amount: Decimal) -> ReportLine:
    return ReportLine(
        account_id=balance.account_id,
        account_number=balance.account_number,
        account_name=balance.account_name,
        amount=amount,
    )


def _section(title: str, lines: Iterable[ReportLine]) -> ReportSection:
    lines = tuple(lines)
    return ReportSection(title=title, lines=lines, total=sum((l.amount for l in lines), ZERO))


def is_cash_account(balance: AccountBalance) -> bool:
    """Return True for asset accounts that hold cash."""
    if balance.account_type != AccountType.ASSET:
        return False
    name = balance.account_name.lower()
    return any(keyword in name for keyword in CASH_ACCOUNT_KEYWORDS)


class ReportService:
    """Service building balance sheet, profit and loss and cash flow reports."""

    def __init__(self, db: Database):
        """Initialize report service.

        Args:
            db: Database instance
        """
        self.db = db
        self.balance_service = BalanceService(db)

    def _fiscal_config(self, client_id: int):
        client = self.db.get_client(client_id)
        if client is None:
            raise NotFoundError(client_not_found(client_id))
        return client.fiscal_config

    def balance_sheet(self, client_id: int, as_of_date: Optional[date] = None) -> BalanceSheet:
        """Balance sheet as of a date (default today).

        Profit and loss activity since the fiscal year start is shown as a
        current year earnings line under equity.
        """
        as_of_date = as_of_date or date.today()
        balances = self.balance_service.compute_balances(client_id, as_of_date)

        by_type: dict[AccountType, list[AccountBalance]] = {}
        current_year_earnings = ZERO
        for row in balances.accounts:
            if row.account_type in (AccountType.ASSET, AccountType.LIABILITY, AccountType.EQUITY):
                if row.has_activity:
                    by_type.setdefault(row.account_type, []).append(row)
            else:
                current_year_earnings += row.credit_balance - row.debit_balance

        assets = _section("Assets", (_line(r, r.net_balance) for r in by_type.get(AccountType.ASSET, [])))
        liabilities = _section(
            "Liabilities", (_line(r, r.net_balance) for r in by_type.get(AccountType.LIABILITY, []))
        )
        equity_lines = [_line(r, r.net_balance) for r in by_type.get(AccountType.EQUITY, [])]
        if current_year_earnings != ZERO:
            equity_lines.append(
                ReportLine(
                    account_id=None,
                    account_number="",
                    account_name="Current Year Earnings",
                    amount=current_year_earnings,
                )
            )
        equity = _section("Equity", equity_lines)

        total_liabilities_and_equity = liabilities.total + equity.total
        return BalanceSheet(
            client_id=client_id,
            as_of_date=as_of_date,
            assets=assets,
            liabilities=liabilities,
            equity=equity,
            current_year_earnings=current_year_earnings,
            total_liabilities_and_equity=total_liabilities_and_equity,
            is_balanced=check_balanced(assets.total, total_liabilities_and_equity),
        )

    def profit_and_loss(self, client_id: int, start_date: date, end_date: date) -> ProfitAndLoss:
        """Profit and loss for a date range.

        A range crossing fiscal year ends is computed per fiscal year slice
        and summed.

        Raises:
            ValidationError: If start_date is after end_date
        """
        if start_date > end_date:
            raise ValidationError(
                f"Start date {start_date.isoformat()} is after end date {end_date.isoformat()}"
            )
        config = self._fiscal_config(client_id)

        totals: dict[object, tuple[AccountBalance, Decimal]] = {}
        slice_start = start_date
        while slice_start <= end_date:
            period = resolve(config, slice_start)
            slice_end = min(end_date, period.fiscal_year_end)
            balances = self.balance_service.compute_balances(client_id, slice_end, slice_start)
            for row in balances.accounts:
                if row.account_type in (AccountType.ASSET, AccountType.LIABILITY, AccountType.EQUITY):
                    continue
                key = row.account_id
                previous = totals.get(key)
                amount = row.period_net + (previous[1] if previous else ZERO)
                totals[key] = (row, amount)
            slice_start = slice_end + timedelta(days=1)

        def section(title: str, account_type: AccountType) -> ReportSection:
            rows = sorted(
                (item for item in totals.values() if item[0].account_type == account_type),
                key=lambda item: item[0].account_number,
            )
            return _section(title, (_line(row, amount) for row, amount in rows if amount != ZERO))

        income = section("Income", AccountType.INCOME)
        cost_of_sales = section("Cost of Sales", AccountType.COST_OF_SALES)
        expenses = section("Expenses", AccountType.EXPENSE)
        other_income = section("Other Income", AccountType.OTHER_INCOME)
        other_expenses = section("Other Expenses", AccountType.OTHER_EXPENSE)

        gross_profit = income.total - cost_of_sales.total
        operating_income = gross_profit - expenses.total
        net_income = operating_income + other_income.total - other_expenses.total
        return ProfitAndLoss(
            client_id=client_id,
            start_date=start_date,
            end_date=end_date,
            income=income,
            cost_of_sales=cost_of_sales,
            expenses=expenses,
            other_income=other_income,
            other_expenses=other_expenses,
            gross_profit=gross_profit,
            operating_income=operating_income,
            net_income=net_income,
        )

    def ytd_profit_and_loss(self, client_id: int, today: Optional[date] = None) -> ProfitAndLoss:
        """Profit and loss from the current fiscal year start to today."""
        start_date, end_date = year_to_date(self._fiscal_config(client_id), today)
        return self.profit_and_loss(client_id, start_date, end_date)

    def cash_flow(self, client_id: int, start_date: date, end_date: date) -> CashFlowSummary:
        """Cash movement summary over accounts named like cash or bank accounts."""
        balances = self.balance_service.compute_balances(client_id, end_date, start_date)
        cash_rows = [row for row in balances.accounts if is_cash_account(row)]

        opening_cash = sum((row.opening_balance for row in cash_rows), ZERO)
        receipts = sum((row.period_debit for row in cash_rows), ZERO)
        payments = sum((row.period_credit for row in cash_rows), ZERO)
        return CashFlowSummary(
            client_id=client_id,
            start_date=start_date,
            end_date=end_date,
            opening_cash=opening_cash,
            receipts=receipts,
            payments=payments,
            net_change=receipts - payments,
            closing_cash=opening_cash + receipts - payments,
            accounts=tuple(_line(row, row.net_balance) for row in cash_rows),
        )
