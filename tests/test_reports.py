"""Tests for ReportService."""

from datetime import date
from decimal import Decimal

import pytest
from ledgerline.domain.errors import NotFoundError, ValidationError
from ledgerline.domain.reports import is_cash_account


@pytest.fixture
def trading(sample_accounts, post_entry):
    """Two years of simple trading activity."""
    a = sample_accounts
    post_entry(date(2023, 1, 2), a["Bank"], a["Owner Capital"], 5000)
    post_entry(date(2023, 6, 1), a["Bank"], a["Sales"], 2000)
    post_entry(date(2023, 6, 2), a["Cost of Goods Sold"], a["Bank"], 800)
    post_entry(date(2024, 2, 1), a["Accounts Receivable"], a["Sales"], 1500)
    post_entry(date(2024, 2, 5), a["Cost of Goods Sold"], a["Accounts Payable"], 600)
    post_entry(date(2024, 3, 1), a["Rent"], a["Bank"], 400)
    post_entry(date(2024, 3, 15), a["Bank"], a["Interest Income"], 25)
    post_entry(date(2024, 3, 20), a["Bank Fees"], a["Bank"], 5)
    return a


class TestBalanceSheet:
    def test_balances_with_current_year_earnings(self, report_service, sample_client, trading):
        bs = report_service.balance_sheet(sample_client.id, date(2024, 12, 31))

        assert bs.assets.total == Decimal("7320")
        assert bs.liabilities.total == Decimal("600")
        # 1500 - 600 - 400 + 25 - 5
        assert bs.current_year_earnings == Decimal("520")
        equity = {line.account_name: line.amount for line in bs.equity.lines}
        assert equity == {
            "Owner Capital": Decimal("5000"),
            "Retained Earnings": Decimal("1200"),
            "Current Year Earnings": Decimal("520"),
        }
        assert bs.total_liabilities_and_equity == bs.assets.total
        assert bs.is_balanced

    def test_empty_ledger(self, report_service, sample_client, sample_accounts):
        bs = report_service.balance_sheet(sample_client.id, date(2024, 12, 31))
        assert bs.assets.lines == ()
        assert bs.total_liabilities_and_equity == Decimal("0")
        assert bs.is_balanced


class TestProfitAndLoss:
    def test_sections_and_subtotals(self, report_service, sample_client, trading):
        pl = report_service.profit_and_loss(sample_client.id, date(2024, 1, 1), date(2024, 12, 31))

        assert pl.income.total == Decimal("1500")
        assert pl.cost_of_sales.total == Decimal("600")
        assert pl.gross_profit == Decimal("900")
        assert [line.account_name for line in pl.expenses.lines] == ["Rent"]
        assert pl.operating_income == Decimal("500")
        assert pl.other_income.total == Decimal("25")
        assert pl.other_expenses.total == Decimal("5")
        assert pl.net_income == Decimal("520")

    def test_range_crossing_fiscal_year_end(self, report_service, sample_client, trading):
        pl = report_service.profit_and_loss(sample_client.id, date(2023, 6, 1), date(2024, 2, 28))
        assert pl.income.total == Decimal("3500")
        assert pl.cost_of_sales.total == Decimal("1400")
        assert pl.net_income == Decimal("2100")

    def test_prior_year_only(self, report_service, sample_client, trading):
        pl = report_service.profit_and_loss(sample_client.id, date(2023, 1, 1), date(2023, 12, 31))
        assert pl.net_income == Decimal("1200")

    def test_start_after_end(self, report_service, sample_client, trading):
        with pytest.raises(ValidationError):
            report_service.profit_and_loss(sample_client.id, date(2024, 2, 1), date(2024, 1, 1))

    def test_unknown_client(self, report_service):
        with pytest.raises(NotFoundError):
            report_service.profit_and_loss(999, date(2024, 1, 1), date(2024, 12, 31))

    def test_ytd(self, report_service, sample_client, trading):
        pl = report_service.ytd_profit_and_loss(sample_client.id, today=date(2024, 2, 10))
        assert (pl.start_date, pl.end_date) == (date(2024, 1, 1), date(2024, 2, 10))
        assert pl.net_income == Decimal("900")


class TestCashFlow:
    def test_cash_movement(self, report_service, sample_client, trading):
        cf = report_service.cash_flow(sample_client.id, date(2024, 1, 1), date(2024, 12, 31))
        assert cf.opening_cash == Decimal("6200")
        assert cf.receipts == Decimal("25")
        assert cf.payments == Decimal("405")
        assert cf.net_change == Decimal("-380")
        assert cf.closing_cash == Decimal("5820")
        assert [line.account_name for line in cf.accounts] == ["Bank"]

    def test_cash_account_detection(self, balance_service, sample_client, sample_accounts):
        tb = balance_service.compute_balances(sample_client.id, date(2024, 12, 31))
        cash = [row.account_name for row in tb.accounts if is_cash_account(row)]
        assert cash == ["Bank"]
