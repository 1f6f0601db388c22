"""Balance aggregation with a virtual year-end close.

Balances are always recomputed from posted journal lines. Profit and loss
accounts reset at each fiscal year start: their earlier activity is folded
into retained earnings at query time and nothing is ever written back.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from ledgerline.database.base import Database
from ledgerline.domain.account import is_retained_earnings
from ledgerline.domain.entities import (
    ZERO,
    Account,
    AccountBalance,
    AccountLedger,
    AccountType,
    LedgerLine,
    LedgerPosting,
    TrialBalance,
    signed_net,
)
from ledgerline.domain.errors import NotFoundError, ValidationError, account_not_found, client_not_found
from ledgerline.domain.fiscal import resolve
from ledgerline.domain.journal import check_balanced

logger = logging.getLogger(__name__)

RETAINED_EARNINGS_NAME = "Retained Earnings"
_RETAINED_EARNINGS_KEY = "retained_earnings"


@dataclass
class _Bucket:
    """Running totals of one reported row. Amounts are raw (debit - credit)."""

    account: Optional[Account]
    opening: Decimal = ZERO
    period_debit: Decimal = ZERO
    period_credit: Decimal = ZERO
    postings: list[LedgerPosting] = field(default_factory=list)

    @property
    def account_type(self) -> AccountType:
        return self.account.account_type if self.account is not None else AccountType.EQUITY

    @property
    def closing(self) -> Decimal:
        return self.opening + self.period_debit - self.period_credit

    def to_balance(self) -> AccountBalance:
        closing = self.closing
        account_type = self.account_type
        return AccountBalance(
            account_id=self.account.id if self.account is not None else None,
            account_number=self.account.number if self.account is not None else "",
            account_name=self.account.name if self.account is not None else RETAINED_EARNINGS_NAME,
            account_type=account_type,
            opening_balance=signed_net(account_type, self.opening, ZERO),
            period_debit=self.period_debit,
            period_credit=self.period_credit,
            debit_balance=closing if closing > 0 else ZERO,
            credit_balance=-closing if closing < 0 else ZERO,
            net_balance=signed_net(account_type, closing, ZERO),
        )


@dataclass
class _Aggregation:
    fiscal_year_start: date
    period_start: date
    buckets: dict
    key_by_account: dict


class BalanceService:
    """Service computing account balances and trial balances."""

    def __init__(self, db: Database):
        """Initialize balance service.

        Args:
            db: Database instance
        """
        self.db = db

    def _aggregate(
        self,
        client_id: int,
        as_of_date: date,
        period_start_date: Optional[date] = None,
        close_cutoff: Optional[date] = None,
    ) -> _Aggregation:
        """Single pass over posted lines shared by every balance query.

        Args:
            client_id: Client ID
            as_of_date: Last date included
            period_start_date: First date of period activity; defaults to the
                fiscal year start
            close_cutoff: Profit and loss lines before this date are closed
                into retained earnings; defaults to the fiscal year start
        """
        client = self.db.get_client(client_id)
        if client is None:
            raise NotFoundError(client_not_found(client_id))

        fiscal_year_start = resolve(client.fiscal_config, as_of_date).fiscal_year_start
        cutoff = close_cutoff or fiscal_year_start
        period_start = period_start_date or fiscal_year_start
        if period_start > as_of_date:
            raise ValidationError(
                f"Period start {period_start.isoformat()} is after as-of date {as_of_date.isoformat()}"
            )

        accounts = self.db.list_accounts(client_id)
        retained = sorted(
            (a for a in accounts if is_retained_earnings(a)), key=lambda a: a.number
        )

        buckets: dict = {}
        key_by_account: dict[int, object] = {}
        for account in accounts:
            key = _RETAINED_EARNINGS_KEY if is_retained_earnings(account) else account.id
            key_by_account[account.id] = key
            if key not in buckets:
                buckets[key] = _Bucket(account=retained[0] if key == _RETAINED_EARNINGS_KEY else account)

        closed_income = ZERO
        for posting in self.db.list_postings(client_id, as_of_date):
            key = key_by_account.get(posting.account_id)
            if key is None:
                continue
            bucket = buckets[key]
            raw = posting.debit_amount - posting.credit_amount
            is_balance_sheet = bucket.account is None or bucket.account.is_balance_sheet

            if not is_balance_sheet and posting.entry_date < cutoff:
                closed_income += raw
            elif posting.entry_date < period_start:
                bucket.opening += raw
            else:
                bucket.period_debit += posting.debit_amount
                bucket.period_credit += posting.credit_amount
                bucket.postings.append(posting)

        if closed_income != ZERO:
            if _RETAINED_EARNINGS_KEY not in buckets:
                logger.debug("Client %s has no retained earnings account; reporting a synthetic row", client_id)
                buckets[_RETAINED_EARNINGS_KEY] = _Bucket(account=None)
            buckets[_RETAINED_EARNINGS_KEY].opening += closed_income

        return _Aggregation(
            fiscal_year_start=fiscal_year_start,
            period_start=period_start,
            buckets=buckets,
            key_by_account=key_by_account,
        )

    def compute_balances(
        self,
        client_id: int,
        as_of_date: date,
        period_start_date: Optional[date] = None,
    ) -> TrialBalance:
        """Compute every account's balance as of a date.

        Args:
            client_id: Client ID
            as_of_date: Balances include posted lines up to this date
            period_start_date: Start of period activity (default: fiscal year start)

        Returns:
            TrialBalance with one row per account (retained earnings merged)

        Raises:
            NotFoundError: If client doesn't exist
            ValidationError: If period start is after the as-of date
        """
        aggregation = self._aggregate(client_id, as_of_date, period_start_date)
        rows = sorted(
            (bucket.to_balance() for bucket in aggregation.buckets.values()),
            key=lambda b: (b.account_number == "", b.account_number),
        )
        total_debit = sum((row.debit_balance for row in rows), ZERO)
        total_credit = sum((row.credit_balance for row in rows), ZERO)
        return TrialBalance(
            client_id=client_id,
            as_of_date=as_of_date,
            period_start_date=aggregation.period_start,
            fiscal_year_start=aggregation.fiscal_year_start,
            accounts=tuple(rows),
            total_debit=total_debit,
            total_credit=total_credit,
            is_balanced=check_balanced(total_debit, total_credit),
        )

    def trial_balance(
        self,
        client_id: int,
        as_of_date: Optional[date] = None,
        start_date: Optional[date] = None,
        include_zero: bool = False,
    ) -> TrialBalance:
        """Trial balance as of a date (default today).

        Accounts with no activity and a zero balance are left out unless
        include_zero is set.
        """
        balances = self.compute_balances(client_id, as_of_date or date.today(), start_date)
        if include_zero:
            return balances
        rows = tuple(row for row in balances.accounts if row.has_activity)
        return TrialBalance(
            client_id=balances.client_id,
            as_of_date=balances.as_of_date,
            period_start_date=balances.period_start_date,
            fiscal_year_start=balances.fiscal_year_start,
            accounts=rows,
            total_debit=balances.total_debit,
            total_credit=balances.total_credit,
            is_balanced=balances.is_balanced,
        )

    def _require_account(self, client_id: int, account_id: int) -> Account:
        account = self.db.get_account(account_id)
        if account is None or account.client_id != client_id:
            raise NotFoundError(account_not_found(account_id))
        return account

    def account_balance(self, client_id: int, account_id: int, as_of_date: Optional[date] = None) -> Decimal:
        """Net balance of one account, signed by its normal balance.

        Retained earnings accounts report the merged retained earnings row.
        """
        self._require_account(client_id, account_id)
        aggregation = self._aggregate(client_id, as_of_date or date.today())
        bucket = aggregation.buckets[aggregation.key_by_account[account_id]]
        return bucket.to_balance().net_balance

    def account_ledger(
        self,
        client_id: int,
        account_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> AccountLedger:
        """Drill-down of one account's postings with a running balance.

        Args:
            client_id: Client ID
            account_id: Account ID
            start_date: First date shown (default: fiscal year start of end_date)
            end_date: Last date shown (default: today)

        Returns:
            AccountLedger whose opening balance covers everything before
            start_date under the same closing rules as the trial balance
        """
        account = self._require_account(client_id, account_id)
        end_date = end_date or date.today()
        close_cutoff = None
        if start_date is not None and not account.is_balance_sheet:
            # Profit and loss drill-downs open at the fiscal year of start_date
            client = self.db.get_client(client_id)
            close_cutoff = resolve(client.fiscal_config, start_date).fiscal_year_start

        aggregation = self._aggregate(client_id, end_date, start_date, close_cutoff)
        bucket = aggregation.buckets[aggregation.key_by_account[account_id]]
        account_type = bucket.account_type
        opening = signed_net(account_type, bucket.opening, ZERO)

        running = opening
        lines = []
        for posting in bucket.postings:
            running += signed_net(account_type, posting.debit_amount, posting.credit_amount)
            lines.append(
                LedgerLine(
                    entry_id=posting.entry_id,
                    entry_date=posting.entry_date,
                    reference=posting.reference,
                    description=posting.description,
                    debit=posting.debit_amount,
                    credit=posting.credit_amount,
                    running_balance=running,
                )
            )

        return AccountLedger(
            account=account,
            start_date=aggregation.period_start,
            end_date=end_date,
            opening_balance=opening,
            lines=tuple(lines),
            closing_balance=running,
            total_debit=bucket.period_debit,
            total_credit=bucket.period_credit,
        )
