"""Domain model entities for ledgerline.

These are pure data classes representing business concepts, independent of
database schema. Persisted entities are frozen; the import-side types are
mutable accumulators that only live for the duration of a parse.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


ZERO = Decimal("0")

# Absolute tolerance for every debit/credit comparison.
BALANCE_TOLERANCE = Decimal("0.001")


class AccountType(str, Enum):
    """Chart-of-accounts classification."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    INCOME = "income"
    COST_OF_SALES = "cost_of_sales"
    EXPENSE = "expense"
    OTHER_INCOME = "other_income"
    OTHER_EXPENSE = "other_expense"


class NormalBalance(str, Enum):
    """Side on which an account's balance is conventionally positive."""

    DEBIT = "debit"
    CREDIT = "credit"


class EntryStatus(str, Enum):
    """Journal entry lifecycle status."""

    DRAFT = "draft"
    POSTED = "posted"


class ImportJobStatus(str, Enum):
    """Import job lifecycle status."""

    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"
    ABANDONED = "abandoned"


DEBIT_NORMAL_TYPES = frozenset(
    {
        AccountType.ASSET,
        AccountType.EXPENSE,
        AccountType.COST_OF_SALES,
        AccountType.OTHER_EXPENSE,
    }
)

BALANCE_SHEET_TYPES = frozenset(
    {AccountType.ASSET, AccountType.LIABILITY, AccountType.EQUITY}
)


def normal_balance(account_type: AccountType) -> NormalBalance:
    """Return the normal balance side for an account type."""
    if account_type in DEBIT_NORMAL_TYPES:
        return NormalBalance.DEBIT
    return NormalBalance.CREDIT


def is_balance_sheet_type(account_type: AccountType) -> bool:
    """Return True for asset, liability and equity accounts."""
    return account_type in BALANCE_SHEET_TYPES


def signed_net(account_type: AccountType, debit: Decimal, credit: Decimal) -> Decimal:
    """Net of debit and credit, positive on the account's normal side."""
    if normal_balance(account_type) == NormalBalance.DEBIT:
        return debit - credit
    return credit - debit


# ---------------------------------------------------------------------------
# Persisted entities
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FiscalPeriodConfig:
    """Fiscal year end attached to a client."""

    fiscal_year_end_month: int = 12
    fiscal_year_end_day: int = 31


@dataclass(frozen=True)
class FiscalPeriod:
    """Boundaries of one fiscal year."""

    fiscal_year_start: date
    fiscal_year_end: date
    prior_fiscal_year_end: date

    def contains(self, day: date) -> bool:
        return self.fiscal_year_start <= day <= self.fiscal_year_end


@dataclass(frozen=True)
class Client:
    """Client (tenant) domain entity."""

    id: int
    name: str
    fiscal_year_end_month: int
    fiscal_year_end_day: int
    created_at: datetime

    @property
    def fiscal_config(self) -> FiscalPeriodConfig:
        return FiscalPeriodConfig(
            fiscal_year_end_month=self.fiscal_year_end_month,
            fiscal_year_end_day=self.fiscal_year_end_day,
        )


@dataclass(frozen=True)
class Account:
    """Chart-of-accounts entry for one client."""

    id: int
    client_id: int
    number: str
    name: str
    account_type: AccountType
    is_active: bool
    created_at: datetime

    @property
    def normal_balance(self) -> NormalBalance:
        return normal_balance(self.account_type)

    @property
    def is_balance_sheet(self) -> bool:
        return is_balance_sheet_type(self.account_type)


@dataclass(frozen=True)
class LineDraft:
    """Journal line input, before it is persisted."""

    account_id: int
    debit_amount: Decimal = ZERO
    credit_amount: Decimal = ZERO
    description: Optional[str] = None


@dataclass(frozen=True)
class JournalEntryLine:
    """Journal entry line domain entity."""

    id: int
    journal_entry_id: int
    account_id: int
    debit_amount: Decimal
    credit_amount: Decimal
    description: Optional[str] = None


@dataclass(frozen=True)
class JournalEntry:
    """Journal entry domain entity with its lines."""

    id: int
    client_id: int
    entry_date: date
    description: Optional[str]
    reference: Optional[str]
    status: EntryStatus
    total_debit: Decimal
    total_credit: Decimal
    created_at: datetime
    lines: tuple[JournalEntryLine, ...] = ()

    @property
    def is_balanced(self) -> bool:
        return abs(self.total_debit - self.total_credit) <= BALANCE_TOLERANCE


@dataclass(frozen=True)
class LedgerPosting:
    """One posted line joined with its entry header, as read by the aggregator."""

    entry_id: int
    entry_date: date
    reference: Optional[str]
    description: Optional[str]
    line_id: int
    account_id: int
    debit_amount: Decimal
    credit_amount: Decimal


@dataclass(frozen=True)
class ImportJob:
    """Durable import job record, one per confirmation run."""

    id: int
    client_id: int
    status: ImportJobStatus
    total_count: int
    processed_count: int
    imported_count: int
    skipped_count: int
    total_batches: int
    current_batch: int
    errors: tuple[str, ...]
    started_at: datetime
    updated_at: datetime
    finished_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == ImportJobStatus.ACTIVE


# ---------------------------------------------------------------------------
# Balances and reports
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AccountBalance:
    """Balance of one account (or the merged retained earnings row)."""

    account_id: Optional[int]
    account_number: str
    account_name: str
    account_type: AccountType
    opening_balance: Decimal
    period_debit: Decimal
    period_credit: Decimal
    debit_balance: Decimal
    credit_balance: Decimal
    net_balance: Decimal

    @property
    def has_activity(self) -> bool:
        return (
            self.opening_balance != ZERO
            or self.period_debit != ZERO
            or self.period_credit != ZERO
            or self.net_balance != ZERO
        )

    @property
    def period_net(self) -> Decimal:
        """Period activity signed by the normal balance."""
        return signed_net(self.account_type, self.period_debit, self.period_credit)


@dataclass(frozen=True)
class TrialBalance:
    """Trial balance for one client as of a date."""

    client_id: int
    as_of_date: date
    period_start_date: date
    fiscal_year_start: date
    accounts: tuple[AccountBalance, ...]
    total_debit: Decimal
    total_credit: Decimal
    is_balanced: bool


@dataclass(frozen=True)
class LedgerLine:
    """Drill-down line with the running balance after it was applied."""

    entry_id: int
    entry_date: date
    reference: Optional[str]
    description: Optional[str]
    debit: Decimal
    credit: Decimal
    running_balance: Decimal


@dataclass(frozen=True)
class AccountLedger:
    """General-ledger drill-down for one account over a date range."""

    account: Account
    start_date: date
    end_date: date
    opening_balance: Decimal
    lines: tuple[LedgerLine, ...]
    closing_balance: Decimal
    total_debit: Decimal
    total_credit: Decimal


@dataclass(frozen=True)
class ReportLine:
    """Single account line on a financial statement."""

    account_id: Optional[int]
    account_number: str
    account_name: str
    amount: Decimal


@dataclass(frozen=True)
class ReportSection:
    """Titled group of report lines with a total."""

    title: str
    lines: tuple[ReportLine, ...]
    total: Decimal


@dataclass(frozen=True)
class BalanceSheet:
    """Balance sheet as of a date."""

    client_id: int
    as_of_date: date
    assets: ReportSection
    liabilities: ReportSection
    equity: ReportSection
    current_year_earnings: Decimal
    total_liabilities_and_equity: Decimal
    is_balanced: bool


@dataclass(frozen=True)
class ProfitAndLoss:
    """Profit and loss statement over a date range."""

    client_id: int
    start_date: date
    end_date: date
    income: ReportSection
    cost_of_sales: ReportSection
    expenses: ReportSection
    other_income: ReportSection
    other_expenses: ReportSection
    gross_profit: Decimal
    operating_income: Decimal
    net_income: Decimal


@dataclass(frozen=True)
class CashFlowSummary:
    """Cash movement over a date range."""

    client_id: int
    start_date: date
    end_date: date
    opening_cash: Decimal
    receipts: Decimal
    payments: Decimal
    net_change: Decimal
    closing_cash: Decimal
    accounts: tuple[ReportLine, ...]


# ---------------------------------------------------------------------------
# General-ledger import
# ---------------------------------------------------------------------------


@dataclass
class CandidateLine:
    """Proposed journal line parsed from a raw file row."""

    account_number: str
    account_name: Optional[str]
    debit: Decimal
    credit: Decimal
    description: Optional[str] = None
    row_number: Optional[int] = None
    resolved_account_id: Optional[int] = None


@dataclass
class ImportCandidate:
    """Proposed journal entry derived from a raw file; never persisted as such."""

    reference: Optional[str]
    entry_date: Optional[date]
    description: Optional[str]
    source_format: str
    lines: list[CandidateLine] = field(default_factory=list)
    row_number: Optional[int] = None
    total_debit: Decimal = ZERO
    total_credit: Decimal = ZERO
    is_balanced: bool = True
    warnings: list[str] = field(default_factory=list)

    def recompute_totals(self) -> None:
        self.total_debit = sum((line.debit for line in self.lines), ZERO)
        self.total_credit = sum((line.credit for line in self.lines), ZERO)
        self.is_balanced = (
            abs(self.total_debit - self.total_credit) <= BALANCE_TOLERANCE
        )


@dataclass
class AccountSection:
    """Account section of a sectioned general-ledger file."""

    account_number: str
    account_name: str
    start_row: int
    end_row: int
    transaction_count: int = 0
    total_debit: Decimal = ZERO
    total_credit: Decimal = ZERO


@dataclass(frozen=True)
class ExtractedTransaction:
    """Single-sided transaction row read from an account section."""

    account_number: str
    account_name: str
    entry_date: date
    description: Optional[str]
    reference: Optional[str]
    debit: Decimal
    credit: Decimal
    row_number: int


@dataclass
class AccountMatch:
    """How a raw account token from a file resolved against the registry."""

    account_number: str
    account_id: Optional[int]
    account_name: str
    transaction_count: int = 0
    total_debit: Decimal = ZERO
    total_credit: Decimal = ZERO
    suggestion: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.account_id is not None


@dataclass
class ParseResult:
    """Side-effect free preview of a general-ledger file."""

    detected_format: str
    file_name: Optional[str] = None
    total_rows: int = 0
    journal_entries: list[ImportCandidate] = field(default_factory=list)
    account_sections: list[AccountSection] = field(default_factory=list)
    extracted_data: list[ExtractedTransaction] = field(default_factory=list)
    account_matches: dict[str, AccountMatch] = field(default_factory=dict)
    total_debits: Decimal = ZERO
    total_credits: Decimal = ZERO
    is_balanced: bool = True
    warnings: list[str] = field(default_factory=list)
    unclassified_rows: list[int] = field(default_factory=list)

    @property
    def summary(self) -> dict[str, int]:
        matched = sum(1 for m in self.account_matches.values() if m.matched)
        balanced = sum(1 for e in self.journal_entries if e.is_balanced)
        return {
            "journal_entries_count": len(self.journal_entries),
            "total_lines": sum(len(e.lines) for e in self.journal_entries),
            "balanced_entries": balanced,
            "unbalanced_entries": len(self.journal_entries) - balanced,
            "matched_accounts": matched,
            "unmatched_accounts": len(self.account_matches) - matched,
        }


@dataclass(frozen=True)
class ImportResult:
    """Outcome of an import confirmation."""

    import_id: int
    imported: int
    skipped: int
    errors: tuple[str, ...]
    created_accounts: tuple[str, ...] = ()


@dataclass(frozen=True)
class ImportProgress:
    """Pollable progress of a client's most recent import."""

    import_id: Optional[int]
    is_active: bool
    status: Optional[ImportJobStatus]
    processed_count: int
    imported_count: int
    skipped_count: int
    total_count: int
    total_batches: int
    current_batch: int
    errors: tuple[str, ...] = ()
