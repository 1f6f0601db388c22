"""General-ledger file formats.

A file arrives as a grid of raw cells. Each ``FormatDetector`` knows how to
recognize one export layout and how to turn it into candidate journal
entries. ``detect_format`` probes the detectors in a fixed order so the same
grid always parses the same way.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Optional, Sequence

from ledgerline.domain.entities import (
    ZERO,
    AccountSection,
    CandidateLine,
    ExtractedTransaction,
    ImportCandidate,
)
from ledgerline.utils.account_matcher import extract_account_number
from ledgerline.utils.amount_parser import parse_cell_amount
from ledgerline.utils.date_parser import looks_like_date, parse_cell_date, parse_date_or_today


HEADER_SCAN_ROWS = 15

# Two letters followed by 4-8 digits (GJ000123), or an explicit JE- prefix
_REFERENCE_RE = re.compile(r"\b(?:[A-Za-z]{2}\d{4,8}|JE-[A-Za-z0-9]+)\b", re.IGNORECASE)

_HEADER_KEYWORDS = {
    "date": {"date", "entry date", "transaction date", "trans date", "posting date", "txn date"},
    "reference": {
        "reference", "ref", "ref #", "ref no", "ref. no.", "num", "no", "no.", "number",
        "journal", "journal no", "journal #", "je", "je #", "entry no", "document",
    },
    "account": {
        "account", "account number", "account no", "account #", "acct", "acct #",
        "acct no", "gl account", "gl code", "account code",
    },
    "account_name": {"account name", "account title"},
    "description": {"description", "memo", "details", "narrative", "particulars", "memo/description"},
    "debit": {"debit", "debits", "dr", "debit amount"},
    "credit": {"credit", "credits", "cr", "credit amount"},
    "amount": {"amount", "net", "net amount"},
}

_SUMMARY_LABELS = ("total", "balance", "opening balance", "beginning balance", "ending balance")


@dataclass(frozen=True)
class ColumnLayout:
    """Column indices of a grid; None where the column is absent."""

    header_row: Optional[int] = None
    date: Optional[int] = None
    reference: Optional[int] = None
    account: Optional[int] = None
    account_name: Optional[int] = None
    description: Optional[int] = None
    debit: Optional[int] = None
    credit: Optional[int] = None
    amount: Optional[int] = None

    @property
    def first_data_row(self) -> int:
        return 0 if self.header_row is None else self.header_row + 1

    @property
    def has_amounts(self) -> bool:
        return self.debit is not None or self.credit is not None or self.amount is not None


@dataclass
class ParseContext:
    """Inputs shared by the format parsers."""

    layout: Optional[ColumnLayout] = None
    today: Optional[date] = None
    warnings: list[str] = field(default_factory=list)


@dataclass
class FormatParseResult:
    """What a format parser extracts from a grid."""

    candidates: list[ImportCandidate] = field(default_factory=list)
    account_sections: list[AccountSection] = field(default_factory=list)
    extracted_data: list[ExtractedTransaction] = field(default_factory=list)
    unclassified_rows: list[int] = field(default_factory=list)


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _cell(row: Sequence[Any], index: Optional[int]) -> Any:
    if index is None or index >= len(row):
        return None
    return row[index]


def _is_blank(row: Sequence[Any]) -> bool:
    return all(not _text(cell) for cell in row)


def _normalize_header(value: Any) -> str:
    return re.sub(r"\s+", " ", _text(value).lower()).rstrip(":")


def detect_columns(grid: Sequence[Sequence[Any]]) -> Optional[ColumnLayout]:
    """Find a header row in the first rows of a grid.

    A row counts as the header when at least two of its cells are known
    column keywords. Returns None when no such row exists.
    """
    for row_index, row in enumerate(grid[:HEADER_SCAN_ROWS]):
        found: dict[str, int] = {}
        for col_index, cell in enumerate(row):
            name = _normalize_header(cell)
            if not name:
                continue
            for column, keywords in _HEADER_KEYWORDS.items():
                if name in keywords and column not in found:
                    found[column] = col_index
                    break
        if len(found) >= 2:
            return ColumnLayout(header_row=row_index, **found)
    return None


def find_reference(row: Sequence[Any], layout: Optional[ColumnLayout] = None) -> Optional[str]:
    """Return the reference-code token of a row, if any."""
    if layout is not None and layout.reference is not None:
        match = _REFERENCE_RE.search(_text(_cell(row, layout.reference)))
        if match:
            return match.group(0).upper()
    for cell in row:
        if not isinstance(cell, str):
            continue
        match = _REFERENCE_RE.search(cell)
        if match:
            return match.group(0).upper()
    return None


def find_date(row: Sequence[Any], layout: Optional[ColumnLayout] = None) -> Optional[date]:
    """Return the entry date of a row.

    The date column is read directly (serial numbers allowed); otherwise the
    first date-shaped cell wins.
    """
    if layout is not None and layout.date is not None:
        value = _cell(row, layout.date)
        if _text(value):
            parsed = parse_cell_date(value)
            if parsed is not None:
                return parsed
    for cell in row:
        if looks_like_date(cell):
            return parse_cell_date(cell)
    return None


def row_amounts(row: Sequence[Any], layout: ColumnLayout) -> tuple[Decimal, Decimal]:
    """Return the (debit, credit) of a row, both non-negative.

    Negative amounts move to the opposite side. A single signed amount column
    is a debit when positive.
    """
    debit = credit = ZERO
    if layout.debit is not None or layout.credit is not None:
        raw_debit = parse_cell_amount(_cell(row, layout.debit)) or ZERO
        raw_credit = parse_cell_amount(_cell(row, layout.credit)) or ZERO
        for value, is_debit in ((raw_debit, True), (raw_credit, False)):
            if value < 0:
                is_debit = not is_debit
                value = -value
            if is_debit:
                debit += value
            else:
                credit += value
    elif layout.amount is not None:
        amount = parse_cell_amount(_cell(row, layout.amount)) or ZERO
        if amount > 0:
            debit = amount
        else:
            credit = -amount

    # A line is one-sided; net anything else
    if debit > 0 and credit > 0:
        net = debit - credit
        debit, credit = (net, ZERO) if net > 0 else (ZERO, -net)
    return debit, credit


def _is_summary_row(row: Sequence[Any]) -> bool:
    for cell in row:
        text = _text(cell).lower()
        if text:
            return text.startswith(_SUMMARY_LABELS)
    return False


def _flush(candidate: Optional[ImportCandidate], result: FormatParseResult, context: ParseContext) -> None:
    if candidate is None:
        return
    label = candidate.reference or f"row {candidate.row_number}"
    if not candidate.lines:
        context.warnings.append(f"Entry {label} has no lines and was ignored")
        return
    if candidate.entry_date is None:
        candidate.entry_date = parse_date_or_today(
            None, candidate.warnings, f"Entry {label}", context.today
        )
        context.warnings.append(f"Entry {label}: no date found; using today")
    candidate.recompute_totals()
    if not candidate.is_balanced:
        context.warnings.append(
            f"Entry {label} is unbalanced: debits {candidate.total_debit}, "
            f"credits {candidate.total_credit}"
        )
    result.candidates.append(candidate)


class FormatDetector(ABC):
    """A recognizable general-ledger export layout."""

    name: str = ""

    @abstractmethod
    def detect(self, grid: Sequence[Sequence[Any]]) -> bool:
        """Return True if the grid looks like this format."""

    @abstractmethod
    def default_layout(self) -> ColumnLayout:
        """Positional columns used when the grid has no header row."""

    @abstractmethod
    def parse(self, grid: Sequence[Sequence[Any]], context: ParseContext) -> FormatParseResult:
        """Extract candidate entries from the grid."""

    def layout_for(self, grid: Sequence[Sequence[Any]], context: ParseContext) -> ColumnLayout:
        layout = context.layout or detect_columns(grid)
        if layout is None or not layout.has_amounts:
            default = self.default_layout()
            if layout is not None:
                return ColumnLayout(
                    header_row=layout.header_row,
                    **{
                        name: getattr(layout, name) if getattr(layout, name) is not None
                        else getattr(default, name)
                        for name in (
                            "date", "reference", "account", "account_name",
                            "description", "debit", "credit", "amount",
                        )
                    },
                )
            return default
        return layout


class JournalEntryFormat(FormatDetector):
    """Journal listing: each entry starts at a row carrying its reference code."""

    name = "JOURNAL_ENTRY"

    def detect(self, grid: Sequence[Sequence[Any]]) -> bool:
        return any(find_reference(row) is not None for row in grid)

    def default_layout(self) -> ColumnLayout:
        return ColumnLayout(date=0, reference=1, account=2, description=3, debit=4, credit=5)

    def _line_account(self, row: Sequence[Any], layout: ColumnLayout) -> Optional[tuple[str, str]]:
        found = extract_account_number(_cell(row, layout.account), min_numeric_digits=4)
        if found is not None:
            return found
        for index, cell in enumerate(row):
            if index in (
                layout.debit, layout.credit, layout.amount,
                layout.date, layout.reference, layout.description,
            ):
                continue
            if looks_like_date(cell):
                continue
            found = extract_account_number(cell)
            if found is not None:
                return found
        return None

    def parse(self, grid: Sequence[Sequence[Any]], context: ParseContext) -> FormatParseResult:
        layout = self.layout_for(grid, context)
        result = FormatParseResult()
        current: Optional[ImportCandidate] = None

        for index in range(layout.first_data_row, len(grid)):
            row = grid[index]
            row_number = index + 1
            if _is_blank(row):
                continue

            reference = find_reference(row, layout)
            row_date = find_date(row, layout)
            is_boundary = reference is not None and (
                current is None or reference != current.reference
            )
            if is_boundary:
                _flush(current, result, context)
                current = ImportCandidate(
                    reference=reference,
                    entry_date=row_date,
                    description=_text(_cell(row, layout.description)) or None,
                    source_format=self.name,
                    row_number=row_number,
                )
            elif current is not None and current.entry_date is None and row_date is not None:
                # Date arrived on a row after the reference row
                current.entry_date = row_date

            account = self._line_account(row, layout)
            debit, credit = row_amounts(row, layout)
            if account is None or (debit == 0 and credit == 0):
                if not is_boundary:
                    result.unclassified_rows.append(row_number)
                continue

            if current is None:
                current = ImportCandidate(
                    reference=None,
                    entry_date=row_date,
                    description=None,
                    source_format=self.name,
                    row_number=row_number,
                )
                context.warnings.append(
                    f"Row {row_number}: line before any reference code; grouped without reference"
                )

            number, trailing_name = account
            current.lines.append(
                CandidateLine(
                    account_number=number,
                    account_name=_text(_cell(row, layout.account_name)) or trailing_name or None,
                    debit=debit,
                    credit=credit,
                    description=_text(_cell(row, layout.description)) or None,
                    row_number=row_number,
                )
            )

        _flush(current, result, context)
        return result


class SectionedLedgerFormat(FormatDetector):
    """General ledger grouped under account header rows."""

    name = "GENERAL_LEDGER"

    def detect(self, grid: Sequence[Sequence[Any]]) -> bool:
        return any(
            row and extract_account_number(row[0], min_numeric_digits=4) is not None
            for row in grid
        )

    def default_layout(self) -> ColumnLayout:
        return ColumnLayout(date=1, reference=2, description=3, debit=4, credit=5)

    def find_sections(self, grid: Sequence[Sequence[Any]], first_row: int) -> list[AccountSection]:
        """Record every account header row; sections end before the next header."""
        sections: list[AccountSection] = []
        for index in range(first_row, len(grid)):
            row = grid[index]
            found = extract_account_number(row[0], min_numeric_digits=4) if row else None
            if found is None:
                continue
            number, name = found
            if not name:
                name = next((_text(c) for c in row[1:] if isinstance(c, str) and _text(c)), "")
            if sections:
                sections[-1].end_row = index
            sections.append(
                AccountSection(
                    account_number=number, account_name=name, start_row=index + 1, end_row=len(grid)
                )
            )
        return sections

    def parse(self, grid: Sequence[Sequence[Any]], context: ParseContext) -> FormatParseResult:
        layout = self.layout_for(grid, context)
        result = FormatParseResult()
        result.account_sections = self.find_sections(grid, layout.first_data_row)

        for section in result.account_sections:
            # start_row is 1-based, so it is also the index of the first row after the header
            for index in range(section.start_row, section.end_row):
                row = grid[index]
                row_number = index + 1
                if _is_blank(row) or _is_summary_row(row):
                    continue
                debit, credit = row_amounts(row, layout)
                if debit == 0 and credit == 0:
                    continue

                entry_date = find_date(row, layout)
                if entry_date is None:
                    entry_date = parse_date_or_today(
                        _cell(row, layout.date), context.warnings, f"Row {row_number}", context.today
                    )
                reference = find_reference(row, layout) or _text(_cell(row, layout.reference)) or None
                result.extracted_data.append(
                    ExtractedTransaction(
                        account_number=section.account_number,
                        account_name=section.account_name,
                        entry_date=entry_date,
                        description=_text(_cell(row, layout.description)) or None,
                        reference=reference,
                        debit=debit,
                        credit=credit,
                        row_number=row_number,
                    )
                )
                section.transaction_count += 1
                section.total_debit += debit
                section.total_credit += credit

        result.candidates = self.group(result.extracted_data, context)
        return result

    def group(
        self, transactions: Sequence[ExtractedTransaction], context: ParseContext
    ) -> list[ImportCandidate]:
        """Group transactions into entries by (reference, date) or (date, description)."""
        groups: dict[tuple, ImportCandidate] = {}
        for txn in transactions:
            if txn.reference:
                key: tuple = ("ref", txn.reference, txn.entry_date)
            else:
                key = ("desc", txn.entry_date, (txn.description or "").lower())
            candidate = groups.get(key)
            if candidate is None:
                candidate = ImportCandidate(
                    reference=txn.reference,
                    entry_date=txn.entry_date,
                    description=txn.description,
                    source_format=self.name,
                    row_number=txn.row_number,
                )
                groups[key] = candidate
            candidate.lines.append(
                CandidateLine(
                    account_number=txn.account_number,
                    account_name=txn.account_name,
                    debit=txn.debit,
                    credit=txn.credit,
                    description=txn.description,
                    row_number=txn.row_number,
                )
            )

        result = FormatParseResult()
        for candidate in sorted(groups.values(), key=lambda c: (c.entry_date, c.row_number or 0)):
            _flush(candidate, result, context)
        return result.candidates


DEFAULT_DETECTORS: tuple[FormatDetector, ...] = (JournalEntryFormat(), SectionedLedgerFormat())


def detect_format(
    grid: Sequence[Sequence[Any]],
    detectors: Sequence[FormatDetector] = DEFAULT_DETECTORS,
    warnings: Optional[list[str]] = None,
) -> FormatDetector:
    """Return the first detector that recognizes the grid.

    Falls back to the sectioned ledger format when nothing matches.
    """
    for detector in detectors:
        if detector.detect(grid):
            return detector
    if warnings is not None:
        warnings.append("No journal references or account sections found")
    return next(
        (d for d in detectors if isinstance(d, SectionedLedgerFormat)), SectionedLedgerFormat()
    )
