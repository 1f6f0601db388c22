"""Turn a raw general-ledger grid into a previewable parse result."""

import logging
from datetime import date
from typing import Any, Iterable, Optional, Sequence

from ledgerline.domain.entities import (
    ZERO,
    Account,
    AccountMatch,
    CandidateLine,
    ParseResult,
)
from ledgerline.domain.gl_formats import (
    DEFAULT_DETECTORS,
    FormatDetector,
    ParseContext,
    detect_columns,
    detect_format,
)
from ledgerline.domain.journal import check_balanced
from ledgerline.utils.account_matcher import AccountIndex

logger = logging.getLogger(__name__)


class GLNormalizer:
    """Parse general-ledger grids against a client's chart of accounts.

    Parsing never writes anything. Malformed rows are reported as warnings or
    unclassified rows instead of aborting the parse.
    """

    def __init__(
        self,
        accounts: Iterable[Account] = (),
        detectors: Sequence[FormatDetector] = DEFAULT_DETECTORS,
    ):
        self.index = AccountIndex.build(accounts)
        self.detectors = detectors

    def normalize(
        self,
        grid: Sequence[Sequence[Any]],
        file_name: Optional[str] = None,
        today: Optional[date] = None,
    ) -> ParseResult:
        """Detect the file format and extract candidate journal entries.

        Args:
            grid: Rows of raw cell values
            file_name: Optional source file name, for display
            today: Fallback date for entries without one

        Returns:
            ParseResult with candidates, account matches and warnings
        """
        warnings: list[str] = []
        if not grid:
            return ParseResult(
                detected_format=self.detectors[-1].name,
                file_name=file_name,
                warnings=["File contains no rows"],
            )

        detector = detect_format(grid, self.detectors, warnings)
        context = ParseContext(layout=detect_columns(grid), today=today, warnings=warnings)
        parsed = detector.parse(grid, context)
        logger.debug(
            "Parsed %s as %s: %d candidates, %d unclassified rows",
            file_name or "grid", detector.name, len(parsed.candidates), len(parsed.unclassified_rows),
        )

        result = ParseResult(
            detected_format=detector.name,
            file_name=file_name,
            total_rows=len(grid),
            journal_entries=parsed.candidates,
            account_sections=parsed.account_sections,
            extracted_data=parsed.extracted_data,
            warnings=warnings,
            unclassified_rows=parsed.unclassified_rows,
        )

        # Sections list every account even when they have no transactions
        for section in parsed.account_sections:
            self._match(result, section.account_number, section.account_name)

        total_debits = total_credits = ZERO
        for candidate in parsed.candidates:
            for line in candidate.lines:
                self._resolve_line(result, line)
            total_debits += candidate.total_debit
            total_credits += candidate.total_credit

        result.total_debits = total_debits
        result.total_credits = total_credits
        result.is_balanced = check_balanced(total_debits, total_credits)
        if not result.is_balanced:
            warnings.append(
                f"File is unbalanced: debits {total_debits}, credits {total_credits}"
            )
        return result

    def _match(self, result: ParseResult, number: str, name: Optional[str]) -> AccountMatch:
        match = result.account_matches.get(number)
        if match is not None:
            return match

        account = self.index.lookup(number)
        suggestion = None
        if account is None:
            suggested = self.index.suggest(name)
            suggestion = suggested.number if suggested is not None else None
        match = AccountMatch(
            account_number=number,
            account_id=account.id if account is not None else None,
            account_name=account.name if account is not None else (name or ""),
            suggestion=suggestion,
        )
        result.account_matches[number] = match
        return match

    def _resolve_line(self, result: ParseResult, line: CandidateLine) -> None:
        match = self._match(result, line.account_number, line.account_name)
        line.resolved_account_id = match.account_id
        match.transaction_count += 1
        match.total_debit += line.debit
        match.total_credit += line.credit
