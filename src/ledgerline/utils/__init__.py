"""Utility functions for ledgerline."""

from ledgerline.utils.date_parser import parse_date, parse_cell_date
from ledgerline.utils.amount_parser import parse_amount, parse_cell_amount
from ledgerline.utils.account_matcher import AccountIndex, canonical_forms

__all__ = [
    "parse_date",
    "parse_cell_date",
    "parse_amount",
    "parse_cell_amount",
    "AccountIndex",
    "canonical_forms",
]
