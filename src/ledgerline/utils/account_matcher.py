"""Account-number canonicalisation and lookup.

Every place that compares an account number from a file with the chart of
accounts goes through ``canonical_forms`` so that ``106000``, ``106-000`` and
``106 000`` all land on the same account.
"""

import re
from typing import Any, Iterable, Optional

from ledgerline.domain.entities import Account


_HYPHENATED_RE = re.compile(r"^(\d{3})-(\d{3})\b")
_DIGITS_RE = re.compile(r"^(\d{4,8})\b")
_NAME_SEPARATORS = " \t-:·|"


def extract_account_number(
    value: Any, min_numeric_digits: int = 6
) -> Optional[tuple[str, str]]:
    """Split a cell into (account number, trailing name) if it starts with one.

    Recognized shapes are ``NNN-NNN`` and 4-8 bare digits. Numeric cells only
    count when they have at least ``min_numeric_digits`` digits, so spreadsheet
    serial dates and small amounts in arbitrary cells are not mistaken for
    account numbers. Pass 4 when the cell is known to hold an account.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    if isinstance(value, int):
        text = str(value)
        if max(min_numeric_digits, 4) <= len(text) <= 8:
            return text, ""
        return None

    text = str(value).strip()
    match = _HYPHENATED_RE.match(text) or _DIGITS_RE.match(text)
    if match is None:
        return None
    number = match.group(0)
    rest = text[match.end():].strip(_NAME_SEPARATORS)
    # "100-100.50" or "2024-01" style tails mean this was not an account number
    if rest[:1].isdigit() or text[match.end():match.end() + 1] in (".", "/", ","):
        return None
    return number, rest


def digits_only(token: str) -> str:
    return re.sub(r"\D", "", token)


def canonical_forms(token: Any) -> tuple[str, ...]:
    """Return the original, hyphenated 3+3 and digits-only forms of a token."""
    original = str(token).strip()
    if not original:
        return ()
    digits = digits_only(original)
    forms = [original]
    if len(digits) == 6:
        forms.append(f"{digits[:3]}-{digits[3:]}")
    if digits:
        forms.append(digits)
    # Preserve order, drop duplicates
    return tuple(dict.fromkeys(forms))


class AccountIndex:
    """Lookup index of a client's accounts keyed by every canonical form."""

    def __init__(self, accounts: Iterable[Account]):
        self._by_form: dict[str, Account] = {}
        self._by_name: dict[str, Account] = {}
        for account in accounts:
            self.add(account)

    @classmethod
    def build(cls, accounts: Iterable[Account]) -> "AccountIndex":
        return cls(accounts)

    def add(self, account: Account) -> None:
        """Index an account; earlier accounts keep precedence on collisions."""
        for form in canonical_forms(account.number):
            self._by_form.setdefault(form, account)
        self._by_name.setdefault(account.name.strip().lower(), account)

    def lookup(self, token: Any) -> Optional[Account]:
        """Return the account matching any canonical form of a token."""
        for form in canonical_forms(token):
            account = self._by_form.get(form)
            if account is not None:
                return account
        return None

    def suggest(self, name: Optional[str]) -> Optional[Account]:
        """Return an account with the same name, for unmatched numbers."""
        if not name:
            return None
        return self._by_name.get(name.strip().lower())

    def __contains__(self, token: Any) -> bool:
        return self.lookup(token) is not None

    def __len__(self) -> int:
        return len({account.id for account in self._by_form.values()})
