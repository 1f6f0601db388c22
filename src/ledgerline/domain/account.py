"""Account registry domain service."""

import logging
from typing import Optional
from ledgerline.database.base import Database
from ledgerline.domain.entities import Account as AccountEntity, AccountType
from ledgerline.domain.errors import (
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
    account_change_blocked,
    account_delete_blocked,
    account_not_found,
    client_not_found,
    duplicate_account_number,
)
from ledgerline.utils.account_matcher import AccountIndex, digits_only

logger = logging.getLogger(__name__)

# Conventional chart-of-accounts numbering by leading digit
_TYPE_BY_LEADING_DIGIT = {
    "1": AccountType.ASSET,
    "2": AccountType.LIABILITY,
    "3": AccountType.EQUITY,
    "4": AccountType.INCOME,
    "5": AccountType.COST_OF_SALES,
    "6": AccountType.EXPENSE,
    "7": AccountType.EXPENSE,
    "8": AccountType.OTHER_INCOME,
    "9": AccountType.OTHER_EXPENSE,
}


def guess_account_type(number: str, default: AccountType) -> AccountType:
    """Best-guess an account type from the leading digit of its number."""
    digits = digits_only(number or "")
    if not digits:
        return default
    return _TYPE_BY_LEADING_DIGIT.get(digits[0], default)


def is_retained_earnings(account: AccountEntity) -> bool:
    """Return True for equity accounts that hold prior years' earnings."""
    return (
        account.account_type == AccountType.EQUITY
        and "retained earnings" in account.name.lower()
    )


def parse_account_type(value: str | AccountType) -> AccountType:
    """Parse an account type name.

    Raises:
        ValidationError: If the value is not a known account type
    """
    if isinstance(value, AccountType):
        return value
    normalized = str(value).strip().lower().replace(" ", "_").replace("-", "_")
    try:
        return AccountType(normalized)
    except ValueError:
        valid = ", ".join(t.value for t in AccountType)
        raise ValidationError(f"Invalid account type '{value}'. Must be one of: {valid}")


class AccountService:
    """Service for managing a client's chart of accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_account(
        self,
        client_id: int,
        number: str,
        name: str,
        account_type: AccountType | str,
        is_active: bool = True,
    ) -> int:
        """Create a new account.

        Args:
            client_id: Owning client ID
            number: Account number (free text, often NNN-NNN)
            name: Account name
            account_type: Account type
            is_active: Whether the account accepts new postings

        Returns:
            Account ID

        Raises:
            NotFoundError: If client not found
            ValidationError: If number/name is empty or type invalid
            ConflictError: If the number (in any canonical form) already exists
        """
        if self.db.get_client(client_id) is None:
            raise NotFoundError(client_not_found(client_id))

        number = (number or "").strip()
        name = (name or "").strip()
        if not number:
            raise ValidationError("Account number cannot be empty")
        if not name:
            raise ValidationError("Account name cannot be empty")
        account_type = parse_account_type(account_type)

        # Check if an account with an equivalent number exists
        index = AccountIndex.build(self.db.list_accounts(client_id))
        if number in index:
            raise ConflictError(duplicate_account_number(number, client_id))

        account_id = self.db.create_account(
            client_id=client_id,
            number=number,
            name=name,
            account_type=account_type,
            is_active=is_active,
        )
        logger.debug("Created account %s %s (%s) for client %s", number, name, account_type.value, client_id)
        return account_id

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def require_account(self, account_id: int) -> AccountEntity:
        """Get account by ID or raise NotFoundError."""
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def list_accounts(self, client_id: int, include_inactive: bool = True) -> list[AccountEntity]:
        """List a client's accounts.

        Args:
            client_id: Client ID
            include_inactive: If False, only active accounts are returned

        Returns:
            List of account entities ordered by number
        """
        return self.db.list_accounts(client_id, include_inactive=include_inactive)

    def build_index(self, client_id: int) -> AccountIndex:
        """Build a canonical-number lookup index of a client's accounts."""
        return AccountIndex.build(self.db.list_accounts(client_id))

    def find_by_number(self, client_id: int, number: str) -> Optional[AccountEntity]:
        """Find an account by number using canonical matching."""
        return self.build_index(client_id).lookup(number)

    def resolve_account(self, client_id: int, account: str | int) -> AccountEntity:
        """Resolve an account number or ID within a client.

        Account numbers win over IDs when a token could be both.

        Raises:
            NotFoundError: If no account matches
        """
        found = self.find_by_number(client_id, str(account))
        if found is not None:
            return found
        try:
            account_id = int(account)
        except (ValueError, TypeError):
            account_id = None
        if account_id is not None:
            by_id = self.db.get_account(account_id)
            if by_id is not None and by_id.client_id == client_id:
                return by_id
        raise NotFoundError(f"Account '{account}' not found for client {client_id}")

    def update_account(
        self,
        account_id: int,
        name: Optional[str] = None,
        is_active: Optional[bool] = None,
        number: Optional[str] = None,
        account_type: Optional[AccountType | str] = None,
    ) -> None:
        """Update an account.

        Name and status can always change. Number and type are frozen once
        any journal line references the account.

        Raises:
            NotFoundError: If account not found
            DependencyError: If number/type change is requested on a used account
            ConflictError: If the new number is already taken
        """
        account = self.require_account(account_id)

        if name is not None and not name.strip():
            raise ValidationError("Account name cannot be empty")

        new_type = parse_account_type(account_type) if account_type is not None else None
        number = number.strip() if number is not None else None
        changes_identity = (number is not None and number != account.number) or (
            new_type is not None and new_type != account.account_type
        )
        if changes_identity:
            line_count = self.db.get_account_line_count(account_id)
            if line_count > 0:
                raise DependencyError(account_change_blocked(account_id, line_count))

        if number is not None and number != account.number:
            others = [
                a for a in self.db.list_accounts(account.client_id) if a.id != account_id
            ]
            if number in AccountIndex.build(others):
                raise ConflictError(duplicate_account_number(number, account.client_id))

        self.db.update_account(
            account_id,
            name=name.strip() if name is not None else None,
            is_active=is_active,
            number=number,
            account_type=new_type,
        )

    def rename_account(self, account_id: int, name: str) -> None:
        """Rename an account."""
        self.update_account(account_id, name=name)

    def set_active(self, account_id: int, is_active: bool) -> None:
        """Activate or deactivate an account."""
        self.update_account(account_id, is_active=is_active)

    def delete_account(self, account_id: int) -> None:
        """Delete an account.

        Args:
            account_id: Account ID to delete

        Raises:
            NotFoundError: If account not found
            DependencyError: If journal lines reference the account
        """
        self.require_account(account_id)

        line_count = self.db.get_account_line_count(account_id)
        if line_count > 0:
            raise DependencyError(account_delete_blocked(account_id, line_count))

        self.db.delete_account(account_id)
