"""Shared pytest fixtures for ledgerline tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal
from pathlib import Path
import pytest

from ledgerline.database.factories import create_sqlite_database
from ledgerline.domain.account import AccountService
from ledgerline.domain.balances import BalanceService
from ledgerline.domain.client import ClientService
from ledgerline.domain.entities import AccountType, LineDraft
from ledgerline.domain.gl_import import GLImportService
from ledgerline.domain.journal import JournalService
from ledgerline.domain.reports import ReportService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def client_service(temp_db):
    """Create a ClientService with a temporary database."""
    return ClientService(temp_db)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def journal_service(temp_db):
    """Create a JournalService with a temporary database."""
    return JournalService(temp_db)


@pytest.fixture
def balance_service(temp_db):
    """Create a BalanceService with a temporary database."""
    return BalanceService(temp_db)


@pytest.fixture
def report_service(temp_db):
    """Create a ReportService with a temporary database."""
    return ReportService(temp_db)


@pytest.fixture
def import_service(temp_db):
    """Create a GLImportService with a temporary database."""
    return GLImportService(temp_db)


@pytest.fixture
def sample_client(client_service):
    """Create a calendar-year client."""
    client_id = client_service.create_client("Acme Ltd")
    return client_service.get_client(client_id)


SAMPLE_CHART = [
    ("106-000", "Bank", AccountType.ASSET),
    ("120-000", "Accounts Receivable", AccountType.ASSET),
    ("200-000", "Accounts Payable", AccountType.LIABILITY),
    ("300-000", "Owner Capital", AccountType.EQUITY),
    ("330-000", "Retained Earnings", AccountType.EQUITY),
    ("400-000", "Sales", AccountType.INCOME),
    ("500-000", "Cost of Goods Sold", AccountType.COST_OF_SALES),
    ("610-000", "Office Expense", AccountType.EXPENSE),
    ("620-000", "Rent", AccountType.EXPENSE),
    ("800-000", "Interest Income", AccountType.OTHER_INCOME),
    ("900-000", "Bank Fees", AccountType.OTHER_EXPENSE),
]


@pytest.fixture
def sample_accounts(account_service, sample_client):
    """Create a small chart of accounts. Returns account IDs keyed by name."""
    return {
        name: account_service.create_account(sample_client.id, number, name, account_type)
        for number, name, account_type in SAMPLE_CHART
    }


@pytest.fixture
def post_entry(journal_service, sample_client):
    """Return a helper posting a two-line entry: debit one account, credit another."""

    def _post(entry_date: date, debit_account: int, credit_account: int, amount, reference=None):
        amount = Decimal(str(amount))
        return journal_service.create_entry(
            client_id=sample_client.id,
            entry_date=entry_date,
            lines=[
                LineDraft(account_id=debit_account, debit_amount=amount),
                LineDraft(account_id=credit_account, credit_amount=amount),
            ],
            reference=reference,
        )

    return _post


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
