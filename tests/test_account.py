"""Tests for the account registry."""

import pytest
from datetime import date
from decimal import Decimal
from ledgerline.domain.account import guess_account_type, is_retained_earnings, parse_account_type
from ledgerline.domain.entities import AccountType
from ledgerline.domain.errors import ConflictError, DependencyError, NotFoundError, ValidationError


def test_create_and_get_account(account_service, sample_client):
    account_id = account_service.create_account(sample_client.id, "106-000", "Bank", "asset")
    account = account_service.get_account(account_id)
    assert account.number == "106-000"
    assert account.account_type == AccountType.ASSET
    assert account.is_active


def test_create_account_unknown_client(account_service):
    with pytest.raises(NotFoundError):
        account_service.create_account(9999, "106-000", "Bank", AccountType.ASSET)


def test_create_account_requires_number_and_name(account_service, sample_client):
    with pytest.raises(ValidationError):
        account_service.create_account(sample_client.id, "  ", "Bank", AccountType.ASSET)
    with pytest.raises(ValidationError):
        account_service.create_account(sample_client.id, "106-000", "", AccountType.ASSET)
    with pytest.raises(ValidationError):
        account_service.create_account(sample_client.id, "106-000", "Bank", "not-a-type")


def test_duplicate_number_in_any_canonical_form(account_service, sample_client):
    account_service.create_account(sample_client.id, "106-000", "Bank", AccountType.ASSET)
    with pytest.raises(ConflictError):
        account_service.create_account(sample_client.id, "106000", "Bank 2", AccountType.ASSET)


def test_same_number_for_different_clients(account_service, client_service, sample_client):
    other = client_service.create_client("Other Co")
    account_service.create_account(sample_client.id, "106-000", "Bank", AccountType.ASSET)
    account_service.create_account(other, "106-000", "Bank", AccountType.ASSET)
    assert len(account_service.list_accounts(other)) == 1


def test_resolve_account_by_number_or_id(account_service, sample_client, sample_accounts):
    bank_id = sample_accounts["Bank"]
    assert account_service.resolve_account(sample_client.id, "106000").id == bank_id
    assert account_service.resolve_account(sample_client.id, "106-000").id == bank_id
    assert account_service.resolve_account(sample_client.id, str(bank_id)).id == bank_id
    with pytest.raises(NotFoundError):
        account_service.resolve_account(sample_client.id, "999-999")


def test_rename_and_deactivate(account_service, sample_accounts):
    bank_id = sample_accounts["Bank"]
    account_service.rename_account(bank_id, "Operating Bank")
    account_service.set_active(bank_id, False)
    account = account_service.get_account(bank_id)
    assert account.name == "Operating Bank"
    assert not account.is_active


def test_number_and_type_frozen_once_used(account_service, sample_accounts, post_entry):
    bank_id = sample_accounts["Bank"]
    post_entry(date(2024, 1, 5), sample_accounts["Rent"], bank_id, 100)

    with pytest.raises(DependencyError):
        account_service.update_account(bank_id, number="107-000")
    with pytest.raises(DependencyError):
        account_service.update_account(bank_id, account_type=AccountType.LIABILITY)
    # Names can still change
    account_service.rename_account(bank_id, "Main Bank")


def test_renumber_unused_account(account_service, sample_accounts):
    account_service.update_account(sample_accounts["Bank"], number="107-000")
    assert account_service.get_account(sample_accounts["Bank"]).number == "107-000"
    with pytest.raises(ConflictError):
        account_service.update_account(sample_accounts["Bank"], number="120000")


def test_delete_account(account_service, sample_accounts, post_entry):
    account_service.delete_account(sample_accounts["Owner Capital"])
    assert account_service.get_account(sample_accounts["Owner Capital"]) is None

    post_entry(date(2024, 1, 5), sample_accounts["Rent"], sample_accounts["Bank"], Decimal("100"))
    with pytest.raises(DependencyError):
        account_service.delete_account(sample_accounts["Bank"])


@pytest.mark.parametrize(
    "number,expected",
    [
        ("106-000", AccountType.ASSET),
        ("2100", AccountType.LIABILITY),
        ("330-000", AccountType.EQUITY),
        ("400000", AccountType.INCOME),
        ("500-100", AccountType.COST_OF_SALES),
        ("610-000", AccountType.EXPENSE),
        ("800-000", AccountType.OTHER_INCOME),
        ("900-000", AccountType.OTHER_EXPENSE),
        ("0100", AccountType.EXPENSE),
        ("", AccountType.EXPENSE),
    ],
)
def test_guess_account_type(number, expected):
    assert guess_account_type(number, AccountType.EXPENSE) == expected


def test_is_retained_earnings(account_service, sample_accounts):
    assert is_retained_earnings(account_service.get_account(sample_accounts["Retained Earnings"]))
    assert not is_retained_earnings(account_service.get_account(sample_accounts["Owner Capital"]))


def test_parse_account_type():
    assert parse_account_type("Cost of Sales") == AccountType.COST_OF_SALES
    assert parse_account_type("other-income") == AccountType.OTHER_INCOME
