"""Tests for JournalService."""

import pytest
from datetime import date
from decimal import Decimal
from ledgerline.domain.entities import EntryStatus, LineDraft
from ledgerline.domain.errors import NotFoundError, UnbalancedEntryError, ValidationError
from ledgerline.domain.journal import check_balanced


def _lines(debit_account, credit_account, amount="100"):
    amount = Decimal(amount)
    return [
        LineDraft(account_id=debit_account, debit_amount=amount),
        LineDraft(account_id=credit_account, credit_amount=amount),
    ]


def test_check_balanced_tolerance():
    assert check_balanced(Decimal("100"), Decimal("100.001"))
    assert not check_balanced(Decimal("100"), Decimal("100.01"))


def test_create_entry(journal_service, sample_client, sample_accounts):
    entry_id = journal_service.create_entry(
        client_id=sample_client.id,
        entry_date=date(2024, 2, 1),
        lines=_lines(sample_accounts["Rent"], sample_accounts["Bank"]),
        description="February rent",
        reference="JE-0001",
    )
    entry = journal_service.get_entry(entry_id)
    assert entry.reference == "JE-0001"
    assert entry.status == EntryStatus.POSTED
    assert entry.total_debit == entry.total_credit == Decimal("100")
    assert entry.is_balanced


def test_unbalanced_entry_rejected(journal_service, sample_client, sample_accounts):
    lines = [
        LineDraft(sample_accounts["Rent"], debit_amount=Decimal("100")),
        LineDraft(sample_accounts["Bank"], credit_amount=Decimal("90")),
    ]
    with pytest.raises(UnbalancedEntryError):
        journal_service.create_entry(sample_client.id, date(2024, 2, 1), lines)
    assert journal_service.list_entries(sample_client.id) == []


def test_entry_within_tolerance_accepted(journal_service, sample_client, sample_accounts):
    lines = [
        LineDraft(sample_accounts["Rent"], debit_amount=Decimal("100.0005")),
        LineDraft(sample_accounts["Bank"], credit_amount=Decimal("100")),
    ]
    journal_service.create_entry(sample_client.id, date(2024, 2, 1), lines)
    assert len(journal_service.list_entries(sample_client.id)) == 1


@pytest.mark.parametrize(
    "lines_factory",
    [
        lambda a: [],
        lambda a: [LineDraft(a["Rent"], Decimal("-5")), LineDraft(a["Bank"], Decimal("-5"))],
        lambda a: [LineDraft(a["Rent"], Decimal("5"), Decimal("5"))],
    ],
    ids=["no-lines", "negative", "both-sides"],
)
def test_malformed_lines(journal_service, sample_client, sample_accounts, lines_factory):
    with pytest.raises(ValidationError):
        journal_service.create_entry(sample_client.id, date(2024, 2, 1), lines_factory(sample_accounts))


def test_unknown_or_foreign_account(journal_service, account_service, client_service, sample_client, sample_accounts):
    with pytest.raises(NotFoundError):
        journal_service.create_entry(sample_client.id, date(2024, 2, 1), _lines(9999, sample_accounts["Bank"]))

    other = client_service.create_client("Other Co")
    foreign = account_service.create_account(other, "106-000", "Bank", "asset")
    with pytest.raises(ValidationError):
        journal_service.create_entry(sample_client.id, date(2024, 2, 1), _lines(foreign, sample_accounts["Bank"]))


def test_inactive_account_rejected(journal_service, account_service, sample_client, sample_accounts):
    account_service.set_active(sample_accounts["Rent"], False)
    with pytest.raises(ValidationError):
        journal_service.create_entry(
            sample_client.id, date(2024, 2, 1), _lines(sample_accounts["Rent"], sample_accounts["Bank"])
        )


def test_draft_then_post(journal_service, sample_client, sample_accounts):
    entry_id = journal_service.create_entry(
        sample_client.id,
        date(2024, 2, 1),
        _lines(sample_accounts["Rent"], sample_accounts["Bank"]),
        status=EntryStatus.DRAFT,
    )
    assert journal_service.get_entry(entry_id).status == EntryStatus.DRAFT
    journal_service.post_entry(entry_id)
    assert journal_service.get_entry(entry_id).status == EntryStatus.POSTED


def test_replace_entry(journal_service, sample_client, sample_accounts):
    entry_id = journal_service.create_entry(
        sample_client.id, date(2024, 2, 1), _lines(sample_accounts["Rent"], sample_accounts["Bank"])
    )
    journal_service.replace_entry(
        entry_id, _lines(sample_accounts["Office Expense"], sample_accounts["Bank"], "40"), description="Fixed"
    )
    entry = journal_service.get_entry(entry_id)
    assert entry.total_debit == Decimal("40")
    assert entry.lines[0].account_id == sample_accounts["Office Expense"]

    with pytest.raises(UnbalancedEntryError):
        journal_service.replace_entry(
            entry_id,
            [LineDraft(sample_accounts["Rent"], Decimal("1")), LineDraft(sample_accounts["Bank"], credit_amount=Decimal("2"))],
        )
    # Failed replacement leaves the entry untouched
    assert journal_service.get_entry(entry_id).total_debit == Decimal("40")


def test_reverse_entry(journal_service, sample_client, sample_accounts):
    entry_id = journal_service.create_entry(
        sample_client.id,
        date(2024, 2, 1),
        _lines(sample_accounts["Rent"], sample_accounts["Bank"]),
        reference="JE-0009",
    )
    reversal_id = journal_service.reverse_entry(entry_id, date(2024, 2, 2))
    reversal = journal_service.get_entry(reversal_id)
    assert reversal.reference == "REV-JE-0009"
    assert reversal.lines[0].credit_amount == Decimal("100")
    assert reversal.lines[1].debit_amount == Decimal("100")


def test_reverse_entry_without_reference(journal_service, sample_client, sample_accounts):
    entry_id = journal_service.create_entry(
        sample_client.id, date(2024, 2, 1), _lines(sample_accounts["Rent"], sample_accounts["Bank"])
    )
    reversal_id = journal_service.reverse_entry(entry_id, date(2024, 2, 2))
    assert journal_service.get_entry(reversal_id).reference == f"REV-{entry_id}"


def test_list_entries_filters(journal_service, sample_client, sample_accounts, post_entry):
    post_entry(date(2024, 1, 10), sample_accounts["Rent"], sample_accounts["Bank"], 10)
    post_entry(date(2024, 2, 10), sample_accounts["Office Expense"], sample_accounts["Bank"], 20)
    post_entry(date(2024, 3, 10), sample_accounts["Rent"], sample_accounts["Bank"], 30)

    feb_on = journal_service.list_entries(sample_client.id, start_date=date(2024, 2, 1))
    assert [e.entry_date for e in feb_on] == [date(2024, 2, 10), date(2024, 3, 10)]

    rent_only = journal_service.list_entries(sample_client.id, account_id=sample_accounts["Rent"])
    assert [e.total_debit for e in rent_only] == [Decimal("10"), Decimal("30")]


def test_delete_entry(journal_service, sample_client, sample_accounts, post_entry):
    entry_id = post_entry(date(2024, 1, 10), sample_accounts["Rent"], sample_accounts["Bank"], 10)
    journal_service.delete_entry(entry_id)
    assert journal_service.get_entry(entry_id) is None
    with pytest.raises(NotFoundError):
        journal_service.delete_entry(entry_id)
