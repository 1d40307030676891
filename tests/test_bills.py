import pytest
from datetime import datetime
from decimal import Decimal

from bookkeeper.errors import ValidationError
from bookkeeper.models.accounting import EntryStatus, ReferenceType
from bookkeeper.models.bill import BillJournalRequest, BillKind
from bookkeeper.services.bills import BillJournalizer, bill_lines

@pytest.fixture
def journalizer(fake_db):
    return BillJournalizer(fake_db)

def bill(kind, account_code, settlement_account_code, taxable=1000, vat=130, total=1130, **kwargs):
    return BillJournalRequest(
        kind=kind,
        bill_number=kwargs.pop("bill_number", "B-001"),
        party_name=kwargs.pop("party_name", "Himalayan Traders"),
        date=datetime(2024, 8, 10),
        account_code=account_code,
        settlement_account_code=settlement_account_code,
        taxable_amount=taxable,
        vat_amount=vat,
        total_amount=total,
        **kwargs
    )

def shape(entry):
    return [(l.account_code, l.debit_amount, l.credit_amount) for l in entry.lines]

@pytest.mark.asyncio
async def test_purchase_bill_debits_input_vat(chart, journalizer, fake_db, accountant):
    entry = await journalizer.journalize(bill(BillKind.PURCHASE, "5300", "2100"), accountant)

    assert shape(entry) == [("5300", 1000, 0), ("VAT-INPUT", 130, 0), ("2100", 0, 1130)]
    assert entry.status == EntryStatus.DRAFT
    assert entry.reference_type == ReferenceType.INVOICE
    assert entry.reference_number == "B-001"
    assert entry.description == "Purchase from Himalayan Traders (bill B-001)"
    assert fake_db.balances.docs == {}

@pytest.mark.asyncio
async def test_sales_bill_credits_output_vat_and_posts(chart, journalizer, fake_db, reports, accountant):
    entry = await journalizer.journalize(bill(
        BillKind.SALES, "4100", "1200", taxable=10000, vat=1300, total=11300, status=EntryStatus.POSTED
    ), accountant)

    assert shape(entry) == [("4100", 0, 10000), ("VAT-OUTPUT", 0, 1300), ("1200", 11300, 0)]
    assert entry.is_posted
    assert fake_db.balances.docs["VAT-OUTPUT"].credit_total == Decimal("1300")

    vat = await reports.vat_report(datetime(2024, 8, 1), datetime(2024, 8, 31, 23, 59, 59))
    assert vat.net_vat_payable == Decimal("1300")
    assert (await reports.trial_balance()).is_balanced

@pytest.mark.asyncio
async def test_purchase_return_reverses_every_side(chart, journalizer, accountant):
    entry = await journalizer.journalize(bill(BillKind.PURCHASE_RETURN, "5300", "2100"), accountant)
    assert shape(entry) == [("5300", 0, 1000), ("VAT-INPUT", 0, 130), ("2100", 1130, 0)]
    assert entry.description.startswith("Purchase return to Himalayan Traders")

@pytest.mark.asyncio
async def test_sales_return_debits_output_vat(chart, journalizer, accountant):
    entry = await journalizer.journalize(bill(BillKind.SALES_RETURN, "4100", "1100"), accountant)
    assert shape(entry) == [("4100", 1000, 0), ("VAT-OUTPUT", 130, 0), ("1100", 0, 1130)]

@pytest.mark.asyncio
async def test_exempt_bill_has_no_vat_line(chart, journalizer, accountant):
    entry = await journalizer.journalize(
        bill(BillKind.PURCHASE, "5300", "1100", vat=0, total=1000, exempt=True), accountant
    )
    assert shape(entry) == [("5300", 1000, 0), ("1100", 0, 1000)]

@pytest.mark.asyncio
async def test_vat_mismatch_is_rejected(chart, journalizer, fake_db, accountant):
    with pytest.raises(ValidationError) as exc:
        await journalizer.journalize(bill(BillKind.PURCHASE, "5300", "2100", vat=100, total=1100), accountant)
    assert exc.value.reason == "VAT_MISMATCH"
    assert exc.value.details == {"bill_number": "B-001", "kind": "purchase"}
    assert fake_db.journals.docs == {}

@pytest.mark.asyncio
async def test_bill_against_unknown_account(chart, journalizer, accountant):
    with pytest.raises(ValidationError) as exc:
        await journalizer.journalize(bill(BillKind.PURCHASE, "5999", "2100"), accountant)
    assert exc.value.reason == "UNKNOWN_ACCOUNT"

def test_bill_lines_balance_within_a_cent():
    lines = bill_lines(bill(BillKind.SALES, "4100", "1100", taxable="99.99", vat="13.00", total="112.99"))
    assert sum(l.debit_amount for l in lines) == sum(l.credit_amount for l in lines)
    assert lines[1].description == "VAT on bill B-001"
