import pytest
from datetime import datetime
from decimal import Decimal

from bookkeeper.errors import ValidationError
from bookkeeper.models.account import BalanceSide
from tests.fakes import make_entry

@pytest.mark.asyncio
async def test_cash_sale_posts_to_both_ledgers(chart, engine, ledger, reports, accountant):
    draft = await engine.create_entry(make_entry(
        [("1100", 1000, 0), ("4100", 0, 1000)],
        date=datetime(2024, 7, 16), description="Cash sale, bill 0042"
    ), accountant)
    await engine.post(draft.entry_id, accountant)

    cash = await ledger.get_account_balance("1100")
    assert cash.balance == Decimal("1000")
    assert cash.balance_type == BalanceSide.DEBIT

    sales = await ledger.get_account_balance("4100")
    assert sales.balance == Decimal("1000")
    assert sales.balance_type == BalanceSide.CREDIT

    trial = await reports.trial_balance()
    assert trial.is_balanced is True

@pytest.mark.asyncio
async def test_line_on_both_sides_never_reaches_storage(chart, engine, fake_db, accountant):
    with pytest.raises(ValidationError) as exc:
        await engine.create_entry(make_entry([("1100", 500, 200)]), accountant)
    assert exc.value.reason == "LINE_BOTH_SIDES"
    assert exc.value.details["index"] == 0
    assert fake_db.journals.docs == {}

@pytest.mark.asyncio
async def test_short_credit_is_unbalanced_by_100(chart, engine, accountant):
    with pytest.raises(ValidationError) as exc:
        await engine.create_entry(make_entry([("1100", 1000, 0), ("4100", 0, 900)]), accountant)
    assert exc.value.reason == "UNBALANCED"
    assert exc.value.details["difference"] == 100.0
