import pytest
from datetime import datetime
from decimal import Decimal

from bookkeeper.models.accounting import EntryStatus
from bookkeeper.models.account import BalanceSide
from tests.fakes import make_entry

async def post(engine, user, lines, day):
    return await engine.create_entry(
        make_entry(lines, date=datetime(2024, 3, day), status=EntryStatus.POSTED), user
    )

@pytest.mark.asyncio
async def test_account_ledger_running_balance(chart, engine, ledger, accountant):
    await post(engine, accountant, [("1100", 1000, 0), ("4100", 0, 1000)], 1)
    await post(engine, accountant, [("5300", 400, 0), ("1100", 0, 400)], 2)
    # Draft entries never show up in the ledger
    await engine.create_entry(make_entry([("1100", 999, 0), ("4100", 0, 999)]), accountant)

    result = await ledger.get_account_ledger("1100")
    assert result.running_balances == [Decimal("1000"), Decimal("600")]
    assert result.closing_balance == Decimal("600")

@pytest.mark.asyncio
async def test_same_day_entries_keep_creation_order(chart, engine, ledger, accountant):
    first = await post(engine, accountant, [("1100", 100, 0), ("4100", 0, 100)], 5)
    second = await post(engine, accountant, [("5300", 30, 0), ("1100", 0, 30)], 5)

    result = await ledger.get_account_ledger("1100")
    assert [row.entry_id for row in result.entries] == [first.entry_id, second.entry_id]

@pytest.mark.asyncio
async def test_balance_as_of(chart, engine, ledger, accountant):
    await post(engine, accountant, [("1100", 1000, 0), ("4100", 0, 1000)], 1)
    await post(engine, accountant, [("1100", 500, 0), ("4100", 0, 500)], 20)

    balance = await ledger.get_account_balance("4100", as_of=datetime(2024, 3, 10))
    assert balance.credit_total == Decimal("1000")
    assert balance.balance_type == BalanceSide.CREDIT

@pytest.mark.asyncio
async def test_cache_matches_replay(chart, engine, ledger, accountant):
    await post(engine, accountant, [("1100", 1000, 0), ("4100", 0, 1000)], 1)
    check = await ledger.verify_balance("1100")
    assert check.is_consistent is True
    assert check.cached_balance == check.replayed_balance == Decimal("1000")

@pytest.mark.asyncio
async def test_rebuild_repairs_drift(chart, engine, ledger, fake_db, accountant, admin):
    await post(engine, accountant, [("1100", 1000, 0), ("4100", 0, 1000)], 1)
    fake_db.balances.docs["1100"] = fake_db.balances.docs["1100"].model_copy(update={"debit_total": Decimal("7")})

    assert (await ledger.verify_balance("1100")).drift == Decimal("993")

    assert await ledger.rebuild_balances(admin) == 2
    assert (await ledger.verify_balance("1100")).is_consistent is True
    assert "Rebuilt 2 account balances" in fake_db.audit.details_for("account_balances")[0]
