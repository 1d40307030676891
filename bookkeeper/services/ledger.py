"""
Ledger aggregation by replaying posted entries.

Balances are derived: an account's balance is the signed sum (debit
positive) of every posted line against it, in date order with creation order
breaking ties. Opening balances arrive as posted entries like any other.
The per-account cache kept by the posting engine must always agree with a
replay; verify_balance checks that and rebuild_balances restores it.
"""
import logging
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from bookkeeper.database import Database
from bookkeeper.errors import NotFoundError
from bookkeeper.models.account import Account
from bookkeeper.models.accounting import JournalEntry, LedgerBalance
from bookkeeper.models.audit import ActionType, EntityType
from bookkeeper.models.ledger import AccountBalance, AccountLedger, BalanceCheck, LedgerRow
from bookkeeper.models.user import User
from bookkeeper.tools.money import ZERO

logger = logging.getLogger(__name__)

def replay_ledger(account: Account,
                  entries: Iterable[JournalEntry],
                  from_date: Optional[datetime] = None,
                  to_date: Optional[datetime] = None) -> AccountLedger:
    """
    Walk posted entries (already in replay order) and produce the ledger for
    [from_date, to_date]. Movements before from_date roll into the opening
    balance, so any window can be produced on its own.
    """
    opening = ZERO
    running = ZERO
    rows: List[LedgerRow] = []

    for entry in entries:
        if to_date is not None and entry.date > to_date:
            break
        for line in entry.lines:
            if line.account_code != account.code:
                continue
            running += line.net
            if from_date is not None and entry.date < from_date:
                opening = running
                continue
            rows.append(LedgerRow(
                entry_id=entry.entry_id,
                date=entry.date,
                description=entry.description,
                line_description=line.description,
                reference_number=entry.reference_number,
                debit_amount=line.debit_amount,
                credit_amount=line.credit_amount,
                running_balance=running
            ))

    return AccountLedger(
        account_code=account.code,
        account_name=account.name,
        account_type=account.type,
        from_date=from_date,
        to_date=to_date,
        opening_balance=opening,
        entries=rows,
        closing_balance=running
    )

def replay_totals(entries: Iterable[JournalEntry],
                  as_of: Optional[datetime] = None) -> Dict[str, Tuple[Decimal, Decimal]]:
    """Debit and credit movement per account over posted entries up to as_of."""
    totals: Dict[str, list] = defaultdict(lambda: [ZERO, ZERO])
    for entry in entries:
        if as_of is not None and entry.date > as_of:
            continue
        for line in entry.lines:
            totals[line.account_code][0] += line.debit_amount
            totals[line.account_code][1] += line.credit_amount
    return {code: (debit, credit) for code, (debit, credit) in totals.items()}

class LedgerAggregator:
    def __init__(self, db: Database):
        self.db = db

    async def _account(self, code: str) -> Account:
        account = await self.db.accounts.get_by_code(code)
        if not account:
            raise NotFoundError(f"Account {code} not found", {"code": code})
        return account

    async def get_account_ledger(self,
                                 code: str,
                                 from_date: Optional[datetime] = None,
                                 to_date: Optional[datetime] = None) -> AccountLedger:
        account = await self._account(code)
        # Earlier entries are needed to carry the balance into the window
        entries = await self.db.journals.posted_entries(account_code=code, to_date=to_date)
        return replay_ledger(account, entries, from_date=from_date, to_date=to_date)

    async def get_account_balance(self, code: str, as_of: Optional[datetime] = None) -> AccountBalance:
        await self._account(code)
        entries = await self.db.journals.posted_entries(account_code=code, to_date=as_of)
        debit, credit = replay_totals(entries, as_of).get(code, (ZERO, ZERO))
        return AccountBalance.from_totals(code, debit, credit, as_of_date=as_of)

    async def verify_balance(self, code: str) -> BalanceCheck:
        """Compare the incrementally maintained cache with a replay from scratch."""
        replayed = await self.get_account_balance(code)
        cached = await self.db.balances.get_by_code(code)
        cached_net = cached.net_balance if cached else ZERO
        drift = replayed.net_balance - cached_net
        if drift != ZERO:
            logger.warning(f"Balance drift on {code}: cached {cached_net}, replayed {replayed.net_balance}")
        return BalanceCheck(
            account_code=code,
            cached_balance=cached_net,
            replayed_balance=replayed.net_balance,
            drift=drift,
            is_consistent=drift == ZERO
        )

    async def rebuild_balances(self, user: User) -> int:
        """Recompute every cached balance from posted entries."""
        entries = await self.db.journals.posted_entries()
        balances = [
            LedgerBalance(account_code=code, debit_total=debit, credit_total=credit)
            for code, (debit, credit) in sorted(replay_totals(entries).items())
        ]
        async with self.db.transaction() as session:
            count = await self.db.balances.replace_all(balances, session=session)
            await self.db.audit.log_action(
                EntityType.LEDGER, "account_balances", user.as_actor(), ActionType.SYSTEM_EVENT,
                f"Rebuilt {count} account balances from {len(entries)} posted entries",
                session=session
            )
        logger.info(f"Rebuilt {count} account balances")
        return count
