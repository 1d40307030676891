from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, Optional
from motor.motor_asyncio import AsyncIOMotorClientSession
from bookkeeper.repositories.base import BaseRepository
from bookkeeper.models.accounting import JournalEntry, LedgerBalance
from bookkeeper.tools.money import ZERO

class BalanceRepository(BaseRepository[LedgerBalance]):
    """Per-account running totals. Source of truth stays the posted entries."""

    async def apply_entry(self, entry: JournalEntry, session: AsyncIOMotorClientSession = None) -> None:
        totals: Dict[str, list] = defaultdict(lambda: [ZERO, ZERO])
        for line in entry.lines:
            totals[line.account_code][0] += line.debit_amount
            totals[line.account_code][1] += line.credit_amount

        now = datetime.utcnow()
        for account_code, (debit, credit) in totals.items():
            await self.collection.update_one(
                {"account_code": account_code},
                {
                    "$inc": {"debit_total": debit, "credit_total": credit},
                    "$set": {"updated_at": now}
                },
                upsert=True,
                session=session
            )

    async def get_by_code(self, account_code: str) -> Optional[LedgerBalance]:
        return await self.get_by_field("account_code", account_code)

    async def replace_all(self, balances: Iterable[LedgerBalance], session: AsyncIOMotorClientSession = None) -> int:
        docs = [b.to_mongo() for b in balances]
        await self.collection.delete_many({}, session=session)
        if docs:
            await self.collection.insert_many(docs, session=session)
        return len(docs)
