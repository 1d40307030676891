import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from motor.motor_asyncio import AsyncIOMotorClientSession
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from bookkeeper.repositories.base import BaseRepository
from bookkeeper.models.accounting import EntryStatus, JournalEntry

# Replay order: entry date, then creation order for same-date entries
LEDGER_ORDER = [("date", ASCENDING), ("created_at", ASCENDING), ("_id", ASCENDING)]

class JournalRepository(BaseRepository[JournalEntry]):

    async def get_by_entry_id(self, entry_id: str, session: AsyncIOMotorClientSession = None) -> Optional[JournalEntry]:
        return await self.get_by_field("entry_id", entry_id, session=session)

    async def search(self,
                     from_date: Optional[datetime] = None,
                     to_date: Optional[datetime] = None,
                     account_code: Optional[str] = None,
                     status: Optional[EntryStatus] = None,
                     search: Optional[str] = None,
                     skip: int = 0,
                     limit: int = 10) -> Tuple[List[JournalEntry], int]:
        filter: Dict[str, Any] = {}
        date_range = {}
        if from_date:
            date_range["$gte"] = from_date
        if to_date:
            date_range["$lte"] = to_date
        if date_range:
            filter["date"] = date_range
        if account_code:
            filter["lines.account_code"] = account_code
        if status:
            filter["status"] = status.value
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            filter["$or"] = [{"description": pattern}, {"reference_number": pattern}]

        entries = await self.list(filter, skip=skip, limit=limit,
                                  sort=[("date", DESCENDING), ("created_at", DESCENDING)])
        total = await self.count(filter)
        return entries, total

    async def replace_draft(self, entry_id: str, revision: int, update_data: Dict[str, Any]) -> Optional[JournalEntry]:
        """Overwrite a draft if it is still at the given revision."""
        doc = await self.collection.find_one_and_update(
            {"entry_id": entry_id, "status": EntryStatus.DRAFT.value, "revision": revision},
            {"$set": {**update_data, "updated_at": datetime.utcnow()}, "$inc": {"revision": 1}},
            return_document=ReturnDocument.AFTER
        )
        return JournalEntry.from_mongo(doc) if doc else None

    async def delete_draft(self, entry_id: str) -> bool:
        result = await self.collection.delete_one({"entry_id": entry_id, "status": EntryStatus.DRAFT.value})
        return result.deleted_count > 0

    async def mark_posted(self,
                          entry_id: str,
                          revision: int,
                          posted_by: str,
                          session: AsyncIOMotorClientSession = None) -> Optional[JournalEntry]:
        """
        Compare-and-swap draft -> posted. Only the caller whose filter still
        matches (same entry, still draft, same revision) wins; everyone else gets None.
        """
        now = datetime.utcnow()
        doc = await self.collection.find_one_and_update(
            {"entry_id": entry_id, "status": EntryStatus.DRAFT.value, "revision": revision},
            {"$set": {
                "status": EntryStatus.POSTED.value,
                "posted_by": posted_by,
                "posted_at": now,
                "updated_at": now
            }},
            return_document=ReturnDocument.AFTER,
            session=session
        )
        return JournalEntry.from_mongo(doc) if doc else None

    async def posted_entries(self,
                             account_code: Optional[str] = None,
                             to_date: Optional[datetime] = None,
                             from_date: Optional[datetime] = None) -> List[JournalEntry]:
        """Posted entries in replay order, optionally limited to one account and a date window."""
        filter: Dict[str, Any] = {"status": EntryStatus.POSTED.value}
        if account_code:
            filter["lines.account_code"] = account_code
        date_range = {}
        if from_date:
            date_range["$gte"] = from_date
        if to_date:
            date_range["$lte"] = to_date
        if date_range:
            filter["date"] = date_range
        docs = await self.collection.find(filter).sort(LEDGER_ORDER).to_list(length=None)
        return [JournalEntry.from_mongo(doc) for doc in docs]

    async def references_account(self, account_code: str, status: EntryStatus) -> bool:
        doc = await self.collection.find_one(
            {"lines.account_code": account_code, "status": status.value},
            projection={"_id": 1}
        )
        return doc is not None

    async def get_reversal_of(self, entry_id: str) -> Optional[JournalEntry]:
        return await self.get_by_field("reverses", entry_id)
