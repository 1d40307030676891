import re
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional
from motor.motor_asyncio import AsyncIOMotorClientSession
from pymongo import ASCENDING, ReturnDocument
from bookkeeper.repositories.base import BaseRepository
from bookkeeper.models.account import Account, AccountType

class AccountRepository(BaseRepository[Account]):

    async def get_by_code(self, code: str) -> Optional[Account]:
        return await self.get_by_field("code", code)

    async def get_many(self, codes: Iterable[str], session: AsyncIOMotorClientSession = None) -> Dict[str, Account]:
        """Resolve a set of codes in one round trip. Unknown codes are simply absent."""
        codes = list(set(codes))
        if not codes:
            return {}
        docs = await self.collection.find({"code": {"$in": codes}}, session=session).to_list(length=None)
        accounts = [Account.from_mongo(doc) for doc in docs]
        return {a.code: a for a in accounts}

    async def search(self,
                     type: Optional[AccountType] = None,
                     search: Optional[str] = None,
                     is_active: Optional[bool] = None) -> List[Account]:
        filter: Dict[str, Any] = {}
        if type:
            filter["type"] = type.value
        if is_active is not None:
            filter["is_active"] = is_active
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            filter["$or"] = [{"name": pattern}, {"code": pattern}]
        docs = await self.collection.find(filter).sort("code", ASCENDING).to_list(length=None)
        return [Account.from_mongo(doc) for doc in docs]

    async def update_by_code(self, code: str, update_data: Dict[str, Any]) -> Optional[Account]:
        update_data = {**update_data, "updated_at": datetime.utcnow()}
        doc = await self.collection.find_one_and_update(
            {"code": code},
            {"$set": update_data},
            return_document=ReturnDocument.AFTER
        )
        return Account.from_mongo(doc) if doc else None

    async def delete_by_code(self, code: str) -> bool:
        result = await self.collection.delete_one({"code": code})
        return result.deleted_count > 0
