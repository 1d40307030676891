from typing import Generic, TypeVar, Any, Dict, List, Optional
from motor.motor_asyncio import AsyncIOMotorClientSession, AsyncIOMotorCollection
from bookkeeper.models.base import MongoModel

T = TypeVar("T", bound=MongoModel)

class BaseRepository(Generic[T]):
    def __init__(self, collection: AsyncIOMotorCollection, model_cls: type[T]):
        self.collection = collection
        self.model_cls = model_cls

    async def get_by_field(self, field: str, value: Any, session: AsyncIOMotorClientSession = None) -> Optional[T]:
        """Get a document by a specific field."""
        doc = await self.collection.find_one({field: value}, session=session)
        return self.model_cls.from_mongo(doc) if doc else None

    async def get_all_by_field(self, field: str, value: Any, sort: Optional[List] = None) -> List[T]:
        cursor = self.collection.find({field: value})
        if sort:
            cursor = cursor.sort(sort)
        docs = await cursor.to_list(length=None)
        return [self.model_cls.from_mongo(doc) for doc in docs]

    async def list(self, filter: Optional[Dict[str, Any]] = None, skip: int = 0, limit: int = 100,
                   sort: Optional[List] = None) -> List[T]:
        """List documents with optional filter and pagination."""
        cursor = self.collection.find(filter or {})
        if sort:
            cursor = cursor.sort(sort)
        cursor = cursor.skip(skip).limit(limit)
        docs = await cursor.to_list(length=limit)
        return [self.model_cls.from_mongo(doc) for doc in docs]

    async def create(self, model: T, session: AsyncIOMotorClientSession = None) -> T:
        """Create a new document."""
        data = model.to_mongo()
        result = await self.collection.insert_one(data, session=session)
        model.id = str(result.inserted_id)
        return model

    async def count(self, filter: Optional[Dict[str, Any]] = None) -> int:
        """Count documents matching a filter."""
        return await self.collection.count_documents(filter or {})
