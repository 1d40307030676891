from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, Dict, Optional, Type, TypeVar
from pydantic import BaseModel, BeforeValidator, Field, ConfigDict, PlainSerializer

from bookkeeper.tools.money import to_money

# Helper to handle ObjectId as string
PyObjectId = Annotated[str, BeforeValidator(str)]

def _parse_money(value: Any) -> Any:
    if value is None:
        return value
    try:
        return to_money(value)
    except (InvalidOperation, TypeError):
        raise ValueError(f"invalid monetary amount: {value!r}")


# Fixed-point amount: always quantized to cents, rendered as a JSON number
Money = Annotated[
    Decimal,
    BeforeValidator(_parse_money),
    PlainSerializer(lambda v: float(v), return_type=float, when_used="json"),
]


def as_datetime(value: Any) -> Any:
    """Entry dates are stored as datetimes (BSON has no date type)."""
    if isinstance(value, str) and len(value) == 10:
        value = date.fromisoformat(value)
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, time.min)
    return value


EntryDate = Annotated[datetime, BeforeValidator(as_datetime)]


T = TypeVar("T", bound="MongoModel")

class MongoModel(BaseModel):
    """
    Base model for MongoDB documents with _id handling and serialization helpers.
    """
    id: PyObjectId | None = Field(default=None, alias="_id")

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    @classmethod
    def from_mongo(cls: Type[T], data: Dict[str, Any]) -> Optional[T]:
        """Convert MongoDB document to Pydantic model."""
        if not data:
            return None
        data = dict(data)
        id = data.pop("_id", None)
        return cls(id=id, **data)

    def to_mongo(self, exclude_none: bool = False) -> Dict[str, Any]:
        """Convert Pydantic model to MongoDB document."""
        data = self.model_dump(by_alias=True, exclude_none=exclude_none)
        if data.get("_id") is None:
            data.pop("_id", None)
        return data
