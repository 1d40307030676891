from typing import Optional
from pydantic import BaseModel

from bookkeeper.models.audit import Actor

class User(BaseModel):
    """Authenticated caller, passed explicitly to every service operation."""
    username: str
    role: str = "viewer"
    full_name: Optional[str] = None
    disabled: bool = False

    def as_actor(self) -> Actor:
        return Actor(id=self.username, name=self.full_name or self.username, type="USER")
