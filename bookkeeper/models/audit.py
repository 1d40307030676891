from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any
from pydantic import Field
from bookkeeper.models.base import MongoModel

class ActionType(str, Enum):
    SYSTEM_EVENT = "SYSTEM_EVENT"
    USER_ACTION = "USER_ACTION"
    STATE_CHANGE = "STATE_CHANGE"
    REJECTED = "REJECTED"

class EntityType(str, Enum):
    ACCOUNT = "ACCOUNT"
    JOURNAL_ENTRY = "JOURNAL_ENTRY"
    LEDGER = "LEDGER"

class Actor(MongoModel):
    id: str
    name: str
    type: str = "USER" # USER, SYSTEM

class Action(MongoModel):
    """Record of a specific action taken."""
    action_type: ActionType
    performed_by: Actor
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    details: str
    success: bool = True
    metadata: Dict[str, Any] = {}

class AuditEvent(MongoModel):
    """
    Complete audit log entry.
    """
    event_id: str = Field(..., description="Unique event ID")
    entity_type: EntityType
    entity_id: str

    timestamp: datetime = Field(default_factory=datetime.utcnow)

    actor: Actor
    action: Action

    related_entities: Dict[str, str] = Field(default_factory=dict, description="e.g. {'reverses': 'JE-1A2B3C4D'}")

    model_config = {
        "json_schema_extra": {
            "example": {
                "event_id": "EVT-9f1c",
                "entity_type": "JOURNAL_ENTRY",
                "entity_id": "JE-1A2B3C4D",
                "action": {
                    "action_type": "STATE_CHANGE",
                    "details": "Posted journal entry JE-1A2B3C4D",
                    "success": True
                }
            }
        }
    }
