import uuid
from typing import Dict, List, Optional
from motor.motor_asyncio import AsyncIOMotorClientSession
from bookkeeper.repositories.base import BaseRepository
from bookkeeper.models.audit import AuditEvent, Action, Actor, ActionType, EntityType

class AuditLogger(BaseRepository[AuditEvent]):

    async def log_action(self,
                         entity_type: EntityType,
                         entity_id: str,
                         actor: Actor,
                         action_type: ActionType,
                         details: str,
                         related: Optional[Dict[str, str]] = None,
                         success: bool = True,
                         session: AsyncIOMotorClientSession = None):
        """Helper to quickly log an action."""
        event = AuditEvent(
            event_id=f"EVT-{uuid.uuid4().hex}",
            entity_type=entity_type,
            entity_id=entity_id,
            actor=actor,
            action=Action(
                action_type=action_type,
                performed_by=actor,
                details=details,
                success=success
            ),
            related_entities=related or {}
        )
        await self.create(event, session=session)
        return event

    async def get_for_entity(self, entity_id: str) -> List[AuditEvent]:
        """Retrieve all audit events for an account or journal entry, oldest first."""
        return await self.get_all_by_field("entity_id", entity_id, sort=[("timestamp", 1)])
