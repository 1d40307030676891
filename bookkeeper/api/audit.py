from typing import List

from fastapi import APIRouter, Depends

from bookkeeper.database import Database, get_db
from bookkeeper.guardrails.decorators import require_permission
from bookkeeper.guardrails.permissions import Permission
from bookkeeper.models.audit import AuditEvent
from bookkeeper.models.user import User

router = APIRouter(prefix="/api/audit", tags=["Audit"])

@router.get("/{entity_id}", response_model=List[AuditEvent])
async def get_audit_trail(
    entity_id: str,
    db: Database = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.VIEW_AUDIT))
):
    return await db.audit.get_for_entity(entity_id)
