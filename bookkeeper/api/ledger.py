from fastapi import APIRouter, Depends

from bookkeeper.api.deps import get_ledger
from bookkeeper.guardrails.decorators import require_permission
from bookkeeper.guardrails.permissions import Permission
from bookkeeper.models.user import User
from bookkeeper.services.ledger import LedgerAggregator

router = APIRouter(prefix="/api/ledger", tags=["Ledger"])

@router.post("/rebuild")
async def rebuild_balances(
    ledger: LedgerAggregator = Depends(get_ledger),
    current_user: User = Depends(require_permission(Permission.MANAGE_ACCOUNTS))
):
    """Recompute the cached account balances from posted entries."""
    count = await ledger.rebuild_balances(current_user)
    return {"status": "rebuilt", "accounts": count}
