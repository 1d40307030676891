from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from bookkeeper.api.deps import end_of, get_ledger, get_registry, start_of
from bookkeeper.guardrails.decorators import require_permission
from bookkeeper.guardrails.permissions import Permission
from bookkeeper.models.account import Account, AccountCreate, AccountNode, AccountType, AccountUpdate
from bookkeeper.models.ledger import AccountBalance, AccountLedger, BalanceCheck
from bookkeeper.models.user import User
from bookkeeper.services.accounts import AccountRegistry
from bookkeeper.services.ledger import LedgerAggregator

router = APIRouter(prefix="/api/accounts", tags=["Accounts"])

@router.get("/", response_model=List[Account])
async def list_accounts(
    type: Optional[AccountType] = None,
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    registry: AccountRegistry = Depends(get_registry),
    current_user: User = Depends(require_permission(Permission.VIEW_LEDGER))
):
    return await registry.list_accounts(type=type, search=search, is_active=is_active)

@router.get("/chart", response_model=List[AccountNode])
async def chart_of_accounts(
    registry: AccountRegistry = Depends(get_registry),
    current_user: User = Depends(require_permission(Permission.VIEW_LEDGER))
):
    return await registry.chart_of_accounts()

@router.post("/", response_model=Account, status_code=201)
async def create_account(
    data: AccountCreate,
    registry: AccountRegistry = Depends(get_registry),
    current_user: User = Depends(require_permission(Permission.MANAGE_ACCOUNTS))
):
    return await registry.create_account(data, current_user)

@router.get("/{code}", response_model=Account)
async def get_account(
    code: str,
    registry: AccountRegistry = Depends(get_registry),
    current_user: User = Depends(require_permission(Permission.VIEW_LEDGER))
):
    return await registry.get_account(code)

@router.put("/{code}", response_model=Account)
async def update_account(
    code: str,
    changes: AccountUpdate,
    registry: AccountRegistry = Depends(get_registry),
    current_user: User = Depends(require_permission(Permission.MANAGE_ACCOUNTS))
):
    return await registry.update_account(code, changes, current_user)

@router.post("/{code}/deactivate", response_model=Account)
async def deactivate_account(
    code: str,
    registry: AccountRegistry = Depends(get_registry),
    current_user: User = Depends(require_permission(Permission.MANAGE_ACCOUNTS))
):
    return await registry.deactivate(code, current_user)

@router.post("/{code}/activate", response_model=Account)
async def activate_account(
    code: str,
    registry: AccountRegistry = Depends(get_registry),
    current_user: User = Depends(require_permission(Permission.MANAGE_ACCOUNTS))
):
    return await registry.activate(code, current_user)

@router.delete("/{code}", status_code=204)
async def delete_account(
    code: str,
    registry: AccountRegistry = Depends(get_registry),
    current_user: User = Depends(require_permission(Permission.MANAGE_ACCOUNTS))
):
    await registry.delete_account(code, current_user)

@router.get("/{code}/ledger", response_model=AccountLedger)
async def get_account_ledger(
    code: str,
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    ledger: LedgerAggregator = Depends(get_ledger),
    current_user: User = Depends(require_permission(Permission.VIEW_LEDGER))
):
    return await ledger.get_account_ledger(code, from_date=start_of(from_date), to_date=end_of(to_date))

@router.get("/{code}/balance", response_model=AccountBalance)
async def get_account_balance(
    code: str,
    as_of_date: Optional[date] = Query(None),
    ledger: LedgerAggregator = Depends(get_ledger),
    current_user: User = Depends(require_permission(Permission.VIEW_LEDGER))
):
    return await ledger.get_account_balance(code, as_of=end_of(as_of_date))

@router.get("/{code}/balance/verify", response_model=BalanceCheck)
async def verify_account_balance(
    code: str,
    ledger: LedgerAggregator = Depends(get_ledger),
    current_user: User = Depends(require_permission(Permission.VIEW_AUDIT))
):
    return await ledger.verify_balance(code)
