from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from bookkeeper.api.deps import end_of, get_bill_journalizer, get_posting_engine, start_of
from bookkeeper.guardrails.decorators import require_permission
from bookkeeper.guardrails.permissions import Permission, permission_checker
from bookkeeper.models.accounting import (
    EntryStatus, JournalEntry, JournalEntryCreate, JournalEntryUpdate, ReverseRequest, ValidateRequest
)
from bookkeeper.models.bill import BillJournalRequest
from bookkeeper.models.user import User
from bookkeeper.services.bills import BillJournalizer
from bookkeeper.services.posting import PostingEngine
from bookkeeper.tools.journal_validator import ValidationSummary

router = APIRouter(prefix="/api/journal-entries", tags=["Journal Entries"])

class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int

class JournalEntryPage(BaseModel):
    journal_entries: List[JournalEntry]
    pagination: Pagination

@router.get("/", response_model=JournalEntryPage)
async def list_journal_entries(
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    account_code: Optional[str] = None,
    status: Optional[EntryStatus] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=200),
    engine: PostingEngine = Depends(get_posting_engine),
    current_user: User = Depends(require_permission(Permission.VIEW_LEDGER))
):
    return await engine.list_entries(
        from_date=start_of(from_date), to_date=end_of(to_date), account_code=account_code,
        status=status, search=search, page=page, limit=limit
    )

@router.post("/validate", response_model=ValidationSummary)
async def validate_journal_entry(
    body: ValidateRequest,
    engine: PostingEngine = Depends(get_posting_engine),
    current_user: User = Depends(require_permission(Permission.CREATE_JOURNAL))
):
    return await engine.validate_lines(body.lines)

@router.post("/", response_model=JournalEntry, status_code=201)
async def create_journal_entry(
    data: JournalEntryCreate,
    engine: PostingEngine = Depends(get_posting_engine),
    current_user: User = Depends(require_permission(Permission.CREATE_JOURNAL))
):
    if data.status == EntryStatus.POSTED and not _may_post(current_user):
        data = data.model_copy(update={"status": EntryStatus.DRAFT})
    return await engine.create_entry(data, current_user)

@router.post("/from-bill", response_model=JournalEntry, status_code=201)
async def journalize_bill(
    bill: BillJournalRequest,
    journalizer: BillJournalizer = Depends(get_bill_journalizer),
    current_user: User = Depends(require_permission(Permission.CREATE_JOURNAL))
):
    """Turn a purchase or sales bill (or a return) into a journal entry with its VAT line."""
    if bill.status == EntryStatus.POSTED and not _may_post(current_user):
        bill = bill.model_copy(update={"status": EntryStatus.DRAFT})
    return await journalizer.journalize(bill, current_user)

@router.get("/{entry_id}", response_model=JournalEntry)
async def get_journal_entry(
    entry_id: str,
    engine: PostingEngine = Depends(get_posting_engine),
    current_user: User = Depends(require_permission(Permission.VIEW_LEDGER))
):
    return await engine.get_entry(entry_id)

@router.put("/{entry_id}", response_model=JournalEntry)
async def update_journal_entry(
    entry_id: str,
    data: JournalEntryUpdate,
    engine: PostingEngine = Depends(get_posting_engine),
    current_user: User = Depends(require_permission(Permission.CREATE_JOURNAL))
):
    return await engine.update_entry(entry_id, data, current_user)

@router.delete("/{entry_id}", status_code=204)
async def delete_journal_entry(
    entry_id: str,
    engine: PostingEngine = Depends(get_posting_engine),
    current_user: User = Depends(require_permission(Permission.CREATE_JOURNAL))
):
    await engine.delete_entry(entry_id, current_user)

@router.post("/{entry_id}/post", response_model=JournalEntry)
async def post_journal_entry(
    entry_id: str,
    engine: PostingEngine = Depends(get_posting_engine),
    current_user: User = Depends(require_permission(Permission.POST_JOURNAL))
):
    return await engine.post(entry_id, current_user)

@router.post("/{entry_id}/reverse", response_model=JournalEntry, status_code=201)
async def reverse_journal_entry(
    entry_id: str,
    body: Optional[ReverseRequest] = None,
    engine: PostingEngine = Depends(get_posting_engine),
    current_user: User = Depends(require_permission(Permission.REVERSE_JOURNAL))
):
    body = body or ReverseRequest()
    post = body.post and _may_post(current_user)
    return await engine.reverse(entry_id, current_user, date=body.date, description=body.description, post=post)

def _may_post(user: User) -> bool:
    return permission_checker.check_permission(user, Permission.POST_JOURNAL)
