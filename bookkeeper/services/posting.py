"""
Journal entry lifecycle: draft creation and editing, posting, reversal.

State machine: draft --post--> posted. Posted entries are immutable; a
correction is a new reversing entry linked through ``reverses``.
"""
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from pymongo.errors import DuplicateKeyError, PyMongoError

from bookkeeper.database import Database
from bookkeeper.errors import AlreadyPosted, ConflictError, NotFoundError, ValidationFailed
from bookkeeper.models.account import Account
from bookkeeper.models.accounting import (
    EntryStatus, JournalEntry, JournalEntryCreate, JournalEntryUpdate, JournalLine, ReferenceType
)
from bookkeeper.models.audit import ActionType, EntityType
from bookkeeper.models.user import User
from bookkeeper.tools.journal_validator import JournalValidator, LineLike, ValidationSummary, journal_validator

logger = logging.getLogger(__name__)

def new_entry_id() -> str:
    return f"JE-{uuid.uuid4().hex[:8].upper()}"

def reversal_lines(entry: JournalEntry) -> List[JournalLine]:
    """Every line of the entry with debit and credit swapped."""
    return [
        JournalLine(
            account_code=line.account_code,
            account_name=line.account_name,
            description=line.description,
            debit_amount=line.credit_amount,
            credit_amount=line.debit_amount
        )
        for line in entry.lines
    ]

class PostingEngine:
    def __init__(self, db: Database, validator: JournalValidator = journal_validator):
        self.db = db
        self.validator = validator

    async def resolve_accounts(self, lines: Sequence[LineLike], session=None) -> Dict[str, Account]:
        return await self.db.accounts.get_many((l.account_code for l in lines), session=session)

    async def validate_lines(self, lines: Sequence[LineLike]) -> ValidationSummary:
        """Dry run for pre-submit feedback. Never writes."""
        accounts = await self.resolve_accounts(lines)
        return self.validator.summarize(lines, accounts)

    async def get_entry(self, entry_id: str) -> JournalEntry:
        entry = await self.db.journals.get_by_entry_id(entry_id)
        if not entry:
            raise NotFoundError(f"Journal entry {entry_id} not found", {"entry_id": entry_id})
        return entry

    async def list_entries(self,
                           from_date: Optional[datetime] = None,
                           to_date: Optional[datetime] = None,
                           account_code: Optional[str] = None,
                           status: Optional[EntryStatus] = None,
                           search: Optional[str] = None,
                           page: int = 1,
                           limit: int = 10) -> Dict[str, Any]:
        skip = (page - 1) * limit
        entries, total = await self.db.journals.search(
            from_date=from_date, to_date=to_date, account_code=account_code,
            status=status, search=search, skip=skip, limit=limit
        )
        return {
            "journal_entries": entries,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": (total + limit - 1) // limit
            }
        }

    async def create_entry(self, data: JournalEntryCreate, user: User) -> JournalEntry:
        accounts = await self.resolve_accounts(data.lines)
        self.validator.validate(data.lines, accounts)

        entry = JournalEntry(
            entry_id=new_entry_id(),
            date=data.date,
            description=data.description,
            reference_number=data.reference_number,
            reference_type=data.reference_type,
            notes=data.notes,
            lines=self._build_lines(data.lines, accounts),
            status=EntryStatus.DRAFT,
            created_by=user.username
        )
        entry.compute_totals()
        await self.db.journals.create(entry)

        await self.db.audit.log_action(
            EntityType.JOURNAL_ENTRY, entry.entry_id, user.as_actor(), ActionType.USER_ACTION,
            f"Created draft journal entry {entry.entry_id} ({entry.total_debit})"
        )
        logger.info(f"Journal entry created: {entry.entry_id}")

        if data.status == EntryStatus.POSTED:
            return await self.post(entry.entry_id, user)
        return entry

    async def update_entry(self, entry_id: str, data: JournalEntryUpdate, user: User) -> JournalEntry:
        entry = await self.get_entry(entry_id)
        if entry.is_posted:
            raise ConflictError(
                f"Journal entry {entry_id} is posted and cannot be modified",
                {"entry_id": entry_id, "reason": "ENTRY_POSTED"}
            )

        update_data = data.model_dump(exclude_unset=True, exclude={"lines"})
        if update_data.get("reference_type") is not None:
            update_data["reference_type"] = update_data["reference_type"].value

        if data.lines is not None:
            accounts = await self.resolve_accounts(data.lines)
            self.validator.validate(data.lines, accounts)
            draft = entry.model_copy(update={"lines": self._build_lines(data.lines, accounts)})
            draft.compute_totals()
            update_data["lines"] = [l.model_dump() for l in draft.lines]
            update_data["total_debit"] = draft.total_debit
            update_data["total_credit"] = draft.total_credit

        updated = await self.db.journals.replace_draft(entry_id, entry.revision, update_data)
        if updated is None:
            raise await self._lost_race(entry_id)

        await self.db.audit.log_action(
            EntityType.JOURNAL_ENTRY, entry_id, user.as_actor(), ActionType.USER_ACTION,
            f"Updated draft journal entry {entry_id} (revision {updated.revision})"
        )
        logger.info(f"Journal entry updated: {entry_id}")
        return updated

    async def delete_entry(self, entry_id: str, user: User) -> None:
        entry = await self.get_entry(entry_id)
        if entry.is_posted or not await self.db.journals.delete_draft(entry_id):
            raise ConflictError(
                f"Journal entry {entry_id} is posted and cannot be deleted",
                {"entry_id": entry_id, "reason": "ENTRY_POSTED"}
            )
        await self.db.audit.log_action(
            EntityType.JOURNAL_ENTRY, entry_id, user.as_actor(), ActionType.USER_ACTION,
            f"Deleted draft journal entry {entry_id}"
        )
        logger.info(f"Journal entry deleted: {entry_id}")

    async def post(self, entry_id: str, user: User) -> JournalEntry:
        """
        Validate the stored draft again and flip it to posted. Accounts are
        read through the transaction session, alongside the status swap and
        the balance-cache increments.
        """
        entry = await self.get_entry(entry_id)
        if entry.is_posted:
            logger.warning(f"Rejected post of {entry_id}: already posted")
            raise AlreadyPosted(entry_id)

        try:
            async with self.db.transaction() as session:
                accounts = await self.resolve_accounts(entry.lines, session=session)
                self.validator.validate(entry.lines, accounts, error_cls=ValidationFailed)
                posted = await self.db.journals.mark_posted(entry_id, entry.revision, user.username, session=session)
                if posted is None:
                    raise await self._lost_race(entry_id)
                await self.db.balances.apply_entry(posted, session=session)
                await self.db.audit.log_action(
                    EntityType.JOURNAL_ENTRY, entry_id, user.as_actor(), ActionType.STATE_CHANGE,
                    f"Posted journal entry {entry_id}",
                    related={"reverses": posted.reverses} if posted.reverses else None,
                    session=session
                )
        except PyMongoError as e:
            if e.has_error_label("TransientTransactionError"):
                # A concurrent transaction touched the same draft first
                raise await self._lost_race(entry_id)
            raise

        logger.info(f"Journal entry posted: {entry_id} by {user.username}")
        return posted

    async def reverse(self,
                      entry_id: str,
                      user: User,
                      date: Optional[datetime] = None,
                      description: Optional[str] = None,
                      post: bool = False) -> JournalEntry:
        """Create the offsetting entry for a posted one. Each entry can be reversed once."""
        original = await self.get_entry(entry_id)
        if not original.is_posted:
            raise ConflictError(
                f"Journal entry {entry_id} is a draft; edit or delete it instead of reversing",
                {"entry_id": entry_id, "reason": "ENTRY_NOT_POSTED"}
            )
        existing = await self.db.journals.get_reversal_of(entry_id)
        if existing:
            raise ConflictError(
                f"Journal entry {entry_id} was already reversed by {existing.entry_id}",
                {"entry_id": entry_id, "reversal_entry_id": existing.entry_id, "reason": "ALREADY_REVERSED"}
            )

        lines = reversal_lines(original)
        accounts = await self.resolve_accounts(lines)
        self.validator.validate(lines, accounts)

        reversal = JournalEntry(
            entry_id=new_entry_id(),
            date=date or datetime.utcnow().replace(hour=0, minute=0, second=0, microsecond=0),
            description=description or f"Reversal of {entry_id}: {original.description}"[:500],
            reference_number=entry_id,
            reference_type=ReferenceType.ADJUSTMENT,
            lines=lines,
            reverses=entry_id,
            created_by=user.username
        )
        reversal.compute_totals()
        try:
            await self.db.journals.create(reversal)
        except DuplicateKeyError:
            raise ConflictError(
                f"Journal entry {entry_id} was already reversed",
                {"entry_id": entry_id, "reason": "ALREADY_REVERSED"}
            )

        await self.db.audit.log_action(
            EntityType.JOURNAL_ENTRY, reversal.entry_id, user.as_actor(), ActionType.USER_ACTION,
            f"Created reversal {reversal.entry_id} of {entry_id}",
            related={"reverses": entry_id}
        )
        logger.info(f"Journal entry {entry_id} reversed by {reversal.entry_id}")

        if post:
            return await self.post(reversal.entry_id, user)
        return reversal

    async def _lost_race(self, entry_id: str) -> Exception:
        """Explain why a compare-and-swap on a draft did not match."""
        current = await self.db.journals.get_by_entry_id(entry_id)
        if current is None:
            return NotFoundError(f"Journal entry {entry_id} not found", {"entry_id": entry_id})
        if current.is_posted:
            logger.warning(f"Lost race on {entry_id}: already posted")
            return AlreadyPosted(entry_id)
        return ConflictError(
            f"Journal entry {entry_id} was modified concurrently; re-fetch and retry",
            {"entry_id": entry_id, "reason": "CONCURRENT_MODIFICATION"}
        )

    @staticmethod
    def _build_lines(lines: Sequence[LineLike], accounts: Dict[str, Account]) -> List[JournalLine]:
        return [
            JournalLine(
                account_code=line.account_code,
                account_name=accounts[line.account_code].name if line.account_code in accounts else None,
                description=getattr(line, "description", None),
                debit_amount=line.debit_amount,
                credit_amount=line.credit_amount
            )
            for line in lines
        ]
