"""
In-memory stand-ins for the Mongo repositories. Method names and return
shapes mirror bookkeeper.repositories so services run unchanged.
"""
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from pymongo.errors import DuplicateKeyError

from bookkeeper.models.account import Account, AccountType, BalanceSide
from bookkeeper.models.accounting import EntryStatus, JournalEntry, JournalEntryCreate, JournalLineInput, LedgerBalance
from bookkeeper.models.audit import Action, AuditEvent


class FakeAccounts:
    def __init__(self):
        self.docs: Dict[str, Account] = {}

    async def get_by_code(self, code: str) -> Optional[Account]:
        account = self.docs.get(code)
        return account.model_copy(deep=True) if account else None

    async def get_many(self, codes: Iterable[str], session=None) -> Dict[str, Account]:
        return {c: self.docs[c].model_copy(deep=True) for c in set(codes) if c in self.docs}

    async def search(self, type: Optional[AccountType] = None, search: Optional[str] = None,
                     is_active: Optional[bool] = None) -> List[Account]:
        result = []
        for code in sorted(self.docs):
            account = self.docs[code]
            if type and account.type != type:
                continue
            if is_active is not None and account.is_active != is_active:
                continue
            if search and search.lower() not in account.name.lower() and search.lower() not in code.lower():
                continue
            result.append(account.model_copy(deep=True))
        return result

    async def create(self, model: Account, session=None) -> Account:
        if model.code in self.docs:
            raise DuplicateKeyError("duplicate key: code")
        self.docs[model.code] = model.model_copy(deep=True)
        return model

    async def update_by_code(self, code: str, update_data: Dict[str, Any]) -> Optional[Account]:
        if code not in self.docs:
            return None
        data = self.docs[code].model_dump()
        data.update(update_data)
        data["updated_at"] = datetime.utcnow()
        self.docs[code] = Account(**data)
        return self.docs[code].model_copy(deep=True)

    async def delete_by_code(self, code: str) -> bool:
        return self.docs.pop(code, None) is not None


class FakeJournals:
    def __init__(self):
        self.docs: Dict[str, JournalEntry] = {}

    def _ordered(self) -> List[JournalEntry]:
        return sorted(self.docs.values(), key=lambda e: (e.date, e.created_at))

    async def get_by_entry_id(self, entry_id: str, session=None) -> Optional[JournalEntry]:
        entry = self.docs.get(entry_id)
        return entry.model_copy(deep=True) if entry else None

    async def create(self, model: JournalEntry, session=None) -> JournalEntry:
        if model.reverses and any(e.reverses == model.reverses for e in self.docs.values()):
            raise DuplicateKeyError("duplicate key: reverses")
        self.docs[model.entry_id] = model.model_copy(deep=True)
        return model

    async def search(self, from_date=None, to_date=None, account_code=None, status=None,
                     search=None, skip: int = 0, limit: int = 10):
        matches = []
        for entry in reversed(self._ordered()):
            if from_date and entry.date < from_date:
                continue
            if to_date and entry.date > to_date:
                continue
            if account_code and account_code not in entry.account_codes():
                continue
            if status and entry.status != status:
                continue
            if search and search.lower() not in entry.description.lower():
                continue
            matches.append(entry.model_copy(deep=True))
        return matches[skip:skip + limit], len(matches)

    async def replace_draft(self, entry_id: str, revision: int, update_data: Dict[str, Any]):
        entry = self.docs.get(entry_id)
        if not entry or entry.status != EntryStatus.DRAFT or entry.revision != revision:
            return None
        data = entry.model_dump()
        data.update(update_data)
        data["revision"] = revision + 1
        data["updated_at"] = datetime.utcnow()
        self.docs[entry_id] = JournalEntry(**data)
        return self.docs[entry_id].model_copy(deep=True)

    async def delete_draft(self, entry_id: str) -> bool:
        entry = self.docs.get(entry_id)
        if not entry or entry.status != EntryStatus.DRAFT:
            return False
        del self.docs[entry_id]
        return True

    async def mark_posted(self, entry_id: str, revision: int, posted_by: str, session=None):
        entry = self.docs.get(entry_id)
        if not entry or entry.status != EntryStatus.DRAFT or entry.revision != revision:
            return None
        now = datetime.utcnow()
        self.docs[entry_id] = entry.model_copy(update={
            "status": EntryStatus.POSTED, "posted_by": posted_by, "posted_at": now, "updated_at": now
        })
        return self.docs[entry_id].model_copy(deep=True)

    async def posted_entries(self, account_code=None, to_date=None, from_date=None) -> List[JournalEntry]:
        result = []
        for entry in self._ordered():
            if entry.status != EntryStatus.POSTED:
                continue
            if account_code and account_code not in entry.account_codes():
                continue
            if from_date and entry.date < from_date:
                continue
            if to_date and entry.date > to_date:
                continue
            result.append(entry.model_copy(deep=True))
        return result

    async def references_account(self, account_code: str, status: EntryStatus) -> bool:
        return any(
            e.status == status and account_code in e.account_codes()
            for e in self.docs.values()
        )

    async def get_reversal_of(self, entry_id: str) -> Optional[JournalEntry]:
        for entry in self.docs.values():
            if entry.reverses == entry_id:
                return entry.model_copy(deep=True)
        return None


class FakeBalances:
    def __init__(self):
        self.docs: Dict[str, LedgerBalance] = {}

    async def apply_entry(self, entry: JournalEntry, session=None) -> None:
        for line in entry.lines:
            current = self.docs.get(line.account_code) or LedgerBalance(account_code=line.account_code)
            self.docs[line.account_code] = current.model_copy(update={
                "debit_total": current.debit_total + line.debit_amount,
                "credit_total": current.credit_total + line.credit_amount,
            })

    async def get_by_code(self, account_code: str) -> Optional[LedgerBalance]:
        return self.docs.get(account_code)

    async def replace_all(self, balances, session=None) -> int:
        self.docs = {b.account_code: b for b in balances}
        return len(self.docs)


class FakeAudit:
    def __init__(self):
        self.events: List[AuditEvent] = []

    async def log_action(self, entity_type, entity_id, actor, action_type, details,
                         related=None, success=True, session=None):
        event = AuditEvent(
            event_id=f"EVT-{len(self.events) + 1}",
            entity_type=entity_type,
            entity_id=entity_id,
            actor=actor,
            action=Action(action_type=action_type, performed_by=actor, details=details, success=success),
            related_entities=related or {}
        )
        self.events.append(event)
        return event

    async def get_for_entity(self, entity_id: str) -> List[AuditEvent]:
        return [e for e in self.events if e.entity_id == entity_id]

    def details_for(self, entity_id: str) -> List[str]:
        return [e.action.details for e in self.events if e.entity_id == entity_id]


class FakeDatabase:
    """Same surface as bookkeeper.database.Database, without transactions."""

    def __init__(self):
        self.accounts = FakeAccounts()
        self.journals = FakeJournals()
        self.balances = FakeBalances()
        self.audit = FakeAudit()
        self.use_transactions = False

    @asynccontextmanager
    async def transaction(self):
        yield None


# code, name, type, is_current
CHART = [
    ("1100", "Cash", AccountType.ASSET, True),
    ("1200", "Accounts Receivable", AccountType.ASSET, True),
    ("1500", "Equipment", AccountType.ASSET, False),
    ("2100", "Accounts Payable", AccountType.LIABILITY, True),
    ("2500", "Bank Loan", AccountType.LIABILITY, False),
    ("3100", "Owner's Capital", AccountType.EQUITY, False),
    ("3900", "Opening Balance Equity", AccountType.EQUITY, False),
    ("4100", "Sales Revenue", AccountType.REVENUE, False),
    ("5300", "Rent Expense", AccountType.EXPENSE, False),
    ("VAT-INPUT", "VAT Receivable", AccountType.ASSET, True),
    ("VAT-OUTPUT", "VAT Payable", AccountType.LIABILITY, True),
]

def normal_side(type: AccountType) -> BalanceSide:
    return BalanceSide.DEBIT if type in (AccountType.ASSET, AccountType.EXPENSE) else BalanceSide.CREDIT

def make_entry(lines, date=datetime(2024, 1, 15), description="Test entry", **kwargs) -> JournalEntryCreate:
    """lines: (account_code, debit, credit) tuples"""
    return JournalEntryCreate(
        date=date,
        description=description,
        entries=[JournalLineInput(account_code=c, debit_amount=d, credit_amount=cr) for c, d, cr in lines],
        **kwargs
    )
