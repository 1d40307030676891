from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

from bookkeeper.models.base import EntryDate, MongoModel, Money
from bookkeeper.tools.money import ZERO, money_sum

class EntryStatus(str, Enum):
    DRAFT = "draft"
    POSTED = "posted"

class ReferenceType(str, Enum):
    INVOICE = "invoice"
    PAYMENT = "payment"
    ADJUSTMENT = "adjustment"
    MANUAL = "manual"
    OPENING_BALANCE = "opening_balance"

class JournalLine(BaseModel):
    account_code: str
    account_name: Optional[str] = None
    description: Optional[str] = None
    debit_amount: Money = ZERO
    credit_amount: Money = ZERO

    @property
    def net(self) -> Decimal:
        """Signed effect on the account: positive is a debit."""
        return self.debit_amount - self.credit_amount

class JournalEntry(MongoModel):
    """Double-entry bookkeeping record. Owns its lines."""
    entry_id: str
    date: EntryDate
    description: str
    reference_number: Optional[str] = None
    reference_type: ReferenceType = ReferenceType.MANUAL
    notes: Optional[str] = None

    lines: List[JournalLine]

    total_debit: Money = ZERO
    total_credit: Money = ZERO

    status: EntryStatus = EntryStatus.DRAFT
    # Bumped on every draft edit, used as the compare-and-swap token when posting
    revision: int = 1
    reverses: Optional[str] = None

    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    posted_by: Optional[str] = None
    posted_at: Optional[datetime] = None

    @property
    def is_posted(self) -> bool:
        return self.status == EntryStatus.POSTED

    def account_codes(self) -> List[str]:
        seen = []
        for line in self.lines:
            if line.account_code not in seen:
                seen.append(line.account_code)
        return seen

    def compute_totals(self) -> None:
        self.total_debit = money_sum(l.debit_amount for l in self.lines)
        self.total_credit = money_sum(l.credit_amount for l in self.lines)

class LedgerBalance(MongoModel):
    """Cached running totals for an account, maintained inside the posting transaction."""
    account_code: str
    debit_total: Money = ZERO
    credit_total: Money = ZERO
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def net_balance(self) -> Decimal:
        return self.debit_total - self.credit_total

# Request models

class JournalLineInput(BaseModel):
    account_code: str = Field(..., min_length=1)
    description: Optional[str] = None
    debit_amount: Money = Field(ZERO, ge=0)
    credit_amount: Money = Field(ZERO, ge=0)

class JournalEntryCreate(BaseModel):
    date: EntryDate
    description: str = Field(..., min_length=3, max_length=500)
    reference_number: Optional[str] = None
    reference_type: ReferenceType = ReferenceType.MANUAL
    status: EntryStatus = EntryStatus.DRAFT
    notes: Optional[str] = Field(None, max_length=1000)
    lines: List[JournalLineInput] = Field(..., alias="entries")

    model_config = {"populate_by_name": True}

class JournalEntryUpdate(BaseModel):
    date: Optional[EntryDate] = None
    description: Optional[str] = Field(None, min_length=3, max_length=500)
    reference_number: Optional[str] = None
    reference_type: Optional[ReferenceType] = None
    notes: Optional[str] = Field(None, max_length=1000)
    lines: Optional[List[JournalLineInput]] = Field(None, alias="entries")

    model_config = {"populate_by_name": True}

class ValidateRequest(BaseModel):
    lines: List[JournalLineInput] = Field(..., alias="entries")

    model_config = {"populate_by_name": True}

class ReverseRequest(BaseModel):
    date: Optional[EntryDate] = None
    description: Optional[str] = Field(None, min_length=3, max_length=500)
    post: bool = False
