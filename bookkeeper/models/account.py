from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from bookkeeper.models.base import EntryDate, MongoModel, Money
from bookkeeper.tools.money import ZERO

ACCOUNT_CODE_PATTERN = r"^[A-Z0-9-]+$"

class AccountType(str, Enum):
    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"

class BalanceSide(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"

# Normal balance side per account type
NORMAL_BALANCE = {
    AccountType.ASSET: BalanceSide.DEBIT,
    AccountType.EXPENSE: BalanceSide.DEBIT,
    AccountType.LIABILITY: BalanceSide.CREDIT,
    AccountType.EQUITY: BalanceSide.CREDIT,
    AccountType.REVENUE: BalanceSide.CREDIT,
}

class Account(MongoModel):
    """A node in the chart of accounts."""
    code: str = Field(..., min_length=3, max_length=20, pattern=ACCOUNT_CODE_PATTERN)
    name: str
    type: AccountType
    normal_balance: BalanceSide
    parent_account_code: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True
    is_current: bool = False
    # Amount entered at creation; the balance itself comes from the posted opening entry
    opening_balance: Money = ZERO
    opening_entry_id: Optional[str] = None

    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

class AccountCreate(BaseModel):
    """Request body for creating an account. Normal-balance mapping is checked by the registry."""
    code: str = Field(..., min_length=3, max_length=20, pattern=ACCOUNT_CODE_PATTERN)
    name: str = Field(..., min_length=3, max_length=100)
    type: AccountType
    normal_balance: BalanceSide
    parent_account_code: Optional[str] = None
    description: Optional[str] = Field(None, max_length=500)
    is_active: bool = True
    is_current: bool = False
    opening_balance: Money = Field(ZERO, ge=0)
    # Date of the opening entry, today when omitted
    opening_date: Optional[EntryDate] = None

    @field_validator("parent_account_code", mode="before")
    @classmethod
    def blank_parent(cls, v):
        return v or None

class AccountUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=3, max_length=100)
    type: Optional[AccountType] = None
    normal_balance: Optional[BalanceSide] = None
    parent_account_code: Optional[str] = None
    description: Optional[str] = Field(None, max_length=500)
    is_current: Optional[bool] = None

    @model_validator(mode="after")
    def type_and_side_together(self):
        if (self.type is None) != (self.normal_balance is None):
            raise ValueError("type and normal_balance must be changed together")
        return self

class AccountNode(BaseModel):
    """Chart-of-accounts tree node."""
    code: str
    name: str
    type: AccountType
    normal_balance: BalanceSide
    is_current: bool = False
    children: List["AccountNode"] = []
