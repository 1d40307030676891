from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from bookkeeper.models.accounting import EntryStatus
from bookkeeper.models.base import EntryDate, Money
from bookkeeper.tools.money import ZERO

class BillKind(str, Enum):
    PURCHASE = "purchase"
    SALES = "sales"
    PURCHASE_RETURN = "purchase_return"
    SALES_RETURN = "sales_return"

class BillAmounts(BaseModel):
    """VAT arithmetic of a purchase or sales bill."""
    taxable_amount: Money = Field(..., ge=0)
    vat_amount: Money = Field(ZERO, ge=0)
    total_amount: Money = Field(..., ge=0)
    exempt: bool = False

class BillJournalRequest(BillAmounts):
    """
    A bill to journalize. account_code is the purchase/expense account for
    purchases and the revenue account for sales; settlement_account_code is
    cash, bank, receivable or payable.
    """
    kind: BillKind
    bill_number: str = Field(..., min_length=1, max_length=100)
    party_name: str = Field(..., min_length=1, max_length=200)
    date: EntryDate
    account_code: str = Field(..., min_length=1)
    settlement_account_code: str = Field(..., min_length=1)
    notes: Optional[str] = Field(None, max_length=1000)
    status: EntryStatus = EntryStatus.DRAFT
