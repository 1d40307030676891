from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, computed_field

from bookkeeper.models.account import AccountType, BalanceSide
from bookkeeper.models.base import Money
from bookkeeper.tools.money import ZERO

class LedgerRow(BaseModel):
    """One posted line as seen from a single account, with the balance after it."""
    entry_id: str
    date: datetime
    description: str
    line_description: Optional[str] = None
    reference_number: Optional[str] = None
    debit_amount: Money = ZERO
    credit_amount: Money = ZERO
    running_balance: Money = ZERO

class AccountLedger(BaseModel):
    account_code: str
    account_name: str
    account_type: AccountType
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None
    opening_balance: Money = ZERO
    entries: List[LedgerRow] = []
    closing_balance: Money = ZERO

    @computed_field
    @property
    def running_balances(self) -> List[Money]:
        return [row.running_balance for row in self.entries]

class AccountBalance(BaseModel):
    account_code: str
    as_of_date: Optional[datetime] = None
    debit_total: Money = ZERO
    credit_total: Money = ZERO
    net_balance: Money = ZERO
    balance: Money = ZERO
    balance_type: BalanceSide = BalanceSide.DEBIT

    @classmethod
    def from_totals(cls, account_code: str, debit_total: Decimal, credit_total: Decimal,
                    as_of_date: Optional[datetime] = None) -> "AccountBalance":
        net = debit_total - credit_total
        return cls(
            account_code=account_code,
            as_of_date=as_of_date,
            debit_total=debit_total,
            credit_total=credit_total,
            net_balance=net,
            balance=abs(net),
            balance_type=BalanceSide.DEBIT if net >= 0 else BalanceSide.CREDIT,
        )

class BalanceCheck(BaseModel):
    """Cached balance versus a full replay of posted entries."""
    account_code: str
    cached_balance: Money = ZERO
    replayed_balance: Money = ZERO
    drift: Money = ZERO
    is_consistent: bool = True
