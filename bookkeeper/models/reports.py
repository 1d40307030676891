from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel

from bookkeeper.models.account import AccountType
from bookkeeper.models.base import Money
from bookkeeper.tools.money import ZERO

class TrialBalanceRow(BaseModel):
    code: str
    name: str
    type: AccountType
    debit_balance: Money = ZERO
    credit_balance: Money = ZERO

class TrialBalance(BaseModel):
    as_of_date: Optional[datetime] = None
    accounts: List[TrialBalanceRow] = []
    totals_by_type: Dict[AccountType, Money] = {}
    total_debits: Money = ZERO
    total_credits: Money = ZERO
    difference: Money = ZERO
    is_balanced: bool = True

class BalanceSheetRow(BaseModel):
    code: Optional[str] = None
    name: str
    amount: Money = ZERO
    is_current: bool = False

class BalanceSheetSection(BaseModel):
    rows: List[BalanceSheetRow] = []
    total: Money = ZERO
    current_total: Money = ZERO

class Ratio(BaseModel):
    """A ratio, or an explicit N/A marker when the denominator is zero."""
    value: Optional[Money] = None
    is_defined: bool = True
    display: str = "N/A"

class FinancialRatios(BaseModel):
    current_ratio: Ratio
    debt_to_equity_ratio: Ratio
    working_capital: Money = ZERO

class BalanceSheet(BaseModel):
    as_of_date: Optional[datetime] = None
    assets: BalanceSheetSection
    liabilities: BalanceSheetSection
    equity: BalanceSheetSection
    total_liabilities_and_equity: Money = ZERO
    difference: Money = ZERO
    is_balanced: bool = True
    ratios: FinancialRatios

class VATReport(BaseModel):
    from_date: datetime
    to_date: datetime
    vat_rate: float
    output_vat: Money = ZERO
    input_vat: Money = ZERO
    net_vat_payable: Money = ZERO
    is_refundable: bool = False
