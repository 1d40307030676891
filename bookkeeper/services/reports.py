import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from bookkeeper.config import settings
from bookkeeper.database import Database
from bookkeeper.errors import DivisionUndefined
from bookkeeper.models.account import Account, AccountType
from bookkeeper.models.accounting import JournalEntry
from bookkeeper.models.reports import (
    BalanceSheet, BalanceSheetRow, BalanceSheetSection, FinancialRatios, Ratio,
    TrialBalance, TrialBalanceRow, VATReport
)
from bookkeeper.services.ledger import replay_totals
from bookkeeper.tools.money import ZERO, is_balanced, money_sum, safe_ratio

logger = logging.getLogger(__name__)

CREDIT_NORMAL_TYPES = (AccountType.LIABILITY, AccountType.EQUITY, AccountType.REVENUE)
EARNINGS_ROW_NAME = "Current period earnings"

def net_balances(accounts: Iterable[Account],
                 entries: Iterable[JournalEntry],
                 as_of: Optional[datetime] = None) -> Dict[str, Decimal]:
    """
    Debit-positive balance per account from posted movement up to as_of.
    Accounts without any movement are left out.
    """
    totals = replay_totals(entries, as_of)
    balances: Dict[str, Decimal] = {}
    for account in accounts:
        debit, credit = totals.get(account.code, (None, None))
        if debit is None:
            continue
        balances[account.code] = debit - credit
    return balances

def natural_amount(account: Account, net: Decimal) -> Decimal:
    """Flip credit-normal accounts so a normal balance reads positive."""
    return -net if account.type in CREDIT_NORMAL_TYPES else net

def build_trial_balance(accounts: List[Account],
                        balances: Dict[str, Decimal],
                        as_of: Optional[datetime] = None) -> TrialBalance:
    rows: List[TrialBalanceRow] = []
    totals_by_type: Dict[AccountType, Decimal] = {t: ZERO for t in AccountType}

    for account in sorted(accounts, key=lambda a: a.code):
        if account.code not in balances:
            continue
        net = balances[account.code]
        rows.append(TrialBalanceRow(
            code=account.code,
            name=account.name,
            type=account.type,
            debit_balance=net if net > ZERO else ZERO,
            credit_balance=-net if net < ZERO else ZERO
        ))
        totals_by_type[account.type] += natural_amount(account, net)

    total_debits = money_sum(r.debit_balance for r in rows)
    total_credits = money_sum(r.credit_balance for r in rows)
    return TrialBalance(
        as_of_date=as_of,
        accounts=rows,
        totals_by_type=totals_by_type,
        total_debits=total_debits,
        total_credits=total_credits,
        difference=abs(total_debits - total_credits),
        is_balanced=is_balanced(total_debits, total_credits)
    )

def ratio(numerator: Decimal, denominator: Decimal) -> Ratio:
    try:
        value = safe_ratio(numerator, denominator)
    except DivisionUndefined:
        return Ratio(value=None, is_defined=False, display="N/A")
    return Ratio(value=value, is_defined=True, display=f"{value:.2f}")

def compute_ratios(assets: BalanceSheetSection,
                   liabilities: BalanceSheetSection,
                   equity: BalanceSheetSection) -> FinancialRatios:
    return FinancialRatios(
        current_ratio=ratio(assets.current_total, liabilities.current_total),
        debt_to_equity_ratio=ratio(liabilities.total, equity.total),
        working_capital=assets.current_total - liabilities.current_total
    )

def _section(rows: List[BalanceSheetRow]) -> BalanceSheetSection:
    return BalanceSheetSection(
        rows=rows,
        total=money_sum(r.amount for r in rows),
        current_total=money_sum(r.amount for r in rows if r.is_current)
    )

def build_balance_sheet(accounts: List[Account],
                        balances: Dict[str, Decimal],
                        as_of: Optional[datetime] = None) -> BalanceSheet:
    """
    Assets against liabilities plus equity. Revenue and expense accounts are
    not closed into retained earnings by an entry, so their net is shown as a
    synthetic equity row.
    """
    sections: Dict[AccountType, List[BalanceSheetRow]] = {
        AccountType.ASSET: [], AccountType.LIABILITY: [], AccountType.EQUITY: []
    }
    earnings = ZERO
    has_income_activity = False

    for account in sorted(accounts, key=lambda a: a.code):
        if account.code not in balances:
            continue
        amount = natural_amount(account, balances[account.code])
        if account.type in sections:
            sections[account.type].append(BalanceSheetRow(
                code=account.code, name=account.name, amount=amount, is_current=account.is_current
            ))
        elif account.type == AccountType.REVENUE:
            earnings += amount
            has_income_activity = True
        else:
            earnings -= amount
            has_income_activity = True

    if has_income_activity:
        sections[AccountType.EQUITY].append(BalanceSheetRow(name=EARNINGS_ROW_NAME, amount=earnings))

    assets = _section(sections[AccountType.ASSET])
    liabilities = _section(sections[AccountType.LIABILITY])
    equity = _section(sections[AccountType.EQUITY])
    liabilities_and_equity = liabilities.total + equity.total

    return BalanceSheet(
        as_of_date=as_of,
        assets=assets,
        liabilities=liabilities,
        equity=equity,
        total_liabilities_and_equity=liabilities_and_equity,
        difference=abs(assets.total - liabilities_and_equity),
        is_balanced=is_balanced(assets.total, liabilities_and_equity),
        ratios=compute_ratios(assets, liabilities, equity)
    )

def build_vat_report(entries: Iterable[JournalEntry],
                     from_date: datetime,
                     to_date: datetime,
                     output_account: str,
                     input_account: str,
                     vat_rate: float) -> VATReport:
    """Output VAT is collected on sales (credit side), input VAT is paid on purchases (debit side)."""
    output_vat = ZERO
    input_vat = ZERO
    for entry in entries:
        if entry.date < from_date or entry.date > to_date:
            continue
        for line in entry.lines:
            if line.account_code == output_account:
                output_vat += line.credit_amount - line.debit_amount
            elif line.account_code == input_account:
                input_vat += line.debit_amount - line.credit_amount

    return VATReport(
        from_date=from_date,
        to_date=to_date,
        vat_rate=vat_rate,
        output_vat=output_vat,
        input_vat=input_vat,
        net_vat_payable=output_vat - input_vat,
        is_refundable=input_vat > output_vat
    )

class ReportService:
    def __init__(self, db: Database):
        self.db = db

    async def _balances(self, as_of: Optional[datetime]):
        # Inactive accounts still carry balances and must be reported
        accounts = await self.db.accounts.search()
        entries = await self.db.journals.posted_entries(to_date=as_of)
        return accounts, net_balances(accounts, entries, as_of)

    async def trial_balance(self, as_of: Optional[datetime] = None) -> TrialBalance:
        accounts, balances = await self._balances(as_of)
        report = build_trial_balance(accounts, balances, as_of)
        if not report.is_balanced:
            logger.warning(f"Trial balance out by {report.difference} as of {as_of}")
        return report

    async def balance_sheet(self, as_of: Optional[datetime] = None) -> BalanceSheet:
        accounts, balances = await self._balances(as_of)
        report = build_balance_sheet(accounts, balances, as_of)
        if not report.is_balanced:
            logger.warning(f"Balance sheet out by {report.difference} as of {as_of}")
        return report

    async def financial_ratios(self, as_of: Optional[datetime] = None) -> FinancialRatios:
        return (await self.balance_sheet(as_of)).ratios

    async def vat_report(self, from_date: datetime, to_date: datetime) -> VATReport:
        entries = await self.db.journals.posted_entries(from_date=from_date, to_date=to_date)
        return build_vat_report(
            entries, from_date, to_date,
            output_account=settings.VAT_OUTPUT_ACCOUNT,
            input_account=settings.VAT_INPUT_ACCOUNT,
            vat_rate=settings.VAT_RATE
        )
