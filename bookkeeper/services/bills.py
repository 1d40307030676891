"""
Journalize purchase and sales bills, and their returns.

A bill becomes one entry: the goods account for the taxable amount, the VAT
account for the VAT, and the settlement account (cash, receivable or payable)
for the total on the opposite side. Returns swap every side.
"""
import logging
from typing import List, Optional

from bookkeeper.config import settings
from bookkeeper.database import Database
from bookkeeper.errors import ValidationError
from bookkeeper.models.account import BalanceSide
from bookkeeper.models.accounting import JournalEntry, JournalEntryCreate, JournalLineInput, ReferenceType
from bookkeeper.models.bill import BillJournalRequest, BillKind
from bookkeeper.models.user import User
from bookkeeper.services.posting import PostingEngine
from bookkeeper.tools.money import ZERO
from bookkeeper.tools.vat import VATCalculator, vat_calculator

logger = logging.getLogger(__name__)

# Side of the goods and VAT lines; the settlement line takes the other one
GOODS_SIDE = {
    BillKind.PURCHASE: BalanceSide.DEBIT,
    BillKind.SALES_RETURN: BalanceSide.DEBIT,
    BillKind.SALES: BalanceSide.CREDIT,
    BillKind.PURCHASE_RETURN: BalanceSide.CREDIT,
}

DESCRIPTIONS = {
    BillKind.PURCHASE: "Purchase from {party}",
    BillKind.SALES: "Sales to {party}",
    BillKind.PURCHASE_RETURN: "Purchase return to {party}",
    BillKind.SALES_RETURN: "Sales return from {party}",
}

def vat_account_for(kind: BillKind) -> str:
    if kind in (BillKind.PURCHASE, BillKind.PURCHASE_RETURN):
        return settings.VAT_INPUT_ACCOUNT
    return settings.VAT_OUTPUT_ACCOUNT

def _line(side: BalanceSide, account_code: str, amount, description: str) -> JournalLineInput:
    if side == BalanceSide.DEBIT:
        return JournalLineInput(account_code=account_code, description=description, debit_amount=amount)
    return JournalLineInput(account_code=account_code, description=description, credit_amount=amount)

def bill_lines(bill: BillJournalRequest) -> List[JournalLineInput]:
    """Two lines for an exempt bill, three when it carries VAT."""
    goods_side = GOODS_SIDE[bill.kind]
    settle_side = BalanceSide.CREDIT if goods_side == BalanceSide.DEBIT else BalanceSide.DEBIT
    description = DESCRIPTIONS[bill.kind].format(party=bill.party_name)

    lines = [_line(goods_side, bill.account_code, bill.taxable_amount, description)]
    if bill.vat_amount > ZERO:
        lines.append(_line(goods_side, vat_account_for(bill.kind), bill.vat_amount, f"VAT on bill {bill.bill_number}"))
    lines.append(_line(settle_side, bill.settlement_account_code, bill.total_amount, f"Settlement of bill {bill.bill_number}"))
    return lines

class BillJournalizer:
    def __init__(self, db: Database, engine: Optional[PostingEngine] = None, calculator: VATCalculator = vat_calculator):
        self.db = db
        self.engine = engine or PostingEngine(db)
        self.calculator = calculator

    async def journalize(self, bill: BillJournalRequest, user: User) -> JournalEntry:
        """Check the bill's VAT, then create (and optionally post) its entry."""
        check = self.calculator.validate_bill(
            bill.taxable_amount, bill.vat_amount, bill.total_amount, exempt=bill.exempt
        )
        if not check["valid"]:
            logger.warning(f"Rejected bill {bill.bill_number}: {check['details']}")
            raise ValidationError(
                reason="VAT_MISMATCH",
                message=check["details"],
                details={"bill_number": bill.bill_number, "kind": bill.kind.value}
            )

        entry = await self.engine.create_entry(JournalEntryCreate(
            date=bill.date,
            description=f"{DESCRIPTIONS[bill.kind].format(party=bill.party_name)} (bill {bill.bill_number})"[:500],
            reference_number=bill.bill_number,
            reference_type=ReferenceType.INVOICE,
            status=bill.status,
            notes=bill.notes,
            lines=bill_lines(bill)
        ), user)
        logger.info(f"Journalized {bill.kind.value} bill {bill.bill_number} as {entry.entry_id}")
        return entry
