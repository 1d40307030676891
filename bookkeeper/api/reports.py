from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from bookkeeper.api.deps import end_of, get_reports, start_of
from bookkeeper.exports import balance_sheet_pdf, trial_balance_pdf
from bookkeeper.guardrails.decorators import require_permission
from bookkeeper.guardrails.permissions import Permission
from bookkeeper.models.bill import BillAmounts
from bookkeeper.models.reports import BalanceSheet, FinancialRatios, TrialBalance, VATReport
from bookkeeper.models.user import User
from bookkeeper.services.reports import ReportService
from bookkeeper.tools.vat import vat_calculator

router = APIRouter(prefix="/api/reports", tags=["Reports"])

def _pdf(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )

@router.get("/trial-balance", response_model=TrialBalance)
async def trial_balance(
    as_of_date: Optional[date] = Query(None),
    reports: ReportService = Depends(get_reports),
    current_user: User = Depends(require_permission(Permission.VIEW_REPORTS))
):
    return await reports.trial_balance(end_of(as_of_date))

@router.get("/trial-balance/pdf")
async def trial_balance_export(
    as_of_date: Optional[date] = Query(None),
    reports: ReportService = Depends(get_reports),
    current_user: User = Depends(require_permission(Permission.VIEW_REPORTS))
):
    report = await reports.trial_balance(end_of(as_of_date))
    return _pdf(trial_balance_pdf(report), f"trial_balance_{as_of_date or date.today()}.pdf")

@router.get("/balance-sheet", response_model=BalanceSheet)
async def balance_sheet(
    as_of_date: Optional[date] = Query(None),
    reports: ReportService = Depends(get_reports),
    current_user: User = Depends(require_permission(Permission.VIEW_REPORTS))
):
    return await reports.balance_sheet(end_of(as_of_date))

@router.get("/balance-sheet/pdf")
async def balance_sheet_export(
    as_of_date: Optional[date] = Query(None),
    reports: ReportService = Depends(get_reports),
    current_user: User = Depends(require_permission(Permission.VIEW_REPORTS))
):
    report = await reports.balance_sheet(end_of(as_of_date))
    return _pdf(balance_sheet_pdf(report), f"balance_sheet_{as_of_date or date.today()}.pdf")

@router.get("/ratios", response_model=FinancialRatios)
async def financial_ratios(
    as_of_date: Optional[date] = Query(None),
    reports: ReportService = Depends(get_reports),
    current_user: User = Depends(require_permission(Permission.VIEW_REPORTS))
):
    return await reports.financial_ratios(end_of(as_of_date))

@router.get("/vat", response_model=VATReport)
async def vat_report(
    from_date: date,
    to_date: date,
    reports: ReportService = Depends(get_reports),
    current_user: User = Depends(require_permission(Permission.VIEW_REPORTS))
):
    return await reports.vat_report(start_of(from_date), end_of(to_date))

@router.post("/vat/check-bill")
async def check_bill(
    bill: BillAmounts,
    current_user: User = Depends(require_permission(Permission.CREATE_JOURNAL))
):
    """Check a bill's VAT arithmetic before it is journalized."""
    return vat_calculator.validate_bill(bill.taxable_amount, bill.vat_amount, bill.total_amount, exempt=bill.exempt)
