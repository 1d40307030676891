import io
from typing import List

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle
from reportlab.lib.styles import getSampleStyleSheet

from bookkeeper.models.reports import BalanceSheet, BalanceSheetSection, TrialBalance

TABLE_STYLE = TableStyle([
    ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
    ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
    ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
    ('ALIGN', (-2, 1), (-1, -1), 'RIGHT'),
    ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
    ('BOTTOMPADDING', (0, 0), (-1, 0), 12),
    ('BACKGROUND', (0, 1), (-1, -1), colors.beige),
    ('GRID', (0, 0), (-1, -1), 1, colors.black),
    ('FONTSIZE', (0, 0), (-1, -1), 8),
])

def _amount(value) -> str:
    return f"{value:,.2f}" if value else "-"

def _as_of(report) -> str:
    return report.as_of_date.strftime("%Y-%m-%d") if report.as_of_date else "today"

def _render(story: List) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4)
    doc.build(story)
    return buffer.getvalue()

def trial_balance_pdf(report: TrialBalance) -> bytes:
    styles = getSampleStyleSheet()
    story = [
        Paragraph(f"Trial Balance as of {_as_of(report)}", styles['Title']),
        Spacer(1, 12),
    ]

    data = [["Code", "Account", "Type", "Debit", "Credit"]]
    for row in report.accounts:
        data.append([row.code, row.name[:40], row.type.value, _amount(row.debit_balance), _amount(row.credit_balance)])
    data.append(["", "Total", "", _amount(report.total_debits), _amount(report.total_credits)])

    t = Table(data, colWidths=[70, 190, 70, 90, 90])
    t.setStyle(TABLE_STYLE)
    story.append(t)
    story.append(Spacer(1, 12))
    status = "Balanced" if report.is_balanced else f"NOT balanced (difference {report.difference:,.2f})"
    story.append(Paragraph(status, styles['Normal']))
    return _render(story)

def _section_table(title: str, section: BalanceSheetSection) -> Table:
    data = [[title, "", "Amount"]]
    for row in section.rows:
        data.append([row.code or "", row.name[:50], _amount(row.amount)])
    data.append(["", f"Total {title.lower()}", _amount(section.total)])
    t = Table(data, colWidths=[80, 250, 120])
    t.setStyle(TABLE_STYLE)
    return t

def balance_sheet_pdf(report: BalanceSheet) -> bytes:
    styles = getSampleStyleSheet()
    story = [
        Paragraph(f"Balance Sheet as of {_as_of(report)}", styles['Title']),
        Spacer(1, 12),
    ]
    for title, section in (("Assets", report.assets), ("Liabilities", report.liabilities), ("Equity", report.equity)):
        story.append(_section_table(title, section))
        story.append(Spacer(1, 12))

    ratios = report.ratios
    story.append(Paragraph(f"Current ratio: {ratios.current_ratio.display}", styles['Normal']))
    story.append(Paragraph(f"Debt-to-equity ratio: {ratios.debt_to_equity_ratio.display}", styles['Normal']))
    story.append(Paragraph(f"Working capital: {ratios.working_capital:,.2f}", styles['Normal']))
    return _render(story)
