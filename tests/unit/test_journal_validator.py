import pytest
from decimal import Decimal

from bookkeeper.errors import ValidationError, ValidationFailed
from bookkeeper.models.account import Account, AccountType, BalanceSide
from bookkeeper.models.accounting import JournalLineInput
from bookkeeper.tools.journal_validator import JournalValidator, Reason

def line(code, debit=0, credit=0):
    return JournalLineInput(account_code=code, debit_amount=debit, credit_amount=credit)

@pytest.fixture
def validator():
    return JournalValidator()

@pytest.fixture
def accounts():
    return {
        "1100": Account(code="1100", name="Cash", type=AccountType.ASSET, normal_balance=BalanceSide.DEBIT),
        "4100": Account(code="4100", name="Sales Revenue", type=AccountType.REVENUE, normal_balance=BalanceSide.CREDIT),
        "5900": Account(code="5900", name="Old Expense", type=AccountType.EXPENSE,
                        normal_balance=BalanceSide.DEBIT, is_active=False),
    }

def test_balanced_entry_passes(validator, accounts):
    lines = [line("1100", debit=1000), line("4100", credit=1000)]
    assert validator.check(lines, accounts) == []
    validator.validate(lines, accounts)

def test_line_with_both_sides(validator, accounts):
    lines = [line("1100", debit=100, credit=100), line("4100", credit=100)]
    with pytest.raises(ValidationError) as exc:
        validator.validate(lines, accounts)
    assert exc.value.reason == "LINE_BOTH_SIDES"
    assert exc.value.details["index"] == 0

def test_line_without_amount(validator, accounts):
    lines = [line("1100", debit=100), line("4100", credit=100), line("4100")]
    issues = validator.check(lines, accounts)
    assert issues[0].reason == Reason.LINE_NO_AMOUNT
    assert issues[0].index == 2

def test_unbalanced_reports_difference(validator, accounts):
    lines = [line("1100", debit=1000), line("4100", credit=900)]
    with pytest.raises(ValidationError) as exc:
        validator.validate(lines, accounts)
    assert exc.value.reason == "UNBALANCED"
    assert exc.value.details["difference"] == 100.0

def test_one_cent_difference_is_tolerated(validator, accounts):
    lines = [line("1100", debit="100.01"), line("4100", credit="100.00")]
    assert validator.check(lines, accounts) == []

def test_two_cent_difference_is_rejected(validator, accounts):
    lines = [line("1100", debit="100.02"), line("4100", credit="100.00")]
    assert [i.reason for i in validator.check(lines, accounts)] == [Reason.UNBALANCED]

def test_single_line_is_too_few(validator, accounts):
    issues = validator.check([line("1100", debit=100)], accounts)
    reasons = [i.reason for i in issues]
    assert reasons[0] == Reason.TOO_FEW_LINES
    assert Reason.ONE_SIDED in reasons

def test_all_debits_reports_unbalanced_first(validator, accounts):
    lines = [line("1100", debit=500), line("4100", debit=500)]
    issues = validator.check(lines, accounts)
    assert issues[0].reason == Reason.UNBALANCED
    assert issues[0].difference == Decimal("1000.00")
    assert [i.reason for i in issues] == [Reason.UNBALANCED, Reason.ONE_SIDED]

def test_all_debits_raises_unbalanced(validator, accounts):
    with pytest.raises(ValidationError) as exc:
        validator.validate([line("1100", debit=500), line("4100", debit=500)], accounts)
    assert exc.value.reason == "UNBALANCED"

def test_unknown_account(validator, accounts):
    lines = [line("1100", debit=100), line("9999", credit=100)]
    with pytest.raises(ValidationError) as exc:
        validator.validate(lines, accounts)
    assert exc.value.reason == "UNKNOWN_ACCOUNT"
    assert exc.value.details == {"index": 1, "account_code": "9999"}

def test_inactive_account(validator, accounts):
    lines = [line("5900", debit=100), line("1100", credit=100)]
    assert validator.check(lines, accounts)[0].reason == Reason.INACTIVE_ACCOUNT

def test_all_issues_are_attached(validator, accounts):
    lines = [line("1100", debit=10, credit=10), line("9999", credit=5)]
    with pytest.raises(ValidationError) as exc:
        validator.validate(lines, accounts)
    reasons = [i["reason"] for i in exc.value.issues]
    assert reasons == ["LINE_BOTH_SIDES", "UNBALANCED", "UNKNOWN_ACCOUNT"]

def test_error_class_can_be_swapped(validator, accounts):
    with pytest.raises(ValidationFailed):
        validator.validate([line("1100", debit=1), line("4100", credit=2)], accounts, error_cls=ValidationFailed)

def test_summary_totals(validator, accounts):
    summary = validator.summarize([line("1100", debit="10.50"), line("4100", credit="10.00")], accounts)
    assert summary.is_valid is False
    assert summary.total_debit == Decimal("10.50")
    assert summary.difference == Decimal("0.50")
