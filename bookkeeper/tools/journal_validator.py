"""
Double-entry validation for proposed journal entries.

The validator is pure: callers resolve the referenced accounts beforehand and
pass them in as a mapping of code -> Account. It runs when a draft is created
or edited, from the standalone validate endpoint, and again at posting time.
"""
from enum import Enum
from decimal import Decimal
from typing import List, Mapping, Optional, Protocol, Sequence, Type

from pydantic import BaseModel

from bookkeeper.errors import ValidationError
from bookkeeper.models.account import Account
from bookkeeper.models.base import Money
from bookkeeper.tools.money import ZERO, money_sum, within_epsilon

MIN_LINES = 2

class Reason(str, Enum):
    LINE_BOTH_SIDES = "LINE_BOTH_SIDES"
    LINE_NO_AMOUNT = "LINE_NO_AMOUNT"
    TOO_FEW_LINES = "TOO_FEW_LINES"
    ONE_SIDED = "ONE_SIDED"
    UNBALANCED = "UNBALANCED"
    UNKNOWN_ACCOUNT = "UNKNOWN_ACCOUNT"
    INACTIVE_ACCOUNT = "INACTIVE_ACCOUNT"

class LineLike(Protocol):
    account_code: str
    debit_amount: Decimal
    credit_amount: Decimal

class ValidationIssue(BaseModel):
    reason: Reason
    message: str
    index: Optional[int] = None
    account_code: Optional[str] = None
    difference: Optional[Money] = None

class ValidationSummary(BaseModel):
    is_valid: bool
    total_debit: Money = ZERO
    total_credit: Money = ZERO
    difference: Money = ZERO
    issues: List[ValidationIssue] = []

class JournalValidator:
    def check(self, lines: Sequence[LineLike], accounts: Mapping[str, Account]) -> List[ValidationIssue]:
        """
        Collect every problem with the proposed lines, in a stable order:
        per-line shape first, then line count and balance, then account resolution.
        """
        issues: List[ValidationIssue] = []

        for index, line in enumerate(lines):
            has_debit = line.debit_amount > ZERO
            has_credit = line.credit_amount > ZERO
            if has_debit and has_credit:
                issues.append(ValidationIssue(
                    reason=Reason.LINE_BOTH_SIDES,
                    index=index,
                    account_code=line.account_code,
                    message=f"Line {index} cannot have both debit and credit amounts"
                ))
            elif not has_debit and not has_credit:
                issues.append(ValidationIssue(
                    reason=Reason.LINE_NO_AMOUNT,
                    index=index,
                    account_code=line.account_code,
                    message=f"Line {index} must have either a debit or a credit amount"
                ))

        if len(lines) < MIN_LINES:
            issues.append(ValidationIssue(
                reason=Reason.TOO_FEW_LINES,
                message=f"Journal entry must have at least {MIN_LINES} lines"
            ))

        total_debit, total_credit = self.totals(lines)
        difference = abs(total_debit - total_credit)
        if not within_epsilon(total_debit, total_credit):
            issues.append(ValidationIssue(
                reason=Reason.UNBALANCED,
                difference=difference,
                message=f"Total debits ({total_debit}) must equal total credits ({total_credit}). Difference: {difference}"
            ))

        # Always accompanies UNBALANCED or TOO_FEW_LINES, so it is never reported first
        if lines and (
            not any(l.debit_amount > ZERO for l in lines)
            or not any(l.credit_amount > ZERO for l in lines)
        ):
            issues.append(ValidationIssue(
                reason=Reason.ONE_SIDED,
                message="Journal entry needs at least one debit line and one credit line"
            ))

        for index, line in enumerate(lines):
            account = accounts.get(line.account_code)
            if account is None:
                issues.append(ValidationIssue(
                    reason=Reason.UNKNOWN_ACCOUNT,
                    index=index,
                    account_code=line.account_code,
                    message=f"Account {line.account_code} does not exist"
                ))
            elif not account.is_active:
                issues.append(ValidationIssue(
                    reason=Reason.INACTIVE_ACCOUNT,
                    index=index,
                    account_code=line.account_code,
                    message=f"Account {line.account_code} is inactive"
                ))

        return issues

    def validate(self, lines: Sequence[LineLike], accounts: Mapping[str, Account],
                 error_cls: Type[ValidationError] = ValidationError) -> None:
        """Raise error_cls describing the first issue (all issues attached) if the lines are not postable."""
        issues = self.check(lines, accounts)
        if not issues:
            return
        first = issues[0]
        details = first.model_dump(mode="json", exclude_none=True, exclude={"reason", "message"})
        raise error_cls(
            reason=first.reason.value,
            message=first.message,
            details=details,
            issues=[i.model_dump(mode="json", exclude_none=True) for i in issues]
        )

    def summarize(self, lines: Sequence[LineLike], accounts: Mapping[str, Account]) -> ValidationSummary:
        issues = self.check(lines, accounts)
        total_debit, total_credit = self.totals(lines)
        return ValidationSummary(
            is_valid=not issues,
            total_debit=total_debit,
            total_credit=total_credit,
            difference=abs(total_debit - total_credit),
            issues=issues
        )

    @staticmethod
    def totals(lines: Sequence[LineLike]):
        return (
            money_sum(l.debit_amount for l in lines),
            money_sum(l.credit_amount for l in lines),
        )

journal_validator = JournalValidator()
