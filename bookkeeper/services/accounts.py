import logging
from datetime import datetime
from typing import Dict, List, Optional

from pymongo.errors import DuplicateKeyError

from bookkeeper.config import settings
from bookkeeper.database import Database
from bookkeeper.errors import ConflictError, NotFoundError, ValidationError
from bookkeeper.models.account import (
    Account, AccountCreate, AccountNode, AccountType, AccountUpdate, BalanceSide, NORMAL_BALANCE
)
from bookkeeper.models.accounting import EntryStatus, JournalEntryCreate, JournalLineInput, ReferenceType
from bookkeeper.models.audit import ActionType, EntityType
from bookkeeper.models.user import User
from bookkeeper.services.posting import PostingEngine
from bookkeeper.tools.money import ZERO

logger = logging.getLogger(__name__)

def check_normal_balance(type: AccountType, normal_balance: BalanceSide) -> None:
    expected = NORMAL_BALANCE[type]
    if normal_balance != expected:
        raise ValidationError(
            reason="INVALID_NORMAL_BALANCE",
            message=f"{type.value} accounts should have {expected.value} normal balance",
            details={"type": type.value, "expected": expected.value, "got": normal_balance.value}
        )

def build_chart(accounts: List[Account]) -> List[AccountNode]:
    """Nest accounts under their parents. Accounts whose parent is missing become roots."""
    nodes: Dict[str, AccountNode] = {
        a.code: AccountNode(code=a.code, name=a.name, type=a.type,
                            normal_balance=a.normal_balance, is_current=a.is_current)
        for a in sorted(accounts, key=lambda a: a.code)
    }
    roots: List[AccountNode] = []
    for account in sorted(accounts, key=lambda a: a.code):
        parent = nodes.get(account.parent_account_code) if account.parent_account_code else None
        if parent is not None and account.parent_account_code != account.code:
            parent.children.append(nodes[account.code])
        else:
            roots.append(nodes[account.code])
    return roots

class AccountRegistry:
    """Chart of accounts. Balances are never written here, only through posted entries."""

    def __init__(self, db: Database):
        self.db = db

    async def get_account(self, code: str) -> Account:
        account = await self.db.accounts.get_by_code(code)
        if not account:
            raise NotFoundError(f"Account {code} not found", {"code": code})
        return account

    async def list_accounts(self,
                            type: Optional[AccountType] = None,
                            search: Optional[str] = None,
                            is_active: Optional[bool] = None) -> List[Account]:
        return await self.db.accounts.search(type=type, search=search, is_active=is_active)

    async def chart_of_accounts(self) -> List[AccountNode]:
        accounts = await self.db.accounts.search(is_active=True)
        return build_chart(accounts)

    async def create_account(self, data: AccountCreate, user: User) -> Account:
        check_normal_balance(data.type, data.normal_balance)

        if await self.db.accounts.get_by_code(data.code):
            raise ValidationError(
                reason="DUPLICATE_CODE",
                message=f"Account code {data.code} already exists",
                details={"code": data.code}
            )
        if data.parent_account_code:
            await self._check_parent(data.code, data.parent_account_code)

        if data.opening_balance > ZERO:
            await self._check_opening(data)

        account = Account(**data.model_dump(exclude={"opening_date"}), created_by=user.username)
        try:
            await self.db.accounts.create(account)
        except DuplicateKeyError:
            # Lost a race against a concurrent create with the same code
            raise ValidationError(
                reason="DUPLICATE_CODE",
                message=f"Account code {data.code} already exists",
                details={"code": data.code}
            )

        await self.db.audit.log_action(
            EntityType.ACCOUNT, account.code, user.as_actor(), ActionType.USER_ACTION,
            f"Created {account.type.value} account {account.code} ({account.name})"
        )
        logger.info(f"Account created: {account.code}")

        if account.opening_balance > ZERO:
            account = await self._post_opening(account, data.opening_date, user)
        return account

    async def update_account(self, code: str, changes: AccountUpdate, user: User) -> Account:
        account = await self.get_account(code)
        update_data = changes.model_dump(exclude_unset=True)

        if changes.type is not None and (changes.type != account.type or changes.normal_balance != account.normal_balance):
            check_normal_balance(changes.type, changes.normal_balance)
            if await self.db.journals.references_account(code, EntryStatus.POSTED):
                raise ConflictError(
                    f"Cannot change the type of account {code}: it has posted entries",
                    {"code": code, "reason": "ACCOUNT_HAS_POSTINGS"}
                )
        if update_data.get("parent_account_code"):
            await self._check_parent(code, update_data["parent_account_code"])

        for enum_field in ("type", "normal_balance"):
            if update_data.get(enum_field) is not None:
                update_data[enum_field] = update_data[enum_field].value

        updated = await self.db.accounts.update_by_code(code, update_data)
        if updated is None:
            raise NotFoundError(f"Account {code} not found", {"code": code})

        await self.db.audit.log_action(
            EntityType.ACCOUNT, code, user.as_actor(), ActionType.USER_ACTION,
            f"Updated account {code}: {', '.join(sorted(update_data)) or 'no changes'}"
        )
        logger.info(f"Account updated: {code}")
        return updated

    async def deactivate(self, code: str, user: User) -> Account:
        """Soft-deactivate. Always allowed; inactive accounts reject new postings."""
        return await self._set_active(code, False, user)

    async def activate(self, code: str, user: User) -> Account:
        return await self._set_active(code, True, user)

    async def delete_account(self, code: str, user: User) -> None:
        """Hard delete, only for accounts no entry references."""
        await self.get_account(code)
        if await self.db.journals.references_account(code, EntryStatus.POSTED):
            logger.warning(f"Refused to delete account {code}: has posted entries")
            raise ConflictError(
                f"Cannot delete account {code} with posted entries. Deactivate it instead.",
                {"code": code, "reason": "ACCOUNT_HAS_POSTINGS"}
            )
        if await self.db.journals.references_account(code, EntryStatus.DRAFT):
            raise ConflictError(
                f"Cannot delete account {code}: draft entries reference it",
                {"code": code, "reason": "ACCOUNT_HAS_DRAFTS"}
            )

        await self.db.accounts.delete_by_code(code)
        await self.db.audit.log_action(
            EntityType.ACCOUNT, code, user.as_actor(), ActionType.USER_ACTION, f"Deleted account {code}"
        )
        logger.info(f"Account deleted: {code}")

    async def _set_active(self, code: str, is_active: bool, user: User) -> Account:
        await self.get_account(code)
        updated = await self.db.accounts.update_by_code(code, {"is_active": is_active})
        state = "Activated" if is_active else "Deactivated"
        await self.db.audit.log_action(
            EntityType.ACCOUNT, code, user.as_actor(), ActionType.STATE_CHANGE, f"{state} account {code}"
        )
        logger.info(f"{state} account {code}")
        return updated

    async def _check_opening(self, data: AccountCreate) -> None:
        equity_code = settings.OPENING_BALANCE_ACCOUNT
        if data.code == equity_code or not data.is_active:
            raise ValidationError(
                reason="INVALID_OPENING_BALANCE",
                message=f"Account {data.code} cannot carry an opening balance",
                details={"code": data.code}
            )
        equity = await self.db.accounts.get_by_code(equity_code)
        if equity is None or not equity.is_active:
            raise ValidationError(
                reason="UNKNOWN_ACCOUNT" if equity is None else "INACTIVE_ACCOUNT",
                message=f"Opening balance account {equity_code} is missing or inactive",
                details={"account_code": equity_code}
            )

    async def _post_opening(self, account: Account, date: Optional[datetime], user: User) -> Account:
        """Post the opening balance on the account's normal side against opening-balance equity."""
        amount = account.opening_balance
        debit, credit = (amount, ZERO) if account.normal_balance == BalanceSide.DEBIT else (ZERO, amount)
        entry = await PostingEngine(self.db).create_entry(JournalEntryCreate(
            date=date or datetime.utcnow().replace(hour=0, minute=0, second=0, microsecond=0),
            description=f"Opening balance for {account.code} ({account.name})"[:500],
            reference_number=account.code,
            reference_type=ReferenceType.OPENING_BALANCE,
            status=EntryStatus.POSTED,
            lines=[
                JournalLineInput(account_code=account.code, description="Opening balance",
                                 debit_amount=debit, credit_amount=credit),
                JournalLineInput(account_code=settings.OPENING_BALANCE_ACCOUNT,
                                 description=f"Opening balance for {account.code}",
                                 debit_amount=credit, credit_amount=debit),
            ]
        ), user)
        logger.info(f"Opening balance {amount} for {account.code} posted as {entry.entry_id}")
        return await self.db.accounts.update_by_code(account.code, {"opening_entry_id": entry.entry_id})

    async def _check_parent(self, code: str, parent_code: str) -> None:
        """Parent must exist and must not create a cycle."""
        seen = {code}
        current = parent_code
        while current:
            if current in seen:
                raise ValidationError(
                    reason="PARENT_CYCLE",
                    message=f"Account {parent_code} cannot be the parent of {code}",
                    details={"code": code, "parent_account_code": parent_code}
                )
            parent = await self.db.accounts.get_by_code(current)
            if parent is None:
                raise ValidationError(
                    reason="UNKNOWN_PARENT",
                    message=f"Parent account {current} does not exist",
                    details={"parent_account_code": current}
                )
            seen.add(current)
            current = parent.parent_account_code
