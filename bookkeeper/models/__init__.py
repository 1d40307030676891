from bookkeeper.models.base import MongoModel, Money
from bookkeeper.models.account import Account, AccountCreate, AccountUpdate, AccountNode, AccountType, BalanceSide, NORMAL_BALANCE
from bookkeeper.models.accounting import JournalEntry, JournalLine, LedgerBalance, EntryStatus, ReferenceType, JournalEntryCreate, JournalEntryUpdate, JournalLineInput
from bookkeeper.models.ledger import LedgerRow, AccountLedger, AccountBalance, BalanceCheck
from bookkeeper.models.reports import TrialBalance, TrialBalanceRow, BalanceSheet, BalanceSheetSection, BalanceSheetRow, FinancialRatios, Ratio, VATReport
from bookkeeper.models.audit import AuditEvent, Action, Actor, ActionType, EntityType
from bookkeeper.models.bill import BillAmounts, BillJournalRequest, BillKind
from bookkeeper.models.user import User
