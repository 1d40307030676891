from datetime import date, datetime, time
from typing import Optional

from fastapi import Depends

from bookkeeper.database import Database, get_db
from bookkeeper.services.accounts import AccountRegistry
from bookkeeper.services.bills import BillJournalizer
from bookkeeper.services.ledger import LedgerAggregator
from bookkeeper.services.posting import PostingEngine
from bookkeeper.services.reports import ReportService

def get_registry(db: Database = Depends(get_db)) -> AccountRegistry:
    return AccountRegistry(db)

def get_posting_engine(db: Database = Depends(get_db)) -> PostingEngine:
    return PostingEngine(db)

def get_bill_journalizer(db: Database = Depends(get_db)) -> BillJournalizer:
    return BillJournalizer(db)

def get_ledger(db: Database = Depends(get_db)) -> LedgerAggregator:
    return LedgerAggregator(db)

def get_reports(db: Database = Depends(get_db)) -> ReportService:
    return ReportService(db)

def start_of(day: Optional[date]) -> Optional[datetime]:
    return datetime.combine(day, time.min) if day else None

def end_of(day: Optional[date]) -> Optional[datetime]:
    """Inclusive upper bound for date filters."""
    return datetime.combine(day, time.max) if day else None
