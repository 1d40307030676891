import pytest
import pytest_asyncio

from bookkeeper.models.account import AccountCreate
from bookkeeper.models.user import User
from bookkeeper.services.accounts import AccountRegistry
from bookkeeper.services.ledger import LedgerAggregator
from bookkeeper.services.posting import PostingEngine
from bookkeeper.services.reports import ReportService
from tests.fakes import CHART, FakeDatabase, normal_side

@pytest.fixture
def admin():
    return User(username="admin", role="admin")

@pytest.fixture
def accountant():
    return User(username="ram", role="accountant", full_name="Ram Sharma")

@pytest.fixture
def fake_db():
    return FakeDatabase()

@pytest.fixture
def registry(fake_db):
    return AccountRegistry(fake_db)

@pytest.fixture
def engine(fake_db):
    return PostingEngine(fake_db)

@pytest.fixture
def ledger(fake_db):
    return LedgerAggregator(fake_db)

@pytest.fixture
def reports(fake_db):
    return ReportService(fake_db)

@pytest_asyncio.fixture
async def chart(registry, admin):
    """Standard chart of accounts, no opening balances."""
    for code, name, type, is_current in CHART:
        await registry.create_account(AccountCreate(
            code=code, name=name, type=type, normal_balance=normal_side(type), is_current=is_current
        ), admin)
    return registry
