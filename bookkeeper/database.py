import logging
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import AsyncIterator, Optional

from bson.codec_options import CodecOptions, TypeCodec, TypeRegistry
from bson.decimal128 import Decimal128
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorClientSession

from bookkeeper.config import settings
from bookkeeper.repositories.account import AccountRepository
from bookkeeper.repositories.journal import JournalRepository
from bookkeeper.repositories.balance import BalanceRepository
from bookkeeper.repositories.audit import AuditLogger
from bookkeeper.models.account import Account
from bookkeeper.models.accounting import JournalEntry, LedgerBalance
from bookkeeper.models.audit import AuditEvent

logger = logging.getLogger(__name__)

class DecimalCodec(TypeCodec):
    """Store money as Decimal128 so amounts never pass through binary floats."""
    python_type = Decimal
    bson_type = Decimal128

    def transform_python(self, value):
        return Decimal128(value)

    def transform_bson(self, value):
        return value.to_decimal()

CODEC_OPTIONS = CodecOptions(type_registry=TypeRegistry([DecimalCodec()]))

class Database:
    client: AsyncIOMotorClient = None
    db = None

    # Repositories
    accounts: AccountRepository = None
    journals: JournalRepository = None
    balances: BalanceRepository = None
    audit: AuditLogger = None

    def __init__(self, use_transactions: Optional[bool] = None):
        self.use_transactions = settings.MONGODB_TRANSACTIONS if use_transactions is None else use_transactions

    def connect(self):
        """Initialize database connection and repositories."""
        self.client = AsyncIOMotorClient(settings.MONGODB_URL)
        self.db = self.client.get_database(settings.DB_NAME, codec_options=CODEC_OPTIONS)

        # Initialize repositories with their respective collections and models
        self.accounts = AccountRepository(self.db.accounts, Account)
        self.journals = JournalRepository(self.db.journal_entries, JournalEntry)
        self.balances = BalanceRepository(self.db.account_balances, LedgerBalance)
        self.audit = AuditLogger(self.db.audit_log, AuditEvent)

        logger.info(f"Connected to MongoDB database '{settings.DB_NAME}'")

    def close(self):
        """Close database connection."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Optional[AsyncIOMotorClientSession]]:
        """
        Yield a session with an open multi-document transaction. Everything
        written through the session commits together or not at all.
        """
        if not self.use_transactions:
            yield None
            return
        async with await self.client.start_session() as session:
            async with session.start_transaction():
                yield session

db = Database()

async def get_db() -> Database:
    """Dependency for FastAPI."""
    return db
