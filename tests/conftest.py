"""Pytest fixtures for testing"""

import copy
import threading
from typing import Callable, Generator
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from credshield_gateway.api.dependencies import get_chain_data_client, get_ledger_client, get_report_client
from credshield_gateway.api.main import create_app
from credshield_gateway.domain.exceptions import DataUnavailable
from credshield_gateway.domain.models import (
    SECONDS_PER_DAY,
    WEI,
    ActivitySnapshot,
    ExternalTransaction,
    PoolState,
    TokenTransfer,
    VaultReserve,
)
from credshield_gateway.infrastructure.clients.chain_data import ChainDataClient
from credshield_gateway.infrastructure.clients.ledger import LedgerClient
from credshield_gateway.infrastructure.clients.report import ReportClient
from credshield_gateway.infrastructure.database.models import Base
from credshield_gateway.infrastructure.database.repositories import SqlAlchemyLedgerStore
from credshield_gateway.infrastructure.database.session import get_db
from credshield_gateway.services.locks import KeyedLock

NOW = 1_700_000_000  # 2023-11-14T22:13:20Z

WALLET = "0x" + "ab" * 20
LENDER = "0x" + "cd" * 20
MERCHANT = "0x" + "ef" * 20

PANCAKE_V2 = "0x10ed43c718714eb63d5aa57b78b54704e256024e"
VENUS_VBNB = "0xa07c5b74c9b40447a954e1466938b865b6bbea36"
ALPACA = "0xa625ab01b08ce023b2a342dbb12a16f2c8489a8f"
BNB_STAKING = "0x0000000000000000000000000000000000002001"
STARGATE = "0x4a364f8c717caad9a442737eb7b8a55cc6cf18d8"
THENA = "0xd4ae6eca985340dd434d38f470accce4dc78d109"
USDT = "0x55d398326f99059ff775485246999027b3197955"
WBNB = "0xbb4cdb9cbd36b01bd1cbaebf2de08d9173bc095c"
ETH = "0x2170ed0880ac9a755fd29b2688956bd959f933f8"
BTCB = "0x7130d2a12b9bcbfae4f2634d864a1ee1ce3ead9c"


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def store(db: Session) -> SqlAlchemyLedgerStore:
    return SqlAlchemyLedgerStore(db)


class FakeClock:
    """Controllable unix clock"""

    def __init__(self, now: int = NOW):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, days: int = 0, seconds: int = 0) -> None:
        self.now += days * SECONDS_PER_DAY + seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def locks() -> KeyedLock:
    return KeyedLock()


@pytest.fixture
def ledger() -> AsyncMock:
    """Ledger webhook client that records calls instead of sending them"""
    return AsyncMock(spec=LedgerClient)


@pytest.fixture
def chain_data() -> AsyncMock:
    """Chain-data client; provider is down unless a test sets a snapshot"""
    client = AsyncMock(spec=ChainDataClient)
    client.fetch_snapshot.side_effect = DataUnavailable("unknown", "provider offline in tests")
    return client


@pytest.fixture
def client(db: Session, ledger: AsyncMock, chain_data: AsyncMock) -> TestClient:
    """Create FastAPI test client with test database and stubbed collaborators"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ledger_client] = lambda: ledger
    app.dependency_overrides[get_chain_data_client] = lambda: chain_data
    app.dependency_overrides[get_report_client] = lambda: ReportClient(api_key="")
    return TestClient(app)


# Snapshot builders


def make_tx(
    to: str,
    timestamp: int = NOW - 10 * SECONDS_PER_DAY,
    function_name: str = "",
    sender: str = WALLET,
    succeeded: bool = True,
    block: int = 1,
) -> ExternalTransaction:
    return ExternalTransaction(
        block=block,
        timestamp=timestamp,
        from_address=sender,
        to_address=to,
        value_wei=WEI // 100,
        gas_used=21_000,
        succeeded=succeeded,
        function_name=function_name,
    )


def make_transfer(contract: str, symbol: str, decimals: int = 18, timestamp: int = NOW - SECONDS_PER_DAY) -> TokenTransfer:
    return TokenTransfer(
        timestamp=timestamp,
        from_address=PANCAKE_V2,
        to_address=WALLET,
        value=WEI,
        token_symbol=symbol,
        token_decimals=decimals,
        token_contract=contract,
    )


def make_snapshot(transactions=(), token_transfers=(), balance_wei: int = 0, address: str = WALLET) -> ActivitySnapshot:
    return ActivitySnapshot(
        address=address,
        balance_wei=balance_wei,
        transactions=tuple(transactions),
        token_transfers=tuple(token_transfers),
        internal_transactions=(),
        as_of=NOW,
    )


@pytest.fixture
def snapshot_factory() -> Callable[..., ActivitySnapshot]:
    return make_snapshot


@pytest.fixture
def tx_factory() -> Callable[..., ExternalTransaction]:
    return make_tx


@pytest.fixture
def transfer_factory() -> Callable[..., TokenTransfer]:
    return make_transfer


@pytest.fixture
def veteran_snapshot() -> ActivitySnapshot:
    """Three-year DeFi user: lending, DEX, staking, bridge, governance, NFTs, blue chips"""
    calls = [
        (PANCAKE_V2, "swapExactTokensForTokens(uint256,uint256,address[],address,uint256)"),
        (VENUS_VBNB, "mint()"),
        (ALPACA, "repay(uint256)"),
        (BNB_STAKING, "delegate(address,uint256)"),
        (STARGATE, "swapETH(uint16,address,bytes,uint256,uint256)"),
    ]
    txs = []
    for i in range(240):
        to, fn = calls[i % len(calls)]
        txs.append(make_tx(to, NOW - (1_080 - i * 4) * SECONDS_PER_DAY, fn, block=i + 1))
    transfers = [
        make_transfer(USDT, "USDT"),
        make_transfer(WBNB, "WBNB"),
        make_transfer(ETH, "ETH"),
        make_transfer(BTCB, "BTCB"),
        make_transfer("0x" + "99" * 20, "SPACEID", decimals=0),
    ]
    return make_snapshot(txs, transfers, balance_wei=10 * WEI)


@pytest.fixture
def empty_activity() -> ActivitySnapshot:
    return make_snapshot()


# In-memory ledger store


class MemoryDatabase:
    """Committed state shared by every MemoryLedgerStore, like a database"""

    def __init__(self):
        self.lock = threading.Lock()
        self.tables = {
            "profiles": {},
            "histories": {},
            "loans": {},
            "positions": {},
            "purchases": {},
            "lenders": {},
            "pool": PoolState(),
            "reserve": VaultReserve(),
            "next_id": 1,
        }


class MemoryLedgerStore:
    """LedgerStore with copy-on-write transactions; one instance per worker, like a Session"""

    def __init__(self, database: MemoryDatabase):
        self.database = database
        self._tx = None
        self.profiles = self.loans = self.collateral = self.pool = self.purchases = self

    def _read(self):
        return self._tx if self._tx is not None else self.database.tables

    def _write(self):
        if self._tx is None:
            with self.database.lock:
                self._tx = copy.deepcopy(self.database.tables)
        return self._tx

    def _next_id(self) -> int:
        tables = self._write()
        tables["next_id"] += 1
        return tables["next_id"] - 1

    def commit(self) -> None:
        if self._tx is not None:
            with self.database.lock:
                self.database.tables = self._tx
        self._tx = None

    def rollback(self) -> None:
        self._tx = None

    # profiles
    def get_profile(self, address):
        return copy.deepcopy(self._read()["profiles"].get(address))

    def save_profile(self, profile):
        self._write()["profiles"][profile.address] = copy.deepcopy(profile)
        return profile

    def get_history(self, address):
        return copy.deepcopy(self._read()["histories"].get(address))

    def save_history(self, history):
        self._write()["histories"][history.address] = copy.deepcopy(history)
        return history

    # loans
    def get_loan(self, loan_id):
        return copy.deepcopy(self._read()["loans"].get(loan_id))

    def get_active_loan(self, borrower):
        active = [l for l in self._read()["loans"].values() if l.borrower == borrower and l.active]
        return copy.deepcopy(active[0]) if active else None

    def list_loans(self, borrower):
        loans = [l for l in self._read()["loans"].values() if l.borrower == borrower]
        return copy.deepcopy(sorted(loans, key=lambda l: l.id, reverse=True))

    def save_loan(self, loan):
        if loan.id is None:
            loan.id = self._next_id()
        self._write()["loans"][loan.id] = copy.deepcopy(loan)
        return loan

    # collateral
    def get_position(self, owner):
        positions = [p for p in self._read()["positions"].values() if p.owner == owner]
        return copy.deepcopy(max(positions, key=lambda p: p.id)) if positions else None

    def save_position(self, position):
        if position.id is None:
            position.id = self._next_id()
        self._write()["positions"][position.id] = copy.deepcopy(position)
        return position

    def get_reserve(self, for_update=False):
        return copy.deepcopy(self._read()["reserve"])

    def save_reserve(self, reserve):
        self._write()["reserve"] = copy.deepcopy(reserve)

    # pool
    def get_pool(self, for_update=False):
        return copy.deepcopy(self._read()["pool"])

    def save_pool(self, pool):
        self._write()["pool"] = copy.deepcopy(pool)

    def get_lender_balance(self, lender):
        return self._read()["lenders"].get(lender, 0)

    def save_lender_balance(self, lender, balance):
        self._write()["lenders"][lender] = balance

    # purchases
    def get_purchase(self, purchase_id):
        return copy.deepcopy(self._read()["purchases"].get(purchase_id))

    def get_purchase_for_loan(self, loan_id):
        found = [p for p in self._read()["purchases"].values() if p.loan_id == loan_id]
        return copy.deepcopy(found[0]) if found else None

    def list_by_buyer(self, buyer):
        found = [p for p in self._read()["purchases"].values() if p.buyer == buyer]
        return copy.deepcopy(sorted(found, key=lambda p: p.id, reverse=True))

    def list_by_merchant(self, merchant):
        found = [p for p in self._read()["purchases"].values() if p.merchant == merchant]
        return copy.deepcopy(sorted(found, key=lambda p: p.id, reverse=True))

    def save_purchase(self, purchase):
        if purchase.id is None:
            purchase.id = self._next_id()
        self._write()["purchases"][purchase.id] = copy.deepcopy(purchase)
        return purchase

    def stats(self):
        prices = [p.total_price for p in self._read()["purchases"].values()]
        return sum(prices), len(prices)


@pytest.fixture
def memory_db() -> MemoryDatabase:
    return MemoryDatabase()


@pytest.fixture
def memory_store(memory_db: MemoryDatabase) -> MemoryLedgerStore:
    return MemoryLedgerStore(memory_db)


@pytest.fixture
def store_factory(memory_db: MemoryDatabase) -> Callable[[], MemoryLedgerStore]:
    """New store (own transaction) over the shared in-memory database"""
    return lambda: MemoryLedgerStore(memory_db)
