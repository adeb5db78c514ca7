"""Shared test fixtures."""
from datetime import datetime
from typing import Any, Dict, List, Optional, Set
from unittest.mock import AsyncMock

import pytest
from pymongo.errors import WriteError
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

# Import all models so SQLModel.metadata knows about them
from expenses.models.expense import Expense
from expenses.models.preference import Preference  # noqa: F401
from expenses.models.sync import PendingDeletion  # noqa: F401
from expenses.db.store import ExpenseStore
from expenses.remote.client import RemoteUnavailableError
from expenses.sync.connectivity import ConnectivityMonitor
from expenses.sync.engine import ExpenseSyncEngine
from expenses.sync.status import SyncStatusBroadcaster


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine. Tables recreated fresh for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="store")
def store_fixture(engine) -> ExpenseStore:
    return ExpenseStore(engine)


def make_expense(expense_id: str = "a", amount: float = 100.0, **overrides) -> Expense:
    fields = dict(
        id=expense_id,
        title="Lunch",
        amount=amount,
        date=datetime(2025, 3, 14, 12, 30),
        category="restaurant",
        payment_method="upi",
        description=None,
        synced=False,
    )
    fields.update(overrides)
    return Expense(**fields)


# ─── Fake remote collection ───────────────────────────────────────────────────

class FakeRemote:
    """
    Dict-backed stand-in for RemoteExpenseStore.

    `fail` holds operation names ("connect", "insert", "update_by_id",
    "remove_by_id", "find_by_id", "find_all") that raise a per-document
    WriteError; `fail_ids` restricts that to specific ids. `lose_connection`
    makes every call raise RemoteUnavailableError.
    """

    def __init__(self, docs: Optional[List[Dict[str, Any]]] = None, enabled: bool = True):
        self.docs: Dict[str, Dict[str, Any]] = {d["_id"]: dict(d) for d in (docs or [])}
        self.enabled = enabled
        self.connected = False
        self.connect_count = 0
        self.calls: List[tuple] = []
        self.fail: Set[str] = set()
        self.fail_ids: Set[str] = set()
        self.lose_connection = False
        self.closed = False

    def _check(self, op: str, expense_id: Optional[str] = None) -> None:
        self.calls.append((op, expense_id))
        if self.lose_connection:
            raise RemoteUnavailableError(f"{op}: connection lost")
        if op in self.fail and (not self.fail_ids or expense_id in self.fail_ids):
            if op == "connect":
                raise RemoteUnavailableError("connect: unreachable")
            raise WriteError(f"{op} failed for {expense_id}")

    @property
    def write_calls(self) -> List[tuple]:
        return [c for c in self.calls if c[0] in ("insert", "update_by_id", "remove_by_id")]

    async def ensure_connected(self) -> None:
        if self.connected:
            return
        self._check("connect")
        self.connect_count += 1
        self.connected = True

    async def close(self) -> None:
        self.closed = True
        self.connected = False

    async def insert(self, doc):
        self._check("insert", doc["_id"])
        if doc["_id"] in self.docs:
            raise WriteError(f"duplicate key {doc['_id']}")
        self.docs[doc["_id"]] = dict(doc)

    async def update_by_id(self, expense_id, doc):
        self._check("update_by_id", expense_id)
        if expense_id not in self.docs:
            return False
        self.docs[expense_id] = dict(doc)
        return True

    async def remove_by_id(self, expense_id):
        self._check("remove_by_id", expense_id)
        self.docs.pop(expense_id, None)

    async def find_by_id(self, expense_id):
        self._check("find_by_id", expense_id)
        doc = self.docs.get(expense_id)
        return dict(doc) if doc else None

    async def find_all(self):
        self._check("find_all")
        return [dict(d) for d in self.docs.values()]


@pytest.fixture(name="remote")
def remote_fixture() -> FakeRemote:
    return FakeRemote()


def make_monitor(online: bool) -> ConnectivityMonitor:
    """Monitor already in the given state; its probe keeps reporting it."""
    return ConnectivityMonitor(AsyncMock(return_value=online), initially_online=online)


def make_sync_engine(store, remote, online: bool = True, **kwargs) -> ExpenseSyncEngine:
    return ExpenseSyncEngine(
        store, remote, make_monitor(online), SyncStatusBroadcaster(), **kwargs
    )


@pytest.fixture(name="online_engine")
def online_engine_fixture(store, remote) -> ExpenseSyncEngine:
    return make_sync_engine(store, remote, online=True)


@pytest.fixture(name="offline_engine")
def offline_engine_fixture(store, remote) -> ExpenseSyncEngine:
    return make_sync_engine(store, remote, online=False)
