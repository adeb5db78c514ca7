"""Shared FastAPI dependencies."""
from fastapi import Request

from expenses.sync.engine import ExpenseSyncEngine


def get_sync_engine(request: Request) -> ExpenseSyncEngine:
    """Return the engine owned by the running app."""
    return request.app.state.sync_engine
