"""Sync status types and the pending-deletion tombstone table."""
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel


class SyncStatus(str, Enum):
    SYNCED = "synced"
    SYNCING = "syncing"
    PENDING_SYNC = "pending-sync"
    OFFLINE = "offline"
    ERROR = "error"


class SyncEvent(SQLModel):
    """One broadcast on the status stream. Never persisted."""

    status: SyncStatus
    operation: str  # "create", "update", "delete", "reconcile", "connectivity", "startup"
    record_id: Optional[str] = None
    error: Optional[str] = None

    # Reconciliation counters (zero for single-record operations)
    pushed: int = 0
    imported: int = 0
    deleted: int = 0
    failed: int = 0

    at: datetime = Field(default_factory=datetime.utcnow)


class PendingDeletion(SQLModel, table=True):
    """A delete that has not reached the remote store yet."""

    __tablename__ = "pending_deletions"

    expense_id: str = Field(primary_key=True)
    queued_at: datetime = Field(default_factory=datetime.utcnow)
