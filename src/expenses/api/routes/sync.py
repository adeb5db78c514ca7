"""Sync trigger and status routes."""
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel

from expenses.api.deps import get_sync_engine
from expenses.sync.engine import ExpenseSyncEngine

logger = logging.getLogger(__name__)

router = APIRouter()


class SyncStatusResponse(BaseModel):
    status: str
    operation: Optional[str]
    error: Optional[str]
    at: Optional[datetime]
    online: bool
    remote_enabled: bool
    pending: int
    pending_deletions: int


async def _do_sync(engine: ExpenseSyncEngine) -> None:
    """Background task: one reconciliation pass."""
    try:
        await engine.sync()
    except Exception as exc:
        logger.error("Triggered sync failed: %s", exc)


@router.post("/trigger")
async def trigger_sync(
    background_tasks: BackgroundTasks,
    engine: ExpenseSyncEngine = Depends(get_sync_engine),
):
    """
    Trigger a manual reconciliation pass.
    Returns immediately; the pass runs in background.
    """
    background_tasks.add_task(_do_sync, engine)
    return {"message": "Sync started", "online": engine.is_online}


@router.get("/status", response_model=SyncStatusResponse)
def sync_status(engine: ExpenseSyncEngine = Depends(get_sync_engine)):
    """Return the latest status event plus pending counts."""
    latest = engine.status.latest
    return SyncStatusResponse(
        status=latest.status.value if latest else "never_run",
        operation=latest.operation if latest else None,
        error=latest.error if latest else None,
        at=latest.at if latest else None,
        online=engine.is_online,
        remote_enabled=engine.remote.enabled,
        pending=engine.pending_count(),
        pending_deletions=len(engine.store.pending_deletions()),
    )
