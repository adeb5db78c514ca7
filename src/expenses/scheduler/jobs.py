"""
APScheduler jobs for background connectivity checks and sync retries.

The connectivity check drives the engine: an offline→online transition
found by a check runs a reconciliation pass. The retry job catches
records left pending while the network stayed up (e.g. a remote write
that failed on a flaky link).

The scheduler runs inside the API process (wired in api/main.py).
"""
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from expenses.config import get_settings

logger = logging.getLogger(__name__)


def build_scheduler(engine) -> AsyncIOScheduler:
    """
    Create and configure the APScheduler.

    Args:
        engine: ExpenseSyncEngine whose monitor is polled.

    Returns:
        Configured AsyncIOScheduler (not yet started).
    """
    settings = get_settings()
    scheduler = AsyncIOScheduler()

    scheduler.add_job(
        _connectivity_check,
        trigger="interval",
        seconds=settings.connectivity_check_seconds,
        id="connectivity_check",
        replace_existing=True,
        kwargs={"engine": engine},
    )
    scheduler.add_job(
        _pending_sync_retry,
        trigger="interval",
        minutes=settings.pending_sync_retry_minutes,
        id="pending_sync_retry",
        replace_existing=True,
        kwargs={"engine": engine},
    )

    return scheduler


async def _connectivity_check(engine) -> None:
    """Re-probe the network; transitions are handled by the engine."""
    await engine.monitor.check()


async def _pending_sync_retry(engine) -> None:
    """
    Run a reconciliation pass if anything is still pending.

    No-op while offline or when every record is synced.
    """
    if not engine.remote_available:
        return
    if not engine.has_pending_work():
        return
    logger.info("Retrying pending sync (%d unsynced)", engine.pending_count())
    try:
        await engine.sync()
    except Exception as exc:
        logger.error("Pending sync retry failed: %s", exc)
