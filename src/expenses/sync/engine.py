"""
ExpenseSyncEngine: dual-writes expenses and reconciles them with the remote store.

Write path (create / update / delete):
  1. If online, attempt the remote operation (connecting lazily, once)
  2. Remote success → synced=True; remote failure or offline → synced=False
  3. Write the local store last; this is the durability boundary
  4. Publish "synced" or "pending-sync" on the status stream

Reconciliation pass (sync):
  1. Offline → publish "offline" and return
  2. Publish "syncing", ensure the remote connection
  3. Replay pending deletions (tombstones)
  4. Push every unsynced record: find by id → replace, else insert
  5. Full scan of the remote collection; adopt records absent locally
  6. Publish "synced" ("pending-sync" if some records failed)

Conflict policy: the local copy of a locally modified record always wins.
It overwrites the remote document unconditionally, with no timestamp
comparison and no merge. Remote-only records are adopted; a local record is
never overwritten from remote.

Remote failures never reach the caller: they are logged and reported on the
status stream. Local store (SQLAlchemy) errors propagate.

Every mutation and every reconciliation pass runs under one asyncio.Lock,
so a second sync() requested during a pass waits for it and then runs.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Set

from sqlalchemy.exc import SQLAlchemyError

from expenses.db.store import ExpenseStore
from expenses.models.expense import Expense
from expenses.models.sync import SyncEvent, SyncStatus
from expenses.remote.client import RemoteExpenseStore, RemoteUnavailableError
from expenses.sync.connectivity import ConnectivityMonitor
from expenses.sync.status import SyncStatusBroadcaster

logger = logging.getLogger(__name__)

REMOTE_DISABLED_WARNING = (
    "No remote connection string configured: expenses are stored locally only."
)


@dataclass
class StartupReport:
    """What start() found; a disabled remote is reported here, not raised."""

    remote_enabled: bool
    online: bool
    local_count: int
    warning: Optional[str] = None


class ExpenseSyncEngine:
    """Single-writer orchestrator over the local store and the remote collection."""

    def __init__(
        self,
        store: ExpenseStore,
        remote: RemoteExpenseStore,
        monitor: ConnectivityMonitor,
        broadcaster: Optional[SyncStatusBroadcaster] = None,
        *,
        track_pending_deletes: bool = True,
    ):
        """
        Args:
            store: Local record store.
            remote: Remote collection client (may be in disabled mode).
            monitor: Connectivity monitor; the engine registers as its listener.
            broadcaster: Status stream. A fresh one is created if omitted.
            track_pending_deletes: Record tombstones for deletes that did not
                reach the remote store, and replay them during sync. When
                False, a failed remote delete is only flagged synced=False.
        """
        self.store = store
        self.remote = remote
        self.monitor = monitor
        self.status = broadcaster or SyncStatusBroadcaster()
        self.track_pending_deletes = track_pending_deletes
        self._lock = asyncio.Lock()
        monitor.add_listener(self.handle_connectivity_change)

    @property
    def is_online(self) -> bool:
        return self.monitor.is_online

    @property
    def remote_available(self) -> bool:
        """Remote attempts are made only when online and configured."""
        return self.monitor.is_online and self.remote.enabled

    async def start(self) -> StartupReport:
        """Report configuration and run the initial connectivity check.

        An initial online result counts as an offline→online transition
        and runs a reconciliation pass.
        """
        warning = None
        if not self.remote.enabled:
            warning = REMOTE_DISABLED_WARNING
            logger.warning(warning)
            self.status.publish(
                SyncEvent(status=SyncStatus.ERROR, operation="startup", error=warning)
            )
        local_count = self.store.count()
        logger.info("Local store opened with %d expenses", local_count)
        online = await self.monitor.check()
        return StartupReport(
            remote_enabled=self.remote.enabled,
            online=online,
            local_count=local_count,
            warning=warning,
        )

    async def close(self) -> None:
        self.status.close()
        await self.remote.close()

    # ─── Write path ───────────────────────────────────────────────────────────

    async def create(self, expense: Expense) -> Expense:
        """Insert remotely when possible, then store locally."""
        async with self._lock:
            # A fresh write under this id supersedes any queued delete
            self.store.clear_pending_deletion(expense.id)
            synced, error = False, None
            if self.remote_available:
                try:
                    await self.remote.ensure_connected()
                    await self.remote.insert(expense.with_synced(True).to_document())
                    synced = True
                except Exception as exc:
                    error = exc
                    logger.warning("Error adding expense %s remotely: %s", expense.id, exc)

            stored = self.store.put(expense.with_synced(synced))
            self._publish_write("create", stored.id, synced, error)
            return stored

    async def update(self, expense: Expense) -> Expense:
        """Replace remotely when possible, then store locally."""
        async with self._lock:
            self.store.clear_pending_deletion(expense.id)
            synced, error = False, None
            if self.remote_available:
                try:
                    await self.remote.ensure_connected()
                    doc = expense.with_synced(True).to_document()
                    if not await self.remote.update_by_id(expense.id, doc):
                        # Never reached the remote before; update would be a no-op
                        await self.remote.insert(doc)
                    synced = True
                except Exception as exc:
                    error = exc
                    logger.warning("Error updating expense %s remotely: %s", expense.id, exc)

            stored = self.store.put(expense.with_synced(synced))
            self._publish_write("update", stored.id, synced, error)
            return stored

    async def delete(self, expense_id: str) -> None:
        """
        Delete remotely when possible, then locally.

        If the remote delete fails the local record is kept and flagged
        synced=False so the deletion can be retried.
        """
        async with self._lock:
            logger.info("Deleting expense %s", expense_id)
            if self.remote_available:
                try:
                    await self.remote.ensure_connected()
                    await self.remote.remove_by_id(expense_id)
                except Exception as exc:
                    logger.warning("Error deleting expense %s remotely: %s", expense_id, exc)
                    existing = self.store.get(expense_id)
                    if existing is not None:
                        self.store.put(existing.with_synced(False))
                        logger.info("Marked expense %s for later deletion", expense_id)
                    if self.track_pending_deletes:
                        self.store.add_pending_deletion(expense_id)
                    self._publish_write("delete", expense_id, False, exc)
                    return

                self.store.delete(expense_id)
                self.store.clear_pending_deletion(expense_id)
                self._publish_write("delete", expense_id, True, None)
                return

            self.store.delete(expense_id)
            # Disabled-remote mode has nothing to replay against
            if self.track_pending_deletes and self.remote.enabled:
                self.store.add_pending_deletion(expense_id)
            self._publish_write("delete", expense_id, False, None)

    # ─── Reconciliation ───────────────────────────────────────────────────────

    async def sync(self) -> SyncEvent:
        """Run one full reconciliation pass (queued behind any in-flight work)."""
        async with self._lock:
            return await self._reconcile()

    async def handle_connectivity_change(
        self, online: bool, error: Optional[Exception], was_online: bool
    ) -> None:
        """ConnectivityMonitor listener."""
        if error is not None:
            self.status.publish(
                SyncEvent(status=SyncStatus.ERROR, operation="connectivity", error=str(error))
            )
            return
        if online and not was_online:
            await self.sync()
        elif not online:
            self.status.publish(SyncEvent(status=SyncStatus.OFFLINE, operation="connectivity"))

    async def _reconcile(self) -> SyncEvent:
        if not self.remote_available:
            event = SyncEvent(
                status=SyncStatus.OFFLINE,
                operation="reconcile",
                error=None if self.remote.enabled else REMOTE_DISABLED_WARNING,
            )
            self.status.publish(event)
            return event

        self.status.publish(SyncEvent(status=SyncStatus.SYNCING, operation="reconcile"))
        pushed = imported = deleted = failed = 0

        try:
            await self.remote.ensure_connected()

            if self.track_pending_deletes:
                for expense_id in self.store.pending_deletions():
                    try:
                        await self.remote.remove_by_id(expense_id)
                    except RemoteUnavailableError:
                        raise
                    except Exception as exc:
                        failed += 1
                        logger.warning("Pending delete of %s failed: %s", expense_id, exc)
                        continue
                    self.store.delete(expense_id)
                    self.store.clear_pending_deletion(expense_id)
                    deleted += 1

            tombstoned: Set[str] = set(self.store.pending_deletions())

            for expense in self.store.unsynced():
                if expense.id in tombstoned:
                    continue
                try:
                    await self._push(expense)
                except RemoteUnavailableError:
                    raise
                except Exception as exc:
                    failed += 1
                    logger.warning("Push of expense %s failed: %s", expense.id, exc)
                    continue
                self.store.put(expense.with_synced(True))
                pushed += 1

            for doc in await self.remote.find_all():
                try:
                    remote_expense = Expense.from_document(doc)
                except (KeyError, TypeError, ValueError) as exc:
                    failed += 1
                    logger.warning("Skipping malformed remote document %r: %s", doc.get("_id"), exc)
                    continue
                if remote_expense.id in tombstoned or self.store.contains(remote_expense.id):
                    continue
                self.store.put(remote_expense.with_synced(True))
                imported += 1

        except Exception as exc:
            logger.error("Sync error: %s", exc)
            event = SyncEvent(
                status=SyncStatus.ERROR,
                operation="reconcile",
                error=str(exc),
                pushed=pushed,
                imported=imported,
                deleted=deleted,
                failed=failed,
            )
            self.status.publish(event)
            if isinstance(exc, SQLAlchemyError):
                raise
            return event

        logger.info(
            "Sync finished: pushed=%d imported=%d deleted=%d failed=%d",
            pushed, imported, deleted, failed,
        )
        event = SyncEvent(
            status=SyncStatus.PENDING_SYNC if failed else SyncStatus.SYNCED,
            operation="reconcile",
            pushed=pushed,
            imported=imported,
            deleted=deleted,
            failed=failed,
        )
        self.status.publish(event)
        return event

    # ─── Internal helpers ─────────────────────────────────────────────────────

    async def _push(self, expense: Expense) -> None:
        """Overwrite the remote copy with the local one, inserting if absent."""
        doc = expense.with_synced(True).to_document()
        if await self.remote.find_by_id(expense.id) is not None:
            await self.remote.update_by_id(expense.id, doc)
        else:
            await self.remote.insert(doc)

    def _publish_write(
        self, operation: str, record_id: str, synced: bool, error: Optional[Exception]
    ) -> None:
        self.status.publish(
            SyncEvent(
                status=SyncStatus.SYNCED if synced else SyncStatus.PENDING_SYNC,
                operation=operation,
                record_id=record_id,
                error=str(error) if error is not None else None,
            )
        )

    def pending_count(self) -> int:
        return len(self.store.unsynced())

    def has_pending_work(self) -> bool:
        return bool(self.store.unsynced()) or bool(self.store.pending_deletions())
