"""Wire an ExpenseSyncEngine from settings. The caller owns its lifecycle."""
from typing import Optional

from sqlalchemy.engine import Engine

from expenses.config import Settings, get_settings
from expenses.db.engine import create_db_engine
from expenses.db.store import ExpenseStore
from expenses.remote.client import RemoteExpenseStore
from expenses.sync.connectivity import ConnectivityMonitor, make_tcp_probe
from expenses.sync.engine import ExpenseSyncEngine
from expenses.sync.status import SyncStatusBroadcaster


def build_sync_engine(
    settings: Optional[Settings] = None,
    db_engine: Optional[Engine] = None,
) -> ExpenseSyncEngine:
    """
    Build the store, remote client, monitor and engine.

    Args:
        settings: Defaults to get_settings().
        db_engine: Existing SQLAlchemy engine; one is created from
            settings.database_url if omitted.
    """
    settings = settings or get_settings()
    db_engine = db_engine or create_db_engine(settings.database_url)

    remote = RemoteExpenseStore(
        settings.mongo_url,
        database=settings.mongo_database,
        collection=settings.mongo_collection,
        timeout_seconds=settings.remote_timeout_seconds,
        retries=settings.remote_retries,
        retry_backoff_seconds=settings.remote_retry_backoff_seconds,
    )
    monitor = ConnectivityMonitor(
        make_tcp_probe(
            settings.connectivity_probe_host,
            settings.connectivity_probe_port,
            settings.connectivity_probe_timeout,
        )
    )
    return ExpenseSyncEngine(
        ExpenseStore(db_engine),
        remote,
        monitor,
        SyncStatusBroadcaster(),
        track_pending_deletes=settings.track_pending_deletes,
    )
