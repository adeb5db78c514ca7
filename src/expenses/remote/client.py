"""
Async wrapper around a pymongo collection holding the remote expense copies.

pymongo is synchronous; we run it in a thread pool executor so it doesn't
block the asyncio event loop.

The connection is opened lazily on first use and then reused. There is no
reconnect-on-failure: every engine write path calls ensure_connected(),
which is a no-op once connected. Each call is bounded by a timeout and
retried a small number of times on transient network errors.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import ConnectionFailure, PyMongoError

logger = logging.getLogger(__name__)

# ── Exceptions ────────────────────────────────────────────────────────────────

class RemoteDisabledError(RuntimeError):
    """Raised when a remote call is made without a configured connection string."""


class RemoteUnavailableError(RuntimeError):
    """Raised when the remote store cannot be reached or times out."""


# Connection-level failures; other PyMongoErrors concern a single document
_TRANSIENT_ERRORS = (ConnectionFailure, asyncio.TimeoutError)


# ── Main class ────────────────────────────────────────────────────────────────

class RemoteExpenseStore:
    """
    Thin async wrapper over one MongoDB collection.

    Usage:
        remote = RemoteExpenseStore(settings.mongo_url)
        await remote.ensure_connected()
        await remote.insert(expense.to_document())
    """

    def __init__(
        self,
        uri: str,
        *,
        database: str = "expense_tracker",
        collection: str = "expenses",
        timeout_seconds: float = 10.0,
        retries: int = 2,
        retry_backoff_seconds: float = 0.5,
    ):
        self._uri = (uri or "").strip()
        self._database = database
        self._collection_name = collection
        self._timeout = timeout_seconds
        self._retries = retries
        self._backoff = retry_backoff_seconds
        self._client: Optional[MongoClient] = None
        self._collection: Optional[Collection] = None
        self._connect_lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        """False in disabled-remote mode (no connection string)."""
        return bool(self._uri)

    @property
    def connected(self) -> bool:
        return self._collection is not None

    # ── Connection ────────────────────────────────────────────────────────────

    async def connect(self) -> None:
        """
        Open the client and verify the server answers a ping.

        Raises:
            RemoteDisabledError: if no connection string was configured.
            RemoteUnavailableError: if the server cannot be reached.
        """
        if not self.enabled:
            raise RemoteDisabledError("No remote connection string configured")
        loop = asyncio.get_event_loop()
        try:
            await asyncio.wait_for(
                loop.run_in_executor(None, self._connect_sync), self._timeout
            )
        except (PyMongoError, asyncio.TimeoutError) as exc:
            raise RemoteUnavailableError(f"Remote connection failed: {exc}") from exc
        logger.info("Remote store connected (%s.%s)", self._database, self._collection_name)

    def _connect_sync(self) -> None:
        client = MongoClient(
            self._uri, serverSelectionTimeoutMS=int(self._timeout * 1000)
        )
        try:
            client.admin.command("ping")
        except PyMongoError:
            client.close()
            raise
        self._client = client
        self._collection = client.get_database(self._database)[self._collection_name]

    async def ensure_connected(self) -> None:
        """Connect once; later calls are no-ops while the connection is set."""
        if self.connected:
            return
        async with self._connect_lock:
            if not self.connected:
                await self.connect()

    async def close(self) -> None:
        if self._client is not None:
            client = self._client
            self._client = None
            self._collection = None
            loop = asyncio.get_event_loop()
            await loop.run_in_executor(None, client.close)

    async def _run(self, fn):
        """Run fn(collection) in the thread pool with timeout and retry."""
        collection = self._collection
        if collection is None:
            raise RemoteUnavailableError("Remote store is not connected")
        loop = asyncio.get_event_loop()
        attempt = 0
        while True:
            try:
                return await asyncio.wait_for(
                    loop.run_in_executor(None, fn, collection), self._timeout
                )
            except _TRANSIENT_ERRORS as exc:
                if attempt >= self._retries:
                    raise RemoteUnavailableError(
                        f"Remote call failed after {attempt + 1} attempts: {exc!r}"
                    ) from exc
                delay = self._backoff * (2 ** attempt)
                attempt += 1
                logger.warning(
                    "Remote call failed (%r), retry %d/%d in %.1fs",
                    exc, attempt, self._retries, delay,
                )
                await asyncio.sleep(delay)

    # ── Collection operations ─────────────────────────────────────────────────

    async def insert(self, doc: Dict[str, Any]) -> None:
        await self._run(lambda c: c.insert_one(doc))

    async def update_by_id(self, expense_id: str, doc: Dict[str, Any]) -> bool:
        """Replace the remote document stored under expense_id.

        Returns False when no document with that id exists.
        """
        result = await self._run(lambda c: c.replace_one({"_id": expense_id}, doc))
        return result.matched_count > 0

    async def remove_by_id(self, expense_id: str) -> None:
        await self._run(lambda c: c.delete_one({"_id": expense_id}))

    async def find_by_id(self, expense_id: str) -> Optional[Dict[str, Any]]:
        return await self._run(lambda c: c.find_one({"_id": expense_id}))

    async def find_all(self) -> List[Dict[str, Any]]:
        """Full scan of the collection."""
        return await self._run(lambda c: list(c.find()))
