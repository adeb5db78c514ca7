"""
Network reachability monitor.

A probe is any async callable returning True when the network is usable.
check() runs the probe, records the result and notifies listeners on each
online/offline transition. A probe that raises (as opposed to returning
False) means reachability could not be queried at all: the monitor goes
offline and listeners receive the error.

check() calls are serialized, so one transition is observed, and acted on,
exactly once even when the scheduler and a caller check concurrently.
"""
import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

logger = logging.getLogger(__name__)

Probe = Callable[[], Awaitable[bool]]
# Called as listener(online, error, was_online)
ConnectivityListener = Callable[[bool, Optional[Exception], bool], Awaitable[None]]


async def tcp_probe(host: str, port: int, timeout: float) -> bool:
    """Return True if a TCP connection to host:port opens within timeout."""
    try:
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port), timeout
        )
    except (OSError, asyncio.TimeoutError):
        return False
    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass
    return True


def make_tcp_probe(host: str, port: int, timeout: float) -> Probe:
    async def probe() -> bool:
        return await tcp_probe(host, port, timeout)

    return probe


class ConnectivityMonitor:
    """Tracks the online flag and fans transitions out to async listeners."""

    def __init__(self, probe: Probe, *, initially_online: bool = False):
        self._probe = probe
        self._online = initially_online
        self._checked = False
        self._listeners: List[ConnectivityListener] = []
        self._lock = asyncio.Lock()

    @property
    def is_online(self) -> bool:
        return self._online

    def add_listener(self, callback: ConnectivityListener) -> None:
        self._listeners.append(callback)

    async def check(self) -> bool:
        """Re-probe reachability; returns the new online flag."""
        async with self._lock:
            was_online = self._online
            first_check = not self._checked
            error: Optional[Exception] = None
            try:
                online = bool(await self._probe())
            except Exception as exc:
                logger.warning("Connectivity check error: %s", exc)
                online = False
                error = exc

            self._online = online
            self._checked = True

            if error is not None or online != was_online or first_check:
                if online != was_online:
                    logger.info("Connectivity changed: %s", "online" if online else "offline")
                await self._notify(online, error, was_online)
            return online

    async def _notify(self, online: bool, error: Optional[Exception], was_online: bool) -> None:
        for callback in list(self._listeners):
            try:
                await callback(online, error, was_online)
            except Exception:
                logger.exception("Connectivity listener failed")
