"""
Per-resource mutual exclusion for read-modify-write cycles.

Each logical resource (the reseller list, the token set, one reseller's key
collection, the verification log) gets its own asyncio.Lock. Operations that
touch several resources acquire all their locks up front in sorted name
order, so two operations can never wait on each other in a cycle.

A lock only exists while somebody holds or waits for it; per-reseller
resources therefore do not accumulate over the life of the process.
"""
import asyncio
from contextlib import asynccontextmanager
from typing import Dict, Optional

from licensehub.config import settings
from licensehub.core.errors import StorageFailure


async def acquire_within(lock: asyncio.Lock, timeout: float) -> bool:
    """
    Acquire `lock`, giving up after `timeout` seconds.

    Returns:
        True if the lock is now held by the caller, False on timeout. On
        timeout or cancellation the lock is never left held, even when the
        acquire completes while it is being cancelled.
    """
    attempt = asyncio.ensure_future(lock.acquire())
    try:
        done, _ = await asyncio.wait({attempt}, timeout=timeout)
    except asyncio.CancelledError:
        await _abandon(lock, attempt)
        raise
    if attempt in done:
        return attempt.result()
    await _abandon(lock, attempt)
    return False


async def _abandon(lock: asyncio.Lock, attempt: asyncio.Future) -> None:
    attempt.cancel()
    try:
        await attempt
    except asyncio.CancelledError:
        return
    # The acquire won the race against cancel()
    lock.release()


class ResourceLocks:
    def __init__(self, timeout: Optional[float] = None):
        self.timeout = settings.storage_timeout_seconds if timeout is None else timeout
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    def _checkout(self, name: str) -> asyncio.Lock:
        self._users[name] = self._users.get(name, 0) + 1
        return self._locks.setdefault(name, asyncio.Lock())

    def _checkin(self, name: str) -> None:
        self._users[name] -= 1
        if self._users[name] == 0:
            del self._users[name]
            self._locks.pop(name, None)

    def __len__(self) -> int:
        return len(self._locks)

    def locked(self, name: str) -> bool:
        lock = self._locks.get(name)
        return bool(lock and lock.locked())

    @asynccontextmanager
    async def hold(self, *names: str):
        """
        Hold the locks for every named resource for the duration of the block.

        Raises:
            StorageFailure: If a lock cannot be acquired within the timeout
        """
        checked_out = []
        acquired = []
        try:
            for name in sorted(set(names)):
                lock = self._checkout(name)
                checked_out.append(name)
                if not await acquire_within(lock, self.timeout):
                    raise StorageFailure(f"Timed out waiting for '{name}'")
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for name in checked_out:
                self._checkin(name)
