"""
Unit tests for services.usage.UsageLog (optimistic compare-and-swap appends).
"""
import asyncio

import pytest

from licensehub.core.errors import StorageFailure
from licensehub.core.store import USAGE, MemoryRecordStore
from licensehub.services.usage import UsageLog


pytestmark = pytest.mark.asyncio


class ContendedStore(MemoryRecordStore):
    """Simulates another writer sneaking in before the first `conflicts` swaps."""

    def __init__(self, conflicts: int):
        super().__init__()
        self.conflicts = conflicts
        self.cas_calls = 0

    async def _compare_and_swap(self, collection, expected, new):
        self.cas_calls += 1
        if self.conflicts > 0:
            self.conflicts -= 1
            current = self._data.get(collection, [])
            self._data[collection] = current + [{"id": f"other-{self.cas_calls}"}]
        return await super()._compare_and_swap(collection, expected, new)


async def test_record_appends_event(clock):
    log = UsageLog(MemoryRecordStore(), clock=clock)
    event = await log.record("/api/v1/verify/pubg", "POST", "1.2.3.4", True)

    assert event.timestamp == clock.now
    events = await log.list_events()
    assert [(e.endpoint, e.method, e.ip, e.success) for e in events] == [
        ("/api/v1/verify/pubg", "POST", "1.2.3.4", True)
    ]


async def test_record_retries_after_conflict(clock):
    store = ContendedStore(conflicts=2)
    log = UsageLog(store, clock=clock, max_attempts=5)
    event = await log.record("/api/v1/verify/standoff2", "GET", "5.6.7.8", False)

    rows = await store.get(USAGE)
    # Both foreign writes survive, ours lands last
    assert [r["id"] for r in rows] == ["other-1", "other-2", event.id]
    assert store.cas_calls == 3


async def test_record_gives_up_after_max_attempts(clock):
    store = ContendedStore(conflicts=10)
    log = UsageLog(store, clock=clock, max_attempts=3)
    with pytest.raises(StorageFailure):
        await log.record("/api/v1/verify/pubg", "POST", "1.2.3.4", True)


async def test_concurrent_records_are_not_lost(clock):
    log = UsageLog(MemoryRecordStore(), clock=clock, max_attempts=50)
    await asyncio.gather(*(log.record("/api/v1/verify/pubg", "GET", f"ip{i}", True) for i in range(20)))
    assert len(await log.list_events()) == 20
