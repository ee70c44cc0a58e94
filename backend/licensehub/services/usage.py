"""
API usage log.

Every call to a verification endpoint is recorded, whatever its outcome.
Appends use optimistic compare-and-swap instead of a lock: read the log,
append, and write back only if nobody else wrote in between; otherwise retry
against the fresh log.
"""
import datetime as dt
import logging
import uuid
from typing import Callable, List, Optional

from licensehub.config import settings
from licensehub.core.clock import utc_now
from licensehub.core.errors import StorageFailure
from licensehub.core.store import USAGE, RecordStore
from licensehub.schemas.verification import UsageEvent

logger = logging.getLogger(__name__)


class UsageLog:
    def __init__(
        self,
        store: RecordStore,
        clock: Callable[[], dt.datetime] = utc_now,
        max_attempts: Optional[int] = None,
    ):
        self.store = store
        self.clock = clock
        self.max_attempts = settings.usage_log_cas_retries if max_attempts is None else max_attempts

    async def record(self, endpoint: str, method: str, ip: str, success: bool) -> UsageEvent:
        event = UsageEvent(
            id=str(uuid.uuid4()),
            endpoint=endpoint,
            method=method,
            timestamp=self.clock(),
            ip=ip,
            success=success,
        )
        row = event.model_dump(mode="json")
        for _ in range(self.max_attempts):
            current = await self.store.get(USAGE)
            if await self.store.compare_and_swap(USAGE, current, current + [row]):
                return event
        logger.error("[usage] Gave up appending usage event after %d attempts", self.max_attempts)
        raise StorageFailure("Usage log is too busy")

    async def list_events(self) -> List[UsageEvent]:
        rows = await self.store.get(USAGE)
        return [UsageEvent.model_validate(r) for r in rows]
