"""
Record store: abstract persistence for the licensing core.

The core never talks to a database directly. It reads and writes whole
collections (lists or dicts of JSON-compatible records) by name through a
RecordStore. Two implementations ship with the service:

- MemoryRecordStore: process-local dictionary, used by tests and tooling
- TortoiseRecordStore: one row per collection in the `records` table

Contract shared by every implementation:
- get() returns a deep copy; mutating it never changes stored state
- get() on a collection that was never written persists and returns a default
  (empty list for list collections, empty dict otherwise)
- put_many() applies all writes or none
- compare_and_swap() writes only if the stored value still equals `expected`
- every call is bounded by a timeout; any fault surfaces as StorageFailure
"""
import asyncio
import copy
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from tortoise.exceptions import IntegrityError
from tortoise.transactions import in_transaction

from licensehub.config import settings
from licensehub.models.record import Record
from licensehub.core.errors import LicensingError, StorageFailure

logger = logging.getLogger(__name__)

# Collection names
RESELLERS = "resellers"
TOKENS = "tokens"
VERIFICATIONS = "key_verifications"
USAGE = "api_usage"
ADMIN = "admin"
KEYS_SUFFIX = "_keys"

LIST_COLLECTIONS = {RESELLERS, TOKENS, VERIFICATIONS, USAGE}


def keys_collection(username: str) -> str:
    """Name of the collection holding one reseller's issued keys."""
    return f"{username}{KEYS_SUFFIX}"


def default_for(collection: str) -> Any:
    if collection in LIST_COLLECTIONS or collection.endswith(KEYS_SUFFIX):
        return []
    return {}


class RecordStore(ABC):
    """Record store abstract base class."""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = settings.storage_timeout_seconds if timeout is None else timeout

    async def get(self, collection: str) -> Any:
        return await self._guard("read", collection, self._get(collection))

    async def put(self, collection: str, value: Any) -> None:
        await self._guard("write", collection, self._put_many({collection: value}))

    async def put_many(self, values: Dict[str, Any]) -> None:
        """Write several collections as one unit."""
        label = ",".join(sorted(values))
        await self._guard("write", label, self._put_many(values))

    async def compare_and_swap(self, collection: str, expected: Any, new: Any) -> bool:
        """
        Replace `collection` with `new` only if it currently equals `expected`.

        Returns:
            True if the write happened, False if another writer got there first
        """
        return await self._guard("cas", collection, self._compare_and_swap(collection, expected, new))

    async def _guard(self, op: str, collection: str, coro):
        try:
            return await asyncio.wait_for(coro, timeout=self.timeout)
        except LicensingError:
            raise
        except asyncio.TimeoutError:
            logger.error("[store] %s of '%s' timed out after %.1fs", op, collection, self.timeout)
            raise StorageFailure(f"Storage {op} timed out") from None
        except Exception as exc:
            logger.error("[store] %s of '%s' failed: %s", op, collection, exc, exc_info=True)
            raise StorageFailure(f"Storage {op} failed") from exc

    @abstractmethod
    async def _get(self, collection: str) -> Any:
        pass

    @abstractmethod
    async def _put_many(self, values: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    async def _compare_and_swap(self, collection: str, expected: Any, new: Any) -> bool:
        pass


class MemoryRecordStore(RecordStore):
    """In-process store backed by a dict."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None, timeout: Optional[float] = None):
        super().__init__(timeout=timeout)
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

    async def _get(self, collection: str) -> Any:
        if collection not in self._data:
            self._data[collection] = default_for(collection)
        return copy.deepcopy(self._data[collection])

    async def _put_many(self, values: Dict[str, Any]) -> None:
        # Copy everything first so a bad value leaves the store untouched
        staged = {name: copy.deepcopy(value) for name, value in values.items()}
        self._data.update(staged)

    async def _compare_and_swap(self, collection: str, expected: Any, new: Any) -> bool:
        current = self._data.get(collection, default_for(collection))
        if current != expected:
            return False
        self._data[collection] = copy.deepcopy(new)
        return True


class TortoiseRecordStore(RecordStore):
    """Store backed by the `records` table through Tortoise ORM."""

    async def _get(self, collection: str) -> Any:
        row = await Record.get_or_none(key=collection)
        if row is None:
            row, _ = await Record.get_or_create(
                key=collection,
                defaults={"value": default_for(collection), "version": 0},
            )
        return copy.deepcopy(row.value)

    async def _put_many(self, values: Dict[str, Any]) -> None:
        async with in_transaction() as conn:
            for collection, value in values.items():
                row = await Record.get_or_none(key=collection, using_db=conn)
                if row is None:
                    await Record.create(key=collection, value=value, version=1, using_db=conn)
                else:
                    row.value = value
                    row.version += 1
                    await row.save(using_db=conn)

    async def _compare_and_swap(self, collection: str, expected: Any, new: Any) -> bool:
        row = await Record.get_or_none(key=collection)
        current = row.value if row is not None else default_for(collection)
        if current != expected:
            return False
        if row is None:
            try:
                await Record.create(key=collection, value=new, version=1)
            except IntegrityError:
                return False  # Created concurrently
            return True
        # Only succeeds if nobody bumped the version since we read it
        updated = await Record.filter(key=collection, version=row.version).update(
            value=new, version=row.version + 1
        )
        return updated == 1
