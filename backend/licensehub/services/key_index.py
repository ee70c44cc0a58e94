"""
In-process lookup index for issued keys.

Keys live in one collection per reseller, so finding a presented key would
otherwise mean reading every reseller's collection. The index maps
(keyValue, gameName) to the live key for that pair. It is rebuilt from the
store once and then kept current by issuance, deletion and registration.

Loading a reseller's stored keys never displaces a key that is already live:
a stored key whose pair is taken (for example the key of a deleted reseller
whose value was minted again by someone else before the old account was
re-registered) stays out of the index and does not verify. On a full rebuild
resellers are loaded in reseller-list order, so the earlier one keeps the
pair.
"""
import asyncio
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from licensehub.core.store import RESELLERS, RecordStore, keys_collection
from licensehub.schemas.license_key import LicenseKey

logger = logging.getLogger(__name__)

IndexKey = Tuple[str, str]


class KeyIndex:
    def __init__(self):
        self._entries: Dict[IndexKey, List[LicenseKey]] = {}
        self._built = False
        self._build_lock: Optional[asyncio.Lock] = None

    @property
    def built(self) -> bool:
        return self._built

    def __len__(self) -> int:
        return sum(len(v) for v in self._entries.values())

    def lookup(self, key_value: str, game_name: str) -> Optional[LicenseKey]:
        """Exact, case-sensitive match on both fields."""
        matches = self._entries.get((key_value, game_name))
        return matches[0] if matches else None

    def contains(self, key_value: str, game_name: str) -> bool:
        return bool(self._entries.get((key_value, game_name)))

    def add(self, key: LicenseKey) -> None:
        self._entries.setdefault((key.keyValue, key.gameName), []).append(key)

    def remove(self, key: LicenseKey) -> None:
        slot = (key.keyValue, key.gameName)
        remaining = [k for k in self._entries.get(slot, []) if k.id != key.id]
        if remaining:
            self._entries[slot] = remaining
        else:
            self._entries.pop(slot, None)

    def remove_owner(self, username: str) -> int:
        """Drop every key created by `username`; returns how many were dropped."""
        dropped = 0
        for slot in list(self._entries):
            kept = [k for k in self._entries[slot] if k.createdBy != username]
            dropped += len(self._entries[slot]) - len(kept)
            if kept:
                self._entries[slot] = kept
            else:
                del self._entries[slot]
        return dropped

    def add_owner_keys(self, username: str, keys: Iterable[LicenseKey]) -> int:
        """
        Index one reseller's stored keys, skipping any whose (keyValue,
        gameName) slot is already taken by a live key. Returns how many keys
        were indexed.
        """
        indexed = 0
        shadowed = []
        for key in keys:
            if self.contains(key.keyValue, key.gameName):
                shadowed.append(key.id)
                continue
            self.add(key)
            indexed += 1
        if shadowed:
            logger.warning(
                "[key-index] %d key(s) of %s collide with live keys and stay unverifiable: %s",
                len(shadowed), username, ", ".join(shadowed),
            )
        return indexed

    async def load_owner(self, store: RecordStore, username: str) -> int:
        """Index every key stored in `username`'s collection that does not collide."""
        rows = await store.get(keys_collection(username))
        return self.add_owner_keys(username, [LicenseKey.model_validate(r) for r in rows])

    async def rebuild(self, store: RecordStore) -> None:
        self._entries = {}
        resellers = await store.get(RESELLERS)
        total = 0
        for reseller in resellers:
            total += await self.load_owner(store, reseller["username"])
        self._built = True
        logger.info("[key-index] Indexed %d keys across %d resellers", total, len(resellers))

    async def ensure_built(self, store: RecordStore) -> None:
        if self._built:
            return
        if self._build_lock is None:
            self._build_lock = asyncio.Lock()
        async with self._build_lock:
            if not self._built:
                await self.rebuild(store)
