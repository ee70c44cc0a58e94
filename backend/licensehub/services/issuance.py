"""
Key issuance.

Minting a key costs the reseller one credit. The balance is checked before
anything is written, and the new key plus the debited reseller list are
committed in a single put_many while both collections are locked, so a key
can never exist without its credit having been paid.
"""
import datetime as dt
import logging
import secrets
import uuid
from typing import Callable, List, Optional

from licensehub.core.clock import utc_now
from licensehub.core.errors import DuplicateKey, UnknownReseller, ValidationFailure
from licensehub.core.locks import ResourceLocks
from licensehub.core.store import RESELLERS, RecordStore, keys_collection
from licensehub.schemas.license_key import DEVICE_LIMITS, GAME_NAMES, LicenseKey
from .key_index import KeyIndex
from .ledger import CreditLedger, find_reseller

logger = logging.getLogger(__name__)

RANDOM_KEY_BYTES = 8  # 64 bits, rendered as 16 hex characters
RANDOM_KEY_ATTEMPTS = 10


def make_key_value() -> str:
    return secrets.token_hex(RANDOM_KEY_BYTES)


def validate_key_request(username: str, game_name: str, device_limit: int, expiry_days: int) -> None:
    if not username:
        raise ValidationFailure("username required")
    if game_name not in GAME_NAMES:
        raise ValidationFailure(f"Unsupported game: {game_name!r}")
    if isinstance(device_limit, bool) or device_limit not in DEVICE_LIMITS:
        raise ValidationFailure(f"Device limit must be one of {list(DEVICE_LIMITS)}")
    if isinstance(expiry_days, bool) or not isinstance(expiry_days, int) or expiry_days < 1:
        raise ValidationFailure("Expiry days must be a positive integer")


class KeyIssuer:
    def __init__(
        self,
        store: RecordStore,
        locks: ResourceLocks,
        ledger: CreditLedger,
        index: KeyIndex,
        clock: Callable[[], dt.datetime] = utc_now,
        make_value: Callable[[], str] = make_key_value,
    ):
        self.store = store
        self.locks = locks
        self.ledger = ledger
        self.index = index
        self.clock = clock
        self.make_value = make_value

    def _choose_value(self, custom_value: Optional[str], game_name: str) -> str:
        if custom_value:
            if self.index.contains(custom_value, game_name):
                raise DuplicateKey()
            return custom_value
        for _ in range(RANDOM_KEY_ATTEMPTS):
            value = self.make_value()
            if not self.index.contains(value, game_name):
                return value
        raise DuplicateKey("Could not generate a unique key value")

    async def issue_key(
        self,
        username: str,
        game_name: str,
        custom_value: Optional[str],
        device_limit: int,
        expiry_days: int,
    ) -> LicenseKey:
        """
        Mint a key for `username` and charge one credit.

        Args:
            username: Owning reseller
            game_name: One of the supported games
            custom_value: Key value to use verbatim; None or "" for a random one
            device_limit: 1, 2 or 100
            expiry_days: Validity in days from now

        Returns:
            LicenseKey: The created key

        Raises:
            ValidationFailure: Malformed request, nothing written
            UnknownReseller: No reseller with this username
            InsufficientCredits: Balance is zero or negative
            DuplicateKey: The value is already in use for this game
        """
        validate_key_request(username, game_name, device_limit, expiry_days)
        await self.index.ensure_built(self.store)
        collection = keys_collection(username)

        async with self.locks.hold(RESELLERS, collection):
            resellers = await self.store.get(RESELLERS)
            if find_reseller(resellers, username) is None:
                raise UnknownReseller()
            debited = self.ledger.debit(resellers, username)

            key = LicenseKey(
                id=str(uuid.uuid4()),
                gameName=game_name,
                keyValue=self._choose_value(custom_value, game_name),
                deviceLimit=device_limit,
                expiryDays=expiry_days,
                createdAt=self.clock(),
                createdBy=username,
            )
            keys = await self.store.get(collection)
            keys.append(key.model_dump(mode="json"))
            await self.store.put_many({RESELLERS: debited, collection: keys})
            self.index.add(key)

        logger.info("[issuance] %s minted key %s for %s (limit=%d, days=%d)",
                    username, key.id, game_name, device_limit, expiry_days)
        return key

    async def list_keys(self, username: str) -> List[LicenseKey]:
        rows = await self.store.get(keys_collection(username))
        return [LicenseKey.model_validate(r) for r in rows]

    async def delete_key(self, username: str, key_id: str) -> None:
        """Remove a key; deleting a key that does not exist still succeeds."""
        await self.index.ensure_built(self.store)
        collection = keys_collection(username)
        async with self.locks.hold(collection):
            rows = await self.store.get(collection)
            kept = [r for r in rows if r.get("id") != key_id]
            if len(kept) == len(rows):
                return
            await self.store.put(collection, kept)
            for r in rows:
                if r.get("id") == key_id:
                    self.index.remove(LicenseKey.model_validate(r))
        logger.info("[issuance] %s deleted key %s", username, key_id)
