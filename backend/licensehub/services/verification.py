"""
Key verification engine.

A verification request (key value, game, requester IP) moves through these
states:

1. not found      -> InvalidKey, nothing recorded
2. expired        -> KeyExpired, nothing recorded (valid up to and including
                     createdAt + expiryDays)
3. device check   -> prior verification events for the key are counted
4. admitted       -> a VerificationEvent is appended and returned

Device policy: once the number of prior events reaches the key's device
limit, a key limited to ONE device only admits the IP it was first verified
from. Keys limited to 2 or 100 devices keep admitting every IP. This
asymmetry is deliberate compatibility with the keys already sold and must
not be "fixed" here.
"""
import datetime as dt
import logging
import uuid
from typing import Callable, Iterable, List

from licensehub.core.clock import utc_now
from licensehub.core.errors import InvalidKey, KeyExpired, KeyInUse
from licensehub.core.locks import ResourceLocks
from licensehub.core.store import VERIFICATIONS, RecordStore
from licensehub.schemas.verification import VerificationEvent
from .key_index import KeyIndex

logger = logging.getLogger(__name__)


def device_admits(device_limit: int, prior_ips: Iterable[str], requester_ip: str) -> bool:
    """
    Decide whether another device may use a key.

    Args:
        device_limit: The key's device limit
        prior_ips: deviceIp of every earlier successful verification of the key
        requester_ip: IP of the current request
    """
    prior_ips = list(prior_ips)
    if len(prior_ips) < device_limit:
        return True
    if device_limit == 1 and requester_ip not in prior_ips:
        return False
    return True


class VerificationEngine:
    def __init__(
        self,
        store: RecordStore,
        locks: ResourceLocks,
        index: KeyIndex,
        clock: Callable[[], dt.datetime] = utc_now,
    ):
        self.store = store
        self.locks = locks
        self.index = index
        self.clock = clock

    async def verify(self, key_value: str, game_name: str, requester_ip: str) -> VerificationEvent:
        """
        Check a presented key and record the successful use.

        Returns:
            VerificationEvent: The appended audit record

        Raises:
            InvalidKey: No key with this value exists for this game
            KeyExpired: now is past createdAt + expiryDays
            KeyInUse: Single-device key already bound to another IP
        """
        await self.index.ensure_built(self.store)
        key = self.index.lookup(key_value, game_name)
        if key is None:
            logger.info("[verify] Unknown key for %s from %s", game_name, requester_ip)
            raise InvalidKey()

        now = self.clock()
        expires_at = key.expires_at
        if now > expires_at:
            logger.info("[verify] Key %s expired at %s", key.id, expires_at.isoformat())
            raise KeyExpired()

        async with self.locks.hold(VERIFICATIONS):
            events = await self.store.get(VERIFICATIONS)
            prior_ips = [e.get("deviceIp") for e in events if e.get("keyId") == key.id]
            if not device_admits(key.deviceLimit, prior_ips, requester_ip):
                logger.info("[verify] Key %s refused for %s: bound to another device", key.id, requester_ip)
                raise KeyInUse()

            event = VerificationEvent(
                id=str(uuid.uuid4()),
                keyId=key.id,
                gameName=key.gameName,
                deviceIp=requester_ip,
                verifiedAt=now,
                expiresAt=expires_at,
            )
            events.append(event.model_dump(mode="json"))
            await self.store.put(VERIFICATIONS, events)
        return event

    async def list_events(self) -> List[VerificationEvent]:
        rows = await self.store.get(VERIFICATIONS)
        return [VerificationEvent.model_validate(r) for r in rows]
