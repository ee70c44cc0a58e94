"""
Licensing facade.

One object that wires the record store, the resource locks and the key index
into the individual services and exposes the operations the HTTP layer (or
any other caller) needs.
"""
import datetime as dt
import logging
from typing import Callable, List, Optional

from licensehub.core.clock import utc_now
from licensehub.core.locks import ResourceLocks
from licensehub.core.store import RecordStore
from licensehub.schemas.license_key import LicenseKey
from licensehub.schemas.reseller import Reseller
from licensehub.schemas.verification import UsageEvent, VerificationEvent
from .accounts import AccountService
from .issuance import KeyIssuer
from .key_index import KeyIndex
from .ledger import CreditLedger
from .registration import RegistrationGate
from .usage import UsageLog
from .verification import VerificationEngine

logger = logging.getLogger(__name__)


class LicensingService:
    def __init__(
        self,
        store: RecordStore,
        clock: Callable[[], dt.datetime] = utc_now,
        locks: Optional[ResourceLocks] = None,
        starting_credits: Optional[int] = None,
    ):
        self.store = store
        self.clock = clock
        self.locks = locks or ResourceLocks(timeout=store.timeout)
        self.index = KeyIndex()
        self.ledger = CreditLedger(store, self.locks)
        self.accounts = AccountService(store, self.locks, self.index)
        self.registration = RegistrationGate(
            store, self.locks, self.index, clock=clock, starting_credits=starting_credits
        )
        self.issuer = KeyIssuer(store, self.locks, self.ledger, self.index, clock=clock)
        self.verifier = VerificationEngine(store, self.locks, self.index, clock=clock)
        self.usage = UsageLog(store, clock=clock)

    async def start(self) -> None:
        """Build the key index from the store."""
        await self.index.rebuild(self.store)

    # ----- resellers -----
    async def list_resellers(self) -> List[Reseller]:
        return await self.accounts.list_resellers()

    async def delete_reseller(self, username: str) -> None:
        await self.accounts.delete_reseller(username)

    async def add_credits(self, username: str, amount: int) -> List[Reseller]:
        return await self.ledger.add_credits(username, amount)

    # ----- referral tokens / registration -----
    async def list_tokens(self) -> List[str]:
        return await self.registration.list_tokens()

    async def generate_token(self) -> str:
        return await self.registration.generate_token()

    async def register(self, username: str, password: str, referral_token: str) -> Reseller:
        return await self.registration.register(username, password, referral_token)

    # ----- keys -----
    async def list_keys(self, username: str) -> List[LicenseKey]:
        return await self.issuer.list_keys(username)

    async def issue_key(
        self,
        username: str,
        game_name: str,
        custom_value: Optional[str],
        device_limit: int,
        expiry_days: int,
    ) -> LicenseKey:
        return await self.issuer.issue_key(username, game_name, custom_value, device_limit, expiry_days)

    async def delete_key(self, username: str, key_id: str) -> None:
        await self.issuer.delete_key(username, key_id)

    # ----- verification -----
    async def verify(self, key_value: str, game_name: str, requester_ip: str) -> VerificationEvent:
        return await self.verifier.verify(key_value, game_name, requester_ip)

    async def list_verifications(self) -> List[VerificationEvent]:
        return await self.verifier.list_events()

    # ----- usage log -----
    async def record_usage(self, endpoint: str, method: str, ip: str, success: bool) -> UsageEvent:
        return await self.usage.record(endpoint, method, ip, success)

    async def list_usage_log(self) -> List[UsageEvent]:
        return await self.usage.list_events()

    # ----- credentials -----
    async def authenticate_admin(self, username: str, password: str) -> str:
        return await self.accounts.authenticate_admin(username, password)

    async def authenticate_reseller(self, username: str, password: str) -> Reseller:
        return await self.accounts.authenticate_reseller(username, password)
