"""
Referral tokens and reseller registration.

The admin hands out one-time referral tokens. Registering with a valid token
creates the reseller with the starting credit grant and burns the token; the
reseller record and the shortened token list are written in one put_many, so
a token is never consumed without an account and never reused.
"""
import datetime as dt
import logging
import secrets
import uuid
from typing import Callable, List, Optional

from licensehub.config import settings
from licensehub.core.clock import utc_now
from licensehub.core.errors import InvalidToken, UsernameTaken, ValidationFailure
from licensehub.core.locks import ResourceLocks
from licensehub.core.security import hash_password
from licensehub.core.store import RESELLERS, TOKENS, RecordStore, keys_collection
from licensehub.schemas.license_key import LicenseKey
from licensehub.schemas.reseller import Reseller
from .key_index import KeyIndex
from .ledger import find_reseller

logger = logging.getLogger(__name__)

TOKEN_BYTES = 16  # 32 hex characters


class RegistrationGate:
    def __init__(
        self,
        store: RecordStore,
        locks: ResourceLocks,
        index: KeyIndex,
        clock: Callable[[], dt.datetime] = utc_now,
        starting_credits: Optional[int] = None,
    ):
        self.store = store
        self.locks = locks
        self.index = index
        self.clock = clock
        self.starting_credits = settings.starting_credits if starting_credits is None else starting_credits

    async def list_tokens(self) -> List[str]:
        return await self.store.get(TOKENS)

    async def generate_token(self) -> str:
        token = secrets.token_hex(TOKEN_BYTES)
        async with self.locks.hold(TOKENS):
            tokens = await self.store.get(TOKENS)
            tokens.append(token)
            await self.store.put(TOKENS, tokens)
        logger.info("[registration] Issued referral token ...%s", token[-4:])
        return token

    async def register(self, username: str, password: str, referral_token: str) -> Reseller:
        """
        Create a reseller account from a referral token.

        Raises:
            ValidationFailure: Missing username, password or token
            InvalidToken: Token unknown or already used
            UsernameTaken: Exact username already registered
        """
        if not username or not password or not referral_token:
            raise ValidationFailure("username, password and referral token are required")
        await self.index.ensure_built(self.store)
        # Hash outside the locks; argon2 is slow on purpose
        password_hash = hash_password(password)
        collection = keys_collection(username)

        async with self.locks.hold(TOKENS, RESELLERS, collection):
            tokens = await self.store.get(TOKENS)
            if referral_token not in tokens:
                raise InvalidToken()
            resellers = await self.store.get(RESELLERS)
            if find_reseller(resellers, username) is not None:
                raise UsernameTaken()
            # Keys left behind by a deleted account with the same name, loaded
            # before the commit
            orphaned = [LicenseKey.model_validate(r) for r in await self.store.get(collection)]

            reseller = Reseller(
                id=str(uuid.uuid4()),
                username=username,
                passwordHash=password_hash,
                createdAt=self.clock(),
                credits=self.starting_credits,
            )
            resellers.append(reseller.model_dump(mode="json"))
            remaining = [t for t in tokens if t != referral_token]
            await self.store.put_many({RESELLERS: resellers, TOKENS: remaining})
            revived = self.index.add_owner_keys(username, orphaned)

        logger.info("[registration] Registered reseller %s with %d credits (%d stored keys live again)",
                    username, reseller.credits, revived)
        return reseller
