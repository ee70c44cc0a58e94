"""
Reseller and admin accounts: listing, deletion and credential checks.
"""
import logging
from typing import List

from licensehub.core.errors import InvalidCredentials
from licensehub.core.locks import ResourceLocks
from licensehub.core.security import verify_password
from licensehub.core.store import ADMIN, RESELLERS, RecordStore
from licensehub.schemas.reseller import Reseller
from .key_index import KeyIndex
from .ledger import find_reseller

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(self, store: RecordStore, locks: ResourceLocks, index: KeyIndex):
        self.store = store
        self.locks = locks
        self.index = index

    async def list_resellers(self) -> List[Reseller]:
        rows = await self.store.get(RESELLERS)
        return [Reseller.model_validate(r) for r in rows]

    async def get_reseller(self, username: str) -> Reseller | None:
        rows = await self.store.get(RESELLERS)
        i = find_reseller(rows, username)
        return None if i is None else Reseller.model_validate(rows[i])

    async def delete_reseller(self, username: str) -> None:
        """
        Hard-delete a reseller. Deleting an unknown username still succeeds.

        The reseller's key collection is left in place (still listed by
        username) but its keys stop verifying.
        """
        await self.index.ensure_built(self.store)
        async with self.locks.hold(RESELLERS):
            rows = await self.store.get(RESELLERS)
            kept = [r for r in rows if r.get("username") != username]
            if len(kept) == len(rows):
                return
            await self.store.put(RESELLERS, kept)
            dropped = self.index.remove_owner(username)
        logger.info("[accounts] Deleted reseller %s (%d keys no longer verifiable)", username, dropped)

    async def authenticate_reseller(self, username: str, password: str) -> Reseller:
        reseller = await self.get_reseller(username)
        if reseller is None or not verify_password(password, reseller.passwordHash):
            raise InvalidCredentials()
        return reseller

    async def authenticate_admin(self, username: str, password: str) -> str:
        admin = await self.store.get(ADMIN)
        if admin.get("username") != username or not verify_password(password, admin.get("passwordHash", "")):
            raise InvalidCredentials()
        return username
