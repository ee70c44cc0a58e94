"""
Credit ledger.

Resellers pay one credit per minted key. The ledger is the only code that
changes a reseller's balance: admin top-ups add, issuance debits. A balance
never goes below zero; a debit against an empty balance is rejected, not
clamped.
"""
import logging
from typing import List, Optional

from licensehub.core.errors import InsufficientCredits, UnknownReseller, ValidationFailure
from licensehub.core.locks import ResourceLocks
from licensehub.core.store import RESELLERS, RecordStore
from licensehub.schemas.reseller import Reseller

logger = logging.getLogger(__name__)


def find_reseller(resellers: List[dict], username: str) -> Optional[int]:
    """Index of the reseller with exactly this username, or None."""
    for i, r in enumerate(resellers):
        if r.get("username") == username:
            return i
    return None


class CreditLedger:
    def __init__(self, store: RecordStore, locks: ResourceLocks):
        self.store = store
        self.locks = locks

    def debit(self, resellers: List[dict], username: str) -> List[dict]:
        """
        Take one credit from `username` in an in-memory reseller list.

        The caller must hold the resellers lock and persist the returned list.

        Raises:
            InsufficientCredits: If the reseller is missing or has no credits left
        """
        i = find_reseller(resellers, username)
        if i is None:
            raise InsufficientCredits()
        credits = resellers[i].get("credits") or 0
        if credits <= 0:
            raise InsufficientCredits()
        updated = [dict(r) for r in resellers]
        updated[i]["credits"] = credits - 1
        return updated

    async def debit_one(self, username: str) -> Reseller:
        async with self.locks.hold(RESELLERS):
            resellers = await self.store.get(RESELLERS)
            updated = self.debit(resellers, username)
            await self.store.put(RESELLERS, updated)
        return Reseller.model_validate(updated[find_reseller(updated, username)])

    async def add_credits(self, username: str, amount: int) -> List[Reseller]:
        """
        Top up a reseller's balance (admin action).

        Returns:
            The full, updated reseller list

        Raises:
            ValidationFailure: If amount is not a positive integer
            UnknownReseller: If no reseller has this username
        """
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValidationFailure("Credit amount must be a positive integer")
        async with self.locks.hold(RESELLERS):
            resellers = await self.store.get(RESELLERS)
            i = find_reseller(resellers, username)
            if i is None:
                raise UnknownReseller()
            resellers[i]["credits"] = (resellers[i].get("credits") or 0) + amount
            await self.store.put(RESELLERS, resellers)
        logger.info("[ledger] +%d credits for %s (balance %d)", amount, username, resellers[i]["credits"])
        return [Reseller.model_validate(r) for r in resellers]
