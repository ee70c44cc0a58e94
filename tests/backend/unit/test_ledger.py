"""
Unit tests for services.ledger.CreditLedger.
"""
import pytest

from licensehub.core.errors import InsufficientCredits, UnknownReseller, ValidationFailure
from licensehub.core.store import RESELLERS


pytestmark = pytest.mark.asyncio


async def test_new_reseller_starts_with_twenty_credits(service, reseller_factory):
    reseller = await reseller_factory("bob")
    assert reseller.credits == 20


async def test_debit_one_takes_exactly_one_credit(service, reseller_factory):
    await reseller_factory("bob")
    updated = await service.ledger.debit_one("bob")
    assert updated.credits == 19
    stored = await service.accounts.get_reseller("bob")
    assert stored.credits == 19


async def test_debit_one_rejects_empty_balance(service, store, reseller_factory):
    await reseller_factory("bob")
    rows = await store.get(RESELLERS)
    rows[0]["credits"] = 0
    await store.put(RESELLERS, rows)

    with pytest.raises(InsufficientCredits):
        await service.ledger.debit_one("bob")
    # Rejected, not clamped
    assert (await service.accounts.get_reseller("bob")).credits == 0


async def test_debit_one_unknown_reseller_is_insufficient_credits(service):
    with pytest.raises(InsufficientCredits):
        await service.ledger.debit_one("ghost")


async def test_debit_treats_missing_credits_as_zero(service):
    with pytest.raises(InsufficientCredits):
        service.ledger.debit([{"username": "legacy"}], "legacy")


async def test_debit_does_not_mutate_input(service):
    rows = [{"username": "bob", "credits": 2}]
    updated = service.ledger.debit(rows, "bob")
    assert rows[0]["credits"] == 2
    assert updated[0]["credits"] == 1


async def test_add_credits_returns_updated_list(service, reseller_factory):
    await reseller_factory("bob")
    await reseller_factory("carol")
    resellers = await service.add_credits("carol", 5)
    balances = {r.username: r.credits for r in resellers}
    assert balances == {"bob": 20, "carol": 25}


async def test_add_credits_unknown_reseller_is_an_error(service):
    with pytest.raises(UnknownReseller):
        await service.add_credits("ghost", 5)


@pytest.mark.parametrize("amount", [0, -3, 2.5, True])
async def test_add_credits_rejects_bad_amounts_before_writing(service, reseller_factory, amount):
    await reseller_factory("bob")
    with pytest.raises(ValidationFailure):
        await service.add_credits("bob", amount)
    assert (await service.accounts.get_reseller("bob")).credits == 20


async def test_balance_never_negative_after_many_mints(service, reseller_factory):
    await reseller_factory("bob")
    minted = 0
    for _ in range(25):
        try:
            await service.issue_key("bob", "STANDOFF2", None, 2, 30)
            minted += 1
        except InsufficientCredits:
            pass
    assert minted == 20
    assert (await service.accounts.get_reseller("bob")).credits == 0
