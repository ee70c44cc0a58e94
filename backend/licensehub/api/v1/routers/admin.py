# licensehub/api/v1/routers/admin.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from licensehub.api.v1.deps import get_licensing, require_admin
from licensehub.schemas.reseller import AddCreditsIn, ResellerOut
from licensehub.services.licensing import LicensingService

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def _resellers_out(resellers) -> list[dict]:
    return [ResellerOut.from_record(r).model_dump(mode="json") for r in resellers]


# ==============================================================================
# I. Reseller Management
#     Prefix: /api/v1/admin/resellers
# ==============================================================================
@router.get("/resellers")
async def list_resellers(service: LicensingService = Depends(get_licensing)):
    """
    List every reseller with its credit balance (admin only).

    Returns:
        dict: success + data.items (resellers, no credentials) and data.total
    """
    items = _resellers_out(await service.list_resellers())
    return {"success": True, "data": {"items": items, "total": len(items)}}


@router.post("/resellers/credits")
async def add_credits(body: AddCreditsIn, service: LicensingService = Depends(get_licensing)):
    """
    Add credits to a reseller's balance (admin only).

    Returns:
        dict: success + the full, updated reseller list

    Error codes:
        - UNKNOWN_RESELLER (404): No reseller with this username
    """
    items = _resellers_out(await service.add_credits(body.username, body.credits))
    return {"success": True, "data": {"items": items, "total": len(items)}}


@router.delete("/resellers/{username}")
async def delete_reseller(username: str, service: LicensingService = Depends(get_licensing)):
    """
    Delete a reseller (admin only).

    Succeeds even if the reseller does not exist. The reseller's keys are
    kept but no longer verify.
    """
    await service.delete_reseller(username)
    return {"success": True, "data": {"ok": True}}


# ==============================================================================
# II. Referral Tokens
#     Prefix: /api/v1/admin/tokens
# ==============================================================================
@router.get("/tokens")
async def list_tokens(service: LicensingService = Depends(get_licensing)):
    tokens = await service.list_tokens()
    return {"success": True, "data": {"tokens": tokens}}


@router.post("/tokens")
async def generate_token(service: LicensingService = Depends(get_licensing)):
    """
    Generate a one-time referral token (admin only).
    Hand it to a prospective reseller; it is consumed at registration.
    """
    token = await service.generate_token()
    return {"success": True, "data": {"token": token}}


# ==============================================================================
# III. Audit: API usage and verification history
# ==============================================================================
@router.get("/stats")
async def usage_stats(service: LicensingService = Depends(get_licensing)):
    """
    Usage log of the verification endpoints (admin only).
    Each item: endpoint, method, timestamp, ip, success.
    """
    usage = [u.model_dump(mode="json") for u in await service.list_usage_log()]
    return {"success": True, "data": {"usage": usage}}


@router.get("/verifications")
async def list_verifications(service: LicensingService = Depends(get_licensing)):
    events = [v.model_dump(mode="json") for v in await service.list_verifications()]
    return {"success": True, "data": {"items": events, "total": len(events)}}
