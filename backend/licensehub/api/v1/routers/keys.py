# licensehub/api/v1/routers/keys.py
from fastapi import APIRouter, Depends
from licensehub.api.v1.deps import ensure_owner_or_admin, get_current_principal, get_licensing
from licensehub.schemas.auth import PrincipalOut
from licensehub.schemas.license_key import IssueKeyIn
from licensehub.services.licensing import LicensingService

router = APIRouter(prefix="/keys", tags=["keys"])

@router.get("/{username}")
async def list_keys(
    username: str,
    current: PrincipalOut = Depends(get_current_principal),
    service: LicensingService = Depends(get_licensing),
):
    """
    List the keys issued by a reseller.

    Resellers can only list their own keys; the admin can list anyone's,
    including keys of deleted resellers.
    """
    ensure_owner_or_admin(current, username)
    keys = [k.model_dump(mode="json") for k in await service.list_keys(username)]
    return {"success": True, "data": {"items": keys, "total": len(keys)}}

@router.post("")
async def issue_key(
    body: IssueKeyIn,
    current: PrincipalOut = Depends(get_current_principal),
    service: LicensingService = Depends(get_licensing),
):
    """
    Mint a key for a game, paid with one credit.

    Args:
        body: Request body containing:
            - username: str (owning reseller)
            - gameName: "PUBG MOBILE" | "LAST ISLAND OF SURVIVAL" | "STANDOFF2"
            - customKey: str | None (used verbatim; random 16-hex value if empty)
            - deviceLimit: 1 | 2 | 100
            - expiryDays: int (>= 1)

    Returns:
        dict: success + data.key (the created key, including its value)

    Error codes:
        - INSUFFICIENT_CREDITS: No credits left
        - UNKNOWN_RESELLER: Reseller does not exist
        - KEY_EXISTS: Custom value already used for this game
    """
    ensure_owner_or_admin(current, body.username)
    key = await service.issue_key(
        body.username, body.gameName, body.customKey, body.deviceLimit, body.expiryDays
    )
    return {"success": True, "data": {"key": key.model_dump(mode="json")}}

@router.delete("/{username}/{key_id}")
async def delete_key(
    username: str,
    key_id: str,
    current: PrincipalOut = Depends(get_current_principal),
    service: LicensingService = Depends(get_licensing),
):
    """
    Delete a key. Succeeds even if the key does not exist.
    Credits are not refunded.
    """
    ensure_owner_or_admin(current, username)
    await service.delete_key(username, key_id)
    return {"success": True, "data": {"ok": True}}
