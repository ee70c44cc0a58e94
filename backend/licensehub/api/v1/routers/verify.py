# licensehub/api/v1/routers/verify.py
"""
Key verification endpoints called by the game clients.

One POST (key in the body) and one GET (key in the path) per game. Both
always answer HTTP 200 with the success flag in the body, except when
storage is unavailable. Every call is written to the usage log.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from licensehub.api.v1.deps import client_ip, get_licensing
from licensehub.core.errors import LicensingError, StorageFailure
from licensehub.schemas.verification import VerifyKeyIn
from licensehub.services.licensing import LicensingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/verify", tags=["verify"])

# URL slug -> game name stored on keys
GAME_ROUTES = {
    "pubg": "PUBG MOBILE",
    "lastisland": "LAST ISLAND OF SURVIVAL",
    "standoff2": "STANDOFF2",
}


def _game_name(game: str) -> str:
    name = GAME_ROUTES.get(game)
    if name is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="GAME_NOT_FOUND")
    return name


async def _verify_and_log(service: LicensingService, game: str, key: str, method: str, ip: str) -> JSONResponse:
    game_name = _game_name(game)
    status_code = status.HTTP_200_OK
    try:
        event = await service.verify(key, game_name, ip)
        body = {"success": True, "data": event.model_dump(mode="json")}
    except StorageFailure as exc:
        status_code = exc.status_code
        body = {"success": False, "error": exc.to_dict()}
    except LicensingError as exc:
        body = {"success": False, "error": exc.to_dict()}

    try:
        await service.record_usage(f"/api/v1/verify/{game}", method, ip, body["success"])
    except LicensingError:
        # The verdict stands even if the usage log could not be written
        logger.error("[verify] Could not record usage for %s %s from %s", method, game, ip)
    return JSONResponse(status_code=status_code, content=body)


@router.post("/{game}")
async def verify_key_post(
    game: str,
    body: VerifyKeyIn,
    request: Request,
    service: LicensingService = Depends(get_licensing),
):
    """
    Verify a key for a game (key in the JSON body).

    Args:
        game: pubg | lastisland | standoff2
        body: {"key": "<key value>"}

    Returns:
        success=True with the verification event, or success=False with
        error code INVALID_KEY, KEY_EXPIRED or KEY_IN_USE
    """
    return await _verify_and_log(service, game, body.key, "POST", client_ip(request))


@router.get("/{game}/{key}")
async def verify_key_get(
    game: str,
    key: str,
    request: Request,
    service: LicensingService = Depends(get_licensing),
):
    """Verify a key for a game (key in the path). Same result as the POST form."""
    return await _verify_and_log(service, game, key, "GET", client_ip(request))
