# licensehub/api/v1/deps.py
from fastapi import Depends, Header, HTTPException, Request, status
from licensehub.config import settings
from licensehub.core.security import decode_access_token
from licensehub.schemas.auth import PrincipalOut
from licensehub.services.licensing import LicensingService

def get_licensing(request: Request) -> LicensingService:
    """
    FastAPI dependency returning the licensing service created at startup.
    """
    return request.app.state.licensing

def client_ip(request: Request) -> str:
    """
    IP address of the caller, used for device binding and the usage log.
    X-Forwarded-For is honoured only when TRUST_PROXY_HEADERS is enabled.
    """
    if settings.trust_proxy_headers:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"

async def get_current_principal(
    request: Request,
    authorization: str | None = Header(default=None),
    service: LicensingService = Depends(get_licensing),
) -> PrincipalOut:
    """
    FastAPI dependency to get the current authenticated admin or reseller.

    This dependency extracts and validates the JWT token from either:
    1. Authorization header (Bearer token) - preferred method
    2. HttpOnly cookie (accessToken) - fallback method

    Returns:
        PrincipalOut: username and role of the caller

    Raises:
        HTTPException (401): If no token is provided (AUTH_REQUIRED)
        HTTPException (401): If token is invalid or expired (AUTH_INVALID_TOKEN)
        HTTPException (401): If the reseller no longer exists (AUTH_USER_NOT_FOUND)
    """
    token = None
    # 1) Prioritize Authorization: Bearer xxx
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    # 2) Secondly HttpOnly Cookie: accessToken
    if not token:
        token = request.cookies.get("accessToken")

    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_REQUIRED")

    try:
        payload = decode_access_token(token)
        principal = PrincipalOut(username=payload.get("sub"), role=payload.get("role"))
    except Exception:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_INVALID_TOKEN")

    # Deleted resellers lose access immediately, even with an unexpired token
    if principal.role == "reseller" and await service.accounts.get_reseller(principal.username) is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_USER_NOT_FOUND")
    return principal

async def require_admin(current: PrincipalOut = Depends(get_current_principal)) -> PrincipalOut:
    """
    FastAPI dependency to ensure the caller is the administrator.

    Raises:
        HTTPException (403): If caller is not an admin (FORBIDDEN_ADMIN_ONLY)
        HTTPException (401): If caller is not authenticated (from get_current_principal)
    """
    if current.role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="FORBIDDEN_ADMIN_ONLY")
    return current

def ensure_owner_or_admin(current: PrincipalOut, username: str) -> None:
    """
    Resellers may only act on their own keys; the admin may act on anyone's.

    Raises:
        HTTPException (403): FORBIDDEN_NOT_OWNER
    """
    if current.role == "admin":
        return
    if current.username != username:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="FORBIDDEN_NOT_OWNER")
