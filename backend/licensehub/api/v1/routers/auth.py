# licensehub/api/v1/routers/auth.py
from fastapi import APIRouter, HTTPException, Response, status, Depends
from licensehub.core.errors import InvalidCredentials
from licensehub.core.security import create_access_token
from licensehub.api.v1.deps import get_current_principal, get_licensing
from licensehub.schemas.auth import LoginRequest, PrincipalOut
from licensehub.schemas.reseller import RegisterIn, ResellerOut
from licensehub.services.licensing import LicensingService

router = APIRouter(prefix="/auth", tags=["auth"])

def _login_response(response: Response, username: str, role: str) -> dict:
    token = create_access_token(username, role)
    response.set_cookie("accessToken", token, httponly=True, secure=False, samesite="lax")
    return {"success": True, "data": {"user": {"username": username, "role": role}, "accessToken": token}}

def _invalid_credentials(exc: InvalidCredentials) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=exc.to_dict())

@router.post("/register")
async def register(body: RegisterIn, service: LicensingService = Depends(get_licensing)):
    """
    Register a new reseller account with a referral token.

    The token must have been generated by the admin and not used before; it
    is consumed by a successful registration. New resellers start with the
    configured credit grant (20 by default).

    Args:
        body: Request body containing:
            - username: str (must be unique, exact match)
            - password: str (will be hashed before storage)
            - referralToken: str (one-time token from the admin)

    Returns:
        dict: Response containing:
            - success: bool
            - data: the created reseller (without credentials)

    Error codes:
        - INVALID_TOKEN: Token unknown or already used
        - USERNAME_EXISTS: Username already taken
    """
    reseller = await service.register(body.username, body.password, body.referralToken)
    return {"success": True, "data": ResellerOut.from_record(reseller).model_dump(mode="json")}

@router.post("/admin/login")
async def admin_login(payload: LoginRequest, response: Response,
                      service: LicensingService = Depends(get_licensing)):
    """
    Authenticate the administrator and create an access token.

    The token is returned in the response body and also set as an HttpOnly
    cookie for browser-based clients.

    Raises:
        HTTPException (401): If credentials are invalid
    """
    try:
        username = await service.authenticate_admin(payload.username, payload.password)
    except InvalidCredentials as exc:
        raise _invalid_credentials(exc)
    return _login_response(response, username, "admin")

@router.post("/reseller/login")
async def reseller_login(payload: LoginRequest, response: Response,
                         service: LicensingService = Depends(get_licensing)):
    """
    Authenticate a reseller and create an access token.

    Raises:
        HTTPException (401): If credentials are invalid
    """
    try:
        reseller = await service.authenticate_reseller(payload.username, payload.password)
    except InvalidCredentials as exc:
        raise _invalid_credentials(exc)
    return _login_response(response, reseller.username, "reseller")

@router.get("/me")
async def me(current: PrincipalOut = Depends(get_current_principal),
             service: LicensingService = Depends(get_licensing)):
    """
    Get the current principal; resellers also get their live credit balance.

    Raises:
        HTTPException (401): If not authenticated
    """
    data = current.model_dump()
    if current.role == "reseller":
        reseller = await service.accounts.get_reseller(current.username)
        data["credits"] = reseller.credits if reseller else 0
    return {"success": True, "data": data}

@router.post("/logout")
async def logout(response: Response):
    """
    Log out by clearing the access token cookie.

    Note:
        This endpoint only clears the cookie. The JWT itself remains
        valid until it expires.
    """
    response.delete_cookie("accessToken")
    return {"success": True}
