import pytest


pytestmark = pytest.mark.asyncio

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "AdminPass!23"


async def issue_token(client, admin_headers) -> str:
    resp = await client.post("/api/v1/admin/tokens", headers=admin_headers)
    assert resp.status_code == 200
    return resp.json()["data"]["token"]


async def register(client, username: str, password: str, token: str):
    return await client.post(
        "/api/v1/auth/register",
        json={"username": username, "password": password, "referralToken": token},
    )


async def login_reseller(client, username: str, password: str):
    return await client.post(
        "/api/v1/auth/reseller/login",
        json={"username": username, "password": password},
    )


async def test_register_and_login_flow(client, admin_headers):
    token = await issue_token(client, admin_headers)

    resp = await register(client, "alice", "StrongPass!23", token)
    body = resp.json()
    assert resp.status_code == 200
    assert body["success"] is True
    assert body["data"]["username"] == "alice"
    assert body["data"]["credits"] == 20
    assert "passwordHash" not in body["data"]

    # The token was consumed
    tokens = await client.get("/api/v1/admin/tokens", headers=admin_headers)
    assert token not in tokens.json()["data"]["tokens"]

    login_resp = await login_reseller(client, "alice", "StrongPass!23")
    login_body = login_resp.json()
    assert login_resp.status_code == 200
    assert login_body["data"]["user"] == {"username": "alice", "role": "reseller"}
    assert "accessToken" in login_resp.cookies

    bad_login = await login_reseller(client, "alice", "wrong")
    assert bad_login.status_code == 401
    assert bad_login.json()["detail"]["code"] == "AUTH_INVALID_CREDENTIALS"


async def test_reused_token_is_rejected(client, admin_headers):
    token = await issue_token(client, admin_headers)
    await register(client, "alice", "StrongPass!23", token)

    resp = await register(client, "bob", "StrongPass!23", token)
    body = resp.json()
    assert resp.status_code == 400
    assert body["success"] is False
    assert body["error"]["code"] == "INVALID_TOKEN"


async def test_duplicate_username_is_rejected(client, admin_headers):
    await register(client, "alice", "StrongPass!23", await issue_token(client, admin_headers))
    second = await issue_token(client, admin_headers)

    resp = await register(client, "alice", "Other#456", second)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "USERNAME_EXISTS"

    # The second token is still available
    tokens = await client.get("/api/v1/admin/tokens", headers=admin_headers)
    assert second in tokens.json()["data"]["tokens"]


async def test_register_requires_all_fields(client):
    resp = await client.post("/api/v1/auth/register", json={"username": "alice", "password": "pw"})
    assert resp.status_code == 422


async def test_admin_login(client):
    resp = await client.post(
        "/api/v1/auth/admin/login",
        json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["user"]["role"] == "admin"

    bad = await client.post(
        "/api/v1/auth/admin/login",
        json={"username": ADMIN_USERNAME, "password": "nope"},
    )
    assert bad.status_code == 401


async def test_me_and_logout(client, register_reseller):
    headers = await register_reseller("alice")

    me_resp = await client.get("/api/v1/auth/me", headers=headers)
    me_body = me_resp.json()
    assert me_resp.status_code == 200
    assert me_body["data"] == {"username": "alice", "role": "reseller", "credits": 20}

    logout_resp = await client.post("/api/v1/auth/logout")
    assert logout_resp.status_code == 200
    assert logout_resp.json()["success"] is True


async def test_me_requires_authentication(client):
    client.cookies.clear()
    resp = await client.get("/api/v1/auth/me")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "AUTH_REQUIRED"

    resp = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "AUTH_INVALID_TOKEN"


async def test_deleted_reseller_loses_access(client, admin_headers, register_reseller):
    headers = await register_reseller("alice")
    await client.delete("/api/v1/admin/resellers/alice", headers=admin_headers)

    resp = await client.get("/api/v1/auth/me", headers=headers)
    assert resp.status_code == 401
    assert resp.json()["detail"] == "AUTH_USER_NOT_FOUND"
