import datetime as dt
import os

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from licensehub.core import db as db_module
from licensehub.core.security import hash_password
from licensehub.core.store import ADMIN, MemoryRecordStore, TortoiseRecordStore
from licensehub.main import app
from licensehub.services.licensing import LicensingService


TEST_DB_URL = "sqlite://:memory:?cache=shared"
os.environ["DATABASE_URL"] = TEST_DB_URL
db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "AdminPass!23"


class FakeClock:
    """Controllable clock for services; always timezone-aware UTC."""

    def __init__(self, start: dt.datetime):
        self.now = start

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, **kwargs) -> dt.datetime:
        self.now += dt.timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock(dt.datetime(2026, 1, 1, 12, 0, tzinfo=dt.timezone.utc))


@pytest.fixture
def store():
    return MemoryRecordStore(timeout=1.0)


@pytest_asyncio.fixture
async def service(store, clock):
    """
    Licensing service over an in-memory store with a fake clock.
    """
    svc = LicensingService(store, clock=clock)
    await svc.start()
    return svc


@pytest_asyncio.fixture
async def reseller_factory(service):
    """
    Factory fixture: issue a referral token and register a reseller with it.
    """

    async def _create(username: str = "bob", password: str = "ResellerPass!1"):
        token = await service.generate_token()
        return await service.register(username, password, token)

    return _create


async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()


@pytest_asyncio.fixture
async def db_store():
    """
    TortoiseRecordStore on a fresh in-memory SQLite database.
    """
    await _init_test_db()
    yield TortoiseRecordStore(timeout=5.0)
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def client():
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB
    and a licensing service backed by Tortoise.
    """
    await _init_test_db()
    tortoise_store = TortoiseRecordStore()
    await tortoise_store.put(ADMIN, {"username": ADMIN_USERNAME, "passwordHash": hash_password(ADMIN_PASSWORD)})
    app.state.licensing = LicensingService(tortoise_store)
    await app.state.licensing.start()
    # Use ASGITransport without lifespan parameter (not supported in all httpx versions)
    try:
        transport = ASGITransport(app=app, lifespan="off")
    except TypeError:
        # Fallback for httpx versions that don't support lifespan parameter
        transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def admin_headers(client):
    """
    Authorization headers for the administrator, obtained via the login endpoint.
    """
    resp = await client.post(
        "/api/v1/auth/admin/login",
        json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
    )
    assert resp.status_code == 200, resp.text
    token = resp.json()["data"]["accessToken"]
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def register_reseller(client, admin_headers):
    """
    Factory fixture: admin issues a token, the reseller registers and logs in.
    Returns the reseller's Authorization headers.
    """

    async def _register(username: str, password: str = "ResellerPass!1") -> dict[str, str]:
        token_resp = await client.post("/api/v1/admin/tokens", headers=admin_headers)
        token = token_resp.json()["data"]["token"]
        reg = await client.post(
            "/api/v1/auth/register",
            json={"username": username, "password": password, "referralToken": token},
        )
        assert reg.status_code == 200, reg.text
        login = await client.post(
            "/api/v1/auth/reseller/login",
            json={"username": username, "password": password},
        )
        assert login.status_code == 200, login.text
        return {"Authorization": f"Bearer {login.json()['data']['accessToken']}"}

    return _register
