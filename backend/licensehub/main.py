# licensehub/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Your configuration and DB
from licensehub.config import settings
from licensehub.core.db import init_db, close_db
from licensehub.core.errors import LicensingError
from licensehub.core.store import TortoiseRecordStore
from licensehub.services.licensing import LicensingService

from licensehub.api.v1.routers import auth, admin, keys, verify

from licensehub.core.bootstrap import ensure_default_admin
logger = logging.getLogger("uvicorn.error")

app = FastAPI(title=settings.APP_NAME)

# CORS (with Cookie)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(LicensingError)
async def licensing_error_handler(request: Request, exc: LicensingError):
    # Every core failure becomes a structured envelope; the process keeps serving
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.to_dict()})

@app.on_event("startup")
async def on_startup():
    await init_db()
    store = TortoiseRecordStore()
    # Ensure there's an admin credential on first run
    await ensure_default_admin(store)
    service = LicensingService(store)
    await service.start()
    app.state.licensing = service
    logger.info("[startup] %s ready (env=%s)", settings.APP_NAME, settings.env)

@app.on_event("shutdown")
async def on_shutdown():
    await close_db()

# REST
app.include_router(auth.router, prefix="/api/v1")
app.include_router(admin.router, prefix="/api/v1")
app.include_router(keys.router, prefix="/api/v1")
app.include_router(verify.router, prefix="/api/v1")

@app.get("/healthz")
def healthz():
    return {"ok": True}
