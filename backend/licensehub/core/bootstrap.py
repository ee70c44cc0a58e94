"""
Bootstrap module for application initialization.
Handles initial setup tasks such as creating the admin credential on first startup.
"""
import os
import logging
from licensehub.core.security import hash_password
from licensehub.core.store import ADMIN, RecordStore

logger = logging.getLogger("uvicorn.error")

async def ensure_default_admin(store: RecordStore) -> None:
    """
    If no admin credential is stored, create one from environment variables.
    Only takes effect under the following conditions:
      - No admin credential (with a password hash) exists yet
      - And ADMIN_PASSWORD is set (to avoid a default weak password)
    Environment variables:
      ADMIN_USERNAME (default: "admin")
      ADMIN_PASSWORD (required, otherwise won't create)
    """
    admin = await store.get(ADMIN)
    if admin.get("username") and admin.get("passwordHash"):
        return  # Skip creation if admin already exists

    # Get admin password from environment (required for security)
    admin_password = os.getenv("ADMIN_PASSWORD")
    if not admin_password:
        logger.warning("[bootstrap] No admin present, but ADMIN_PASSWORD not set -> skip creating default admin.")
        return  # Don't create admin without password (security requirement)

    admin_username = os.getenv("ADMIN_USERNAME", "admin")
    await store.put(ADMIN, {
        "username": admin_username,
        "passwordHash": hash_password(admin_password),  # Hash password before storing
    })
    logger.warning("[bootstrap] Created default admin -> username=%s", admin_username)
