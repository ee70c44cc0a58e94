# licensehub/config.py
import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file

class Settings(BaseModel):
    # General app settings
    APP_NAME: str = "LicenseHub Key Reseller API"
    env: str = os.getenv("ENV", "dev")

    # Host & Port settings
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "3000"))

    # CORS origins for the dashboard frontend
    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Reseller economy
    starting_credits: int = int(os.getenv("STARTING_CREDITS", "20"))  # Credits granted on registration

    # Storage behaviour
    # Every store call and every lock acquisition gives up after this many seconds
    storage_timeout_seconds: float = float(os.getenv("STORAGE_TIMEOUT_SECONDS", "5.0"))
    # Optimistic append attempts for the usage log before reporting a storage failure
    usage_log_cas_retries: int = int(os.getenv("USAGE_LOG_CAS_RETRIES", "8"))

    # Use X-Forwarded-For as the requester IP (only behind a trusted reverse proxy)
    trust_proxy_headers: bool = os.getenv("TRUST_PROXY_HEADERS", "false").lower() in ("true", "1", "yes")

settings = Settings()  # Instantiate configuration
