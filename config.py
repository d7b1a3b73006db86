import os
import logging
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "finance_tracker")
KV_COLLECTION = os.getenv("KV_COLLECTION", "kv_store")

SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
IDENTITY_TIMEOUT = float(os.getenv("IDENTITY_TIMEOUT", "10"))

SERVICE_PREFIX = os.getenv("SERVICE_PREFIX", "/api").rstrip("/")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = int(os.getenv("PORT", 8000))


def check_identity_settings():
    """Warn (without aborting) when the identity provider is not configured."""
    missing = [name for name, value in (
        ("SUPABASE_URL", SUPABASE_URL),
        ("SUPABASE_SERVICE_ROLE_KEY", SUPABASE_SERVICE_ROLE_KEY),
    ) if not value]
    if missing:
        logger.warning("Identity provider not configured: %s not set - authenticated routes will reject every request",
                       ", ".join(missing))
    return not missing
