import os
from dotenv import load_dotenv




load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///impacto_local.db")
SESSION_EXPIRE_DAYS = int(os.getenv("SESSION_EXPIRE_DAYS", 30))

RESEND_API_KEY = os.getenv("RESEND_API_KEY", "")
RESEND_FROM_EMAIL = os.getenv("RESEND_FROM_EMAIL", "")
RESEND_FROM_NAME = os.getenv("RESEND_FROM_NAME", "ImpactoLocal")
EMAIL_TIMEOUT_SECONDS = float(os.getenv("EMAIL_TIMEOUT_SECONDS", 20))

SWEEP_INTERVAL_SECONDS = int(os.getenv("SWEEP_INTERVAL_SECONDS", 300))
INTERNAL_SECRET = os.getenv("INTERNAL_SECRET", "")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]

RESET_DB_ON_STARTUP = _env_bool("RESET_DB_ON_STARTUP")
SEED_TEST_DATA = _env_bool("SEED_TEST_DATA")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
