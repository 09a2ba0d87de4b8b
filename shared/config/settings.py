"""
Environment-driven configuration. Values are read once at import time;
a local .env file is honoured for development.
"""
import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# --- Database ---
DB_USER = os.getenv("POSTGRES_USER", "postgres")
DB_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
DB_HOST = os.getenv("POSTGRES_HOST", "localhost")  # In Docker, this will be 'postgres'
DB_PORT = os.getenv("POSTGRES_PORT", "5432")
DB_NAME = os.getenv("POSTGRES_DB", "restaurant")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+asyncpg://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)
DB_ECHO = _env_bool("DB_ECHO", False)

# --- Auth ---
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

# --- Observability ---
SERVICE_NAME = os.getenv("SERVICE_NAME", "restaurant_api")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
TRACING_ENABLED = _env_bool("TRACING_ENABLED", True)
OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT", "http://localhost:4317")

# --- Rate limiting (slowapi limit strings) ---
RATE_LIMIT_ENABLED = _env_bool("RATE_LIMIT_ENABLED", True)
RATE_LIMIT_AUTH = os.getenv("RATE_LIMIT_AUTH", "5/minute")
RATE_LIMIT_CHECKOUT = os.getenv("RATE_LIMIT_CHECKOUT", "10/minute")

# --- Orders ---
# When false, updateOrderStatus applies any status, terminal or not.
ORDER_STATUS_STRICT = _env_bool("ORDER_STATUS_STRICT", True)

# --- Images ---
IMAGE_STORE_URL = os.getenv("IMAGE_STORE_URL", "")
IMAGE_STORE_API_KEY = os.getenv("IMAGE_STORE_API_KEY", "")
MEDIA_ROOT = os.getenv("MEDIA_ROOT", "media")
MEDIA_URL = os.getenv("MEDIA_URL", "/media")
