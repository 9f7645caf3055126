import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# Postgres in production; the SQLite fallback keeps local runs and tests self-contained
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./leaguehub.db")

# Session tokens - issued by the auth service, only verified here
AUTH_SECRET = os.getenv("AUTH_SECRET")
if not AUTH_SECRET:
    import warnings

    warnings.warn(
        "AUTH_SECRET not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    AUTH_SECRET = "INSECURE-DEV-SECRET-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only
AUTH_ALGORITHM = os.getenv("AUTH_ALGORITHM", "HS256")
AUTH_COOKIE_NAME = os.getenv("AUTH_COOKIE_NAME", "auth_token")

# Rental discovery
# Slot dates are stored as wall-clock times; aware "now" values are converted into this zone
DISCOVER_TIMEZONE = os.getenv("DISCOVER_TIMEZONE", "UTC")

# Frontend base URL for redirects
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# CORS - comma separated list of allowed origins
ALLOWED_ORIGINS = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", FRONTEND_URL).split(",") if o.strip()]
