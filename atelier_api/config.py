# atelier_api/config.py
# Environment-aware configuration for the Atelier backend

import os
from typing import Literal

# Environment detection
ENV: Literal["dev", "staging", "prod"] = os.environ.get("ENV", "dev")  # type: ignore
IS_DEV = (ENV == "dev")
IS_STAGING = (ENV == "staging")
IS_PROD = (ENV == "prod")

# JWT configuration
SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-change-me")
ALGORITHM = "HS256"

# Token lifetime
ACCESS_TOKEN_MINUTES = int(os.environ.get("ACCESS_TOKEN_MINUTES", "60"))

# Database configuration (SQLite file; relative paths resolve next to this package)
DATABASE_PATH = os.environ.get("DATABASE_PATH", "atelier.db")

# CORS origins (expand for staging/prod)
CORS_ORIGINS = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]

if IS_STAGING or IS_PROD:
    extra_origins = os.environ.get("CORS_ORIGINS", "")
    if extra_origins:
        CORS_ORIGINS.extend(o.strip() for o in extra_origins.split(",") if o.strip())

if not IS_DEV and SECRET_KEY == "dev-secret-change-me":
    raise RuntimeError("SECRET_KEY must be set outside the dev environment")

print(f"[CONFIG] Environment: {ENV}")
print(f"[CONFIG] Database: {DATABASE_PATH}")
print(f"[CONFIG] Access token: {ACCESS_TOKEN_MINUTES} minutes")
