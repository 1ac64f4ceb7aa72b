# atelier_client/config.py
# Environment-aware configuration for the Atelier board client

import os
from typing import Literal

# Environment detection - normalize to lowercase
_raw_env = os.environ.get("ENV", "production").lower()
ENV: Literal["local", "staging", "production"] = _raw_env if _raw_env in ("local", "staging", "production") else "production"  # type: ignore

IS_LOCAL = (ENV == "local")
IS_STAGING = (ENV == "staging")
IS_PROD = (ENV == "production")

IS_DEV = IS_LOCAL

# Seconds before an API call is reported as a transport failure
REQUEST_TIMEOUT = int(os.environ.get("REQUEST_TIMEOUT", "20"))


def validate_api_url(url: str, env: str) -> None:
    """
    Validate API base URL according to environment security rules.

    Raises:
        ValueError: If URL violates security constraints for the environment
    """
    if not url:
        raise ValueError("API base URL cannot be empty")

    if env in ("staging", "production"):
        if not url.startswith("https://"):
            raise ValueError(f"Production/staging must use HTTPS. Got: {url}")
        if "127.0.0.1" in url or "localhost" in url:
            raise ValueError(f"Production/staging cannot use localhost URLs. Got: {url}")


def get_api_base_url(env: str = ENV) -> str:
    """
    Get API base URL with strict priority and validation.

    Priority:
    1. ATELIER_API_URL environment variable
    2. Local dev default (http://127.0.0.1:8000) ONLY if env == "local"
    3. Raise error for staging/production with no configured URL

    Returns:
        Validated API base URL with trailing slash removed
    """
    configured = os.environ.get("ATELIER_API_URL", "").strip()
    if configured:
        url = configured.rstrip("/")
        validate_api_url(url, env)
        return url

    if env == "local":
        return "http://127.0.0.1:8000"

    raise RuntimeError(
        f"Backend URL not configured for {env.upper()} environment. "
        f"Set ATELIER_API_URL; staging/production must use HTTPS."
    )
