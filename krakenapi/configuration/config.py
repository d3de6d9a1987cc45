from __future__ import annotations

import os


def _as_bool(value: str | None, default: bool = False) -> bool:
    """Parse a truthy/falsey string into a boolean."""
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


class Settings:
    # Kraken REST API
    KRAKEN_API_URL: str = os.getenv("KRAKEN_API_URL", "https://api.kraken.com")
    KRAKEN_API_KEY: str = os.getenv("KRAKEN_API_KEY", "")
    KRAKEN_API_SECRET: str = os.getenv("KRAKEN_API_SECRET", "")
    KRAKEN_USER_AGENT: str = os.getenv("KRAKEN_USER_AGENT", "kraken-api")

    # HTTP transport
    KRAKEN_HTTP_TIMEOUT_SECONDS: float = float(os.getenv("KRAKEN_HTTP_TIMEOUT_SECONDS", "15"))
    KRAKEN_HTTP_CONNECT_TIMEOUT_SECONDS: float = float(os.getenv("KRAKEN_HTTP_CONNECT_TIMEOUT_SECONDS", "6"))

    # Debug / logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "WARNING").upper()
    LOG_LEVEL_KRAKENAPI: str = os.getenv("LOG_LEVEL_KRAKENAPI", "INFO").upper()
    LOG_LEVEL_LIB_HTTPX: str = os.getenv("LOG_LEVEL_LIB_HTTPX", "WARNING").upper()
    LOG_LEVEL_LIB_HTTPCORE: str = os.getenv("LOG_LEVEL_LIB_HTTPCORE", "WARNING").upper()
    NO_COLOR: bool = _as_bool(os.getenv("NO_COLOR"), False)


settings = Settings()
