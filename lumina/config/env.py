"""
Environment variable loading for Lumina.

- AUDIUS_API_URL: catalog API base URL (default: public Audius v1 API)
- AUDIUS_API_KEY: bearer key for the catalog (NEXT_PUBLIC_AUDIUS_API_KEY accepted)
- AUDIUS_REQUEST_TIMEOUT_SEC: per-request timeout for catalog calls
- LUMINA_DB_URL / DATABASE_URL: SQLAlchemy URL for the interaction ledger
- LEDGER_DB_PATH: SQLite path used when no URL is set
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

# Project root: config is lumina/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_AUDIUS_API_URL = "https://api.audius.co/v1"
DEFAULT_REQUEST_TIMEOUT_SEC = 15.0
DEFAULT_LEDGER_DB_PATH = "lumina.db"


def load_lumina_env() -> None:
    """Load .env from project root. Safe to call multiple times."""
    from dotenv import load_dotenv

    load_dotenv(_ENV_PATH)


def get_audius_api_url() -> str:
    """Return catalog base URL without trailing slash."""
    load_lumina_env()
    url = (os.getenv("AUDIUS_API_URL") or "").strip()
    return (url or DEFAULT_AUDIUS_API_URL).rstrip("/")


def get_audius_api_key() -> str | None:
    """
    Return the catalog API key, or None when unset.
    Order: AUDIUS_API_KEY > NEXT_PUBLIC_AUDIUS_API_KEY.
    """
    load_lumina_env()
    key = (os.getenv("AUDIUS_API_KEY") or os.getenv("NEXT_PUBLIC_AUDIUS_API_KEY") or "").strip()
    return key or None


def get_request_timeout_sec() -> float:
    load_lumina_env()
    raw = (os.getenv("AUDIUS_REQUEST_TIMEOUT_SEC") or "").strip()
    if not raw:
        return DEFAULT_REQUEST_TIMEOUT_SEC
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_REQUEST_TIMEOUT_SEC
    return value if value > 0 else DEFAULT_REQUEST_TIMEOUT_SEC


def get_database_url() -> str:
    """
    Return LUMINA_DB_URL or DATABASE_URL when set; else a SQLite URL
    built from LEDGER_DB_PATH (default lumina.db).
    """
    load_lumina_env()
    url = (os.getenv("LUMINA_DB_URL") or os.getenv("DATABASE_URL") or "").strip()
    if url:
        return url
    path = (os.getenv("LEDGER_DB_PATH") or "").strip() or DEFAULT_LEDGER_DB_PATH
    return f"sqlite:///{path}"


def get_api_bind() -> tuple[str, int]:
    """Return (host, port) for the API server from API_HOST / API_PORT."""
    load_lumina_env()
    host = (os.getenv("API_HOST") or "0.0.0.0").strip()
    port = int((os.getenv("API_PORT") or "8000").strip() or "8000")
    return host, port
