"""
Environment variable loading for the journal backend.

- JOURNAL_DB_URL / DATABASE_URL: SQLAlchemy URL (PostgreSQL in production)
- DATABASE_PATH: SQLite file used when no URL is set (default: journal.db)
- ALPHA_VANTAGE_API_KEY: market data key; absent means no market-trend nudge
- ALPHA_VANTAGE_URL: query endpoint
- MARKET_DATA_TIMEOUT_SEC: HTTP timeout for market data requests
- API_HOST / API_PORT: uvicorn bind address
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is backend_journal/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_SQLITE_PATH = "journal.db"
DEFAULT_ALPHA_VANTAGE_URL = "https://www.alphavantage.co/query"
DEFAULT_MARKET_DATA_TIMEOUT_SEC = 30.0


def load_journal_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides real env."""
    load_dotenv(_ENV_PATH, override=False)


def get_database_url() -> str:
    """
    Resolve the SQLAlchemy database URL.
    Order: JOURNAL_DB_URL > DATABASE_URL > sqlite:///DATABASE_PATH.
    """
    load_journal_env()
    url = (os.getenv("JOURNAL_DB_URL") or os.getenv("DATABASE_URL") or "").strip()
    if url:
        return url
    path = (os.getenv("DATABASE_PATH") or "").strip() or DEFAULT_SQLITE_PATH
    return f"sqlite:///{path}"


def get_alpha_vantage_api_key() -> str | None:
    load_journal_env()
    key = (os.getenv("ALPHA_VANTAGE_API_KEY") or "").strip()
    return key or None


def get_alpha_vantage_url() -> str:
    load_journal_env()
    return (os.getenv("ALPHA_VANTAGE_URL") or "").strip() or DEFAULT_ALPHA_VANTAGE_URL


def get_market_data_timeout() -> float:
    """Return MARKET_DATA_TIMEOUT_SEC as float; invalid values fall back to the default."""
    load_journal_env()
    raw = (os.getenv("MARKET_DATA_TIMEOUT_SEC") or "").strip()
    if not raw:
        return DEFAULT_MARKET_DATA_TIMEOUT_SEC
    try:
        return float(raw)
    except ValueError:
        return DEFAULT_MARKET_DATA_TIMEOUT_SEC


def get_api_host() -> str:
    load_journal_env()
    return (os.getenv("API_HOST") or "").strip() or "0.0.0.0"


def get_api_port() -> int:
    load_journal_env()
    return int((os.getenv("API_PORT") or "8000").strip() or "8000")


def mask_database_url(url: str) -> str:
    """Strip credentials and query string from a database URL for logging."""
    base = url.split("?")[0]
    if "@" in base:
        scheme, _, rest = base.partition("://")
        return f"{scheme}://***@{rest.split('@', 1)[1]}"
    return base
