from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv


PROJECT_ROOT = Path(__file__).resolve().parents[2]
ENV_PATH = PROJECT_ROOT / ".env"
DATA_DIR = PROJECT_ROOT / "src" / "data"

# Load .env once, at import time, so all modules share the same behavior.
load_dotenv(dotenv_path=ENV_PATH)


def _env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value if value else None


def _env_path(name: str, default: Path) -> Path:
    raw = _env(name)
    if raw:
        return Path(raw).expanduser()
    return default


def get_holdings_path() -> Path:
    """Path to the user-maintained finances.yaml listing the holdings."""

    return _env_path("PORTFOLIO_HOLDINGS_PATH", DATA_DIR / "finances.yaml")


def get_snapshots_path() -> Path:
    """Path to the monthly snapshot record store."""

    return _env_path("PORTFOLIO_SNAPSHOTS_PATH", DATA_DIR / "snapshots.yaml")


def get_cache_ttl_seconds() -> float:
    raw = _env("PORTFOLIO_CACHE_TTL_SECONDS") or "3600"
    try:
        return max(float(raw), 0.0)
    except (TypeError, ValueError):
        return 3600.0


def get_http_timeout_seconds() -> float:
    raw = _env("PORTFOLIO_HTTP_TIMEOUT_SECONDS") or "10"
    try:
        return float(raw)
    except (TypeError, ValueError):
        return 10.0


def get_contract_concurrency() -> int:
    """How many contract price lookups may be in flight at once.

    Defaults to 1, i.e. lookups are awaited one at a time in holding order.
    """

    raw = _env("PORTFOLIO_CONTRACT_CONCURRENCY") or "1"
    try:
        return max(int(raw), 1)
    except (TypeError, ValueError):
        return 1


def get_coingecko_base_url() -> str:
    return (_env("PORTFOLIO_COINGECKO_BASE_URL") or "https://api.coingecko.com/api/v3").rstrip("/")


def get_dexscreener_base_url() -> str:
    return (_env("PORTFOLIO_DEXSCREENER_BASE_URL") or "https://api.dexscreener.com").rstrip("/")


def get_log_level() -> str:
    return (_env("PORTFOLIO_LOG_LEVEL") or "INFO").upper()


def get_portfolio_host() -> str:
    return _env("PORTFOLIO_HOST") or "127.0.0.1"


def get_portfolio_port() -> int:
    raw = _env("PORTFOLIO_PORT") or "8000"
    try:
        return int(raw)
    except (TypeError, ValueError):
        return 8000


def get_portfolio_reload() -> bool:
    raw = _env("PORTFOLIO_RELOAD") or "false"
    return raw.strip().lower() in {"1", "true", "yes"}
