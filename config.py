from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


BACKEND_DIR = Path(__file__).resolve().parent
REPO_ROOT = BACKEND_DIR.parent

# Load .env file (try backend folder first, then repo root)
_env_loaded = False
try:
    from dotenv import load_dotenv  # type: ignore

    backend_env = BACKEND_DIR / ".env"
    if backend_env.exists():
        load_dotenv(backend_env, override=True)
        _env_loaded = True
        print(f"[Config] Loaded .env from {backend_env}")
    else:
        root_env = REPO_ROOT / ".env"
        if root_env.exists():
            load_dotenv(root_env, override=True)
            _env_loaded = True
            print(f"[Config] Loaded .env from {root_env}")
        else:
            print("[Config] Warning: No .env file found, using system env vars")
except OSError as e:
    print(f"[Config] Error loading .env: {e}")


DEFAULT_SCORE_WEIGHTS = (40.0, 30.0, 20.0, 10.0)
DEFAULT_SCORE_DIVISORS = (10000.0, 100.0, 100.0, 50.0)


@dataclass(frozen=True)
class ScoreCalibration:
    """
    Vendor performance score calibration.
    Each term is weight * (value / divisor); order is
    revenue, orders, average order value, active products.
    """
    weights: tuple[float, float, float, float] = DEFAULT_SCORE_WEIGHTS
    divisors: tuple[float, float, float, float] = DEFAULT_SCORE_DIVISORS


@dataclass(frozen=True)
class Settings:
    mongodb_uri: str | None
    mongodb_db: str
    # Build the analytics indexes on startup; the collections belong to the
    # commerce backend, so this stays off unless its owners agree
    create_indexes: bool

    host: str
    port: int
    debug: bool

    # Comma separated list, "*" allows any origin
    cors_origins: str

    # Run the independent dashboard facets on a thread pool
    parallel_facets: bool

    # Share of order total treated as cost in the profit report (estimate only)
    profit_cost_ratio: float
    score: ScoreCalibration

    top_selling_limit: int
    top_products_limit: int
    top_customers_limit: int


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_quad(name: str, default: tuple[float, float, float, float]) -> tuple[float, float, float, float]:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        parts = tuple(float(p) for p in value.split(",") if p.strip())
    except ValueError:
        print(f"[Config] Ignoring malformed {name}={value!r}")
        return default
    if len(parts) != 4:
        print(f"[Config] {name} needs four values, got {len(parts)}")
        return default
    return parts  # type: ignore[return-value]


def get_settings() -> Settings:
    divisors = _get_quad("VENDOR_SCORE_DIVISORS", DEFAULT_SCORE_DIVISORS)
    if any(d == 0 for d in divisors):
        print("[Config] VENDOR_SCORE_DIVISORS must be non-zero, using defaults")
        divisors = DEFAULT_SCORE_DIVISORS

    return Settings(
        mongodb_uri=os.getenv("MONGODB_URI"),
        mongodb_db=os.getenv("MONGODB_DB", "marketplace"),
        create_indexes=_get_bool("MONGODB_CREATE_INDEXES", False),
        host=os.getenv("HOST", "127.0.0.1"),
        port=_get_int("PORT", 5000),
        debug=_get_bool("FLASK_DEBUG", False),
        cors_origins=os.getenv("CORS_ORIGINS", "*"),
        parallel_facets=_get_bool("ANALYTICS_PARALLEL_FACETS", False),
        profit_cost_ratio=_get_float("PROFIT_COST_RATIO", 0.6),
        score=ScoreCalibration(
            weights=_get_quad("VENDOR_SCORE_WEIGHTS", DEFAULT_SCORE_WEIGHTS),
            divisors=divisors,
        ),
        top_selling_limit=_get_int("TOP_SELLING_LIMIT", 10),
        top_products_limit=_get_int("TOP_PRODUCTS_LIMIT", 20),
        top_customers_limit=_get_int("TOP_CUSTOMERS_LIMIT", 20),
    )
