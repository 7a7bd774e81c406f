"""Configuration helpers and Settings container.

This module provides a small `Settings` dataclass and `get_settings` which
reads environment variables (after loading `.env` from the project root) and
parses the report defaults used by the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import logging
import os

from dotenv import load_dotenv

from sales_kpi.rank.ranker import RANK_METHODS

# Explicitly load .env from project root
PROJECT_ROOT = Path(__file__).resolve().parents[2]
load_dotenv(PROJECT_ROOT / ".env")


@dataclass(frozen=True)
class Settings:
    """Container for pipeline configuration read from the environment.

    Attributes:
        mongo_uri: MongoDB connection URI.
        mongo_db: Target MongoDB database name.
        sales_collection: Source collection holding transaction rows.
        data_dir: Default directory for CSV inputs and report outputs.
        top_n: Default rank threshold for the consistent top-N report.
        required_periods: Default periods a customer must qualify in.
        rank_method: Default tie policy (`dense`, `min` or `first`).
        log_level: Numeric logging level.
    """
    mongo_uri: str
    mongo_db: str
    sales_collection: str
    data_dir: Path
    top_n: int
    required_periods: tuple[int, ...]
    rank_method: str
    log_level: int


def _parse_periods(raw: str) -> tuple[int, ...]:
    """Parse a comma separated list of integer periods (e.g. `1998,1999,2001`)."""
    try:
        periods = tuple(int(p) for p in raw.split(",") if p.strip())
    except ValueError as exc:
        raise RuntimeError(f"KPI_REQUIRED_PERIODS must be comma separated integers, got {raw!r}") from exc
    if not periods:
        raise RuntimeError("KPI_REQUIRED_PERIODS must name at least one period.")
    return periods


def get_settings() -> Settings:
    """Read environment variables and return a frozen `Settings` object.

    Raises:
        RuntimeError: if a numeric or enumerated variable cannot be parsed.
    """
    mongo_uri = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    mongo_db = os.getenv("MONGO_DB", "sales_kpi")
    sales_collection = os.getenv("SALES_COLLECTION", "sales")
    data_dir = Path(os.getenv("KPI_DATA_DIR", "data"))

    raw_top_n = os.getenv("KPI_TOP_N", "300").strip()
    try:
        top_n = int(raw_top_n)
    except ValueError as exc:
        raise RuntimeError(f"KPI_TOP_N must be an integer, got {raw_top_n!r}") from exc
    if top_n <= 0:
        raise RuntimeError(f"KPI_TOP_N must be positive, got {top_n}")

    required_periods = _parse_periods(os.getenv("KPI_REQUIRED_PERIODS", "1998,1999,2001"))

    rank_method = os.getenv("KPI_RANK_METHOD", "dense").strip().lower()
    if rank_method not in RANK_METHODS:
        raise RuntimeError(
            f"KPI_RANK_METHOD must be one of {', '.join(RANK_METHODS)}; got {rank_method!r}"
        )

    level_name = os.getenv("KPI_LOG_LEVEL", "INFO").strip().upper()
    log_level = logging.getLevelName(level_name)
    if not isinstance(log_level, int):
        raise RuntimeError(f"KPI_LOG_LEVEL is not a logging level: {level_name!r}")

    return Settings(
        mongo_uri=mongo_uri,
        mongo_db=mongo_db,
        sales_collection=sales_collection,
        data_dir=data_dir,
        top_n=top_n,
        required_periods=required_periods,
        rank_method=rank_method,
        log_level=log_level,
    )
