"""Presentation of the consistent top-N result: join back, round, order."""
from __future__ import annotations

from decimal import Decimal, ROUND_HALF_EVEN, ROUND_HALF_UP
from typing import Any, Iterable

import pandas as pd

from sales_kpi.exceptions import InvalidInputError
from sales_kpi.rank.intersect import ENTITY_GROUP, top_hits

ROUNDING_MODES = {
    "half_up": ROUND_HALF_UP,
    "half_even": ROUND_HALF_EVEN,
}

REPORT_COLUMNS = ["period", "group_key", "entity_id", "total_amount", "rank"]


def check_rounding(rounding: str) -> str:
    if rounding not in ROUNDING_MODES:
        raise InvalidInputError(
            f"Unknown rounding mode {rounding!r}; expected one of {sorted(ROUNDING_MODES)}"
        )
    return rounding


def round_money(value: Any, places: int = 2, rounding: str = "half_up") -> float | None:
    """Round a monetary value in decimal arithmetic.

    Floats are converted through their shortest repr, so `2.675` rounds
    half-up to `2.68` as a SQL `numeric` would.
    """
    if value is None or pd.isna(value):
        return None
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUNDING_MODES[rounding]))


def report_columns(attributes: Iterable[str] = ()) -> list[str]:
    return REPORT_COLUMNS[:3] + list(attributes) + REPORT_COLUMNS[3:]


def empty_report(attributes: Iterable[str] = ()) -> pd.DataFrame:
    return pd.DataFrame(columns=report_columns(attributes))


def build_report(
    ranked: pd.DataFrame,
    qualifying: pd.DataFrame,
    threshold: int,
    required_periods: Iterable[Any],
    attributes: Iterable[str] = (),
    rounding: str = "half_up",
) -> pd.DataFrame:
    """Join qualifying entities back to their per-period ranked totals.

    Rows are ordered by period asc, group key asc, rank asc (total desc), entity
    id asc, and `total_amount` is rounded to 2 decimals.

    Returns:
        pandas DataFrame with `report_columns(attributes)`.
    """
    check_rounding(rounding)
    cols = report_columns(attributes)

    rows = top_hits(ranked, threshold, required_periods).merge(
        qualifying[ENTITY_GROUP],
        on=ENTITY_GROUP,
        how="inner",
    )
    if rows.empty:
        return empty_report(attributes)

    rows = rows.sort_values(
        ["period", "group_key", "rank", "entity_id"],
        kind="mergesort",
    ).reset_index(drop=True)

    rows["total_amount"] = rows["total_amount"].map(lambda v: round_money(v, rounding=rounding))
    rows["rank"] = rows["rank"].astype(int)
    return rows[cols]
