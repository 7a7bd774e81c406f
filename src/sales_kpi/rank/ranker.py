"""Rank totals within partitions.

Ordering is total descending with null totals last; nulls never receive a rank
and so can never fall under a top-N threshold.

Totals are compared after rounding to `TIE_SCALE` decimal places, so sums that
are equal as money (0.1 + 0.2 and 0.3) tie instead of splitting on float noise.

Supported tie policies (pandas `rank` methods):
- ``dense``: ties share a rank, the next distinct total gets rank + 1 (SQL `DENSE_RANK`)
- ``min``: ties share a rank, the next total skips the tied count (SQL `RANK`)
- ``first``: unique ranks, ties broken by entity id ascending (SQL `ROW_NUMBER`)
"""
from __future__ import annotations

from typing import Iterable

import pandas as pd

from sales_kpi.exceptions import InvalidInputError

RANK_METHODS = ("dense", "min", "first")
TIE_SCALE = 6
PERIOD_GROUP = ("period", "group_key")


def check_method(method: str) -> str:
    if method not in RANK_METHODS:
        raise InvalidInputError(f"Unknown rank method {method!r}; expected one of {RANK_METHODS}")
    return method


def rank_within(
    frame: pd.DataFrame,
    partition_by: Iterable[str],
    value_col: str = "total_amount",
    method: str = "dense",
    tiebreak_col: str = "entity_id",
    tie_scale: int = TIE_SCALE,
) -> pd.DataFrame:
    """Return a copy of `frame` sorted per partition with an added `rank` column.

    Args:
        frame: pandas DataFrame of totals.
        partition_by: Columns defining independent ranking partitions.
        value_col: Column ranked in descending order.
        method: Tie policy, one of `RANK_METHODS`.
        tiebreak_col: Secondary ascending sort key, used by ``first``.
        tie_scale: Decimal places at which two totals count as equal.

    Returns:
        DataFrame ordered by partition, value desc (nulls last), tiebreak asc,
        with a nullable integer `rank` column.
    """
    check_method(method)
    parts = list(partition_by)

    keyed = frame.assign(_rank_key=pd.to_numeric(frame[value_col]).round(tie_scale))
    ordered = keyed.sort_values(
        parts + ["_rank_key", tiebreak_col],
        ascending=[True] * len(parts) + [False, True],
        na_position="last",
        kind="mergesort",
    ).reset_index(drop=True)

    ranks = ordered.groupby(parts, sort=False)["_rank_key"].rank(
        method=method,
        ascending=False,
        na_option="keep",
    )
    ordered["rank"] = ranks.astype("Int64")
    return ordered.drop(columns="_rank_key")


def rank_period_totals(totals: pd.DataFrame, method: str = "dense") -> pd.DataFrame:
    """Rank entities per (period, group key) by `total_amount`."""
    return rank_within(totals, PERIOD_GROUP, method=method)
