"""Select entities ranked inside the threshold in every required period."""
from __future__ import annotations

import logging
from typing import Any, Iterable

import pandas as pd

log = logging.getLogger(__name__)

ENTITY_GROUP = ["entity_id", "group_key"]


def top_hits(ranked: pd.DataFrame, threshold: int, required_periods: Iterable[Any]) -> pd.DataFrame:
    """Rows of `ranked` with rank <= threshold inside the required periods.

    Unranked (null total) rows never match.
    """
    within = ranked["rank"].le(threshold).fillna(False).astype(bool)
    in_scope = ranked["period"].isin(list(required_periods))
    return ranked[within & in_scope]


def qualifying_entities(
    ranked: pd.DataFrame,
    threshold: int,
    required_periods: Iterable[Any],
) -> pd.DataFrame:
    """Return entities that qualified in all required periods.

    The count is over *distinct* periods per (entity, group key) and must equal
    the number of required periods; qualifying in only some of them is not
    enough.

    Returns:
        pandas DataFrame with columns `entity_id`, `group_key`, `periods_in_top`.
    """
    periods = set(required_periods)
    hits = top_hits(ranked, threshold, periods)

    counts = (
        hits.groupby(ENTITY_GROUP, sort=True)["period"]
        .nunique()
        .reset_index()
        .rename(columns={"period": "periods_in_top"})
    )
    qualifying = counts[counts["periods_in_top"] == len(periods)].reset_index(drop=True)

    log.info(
        "%d of %d (entity, group) pairs ranked <= %d in all %d periods",
        len(qualifying),
        len(counts),
        threshold,
        len(periods),
    )
    return qualifying
