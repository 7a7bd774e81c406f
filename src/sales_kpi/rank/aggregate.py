"""Aggregation of transactions into per-key totals.

Expectations:
- Input: a validated Dask DataFrame with canonical columns `period`,
  `group_key`, `entity_id`, `amount` plus optional attribute columns.
- Output: a pandas DataFrame with one row per distinct key and a
  `total_amount` column. Keys with no contributing records are absent.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable

import pandas as pd

from sales_kpi.exceptions import AmbiguousAggregationKeyError

log = logging.getLogger(__name__)

PERIOD_GROUP_ENTITY = ("period", "group_key", "entity_id")


def aggregate_totals(
    ddf: Any,
    keys: Iterable[str],
    attributes: Iterable[str] = (),
) -> pd.DataFrame:
    """Sum `amount` per key and materialize the result to pandas.

    Attribute columns take part in the grouping (like a SQL `GROUP BY` on the
    display columns) and are then required to be unique per key.

    The total of a key whose amounts are all null is null, matching SQL `SUM`.

    Args:
        ddf: Dask DataFrame with `amount` and the key/attribute columns.
        keys: Columns identifying one total.
        attributes: Display columns carried alongside each key.

    Returns:
        pandas DataFrame with columns `*keys, *attributes, total_amount`.

    Raises:
        AmbiguousAggregationKeyError: if a key maps to more than one distinct
            set of attribute values.
    """
    keys = list(keys)
    attributes = list(attributes)
    by = keys + attributes

    grouped = ddf.groupby(by, dropna=False)["amount"].agg(["sum", "count"])
    pdf = grouped.reset_index().compute()

    pdf["total_amount"] = pdf["sum"].where(pdf["count"] > 0)
    totals = pdf[by + ["total_amount"]].reset_index(drop=True)

    if attributes:
        dup = totals.duplicated(keys, keep=False)
        if dup.any():
            clashing = sorted({tuple(r) for r in totals.loc[dup, keys].itertuples(index=False)}, key=repr)
            raise AmbiguousAggregationKeyError(
                f"{len(clashing)} key(s) carry conflicting {attributes} values, e.g. {clashing[0]!r}",
                keys=clashing,
            )

    log.info("Aggregated %d totals over %s", len(totals), keys)
    return totals


def aggregate_period_totals(
    ddf: Any,
    required_periods: Iterable[Any],
    attributes: Iterable[str] = (),
) -> pd.DataFrame:
    """Return one total per (period, group key, entity id) for the required periods.

    Args:
        ddf: Validated canonical Dask DataFrame.
        required_periods: Periods to keep; records outside are ignored.
        attributes: Display columns carried alongside each total.

    Returns:
        pandas DataFrame with columns `period`, `group_key`, `entity_id`,
        the attributes, and `total_amount`.
    """
    periods = list(required_periods)
    in_scope = ddf[ddf["period"].isin(periods)]
    return aggregate_totals(in_scope, PERIOD_GROUP_ENTITY, attributes)
