"""Channel share of regional sales, compared with the previous period.

For each (region, period) the share of every channel is computed over *all*
periods first; the period window is applied afterwards and before the
previous-period lookup, so the first period kept has no previous value.
"""
from __future__ import annotations

import logging
from typing import Any

import pandas as pd

from sales_kpi.clean.transform import KeyExtractor, select_transaction_columns
from sales_kpi.clean.validate import validate_transactions
from sales_kpi.rank.aggregate import aggregate_totals
from sales_kpi.rank.report import round_money

log = logging.getLogger(__name__)

TREND_COLUMNS = ["region", "period", "channel", "amount", "share_pct", "previous_share_pct", "share_diff"]


def channel_share_trend(
    ddf: Any,
    *,
    region_by: KeyExtractor = "country_region",
    period_by: KeyExtractor = "calendar_year",
    channel_by: KeyExtractor = "channel_desc",
    amount_by: KeyExtractor = "amount_sold",
    from_period: Any = None,
    to_period: Any = None,
) -> pd.DataFrame:
    """Return channel shares per region and period with the previous period's share.

    Args:
        ddf: Dask DataFrame of raw transactions.
        region_by: Region column or extractor.
        period_by: Period column or extractor (orderable, e.g. year).
        channel_by: Channel column or extractor.
        amount_by: Amount column or extractor.
        from_period: Inclusive lower bound of the reported window.
        to_period: Inclusive upper bound of the reported window.

    Returns:
        pandas DataFrame with `TREND_COLUMNS` ordered by region, channel,
        period. `previous_share_pct` and `share_diff` are NaN where no
        previous period is reported.
    """
    canonical = validate_transactions(
        select_transaction_columns(
            ddf,
            period_by=period_by,
            group_by=channel_by,
            entity_by=region_by,
            amount_by=amount_by,
        )
    )
    totals = aggregate_totals(canonical, ("entity_id", "period", "group_key"))
    totals = totals.rename(columns={"entity_id": "region", "group_key": "channel", "total_amount": "amount"})

    region_total = totals.groupby(["region", "period"])["amount"].transform("sum")
    share = 100.0 * totals["amount"] / region_total.where(region_total != 0)
    totals["share_pct"] = share.map(round_money).astype("float64")

    window = pd.Series(True, index=totals.index)
    if from_period is not None:
        window &= totals["period"] >= from_period
    if to_period is not None:
        window &= totals["period"] <= to_period
    trend = totals[window].sort_values(["region", "channel", "period"], kind="mergesort").reset_index(drop=True)

    trend["previous_share_pct"] = trend.groupby(["region", "channel"])["share_pct"].shift(1)
    diff = trend["share_pct"] - trend["previous_share_pct"]
    trend["share_diff"] = diff.map(round_money).astype("float64")
    trend["amount"] = trend["amount"].map(round_money).astype("float64")

    log.info("Channel share trend: %d rows", len(trend))
    return trend[TREND_COLUMNS]
