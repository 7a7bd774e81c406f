"""Top customers per sales channel and their share of the channel total."""
from __future__ import annotations

import logging
from typing import Any, Iterable

import pandas as pd

from sales_kpi.clean.transform import KeyExtractor, select_transaction_columns
from sales_kpi.clean.validate import validate_transactions
from sales_kpi.exceptions import InvalidInputError
from sales_kpi.rank.aggregate import aggregate_totals
from sales_kpi.rank.ranker import check_method, rank_within
from sales_kpi.rank.report import round_money

log = logging.getLogger(__name__)


def format_percent(value: Any) -> str:
    """Render a percentage as `12.34%`; missing values become `N/A`."""
    if value is None or pd.isna(value):
        return "N/A"
    return f"{round_money(value):.2f}%"


def top_customers_by_channel(
    ddf: Any,
    top_n: int = 5,
    *,
    group_by: KeyExtractor = "channel_desc",
    entity_by: KeyExtractor = "cust_id",
    amount_by: KeyExtractor = "amount_sold",
    attributes: Iterable[str] = (),
    method: str = "first",
) -> pd.DataFrame:
    """Return the top `top_n` customers of each channel with their sales share.

    Totals are taken over every record (no period split). The share is the
    customer's total over the channel total, in percent.

    Args:
        ddf: Dask DataFrame of raw transactions.
        top_n: Number of customers kept per channel.
        group_by: Channel column or extractor.
        entity_by: Customer column or extractor.
        amount_by: Amount column or extractor.
        attributes: Display columns (e.g. customer names).
        method: Tie policy; ``first`` mirrors `ROW_NUMBER`.

    Returns:
        pandas DataFrame with columns `group_key`, `entity_id`, the attributes,
        `total_amount`, `sales_percentage`, `rank`, ordered by channel asc and
        total desc.
    """
    if isinstance(top_n, bool) or not isinstance(top_n, int) or top_n <= 0:
        raise InvalidInputError(f"top_n must be a positive integer, got {top_n!r}")
    check_method(method)
    attrs = list(attributes)

    canonical = validate_transactions(
        select_transaction_columns(
            ddf,
            period_by=None,
            group_by=group_by,
            entity_by=entity_by,
            amount_by=amount_by,
            attributes=tuple(attrs),
        )
    )
    totals = aggregate_totals(canonical, ("group_key", "entity_id"), attrs)

    channel_total = totals.groupby("group_key")["total_amount"].transform("sum")
    totals["sales_percentage"] = (totals["total_amount"] / channel_total.where(channel_total != 0)) * 100

    ranked = rank_within(totals, ["group_key"], method=method)
    top = ranked[ranked["rank"].le(top_n).fillna(False).astype(bool)].copy()

    top["total_amount"] = top["total_amount"].map(round_money)
    top["sales_percentage"] = top["sales_percentage"].map(round_money)
    top["rank"] = top["rank"].astype(int)

    log.info("Top-%d customers by channel: %d rows", top_n, len(top))
    cols = ["group_key", "entity_id", *attrs, "total_amount", "sales_percentage", "rank"]
    return top[cols].reset_index(drop=True)
