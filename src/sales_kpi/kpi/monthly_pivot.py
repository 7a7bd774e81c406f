"""Month-by-month sales pivot with a yearly total.

Callers filter the transactions (category, region, year) before pivoting;
this module only reshapes and totals.
"""
from __future__ import annotations

import logging
from typing import Any

import pandas as pd

from sales_kpi.exceptions import InvalidInputError
from sales_kpi.rank.report import round_money

log = logging.getLogger(__name__)

MONTHS = range(1, 13)
MONTH_COLUMNS = [f"m{m:02d}" for m in MONTHS]


def monthly_pivot(
    ddf: Any,
    *,
    label_col: str = "prod_name",
    month_col: str = "calendar_month_number",
    amount_col: str = "amount_sold",
    upper_labels: bool = True,
) -> pd.DataFrame:
    """Pivot sales into one row per label with twelve month columns.

    Months without sales are 0. Each month and `year_sum` (the sum of the
    unrounded months) are rounded to 2 decimals. Rows with a null label are
    dropped.

    Args:
        ddf: Dask DataFrame of transactions.
        label_col: Row label, e.g. product name.
        month_col: Month number column (1..12).
        amount_col: Amount column.
        upper_labels: Upper-case labels before grouping.

    Returns:
        pandas DataFrame with columns `label_col`, `m01`..`m12`, `year_sum`,
        ordered by `year_sum` desc then label.

    Raises:
        InvalidInputError: on missing columns or a month outside 1..12.
    """
    needed = [label_col, month_col, amount_col]
    missing = [c for c in needed if c not in ddf.columns]
    if missing:
        raise InvalidInputError(f"Transactions are missing required columns: {missing}", missing=missing)

    grouped = (
        ddf[needed]
        .groupby([label_col, month_col])[amount_col]
        .sum()
        .reset_index()
        .compute()
    )

    if grouped.empty:
        return pd.DataFrame(columns=[label_col, *MONTH_COLUMNS, "year_sum"])

    months = pd.to_numeric(grouped[month_col], errors="coerce")
    bad = ~months.isin(list(MONTHS))
    if bad.any():
        raise InvalidInputError(
            f"Month values outside 1..12: {sorted(grouped.loc[bad, month_col].astype(str).unique())}"
        )
    grouped[month_col] = months.astype(int)
    grouped[amount_col] = pd.to_numeric(grouped[amount_col], errors="coerce")

    if upper_labels:
        grouped[label_col] = grouped[label_col].astype(str).str.upper()

    pivot = grouped.pivot_table(
        index=label_col,
        columns=month_col,
        values=amount_col,
        aggfunc="sum",
        fill_value=0,
    ).reindex(columns=list(MONTHS), fill_value=0)
    pivot.columns = MONTH_COLUMNS

    pivot["year_sum"] = pivot[MONTH_COLUMNS].sum(axis=1)
    out = pivot.reset_index().sort_values(
        ["year_sum", label_col],
        ascending=[False, True],
        kind="mergesort",
    )
    for col in [*MONTH_COLUMNS, "year_sum"]:
        out[col] = out[col].map(round_money).astype("float64")

    log.info("Monthly pivot: %d labels", len(out))
    return out.reset_index(drop=True)
