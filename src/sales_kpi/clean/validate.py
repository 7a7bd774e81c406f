"""Validation utilities for canonical transaction frames.

Validation is vectorized per partition and fails fast: the first partition
with a malformed row raises `InvalidInputError` and the run produces nothing.
"""
from __future__ import annotations

from typing import Any

import pandas as pd

from sales_kpi.exceptions import InvalidInputError

KEY_COLUMNS = ("period", "group_key", "entity_id")


def validate_partition(pdf: pd.DataFrame) -> pd.DataFrame:
    """Check a canonical pandas partition and coerce `amount` to float.

    Null amounts are kept (they mirror NULL sales in the source); only values
    that are present but not numeric are rejected.

    Args:
        pdf: Partition with at least the canonical columns.

    Returns:
        The partition with `amount` as float64.

    Raises:
        InvalidInputError: on null keys or non-numeric amounts.
    """
    for col in KEY_COLUMNS:
        if col not in pdf.columns:
            continue
        nulls = pdf[col].isna()
        if nulls.any():
            first = nulls.idxmax()
            raise InvalidInputError(
                f"{int(nulls.sum())} record(s) have no {col} (first at index {first!r})",
                column=col,
                index=first,
            )

    amount = pd.to_numeric(pdf["amount"], errors="coerce").astype("float64")
    bad = amount.isna() & pdf["amount"].notna()
    if bad.any():
        first = bad.idxmax()
        raise InvalidInputError(
            f"Non-numeric amount {pdf['amount'].loc[first]!r} at index {first!r}",
            column="amount",
            index=first,
        )

    out = pdf.copy()
    out["amount"] = amount
    return out


def validate_transactions(ddf: Any) -> Any:
    """Apply `validate_partition` lazily to every partition of `ddf`."""
    meta = ddf._meta.copy()
    meta["amount"] = meta["amount"].astype("float64")
    return ddf.map_partitions(validate_partition, meta=meta)
