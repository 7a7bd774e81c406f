"""Column projection and normalization utilities.

This module maps caller-specific columns onto the canonical transaction schema
partition-wise using Dask. The output is a Dask DataFrame whose schema is
stable and suitable for validation and aggregation.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Union

import pandas as pd

from sales_kpi.exceptions import InvalidInputError

log = logging.getLogger(__name__)

KeyExtractor = Union[str, Callable[[pd.DataFrame], Any]]

CANONICAL_COLUMNS = ("period", "group_key", "entity_id", "amount")


def _normalize_text(value: Any) -> Any:
    """Collapse internal whitespace; empty strings become None."""
    if isinstance(value, str):
        value = " ".join(value.split())
        return value or None
    return value


def _extract(pdf: pd.DataFrame, key: KeyExtractor) -> Any:
    if isinstance(key, str):
        return pdf[key]
    return key(pdf)


def select_transaction_columns(
    ddf: Any,
    *,
    period_by: KeyExtractor | None = "period",
    group_by: KeyExtractor = "group_key",
    entity_by: KeyExtractor = "entity_id",
    amount_by: KeyExtractor = "amount",
    attributes: tuple[str, ...] = (),
) -> Any:
    """Project raw transactions onto the canonical schema.

    Each `*_by` argument is either a column name or a callable that receives a
    pandas partition and returns a Series aligned with it. Pass
    `period_by=None` for reports that are not split by period. Display attribute
    columns are carried through unchanged apart from whitespace cleanup.

    Returns:
        Dask DataFrame with columns `period` (unless skipped), `group_key`,
        `entity_id`, `amount` followed by the attribute columns.

    Raises:
        InvalidInputError: if a named column is missing or an attribute name
            collides with a canonical column.
    """
    extractors: dict[str, KeyExtractor] = {}
    if period_by is not None:
        extractors["period"] = period_by
    extractors.update(group_key=group_by, entity_id=entity_by, amount=amount_by)

    clashes = [a for a in attributes if a in CANONICAL_COLUMNS]
    if clashes:
        raise InvalidInputError(f"Attribute columns clash with canonical names: {clashes}")

    named = [k for k in extractors.values() if isinstance(k, str)] + list(attributes)
    missing = [c for c in named if c not in ddf.columns]
    if missing:
        raise InvalidInputError(
            f"Transactions are missing required columns: {missing}",
            missing=missing,
            available=list(ddf.columns),
        )

    def _project_partition(pdf: pd.DataFrame) -> pd.DataFrame:
        out = pd.DataFrame(index=pdf.index)
        for name, key in extractors.items():
            out[name] = _extract(pdf, key)
        out["group_key"] = out["group_key"].map(_normalize_text)
        for attr in attributes:
            out[attr] = pdf[attr].map(_normalize_text)
        return out

    meta = _project_partition(ddf._meta)
    log.debug("Projecting transactions onto %s", list(meta.columns))
    return ddf.map_partitions(_project_partition, meta=meta)
