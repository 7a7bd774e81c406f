"""Normalize the accepted record containers into a Dask DataFrame.

Callers may hand the pipeline a pandas DataFrame, a Dask DataFrame, or any
iterable of mappings / `TransactionRecord` models.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, cast

import pandas as pd
import dask.dataframe as dd

from sales_kpi.exceptions import InvalidInputError
from sales_kpi.models import TransactionRecord

log = logging.getLogger(__name__)

ROWS_PER_PARTITION = 200_000


def _row_from(item: Any, position: int) -> dict[str, Any]:
    """Return a flat dict for one record or raise `InvalidInputError`."""
    if isinstance(item, TransactionRecord):
        return item.to_row()
    if isinstance(item, Mapping):
        return dict(item)
    raise InvalidInputError(
        f"Record #{position} is a {type(item).__name__}; expected a mapping or TransactionRecord.",
        position=position,
    )


def records_to_pandas(records: Iterable[Any]) -> pd.DataFrame:
    """Materialize an iterable of records into a pandas DataFrame.

    Every mapping must carry every field name used by the other mappings. A
    field that is present with a `None` value is a null; a field that is
    absent is a malformed record.

    Raises:
        InvalidInputError: on a record of the wrong type or with a missing field.
    """
    rows: list[dict[str, Any]] = []
    mapping_fields: list[tuple[int, set[str]]] = []
    for i, item in enumerate(records):
        row = _row_from(item, i)
        if isinstance(item, Mapping):
            mapping_fields.append((i, set(row)))
        rows.append(row)

    fields: set[str] = set().union(*(names for _, names in mapping_fields))
    for i, names in mapping_fields:
        missing = sorted(fields - names, key=str)
        if missing:
            raise InvalidInputError(
                f"Record #{i} has no {', '.join(map(str, missing))} field(s).",
                position=i,
                missing=missing,
            )
    return pd.DataFrame(rows)


def to_ddf(records: Any, rows_per_partition: int = ROWS_PER_PARTITION) -> Any:
    """Return `records` as a Dask DataFrame.

    Args:
        records: pandas DataFrame, Dask DataFrame or iterable of records.
        rows_per_partition: Partition sizing for in-memory inputs.

    Returns:
        Dask DataFrame (possibly with zero rows and no columns).
    """
    dd_mod = cast(Any, dd)
    if isinstance(records, dd.DataFrame):
        return records
    if isinstance(records, pd.DataFrame):
        pdf = records
    elif isinstance(records, (str, bytes)) or not isinstance(records, Iterable):
        raise InvalidInputError(
            f"records must be a DataFrame or an iterable of records, got {type(records).__name__}"
        )
    else:
        pdf = records_to_pandas(records)

    nparts = max(1, len(pdf) // rows_per_partition)
    log.debug("Wrapping %d in-memory rows into %d Dask partitions", len(pdf), nparts)
    return dd_mod.from_pandas(pdf, npartitions=nparts)
