"""Utilities for persisting report DataFrames.

Reports are small pandas frames. They are written either as CSV files or
upserted into dedicated MongoDB collections keyed on their natural key.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any

import pandas as pd
from pymongo import UpdateOne

log = logging.getLogger(__name__)

BATCH_SIZE = 1000


def _bson_safe(value: Any) -> Any:
    """Convert numpy scalars and NaN into BSON-friendly Python values."""
    if hasattr(value, "item") and not isinstance(value, (str, bytes)):
        value = value.item()
    if isinstance(value, float) and math.isnan(value):
        return None
    if value is pd.NA:
        return None
    return value


def write_report_csv(pdf: pd.DataFrame, out_path: Path) -> Path:
    """Write a report to CSV, creating parent directories as needed."""
    out_path.parent.mkdir(parents=True, exist_ok=True)
    pdf.to_csv(out_path, index=False)
    log.info("Wrote %d rows to %s", len(pdf), out_path)
    return out_path


def load_report(
    pdf: pd.DataFrame,
    collection: Any,
    key_fields: list[str],
    replace: bool = True,
) -> int:
    """Upsert a report into a MongoDB collection.

    Strategy:
    - With `replace`, delete every existing document first
    - One `UpdateOne(upsert=True)` per row, selected on `key_fields`
    - Unordered bulk writes in batches of `BATCH_SIZE`

    Write errors propagate to the caller.

    Args:
        pdf: Report DataFrame.
        collection: Target PyMongo collection.
        key_fields: Columns identifying one report row.
        replace: Delete existing documents before writing.

    Returns:
        Number of rows sent to MongoDB.
    """
    name = getattr(collection, "name", "?")
    if not pdf.empty:
        missing = [k for k in key_fields if k not in pdf.columns]
        if missing:
            raise KeyError(f"Report for {name} lacks key fields {missing}")

    if replace:
        deleted = collection.delete_many({}).deleted_count
        log.info("Cleared %d previous documents from %s", deleted, name)

    if pdf.empty:
        log.warning("No rows to load for %s", name)
        return 0

    ops: list[UpdateOne] = []
    sent = 0
    for row in pdf.to_dict("records"):
        doc = {k: _bson_safe(v) for k, v in row.items()}
        ops.append(UpdateOne({k: doc[k] for k in key_fields}, {"$set": doc}, upsert=True))
        if len(ops) >= BATCH_SIZE:
            collection.bulk_write(ops, ordered=False)
            sent += len(ops)
            ops.clear()

    if ops:
        collection.bulk_write(ops, ordered=False)
        sent += len(ops)

    log.info("Report load complete for %s: %d rows", name, sent)
    return sent
