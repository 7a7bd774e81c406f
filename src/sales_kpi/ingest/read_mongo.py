"""Read a MongoDB collection into a Dask DataFrame using batched cursor reads."""

from __future__ import annotations

import logging
from typing import Any, List, cast

import pandas as pd
import dask.dataframe as dd

log = logging.getLogger(__name__)

ROWS_PER_PARTITION = 200_000


def load_collection_to_ddf(
    collection: Any,
    projection: dict[str, Any] | None = None,
    query: dict[str, Any] | None = None,
    batch_size: int = 50_000,
) -> Any:
    """Load a Mongo collection into a Dask DataFrame using batched reads.

    Args:
        collection: PyMongo collection (or any object with a compatible `find`).
        projection: Mongo projection; `_id` is always excluded.
        query: Optional filter, e.g. `{"calendar_year": {"$in": [1998, 1999]}}`.
        batch_size: Cursor batch size and pandas chunk size.

    Returns:
        Dask DataFrame; empty (no columns) when the collection has no match.
    """
    proj = {"_id": False}
    if projection:
        proj.update(projection)
    cursor = collection.find(query or {}, proj).batch_size(batch_size)

    pdf_batches: List[pd.DataFrame] = []
    buffer: List[dict[str, Any]] = []

    for doc in cursor:
        buffer.append(doc)
        if len(buffer) >= batch_size:
            pdf_batches.append(pd.DataFrame(buffer))
            buffer.clear()

    if buffer:
        pdf_batches.append(pd.DataFrame(buffer))

    dd_mod = cast(Any, dd)
    if not pdf_batches:
        log.warning("Collection %s returned no documents", getattr(collection, "name", "?"))
        return dd_mod.from_pandas(pd.DataFrame(), npartitions=1)

    pdf = pd.concat(pdf_batches, ignore_index=True)
    nparts = max(1, len(pdf) // ROWS_PER_PARTITION)

    log.info("Loaded %d documents into %d Dask partitions", len(pdf), nparts)
    return dd_mod.from_pandas(pdf, npartitions=nparts)
