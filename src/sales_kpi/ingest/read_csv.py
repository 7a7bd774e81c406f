"""Read transaction exports (CSV) into Dask DataFrames.

Exports are expected to be flat, one transaction per line, e.g. the result of
joining `sales`, `times`, `customers` and `channels` in the source database.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, cast

import dask.dataframe as dd

log = logging.getLogger(__name__)

DEFAULT_BLOCKSIZE = "64MB"


def read_transactions_csv(
    path: Path | str,
    dtype: dict[str, Any] | None = None,
    blocksize: str | int = DEFAULT_BLOCKSIZE,
) -> Any:
    """Read one CSV file (or a glob of files) as a Dask DataFrame.

    Args:
        path: CSV path or glob pattern (e.g. `exports/sales_*.csv`).
        dtype: Optional column dtypes; key columns are usually safest as `str`
            or `int` so partitions agree on their type.
        blocksize: Target size of each Dask partition.

    Returns:
        Dask DataFrame with the CSV columns as-is.

    Raises:
        FileNotFoundError: if no file matches `path`.
    """
    p = Path(path)
    if not any(ch in str(path) for ch in "*?[") and not p.exists():
        raise FileNotFoundError(f"Transaction export not found: {p}")

    log.info("Reading transactions from %s", path)
    dd_mod = cast(Any, dd)
    return dd_mod.read_csv(str(path), dtype=dtype, blocksize=blocksize)
