"""Consistent top-N pipeline.

`compute_consistent_top_n` answers "which entities ranked in the top N of
their group in *every* one of these periods?", e.g. customers in the top 300
of their sales channel in each of 1998, 1999 and 2001.

The run is a single linear pass (aggregate → rank → intersect → report).
Arguments are checked before any data is touched, and any failure raises
without returning a partial result.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from numbers import Integral
from typing import Any

import pandas as pd

from sales_kpi.clean.transform import KeyExtractor, select_transaction_columns
from sales_kpi.clean.validate import validate_transactions
from sales_kpi.exceptions import InvalidInputError
from sales_kpi.ingest.records import to_ddf
from sales_kpi.models import ConsistentTopNRow
from sales_kpi.rank.aggregate import aggregate_period_totals
from sales_kpi.rank.intersect import qualifying_entities
from sales_kpi.rank.ranker import check_method, rank_period_totals
from sales_kpi.rank.report import REPORT_COLUMNS, build_report, check_rounding, empty_report

log = logging.getLogger(__name__)


def _check_periods(required_periods: Any) -> frozenset[Any]:
    if isinstance(required_periods, (str, bytes)) or not isinstance(required_periods, Iterable):
        raise InvalidInputError(
            f"required_periods must be a collection of periods, got {type(required_periods).__name__}"
        )
    try:
        periods = frozenset(required_periods)
    except TypeError as exc:
        raise InvalidInputError(f"required_periods must be hashable values: {exc}") from exc
    if not periods:
        raise InvalidInputError("required_periods must not be empty")
    if any(p is None for p in periods):
        raise InvalidInputError("required_periods must not contain None")
    return periods


def _check_threshold(threshold: Any) -> int:
    if isinstance(threshold, bool) or not isinstance(threshold, Integral):
        raise InvalidInputError(f"threshold must be an integer, got {threshold!r}")
    if threshold <= 0:
        raise InvalidInputError(f"threshold must be positive, got {threshold}")
    return int(threshold)


def compute_consistent_top_n(
    records: Any,
    required_periods: Iterable[Any],
    threshold: int,
    group_by: KeyExtractor = "group_key",
    entity_by: KeyExtractor = "entity_id",
    *,
    period_by: KeyExtractor = "period",
    amount_by: KeyExtractor = "amount",
    attributes: Iterable[str] = (),
    method: str = "dense",
    rounding: str = "half_up",
) -> pd.DataFrame:
    """Return entities ranked <= `threshold` within their group in every required period.

    Args:
        records: pandas DataFrame, Dask DataFrame, or iterable of mappings /
            `TransactionRecord` models.
        required_periods: Periods an entity must qualify in (strict AND).
        threshold: Positive rank cutoff N.
        group_by: Column name or callable giving the ranking partition
            (e.g. sales channel).
        entity_by: Column name or callable giving the ranked entity id.
        period_by: Column name or callable giving the period.
        amount_by: Column name or callable giving the amount.
        attributes: Display columns (e.g. customer names) carried to the output.
        method: Tie policy: ``dense`` (default), ``min`` or ``first``.
        rounding: ``half_up`` (default) or ``half_even`` for the 2-decimal totals.

    Returns:
        pandas DataFrame with columns `period`, `group_key`, `entity_id`,
        the attributes, `total_amount`, `rank`; one row per qualifying
        (entity, group) and required period, ordered by period, group key,
        total desc. Empty when `records` is empty or nobody qualifies.

    Raises:
        InvalidInputError: on bad arguments or malformed records.
        AmbiguousAggregationKeyError: if an entity's display attributes
            disagree within one (period, group) partition.
    """
    periods = _check_periods(required_periods)
    n = _check_threshold(threshold)
    check_method(method)
    check_rounding(rounding)
    attrs = tuple(attributes)

    ddf = to_ddf(records)
    if len(ddf.columns) == 0 or int(ddf.shape[0].compute()) == 0:
        log.info("No transactions supplied; returning an empty report")
        return empty_report(attrs)

    canonical = select_transaction_columns(
        ddf,
        period_by=period_by,
        group_by=group_by,
        entity_by=entity_by,
        amount_by=amount_by,
        attributes=attrs,
    )
    canonical = validate_transactions(canonical)

    log.info(
        "Consistent top-%d: periods=%s method=%s",
        n,
        sorted(periods, key=repr),
        method,
    )
    totals = aggregate_period_totals(canonical, periods, attrs)
    ranked = rank_period_totals(totals, method=method)
    qualifying = qualifying_entities(ranked, n, periods)
    report = build_report(ranked, qualifying, n, periods, attrs, rounding=rounding)

    log.info("Consistent top-%d report: %d rows", n, len(report))
    return report


def report_rows(frame: pd.DataFrame) -> list[ConsistentTopNRow]:
    """Convert a `compute_consistent_top_n` result into validated row models.

    Columns other than the core report columns are collected into
    `attributes`.
    """
    extra = [c for c in frame.columns if c not in REPORT_COLUMNS]
    rows: list[ConsistentTopNRow] = []
    for rec in frame.to_dict(orient="records"):
        attrs = {k: rec.pop(k) for k in extra}
        rows.append(ConsistentTopNRow.model_validate({**rec, "attributes": attrs}))
    return rows
