"""Consistent top-N ranking.

Aggregate → Rank → Intersect → Report. Aggregation runs partition-parallel on
Dask; the aggregated totals are small enough to materialize to pandas before
the cross-period steps.
"""
