"""sales_kpi package.

Contains modules for reading sales transactions from CSV exports or MongoDB,
validating them, computing the "consistently top-N customers" ranking and the
related channel/period KPI reports, and persisting results for a Streamlit
dashboard.

Architecture:
- Ingest → Clean → Rank → Report, recomputed from scratch on every run
- Dask is used for partitioned aggregation over the transaction snapshot
- Pydantic models validate input records and report rows
"""

from sales_kpi.rank.pipeline import compute_consistent_top_n, report_rows

__all__ = ["__version__", "compute_consistent_top_n", "report_rows"]
__version__ = "0.1.0"
