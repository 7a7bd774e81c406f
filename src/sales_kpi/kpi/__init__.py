"""Sales KPI reports built on the same clean/aggregate/rank building blocks.

- ``top_customers_by_channel``: top customers per channel with their sales share
- ``channel_share_trend``: channel share of regional sales vs. the previous period
- ``monthly_pivot``: month-by-month sales per label with a yearly total
"""

from sales_kpi.kpi.channel_share import format_percent, top_customers_by_channel
from sales_kpi.kpi.channel_trend import channel_share_trend
from sales_kpi.kpi.monthly_pivot import monthly_pivot

__all__ = [
    "channel_share_trend",
    "format_percent",
    "monthly_pivot",
    "top_customers_by_channel",
]
