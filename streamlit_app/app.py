from __future__ import annotations

import pandas as pd
import streamlit as st
import altair as alt
from dotenv import dotenv_values

from sales_kpi.db import get_client
from sales_kpi.kpi import format_percent

# =====================================================
# Page config
# =====================================================
st.set_page_config(page_title="Sales KPI Reports", layout="wide")
st.title("📊 Sales KPI Dashboard")

# =====================================================
# MongoDB connection (strict: read from .env only)
# =====================================================
_env = dotenv_values(".env")
MONGO_URI = _env.get("MONGO_URI")
MONGO_DB = _env.get("MONGO_DB") or "sales_kpi"

if not MONGO_URI:
    st.error(
        "Missing `MONGO_URI` in `.env`. Run `sales-kpi <report> --to-mongo` against the same database first."
    )
    st.stop()

try:
    client = get_client(MONGO_URI)
    # fail fast: ensure the client can reach the server
    client.admin.command("ping")
    db = client[MONGO_DB]
except Exception as exc:  # pragma: no cover - runtime failure handling
    st.error(f"Unable to connect to MongoDB: {exc}")
    st.stop()


# =====================================================
# Helpers
# =====================================================
def load_collection(name: str) -> pd.DataFrame:
    """Load an entire report collection into a pandas DataFrame for display."""
    docs = list(db[name].find({}, {"_id": 0}))
    return pd.DataFrame(docs) if docs else pd.DataFrame()


# =====================================================
# SECTION 1 — CONSISTENT TOP-N CUSTOMERS
# =====================================================
st.header("🏆 Customers Consistently in the Top N")

df_top = load_collection("report_consistent_top_n")

if df_top.empty:
    st.info("Run `sales-kpi top-n --to-mongo` to populate this report.")
else:
    df_top = df_top.sort_values(
        ["period", "group_key", "total_amount"], ascending=[True, True, False]
    )
    groups = sorted(df_top["group_key"].astype(str).unique())
    selected = st.multiselect("Channels", groups, default=groups)
    df_view = df_top[df_top["group_key"].astype(str).isin(selected)]

    c1, c2 = st.columns(2)
    c1.metric("Qualifying customers", df_view["entity_id"].nunique())
    c2.metric("Periods", df_view["period"].nunique())

    chart = (
        alt.Chart(df_view)
        .mark_bar()
        .encode(
            x=alt.X("entity_id:N", title="Customer", sort="-y"),
            y=alt.Y("sum(total_amount):Q", title="Sales over required periods"),
            color=alt.Color("period:N", title="Period"),
            tooltip=["entity_id:N", "period:N", "group_key:N", "total_amount:Q", "rank:Q"],
        )
        .properties(height=320)
    )
    st.altair_chart(chart, width="stretch")
    st.dataframe(df_view, width="stretch")

st.divider()

# =====================================================
# SECTION 2 — CHANNEL SHARE
# =====================================================
st.header("🛒 Top Customers by Channel")

df_share = load_collection("report_channel_share")

if df_share.empty:
    st.info("Run `sales-kpi channel-share --to-mongo` to populate this report.")
else:
    df_share = df_share.sort_values(["group_key", "total_amount"], ascending=[True, False])
    df_share["sales_percentage"] = df_share["sales_percentage"].map(format_percent)
    st.dataframe(df_share, width="stretch")

st.divider()

# =====================================================
# SECTION 3 — CHANNEL TREND
# =====================================================
st.header("📈 Channel Share by Region")

df_trend = load_collection("report_channel_trend")

if df_trend.empty:
    st.info("Run `sales-kpi channel-trend --to-mongo` to populate this report.")
else:
    regions = sorted(df_trend["region"].astype(str).unique())
    region = st.selectbox("Region", regions)
    df_r = df_trend[df_trend["region"].astype(str) == region]

    chart_trend = (
        alt.Chart(df_r)
        .mark_line(point=True)
        .encode(
            x=alt.X("period:O", title="Period"),
            y=alt.Y("share_pct:Q", title="% of regional sales"),
            color=alt.Color("channel:N", title="Channel"),
            tooltip=["period:O", "channel:N", "share_pct:Q", "share_diff:Q"],
        )
        .properties(height=320)
    )
    st.altair_chart(chart_trend, width="stretch")

    display = df_r.copy()
    for col in ["share_pct", "previous_share_pct", "share_diff"]:
        display[col] = display[col].map(format_percent)
    st.dataframe(display, width="stretch")

st.caption("Sales KPI reports • MongoDB • Dask • Streamlit")
