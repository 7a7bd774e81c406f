"""Command-line interface for the KPI reports.

Provides subcommands: `top-n`, `channel-share`, `channel-trend` and
`monthly-pivot`. Each command is implemented as a `cmd_*` function that
accepts an argparse namespace. Transactions come from `--csv` or, when it is
omitted, from the configured MongoDB collection.
"""
from __future__ import annotations

import argparse
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from dotenv import load_dotenv
import pandas as pd

from sales_kpi.config import Settings, get_settings
from sales_kpi.logging_config import configure_logging
from sales_kpi.db import get_client, get_db

# INGEST
from sales_kpi.ingest.read_csv import read_transactions_csv
from sales_kpi.ingest.read_mongo import load_collection_to_ddf

# REPORTS
from sales_kpi.rank.pipeline import compute_consistent_top_n
from sales_kpi.rank.ranker import RANK_METHODS
from sales_kpi.rank.report import ROUNDING_MODES
from sales_kpi.kpi import channel_share_trend, monthly_pivot, top_customers_by_channel
from sales_kpi.report.load_report import load_report, write_report_csv

log = logging.getLogger(__name__)


# --------------------------------------------------
# Helpers
# --------------------------------------------------
def _period(value: str) -> int | str:
    """Parse a period argument: integers stay integers (`1998`), anything else is kept as text."""
    text = value.strip()
    if text.lstrip("-").isdigit():
        return int(text)
    return text


@contextmanager
def _database(args: argparse.Namespace, s: Settings) -> Iterator[Any]:
    """Yield the configured Mongo database, or None when the command reads CSV and prints."""
    if args.csv is not None and not args.to_mongo:
        yield None
        return
    with get_client(s.mongo_uri) as client:
        yield get_db(client, s.mongo_db)


def _load_source(args: argparse.Namespace, s: Settings, db: Any) -> Any:
    """Return the transactions for a command as a Dask DataFrame."""
    if args.csv is not None:
        ddf = read_transactions_csv(args.csv)
    else:
        ddf = load_collection_to_ddf(db[s.sales_collection])

    for clause in args.where or []:
        col, sep, value = clause.partition("=")
        if not col or not sep:
            raise SystemExit(f"--where expects COLUMN=VALUE, got {clause!r}")
        ddf = ddf[ddf[col].astype(str) == value]
    return ddf


def _emit(
    pdf: pd.DataFrame,
    args: argparse.Namespace,
    db: Any,
    collection_name: str,
    key_fields: list[str],
) -> None:
    """Write a report to CSV and/or MongoDB, or print it when neither is asked for."""
    if args.out is not None:
        write_report_csv(pdf, Path(args.out))
    if args.to_mongo:
        load_report(pdf, db[collection_name], key_fields)
    if args.out is None and not args.to_mongo:
        print(pdf.to_string(index=False))


# --------------------------------------------------
# REPORTS
# --------------------------------------------------
def cmd_top_n(args: argparse.Namespace) -> None:
    """Customers ranked in the top N of their group in every required period."""
    s = get_settings()
    periods = args.periods or list(s.required_periods)
    with _database(args, s) as db:
        ddf = _load_source(args, s, db)
        report = compute_consistent_top_n(
            ddf,
            periods,
            s.top_n if args.threshold is None else args.threshold,
            group_by=args.group_col,
            entity_by=args.entity_col,
            period_by=args.period_col,
            amount_by=args.amount_col,
            attributes=args.attr or (),
            method=args.method or s.rank_method,
            rounding=args.rounding,
        )
        _emit(report, args, db, "report_consistent_top_n", ["period", "group_key", "entity_id"])


def cmd_channel_share(args: argparse.Namespace) -> None:
    """Top customers per channel with their share of the channel total."""
    s = get_settings()
    with _database(args, s) as db:
        ddf = _load_source(args, s, db)
        report = top_customers_by_channel(
            ddf,
            args.top_n,
            group_by=args.group_col,
            entity_by=args.entity_col,
            amount_by=args.amount_col,
            attributes=args.attr or (),
            method=args.method,
        )
        _emit(report, args, db, "report_channel_share", ["group_key", "entity_id"])


def cmd_channel_trend(args: argparse.Namespace) -> None:
    """Channel share of regional sales vs. the previous period."""
    s = get_settings()
    with _database(args, s) as db:
        ddf = _load_source(args, s, db)
        report = channel_share_trend(
            ddf,
            region_by=args.region_col,
            period_by=args.period_col,
            channel_by=args.channel_col,
            amount_by=args.amount_col,
            from_period=args.from_period,
            to_period=args.to_period,
        )
        _emit(report, args, db, "report_channel_trend", ["region", "period", "channel"])


def cmd_monthly_pivot(args: argparse.Namespace) -> None:
    """Monthly sales pivot per label with a yearly total."""
    s = get_settings()
    with _database(args, s) as db:
        ddf = _load_source(args, s, db)
        report = monthly_pivot(
            ddf,
            label_col=args.label_col,
            month_col=args.month_col,
            amount_col=args.amount_col,
        )
        _emit(report, args, db, "report_monthly_pivot", [args.label_col])


# --------------------------------------------------
# CLI
# --------------------------------------------------
def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--csv", type=Path, default=None, help="transaction export; Mongo when omitted")
    p.add_argument("--where", action="append", metavar="COL=VALUE", help="filter rows before reporting")
    p.add_argument("--out", type=Path, default=None, help="write the report as CSV")
    p.add_argument("--to-mongo", action="store_true", help="upsert the report into MongoDB")
    p.add_argument("--amount-col", default="amount_sold")


def build_parser() -> argparse.ArgumentParser:
    """Build and return the top-level argument parser for the CLI.

    Returns:
        Configured argparse.ArgumentParser instance.
    """
    p = argparse.ArgumentParser(prog="sales-kpi")
    p.add_argument("--log-file", type=Path, default=Path("logs/sales_kpi.log"))
    sub = p.add_subparsers(dest="cmd", required=True)

    p_top = sub.add_parser("top-n", help="customers in the top N in every period")
    _add_common(p_top)
    p_top.add_argument("--periods", type=_period, nargs="+", default=None)
    p_top.add_argument("--threshold", type=int, default=None)
    p_top.add_argument("--method", choices=RANK_METHODS, default=None)
    p_top.add_argument("--rounding", choices=sorted(ROUNDING_MODES), default="half_up")
    p_top.add_argument("--period-col", default="calendar_year")
    p_top.add_argument("--group-col", default="channel_desc")
    p_top.add_argument("--entity-col", default="cust_id")
    p_top.add_argument("--attr", action="append", help="display column carried to the report")

    p_share = sub.add_parser("channel-share", help="top customers per channel with sales share")
    _add_common(p_share)
    p_share.add_argument("--top-n", type=int, default=5)
    p_share.add_argument("--method", choices=RANK_METHODS, default="first")
    p_share.add_argument("--group-col", default="channel_desc")
    p_share.add_argument("--entity-col", default="cust_id")
    p_share.add_argument("--attr", action="append")

    p_trend = sub.add_parser("channel-trend", help="channel share vs. previous period")
    _add_common(p_trend)
    p_trend.add_argument("--region-col", default="country_region")
    p_trend.add_argument("--period-col", default="calendar_year")
    p_trend.add_argument("--channel-col", default="channel_desc")
    p_trend.add_argument("--from-period", type=_period, default=None)
    p_trend.add_argument("--to-period", type=_period, default=None)

    p_pivot = sub.add_parser("monthly-pivot", help="monthly sales per label with year total")
    _add_common(p_pivot)
    p_pivot.add_argument("--label-col", default="prod_name")
    p_pivot.add_argument("--month-col", default="calendar_month_number")

    return p


COMMANDS = {
    "top-n": cmd_top_n,
    "channel-share": cmd_channel_share,
    "channel-trend": cmd_channel_trend,
    "monthly-pivot": cmd_monthly_pivot,
}


def main(argv: list[str] | None = None) -> None:
    """CLI entry point: parse args, configure logging and dispatch commands."""
    load_dotenv()
    args = build_parser().parse_args(argv)
    configure_logging(args.log_file, get_settings().log_level)

    handler = COMMANDS.get(args.cmd)
    if handler is None:
        raise SystemExit(2)
    handler(args)


if __name__ == "__main__":
    main()
