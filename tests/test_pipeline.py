from __future__ import annotations

import random

import pandas as pd
import dask.dataframe as dd
import pytest

from sales_kpi import compute_consistent_top_n, report_rows
from sales_kpi.exceptions import AmbiguousAggregationKeyError, InvalidInputError
from sales_kpi.models import TransactionRecord
from sales_kpi.rank.report import REPORT_COLUMNS

PERIODS = {1998, 1999, 2001}


def test_only_entity_present_in_every_period_qualifies(three_year_sales: pd.DataFrame) -> None:
    out = compute_consistent_top_n(three_year_sales, PERIODS, 2)
    assert out.to_dict(orient="records") == [
        {"period": 1998, "group_key": "A", "entity_id": "X", "total_amount": 100.0, "rank": 1},
        {"period": 1999, "group_key": "A", "entity_id": "X", "total_amount": 90.0, "rank": 1},
        {"period": 2001, "group_key": "A", "entity_id": "X", "total_amount": 80.0, "rank": 1},
    ]


def test_tie_at_threshold_boundary_keeps_both() -> None:
    pdf = pd.DataFrame([
        {"period": 2000, "group_key": "A", "entity_id": "e1", "amount": 100.0},
        {"period": 2000, "group_key": "A", "entity_id": "e2", "amount": 50.0},
        {"period": 2000, "group_key": "A", "entity_id": "e3", "amount": 50.0},
        {"period": 2000, "group_key": "A", "entity_id": "e4", "amount": 40.0},
    ])
    out = compute_consistent_top_n(pdf, {2000}, 2)
    assert list(out["entity_id"]) == ["e1", "e2", "e3"]
    assert list(out["rank"]) == [1, 2, 2]

    row_number = compute_consistent_top_n(pdf, {2000}, 2, method="first")
    assert list(row_number["entity_id"]) == ["e1", "e2"]


def test_float_sums_equal_as_money_tie_at_the_threshold() -> None:
    pdf = pd.DataFrame([
        {"period": 2000, "group_key": "A", "entity_id": "a", "amount": 0.1},
        {"period": 2000, "group_key": "A", "entity_id": "a", "amount": 0.2},
        {"period": 2000, "group_key": "A", "entity_id": "b", "amount": 0.3},
    ])
    out = compute_consistent_top_n(pdf, {2000}, 1)
    assert list(out["entity_id"]) == ["a", "b"]
    assert list(out["rank"]) == [1, 1]
    assert list(out["total_amount"]) == [0.3, 0.3]


@pytest.mark.parametrize("records", [[], pd.DataFrame(), pd.DataFrame(columns=["period", "group_key", "entity_id", "amount"])])
def test_empty_input_gives_empty_output(records: object) -> None:
    out = compute_consistent_top_n(records, PERIODS, 3)
    assert out.empty
    assert list(out.columns) == REPORT_COLUMNS


def test_nobody_qualifying_gives_empty_output(three_year_sales: pd.DataFrame) -> None:
    out = compute_consistent_top_n(three_year_sales, {1998, 2000}, 1)
    assert out.empty


def test_run_is_deterministic(three_year_sales: pd.DataFrame) -> None:
    first = compute_consistent_top_n(three_year_sales, PERIODS, 3)
    second = compute_consistent_top_n(three_year_sales.sample(frac=1, random_state=3), PERIODS, 3)
    pd.testing.assert_frame_equal(first, second)


def test_dask_input_matches_pandas_input(three_year_sales: pd.DataFrame) -> None:
    expected = compute_consistent_top_n(three_year_sales, PERIODS, 2)
    got = compute_consistent_top_n(dd.from_pandas(three_year_sales, npartitions=3), PERIODS, 2)
    pd.testing.assert_frame_equal(expected, got)


def test_transaction_records_and_mappings_are_accepted() -> None:
    records = [
        TransactionRecord(period=1998, group_key="Direct", entity_id=1, amount=10.0, attributes={"last_name": "Ng"}),
        {"period": 1999, "group_key": "Direct", "entity_id": 1, "amount": 12.5, "last_name": "Ng"},
    ]
    out = compute_consistent_top_n(records, [1998, 1999], 1, attributes=["last_name"])
    assert list(out.columns) == ["period", "group_key", "entity_id", "last_name", "total_amount", "rank"]
    assert list(out["total_amount"]) == [10.0, 12.5]


def test_custom_column_names_and_extractors() -> None:
    pdf = pd.DataFrame([
        {"calendar_year": 1998, "channel_desc": " direct ", "cust_id": 1, "amount_sold": 5.0},
        {"calendar_year": 1998, "channel_desc": "DIRECT", "cust_id": 2, "amount_sold": 3.0},
        {"calendar_year": 1999, "channel_desc": "Direct", "cust_id": 1, "amount_sold": 4.0},
        {"calendar_year": 1999, "channel_desc": "Direct", "cust_id": 2, "amount_sold": 9.0},
    ])
    out = compute_consistent_top_n(
        pdf,
        [1998, 1999],
        1,
        group_by=lambda df: df["channel_desc"].str.strip().str.upper(),
        entity_by="cust_id",
        period_by="calendar_year",
        amount_by="amount_sold",
    )
    assert out.empty

    out = compute_consistent_top_n(
        pdf,
        [1998, 1999],
        2,
        group_by=lambda df: df["channel_desc"].str.strip().str.upper(),
        entity_by="cust_id",
        period_by="calendar_year",
        amount_by="amount_sold",
    )
    assert set(out["group_key"]) == {"DIRECT"}
    assert sorted(set(out["entity_id"])) == [1, 2]


def test_rounding_is_half_up_by_default() -> None:
    pdf = pd.DataFrame([{"period": 1, "group_key": "A", "entity_id": "e", "amount": 2.675}])
    assert compute_consistent_top_n(pdf, {1}, 1)["total_amount"].iloc[0] == 2.68
    assert compute_consistent_top_n(pdf, {1}, 1, rounding="half_even")["total_amount"].iloc[0] == 2.68
    pdf["amount"] = 0.125
    assert compute_consistent_top_n(pdf, {1}, 1)["total_amount"].iloc[0] == 0.13
    assert compute_consistent_top_n(pdf, {1}, 1, rounding="half_even")["total_amount"].iloc[0] == 0.12


def test_report_rows_validate_into_models() -> None:
    records = [
        {"period": 2001, "group_key": "Tele", "entity_id": 9, "amount": 1.0, "first_name": "Ada"},
    ]
    rows = report_rows(compute_consistent_top_n(records, {2001}, 1, attributes=("first_name",)))
    assert len(rows) == 1
    assert rows[0].entity_id == 9
    assert rows[0].rank == 1
    assert rows[0].attributes == {"first_name": "Ada"}


@pytest.mark.parametrize(
    "periods, threshold",
    [(set(), 3), ([], 3), ("1998", 3), (PERIODS, 0), (PERIODS, -1), (PERIODS, 2.5), (PERIODS, True), ({None}, 1)],
)
def test_invalid_arguments_fail_fast(periods: object, threshold: object, three_year_sales: pd.DataFrame) -> None:
    with pytest.raises(InvalidInputError):
        compute_consistent_top_n(three_year_sales, periods, threshold)


def test_invalid_method_and_rounding(three_year_sales: pd.DataFrame) -> None:
    with pytest.raises(InvalidInputError):
        compute_consistent_top_n(three_year_sales, PERIODS, 1, method="ntile")
    with pytest.raises(InvalidInputError):
        compute_consistent_top_n(three_year_sales, PERIODS, 1, rounding="ceiling")


def test_missing_column_is_invalid_input(three_year_sales: pd.DataFrame) -> None:
    with pytest.raises(InvalidInputError, match="amount"):
        compute_consistent_top_n(three_year_sales.drop(columns=["amount"]), PERIODS, 1)


def test_null_entity_is_invalid_input(three_year_sales: pd.DataFrame) -> None:
    bad = three_year_sales.copy()
    bad.loc[2, "entity_id"] = None
    with pytest.raises(InvalidInputError, match="entity_id"):
        compute_consistent_top_n(bad, PERIODS, 1)


def test_non_numeric_amount_is_invalid_input(three_year_sales: pd.DataFrame) -> None:
    bad = three_year_sales.astype({"amount": object})
    bad.loc[0, "amount"] = "lots"
    with pytest.raises(InvalidInputError, match="lots"):
        compute_consistent_top_n(bad, PERIODS, 1)


def test_non_record_items_are_invalid_input() -> None:
    with pytest.raises(InvalidInputError):
        compute_consistent_top_n([("1998", "A", "X", 1.0)], PERIODS, 1)


@pytest.mark.parametrize("incomplete_first", [False, True])
def test_record_without_amount_field_is_invalid_input(incomplete_first: bool) -> None:
    complete = {"period": 2000, "group_key": "A", "entity_id": "x", "amount": 5.0}
    incomplete = {"period": 2000, "group_key": "A", "entity_id": "y"}
    records = [incomplete, complete] if incomplete_first else [complete, incomplete]
    with pytest.raises(InvalidInputError) as exc:
        compute_consistent_top_n(records, {2000}, 1)
    assert exc.value.details["missing"] == ["amount"]
    assert exc.value.details["position"] == (0 if incomplete_first else 1)


def test_record_with_null_amount_is_accepted() -> None:
    records = [
        {"period": 2000, "group_key": "A", "entity_id": "x", "amount": 5.0},
        {"period": 2000, "group_key": "A", "entity_id": "y", "amount": None},
    ]
    out = compute_consistent_top_n(records, {2000}, 2)
    assert list(out["entity_id"]) == ["x"]


def test_conflicting_display_attributes_raise() -> None:
    records = [
        {"period": 1998, "group_key": "A", "entity_id": 1, "amount": 1.0, "last_name": "Smith"},
        {"period": 1998, "group_key": "A", "entity_id": 1, "amount": 1.0, "last_name": "Smyth"},
    ]
    with pytest.raises(AmbiguousAggregationKeyError):
        compute_consistent_top_n(records, {1998}, 1, attributes=["last_name"])


def _random_sales(seed: int) -> pd.DataFrame:
    rng = random.Random(seed)
    rows = []
    for period in (1998, 1999, 2000, 2001):
        for group in ("Direct", "Internet"):
            for entity in range(12):
                if rng.random() < 0.2:
                    continue
                for _ in range(rng.randint(1, 3)):
                    rows.append({
                        "period": period,
                        "group_key": group,
                        "entity_id": entity,
                        "amount": float(rng.choice([5, 10, 10, 20, 35, 50])),
                    })
    return pd.DataFrame(rows)


@pytest.mark.parametrize("seed", [1, 2, 3])
def test_output_is_bounded_by_entities_present_in_all_periods(seed: int) -> None:
    sales = _random_sales(seed)
    periods = {1998, 1999, 2001}
    out = compute_consistent_top_n(sales, periods, 4)

    present = sales[sales["period"].isin(periods)].groupby(["entity_id", "group_key"])["period"].nunique()
    in_all = set(present[present == len(periods)].index)
    got = set(zip(out["entity_id"], out["group_key"]))
    assert got <= in_all
    assert (out["rank"] <= 4).all()
    assert out.groupby(["entity_id", "group_key"])["period"].nunique().eq(len(periods)).all()


@pytest.mark.parametrize("dropped", [1998, 1999, 2001])
def test_dropping_a_qualifying_period_excludes_the_entity(dropped: int) -> None:
    sales = pd.DataFrame([
        {"period": p, "group_key": g, "entity_id": e, "amount": amt}
        for p in (1998, 1999, 2001)
        for g, e, amt in [("A", "X", 30.0), ("A", "Y", 20.0), ("A", "Z", 10.0), ("B", "X", 5.0)]
    ])
    periods = {1998, 1999, 2001}
    out = compute_consistent_top_n(sales, periods, 2)
    assert set(zip(out["entity_id"], out["group_key"])) == {("X", "A"), ("Y", "A"), ("X", "B")}

    without = sales[~((sales["entity_id"] == "X") & (sales["group_key"] == "A") & (sales["period"] == dropped))]
    out2 = compute_consistent_top_n(without, periods, 2)
    assert set(zip(out2["entity_id"], out2["group_key"])) == {("Y", "A"), ("X", "B")}
