from __future__ import annotations

import pandas as pd
import pytest

from sales_kpi.exceptions import InvalidInputError
from sales_kpi.rank.ranker import rank_period_totals, rank_within


def _totals(values: dict[str, float | None], period: int = 2000, group: str = "A") -> pd.DataFrame:
    return pd.DataFrame(
        [{"period": period, "group_key": group, "entity_id": e, "total_amount": v} for e, v in values.items()]
    ).astype({"total_amount": "float64"})


def _ranks(ranked: pd.DataFrame) -> dict[str, object]:
    return {r["entity_id"]: (None if pd.isna(r["rank"]) else int(r["rank"])) for _, r in ranked.iterrows()}


def test_dense_rank_ties_share_rank_without_gaps() -> None:
    ranked = rank_period_totals(_totals({"e1": 100.0, "e2": 50.0, "e3": 50.0, "e4": 40.0}))
    assert _ranks(ranked) == {"e1": 1, "e2": 2, "e3": 2, "e4": 3}


def test_min_rank_skips_after_ties() -> None:
    ranked = rank_period_totals(_totals({"e1": 100.0, "e2": 50.0, "e3": 50.0, "e4": 40.0}), method="min")
    assert _ranks(ranked) == {"e1": 1, "e2": 2, "e3": 2, "e4": 4}


def test_first_rank_breaks_ties_by_entity_id() -> None:
    ranked = rank_period_totals(_totals({"e3": 50.0, "e1": 100.0, "e2": 50.0}), method="first")
    assert _ranks(ranked) == {"e1": 1, "e2": 2, "e3": 3}


def test_null_totals_sort_last_and_stay_unranked() -> None:
    ranked = rank_period_totals(_totals({"e1": None, "e2": 5.0, "e3": 7.0}))
    assert list(ranked["entity_id"]) == ["e3", "e2", "e1"]
    assert _ranks(ranked) == {"e1": None, "e2": 2, "e3": 1}


def test_partitions_rank_independently() -> None:
    totals = pd.concat([
        _totals({"a": 10.0, "b": 20.0}, period=1998, group="Direct"),
        _totals({"a": 30.0, "b": 20.0}, period=1998, group="Internet"),
        _totals({"a": 5.0}, period=1999, group="Direct"),
    ], ignore_index=True)
    ranked = rank_period_totals(totals)
    got = {(r["period"], r["group_key"], r["entity_id"]): int(r["rank"]) for _, r in ranked.iterrows()}
    assert got == {
        (1998, "Direct", "b"): 1,
        (1998, "Direct", "a"): 2,
        (1998, "Internet", "a"): 1,
        (1998, "Internet", "b"): 2,
        (1999, "Direct", "a"): 1,
    }


def test_dense_rank_property_on_many_ties() -> None:
    values = {f"e{i:02d}": float(v) for i, v in enumerate([9, 9, 7, 7, 7, 3, 1, 1, 0])}
    ranked = rank_period_totals(_totals(values))
    by_total = ranked.groupby("total_amount")["rank"].agg(["min", "max"]).sort_index(ascending=False)
    assert (by_total["min"] == by_total["max"]).all()
    assert list(by_total["min"]) == list(range(1, len(by_total) + 1))


def test_unknown_method_is_rejected() -> None:
    with pytest.raises(InvalidInputError):
        rank_within(_totals({"e1": 1.0}), ["period", "group_key"], method="percent")


def test_totals_equal_as_money_share_a_rank() -> None:
    ranked = rank_period_totals(_totals({"a": 0.1 + 0.2, "b": 0.3, "c": 0.29}))
    assert _ranks(ranked) == {"a": 1, "b": 1, "c": 2}
    assert "_rank_key" not in ranked.columns
