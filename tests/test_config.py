from __future__ import annotations

import logging
from pathlib import Path

import pytest

from sales_kpi.config import get_settings

ENV_VARS = ["MONGO_URI", "MONGO_DB", "SALES_COLLECTION", "KPI_DATA_DIR", "KPI_TOP_N",
            "KPI_REQUIRED_PERIODS", "KPI_RANK_METHOD", "KPI_LOG_LEVEL"]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    s = get_settings()
    assert s.top_n == 300
    assert s.required_periods == (1998, 1999, 2001)
    assert s.rank_method == "dense"
    assert s.data_dir == Path("data")
    assert s.log_level == logging.INFO


def test_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KPI_TOP_N", "25")
    monkeypatch.setenv("KPI_REQUIRED_PERIODS", "2019, 2020,2021")
    monkeypatch.setenv("KPI_RANK_METHOD", "MIN")
    monkeypatch.setenv("KPI_LOG_LEVEL", "debug")
    s = get_settings()
    assert s.top_n == 25
    assert s.required_periods == (2019, 2020, 2021)
    assert s.rank_method == "min"
    assert s.log_level == logging.DEBUG


@pytest.mark.parametrize(
    "name, value",
    [
        ("KPI_TOP_N", "many"),
        ("KPI_TOP_N", "0"),
        ("KPI_REQUIRED_PERIODS", "1998,later"),
        ("KPI_REQUIRED_PERIODS", " , "),
        ("KPI_RANK_METHOD", "ntile"),
        ("KPI_LOG_LEVEL", "LOUD"),
    ],
)
def test_bad_values_raise(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(RuntimeError, match=name):
        get_settings()
