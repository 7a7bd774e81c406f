"""Shared fixtures: small transaction frames in the canonical column layout."""

from __future__ import annotations

import pandas as pd
import pytest


def _tx(period, group_key, entity_id, amount, **attrs) -> dict:
    return {"period": period, "group_key": group_key, "entity_id": entity_id, "amount": amount, **attrs}


@pytest.fixture
def three_year_sales() -> pd.DataFrame:
    """X leads channel A in 1998, 1999 and 2001; Y is second but has no 2001 sales."""
    return pd.DataFrame([
        _tx(1998, "A", "X", 60.0), _tx(1998, "A", "X", 40.0),
        _tx(1999, "A", "X", 90.0),
        _tx(2001, "A", "X", 80.0),
        _tx(1998, "A", "Y", 95.0),
        _tx(1999, "A", "Y", 85.0),
        _tx(2000, "A", "Y", 500.0),
        _tx(2001, "A", "Z", 10.0),
    ])
