"""Typed exceptions raised by the KPI pipeline.

    SalesKpiError (base)
    |
    +-- InvalidInputError (also ValueError)
        |
        +-- AmbiguousAggregationKeyError

Every exception carries a machine-readable `code` so callers can branch on
type or code rather than on message text.
"""

from __future__ import annotations

from typing import Any


class SalesKpiError(Exception):
    """Base class for all pipeline errors."""

    code: str = "SALES_KPI_ERROR"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class InvalidInputError(SalesKpiError, ValueError):
    """Arguments or records cannot be processed (bad threshold, missing keys, ...)."""

    code = "INVALID_INPUT"


class AmbiguousAggregationKeyError(InvalidInputError):
    """A record cannot be attributed to exactly one (period, group, entity) key.

    Raised when the same entity id carries different display attributes inside
    one (period, group) partition.
    """

    code = "AMBIGUOUS_AGGREGATION_KEY"

    def __init__(self, message: str, keys: list[tuple[Any, ...]] | None = None) -> None:
        super().__init__(message, keys=keys or [])
        self.keys = keys or []
