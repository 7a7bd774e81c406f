"""Pydantic models used for input validation and report rows.

These models define the expected schema for transaction records entering the
pipeline, the intermediate ranking stages, and the rows produced by each
report.
"""

from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, Field, ConfigDict

Period = Union[int, str]
EntityId = Union[int, str]
GroupKey = Union[int, str]


class TransactionRecord(BaseModel):
    """Schema for one immutable transaction row.

    Attributes:
        period: Reporting interval the sale belongs to (e.g. calendar year).
        group_key: Secondary partition such as the sales channel.
        entity_id: Identifier of the ranked entity (e.g. customer id).
        amount: Sale amount; ``None`` mirrors a NULL amount in the source.
        attributes: Display attributes of the entity (e.g. customer names).
    """
    model_config = ConfigDict(extra="forbid", frozen=True)
    period: Period
    group_key: GroupKey
    entity_id: EntityId
    amount: float | None
    attributes: dict[str, Any] = Field(default_factory=dict)

    def to_row(self) -> dict[str, Any]:
        """Flatten into a single-level mapping suitable for a DataFrame row."""
        row: dict[str, Any] = {
            "period": self.period,
            "group_key": self.group_key,
            "entity_id": self.entity_id,
            "amount": self.amount,
        }
        row.update(self.attributes)
        return row


class PeriodGroupTotal(BaseModel):
    """Summed amount per (period, group key, entity id)."""
    model_config = ConfigDict(extra="forbid")
    period: Period
    group_key: GroupKey
    entity_id: EntityId
    total_amount: float | None


class RankedEntity(PeriodGroupTotal):
    """A period total with its rank inside the (period, group key) partition."""
    rank: int | None = Field(default=None, ge=1)


class QualifyingEntity(BaseModel):
    """Entity that met the rank threshold in every required period."""
    model_config = ConfigDict(extra="forbid")
    entity_id: EntityId
    group_key: GroupKey
    periods_in_top: int = Field(..., ge=1)


class ConsistentTopNRow(BaseModel):
    """Report row for the consistent top-N report.

    Attributes:
        period: Reporting period of this row.
        group_key: Partition the rank was computed in.
        entity_id: Qualifying entity.
        total_amount: Period total rounded to 2 decimals.
        rank: Rank within (period, group key).
        attributes: Display attributes carried through aggregation.
    """
    model_config = ConfigDict(extra="forbid")
    period: Period
    group_key: GroupKey
    entity_id: EntityId
    total_amount: float
    rank: int = Field(..., ge=1)
    attributes: dict[str, Any] = Field(default_factory=dict)


class ChannelShareRow(BaseModel):
    """Report row: customer share of its channel's sales."""
    model_config = ConfigDict(extra="forbid")
    group_key: GroupKey
    entity_id: EntityId
    total_amount: float
    sales_percentage: float = Field(..., ge=0)
    rank: int = Field(..., ge=1)


class ChannelTrendRow(BaseModel):
    """Report row: channel share of a region/period with previous-period delta."""
    model_config = ConfigDict(extra="forbid")
    region: str
    period: Period
    channel: str
    amount: float
    share_pct: float | None
    previous_share_pct: float | None
    share_diff: float | None
