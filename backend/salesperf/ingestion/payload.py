"""
Request payload models.

Validates the JSON handed over by the period selector and the data-fetch
layer before anything reaches the engine.
"""
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from salesperf.core.policy_config import ReportSubject
from salesperf.analytics.entities import EntityRecord, MergeRule
from salesperf.analytics.periods import ColumnSchema, Period, parse_month_token, parse_period_type


def _coerce_cell(value: Any) -> float:
    """Numeric cell or NaN; the engine reads NaN as 0."""
    if value is None or isinstance(value, bool):
        return math.nan
    if isinstance(value, str):
        value = value.replace(",", "").strip()
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


class PeriodIn(BaseModel):
    """One column descriptor."""
    year: int
    month: str
    type: str

    @field_validator("month", mode="before")
    @classmethod
    def check_month(cls, value):
        parse_month_token(value)
        return str(value).strip()

    @field_validator("type", mode="before")
    @classmethod
    def check_type(cls, value):
        parse_period_type(value)
        return str(value).strip()

    def to_period(self) -> Period:
        return Period.parse(self.year, self.month, self.type)


class EntityRecordIn(BaseModel):
    """One product group or customer row."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1)
    raw_values: list[float] = Field(default_factory=list, alias="rawValues")

    @field_validator("raw_values", mode="before")
    @classmethod
    def coerce_values(cls, value):
        if value is None:
            return []
        return [_coerce_cell(v) for v in value]

    def to_record(self) -> EntityRecord:
        return EntityRecord(self.name, tuple(self.raw_values))


class MergeRuleIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    merged_name: str = Field(..., min_length=1, alias="mergedName")
    original_names: list[str] = Field(..., min_length=1, alias="originalNames")

    def to_rule(self) -> MergeRule:
        return MergeRule(self.merged_name, tuple(self.original_names))


@dataclass(frozen=True)
class ReportInputs:
    """Domain objects for one engine invocation."""
    schema: ColumnSchema
    volume: Tuple[EntityRecord, ...]
    amount: Tuple[EntityRecord, ...]
    base_period_index: Optional[int]
    subject: ReportSubject
    merge_rules: Tuple[MergeRule, ...]
    policy_overrides: Dict[str, Any]


class ReportRequest(BaseModel):
    """Full report request: column schema, both datasets and the base period."""
    model_config = ConfigDict(populate_by_name=True)

    columns: list[PeriodIn]
    volume: list[EntityRecordIn] = Field(default_factory=list)
    amount: list[EntityRecordIn] = Field(default_factory=list)
    base_period_index: Optional[int] = Field(default=None, alias="basePeriodIndex")
    subject: ReportSubject = ReportSubject.PRODUCT_GROUPS
    merge_rules: list[MergeRuleIn] = Field(default_factory=list, alias="mergeRules")
    policy_overrides: Dict[str, Any] = Field(default_factory=dict, alias="policyOverrides")

    def to_inputs(self) -> ReportInputs:
        return ReportInputs(
            schema=ColumnSchema(c.to_period() for c in self.columns),
            volume=tuple(r.to_record() for r in self.volume),
            amount=tuple(r.to_record() for r in self.amount),
            base_period_index=self.base_period_index,
            subject=self.subject,
            merge_rules=tuple(r.to_rule() for r in self.merge_rules),
            policy_overrides=dict(self.policy_overrides),
        )
