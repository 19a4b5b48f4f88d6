"""
Sales Performance Analytics

Turns period-indexed Volume and Amount tables into budget, growth,
concentration, retention and price-volume-mix findings for product
groups and customers. SalesPerformanceEngine composes the analyzers
into one immutable Findings snapshot per base period.
"""

from .periods import (
    NOT_FOUND,
    ColumnSchema,
    Period,
    PeriodParseError,
    PeriodType,
    ResolvedPeriods,
    resolve_periods,
)
from .entities import EntityKey, EntityRecord, MergeRule, apply_merge_rules, join_datasets
from .safe_math import ratio_pct, sum_at
from .materiality import select_material
from .categorizer import categorize, review_full_year
from .pvm import PriceVolumeMix, decompose
from .concentration import analyze_concentration
from .retention import analyze_retention
from .outliers import detect_outliers
from .catch_up import plan_catch_up
from .findings import Findings
from .engine import SalesPerformanceEngine

__all__ = [
    # Periods
    "NOT_FOUND",
    "ColumnSchema",
    "Period",
    "PeriodParseError",
    "PeriodType",
    "ResolvedPeriods",
    "resolve_periods",
    # Entities
    "EntityKey",
    "EntityRecord",
    "MergeRule",
    "apply_merge_rules",
    "join_datasets",
    # Analyzers
    "ratio_pct",
    "sum_at",
    "select_material",
    "categorize",
    "review_full_year",
    "PriceVolumeMix",
    "decompose",
    "analyze_concentration",
    "analyze_retention",
    "detect_outliers",
    "plan_catch_up",
    # Engine
    "Findings",
    "SalesPerformanceEngine",
]
