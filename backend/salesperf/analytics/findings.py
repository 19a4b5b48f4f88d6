"""
Findings snapshot produced by the engine.

Every record is a frozen dataclass holding tuples, so a Findings object
can be handed to several renderers without defensive copies. A new
Findings is computed for every (dataset, base period) pair.
"""
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Optional, Tuple

import pandas as pd

from salesperf.analytics.catch_up import CatchUp
from salesperf.analytics.categorizer import PerformanceCategories, FullYearReview
from salesperf.analytics.concentration import ConcentrationSummary
from salesperf.analytics.materiality import MaterialitySelection
from salesperf.analytics.outliers import GrowthOutlier
from salesperf.analytics.periods import Period, ResolvedPeriods
from salesperf.analytics.pvm import PriceVolumeMix
from salesperf.analytics.retention import RetentionSummary


@dataclass(frozen=True)
class EntityMetrics:
    """Per-entity values, shares and variances at the resolved columns."""
    name: str
    key: str

    volume_actual: float
    amount_actual: float
    volume_budget: float
    amount_budget: float
    volume_prev_year: float
    amount_prev_year: float
    volume_ytd_current: float
    amount_ytd_current: float
    volume_ytd_previous: float
    amount_ytd_previous: float
    volume_fy_current: float
    amount_fy_current: float
    volume_fy_previous: float
    amount_fy_previous: float
    volume_fy_budget: float
    amount_fy_budget: float

    budget_share: float
    actual_share: float
    materiality_score: float

    volume_vs_budget: Optional[float]
    amount_vs_budget: Optional[float]
    volume_yoy: Optional[float]
    amount_yoy: Optional[float]
    volume_ytd_growth: Optional[float]
    amount_ytd_growth: Optional[float]
    volume_fy_growth: Optional[float]
    amount_fy_growth: Optional[float]
    volume_fy_budget_var: Optional[float]
    amount_fy_budget_var: Optional[float]

    asp_current: Optional[float]
    asp_budget: Optional[float]
    asp_prev_year: Optional[float]
    asp_vs_budget_pct: Optional[float]
    asp_yoy_pct: Optional[float]

    @property
    def has_activity(self) -> bool:
        """Positive current, budget or prior-year value on either metric."""
        return any(v > 0 for v in (
            self.volume_actual, self.amount_actual,
            self.volume_budget, self.amount_budget,
            self.volume_fy_budget, self.amount_fy_budget,
            self.volume_prev_year, self.amount_prev_year,
        ))


@dataclass(frozen=True)
class AvailabilityFlags:
    """Lets renderers tell "zero" from "no such column"."""
    has_budget: bool = False
    has_prev_year: bool = False
    has_ytd: bool = False
    has_ytd_current: bool = False
    has_fy: bool = False
    has_fy_budget: bool = False
    has_fy_comparison: bool = False


@dataclass(frozen=True)
class PortfolioTotals:
    volume_actual: float = 0.0
    amount_actual: float = 0.0
    volume_budget: float = 0.0
    amount_budget: float = 0.0
    volume_prev_year: float = 0.0
    amount_prev_year: float = 0.0
    volume_ytd_current: float = 0.0
    amount_ytd_current: float = 0.0
    volume_ytd_previous: float = 0.0
    amount_ytd_previous: float = 0.0
    volume_fy_current: float = 0.0
    amount_fy_current: float = 0.0
    volume_fy_previous: float = 0.0
    amount_fy_previous: float = 0.0
    volume_fy_budget: float = 0.0
    amount_fy_budget: float = 0.0


@dataclass(frozen=True)
class PortfolioVariances:
    volume_vs_budget: Optional[float] = None
    amount_vs_budget: Optional[float] = None
    volume_yoy: Optional[float] = None
    amount_yoy: Optional[float] = None
    volume_ytd_growth: Optional[float] = None
    amount_ytd_growth: Optional[float] = None
    volume_fy_growth: Optional[float] = None
    amount_fy_growth: Optional[float] = None
    volume_fy_budget_var: Optional[float] = None
    amount_fy_budget_var: Optional[float] = None
    volume_vs_fy_budget: Optional[float] = None
    amount_vs_fy_budget: Optional[float] = None
    ytd_fy_progress_pct: Optional[float] = None


@dataclass(frozen=True)
class RunRate:
    ratio: float
    basis: str  # "FY budget" or "period budget"
    threshold: float

    @property
    def below_threshold(self) -> bool:
        return self.ratio < self.threshold


@dataclass(frozen=True)
class EntityCatchUp:
    name: str
    volume: CatchUp
    amount: CatchUp


@dataclass(frozen=True)
class CatchUpPlan:
    months_remaining: Optional[int]
    volume: CatchUp
    amount: CatchUp
    entities: Tuple[EntityCatchUp, ...] = ()


@dataclass(frozen=True)
class EntityPvm:
    name: str
    pvm: Optional[PriceVolumeMix]


@dataclass(frozen=True)
class RateAnalysis:
    """Amount per 1,000 volume units."""
    avg_kilo_rate: Optional[float] = None
    avg_kilo_rate_prev: Optional[float] = None
    avg_kilo_rate_budget: Optional[float] = None
    kilo_rate_yoy: Optional[float] = None
    kilo_rate_vs_budget: Optional[float] = None


@dataclass(frozen=True)
class EntityVolumeSales:
    name: str
    volume: float
    sales: float
    kilo_rate: Optional[float]
    prev_kilo_rate: Optional[float]
    volume_growth: Optional[float]
    sales_growth: Optional[float]
    kilo_rate_change: Optional[float]
    advantage: str  # "sales" or "volume"
    volume_vs_sales: str  # "volume-driven", "sales-driven" or "neutral"
    kilo_rate_trend: str  # "improving", "declining" or "stable"


@dataclass(frozen=True)
class TopPerformers:
    by_volume: Tuple[EntityVolumeSales, ...] = ()
    by_sales: Tuple[EntityVolumeSales, ...] = ()
    by_kilo_rate: Tuple[EntityVolumeSales, ...] = ()


@dataclass(frozen=True)
class VolumeSalesInsights:
    dominant_driver: str = "sales"
    kilo_rate_trend: str = "stable"
    performance_gap: float = 0.0
    has_significant_gap: bool = False
    volume_advantage_count: int = 0
    sales_advantage_count: int = 0


@dataclass(frozen=True)
class DataQuality:
    schema_mismatches: Tuple[str, ...] = ()
    duplicate_keys: Tuple[str, ...] = ()
    unmatched_volume: Tuple[str, ...] = ()
    unmatched_amount: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    @property
    def is_clean(self) -> bool:
        return not (self.schema_mismatches or self.duplicate_keys
                    or self.unmatched_volume or self.unmatched_amount or self.warnings)


@dataclass(frozen=True)
class Findings:
    """Everything a renderer needs for one subject and one base period."""
    subject: str
    is_available: bool
    base_period: Optional[Period]
    periods: Optional[ResolvedPeriods]
    is_fy_period: bool
    availability: AvailabilityFlags
    totals: PortfolioTotals
    variances: PortfolioVariances
    run_rate_volume: Optional[RunRate]
    run_rate_amount: Optional[RunRate]
    entities: Tuple[EntityMetrics, ...]
    focus: MaterialitySelection
    categories: PerformanceCategories
    full_year_review: Optional[FullYearReview]
    catch_up: Optional[CatchUpPlan]
    portfolio_pvm: Optional[PriceVolumeMix]
    entity_pvm: Tuple[EntityPvm, ...]
    rates: RateAnalysis
    volume_sales: Tuple[EntityVolumeSales, ...]
    top_performers: TopPerformers
    insights: VolumeSalesInsights
    concentration: ConcentrationSummary
    retention: RetentionSummary
    outliers: Tuple[GrowthOutlier, ...]
    executive_summary: Tuple[str, ...]
    priorities: Tuple[str, ...]
    data_quality: DataQuality = field(default_factory=DataQuality)

    @property
    def summary_text(self) -> str:
        return " ".join(line if line.endswith(".") else f"{line}." for line in self.executive_summary)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d['base_period'] = self.base_period.to_dict() if self.base_period else None
        d['summary_text'] = self.summary_text
        return d

    def entities_frame(self) -> pd.DataFrame:
        """Per-entity metrics as a frame, focus entities flagged."""
        if not self.entities:
            return pd.DataFrame()
        frame = pd.DataFrame([asdict(e) for e in self.entities]).set_index('name')
        focus_keys = {m.key for m in self.focus.items}
        frame['in_focus'] = frame['key'].isin(focus_keys)
        return frame
