"""Performance categorization of the focus list."""
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from salesperf.core.policy_config import AnalyticsPolicy
from salesperf.analytics.safe_math import pct_of

GROWTH_DRIVER = "growth_driver"
UNDERPERFORMER = "underperformer"
STABLE = "stable"


def _at_or_below(value: Optional[float], threshold: float) -> bool:
    return value is not None and value <= threshold


def _at_or_above(value: Optional[float], threshold: float) -> bool:
    return value is not None and value >= threshold


def is_underperformer(metrics, policy: AnalyticsPolicy) -> bool:
    """Any single breach of the underperformance bands qualifies."""
    return (
        _at_or_below(metrics.volume_vs_budget, policy.underperf_vol_pct)
        or _at_or_below(metrics.amount_vs_budget, policy.underperf_amt_pct)
        or _at_or_below(metrics.volume_yoy, policy.underperf_yoy_vol_pct)
    )


def is_growth_driver(metrics, policy: AnalyticsPolicy) -> bool:
    """Any single breach of the growth bands qualifies."""
    return (
        _at_or_above(metrics.volume_vs_budget, policy.growth_vol_pct)
        or _at_or_above(metrics.amount_vs_budget, policy.growth_amt_pct)
        or _at_or_above(metrics.volume_yoy, policy.growth_yoy_vol_pct)
    )


@dataclass(frozen=True)
class PerformanceCategories:
    growth_drivers: Tuple
    underperformers: Tuple
    stable: Tuple
    pricing_concerns: Tuple


def categorize(focus: Sequence, policy: AnalyticsPolicy) -> PerformanceCategories:
    """
    Split the focus list into growth drivers, underperformers and stable.

    Overlapping thresholds may flag an entity in both lists; stable holds
    entities flagged in neither. Lists keep the materiality ranking of
    the focus list and are capped at max_list_items.
    """
    cap = policy.max_list_items
    ranked = sorted(focus, key=lambda m: m.materiality_score, reverse=True)

    underperformers = [m for m in ranked if is_underperformer(m, policy)]
    growth_drivers = [m for m in ranked if is_growth_driver(m, policy)]
    stable = [
        m for m in ranked
        if not is_underperformer(m, policy) and not is_growth_driver(m, policy)
    ]
    pricing = [
        m for m in ranked
        if m.asp_yoy_pct is not None and abs(m.asp_yoy_pct) >= policy.asp_delta_show_pct
    ]

    return PerformanceCategories(
        growth_drivers=tuple(growth_drivers[:cap]),
        underperformers=tuple(underperformers[:cap]),
        stable=tuple(stable[:cap]),
        pricing_concerns=tuple(pricing[:cap]),
    )


# ---------------------------------------------------------------------------
# Full-year retrospective
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FullYearAssessment:
    name: str
    actual: float
    target: float
    achievement_pct: float
    suggested_growth_pct: float
    next_year_target: float
    shortfall: float
    materiality_score: float


@dataclass(frozen=True)
class FullYearReview:
    strong_performers: Tuple[FullYearAssessment, ...]
    underperformers: Tuple[FullYearAssessment, ...]


def review_full_year(focus: Sequence, policy: AnalyticsPolicy) -> FullYearReview:
    """
    Bucket focus entities by volume achievement against the full-year target.

    Entities without a positive target are left out. Strong performers get
    a modest growth suggestion; underperformers get min(cap, ceiling -
    achievement), never negative.
    """
    strong, under = [], []
    for m in sorted(focus, key=lambda x: x.materiality_score, reverse=True):
        target = m.volume_fy_budget if m.volume_fy_budget > 0 else m.volume_budget
        achievement = pct_of(m.volume_actual, target)
        if achievement is None:
            continue

        if achievement >= policy.fy_strong_achievement_pct:
            growth = policy.fy_strong_growth_pct
            bucket = strong
        else:
            growth = max(0.0, min(policy.fy_underperf_growth_cap_pct,
                                  policy.fy_underperf_ceiling_pct - achievement))
            bucket = under

        bucket.append(FullYearAssessment(
            name=m.name,
            actual=m.volume_actual,
            target=target,
            achievement_pct=achievement,
            suggested_growth_pct=growth,
            next_year_target=m.volume_actual * (1 + growth / 100),
            shortfall=max(0.0, target - m.volume_actual),
            materiality_score=m.materiality_score,
        ))

    cap = policy.max_list_items
    return FullYearReview(strong_performers=tuple(strong[:cap]), underperformers=tuple(under[:cap]))
