"""Top-N concentration risk of current-period volume."""
from dataclasses import dataclass
from typing import Iterable, Tuple

import pandas as pd

from salesperf.core.policy_config import AnalyticsPolicy
from salesperf.analytics.safe_math import safe_share

RISK_HIGH = "HIGH"
RISK_MEDIUM = "MEDIUM"
RISK_LOW = "LOW"


@dataclass(frozen=True)
class ConcentrationSummary:
    level: str
    active_count: int
    total_count: int
    total_volume: float
    top1_share: float
    top3_share: float
    top5_share: float
    avg_volume_per_entity: float
    entities_per_thousand: float
    top_entities: Tuple[Tuple[str, float], ...]


def concentration_level(active_count: int, top1: float, top3: float, policy: AnalyticsPolicy) -> str:
    """First matching tier wins."""
    if active_count <= policy.concentration_low_count:
        return RISK_HIGH
    if top1 >= policy.concentration_high_top1:
        return RISK_HIGH
    if top1 >= policy.concentration_medium_top1:
        return RISK_MEDIUM
    if top3 >= policy.concentration_medium_top3:
        return RISK_MEDIUM
    return RISK_LOW


def analyze_concentration(
    volumes: Iterable[Tuple[str, float]],
    policy: AnalyticsPolicy
) -> ConcentrationSummary:
    """
    Concentration of current volume among active entities.

    Args:
        volumes: (name, current-period volume) for every entity

    Active entities are those with positive volume; shares are taken
    against the active total.
    """
    pairs = list(volumes)
    series = pd.Series([v for _, v in pairs], index=[n for n, _ in pairs], dtype=float)
    total_count = len(series)
    active = series[series > 0].sort_values(ascending=False, kind="stable")

    active_count = len(active)
    total = float(active.sum())
    top1 = safe_share(float(active.head(1).sum()), total)
    top3 = safe_share(float(active.head(3).sum()), total)
    top5 = safe_share(float(active.head(5).sum()), total)

    return ConcentrationSummary(
        level=concentration_level(active_count, top1, top3, policy),
        active_count=active_count,
        total_count=total_count,
        total_volume=total,
        top1_share=top1,
        top3_share=top3,
        top5_share=top5,
        avg_volume_per_entity=total / active_count if active_count else 0.0,
        entities_per_thousand=safe_share(active_count, total) * 1000,
        top_entities=tuple((str(n), float(v)) for n, v in active.head(5).items()),
    )
