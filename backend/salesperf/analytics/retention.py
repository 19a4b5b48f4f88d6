"""Retained / lost / new entities between the prior-year and base periods."""
from dataclasses import dataclass
from typing import Dict, Iterable, Tuple

from salesperf.core.policy_config import AnalyticsPolicy
from salesperf.analytics.concentration import RISK_HIGH, RISK_MEDIUM, RISK_LOW
from salesperf.analytics.entities import EntityKey, strip_merge_marker


@dataclass(frozen=True)
class RetentionSummary:
    """
    Set arithmetic over entity keys.

    has_data is False when there was no prior-year column or nobody was
    active in it; rates are then 0 and must not be read as "no churn".
    """
    has_data: bool
    previous_active_count: int
    current_active_count: int
    retained_count: int
    lost_count: int
    new_count: int
    retention_rate: float
    churn_rate: float
    risk: str
    lost_names: Tuple[str, ...] = ()
    new_names: Tuple[str, ...] = ()


def churn_risk(churn_rate: float, policy: AnalyticsPolicy) -> str:
    if churn_rate >= policy.churn_high:
        return RISK_HIGH
    if churn_rate >= policy.churn_medium:
        return RISK_MEDIUM
    return RISK_LOW


def _active(pairs: Iterable[Tuple[str, float]]) -> Dict[EntityKey, str]:
    active: Dict[EntityKey, str] = {}
    for name, value in pairs:
        if value > 0:
            active.setdefault(EntityKey.of(name), strip_merge_marker(name))
    return active


def analyze_retention(
    previous: Iterable[Tuple[str, float]],
    current: Iterable[Tuple[str, float]],
    policy: AnalyticsPolicy
) -> RetentionSummary:
    """
    Compare active entity sets.

    Args:
        previous: (name, prior-year value) per entity
        current: (name, base-period value) per entity
    """
    prev_active = _active(previous)
    cur_active = _active(current)
    prev_keys, cur_keys = set(prev_active), set(cur_active)

    retained = prev_keys & cur_keys
    lost = prev_keys - cur_keys
    new = cur_keys - prev_keys

    prev_count = len(prev_keys)
    retention_rate = len(retained) / prev_count if prev_count else 0.0
    churn_rate = len(lost) / prev_count if prev_count else 0.0

    return RetentionSummary(
        has_data=prev_count > 0,
        previous_active_count=prev_count,
        current_active_count=len(cur_keys),
        retained_count=len(retained),
        lost_count=len(lost),
        new_count=len(new),
        retention_rate=retention_rate,
        churn_rate=churn_rate,
        risk=churn_risk(churn_rate, policy),
        lost_names=tuple(prev_active[k] for k in prev_active if k in lost),
        new_names=tuple(cur_active[k] for k in cur_active if k in new),
    )


def unavailable_retention() -> RetentionSummary:
    """Summary used when the schema has no prior-year column."""
    return RetentionSummary(
        has_data=False,
        previous_active_count=0,
        current_active_count=0,
        retained_count=0,
        lost_count=0,
        new_count=0,
        retention_rate=0.0,
        churn_rate=0.0,
        risk=RISK_LOW,
    )
