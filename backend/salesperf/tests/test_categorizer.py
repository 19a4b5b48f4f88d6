"""Tests for performance categorization and the full-year review."""
from dataclasses import dataclass
from typing import Optional

import pytest
from salesperf.core.policy_config import AnalyticsPolicy
from salesperf.analytics.categorizer import categorize, is_growth_driver, is_underperformer, review_full_year


@dataclass(frozen=True)
class Metrics:
    name: str
    volume_vs_budget: Optional[float] = None
    amount_vs_budget: Optional[float] = None
    volume_yoy: Optional[float] = None
    asp_yoy_pct: Optional[float] = None
    materiality_score: float = 0.1
    volume_actual: float = 0.0
    volume_budget: float = 0.0
    volume_fy_budget: float = 0.0


POLICY = AnalyticsPolicy()


def test_any_single_breach_qualifies():
    """OR semantics on the three variance checks."""
    assert is_underperformer(Metrics("a", volume_vs_budget=-15.0), POLICY)
    assert is_underperformer(Metrics("a", amount_vs_budget=-20.0), POLICY)
    assert is_underperformer(Metrics("a", volume_yoy=-10.0), POLICY)
    assert not is_underperformer(Metrics("a", volume_vs_budget=-14.9, volume_yoy=-9.9), POLICY)

    assert is_growth_driver(Metrics("a", volume_vs_budget=10.0), POLICY)
    assert is_growth_driver(Metrics("a", volume_yoy=15.0), POLICY)
    assert not is_growth_driver(Metrics("a", amount_vs_budget=9.9), POLICY)


def test_missing_variances_never_qualify():
    m = Metrics("a")
    assert not is_underperformer(m, POLICY)
    assert not is_growth_driver(m, POLICY)


def test_categorize_splits_focus_list():
    focus = [
        Metrics("down", volume_vs_budget=-30.0, materiality_score=0.2),
        Metrics("up", volume_yoy=40.0, materiality_score=0.3),
        Metrics("flat", volume_vs_budget=1.0, materiality_score=0.1),
        Metrics("both", volume_vs_budget=-20.0, volume_yoy=25.0, materiality_score=0.05),
        Metrics("pricey", volume_vs_budget=0.0, asp_yoy_pct=-8.0, materiality_score=0.01),
    ]
    categories = categorize(focus, POLICY)

    assert [m.name for m in categories.underperformers] == ["down", "both"]
    assert [m.name for m in categories.growth_drivers] == ["up", "both"]
    assert [m.name for m in categories.stable] == ["flat", "pricey"]
    assert [m.name for m in categories.pricing_concerns] == ["pricey"]


def test_categorize_caps_lists():
    focus = [Metrics(str(i), volume_yoy=50.0, materiality_score=i) for i in range(10)]
    categories = categorize(focus, AnalyticsPolicy(max_list_items=3))
    assert [m.name for m in categories.growth_drivers] == ["9", "8", "7"]


def test_full_year_review_buckets():
    """95% achievement splits strong performers from underperformers."""
    focus = [
        Metrics("strong", volume_actual=98.0, volume_fy_budget=100.0, materiality_score=0.3),
        Metrics("weak", volume_actual=80.0, volume_fy_budget=100.0, materiality_score=0.2),
        Metrics("period-budget", volume_actual=110.0, volume_budget=100.0, materiality_score=0.1),
        Metrics("no-target", volume_actual=50.0, materiality_score=0.4),
    ]
    review = review_full_year(focus, POLICY)

    assert [a.name for a in review.strong_performers] == ["strong", "period-budget"]
    assert [a.name for a in review.underperformers] == ["weak"]

    strong = review.strong_performers[0]
    assert strong.achievement_pct == pytest.approx(98.0)
    assert strong.suggested_growth_pct == pytest.approx(7.0)
    assert strong.next_year_target == pytest.approx(98.0 * 1.07)

    weak = review.underperformers[0]
    assert weak.suggested_growth_pct == pytest.approx(15.0)
    assert weak.shortfall == pytest.approx(20.0)


def test_full_year_growth_suggestion_shrinks_near_ceiling():
    """min(cap, ceiling - achievement) for the underperformer bucket."""
    policy = AnalyticsPolicy(fy_strong_achievement_pct=120.0)
    review = review_full_year(
        [Metrics("near", volume_actual=110.0, volume_fy_budget=100.0)], policy
    )
    assert review.underperformers[0].suggested_growth_pct == pytest.approx(10.0)


def test_full_year_review_skips_unmeasurable_achievement():
    """A target too small to divide by leaves the entity out instead of failing."""
    focus = [
        Metrics("tiny-target", volume_actual=1e300, volume_fy_budget=1e-300),
        Metrics("ok", volume_actual=100.0, volume_fy_budget=100.0),
    ]
    review = review_full_year(focus, POLICY)
    assert [a.name for a in review.strong_performers] == ["ok"]
    assert review.underperformers == ()
