"""Tests for concentration risk."""
import pytest
from salesperf.core.policy_config import AnalyticsPolicy
from salesperf.analytics.concentration import (
    RISK_HIGH,
    RISK_LOW,
    RISK_MEDIUM,
    analyze_concentration,
    concentration_level,
)

POLICY = AnalyticsPolicy()


def test_few_active_entities_always_high():
    """Five or fewer active entities is HIGH whatever the shares."""
    for count in range(0, 6):
        assert concentration_level(count, 0.01, 0.01, POLICY) == RISK_HIGH


def test_tiers_in_order():
    assert concentration_level(10, 0.50, 0.60, POLICY) == RISK_HIGH
    assert concentration_level(10, 0.30, 0.50, POLICY) == RISK_MEDIUM
    assert concentration_level(10, 0.20, 0.80, POLICY) == RISK_MEDIUM
    assert concentration_level(10, 0.20, 0.50, POLICY) == RISK_LOW


def test_analyze_shares_of_active_volume():
    volumes = [("A", 40.0), ("B", 30.0), ("C", 10.0), ("D", 10.0), ("E", 5.0),
               ("F", 5.0), ("G", 0.0), ("H", -3.0)]
    summary = analyze_concentration(volumes, POLICY)

    assert summary.active_count == 6
    assert summary.total_count == 8
    assert summary.total_volume == pytest.approx(100.0)
    assert summary.top1_share == pytest.approx(0.40)
    assert summary.top3_share == pytest.approx(0.80)
    assert summary.top5_share == pytest.approx(0.95)
    assert summary.avg_volume_per_entity == pytest.approx(100.0 / 6)
    assert summary.entities_per_thousand == pytest.approx(60.0)
    assert summary.level == RISK_MEDIUM
    assert [name for name, _ in summary.top_entities] == ["A", "B", "C", "D", "E"]


def test_analyze_empty():
    summary = analyze_concentration([], POLICY)
    assert summary.active_count == 0
    assert summary.top1_share == 0.0
    assert summary.level == RISK_HIGH
