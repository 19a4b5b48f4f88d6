"""Tests for retention and churn."""
import pytest
from salesperf.core.policy_config import AnalyticsPolicy
from salesperf.analytics.concentration import RISK_HIGH, RISK_LOW, RISK_MEDIUM
from salesperf.analytics.retention import analyze_retention, churn_risk, unavailable_retention

POLICY = AnalyticsPolicy()


def test_retained_lost_new():
    """previous {A,B,C}, current {A,B,D}."""
    previous = [("A", 10), ("B", 5), ("C", 1), ("Z", 0)]
    current = [("a", 12), ("B*", 3), ("C", 0), ("D", 7)]
    summary = analyze_retention(previous, current, POLICY)

    assert summary.has_data
    assert summary.retained_count == 2
    assert summary.lost_count == 1
    assert summary.new_count == 1
    assert summary.retention_rate == pytest.approx(2 / 3)
    assert summary.churn_rate == pytest.approx(1 / 3)
    assert summary.risk == RISK_HIGH
    assert summary.lost_names == ("C",)
    assert summary.new_names == ("D",)


def test_counts_add_up():
    previous = [(f"e{i}", i % 3) for i in range(30)]
    current = [(f"e{i}", i % 4) for i in range(30)]
    summary = analyze_retention(previous, current, POLICY)

    assert summary.retained_count + summary.lost_count == summary.previous_active_count
    assert summary.retained_count + summary.new_count == summary.current_active_count


def test_empty_previous_is_no_data():
    """Zero rates without a prior-year population are flagged as no data."""
    summary = analyze_retention([("A", 0)], [("A", 5)], POLICY)
    assert not summary.has_data
    assert summary.churn_rate == 0.0
    assert summary.new_count == 1
    assert not unavailable_retention().has_data


def test_churn_risk_bands():
    assert churn_risk(0.30, POLICY) == RISK_HIGH
    assert churn_risk(0.15, POLICY) == RISK_MEDIUM
    assert churn_risk(0.149, POLICY) == RISK_LOW
