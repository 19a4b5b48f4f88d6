"""Tests for catch-up planning."""
import pytest
from salesperf.analytics.catch_up import per_month_rate, pick_target, plan_catch_up


def test_target_prefers_fy_budget():
    assert pick_target(1200.0, 100.0) == 1200.0
    assert pick_target(0.0, 100.0) == 100.0


def test_gap_and_monthly_pace():
    plan = plan_catch_up(1200.0, 100.0, ytd_current=300.0, period_actual=90.0, months_remaining=9)
    assert plan.current == 300.0
    assert plan.gap == pytest.approx(900.0)
    assert plan.per_month == pytest.approx(100.0)
    assert not plan.on_track


def test_period_actual_without_ytd():
    plan = plan_catch_up(0.0, 100.0, ytd_current=None, period_actual=120.0, months_remaining=3)
    assert plan.current == 120.0
    assert plan.gap == 0.0
    assert plan.per_month == 0.0
    assert plan.on_track


def test_year_end_month_closes_now():
    """monthsRemaining 0 with a gap of 500 gives 0, not None."""
    plan = plan_catch_up(1000.0, 0.0, ytd_current=500.0, period_actual=50.0, months_remaining=0)
    assert plan.gap == pytest.approx(500.0)
    assert plan.per_month == 0
    assert plan.per_month is not None


def test_not_applicable_for_non_month_periods():
    plan = plan_catch_up(1000.0, 0.0, ytd_current=500.0, period_actual=50.0, months_remaining=None)
    assert plan.per_month is None
    assert per_month_rate(100.0, None) is None
