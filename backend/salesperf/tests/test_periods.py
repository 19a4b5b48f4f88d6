"""Tests for period parsing and index resolution."""
import pytest
from salesperf.analytics.periods import (
    NOT_FOUND,
    ColumnSchema,
    FullYear,
    Half,
    Month,
    Period,
    PeriodParseError,
    PeriodType,
    Quarter,
    YearToDate,
    find_budget_index,
    months_remaining,
    parse_month_token,
    resolve_periods,
)


def schema_of(*columns):
    return ColumnSchema(Period.parse(y, m, t) for y, m, t in columns)


def test_parse_month_tokens():
    """Month names, numerals and aggregate tokens map to tagged kinds."""
    assert parse_month_token("March") == Month(3)
    assert parse_month_token(" mar ") == Month(3)
    assert parse_month_token("sept") == Month(9)
    assert parse_month_token(12) == Month(12)
    assert parse_month_token("Q2") == Quarter(2)
    assert parse_month_token("HY1") == Half(1)
    assert parse_month_token("h2") == Half(2)
    assert parse_month_token("Full Year") == FullYear()
    assert parse_month_token("year") == FullYear()
    assert parse_month_token("YTD") == YearToDate()


def test_unknown_tokens_raise():
    """Unknown tokens are rejected at the boundary."""
    with pytest.raises(PeriodParseError):
        parse_month_token("Smarch")
    with pytest.raises(PeriodParseError):
        parse_month_token("13")
    with pytest.raises(PeriodParseError):
        Period.parse(2024, "Jan", "Guess")
    with pytest.raises(PeriodParseError):
        Period.parse("next year", "Jan", "Actual")


def test_period_compares_by_normalized_value():
    """Spelling of the month does not affect equality."""
    a = Period.parse(2024, "Jan", "actual")
    b = Period.parse("2024", "January", " Actual ")
    assert a == b
    assert a.type == PeriodType.ACTUAL
    assert a.label == "January 2024 Actual"
    assert Period.parse(2024, "FY", "FY Budget").is_budget


def test_budget_chain_prefers_exact_month():
    """Same year and month beats the FY budget."""
    schema = schema_of(
        (2024, "Mar", "Actual"),
        (2024, "FY", "Budget"),
        (2024, "Mar", "Budget"),
    )
    assert find_budget_index(schema, 0) == 2


def test_budget_chain_falls_back_to_fy_then_any():
    """FY budget of the same year, then any same-year budget, then any budget."""
    fy = schema_of((2024, "Mar", "Actual"), (2024, "Q1", "Budget"), (2024, "FY", "Budget"))
    assert find_budget_index(fy, 0) == 2

    same_year = schema_of((2024, "Mar", "Actual"), (2023, "FY", "Budget"), (2024, "Q1", "Budget"))
    assert find_budget_index(same_year, 0) == 2

    any_budget = schema_of((2024, "Mar", "Actual"), (2022, "Jan", "Budget"))
    assert find_budget_index(any_budget, 0) == 1

    none = schema_of((2024, "Mar", "Actual"), (2023, "Mar", "Actual"))
    assert find_budget_index(none, 0) == NOT_FOUND


def test_previous_year_requires_exact_match():
    """A prior-year column of a different month is not substituted."""
    schema = schema_of((2023, "Feb", "Actual"), (2024, "Mar", "Actual"))
    resolved = resolve_periods(schema, 1)
    assert resolved.previous_year_index == NOT_FOUND
    assert not resolved.has_prev_year


def test_resolve_all_indices():
    """Every comparison column is located relative to the base period."""
    schema = schema_of(
        (2023, "Mar", "Actual"),
        (2024, "Mar", "Actual"),
        (2024, "Mar", "Budget"),
        (2023, "YTD", "Actual"),
        (2024, "YTD", "Actual"),
        (2023, "FY", "Actual"),
        (2024, "FY", "Forecast"),
        (2024, "FY", "Budget"),
    )
    resolved = resolve_periods(schema, 1)
    assert resolved.base_index == 1
    assert resolved.budget_index == 2
    assert resolved.previous_year_index == 0
    assert resolved.ytd_previous_index == 3
    assert resolved.ytd_current_index == 4
    assert resolved.fy_previous_index == 5
    assert resolved.fy_current_index == 6
    assert resolved.fy_budget_index == 7
    assert not resolved.is_fy_period
    assert resolved.has_ytd
    assert resolved.has_fy_comparison


def test_fy_actual_preferred_over_forecast():
    schema = schema_of((2024, "FY", "Forecast"), (2024, "FY", "Actual"))
    assert resolve_periods(schema, 1).fy_current_index == 1


def test_fy_base_period_flag():
    """An FY base period switches to full-year framing."""
    schema = schema_of((2024, "FY", "Actual"), (2024, "FY", "Budget"))
    resolved = resolve_periods(schema, 0)
    assert resolved.is_fy_period
    assert resolved.budget_index == 1


def test_resolve_rejects_invalid_index():
    schema = schema_of((2024, "Mar", "Actual"))
    with pytest.raises(ValueError):
        resolve_periods(schema, 5)
    with pytest.raises(ValueError):
        resolve_periods(schema, -1)
    assert not schema.is_valid_index(None)
    assert not schema.is_valid_index(True)


def test_months_remaining():
    """Only calendar months have a months-remaining value."""
    assert months_remaining(Period.parse(2024, "Mar", "Actual")) == 9
    assert months_remaining(Period.parse(2024, "Dec", "Actual")) == 0
    assert months_remaining(Period.parse(2024, "Q1", "Actual")) is None
    assert months_remaining(Period.parse(2024, "FY", "Actual")) is None
    assert months_remaining(Period.parse(2024, "YTD", "Actual")) is None


def test_schema_from_dicts():
    schema = ColumnSchema.from_dicts([
        {"year": 2024, "month": "Jan", "type": "Actual"},
        {"year": 2024, "month": "Jan", "type": "Budget"},
    ])
    assert len(schema) == 2
    assert schema[1].is_budget
    assert schema == schema_of((2024, "January", "actual"), (2024, "1", "budget"))
