"""Remaining gap to the full-year target and the monthly pace needed to close it."""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CatchUp:
    """
    months_remaining is None for quarter, half, FY and YTD base periods;
    per_month is then None too ("not applicable", not zero).
    """
    target: float
    current: float
    gap: float
    months_remaining: Optional[int]
    per_month: Optional[float]

    @property
    def on_track(self) -> bool:
        return self.gap <= 0


def pick_target(fy_budget: float, period_budget: float) -> float:
    """FY budget when positive, else the period budget."""
    return fy_budget if fy_budget > 0 else period_budget


def per_month_rate(gap: float, months_remaining: Optional[int]) -> Optional[float]:
    if months_remaining is None:
        return None
    if months_remaining > 0:
        return gap / months_remaining
    # Year-end month: the gap has to close now
    return 0.0


def plan_catch_up(
    fy_budget: float,
    period_budget: float,
    ytd_current: Optional[float],
    period_actual: float,
    months_remaining: Optional[int]
) -> CatchUp:
    """
    Args:
        ytd_current: YTD actual, or None when the schema has no YTD column
    """
    target = pick_target(fy_budget, period_budget)
    current = ytd_current if ytd_current is not None else period_actual
    gap = max(0.0, target - current)
    return CatchUp(
        target=target,
        current=current,
        gap=gap,
        months_remaining=months_remaining,
        per_month=per_month_rate(gap, months_remaining),
    )
