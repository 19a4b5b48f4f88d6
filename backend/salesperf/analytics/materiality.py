"""Coverage-guaranteed selection of material entities."""
from dataclasses import dataclass
from typing import Generic, List, Sequence, Tuple, TypeVar

from salesperf.core.policy_config import AnalyticsPolicy

T = TypeVar("T")

STOP_CAP = "cap"
STOP_COVERAGE = "coverage"
STOP_EXHAUSTED = "exhausted"

# Running share sums can land a few ulps under a target of 1.0
COVERAGE_TOLERANCE = 1e-9


@dataclass(frozen=True)
class MaterialitySelection(Generic[T]):
    """Focus list ranked by materiality score, plus the budget share it covers."""
    items: Tuple[T, ...]
    coverage: float
    stopped_by: str

    def __len__(self) -> int:
        return len(self.items)


def select_material(items: Sequence[T], policy: AnalyticsPolicy) -> MaterialitySelection[T]:
    """
    Pick the focus list.

    Items need budget_share, actual_share, materiality_score and
    has_activity (positive current, budget or prior-year value).
    Walk by budget share descending and stop at the cap, or once the
    coverage target is met and the next item falls below the minimum
    share. The first item is always admitted, so a portfolio with any
    activity never yields an empty focus list.
    """
    candidates: List[T] = sorted(
        (i for i in items if i.has_activity),
        key=lambda i: (i.budget_share, i.actual_share),
        reverse=True,
    )

    focus: List[T] = []
    cumulative = 0.0
    stopped_by = STOP_EXHAUSTED
    for item in candidates:
        if len(focus) >= policy.max_focus_items:
            stopped_by = STOP_CAP
            break
        covered = cumulative >= policy.coverage_target - COVERAGE_TOLERANCE
        if covered and item.budget_share < policy.min_share:
            stopped_by = STOP_COVERAGE
            break
        focus.append(item)
        cumulative += item.budget_share

    # Re-rank on combined planned and realized weight for every downstream list
    focus.sort(key=lambda i: i.materiality_score, reverse=True)

    return MaterialitySelection(items=tuple(focus), coverage=cumulative, stopped_by=stopped_by)
