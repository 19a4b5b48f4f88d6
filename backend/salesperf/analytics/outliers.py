"""Z-score outliers on YoY volume growth."""
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

import numpy as np
from scipy import stats


@dataclass(frozen=True)
class GrowthOutlier:
    name: str
    growth_pct: float
    z_score: float
    direction: str  # "above" or "below" the mean


def detect_outliers(
    growth: Iterable[Tuple[str, Optional[float]]],
    z_threshold: float = 2.0
) -> Tuple[GrowthOutlier, ...]:
    """
    Flag entities whose growth sits at least z_threshold population
    standard deviations from the mean. Non-finite values are ignored; a
    zero spread flags nothing.
    """
    finite = [
        (name, float(value)) for name, value in growth
        if value is not None and np.isfinite(value)
    ]
    if len(finite) < 2:
        return ()

    values = np.array([v for _, v in finite])
    if np.std(values) == 0:
        return ()

    z_scores = stats.zscore(values, ddof=0)
    mean = values.mean()

    return tuple(
        GrowthOutlier(
            name=name,
            growth_pct=value,
            z_score=float(z),
            direction="above" if value > mean else "below",
        )
        for (name, value), z in zip(finite, z_scores)
        if abs(z) >= z_threshold
    )
