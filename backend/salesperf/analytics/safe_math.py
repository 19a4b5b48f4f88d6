"""Null-safe arithmetic shared by every analyzer."""
import math
import numbers
from typing import Iterable, Optional


def to_number(value) -> float:
    """Coerce a cell to a finite float; missing, NaN, inf and junk become 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def is_finite(value) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool) and math.isfinite(value)


def ratio_pct(a, b) -> Optional[float]:
    """
    Percentage variance of a against b: ((a - b) / b) * 100.

    None unless both values are finite and b is strictly positive. Every
    variance in the engine goes through here; plain shares use pct_of.
    """
    if not is_finite(a) or not is_finite(b) or b <= 0:
        return None
    result = ((a - b) / b) * 100
    # Tiny denominators can still overflow
    return result if math.isfinite(result) else None


def safe_share(part, whole) -> float:
    """part / whole, or 0 when the whole is not a positive finite number."""
    if not is_finite(part) or not is_finite(whole) or whole <= 0:
        return 0.0
    return part / whole


def safe_divide(numerator, denominator) -> Optional[float]:
    """numerator / denominator, or None when the denominator is not positive."""
    if not is_finite(numerator) or not is_finite(denominator) or denominator <= 0:
        return None
    return numerator / denominator


def pct_of(part, whole) -> Optional[float]:
    """part as a percentage of whole, or None when whole is not positive."""
    share = safe_divide(part, whole)
    if share is None:
        return None
    result = share * 100
    return result if math.isfinite(result) else None


def sum_at(index: int, entities: Iterable) -> float:
    """
    Sum of entity values at a column index.

    Entities expose value_at(index); missing or non-numeric cells count
    as 0 and a negative index sums to 0.
    """
    if index is None or index < 0:
        return 0.0
    return math.fsum(entity.value_at(index) for entity in entities)
