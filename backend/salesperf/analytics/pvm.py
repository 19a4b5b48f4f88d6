"""Price-volume-mix decomposition of a revenue change."""
from dataclasses import dataclass
from typing import Optional

from salesperf.analytics.safe_math import safe_divide


@dataclass(frozen=True)
class PriceVolumeMix:
    """
    Revenue delta split into price, volume and mix.

    mix_effect is the residual, so the three effects always add up to
    current_amount - previous_amount.
    """
    current_rate: float
    previous_rate: float
    price_effect: float
    volume_effect: float
    mix_effect: float
    amount_delta: float


def decompose(
    current_volume: float,
    previous_volume: float,
    current_amount: float,
    previous_amount: float
) -> Optional[PriceVolumeMix]:
    """
    Decompose Ac - Ap into price, volume and mix effects.

    Returns None when either period has no volume, since the unit rate
    is then undefined.
    """
    current_rate = safe_divide(current_amount, current_volume)
    previous_rate = safe_divide(previous_amount, previous_volume)
    if current_rate is None or previous_rate is None:
        return None

    amount_delta = current_amount - previous_amount
    price_effect = (current_rate - previous_rate) * current_volume
    volume_effect = (current_volume - previous_volume) * previous_rate
    mix_effect = amount_delta - (price_effect + volume_effect)

    return PriceVolumeMix(
        current_rate=current_rate,
        previous_rate=previous_rate,
        price_effect=price_effect,
        volume_effect=volume_effect,
        mix_effect=mix_effect,
        amount_delta=amount_delta,
    )
