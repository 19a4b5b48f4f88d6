"""Tests for price-volume-mix decomposition."""
import pytest
from salesperf.analytics.pvm import decompose


def test_effects_sum_to_amount_delta():
    """Mix is the residual, so the identity always holds."""
    cases = [
        (120.0, 100.0, 1500.0, 1000.0),
        (80.0, 100.0, 900.0, 1000.0),
        (1e6, 3.0, 7.5e7, 11.0),
        (0.001, 1000.0, 0.05, 2e5),
    ]
    for cv, pv, ca, pa in cases:
        pvm = decompose(cv, pv, ca, pa)
        total = pvm.price_effect + pvm.volume_effect + pvm.mix_effect
        assert total == pytest.approx(ca - pa)
        assert pvm.amount_delta == pytest.approx(ca - pa)


def test_effect_values():
    pvm = decompose(120.0, 100.0, 1500.0, 1000.0)
    assert pvm.current_rate == pytest.approx(12.5)
    assert pvm.previous_rate == pytest.approx(10.0)
    assert pvm.price_effect == pytest.approx(300.0)
    assert pvm.volume_effect == pytest.approx(200.0)
    assert pvm.mix_effect == pytest.approx(0.0)


def test_unavailable_without_volume():
    """No rate, no decomposition."""
    assert decompose(0.0, 100.0, 50.0, 1000.0) is None
    assert decompose(100.0, 0.0, 50.0, 0.0) is None
