"""
Test cases for the sector concentration index
"""

import pytest

from position_analytics.analytics.risk_manager import (
    ConcentrationLevel,
    assess_concentration_level,
    calculate_concentration_risk,
)


def test_single_sector_is_fully_concentrated():
    """Test that one sector at 100% scores 10000"""
    risk = calculate_concentration_risk([100.0])

    assert risk.index == pytest.approx(10000.0)
    assert risk.level is ConcentrationLevel.HIGH
    assert risk.interpretation


@pytest.mark.parametrize("n_sectors", [2, 4, 5, 10, 20])
def test_even_split_scores_10000_over_n(n_sectors):
    """Test that an even N-way split scores 10000/N"""
    risk = calculate_concentration_risk([100.0 / n_sectors] * n_sectors)

    assert risk.index == pytest.approx(10000.0 / n_sectors)


def test_threshold_levels():
    """Test the high and medium thresholds are exclusive"""
    assert assess_concentration_level(2500.01) is ConcentrationLevel.HIGH
    assert assess_concentration_level(2500.0) is ConcentrationLevel.MEDIUM
    assert assess_concentration_level(1500.01) is ConcentrationLevel.MEDIUM
    assert assess_concentration_level(1500.0) is ConcentrationLevel.LOW
    assert assess_concentration_level(0.0) is ConcentrationLevel.LOW


def test_levels_for_even_splits():
    assert calculate_concentration_risk([50.0, 50.0]).level is ConcentrationLevel.HIGH
    assert calculate_concentration_risk([20.0] * 5).level is ConcentrationLevel.MEDIUM
    assert calculate_concentration_risk([10.0] * 10).level is ConcentrationLevel.LOW


def test_empty_allocation():
    risk = calculate_concentration_risk([])

    assert risk.index == 0.0
    assert risk.level is ConcentrationLevel.LOW


def test_to_dict():
    result = calculate_concentration_risk([60.0, 40.0]).to_dict()

    # 3600 + 1600
    assert result['hhi'] == pytest.approx(5200.0)
    assert result['risk_level'] == 'high'
    assert isinstance(result['interpretation'], str)
