"""
Concentration Risk Module

This module measures sector concentration of a portfolio with a
Herfindahl-Hirschman style index over percentage allocations.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Union

import numpy as np

HIGH_CONCENTRATION_THRESHOLD = 2500.0
MEDIUM_CONCENTRATION_THRESHOLD = 1500.0


class ConcentrationLevel(Enum):
    """Concentration risk level."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


INTERPRETATIONS = {
    ConcentrationLevel.HIGH: "Sector concentration is high",
    ConcentrationLevel.MEDIUM: "Moderately diversified across sectors",
    ConcentrationLevel.LOW: "Well diversified across sectors",
}


@dataclass(frozen=True)
class ConcentrationRisk:
    """Concentration index with its risk level."""
    index: float
    level: ConcentrationLevel
    interpretation: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'hhi': self.index,
            'risk_level': self.level.value,
            'interpretation': self.interpretation,
        }


def _percentages(allocation: Union[Any, Iterable[Any]]) -> np.ndarray:
    entries = getattr(allocation, 'entries', allocation)
    values = [getattr(entry, 'percentage', entry) for entry in entries]
    return np.asarray(values, dtype=float)


def assess_concentration_level(index: float) -> ConcentrationLevel:
    """Map an index value onto the fixed risk thresholds."""
    if index > HIGH_CONCENTRATION_THRESHOLD:
        return ConcentrationLevel.HIGH
    elif index > MEDIUM_CONCENTRATION_THRESHOLD:
        return ConcentrationLevel.MEDIUM
    else:
        return ConcentrationLevel.LOW


def calculate_concentration_risk(allocation) -> ConcentrationRisk:
    """
    Calculate the concentration index of a sector allocation.

    The index is the sum of squared percentage shares (0-100 scale), so a
    single-sector portfolio scores 10000 and an even N-sector split 10000/N.

    Args:
        allocation: SectorAllocation, a sequence of allocation entries, or a
            sequence of percentages

    Returns:
        ConcentrationRisk with index, level and interpretation
    """
    percentages = _percentages(allocation)
    index = float(np.sum(np.square(percentages))) if percentages.size else 0.0
    level = assess_concentration_level(index)
    return ConcentrationRisk(index=index, level=level, interpretation=INTERPRETATIONS[level])
