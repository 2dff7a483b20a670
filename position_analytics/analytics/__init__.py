"""
Portfolio Analytics Components

Sector classification, allocation and concentration risk over
aggregated positions.
"""

from .sector_classifier import SectorClassifier, ClassificationContext
from .risk_manager import calculate_concentration_risk

__all__ = ['SectorClassifier', 'ClassificationContext', 'calculate_concentration_risk']
