"""
Position Analytics Package

Aggregation and classification engine that folds raw buy/sell trade records
into per-instrument positions and derives portfolio summaries, sector
allocation and concentration risk.

Key Components:
- Core: TradeRecord, Position and the PositionAggregator
- Analytics: Sector classification and concentration risk
- Data: Sector reference tables, override storage and CSV trade loading
- Utils: Value parsing, validation and configuration
"""

__version__ = "1.0.0"

# Core imports
from .core.trade import TradeRecord, TradeSide, TradeLedger
from .core.position import Position, instrument_key
from .core.aggregator import PositionAggregator, PortfolioSummary

# Analytics imports
from .analytics.sector_classifier import ClassificationContext, SectorClassifier
from .analytics.risk_manager import ConcentrationLevel, calculate_concentration_risk

__all__ = [
    'TradeRecord',
    'TradeSide',
    'TradeLedger',
    'Position',
    'instrument_key',
    'PositionAggregator',
    'PortfolioSummary',
    'ClassificationContext',
    'SectorClassifier',
    'ConcentrationLevel',
    'calculate_concentration_risk',
]
