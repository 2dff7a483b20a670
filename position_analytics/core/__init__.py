"""
Core Position Aggregation Components

This module contains the fundamental building blocks:
- TradeRecord: Immutable trade input and ledger
- Position: Per-instrument running state with cost basis
- PositionAggregator: Trade folding and portfolio summaries
"""

from .trade import TradeRecord, TradeLedger
from .position import Position
from .aggregator import PositionAggregator

__all__ = ['TradeRecord', 'TradeLedger', 'Position', 'PositionAggregator']
