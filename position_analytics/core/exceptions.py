"""
Exception Hierarchy

Errors raised inside the position analytics engine. Trade validation and
classification errors are absorbed at the component boundary and surfaced
as diagnostics; only configuration errors propagate to the caller.
"""

from typing import Optional


class PositionAnalyticsError(Exception):
    """Base class for all engine errors."""


class TradeValidationError(PositionAnalyticsError):
    """
    A trade record failed ingestion-time validation.

    The aggregator keeps the trade in the position history but excludes it
    from quantity and amount accumulation.
    """

    def __init__(self, message: str, transaction_id: Optional[str] = None):
        super().__init__(message)
        self.transaction_id = transaction_id


class InvalidTradeKind(TradeValidationError):
    """Trade side is neither buy nor sell."""


class MalformedTrade(TradeValidationError):
    """Quantity or amount is missing or non-numeric."""


class ClassificationError(PositionAnalyticsError):
    """Sector lookup failed for a position."""


class ConfigurationError(PositionAnalyticsError):
    """Configuration file could not be loaded or contains unknown settings."""
