"""
Position Aggregation Module

This module provides the PositionAggregator that folds an unordered
sequence of trade records into per-instrument positions and derives
portfolio-level summaries over the active holdings.
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Any, Iterable, Mapping, Sequence, Union
from dataclasses import dataclass, field
import logging

from .exceptions import TradeValidationError
from .position import Position, instrument_key
from .trade import TradeRecord

logger = logging.getLogger(__name__)


@dataclass
class TradeWarning:
    """Diagnostic for a trade excluded from numeric accumulation."""
    transaction_id: str
    instrument_key: str
    reason: str


@dataclass
class DimensionTally:
    """Count and cost-basis value for one region, currency or account."""
    count: int = 0
    value: Decimal = Decimal('0')


@dataclass
class TopHolding:
    """Entry in the ranked top holdings view."""
    name: str
    identifier: str
    region: str
    market_value: Decimal
    cost_basis_value: Decimal
    percentage: float


@dataclass
class PortfolioSummary:
    """Snapshot over a set of active holdings."""
    total_holdings: int = 0
    total_market_value: Decimal = Decimal('0')
    total_cost_basis_value: Decimal = Decimal('0')
    total_net_investment: Decimal = Decimal('0')
    unrealized_gain_loss: Decimal = Decimal('0')
    regions: Dict[str, DimensionTally] = field(default_factory=dict)
    currencies: Dict[str, DimensionTally] = field(default_factory=dict)
    accounts: Dict[str, DimensionTally] = field(default_factory=dict)
    top_holdings: List[TopHolding] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Float-converted dictionary view."""
        def tallies(group: Dict[str, DimensionTally]) -> Dict[str, Dict[str, float]]:
            return {k: {'count': v.count, 'value': float(v.value)} for k, v in group.items()}

        return {
            'total_holdings': self.total_holdings,
            'total_market_value': float(self.total_market_value),
            'total_cost_basis_value': float(self.total_cost_basis_value),
            'total_net_investment': float(self.total_net_investment),
            'unrealized_gain_loss': float(self.unrealized_gain_loss),
            'regions': tallies(self.regions),
            'currencies': tallies(self.currencies),
            'accounts': tallies(self.accounts),
            'top_holdings': [
                {
                    'name': h.name,
                    'identifier': h.identifier,
                    'region': h.region,
                    'market_value': float(h.market_value),
                    'cost_basis_value': float(h.cost_basis_value),
                    'percentage': h.percentage,
                }
                for h in self.top_holdings
            ],
        }


def _as_positions(positions: Union[Mapping[str, Position], Iterable[Position]]) -> List[Position]:
    if isinstance(positions, Mapping):
        return list(positions.values())
    return list(positions)


class PositionAggregator:
    """
    Trade-to-position aggregation engine.

    This class provides:
    - Batch aggregation of trade records into positions
    - Per-trade diagnostics for malformed input
    - Active holdings selection
    - Portfolio summaries with region, currency and account breakdowns
    """

    def __init__(self, top_holdings_limit: int = 10):
        """
        Initialize the aggregator.

        Args:
            top_holdings_limit: Number of holdings in the ranked summary view
        """
        self.top_holdings_limit = top_holdings_limit
        self.diagnostics: List[TradeWarning] = []

    def aggregate(self, trades: Iterable[TradeRecord]) -> Dict[str, Position]:
        """
        Fold trades into positions keyed by instrument key.

        Trades are applied in input order. Net totals are order-independent;
        first/last trade dates and the placeholder market value depend on order.
        A trade failing validation stays in the position's history but does not
        move quantities or amounts.

        Args:
            trades: Trade records in any order

        Returns:
            Mapping of instrument key to Position, in first-seen order
        """
        self.diagnostics = []
        index: Dict[str, int] = {}
        positions: List[Position] = []

        for trade in trades:
            key = instrument_key(trade)
            slot = index.get(key)
            if slot is None:
                slot = len(positions)
                index[key] = slot
                positions.append(Position.from_trade(trade))
                if key.startswith('OTHER_'):
                    logger.debug(f"Name-keyed instrument {key}; same-named instruments will merge")
            position = positions[slot]

            try:
                side = trade.validate()
            except TradeValidationError as e:
                logger.warning(f"Skipping accumulation for trade {trade.transaction_id} ({key}): {e}")
                self.diagnostics.append(TradeWarning(trade.transaction_id, key, str(e)))
            else:
                position.apply_trade(trade, side)
                logger.debug(f"Applied {side.value} {trade.quantity} to {key}")

            position.record_trade(trade)

        logger.info(f"Aggregated {len(positions)} positions; {len(self.diagnostics)} trades skipped")
        return {key: positions[slot] for key, slot in index.items()}

    def select_active_holdings(self,
                               positions: Union[Mapping[str, Position], Iterable[Position]]) -> List[Position]:
        """
        Filter to positions with open quantity and positive cost basis.

        Positions with residual quantity but non-positive cost basis are
        excluded as uncertain data.
        """
        active = [p for p in _as_positions(positions) if p.is_active]
        logger.info(f"Selected {len(active)} active holdings")
        return active

    def summarize(self, active_holdings: Sequence[Position]) -> PortfolioSummary:
        """
        Build a portfolio summary over active holdings.

        Breakdowns use cost-basis value. A holding with several account labels
        contributes its full value to each of them.

        Args:
            active_holdings: Positions from select_active_holdings

        Returns:
            PortfolioSummary
        """
        summary = PortfolioSummary(total_holdings=len(active_holdings))

        for holding in active_holdings:
            summary.total_market_value += holding.market_value
            summary.total_cost_basis_value += holding.cost_basis_value
            summary.total_net_investment += holding.net_investment

            self._tally(summary.regions, holding.region, holding.cost_basis_value)
            self._tally(summary.currencies, holding.currency, holding.cost_basis_value)
            for account in sorted(holding.account_types):
                self._tally(summary.accounts, account, holding.cost_basis_value)

        summary.unrealized_gain_loss = summary.total_market_value - summary.total_cost_basis_value

        ranked = sorted(active_holdings, key=lambda p: p.cost_basis_value, reverse=True)
        total = summary.total_cost_basis_value
        summary.top_holdings = [
            TopHolding(
                name=h.name,
                identifier=h.identifier,
                region=h.region,
                market_value=h.market_value,
                cost_basis_value=h.cost_basis_value,
                percentage=float(h.cost_basis_value / total * 100) if total > 0 else 0.0,
            )
            for h in ranked[:self.top_holdings_limit]
        ]

        return summary

    @staticmethod
    def _tally(group: Dict[str, DimensionTally], label: str, value: Decimal) -> None:
        tally = group.setdefault(label, DimensionTally())
        tally.count += 1
        tally.value += value

    def analyze_portfolio(self, trades: Iterable[TradeRecord]) -> Dict[str, Any]:
        """
        Run aggregation, active holdings selection and summary in one pass.

        Returns:
            Result dictionary with 'success' and 'timestamp'; on success also
            'data' and 'diagnostics', otherwise 'error'
        """
        try:
            positions = self.aggregate(trades)
            holdings = self.select_active_holdings(positions)
            summary = self.summarize(holdings)
        except Exception as e:
            logger.exception("Portfolio analysis failed")
            return {
                'success': False,
                'error': str(e),
                'timestamp': datetime.now().isoformat(),
            }

        return {
            'success': True,
            'timestamp': datetime.now().isoformat(),
            'data': {
                'aggregated_positions': positions,
                'active_holdings': holdings,
                'summary': summary,
            },
            'diagnostics': list(self.diagnostics),
        }
