"""
Position Management Module

This module provides the Position class for tracking the running state of a
single instrument built from its trade history, with average cost basis
valuation and a placeholder market valuation.
"""

from decimal import Decimal
from typing import List, Dict, Optional, Set, Any
import copy
import logging

from .trade import TradeRecord, TradeSide

logger = logging.getLogger(__name__)


def instrument_key(trade: TradeRecord) -> str:
    """
    Derive the grouping key for a trade.

    JP instruments are keyed by local code and market, US instruments by
    ticker, everything else by display name. Name keys can merge distinct
    instruments that share a name.
    """
    if trade.region == 'JP':
        return f"JP_{trade.code}_{trade.market}"
    if trade.region == 'US':
        return f"US_{trade.ticker}"
    return f"OTHER_{trade.name}"


class Position:
    """
    Represents the aggregated holding of a single instrument.

    This class manages:
    - Buy/sell quantity and amount accumulation
    - Net quantity and net investment (always derived)
    - Average cost basis valuation of the open quantity
    - Placeholder market valuation from the latest trade price
    - Trade history, date range and account labels
    - Optional sector annotation set by the classifier
    """

    def __init__(self,
                 key: str,
                 name: str,
                 region: str,
                 code: str = "",
                 ticker: str = "",
                 market: str = "",
                 currency: str = "JPY",
                 first_trade_date: str = "",
                 last_trade_date: str = ""):
        """
        Initialize an empty position.

        Args:
            key: Instrument key (see instrument_key)
            name: Instrument display name
            region: Region code ('JP', 'US', ...)
            code: Local security code
            ticker: Ticker symbol
            market: Market/exchange name
            currency: Trading currency
            first_trade_date: Initial first trade date (ISO)
            last_trade_date: Initial last trade date (ISO)
        """
        self.key = key
        self.name = name
        self.region = region
        self.code = code
        self.ticker = ticker
        self.market = market
        self.currency = currency

        # Accumulators
        self.total_buy_quantity = Decimal('0')
        self.total_sell_quantity = Decimal('0')
        self.total_buy_amount = Decimal('0')
        self.total_sell_amount = Decimal('0')

        # Valuation
        self.cost_basis_value = Decimal('0')
        self.market_value = Decimal('0')

        # History
        self.transactions: List[TradeRecord] = []
        self.original_ids: List[str] = []
        self.account_types: Set[str] = set()
        self.first_trade_date = first_trade_date
        self.last_trade_date = last_trade_date

        # Sector annotation
        self.sector: Optional[str] = None
        self.sub_sector: Optional[str] = None
        self.sector_source: Optional[str] = None

    @classmethod
    def from_trade(cls, trade: TradeRecord) -> 'Position':
        """Create an empty position seeded with the trade's identity fields."""
        return cls(
            key=instrument_key(trade),
            name=trade.name,
            region=trade.region,
            code=trade.code,
            ticker=trade.ticker,
            market=trade.market,
            currency=trade.currency,
            first_trade_date=trade.trade_date,
            last_trade_date=trade.trade_date,
        )

    @property
    def net_quantity(self) -> Decimal:
        """Total bought minus total sold."""
        return self.total_buy_quantity - self.total_sell_quantity

    @property
    def net_investment(self) -> Decimal:
        """Total buy amount minus total sell amount."""
        return self.total_buy_amount - self.total_sell_amount

    @property
    def average_cost(self) -> Decimal:
        """Average purchase price per unit over all buys, 0 without buys."""
        if self.total_buy_quantity > 0:
            return self.total_buy_amount / self.total_buy_quantity
        return Decimal('0')

    @property
    def identifier(self) -> str:
        """Ticker if present, otherwise the local code."""
        return self.ticker or self.code

    def apply_trade(self, trade: TradeRecord, side: TradeSide) -> None:
        """
        Apply a validated trade to the accumulators and revalue.

        Args:
            trade: Trade record that passed validate()
            side: Side returned by trade.validate()
        """
        if side is TradeSide.BUY:
            self.total_buy_quantity += trade.quantity
            self.total_buy_amount += trade.amount
        else:
            self.total_sell_quantity += trade.quantity
            self.total_sell_amount += trade.amount

        price = trade.unit_price
        if price is None or not price.is_finite():
            price = Decimal('0')
        self._revalue(price)

    def _revalue(self, latest_price: Decimal) -> None:
        net_quantity = self.net_quantity
        if net_quantity > 0:
            self.cost_basis_value = self.average_cost * net_quantity
            # Stand-in for a pricing feed: latest trade price, else cost basis.
            if latest_price > 0:
                self.market_value = latest_price * net_quantity
            else:
                self.market_value = self.cost_basis_value
        else:
            self.cost_basis_value = Decimal('0')
            self.market_value = Decimal('0')

    def record_trade(self, trade: TradeRecord) -> None:
        """
        Record bookkeeping for any trade, valid or not.

        Extends the date range, account labels, trade ids and history.
        """
        if trade.trade_date:
            if not self.first_trade_date or trade.trade_date < self.first_trade_date:
                self.first_trade_date = trade.trade_date
            if not self.last_trade_date or trade.trade_date > self.last_trade_date:
                self.last_trade_date = trade.trade_date

        if trade.account:
            self.account_types.add(trade.account)

        self.original_ids.append(trade.transaction_id)
        self.transactions.append(trade)

    def with_sector(self, sector: str, sub_sector: str, source: str) -> 'Position':
        """
        Return a copy annotated with sector information.

        History containers are shared with the original; the copy is a view
        for downstream reporting, not a new accumulation target.
        """
        annotated = copy.copy(self)
        annotated.sector = sector
        annotated.sub_sector = sub_sector
        annotated.sector_source = source
        return annotated

    @property
    def is_active(self) -> bool:
        """Open quantity with positive cost basis."""
        return self.net_quantity > 0 and self.cost_basis_value > 0

    def get_position_summary(self) -> Dict[str, Any]:
        """
        Get comprehensive position summary.

        Returns:
            Dictionary with complete position information
        """
        return {
            'key': self.key,
            'name': self.name,
            'code': self.code,
            'ticker': self.ticker,
            'market': self.market,
            'region': self.region,
            'currency': self.currency,

            # Quantity and amounts
            'total_buy_quantity': float(self.total_buy_quantity),
            'total_sell_quantity': float(self.total_sell_quantity),
            'total_buy_amount': float(self.total_buy_amount),
            'total_sell_amount': float(self.total_sell_amount),
            'net_quantity': float(self.net_quantity),
            'net_investment': float(self.net_investment),

            # Valuation
            'average_cost': float(self.average_cost),
            'cost_basis_value': float(self.cost_basis_value),
            'market_value': float(self.market_value),

            # History
            'number_of_trades': len(self.transactions),
            'first_trade_date': self.first_trade_date,
            'last_trade_date': self.last_trade_date,
            'accounts': sorted(self.account_types),
            'original_ids': list(self.original_ids),

            # Sector
            'sector': self.sector,
            'sub_sector': self.sub_sector,
            'sector_source': self.sector_source,
        }

    def __repr__(self) -> str:
        return (f"Position(key={self.key}, net_quantity={self.net_quantity}, "
                f"cost_basis_value={self.cost_basis_value}, sector={self.sector})")
