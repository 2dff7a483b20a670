"""
Trade Record Module

This module provides the immutable TradeRecord consumed by the aggregator,
its ingestion-time validation, and the TradeLedger for lookup and
trade statistics.
"""

from decimal import Decimal
from typing import Dict, List, Optional, Any, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from collections import defaultdict
import uuid

from .exceptions import InvalidTradeKind, MalformedTrade
from ..utils.validation import (
    normalize_trade_side,
    parse_amount,
    parse_quantity,
    parse_trade_date,
)


class TradeSide(Enum):
    """Trade side enumeration."""
    BUY = "buy"
    SELL = "sell"


def _first(raw: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None and value != '':
            return value
    return default


@dataclass(frozen=True)
class TradeRecord:
    """
    A single executed buy or sell of one instrument.

    The side is kept as the normalized raw label so that unrecognized values
    survive ingestion and are reported by validate(). Quantity and amount are
    None when the source value was not numeric.
    """
    name: str
    region: str
    side: str
    quantity: Optional[Decimal]
    amount: Optional[Decimal]
    trade_date: str
    code: str = ""
    ticker: str = ""
    market: str = ""
    currency: str = "JPY"
    unit_price: Optional[Decimal] = Decimal('0')
    account: str = ""
    transaction_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> 'TradeRecord':
        """
        Build a trade record from a loosely-typed mapping.

        Accepts both snake_case and camelCase keys ('trade_type'/'tradeType',
        'unit_price'/'unitPrice', 'id'/'transaction_id').

        Args:
            raw: Mapping with trade fields

        Returns:
            TradeRecord instance
        """
        side = _first(raw, 'side', 'trade_type', 'tradeType', default='')
        transaction_id = _first(raw, 'transaction_id', 'id')
        return cls(
            name=str(_first(raw, 'name', default='')).strip(),
            region=str(_first(raw, 'region', default='')).strip().upper(),
            side=normalize_trade_side(side),
            quantity=parse_quantity(raw.get('quantity')),
            amount=parse_amount(raw.get('amount')),
            trade_date=parse_trade_date(_first(raw, 'trade_date', 'date')),
            code=str(_first(raw, 'code', default='')).strip(),
            ticker=str(_first(raw, 'ticker', default='')).strip(),
            market=str(_first(raw, 'market', default='')).strip(),
            currency=str(_first(raw, 'currency', default='JPY')).strip().upper(),
            unit_price=parse_amount(_first(raw, 'unit_price', 'unitPrice')) or Decimal('0'),
            account=str(_first(raw, 'account', default='')).strip(),
            transaction_id=str(transaction_id) if transaction_id is not None else str(uuid.uuid4()),
        )

    @property
    def trade_side(self) -> Optional[TradeSide]:
        """Parsed side, or None when the label is not buy/sell."""
        try:
            return TradeSide(self.side)
        except ValueError:
            return None

    @property
    def identifier(self) -> str:
        """Ticker if present, otherwise the local code."""
        return self.ticker or self.code

    def validate(self) -> TradeSide:
        """
        Validate the record before it is applied to a position.

        Returns:
            The parsed trade side

        Raises:
            InvalidTradeKind: If the side is neither buy nor sell
            MalformedTrade: If quantity or amount is missing or non-numeric
        """
        side = self.trade_side
        if side is None:
            raise InvalidTradeKind(
                f"Unrecognized trade side {self.side!r} for {self.name or self.identifier}",
                self.transaction_id,
            )
        if self.quantity is None or not self.quantity.is_finite():
            raise MalformedTrade(f"Missing or non-numeric quantity for {self.name}", self.transaction_id)
        if self.amount is None or not self.amount.is_finite():
            raise MalformedTrade(f"Missing or non-numeric amount for {self.name}", self.transaction_id)
        return side

    def to_dict(self) -> Dict[str, Any]:
        """Dictionary view of the trade, numbers converted to float."""
        return {
            'transaction_id': self.transaction_id,
            'name': self.name,
            'code': self.code,
            'ticker': self.ticker,
            'market': self.market,
            'region': self.region,
            'currency': self.currency,
            'side': self.side,
            'quantity': float(self.quantity) if self.quantity is not None else None,
            'unit_price': float(self.unit_price) if self.unit_price is not None else None,
            'amount': float(self.amount) if self.amount is not None else None,
            'trade_date': self.trade_date,
            'account': self.account,
        }

    def __str__(self) -> str:
        return (f"Trade({self.side.upper()} {self.quantity} "
                f"{self.identifier or self.name} @ {self.unit_price} on {self.trade_date})")


class TradeLedger:
    """
    Collection of trade records with lookup and aggregated statistics.
    """

    def __init__(self,
                 trades: Iterable[TradeRecord] = (),
                 usd_jpy_rate: Decimal = Decimal('150')):
        """
        Initialize trade ledger.

        Args:
            trades: Initial trades
            usd_jpy_rate: Fixed approximate rate for converting USD amounts to yen
        """
        self.trades: Dict[str, TradeRecord] = {}
        self.usd_jpy_rate = Decimal(str(usd_jpy_rate))
        for trade in trades:
            self.add_trade(trade)

    def add_trade(self, trade: TradeRecord) -> str:
        """Add trade; a repeated transaction id replaces the earlier record."""
        self.trades[trade.transaction_id] = trade
        return trade.transaction_id

    def get_trade(self, transaction_id: str) -> Optional[TradeRecord]:
        """Get trade by ID."""
        return self.trades.get(transaction_id)

    def get_trades_by_side(self, side: TradeSide) -> List[TradeRecord]:
        """Get all trades of a specific side."""
        return [t for t in self.trades.values() if t.side == side.value]

    def get_trades_by_date_range(self, start_date: str, end_date: str) -> List[TradeRecord]:
        """Get trades whose ISO trade date lies within [start_date, end_date]."""
        return [
            t for t in self.trades.values()
            if t.trade_date and start_date <= t.trade_date <= end_date
        ]

    def calculate_trade_statistics(self) -> Dict[str, Any]:
        """
        Calculate trade counts and approximate total traded amount.

        USD amounts are converted with the ledger's fixed rate; other
        currencies are summed as-is.

        Returns:
            Dictionary with total, by_side, by_region, by_currency and total_amount
        """
        by_side: Dict[str, int] = defaultdict(int)
        by_region: Dict[str, int] = defaultdict(int)
        by_currency: Dict[str, int] = defaultdict(int)
        total_amount = Decimal('0')

        for trade in self.trades.values():
            by_side[trade.side] += 1
            by_region[trade.region] += 1
            by_currency[trade.currency] += 1

            if trade.amount:
                amount = trade.amount
                if trade.currency == 'USD':
                    amount = amount * self.usd_jpy_rate
                total_amount += amount

        return {
            'total': len(self.trades),
            'by_side': dict(by_side),
            'by_region': dict(by_region),
            'by_currency': dict(by_currency),
            'total_amount': float(total_amount),
        }

    def __len__(self) -> int:
        return len(self.trades)
