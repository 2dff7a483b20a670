"""
Trade History Loader

Reads broker trade-history CSV exports (JP equities, US equities, mutual
funds) with pandas and converts each row into a TradeRecord.
"""

from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional, Union
import logging
import uuid

import pandas as pd

from ..core.trade import TradeRecord
from ..utils.validation import (
    normalize_trade_side,
    parse_amount,
    parse_quantity,
    parse_trade_date,
)

logger = logging.getLogger(__name__)

ENCODINGS = ('shift_jis', 'utf-8', 'latin-1')

CSV_FORMATS: Dict[str, Dict[str, List[str]]] = {
    'JP': {
        'required': ['約定日', '銘柄名', '売買区分'],
        'side': ['売買区分', '取引区分'],
    },
    'US': {
        'required': ['約定日', '銘柄名', '売買区分'],
        'side': ['売買区分', '取引区分'],
    },
    'INVST': {
        'required': ['約定日', 'ファンド名', '取引'],
        'side': ['取引'],
    },
}

YEN_SETTLEMENT = '円'


def _value(row: pd.Series, *columns: str) -> Optional[str]:
    for column in columns:
        if column in row.index:
            value = row[column]
            if not pd.isna(value) and str(value).strip() != '':
                return str(value).strip()
    return None


def _row_to_trade(row: pd.Series, csv_type: str) -> Optional[TradeRecord]:
    fmt = CSV_FORMATS[csv_type]
    for column in fmt['required']:
        if _value(row, column) is None:
            logger.warning(f"Skipping row without required column {column}")
            return None

    common = {
        'name': _value(row, '銘柄名', 'ファンド名') or '',
        'side': normalize_trade_side(_value(row, *fmt['side'])),
        'trade_date': parse_trade_date(_value(row, '約定日', '取引日')),
        'account': _value(row, '口座区分', '口座') or '',
        'transaction_id': str(uuid.uuid4()),
    }

    if csv_type == 'JP':
        return TradeRecord(
            **common,
            region='JP',
            code=_value(row, '銘柄コード') or '',
            market=_value(row, '市場名称') or '',
            currency='JPY',
            quantity=parse_quantity(_value(row, '数量［株］', '数量')),
            unit_price=parse_amount(_value(row, '単価［円］', '単価')) or Decimal('0'),
            amount=parse_amount(_value(row, '受渡金額［円］', '受渡金額')),
        )

    if csv_type == 'US':
        yen_settled = _value(row, '決済通貨') == YEN_SETTLEMENT
        amount_column = '受渡金額［円］' if yen_settled else '受渡金額［USドル］'
        unit_price = parse_amount(_value(row, '単価［USドル］')) or Decimal('0')
        if yen_settled:
            # Yen price; a missing rate leaves 0 so valuation uses cost basis
            rate = parse_amount(_value(row, '為替レート')) or Decimal('0')
            unit_price = unit_price * rate
        return TradeRecord(
            **common,
            region='US',
            ticker=_value(row, 'ティッカー') or '',
            currency='JPY' if yen_settled else 'USD',
            quantity=parse_quantity(_value(row, '数量［株］')),
            unit_price=unit_price,
            amount=parse_amount(_value(row, amount_column)),
        )

    return TradeRecord(
        **common,
        region='FUND',
        currency='JPY',
        quantity=parse_quantity(_value(row, '数量［口］')),
        unit_price=parse_amount(_value(row, '単価')) or Decimal('0'),
        amount=parse_amount(_value(row, '受渡金額/(ポイント利用)[円]')),
    )


def trades_from_dataframe(df: pd.DataFrame, csv_type: str) -> List[TradeRecord]:
    """
    Convert a parsed trade-history table into trade records.

    Args:
        df: DataFrame with the broker's column headers
        csv_type: 'JP', 'US' or 'INVST'

    Returns:
        Trade records for every usable row
    """
    if csv_type not in CSV_FORMATS:
        raise ValueError(f"Unknown CSV type: {csv_type}")

    df = df.rename(columns=lambda c: str(c).strip())
    df = df.dropna(how='all')

    trades = []
    for _, row in df.iterrows():
        trade = _row_to_trade(row, csv_type)
        if trade is not None:
            trades.append(trade)

    logger.info(f"Converted {len(trades)} of {len(df)} {csv_type} rows")
    return trades


def load_trades_csv(csv_path: Union[str, Path], csv_type: str) -> List[TradeRecord]:
    """
    Load a trade-history CSV export.

    Encodings are tried in order (Shift_JIS, UTF-8, Latin-1).

    Args:
        csv_path: Path to the CSV file
        csv_type: 'JP', 'US' or 'INVST'

    Returns:
        List of TradeRecord
    """
    if csv_type not in CSV_FORMATS:
        raise ValueError(f"Unknown CSV type: {csv_type}")

    last_error: Optional[Exception] = None
    for encoding in ENCODINGS:
        try:
            df = pd.read_csv(csv_path, encoding=encoding, dtype=str, skip_blank_lines=True)
        except UnicodeDecodeError as e:
            logger.debug(f"{csv_path} is not {encoding}: {e}")
            last_error = e
            continue
        logger.info(f"Loaded {csv_path} as {encoding} - Shape: {df.shape}")
        return trades_from_dataframe(df, csv_type)

    raise ValueError(f"Cannot decode {csv_path} with any of {ENCODINGS}") from last_error
