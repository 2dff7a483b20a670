"""
Test cases for broker trade-history CSV loading
"""

import os
import tempfile
from decimal import Decimal

import pandas as pd
import pytest

from position_analytics.core.aggregator import PositionAggregator
from position_analytics.data.trade_loader import load_trades_csv, trades_from_dataframe


def create_jp_frame():
    """Helper function to create a JP equity trade-history table"""
    return pd.DataFrame({
        '約定日': ['2024/01/15', '2024/02/20', '2024/03/01'],
        '銘柄コード': ['7203', '7203', '6758'],
        '銘柄名': ['トヨタ自動車', 'トヨタ自動車', 'ソニーグループ'],
        '市場名称': ['東証', '東証', '東証'],
        '口座区分': ['特定', 'NISA', '特定'],
        '売買区分': ['買付', '売付', None],
        '数量［株］': ['100', '50', '10'],
        '単価［円］': ['2,500', '2,700', '13,000'],
        '受渡金額［円］': ['250,000', '135,000', '130,000'],
    })


def test_load_jp_csv_in_shift_jis():
    """Test loading a Shift_JIS encoded JP export"""
    with tempfile.TemporaryDirectory() as tmp_dir:
        path = os.path.join(tmp_dir, 'tradehistory_JP.csv')
        create_jp_frame().to_csv(path, index=False, encoding='shift_jis')

        trades = load_trades_csv(path, 'JP')

    # Third row has no side and is skipped
    assert len(trades) == 2
    buy, sell = trades
    assert buy.region == 'JP'
    assert buy.code == '7203'
    assert buy.market == '東証'
    assert buy.side == 'buy'
    assert buy.quantity == Decimal('100')
    assert buy.unit_price == Decimal('2500')
    assert buy.amount == Decimal('250000')
    assert buy.trade_date == '2024-01-15'
    assert buy.currency == 'JPY'
    assert sell.side == 'sell'
    assert sell.account == 'NISA'


def test_us_settlement_currency_selects_amount_column():
    """Test yen-settled and dollar-settled US trades"""
    frame = pd.DataFrame({
        '約定日': ['2024/01/10', '2024/01/11'],
        'ティッカー': ['AAPL', 'MSFT'],
        '銘柄名': ['APPLE INC', 'MICROSOFT CORP'],
        '口座区分': ['特定', '特定'],
        '売買区分': ['買付', '買付'],
        '決済通貨': ['円', 'USドル'],
        '数量［株］': ['10', '5'],
        '単価［USドル］': ['185.50', '390.00'],
        '受渡金額［USドル］': ['1,855.00', '1,950.00'],
        '為替レート': ['150.00', '149.80'],
        '受渡金額［円］': ['278,250', None],
    })
    yen, dollar = trades_from_dataframe(frame, 'US')

    assert yen.ticker == 'AAPL'
    assert yen.region == 'US'
    assert yen.currency == 'JPY'
    assert yen.amount == Decimal('278250')
    # 185.50 USD at 150.00 JPY/USD
    assert yen.unit_price == Decimal('27825')
    assert dollar.unit_price == Decimal('390.00')
    assert dollar.currency == 'USD'
    assert dollar.amount == Decimal('1950.00')


def test_fund_trades_use_fund_region():
    frame = pd.DataFrame({
        '約定日': ['2024/04/01'],
        'ファンド名': ['eMAXIS Slim 全世界株式'],
        '口座': ['NISA'],
        '取引': ['買付'],
        '数量［口］': ['10,000'],
        '単価': ['20,000'],
        '受渡金額/(ポイント利用)[円]': ['20,000'],
    })
    trades = trades_from_dataframe(frame, 'INVST')

    assert len(trades) == 1
    assert trades[0].region == 'FUND'
    assert trades[0].name == 'eMAXIS Slim 全世界株式'
    assert trades[0].account == 'NISA'
    assert trades[0].quantity == Decimal('10000')


def test_unknown_csv_type():
    with pytest.raises(ValueError):
        trades_from_dataframe(pd.DataFrame(), 'FX')


def create_yen_settled_frame(rate):
    """Helper function to create one yen-settled US buy"""
    return pd.DataFrame({
        '約定日': ['2024/01/10'],
        'ティッカー': ['AAPL'],
        '銘柄名': ['APPLE INC'],
        '売買区分': ['買付'],
        '決済通貨': ['円'],
        '数量［株］': ['10'],
        '単価［USドル］': ['185.50'],
        '為替レート': [rate],
        '受渡金額［USドル］': ['1,855.00'],
        '受渡金額［円］': ['278,250'],
    })


def test_yen_settled_position_is_valued_in_yen():
    """Test that market value and cost basis share the settlement currency"""
    aggregator = PositionAggregator()
    trades = trades_from_dataframe(create_yen_settled_frame('150.00'), 'US')
    summary = aggregator.summarize(aggregator.select_active_holdings(aggregator.aggregate(trades)))

    assert summary.total_cost_basis_value == Decimal('278250')
    assert summary.total_market_value == Decimal('278250')
    assert summary.unrealized_gain_loss == 0


def test_yen_settled_trade_without_rate_uses_cost_basis():
    trades = trades_from_dataframe(create_yen_settled_frame(None), 'US')
    position = PositionAggregator().aggregate(trades)['US_AAPL']

    assert trades[0].unit_price == 0
    assert position.market_value == position.cost_basis_value == Decimal('278250')


def test_row_without_quantity_is_reported():
    """Test that a blank quantity cell becomes a diagnostic, not a zero"""
    frame = create_jp_frame().iloc[:1].copy()
    frame['数量［株］'] = [None]
    aggregator = PositionAggregator()
    position = aggregator.aggregate(trades_from_dataframe(frame, 'JP'))['JP_7203_東証']

    assert position.net_investment == 0
    assert len(aggregator.diagnostics) == 1
