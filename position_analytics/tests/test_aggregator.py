"""
Test cases for trade aggregation, active holdings and portfolio summary
"""

from dataclasses import replace
from decimal import Decimal
from itertools import permutations

import pytest

from position_analytics.core.aggregator import PositionAggregator
from position_analytics.core.trade import TradeRecord


def make_trade(side, quantity, unit_price, amount, trade_date='2024-01-01', **kwargs):
    """Helper function to create a US trade for ticker X"""
    fields = {
        'name': 'Example Corp',
        'region': 'US',
        'ticker': 'X',
        'currency': 'USD',
        'account': 'Specific',
    }
    fields.update(kwargs)
    return TradeRecord(
        side=side,
        quantity=Decimal(str(quantity)),
        unit_price=Decimal(str(unit_price)),
        amount=Decimal(str(amount)),
        trade_date=trade_date,
        **fields
    )


def scenario_trades():
    return [
        make_trade('buy', 10, 100, 1000, '2024-01-10', transaction_id='t1'),
        make_trade('buy', 5, 120, 600, '2024-02-10', transaction_id='t2'),
        make_trade('sell', 8, 130, 1040, '2024-03-10', transaction_id='t3'),
    ]


def test_partial_sale_scenario():
    """Test net quantity and average cost after two buys and a partial sale"""
    positions = PositionAggregator().aggregate(scenario_trades())

    assert list(positions) == ['US_X']
    position = positions['US_X']
    assert position.net_quantity == Decimal('7')
    assert position.total_buy_amount == Decimal('1600')
    assert position.net_investment == Decimal('560')
    # 1600 / 15 = 106.667 per unit, times 7 remaining units
    assert float(position.average_cost) == pytest.approx(106.6667, abs=1e-4)
    assert float(position.cost_basis_value) == pytest.approx(746.67, abs=0.01)
    # Placeholder valuation uses the last trade's unit price
    assert position.market_value == Decimal('910')
    assert position.original_ids == ['t1', 't2', 't3']


def test_net_totals_are_order_independent():
    """Test that every permutation yields the same net quantity and investment"""
    results = set()
    for ordering in permutations(scenario_trades()):
        position = PositionAggregator().aggregate(ordering)['US_X']
        results.add((position.net_quantity, position.net_investment))

    assert results == {(Decimal('7'), Decimal('560'))}


def test_trade_date_range_uses_chronological_order():
    """Test first/last trade dates regardless of input order"""
    trades = list(reversed(scenario_trades()))
    position = PositionAggregator().aggregate(trades)['US_X']

    assert position.first_trade_date == '2024-01-10'
    assert position.last_trade_date == '2024-03-10'


def test_full_liquidation_zeroes_valuation():
    """Test that selling the full quantity leaves zero cost basis and market value"""
    trades = [
        make_trade('buy', 10, 100, 1000),
        make_trade('buy', 5, 120, 600),
        make_trade('sell', 15, 130, 1950),
    ]
    aggregator = PositionAggregator()
    positions = aggregator.aggregate(trades)
    position = positions['US_X']

    assert position.net_quantity == 0
    assert position.cost_basis_value == 0
    assert position.market_value == 0
    assert len(position.transactions) == 3
    assert aggregator.select_active_holdings(positions) == []


def test_average_cost_of_two_buys():
    """Test that cost basis of two buys equals the total amount paid"""
    q1, p1, q2, p2 = Decimal('3'), Decimal('10.5'), Decimal('7'), Decimal('12.25')
    trades = [
        make_trade('buy', q1, p1, q1 * p1),
        make_trade('buy', q2, p2, q2 * p2),
    ]
    position = PositionAggregator().aggregate(trades)['US_X']

    expected = ((q1 * p1 + q2 * p2) / (q1 + q2)) * (q1 + q2)
    assert float(position.cost_basis_value) == pytest.approx(float(expected))
    assert float(position.cost_basis_value) == pytest.approx(float(q1 * p1 + q2 * p2))


def test_market_value_falls_back_to_cost_basis_without_price():
    """Test placeholder market value when the latest trade has no unit price"""
    trades = [
        make_trade('buy', 10, 100, 1000),
        make_trade('buy', 10, 0, 1200),
    ]
    position = PositionAggregator().aggregate(trades)['US_X']

    assert position.market_value == position.cost_basis_value == Decimal('2200')


def test_invalid_side_is_recorded_but_not_accumulated():
    """Test that an unrecognized side produces a diagnostic and no quantity change"""
    trades = [
        make_trade('buy', 10, 100, 1000, transaction_id='good'),
        make_trade('dividend', 0, 0, 50, '2024-06-01', transaction_id='bad', account='NISA'),
    ]
    aggregator = PositionAggregator()
    position = aggregator.aggregate(trades)['US_X']

    assert position.net_quantity == Decimal('10')
    assert position.total_buy_amount == Decimal('1000')
    assert len(position.transactions) == 2
    assert 'bad' in position.original_ids
    assert position.last_trade_date == '2024-06-01'
    assert position.account_types == {'Specific', 'NISA'}

    assert len(aggregator.diagnostics) == 1
    warning = aggregator.diagnostics[0]
    assert warning.transaction_id == 'bad'
    assert warning.instrument_key == 'US_X'


def test_non_numeric_quantity_is_recorded_but_not_accumulated():
    """Test that a malformed quantity is excluded from accumulation"""
    malformed = TradeRecord.from_dict({
        'id': 'm1', 'name': 'Example Corp', 'region': 'US', 'ticker': 'X',
        'tradeType': 'buy', 'quantity': 'ten', 'unitPrice': '100', 'amount': '1000',
        'date': '2024-01-01',
    })
    aggregator = PositionAggregator()
    position = aggregator.aggregate([make_trade('buy', 2, 100, 200), malformed])['US_X']

    assert position.net_quantity == Decimal('2')
    assert len(position.transactions) == 2
    assert [w.transaction_id for w in aggregator.diagnostics] == ['m1']


def test_diagnostics_reset_between_runs():
    """Test that each aggregation starts with empty diagnostics"""
    aggregator = PositionAggregator()
    aggregator.aggregate([make_trade('transfer', 1, 1, 1)])
    assert len(aggregator.diagnostics) == 1

    aggregator.aggregate([make_trade('buy', 1, 1, 1)])
    assert aggregator.diagnostics == []


def test_instrument_keys_by_region():
    """Test grouping keys for JP, US and other instruments"""
    trades = [
        make_trade('buy', 1, 1, 1, region='JP', code='7203', market='TSE', ticker=''),
        make_trade('buy', 1, 1, 1, region='JP', code='7203', market='NSE', ticker=''),
        make_trade('buy', 1, 1, 1, region='US', ticker='AAPL'),
        make_trade('buy', 1, 1, 1, region='FUND', name='Global Index Fund', ticker=''),
        make_trade('buy', 1, 1, 1, region='FUND', name='Global Index Fund', ticker=''),
    ]
    positions = PositionAggregator().aggregate(trades)

    assert list(positions) == ['JP_7203_TSE', 'JP_7203_NSE', 'US_AAPL', 'OTHER_Global Index Fund']
    assert positions['OTHER_Global Index Fund'].net_quantity == 2


def test_zero_cost_position_is_not_active():
    """Test that residual quantity with zero cost basis is excluded"""
    aggregator = PositionAggregator()
    positions = aggregator.aggregate([make_trade('buy', 10, 0, 0)])

    assert positions['US_X'].net_quantity == 10
    assert aggregator.select_active_holdings(positions) == []


def test_summary_totals_and_breakdowns():
    """Test summary totals, breakdowns and account multi-counting"""
    trades = [
        make_trade('buy', 10, 100, 1000, ticker='AAA', account='Specific'),
        make_trade('buy', 10, 110, 1000, ticker='AAA', account='NISA'),
        make_trade('buy', 10, 30, 300, ticker='BBB', account='NISA'),
        make_trade('buy', 1, 500, 500, region='JP', code='7203', market='TSE',
                   ticker='', currency='JPY', account='Specific'),
    ]
    aggregator = PositionAggregator()
    holdings = aggregator.select_active_holdings(aggregator.aggregate(trades))
    summary = aggregator.summarize(holdings)

    assert summary.total_holdings == 3
    assert summary.total_cost_basis_value == Decimal('2800')
    # AAA valued at 110 * 20, BBB at 30 * 10, JP at 500
    assert summary.total_market_value == Decimal('3000')
    assert summary.unrealized_gain_loss == Decimal('200')

    assert summary.regions['US'].count == 2
    assert summary.regions['US'].value == Decimal('2300')
    assert summary.currencies['JPY'].value == Decimal('500')
    # AAA has both account labels and contributes its full value to each
    assert summary.accounts['Specific'].count == 2
    assert summary.accounts['Specific'].value == Decimal('2500')
    assert summary.accounts['NISA'].value == Decimal('2300')

    assert [h.identifier for h in summary.top_holdings] == ['AAA', '7203', 'BBB']
    assert sum(h.percentage for h in summary.top_holdings) == pytest.approx(100.0)
    assert summary.top_holdings[0].percentage == pytest.approx(2000 / 2800 * 100)


def test_summary_top_holdings_limit():
    """Test that only the configured number of top holdings is returned"""
    trades = [make_trade('buy', 1, i, i, ticker=f"T{i}") for i in range(1, 13)]
    aggregator = PositionAggregator(top_holdings_limit=10)
    summary = aggregator.summarize(aggregator.select_active_holdings(aggregator.aggregate(trades)))

    assert len(summary.top_holdings) == 10
    assert summary.top_holdings[0].identifier == 'T12'


def test_summary_of_empty_portfolio():
    """Test that an empty holdings set yields zero totals"""
    summary = PositionAggregator().summarize([])

    assert summary.total_holdings == 0
    assert summary.total_cost_basis_value == 0
    assert summary.top_holdings == []
    assert summary.to_dict()['unrealized_gain_loss'] == 0.0


def test_analyze_portfolio_pipeline():
    """Test the aggregate-select-summarize convenience pipeline"""
    trades = scenario_trades() + [make_trade('buy', 5, 10, 50, ticker='Y')]
    result = PositionAggregator().analyze_portfolio(trades)

    assert result['success'] is True
    assert set(result['data']['aggregated_positions']) == {'US_X', 'US_Y'}
    assert len(result['data']['active_holdings']) == 2
    assert result['data']['summary'].total_holdings == 2
    assert result['diagnostics'] == []


def test_position_summary_view():
    """Test the float-converted position summary"""
    position = PositionAggregator().aggregate(scenario_trades())['US_X']
    summary = position.get_position_summary()

    assert summary['key'] == 'US_X'
    assert summary['net_quantity'] == 7.0
    assert summary['cost_basis_value'] == pytest.approx(746.67, abs=0.01)
    assert summary['number_of_trades'] == 3
    assert summary['accounts'] == ['Specific']
    assert summary['sector'] is None


def test_missing_quantity_is_reported_not_accumulated():
    """Test that a buy without quantity leaves net investment untouched"""
    missing = TradeRecord.from_dict({
        'id': 'q0', 'name': 'Example Corp', 'region': 'US', 'ticker': 'X',
        'side': 'buy', 'amount': '1000', 'date': '2024-01-02',
    })
    aggregator = PositionAggregator()
    position = aggregator.aggregate([make_trade('buy', 2, 100, 200), missing])['US_X']

    assert position.net_investment == Decimal('200')
    assert position.net_quantity == Decimal('2')
    assert 'q0' in position.original_ids
    assert [w.transaction_id for w in aggregator.diagnostics] == ['q0']


def test_infinite_quantity_does_not_abort_aggregation():
    """Test that non-finite input yields a diagnostic instead of an exception"""
    infinite = TradeRecord.from_dict({
        'id': 'inf', 'name': 'Example Corp', 'region': 'US', 'ticker': 'X',
        'side': 'buy', 'quantity': float('inf'), 'amount': 100,
    })
    aggregator = PositionAggregator()
    positions = aggregator.aggregate([infinite, make_trade('buy', 1, 50, 50)])

    position = positions['US_X']
    assert position.net_quantity == Decimal('1')
    assert position.cost_basis_value == Decimal('50')
    assert [w.transaction_id for w in aggregator.diagnostics] == ['inf']


def test_infinite_unit_price_falls_back_to_cost_basis():
    trade = replace(make_trade('buy', 2, 1, 300), unit_price=Decimal('Infinity'))
    position = PositionAggregator().aggregate([trade])['US_X']

    assert position.market_value == position.cost_basis_value == Decimal('300')
