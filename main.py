#!/usr/bin/env python3
"""
Position Analytics
Main entry point: aggregates a broker trade-history CSV into positions and
reports portfolio summary, sector allocation and concentration risk.
"""

import argparse
import json
import logging
import os
import sys
from dataclasses import asdict, is_dataclass
from decimal import Decimal

import pandas as pd

from position_analytics.analytics.sector_classifier import ClassificationContext, SectorClassifier
from position_analytics.core.aggregator import PositionAggregator
from position_analytics.core.exceptions import ConfigurationError
from position_analytics.core.trade import TradeLedger
from position_analytics.data.override_store import InMemoryOverrideStore, JsonOverrideStore
from position_analytics.data.trade_loader import load_trades_csv
from position_analytics.utils.config import load_config


def to_serializable(obj):
    """Convert dataclasses and Decimals in analysis results to JSON-friendly values."""
    if is_dataclass(obj):
        return to_serializable(asdict(obj))
    if isinstance(obj, dict):
        return {str(k): to_serializable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_serializable(v) for v in obj]
    if isinstance(obj, Decimal):
        return float(obj)
    return obj


def run_analysis_pipeline(trades_path, csv_type, config, output_dir=None):
    """
    Run the complete position analysis pipeline.

    Args:
        trades_path: Path to trade-history CSV file
        csv_type: CSV format ('JP', 'US' or 'INVST')
        config: AnalyzerConfig
        output_dir: Optional output directory for JSON and CSV results

    Returns:
        Results dictionary
    """
    print("\n" + "="*60)
    print("POSITION ANALYSIS PIPELINE")
    print("="*60)

    # Step 1: Load trades
    print("\n1. Loading trades...")
    trades = load_trades_csv(trades_path, csv_type)
    ledger = TradeLedger(trades, usd_jpy_rate=config.usd_jpy_rate)
    trade_stats = ledger.calculate_trade_statistics()
    print(f"   ✓ {trade_stats['total']} trades loaded")

    # Step 2: Aggregate positions
    print("\n2. Aggregating positions...")
    aggregator = PositionAggregator(top_holdings_limit=config.top_holdings_limit)
    analysis = aggregator.analyze_portfolio(trades)
    if not analysis['success']:
        raise RuntimeError(analysis['error'])

    data = analysis['data']
    summary = data['summary']
    print(f"   ✓ {len(data['aggregated_positions'])} instruments, {summary.total_holdings} active holdings")
    if analysis['diagnostics']:
        print(f"   ⚠ {len(analysis['diagnostics'])} trades excluded from accumulation")

    # Step 3: Sector classification
    print("\n3. Classifying sectors...")
    store = JsonOverrideStore(config.override_path) if config.override_path else InMemoryOverrideStore()
    context = ClassificationContext(override_store=store, default_sector=config.default_sector)
    classifier = SectorClassifier(context, top_sectors_limit=config.top_sectors_limit)
    classified = classifier.classify_all(data['active_holdings'])
    sector_analysis = classifier.generate_sector_analysis(classified)
    quality = sector_analysis['data_quality']
    print(f"   ✓ Coverage: {quality['coverage_percentage']:.1f}% of {quality['total']} holdings")

    results = {
        'timestamp': analysis['timestamp'],
        'trade_statistics': trade_stats,
        'summary': summary.to_dict(),
        'positions': [p.get_position_summary() for p in classified],
        'sector_analysis': sector_analysis,
        'diagnostics': [vars(w) for w in analysis['diagnostics']],
    }

    if output_dir:
        os.makedirs(output_dir, exist_ok=True)
        results_file = os.path.join(output_dir, 'position_analysis_results.json')
        with open(results_file, 'w', encoding='utf-8') as f:
            json.dump(to_serializable(results), f, indent=2, ensure_ascii=False, default=str)
        print(f"   ✓ Results saved to {results_file}")

        holdings_df = pd.DataFrame(results['positions'])
        holdings_file = os.path.join(output_dir, 'active_holdings.csv')
        holdings_df.drop(columns=['original_ids'], errors='ignore').to_csv(holdings_file, index=False)
        print(f"   ✓ Holdings report saved to {holdings_file}")

    risk = sector_analysis['sectors']['diversification']['concentration_risk']
    print("\n" + "="*60)
    print("PIPELINE COMPLETED SUCCESSFULLY!")
    print("="*60)
    print(f"\nKey Results:")
    print(f"• Cost Basis Value: {float(summary.total_cost_basis_value):,.0f}")
    print(f"• Market Value (last trade price): {float(summary.total_market_value):,.0f}")
    print(f"• Unrealized Gain/Loss: {float(summary.unrealized_gain_loss):,.0f}")
    print(f"• Sector Concentration (HHI): {risk['hhi']:.0f} ({risk['risk_level']})")

    print(f"\nTop Sectors:")
    for entry in sector_analysis['sectors']['top_sectors']:
        print(f"• {entry.sector}: {entry.percentage:.1f}%")

    return results


def main():
    parser = argparse.ArgumentParser(description="Aggregate trade history into positions and sector exposure")
    parser.add_argument("trades", help="Trade-history CSV file path")
    parser.add_argument("--csv-type", default="JP", choices=["JP", "US", "INVST"], help="CSV format")
    parser.add_argument("--config", default=None, help="Configuration JSON file path")
    parser.add_argument("--overrides", default=None, help="Sector override JSON file path")
    parser.add_argument("--output", default=None, help="Output directory")

    args = parser.parse_args()

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        print(f"❌ {e}")
        sys.exit(2)
    if args.overrides:
        config.override_path = args.overrides

    logging.basicConfig(level=getattr(logging, config.log_level.upper(), logging.INFO))

    try:
        run_analysis_pipeline(args.trades, args.csv_type, config, args.output)
        print("\n✅ Pipeline executed successfully!")

    except Exception as e:
        print(f"\n❌ Pipeline failed with error: {str(e)}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
