"""
Sector Reference Tables

Static (region, identifier) -> sector mappings. JP entries are keyed by
TSE security code and follow the TSE 33-industry classification; US
entries are keyed by ticker and follow GICS sectors.
"""

from typing import Dict, List

SectorTable = Dict[str, Dict[str, Dict[str, str]]]


def _entry(sector: str, sub_sector: str) -> Dict[str, str]:
    return {'sector': sector, 'sub_sector': sub_sector}


SECTOR_MASTER: SectorTable = {
    'JP': {
        '1332': _entry('Fishery, Agriculture & Forestry', 'Fishery, Agriculture & Forestry'),
        '1605': _entry('Mining', 'Mining'),
        '2269': _entry('Foods', 'Foods'),
        '3402': _entry('Textiles & Apparels', 'Textiles & Apparels'),
        '3861': _entry('Pulp & Paper', 'Pulp & Paper'),
        '4005': _entry('Chemicals', 'Chemicals'),
        '4502': _entry('Pharmaceutical', 'Pharmaceutical'),
        '5020': _entry('Oil & Coal Products', 'Oil & Coal Products'),
        '5108': _entry('Rubber Products', 'Rubber Products'),
        '5201': _entry('Glass & Ceramics Products', 'Glass & Ceramics Products'),
        '5401': _entry('Iron & Steel', 'Iron & Steel'),
        '5713': _entry('Nonferrous Metals', 'Nonferrous Metals'),
        '5938': _entry('Metal Products', 'Metal Products'),
        '6301': _entry('Machinery', 'Construction Machinery'),
        '6501': _entry('Electric Appliances', 'Electric Appliances'),
        '6758': _entry('Electric Appliances', 'Consumer Electronics'),
        '6861': _entry('Electric Appliances', 'Sensors & Automation'),
        '7011': _entry('Machinery', 'Heavy Machinery'),
        '7203': _entry('Transportation Equipment', 'Automobiles'),
        '7267': _entry('Transportation Equipment', 'Automobiles'),
        '7751': _entry('Electric Appliances', 'Precision Instruments'),
        '8001': _entry('Wholesale Trade', 'Trading Companies'),
        '8031': _entry('Wholesale Trade', 'Trading Companies'),
        '8058': _entry('Wholesale Trade', 'Trading Companies'),
        '8306': _entry('Banks', 'Banks'),
        '9020': _entry('Land Transportation', 'Railways'),
        '9432': _entry('Information & Communication', 'Telecommunications'),
        '9434': _entry('Information & Communication', 'Telecommunications'),
        '9984': _entry('Information & Communication', 'Telecommunications'),
    },
    'US': {
        'AAPL': _entry('Technology', 'Technology Hardware & Equipment'),
        'MSFT': _entry('Technology', 'Software & Services'),
        'GOOGL': _entry('Communication Services', 'Interactive Media & Services'),
        'AMZN': _entry('Consumer Discretionary', 'Internet & Direct Marketing Retail'),
        'TSLA': _entry('Consumer Discretionary', 'Automobiles'),
        'META': _entry('Communication Services', 'Interactive Media & Services'),
        'NVDA': _entry('Technology', 'Semiconductors'),
        'BRK-B': _entry('Financials', 'Insurance'),
        'BRK.B': _entry('Financials', 'Insurance'),
        'JPM': _entry('Financials', 'Banks'),
        'JNJ': _entry('Health Care', 'Pharmaceuticals'),
        'V': _entry('Technology', 'Data Processing & Outsourced Services'),
        'PG': _entry('Consumer Staples', 'Household Products'),
        'UNH': _entry('Health Care', 'Health Care Equipment & Services'),
        'HD': _entry('Consumer Discretionary', 'Home Improvement Retail'),
        'MA': _entry('Technology', 'Data Processing & Outsourced Services'),
        'DIS': _entry('Communication Services', 'Media & Entertainment'),
        'ADBE': _entry('Technology', 'Software & Services'),
        'NFLX': _entry('Communication Services', 'Media & Entertainment'),
        'CRM': _entry('Technology', 'Software & Services'),
        'VTI': _entry('ETF', 'Total Stock Market ETF'),
        'VOO': _entry('ETF', 'S&P 500 ETF'),
        'VYM': _entry('ETF', 'High Dividend Yield ETF'),
        'QQQ': _entry('ETF', 'Technology ETF'),
        'SPY': _entry('ETF', 'S&P 500 ETF'),
    },
}

JP_STANDARD_SECTORS: List[str] = [
    'Fishery, Agriculture & Forestry', 'Mining', 'Construction', 'Foods',
    'Textiles & Apparels', 'Pulp & Paper', 'Chemicals', 'Pharmaceutical',
    'Oil & Coal Products', 'Rubber Products', 'Glass & Ceramics Products',
    'Iron & Steel', 'Nonferrous Metals', 'Metal Products', 'Machinery',
    'Electric Appliances', 'Transportation Equipment', 'Precision Instruments',
    'Other Products', 'Electric Power & Gas', 'Land Transportation',
    'Marine Transportation', 'Air Transportation', 'Warehousing & Harbor Transportation',
    'Information & Communication', 'Wholesale Trade', 'Retail Trade', 'Banks',
    'Securities & Commodity Futures', 'Insurance', 'Other Financing Business',
    'Real Estate', 'Services',
]

GICS_SECTORS: List[str] = [
    'Technology', 'Health Care', 'Financials', 'Consumer Discretionary',
    'Communication Services', 'Industrials', 'Consumer Staples',
    'Energy', 'Utilities', 'Real Estate', 'Materials', 'ETF',
]


def standard_sectors(region: str) -> List[str]:
    """Standard sector labels for a region: TSE 33 for JP, GICS otherwise."""
    return list(JP_STANDARD_SECTORS if region == 'JP' else GICS_SECTORS)
