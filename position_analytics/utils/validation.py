"""
Value Parsing and Validation Helpers

Normalizes loosely-typed broker values (amount strings with separators and
currency symbols, localized trade sides, slash-separated dates) into the
types used by TradeRecord.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional
import re

import pandas as pd


_STRIP_AMOUNT = re.compile(r"[,¥$\s]")
_STRIP_QUANTITY = re.compile(r"[,\s]")
_DATE_CHARS = re.compile(r"[^\d/\-]")

BUY_MARKERS = ('買', 'buy')
SELL_MARKERS = ('売', 'sell')


def _to_decimal(value: Any, pattern: re.Pattern) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        number = Decimal(str(value))
    else:
        cleaned = pattern.sub('', str(value))
        if not cleaned:
            return None
        try:
            number = Decimal(cleaned)
        except InvalidOperation:
            return None

    # NaN and infinities cannot be accumulated
    if not number.is_finite():
        return None
    return number.copy_abs()


def parse_amount(value: Any) -> Optional[Decimal]:
    """
    Parse a monetary amount.

    Thousands separators, yen/dollar signs and whitespace are stripped and the
    absolute value is returned.

    Args:
        value: Raw amount (string, number or None)

    Returns:
        Non-negative Decimal, or None when the value is missing, blank,
        non-numeric or not finite
    """
    return _to_decimal(value, _STRIP_AMOUNT)


def parse_quantity(value: Any) -> Optional[Decimal]:
    """Parse a share/unit quantity; same rules as parse_amount without currency symbols."""
    return _to_decimal(value, _STRIP_QUANTITY)


def normalize_trade_side(value: Any) -> str:
    """
    Normalize a broker trade side label.

    Returns 'buy' or 'sell' when the label contains a known marker, otherwise
    the stripped lower-cased raw label so validation can report it.
    """
    normalized = str(value or '').strip().lower()
    if any(marker in normalized for marker in BUY_MARKERS):
        return 'buy'
    if any(marker in normalized for marker in SELL_MARKERS):
        return 'sell'
    return normalized


def parse_trade_date(value: Any) -> str:
    """
    Parse a trade date into an ISO 'YYYY-MM-DD' string.

    Args:
        value: Date string such as '2024/01/15' or '2024-01-15', or a date object

    Returns:
        ISO date string, or '' when the value cannot be parsed
    """
    if value is None:
        return ''
    if hasattr(value, 'strftime'):
        return value.strftime('%Y-%m-%d')

    cleaned = _DATE_CHARS.sub('', str(value))
    if not cleaned:
        return ''
    parsed = pd.to_datetime(cleaned, errors='coerce')
    if pd.isna(parsed):
        return ''
    return parsed.strftime('%Y-%m-%d')
