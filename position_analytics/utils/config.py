"""
Configuration Module

Analyzer settings with defaults, optionally loaded from a JSON file.
"""

from dataclasses import dataclass, fields
from decimal import Decimal
from pathlib import Path
from typing import Optional, Union
import json

from ..core.exceptions import ConfigurationError


@dataclass
class AnalyzerConfig:
    """Settings shared by the aggregator, classifier and CLI."""
    top_holdings_limit: int = 10
    top_sectors_limit: int = 5
    default_sector: str = "Unclassified"
    base_currency: str = "JPY"
    usd_jpy_rate: Decimal = Decimal('150')  # fixed approximation, no FX feed
    override_path: Optional[str] = None
    log_level: str = "INFO"

    def __post_init__(self):
        self.usd_jpy_rate = Decimal(str(self.usd_jpy_rate))
        if self.top_holdings_limit < 0 or self.top_sectors_limit < 0:
            raise ConfigurationError("Top-N limits must be non-negative")


def load_config(config_path: Union[str, Path, None] = None) -> AnalyzerConfig:
    """
    Load configuration from JSON file.

    Args:
        config_path: Path to configuration JSON file. None returns the defaults.

    Returns:
        AnalyzerConfig instance

    Raises:
        ConfigurationError: If the file is unreadable, not a JSON object, or
            contains unknown keys
    """
    if config_path is None:
        return AnalyzerConfig()

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot load config {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config {config_path} must contain a JSON object")

    known = {f.name for f in fields(AnalyzerConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(f"Unknown config keys: {', '.join(unknown)}")

    return AnalyzerConfig(**data)
