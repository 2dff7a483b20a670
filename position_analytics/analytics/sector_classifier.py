"""
Sector Classification Module

This module annotates positions with sector information from user
overrides or static reference tables, and derives sector allocation,
region-by-sector breakdowns and classification data-quality figures.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence
from dataclasses import dataclass, field
from collections import defaultdict
import logging

import numpy as np

from ..core.exceptions import ClassificationError
from ..core.position import Position
from ..data.override_store import InMemoryOverrideStore, OverrideStore, OverrideTable, override_key
from ..data.sector_master import SECTOR_MASTER, SectorTable, standard_sectors
from .risk_manager import calculate_concentration_risk

logger = logging.getLogger(__name__)

SOURCE_OVERRIDE = "override"
SOURCE_REFERENCE = "reference"
SOURCE_DEFAULT = "default"
SOURCE_ERROR = "error"
SECTOR_SOURCES = (SOURCE_OVERRIDE, SOURCE_REFERENCE, SOURCE_DEFAULT, SOURCE_ERROR)


@dataclass
class ClassificationContext:
    """
    Lookup tables injected into the classifier.

    Attributes:
        reference_table: Static {region: {identifier: {sector, sub_sector}}}
        override_store: Durable store for user overrides
        default_sector: Label used when no mapping is found
    """
    reference_table: SectorTable = field(default_factory=lambda: SECTOR_MASTER)
    override_store: OverrideStore = field(default_factory=InMemoryOverrideStore)
    default_sector: str = "Unclassified"


@dataclass
class SectorHolding:
    """Holding contributing to a sector group."""
    name: str
    identifier: str
    value: Decimal


@dataclass
class SectorAllocationEntry:
    """Aggregate for one sector label."""
    sector: str
    count: int
    value: Decimal
    percentage: float
    holdings: List[SectorHolding] = field(default_factory=list)


@dataclass
class SectorAllocation:
    """Sector allocation sorted by value, with the top sectors view."""
    entries: List[SectorAllocationEntry]
    total_value: Decimal
    top_sectors: List[SectorAllocationEntry]


def _holding_of(position: Position) -> SectorHolding:
    return SectorHolding(name=position.name, identifier=position.identifier, value=position.market_value)


class SectorClassifier:
    """
    Sector classification and allocation analysis.

    This class provides:
    - Sector resolution (override, reference table, default)
    - Sector allocation and top sectors
    - Region-by-sector matrix
    - Classification data-quality report
    - Override management with write-through persistence

    The override table is the only mutable state. Hosts running classifiers
    concurrently must serialize set_override/remove_override calls.
    """

    def __init__(self, context: Optional[ClassificationContext] = None, top_sectors_limit: int = 5):
        """
        Initialize the classifier.

        Args:
            context: Reference table, override store and default label
            top_sectors_limit: Number of sectors in the top sectors view
        """
        self.context = context or ClassificationContext()
        self.top_sectors_limit = top_sectors_limit
        self.overrides: OverrideTable = self.context.override_store.load()
        logger.info(f"Sector classifier loaded {len(self.overrides)} overrides")

    def _lookup(self, region: str, identifier: str) -> Optional[Dict[str, str]]:
        override = self.overrides.get(override_key(region, identifier))
        if override is not None:
            return {'sector': override['sector'], 'sub_sector': override['sub_sector'],
                    'source': SOURCE_OVERRIDE}

        region_table = self.context.reference_table.get(region)
        if region_table is not None and not isinstance(region_table, Mapping):
            raise ClassificationError(f"Reference table for {region} is not a mapping")
        reference = region_table.get(identifier) if region_table else None
        if reference is not None:
            return {'sector': reference['sector'], 'sub_sector': reference['sub_sector'],
                    'source': SOURCE_REFERENCE}
        return None

    def classify(self, position: Position) -> Position:
        """
        Return a copy of the position annotated with sector information.

        Lookup errors never propagate; they produce the default labels tagged
        with source 'error'.
        """
        default = self.context.default_sector
        try:
            region = position.region or 'JP'
            match = self._lookup(region, position.identifier)
        except Exception as e:
            logger.warning(f"Sector lookup failed for {position.name}: {e}")
            return position.with_sector(default, default, SOURCE_ERROR)

        if match is None:
            return position.with_sector(default, default, SOURCE_DEFAULT)
        return position.with_sector(match['sector'], match['sub_sector'], match['source'])

    def classify_all(self, positions: Sequence[Position]) -> List[Position]:
        """Classify each position independently, preserving order."""
        classified = [self.classify(p) for p in positions]
        report = self.data_quality_report(classified)
        logger.info(f"Classified {len(classified)} positions, coverage {report['coverage_percentage']:.1f}%")
        return classified

    def allocation(self, classified: Sequence[Position]) -> SectorAllocation:
        """
        Group positions by sector and compute percentage of total market value.

        Args:
            classified: Positions returned by classify_all

        Returns:
            SectorAllocation sorted descending by value
        """
        groups: Dict[str, SectorAllocationEntry] = {}
        for position in classified:
            sector = position.sector or self.context.default_sector
            entry = groups.get(sector)
            if entry is None:
                entry = groups[sector] = SectorAllocationEntry(sector, 0, Decimal('0'), 0.0)
            entry.count += 1
            entry.value += position.market_value
            entry.holdings.append(_holding_of(position))

        total_value = sum((e.value for e in groups.values()), Decimal('0'))
        entries = sorted(groups.values(), key=lambda e: e.value, reverse=True)

        if total_value > 0:
            values = np.array([float(e.value) for e in entries])
            percentages = values / float(total_value) * 100
            for entry, pct in zip(entries, percentages):
                entry.percentage = float(pct)

        return SectorAllocation(
            entries=entries,
            total_value=total_value,
            top_sectors=entries[:self.top_sectors_limit],
        )

    def region_sector_matrix(self, classified: Sequence[Position]) -> Dict[str, Dict[str, Dict[str, Any]]]:
        """
        Cross-tabulate positions by region, then sector.

        Returns:
            {region: {sector: {'count', 'value', 'holdings'}}}
        """
        matrix: Dict[str, Dict[str, Dict[str, Any]]] = {}
        for position in classified:
            region = position.region or 'OTHER'
            sector = position.sector or self.context.default_sector
            cell = matrix.setdefault(region, {}).setdefault(
                sector, {'count': 0, 'value': Decimal('0'), 'holdings': []}
            )
            cell['count'] += 1
            cell['value'] += position.market_value
            cell['holdings'].append(_holding_of(position))
        return matrix

    def data_quality_report(self, classified: Sequence[Position]) -> Dict[str, Any]:
        """
        Count positions by sector source.

        Coverage is the share of positions resolved via reference table or
        override; 0 for an empty input.
        """
        counts: Dict[str, int] = {source: 0 for source in SECTOR_SOURCES}
        value_by_source: Dict[str, Decimal] = defaultdict(Decimal)
        for position in classified:
            source = position.sector_source or SOURCE_DEFAULT
            counts[source] = counts.get(source, 0) + 1
            value_by_source[source] += position.market_value

        total = len(classified)
        covered = counts[SOURCE_REFERENCE] + counts[SOURCE_OVERRIDE]
        return {
            'total': total,
            'counts': counts,
            'coverage': covered,
            'coverage_percentage': covered / total * 100 if total else 0.0,
            'value_by_source': {s: float(value_by_source[s]) for s in SECTOR_SOURCES},
        }

    def generate_sector_analysis(self, classified: Sequence[Position]) -> Dict[str, Any]:
        """
        Build the full sector analysis for a classified portfolio.

        Returns:
            Dictionary with allocation, top sectors, diversification,
            region-sector matrix and data quality
        """
        allocation = self.allocation(classified)
        risk = calculate_concentration_risk(allocation)

        return {
            'timestamp': datetime.now().isoformat(),
            'portfolio': {
                'total_value': float(allocation.total_value),
                'total_holdings': len(classified),
            },
            'sectors': {
                'allocation': allocation.entries,
                'top_sectors': allocation.top_sectors,
                'diversification': {
                    'sector_count': len(allocation.entries),
                    'concentration_risk': risk.to_dict(),
                },
            },
            'region_sector_matrix': self.region_sector_matrix(classified),
            'data_quality': self.data_quality_report(classified),
        }

    def set_override(self, region: str, identifier: str, sector: str, sub_sector: str) -> None:
        """
        Set a user override and persist the override table.

        The override takes precedence over the reference table on every
        subsequent classify call. If the store fails to save, the error
        propagates and the in-memory table is left unchanged.
        """
        key = override_key(region, identifier)
        updated = dict(self.overrides)
        updated[key] = {
            'sector': sector,
            'sub_sector': sub_sector,
            'updated_at': datetime.now().isoformat(),
        }
        self.context.override_store.save(updated)
        self.overrides = updated
        logger.info(f"Sector override set: {key} -> {sector} / {sub_sector}")

    def remove_override(self, region: str, identifier: str) -> bool:
        """
        Remove a user override and persist the override table.

        Returns:
            True if an override was removed
        """
        key = override_key(region, identifier)
        if key not in self.overrides:
            logger.debug(f"No sector override to remove for {key}")
            return False
        updated = {k: v for k, v in self.overrides.items() if k != key}
        self.context.override_store.save(updated)
        self.overrides = updated
        logger.info(f"Sector override removed: {key}")
        return True

    def available_sectors(self, region: str = 'JP') -> List[str]:
        """Standard sectors for the region plus every override sector label."""
        custom = {mapping['sector'] for mapping in self.overrides.values()}
        return sorted(set(standard_sectors(region)) | custom)
