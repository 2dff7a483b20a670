"""
Sector Override Storage

Durable storage for user-defined sector overrides. Overrides are keyed by
'REGION_IDENTIFIER' and persisted as a JSON object.
"""

from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union
import json
import logging

logger = logging.getLogger(__name__)

OverrideTable = Dict[str, Dict[str, str]]


def override_key(region: str, identifier: str) -> str:
    """Storage key for a (region, identifier) pair."""
    return f"{region}_{identifier}"


def _normalize(raw: Any) -> OverrideTable:
    normalized: OverrideTable = {}
    if not isinstance(raw, dict):
        return normalized
    for key, value in raw.items():
        if not key or not isinstance(value, dict) or not value.get('sector'):
            continue
        normalized[str(key)] = {
            'sector': str(value['sector']),
            'sub_sector': str(value.get('sub_sector') or value.get('subSector') or value['sector']),
            'updated_at': str(value.get('updated_at') or value.get('updatedAt') or ''),
        }
    return normalized


class OverrideStore(Protocol):
    """Loads and saves the full override table."""

    def load(self) -> OverrideTable:
        ...

    def save(self, overrides: OverrideTable) -> None:
        ...


class InMemoryOverrideStore:
    """Non-durable store for tests and ephemeral hosts."""

    def __init__(self, initial: Optional[OverrideTable] = None):
        self._data: OverrideTable = _normalize(initial or {})

    def load(self) -> OverrideTable:
        return {k: dict(v) for k, v in self._data.items()}

    def save(self, overrides: OverrideTable) -> None:
        self._data = {k: dict(v) for k, v in overrides.items()}


class JsonOverrideStore:
    """
    JSON file backed override store.

    A missing file loads as an empty table. A corrupt file also loads as
    empty and is overwritten on the next save.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> OverrideTable:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding='utf-8'))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Cannot read sector overrides from {self.path}: {e}")
            return {}
        return _normalize(data)

    def save(self, overrides: OverrideTable) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(overrides, ensure_ascii=False, indent=2, sort_keys=True),
            encoding='utf-8',
        )
        logger.debug(f"Saved {len(overrides)} sector overrides to {self.path}")
