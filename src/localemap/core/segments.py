"""Segment translation table.

Maps canonical path segments (e.g., "models") to their localized spellings
(e.g., "modeles" for French) and back.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from localemap.core.locales import LocaleSet

logger = logging.getLogger(__name__)


def load_segment_records(path: Path) -> dict[str, dict[str, str]]:
    """Read segment translation records from a JSON document.

    Raises:
        ValueError: If the document is not an object of objects
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict) or not all(isinstance(v, dict) for v in data.values()):
        raise ValueError(f"Segment translations must be an object of objects: {path}")
    return data


class SegmentTable:
    """Bidirectional mapping between canonical and localized path segments.

    Built once from configuration and never mutated afterwards. Lookups that
    miss fall back to the input segment in both directions.
    """

    __slots__ = ("_forward", "_locales", "_reverse")

    def __init__(self, locales: LocaleSet, records: dict[str, dict[str, str]]) -> None:
        """Initialize table from translation records.

        Args:
            locales: Supported locales
            records: Mapping of concept name to per-locale spellings. Each record
                must carry the default-locale spelling.

        Raises:
            ValueError: If a record lacks the default-locale spelling
        """
        self._locales = locales
        self._forward: dict[str, dict[str, str]] = {}
        self._reverse: dict[str, dict[str, str]] = {loc: {} for loc in locales}

        for concept, record in records.items():
            canonical = record.get(locales.default)
            if not isinstance(canonical, str) or not canonical:
                raise ValueError(
                    f"Segment {concept!r} is missing the {locales.default!r} spelling",
                )
            self._forward[canonical] = {
                loc: record.get(loc) or canonical for loc in locales
            }

        for canonical, spellings in self._forward.items():
            for loc, localized in spellings.items():
                reverse = self._reverse[loc]
                previous = reverse.get(localized)
                if previous is not None and previous != canonical:
                    logger.warning(
                        f"Segment {localized!r} in {loc!r} maps to both "
                        f"{previous!r} and {canonical!r}; using {canonical!r}",
                    )
                reverse[localized] = canonical

    @classmethod
    def from_file(cls, locales: LocaleSet, path: Path) -> SegmentTable:
        """Load table from a JSON document.

        Args:
            locales: Supported locales
            path: JSON file mapping concept names to per-locale spellings

        Returns:
            SegmentTable instance
        """
        return cls(locales, load_segment_records(path))

    def localize(self, locale: str, segment: str) -> str:
        """Return the localized spelling of a canonical segment."""
        spellings = self._forward.get(segment)
        if spellings is None:
            return segment
        return spellings.get(locale, segment)

    def canonical(self, locale: str, segment: str) -> str:
        """Return the canonical segment for a localized spelling."""
        return self._reverse.get(locale, {}).get(segment, segment)

    def __len__(self) -> int:
        return len(self._forward)
