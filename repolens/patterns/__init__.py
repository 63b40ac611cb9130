"""Framework scoring and specialized pattern detectors."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence, Set

from .api import ApiDetector
from .base import PatternDetector
from .catalog import DEFAULT_CATALOG, PatternCatalog
from .events import EventDetector
from .frameworks import FrameworkDetector
from .state import StateDetector

_BUILTIN_FACTORIES: Dict[str, Callable[[PatternCatalog], PatternDetector]] = {
    "api": ApiDetector,
    "state": StateDetector,
    "events": EventDetector,
}

# Framework scoring is not a record detector but can be toggled alongside them.
DETECTOR_NAMES = ("frameworks", *_BUILTIN_FACTORIES)


def validate_detector_names(enabled: Sequence[str]) -> Set[str]:
    """Lowercase ``enabled`` and reject names no detector answers to."""
    requested = {name.lower() for name in enabled}
    missing = requested.difference(DETECTOR_NAMES)
    if missing:
        raise ValueError(f"Unknown detectors requested: {', '.join(sorted(missing))}")
    return requested


def discover_detectors(
    enabled: Optional[Sequence[str]] = None,
    catalog: PatternCatalog = DEFAULT_CATALOG,
) -> List[PatternDetector]:
    """Return instantiated record detectors, honoring optional enabled names."""
    requested = validate_detector_names(enabled) if enabled is not None else None
    detectors: List[PatternDetector] = []
    for name, factory in _BUILTIN_FACTORIES.items():
        if requested is not None and name not in requested:
            continue
        detectors.append(factory(catalog))
    return detectors


__all__ = [
    "ApiDetector",
    "DETECTOR_NAMES",
    "EventDetector",
    "FrameworkDetector",
    "PatternDetector",
    "StateDetector",
    "discover_detectors",
    "validate_detector_names",
]
