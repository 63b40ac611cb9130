"""Configuration loading for repolens (.repolens.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .aggregator import AggregationOptions
from .graph.cycles import DEFAULT_MAX_DEPTH
from .patterns import DETECTOR_NAMES, validate_detector_names
from .patterns.catalog import DEFAULT_CATALOG, FrameworkOverride, PatternCatalog

CONFIG_FILENAME = ".repolens.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class AggregationConfig:
    """Aggregation toggles from the ``aggregation`` section."""

    include_frameworks: bool = True
    detect_circular_dependencies: bool = True
    max_circular_depth: int = DEFAULT_MAX_DEPTH
    parallel: bool = False


@dataclass
class DetectorConfig:
    """Detector enablement."""

    enabled: List[str] = field(default_factory=lambda: list(DETECTOR_NAMES))


@dataclass
class RepolensConfig:
    """Represents the settings defined in .repolens.yml."""

    root: Path
    aggregation: AggregationConfig = field(default_factory=AggregationConfig)
    detectors: DetectorConfig = field(default_factory=DetectorConfig)
    frameworks: Dict[str, FrameworkOverride] = field(default_factory=dict)

    def catalog(self) -> PatternCatalog:
        """Return the default catalog with framework overrides applied."""
        if not self.frameworks:
            return DEFAULT_CATALOG
        try:
            return DEFAULT_CATALOG.with_overrides(self.frameworks)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc

    def to_options(self, repository_path: Optional[str] = None) -> AggregationOptions:
        """Build aggregation options; unknown detector names raise ``ValueError``."""
        validate_detector_names(self.detectors.enabled)
        return AggregationOptions(
            repository_path=repository_path or str(self.root),
            include_frameworks=self.aggregation.include_frameworks,
            detect_circular_dependencies=self.aggregation.detect_circular_dependencies,
            max_circular_depth=self.aggregation.max_circular_depth,
            parallel=self.aggregation.parallel,
            detectors=list(self.detectors.enabled),
            catalog=self.catalog(),
        )


def load_config(config_path: Path) -> RepolensConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return RepolensConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")
    return config_from_mapping(data, root=root)


def config_from_mapping(data: Dict[str, Any], *, root: Path) -> RepolensConfig:
    aggregation = AggregationConfig()
    aggregation_data = _as_dict(data.get("aggregation"))
    if aggregation_data:
        include = _as_bool(aggregation_data.get("include_frameworks"))
        if include is not None:
            aggregation.include_frameworks = include
        detect = _as_bool(aggregation_data.get("detect_circular_dependencies"))
        if detect is not None:
            aggregation.detect_circular_dependencies = detect
        depth = _as_int(aggregation_data.get("max_circular_depth"))
        if depth is not None:
            if depth < 0:
                raise ConfigError("aggregation.max_circular_depth must be non-negative")
            aggregation.max_circular_depth = depth
        parallel = _as_bool(aggregation_data.get("parallel"))
        if parallel is not None:
            aggregation.parallel = parallel

    detectors = DetectorConfig()
    detector_data = _as_dict(data.get("detectors"))
    if detector_data and "enabled" in detector_data:
        detectors.enabled = [name.lower() for name in _as_str_list(detector_data.get("enabled"))]

    frameworks: Dict[str, FrameworkOverride] = {}
    for name, raw in _as_dict(data.get("frameworks")).items():
        override_data = _as_dict(raw)
        min_confidence = _as_float(override_data.get("min_confidence"))
        if min_confidence is not None and not 0.0 <= min_confidence <= 1.0:
            raise ConfigError(f"frameworks.{name}.min_confidence must be between 0 and 1")
        weights: Dict[str, float] = {}
        for pattern_id, raw_weight in _as_dict(override_data.get("weights")).items():
            weight = _as_float(raw_weight)
            if weight is None or weight <= 0:
                raise ConfigError(f"frameworks.{name}.weights.{pattern_id} must be a positive number")
            weights[str(pattern_id)] = weight
        frameworks[str(name)] = FrameworkOverride(min_confidence=min_confidence, weights=weights)

    return RepolensConfig(
        root=root,
        aggregation=aggregation,
        detectors=detectors,
        frameworks=frameworks,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Unable to read {path}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "AggregationConfig",
    "CONFIG_FILENAME",
    "ConfigError",
    "DetectorConfig",
    "RepolensConfig",
    "config_from_mapping",
    "load_config",
]
