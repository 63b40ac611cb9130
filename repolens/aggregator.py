"""Fuse framework, pattern and dependency analysis into one report."""

from __future__ import annotations

import posixpath
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from functools import partial
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Set, TypeVar

from . import ENGINE_VERSION
from .graph import CycleDetector, DependencyResolver, graph_stats
from .graph.cycles import DEFAULT_MAX_DEPTH
from .logging import get_logger, log_phase
from .models import (
    AnalysisResult,
    ApiEndpointRecord,
    CircularDependency,
    EventHandlerRecord,
    FileFact,
    FrameworkDetection,
    StatePatternRecord,
)
from .patterns import FrameworkDetector, discover_detectors, validate_detector_names
from .patterns.base import FileRecord
from .patterns.catalog import DEFAULT_CATALOG, PatternCatalog

logger = get_logger("aggregator")

ROOT_FOLDER = "root"

_RECORD_FIELDS = {"api": "api_endpoints", "state": "state_patterns", "events": "event_handlers"}

T = TypeVar("T")
R = TypeVar("R", bound=FileRecord)


@dataclass
class AggregationOptions:
    """Knobs for a single aggregation run."""

    repository_path: str = "."
    include_frameworks: bool = True
    detect_circular_dependencies: bool = True
    max_circular_depth: int = DEFAULT_MAX_DEPTH
    parallel: bool = False
    detectors: Optional[List[str]] = None
    catalog: PatternCatalog = DEFAULT_CATALOG


@dataclass
class _Detections:
    frameworks: List[FrameworkDetection] = field(default_factory=list)
    api_endpoints: List[ApiEndpointRecord] = field(default_factory=list)
    state_patterns: List[StatePatternRecord] = field(default_factory=list)
    event_handlers: List[EventHandlerRecord] = field(default_factory=list)


class ResultAggregator:
    """Runs every detection phase over a FileFact map and merges the output."""

    def __init__(self, options: Optional[AggregationOptions] = None) -> None:
        self.options = options or AggregationOptions()
        self._enabled: Optional[Set[str]] = None
        if self.options.detectors is not None:
            self._enabled = validate_detector_names(self.options.detectors)

    def aggregate(
        self, files: Mapping[str, FileFact], start_time: Optional[float] = None
    ) -> AnalysisResult:
        """Build the project report.

        ``start_time`` is a :func:`time.time` timestamp used for the reported
        duration; it defaults to the moment this method is called.
        """
        started = time.time() if start_time is None else start_time
        logger.debug("Aggregating %d file fact(s)", len(files))

        detections = self._detect(files)

        with log_phase(logger, "dependency graph"):
            dependencies = DependencyResolver().build_graph(files)
        cycles: List[CircularDependency] = []
        if self.options.detect_circular_dependencies:
            with log_phase(logger, "cycle detection"):
                cycles = CycleDetector(self.options.max_circular_depth).detect(dependencies)

        enriched = self._enrich(files, detections)
        summary = self._summary(enriched, detections, cycles)

        return AnalysisResult(
            folder_structure=self._folder_structure(enriched),
            summary=summary,
            dependencies=dependencies,
            api_endpoints=detections.api_endpoints,
            circular_dependencies=cycles,
            metadata={
                "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
                "duration_ms": max(int((time.time() - started) * 1000), 0),
                "engine_version": ENGINE_VERSION,
                "repository_path": self.options.repository_path,
            },
        )

    def _wants(self, detector: str) -> bool:
        return self._enabled is None or detector in self._enabled

    def _detect(self, files: Mapping[str, FileFact]) -> _Detections:
        catalog = self.options.catalog
        phases: Dict[str, Callable[[], List[Any]]] = {}
        if self.options.include_frameworks and self._wants("frameworks"):
            phases["frameworks"] = lambda: FrameworkDetector(catalog).detect(files)
        enabled = None if self._enabled is None else sorted(self._enabled - {"frameworks"})
        for detector in discover_detectors(enabled, catalog):
            phases[_RECORD_FIELDS[detector.name]] = partial(detector.detect, files)

        results: Dict[str, List[Any]] = {}
        if self.options.parallel and len(phases) > 1:
            with ThreadPoolExecutor(max_workers=len(phases)) as executor:
                futures = {name: executor.submit(_timed, name, run) for name, run in phases.items()}
                for name, future in futures.items():
                    results[name] = future.result()
        else:
            for name, run in phases.items():
                results[name] = _timed(name, run)
        return _Detections(**results)

    @staticmethod
    def _enrich(files: Mapping[str, FileFact], detections: _Detections) -> Dict[str, FileFact]:
        state_by_file = _group_by_file(detections.state_patterns)
        events_by_file = _group_by_file(detections.event_handlers)
        return {
            path: replace(
                fact,
                state_changes=state_by_file.get(path, []),
                event_handlers=events_by_file.get(path, []),
            )
            for path, fact in files.items()
        }

    @staticmethod
    def _folder_structure(files: Mapping[str, FileFact]) -> Dict[str, List[FileFact]]:
        folders: Dict[str, List[FileFact]] = {}
        for path, fact in files.items():
            folder = posixpath.dirname(path) or ROOT_FOLDER
            folders.setdefault(folder, []).append(fact)
        for members in folders.values():
            members.sort(key=lambda fact: fact.path)
        return folders

    def _summary(
        self,
        files: Mapping[str, FileFact],
        detections: _Detections,
        cycles: Sequence[CircularDependency],
    ) -> Dict[str, Any]:
        languages: Dict[str, int] = {}
        extensions: Dict[str, int] = {}
        total_lines = 0
        for fact in files.values():
            total_lines += fact.lines or 0
            if fact.language:
                languages[fact.language] = languages.get(fact.language, 0) + 1
            if fact.extension:
                extensions[fact.extension] = extensions.get(fact.extension, 0) + 1

        summary: Dict[str, Any] = {
            "total_files": len(files),
            "total_lines": total_lines,
            "languages": languages,
            "extensions": extensions,
        }
        if self.options.include_frameworks and detections.frameworks:
            summary["frameworks"] = {
                detection.name: detection.confidence for detection in detections.frameworks
            }
        summary["api_endpoints"] = len(detections.api_endpoints)
        summary["state_patterns"] = len(detections.state_patterns)
        summary["event_handlers"] = len(detections.event_handlers)
        summary["circular_dependencies"] = len(cycles)
        return summary


def analyze(
    files: Mapping[str, FileFact],
    options: Optional[AggregationOptions] = None,
    *,
    start_time: Optional[float] = None,
) -> AnalysisResult:
    """Aggregate ``files``, substituting an empty report on unexpected failure."""
    options = options or AggregationOptions()
    aggregator = ResultAggregator(options)
    try:
        return aggregator.aggregate(files, start_time)
    except Exception as exc:
        logger.exception("Aggregation failed")
        return AnalysisResult(
            summary={
                "total_files": 0,
                "total_lines": 0,
                "languages": {},
                "extensions": {},
            },
            metadata={
                "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
                "duration_ms": 0,
                "engine_version": ENGINE_VERSION,
                "repository_path": options.repository_path,
                "error": str(exc) or exc.__class__.__name__,
            },
        )


def aggregation_stats(result: AnalysisResult) -> Dict[str, Any]:
    """Describe the shape of an aggregated report."""
    edges = graph_stats(result.dependencies)
    return {
        "aggregation": {
            "folder_count": len(result.folder_structure),
            "file_count": result.summary.get("total_files", 0),
            "language_count": len(result.summary.get("languages", {})),
            "dependency_count": edges["files_with_dependencies"],
            "total_dependencies": edges["total_dependencies"],
            "internal_dependencies": edges["internal_dependencies"],
            "external_dependencies": edges["external_dependencies"],
        },
        "summary": result.summary,
        "metadata": result.metadata,
    }


def _timed(name: str, run: Callable[[], List[T]]) -> List[T]:
    with log_phase(logger, name):
        return run()


def _group_by_file(records: Sequence[R]) -> Dict[str, List[R]]:
    groups: Dict[str, List[R]] = {}
    for record in records:
        groups.setdefault(record.file, []).append(record)
    return groups


__all__ = ["AggregationOptions", "ROOT_FOLDER", "ResultAggregator", "aggregation_stats", "analyze"]
