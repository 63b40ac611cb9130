"""Shared plumbing for the pattern detectors."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections import Counter
from typing import Any, Callable, Dict, Generic, Iterable, List, Mapping, Protocol, TypeVar

from ..logging import get_logger
from ..models import FileFact, RouteParameter
from .catalog import DEFAULT_CATALOG, PatternCatalog


class FileRecord(Protocol):
    """Anything attributed to a line of a file: endpoints, state patterns, handlers."""

    file: str
    line: int


RecordT = TypeVar("RecordT", bound=FileRecord)

_ROUTE_PARAM = re.compile(r":([a-zA-Z0-9_]+)")


class PatternDetector(ABC, Generic[RecordT]):
    """Contract for detectors that emit file/line attributed records."""

    name = "detector"

    def __init__(self, catalog: PatternCatalog = DEFAULT_CATALOG) -> None:
        self.catalog = catalog
        self._logger = get_logger(f"patterns.{self.name}")

    def detect(self, files: Mapping[str, FileFact]) -> List[RecordT]:
        """Run the detector over every successfully parsed file."""
        records: List[RecordT] = []
        for path, fact in files.items():
            if fact.error:
                continue
            found = list(self.detect_file(path, fact))
            if found:
                self._logger.debug("%s: %d %s record(s)", path, len(found), self.name)
            records.extend(found)
        records.sort(key=lambda record: (record.file, record.line))
        return records

    @abstractmethod
    def detect_file(self, path: str, fact: FileFact) -> Iterable[RecordT]:
        """Yield records for a single file."""

    @abstractmethod
    def stats(self, records: List[RecordT]) -> Dict[str, Any]:
        """Summarize a list of records produced by :meth:`detect`."""


def function_name(signature: str) -> str:
    """Return the bare name from a ``name(params)`` signature."""
    return signature.split("(", 1)[0] or "anonymous"


def has_import(fact: FileFact, predicate: Callable[[str], bool]) -> bool:
    return any(predicate(module) for module in fact.imports)


def route_parameters(route: str) -> List[RouteParameter]:
    """Extract ``:name`` parameters and ``*`` wildcards from a route."""
    parameters = [RouteParameter(name=name) for name in _ROUTE_PARAM.findall(route)]
    for index in range(route.count("*")):
        parameters.append(RouteParameter(name=f"wildcard{index}", required=False))
    return parameters


def distribution(values: Iterable[str]) -> Dict[str, int]:
    """Count occurrences, keeping first-seen order."""
    return dict(Counter(values))


__all__ = [
    "FileRecord",
    "PatternDetector",
    "distribution",
    "function_name",
    "has_import",
    "route_parameters",
]
