"""Resolve relative import specifiers to files in the analyzed set."""

from __future__ import annotations

import posixpath
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from ..logging import get_logger
from ..models import DependencyGraph, FileFact

# Probed in order; the first one present in the analyzed set wins.
CANDIDATE_SUFFIXES: Tuple[str, ...] = (
    "",
    ".js",
    ".ts",
    ".jsx",
    ".tsx",
    ".py",
    "/index.js",
    "/index.ts",
    "/index.jsx",
    "/index.tsx",
    "/__init__.py",
)

_logger = get_logger("graph.resolver")


class DependencyResolver:
    """Build a file -> dependency graph from per-file import tables.

    Relative specifiers (``./x``, ``../y``) resolve to files in the analyzed
    set or are dropped; anything else is kept verbatim as an external module.
    """

    def __init__(self) -> None:
        self._known: Set[str] = set()
        self._cache: Dict[Tuple[str, str], Optional[str]] = {}

    def build_graph(self, files: Mapping[str, FileFact]) -> DependencyGraph:
        self._known = {path for path, fact in files.items() if not fact.error}
        self._cache = {}
        graph: DependencyGraph = {}
        for path, fact in files.items():
            if fact.error:
                continue
            deps = self._file_dependencies(path, fact)
            if deps:
                graph[path] = deps
        _logger.debug(
            "Dependency graph: %d file(s) with dependencies out of %d", len(graph), len(self._known)
        )
        return graph

    def _file_dependencies(self, path: str, fact: FileFact) -> List[str]:
        deps: Set[str] = set()
        for module, names in fact.imports.items():
            if not module or not names:
                continue
            if module.startswith("."):
                resolved = self.resolve(path, module)
                if resolved is not None:
                    deps.add(resolved)
            else:
                deps.add(module)
        return sorted(deps)

    def resolve(self, from_file: str, specifier: str) -> Optional[str]:
        """Return the analyzed file ``specifier`` points at, if any.

        Resolution runs against the file set of the latest :meth:`build_graph`
        call; results, including misses, are memoized until the next one.
        """
        key = (from_file, specifier)
        if key in self._cache:
            return self._cache[key]

        resolved: Optional[str] = None
        target = posixpath.normpath(posixpath.join(posixpath.dirname(from_file), specifier))
        if target != ".." and not target.startswith("../"):
            for suffix in CANDIDATE_SUFFIXES:
                candidate = f"{target}{suffix}" if target != "." else suffix.lstrip("/")
                if candidate in self._known:
                    resolved = candidate
                    break

        self._cache[key] = resolved
        return resolved


def graph_stats(graph: DependencyGraph) -> Dict[str, Any]:
    """Count edges, splitting them into in-graph and external targets."""
    internal = 0
    external = 0
    for deps in graph.values():
        for dep in deps:
            if dep in graph:
                internal += 1
            else:
                external += 1
    return {
        "files_with_dependencies": len(graph),
        "total_dependencies": internal + external,
        "internal_dependencies": internal,
        "external_dependencies": external,
    }


__all__ = ["CANDIDATE_SUFFIXES", "DependencyResolver", "graph_stats"]
