"""Depth-bounded circular dependency detection."""

from __future__ import annotations

from typing import Iterator, List, Set, Tuple

from ..logging import get_logger
from ..models import CircularDependency, DependencyGraph

DEFAULT_MAX_DEPTH = 10

_logger = get_logger("graph.cycles")

# (file, path leading to it, remaining dependencies)
_Frame = Tuple[str, List[str], Iterator[str]]


class CycleDetector:
    """Find import cycles with a depth-first walk over a dependency graph.

    Only dependencies that are themselves graph keys are followed, so external
    modules are leaves.  Walks deeper than ``max_depth`` are abandoned without
    reporting anything.
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        if max_depth < 0:
            raise ValueError("max_depth must be non-negative")
        self.max_depth = max_depth

    def detect(self, graph: DependencyGraph) -> List[CircularDependency]:
        cycles: List[CircularDependency] = []
        visited: Set[str] = set()
        for start in graph:
            if start not in visited:
                self._walk(start, graph, visited, cycles)
        if cycles:
            _logger.debug("Found %d circular dependency chain(s)", len(cycles))
        return cycles

    def _walk(
        self,
        start: str,
        graph: DependencyGraph,
        visited: Set[str],
        cycles: List[CircularDependency],
    ) -> None:
        on_path: Set[str] = set()
        stack: List[_Frame] = []

        def enter(file: str, path: List[str]) -> None:
            if len(path) > self.max_depth:
                return
            if file in on_path:
                chain = path[path.index(file):] + [file]
                cycles.append(CircularDependency(chain=chain, files=list(dict.fromkeys(chain))))
                return
            if file in visited:
                return
            on_path.add(file)
            stack.append((file, path, iter(graph.get(file, []))))

        enter(start, [])
        while stack:
            file, path, remaining = stack[-1]
            for dep in remaining:
                if dep in graph:
                    enter(dep, path + [file])
                    break
            else:
                stack.pop()
                on_path.discard(file)
                visited.add(file)


__all__ = ["CycleDetector", "DEFAULT_MAX_DEPTH"]
