"""Import resolution and dependency-cycle detection."""

from __future__ import annotations

from .cycles import CycleDetector
from .resolver import DependencyResolver, graph_stats

__all__ = ["CycleDetector", "DependencyResolver", "graph_stats"]
