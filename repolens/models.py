"""Core data models shared across repolens components."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .hints import ApiHint, EventHint, StateHint


@dataclass(frozen=True)
class Decorator:
    """A decorator applied to a function, method or class."""

    name: str
    arguments: List[str] = field(default_factory=list)


@dataclass
class FunctionFact:
    """Structural facts for a single function or method."""

    docstring: Optional[str] = None
    parameters: List[str] = field(default_factory=list)
    is_async: bool = False
    line_number: int = 0
    decorators: List[Decorator] = field(default_factory=list)
    is_component: bool = False
    is_hook: bool = False
    state_changes: List[StateHint] = field(default_factory=list)
    event_handlers: List[EventHint] = field(default_factory=list)
    api_endpoints: List[ApiHint] = field(default_factory=list)


@dataclass
class ClassFact:
    """Structural facts for a class declaration."""

    docstring: Optional[str] = None
    base_classes: List[str] = field(default_factory=list)
    methods: Dict[str, FunctionFact] = field(default_factory=dict)
    decorators: List[Decorator] = field(default_factory=list)
    is_component: bool = False
    line_number: int = 0


@dataclass
class FileFact:
    """Normalized per-file analysis record produced by upstream parsers.

    ``functions`` is keyed by signature (``name(params)``) and ``classes`` by
    class name.  A file with ``error`` set is ignored by every detector and by
    the dependency graph.  ``state_changes`` and ``event_handlers`` stay empty
    on input; the aggregator fills them on enriched copies.
    """

    path: str
    language: str = "unknown"
    imports: Dict[str, List[str]] = field(default_factory=dict)
    functions: Dict[str, FunctionFact] = field(default_factory=dict)
    classes: Dict[str, ClassFact] = field(default_factory=dict)
    api_endpoints: List[ApiHint] = field(default_factory=list)
    error: Optional[str] = None
    lines: Optional[int] = None
    extension: Optional[str] = None
    state_changes: List["StatePatternRecord"] = field(default_factory=list)
    event_handlers: List["EventHandlerRecord"] = field(default_factory=list)


@dataclass(frozen=True)
class RouteParameter:
    name: str
    type: str = "string"
    required: bool = True


@dataclass
class ApiEndpointRecord:
    """An HTTP endpoint attributed to a handler in a specific file."""

    type: str
    method: str
    route: str
    framework: str
    file: str
    line: int
    handler: str
    parameters: List[RouteParameter] = field(default_factory=list)
    middleware: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class StatePatternRecord:
    """A state creation, read or mutation attributed to a container."""

    type: str
    line: int
    mutation_type: str
    context: str
    container: str
    framework: str
    file: str
    variable: Optional[str] = None
    is_async: bool = False
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class EventHandlerRecord:
    """An event handler attributed to a function."""

    type: str
    event: str
    handler: str
    line: int
    framework: str
    file: str
    context: str = "function"
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FrameworkDetection:
    """A framework whose confidence cleared its threshold."""

    name: str
    confidence: float
    evidence_files: List[str]
    patterns_matched: List[str]


@dataclass(frozen=True)
class CircularDependency:
    """A dependency chain that returns to its first file."""

    chain: List[str]
    files: List[str]


DependencyGraph = Dict[str, List[str]]


@dataclass
class AnalysisResult:
    """Project-level report produced by the aggregator."""

    folder_structure: Dict[str, List[FileFact]] = field(default_factory=dict)
    summary: Dict[str, Any] = field(default_factory=dict)
    dependencies: DependencyGraph = field(default_factory=dict)
    api_endpoints: List[ApiEndpointRecord] = field(default_factory=list)
    circular_dependencies: List[CircularDependency] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


__all__ = [
    "AnalysisResult",
    "ApiEndpointRecord",
    "CircularDependency",
    "ClassFact",
    "Decorator",
    "DependencyGraph",
    "EventHandlerRecord",
    "FileFact",
    "FrameworkDetection",
    "FunctionFact",
    "RouteParameter",
    "StatePatternRecord",
]
