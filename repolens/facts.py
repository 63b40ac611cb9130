"""Load FileFact records from JSON documents produced by upstream parsers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .hints import classify_api_hint, classify_event_hint, classify_state_hint
from .models import ClassFact, Decorator, FileFact, FunctionFact


class FactFormatError(ValueError):
    """Raised when a facts document does not match the FileFact schema."""


def load_facts(path: Path) -> Dict[str, FileFact]:
    """Read a facts document from disk."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise FactFormatError(f"Unable to read facts from {path}: {exc}") from exc
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise FactFormatError(f"{path.name} is not valid JSON: {exc}") from exc
    return facts_from_mapping(data)


def facts_from_mapping(data: Any) -> Dict[str, FileFact]:
    """Build the FileFact map from ``{path: fact}`` or a list of facts.

    Insertion order of the document is preserved; it decides iteration order
    for every downstream phase.
    """
    facts: Dict[str, FileFact] = {}
    if isinstance(data, Mapping):
        for path, raw in data.items():
            if not isinstance(raw, Mapping):
                raise FactFormatError(f"Fact for {path!r} must be an object")
            fact = file_fact_from_dict(raw, path=str(path))
            facts[fact.path] = fact
    elif isinstance(data, list):
        for index, raw in enumerate(data):
            if not isinstance(raw, Mapping):
                raise FactFormatError(f"Fact #{index} must be an object")
            fact = file_fact_from_dict(raw)
            facts[fact.path] = fact
    else:
        raise FactFormatError("Facts document must be an object or a list")
    return facts


def file_fact_from_dict(raw: Mapping[str, Any], *, path: Optional[str] = None) -> FileFact:
    file_path = path or raw.get("path")
    if not isinstance(file_path, str) or not file_path:
        raise FactFormatError("Every fact needs a non-empty 'path'")

    error = raw.get("error")
    return FileFact(
        path=file_path,
        language=str(raw.get("language") or "unknown").lower(),
        imports=_imports(raw.get("imports"), file_path),
        functions={
            str(signature): _function(info, file_path)
            for signature, info in _mapping(raw.get("functions"), "functions", file_path).items()
        },
        classes={
            str(name): _class(info, file_path)
            for name, info in _mapping(raw.get("classes"), "classes", file_path).items()
        },
        api_endpoints=[
            classify_api_hint(item) for item in _list(raw.get("api_endpoints")) if isinstance(item, Mapping)
        ],
        error=str(error) if error else None,
        lines=raw.get("lines") if isinstance(raw.get("lines"), int) else None,
        extension=raw.get("extension") if isinstance(raw.get("extension"), str) else None,
    )


def _function(raw: Any, file_path: str) -> FunctionFact:
    if not isinstance(raw, Mapping):
        raise FactFormatError(f"Function entries in {file_path} must be objects")
    line = raw.get("line_number")
    return FunctionFact(
        docstring=raw.get("docstring") if isinstance(raw.get("docstring"), str) else None,
        parameters=[str(item) for item in _list(raw.get("parameters"))],
        is_async=bool(raw.get("is_async", False)),
        line_number=line if isinstance(line, int) else 0,
        decorators=_decorators(raw.get("decorators")),
        is_component=bool(raw.get("is_component", False)),
        is_hook=bool(raw.get("is_hook", False)),
        state_changes=[classify_state_hint(str(item)) for item in _list(raw.get("state_changes"))],
        event_handlers=[classify_event_hint(str(item)) for item in _list(raw.get("event_handlers"))],
        api_endpoints=[
            classify_api_hint(item) for item in _list(raw.get("api_endpoints")) if isinstance(item, Mapping)
        ],
    )


def _class(raw: Any, file_path: str) -> ClassFact:
    if not isinstance(raw, Mapping):
        raise FactFormatError(f"Class entries in {file_path} must be objects")
    line = raw.get("line_number")
    return ClassFact(
        docstring=raw.get("docstring") if isinstance(raw.get("docstring"), str) else None,
        base_classes=[str(item) for item in _list(raw.get("base_classes"))],
        methods={
            str(signature): _function(info, file_path)
            for signature, info in _mapping(raw.get("methods"), "methods", file_path).items()
        },
        decorators=_decorators(raw.get("decorators")),
        is_component=bool(raw.get("is_component", False)),
        line_number=line if isinstance(line, int) else 0,
    )


def _decorators(raw: Any) -> List[Decorator]:
    decorators: List[Decorator] = []
    for item in _list(raw):
        if isinstance(item, str):
            decorators.append(Decorator(name=item))
        elif isinstance(item, Mapping) and item.get("name"):
            arguments = [str(arg) for arg in _list(item.get("arguments"))]
            decorators.append(Decorator(name=str(item["name"]), arguments=arguments))
    return decorators


def _imports(raw: Any, file_path: str) -> Dict[str, List[str]]:
    imports: Dict[str, List[str]] = {}
    for module, names in _mapping(raw, "imports", file_path).items():
        if isinstance(names, str):
            imports[str(module)] = [names]
        else:
            imports[str(module)] = [str(name) for name in _list(names)]
    return imports


def _mapping(value: Any, label: str, file_path: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise FactFormatError(f"'{label}' in {file_path} must be an object")
    return value


def _list(value: Any) -> List[Any]:
    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    return []


__all__ = ["FactFormatError", "facts_from_mapping", "file_fact_from_dict", "load_facts"]
