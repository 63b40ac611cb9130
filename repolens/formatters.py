"""Render an :class:`AnalysisResult` as JSON or as compact flat text."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Mapping

from .models import AnalysisResult, ClassFact, FileFact, FunctionFact

KEY_ABBREVIATIONS: Dict[str, str] = {
    "functions": "fn",
    "classes": "cls",
    "imports": "imp",
    "methods": "mth",
    "parameters": "prm",
    "base_classes": "bc",
    "decorators": "dec",
    "is_async": "async",
    "is_component": "comp",
    "api_endpoints": "api",
    "state_changes": "states",
    "event_handlers": "events",
    "language": "lang",
    "docstring": "doc",
    "variable": "var",
    "handler": "hdl",
    "mutation_type": "mut",
    "frameworks": "fw",
    "path": "p",
    "type": "t",
}

# Positional and size counters are noise in the flat rendering.
LINE_NUMBER_KEYS = frozenset(
    {
        "line_number",
        "line",
        "ln",
        "start_line",
        "end_line",
        "lines",
        "characters",
        "non_empty_lines",
        "avg_line_length",
        "total_lines",
        "blank_lines",
        "comment_lines",
        "code_lines",
        "file_size",
        "bytes",
        "word_count",
        "char_count",
    }
)

_FILE_SKIP_KEYS = frozenset({"path", "language", "error"})


@dataclass(frozen=True)
class FlatTextOptions:
    use_abbreviations: bool = True
    skip_empty: bool = True
    remove_line_numbers: bool = True
    file_separator: str = "\n\n"
    content_indent: str = "  "


DEFAULT_FLAT_OPTIONS = FlatTextOptions()


# -- JSON ------------------------------------------------------------------


def function_to_dict(function: FunctionFact) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "docstring": function.docstring,
        "parameters": list(function.parameters),
        "is_async": function.is_async,
        "line_number": function.line_number,
        "decorators": [asdict(decorator) for decorator in function.decorators],
        "is_component": function.is_component,
        "is_hook": function.is_hook,
        "state_changes": [hint.expression for hint in function.state_changes],
        "event_handlers": [hint.expression for hint in function.event_handlers],
        "api_endpoints": [
            _drop_none(
                {"type": hint.raw_type, "method": hint.method, "route": hint.route, "line": hint.line}
            )
            for hint in function.api_endpoints
        ],
    }
    return _drop_none(data)


def class_to_dict(cls: ClassFact) -> Dict[str, Any]:
    return _drop_none(
        {
            "docstring": cls.docstring,
            "base_classes": list(cls.base_classes),
            "methods": {name: function_to_dict(method) for name, method in cls.methods.items()},
            "decorators": [asdict(decorator) for decorator in cls.decorators],
            "is_component": cls.is_component,
            "line_number": cls.line_number,
        }
    )


def file_fact_to_dict(fact: FileFact) -> Dict[str, Any]:
    """Serialize a (possibly enriched) FileFact.

    Per-file state and event records are projected to the fields a reader of
    a single file needs; the full records stay available on the dataclasses.
    """
    data: Dict[str, Any] = {
        "path": fact.path,
        "language": fact.language,
        "imports": {module: list(names) for module, names in fact.imports.items()},
        "functions": {
            signature: function_to_dict(function) for signature, function in fact.functions.items()
        },
        "classes": {name: class_to_dict(cls) for name, cls in fact.classes.items()},
        "error": fact.error,
        "lines": fact.lines,
        "extension": fact.extension,
    }
    if fact.state_changes:
        data["state_changes"] = [
            _drop_none(
                {
                    "type": record.type,
                    "line": record.line,
                    "variable": record.variable,
                    "mutation_type": record.mutation_type,
                }
            )
            for record in fact.state_changes
        ]
    if fact.event_handlers:
        data["event_handlers"] = [
            {
                "type": record.type,
                "event": record.event,
                "handler": record.handler,
                "line": record.line,
                "framework": record.framework,
            }
            for record in fact.event_handlers
        ]
    return _drop_none(data)


def to_dict(result: AnalysisResult) -> Dict[str, Any]:
    """Return a JSON-serializable view of ``result``."""
    return {
        "folder_structure": {
            folder: [file_fact_to_dict(fact) for fact in facts]
            for folder, facts in result.folder_structure.items()
        },
        "summary": result.summary,
        "dependencies": result.dependencies,
        "api_endpoints": [asdict(record) for record in result.api_endpoints],
        "circular_dependencies": [asdict(cycle) for cycle in result.circular_dependencies],
        "metadata": result.metadata,
    }


def to_json(result: AnalysisResult, *, indent: int = 2) -> str:
    return json.dumps(to_dict(result), indent=indent)


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


# -- Flat text -------------------------------------------------------------


def to_flat_text(result: AnalysisResult, options: FlatTextOptions = DEFAULT_FLAT_OPTIONS) -> str:
    """Render one ``<file path="..."/>`` block per file plus a dependency list."""
    files: Dict[str, Dict[str, Any]] = {}
    for facts in result.folder_structure.values():
        for fact in facts:
            files[fact.path] = file_fact_to_dict(fact)

    output: List[str] = []
    for path in sorted(files):
        content = _file_content(files[path], options)
        if content.strip():
            output.append(f'<file path="{path}"/>')
            output.append(content)

    if result.dependencies:
        output.append("\n<dependencies>")
        for path, deps in result.dependencies.items():
            if deps:
                output.append(f"  {path}: {', '.join(deps)}")
        output.append("</dependencies>")

    return options.file_separator.join(output)


def format_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        if "\n" in value or '"' in value:
            escaped = value.replace('"', '\\"').replace("\n", "\\n")
            return f'"{escaped}"'
        return value
    return json.dumps(value, separators=(",", ":"))


def _is_empty(value: Any) -> bool:
    if value is None or value == "":
        return True
    if isinstance(value, (list, tuple, dict)) and not value:
        return True
    return False


def _key(key: str, options: FlatTextOptions) -> str:
    if options.use_abbreviations:
        return KEY_ABBREVIATIONS.get(key, key)
    return key


def _skip_key(key: str, options: FlatTextOptions) -> bool:
    return options.remove_line_numbers and key in LINE_NUMBER_KEYS


def _format_array(items: List[Any], options: FlatTextOptions) -> str:
    if not items:
        return "[]"
    if all(item is None or isinstance(item, (str, int, float, bool)) for item in items):
        return "[" + ", ".join(format_value(item) for item in items) + "]"
    rendered = []
    for index, item in enumerate(items):
        if isinstance(item, Mapping):
            rendered.append(f"[{index}] {_format_object(item, options, inline=True)}")
        else:
            rendered.append(f"[{index}] {format_value(item)}")
    return "\n    ".join(rendered)


def _format_object(obj: Mapping[str, Any], options: FlatTextOptions, *, inline: bool = False) -> str:
    parts: List[str] = []
    for key, value in obj.items():
        if _skip_key(key, options):
            continue
        if options.skip_empty and _is_empty(value):
            continue
        display = _key(key, options)
        if isinstance(value, list):
            parts.append(f"{display}:{_format_array(value, options)}")
        elif isinstance(value, Mapping):
            parts.append(f"{display}:{{{_format_object(value, options, inline=True)}}}")
        else:
            parts.append(f"{display}:{format_value(value)}")
    return ", ".join(parts) if inline else "\n  ".join(parts)


def _file_content(data: Mapping[str, Any], options: FlatTextOptions) -> str:
    indent = options.content_indent
    lines: List[str] = []
    for key, value in data.items():
        if key in _FILE_SKIP_KEYS or _skip_key(key, options):
            continue
        if options.skip_empty and _is_empty(value):
            continue
        display = _key(key, options)

        if key == "imports":
            modules = [
                f"{module}:[{','.join(names)}]" if names else module
                for module, names in value.items()
            ]
            lines.append(f"{indent}{display}: {', '.join(modules)}")
        elif key == "functions":
            lines.append(f"{indent}{display}:")
            for signature, function in value.items():
                lines.extend(_function_lines(signature, function, indent))
        elif key == "classes":
            lines.append(f"{indent}{display}:")
            for name, cls in value.items():
                lines.extend(_class_lines(name, cls, indent))
        elif isinstance(value, list):
            formatted = _format_array(value, options)
            if "\n" in formatted:
                lines.append(f"{indent}{display}:")
                lines.append(f"{indent}  " + formatted.replace("\n", f"\n{indent}  "))
            else:
                lines.append(f"{indent}{display}: {formatted}")
        elif isinstance(value, Mapping):
            formatted = _format_object(value, options)
            if "\n" in formatted:
                lines.append(f"{indent}{display}:")
                lines.append(f"{indent}  " + formatted.replace("\n", f"\n{indent}  "))
            else:
                lines.append(f"{indent}{display}: {{{formatted}}}")
        else:
            lines.append(f"{indent}{display}: {format_value(value)}")
    return "\n".join(lines)


def _function_lines(signature: str, function: Mapping[str, Any], indent: str) -> List[str]:
    line = f"{indent}  {'async ' if function.get('is_async') else ''}{signature}"
    params = function.get("parameters") or []
    if params and "(" not in signature:
        line += f"({', '.join(params)})"
    lines = [line]
    docstring = function.get("docstring")
    if docstring:
        lines.append(f"{indent}    doc: {format_value(docstring)}")
    return lines


def _class_lines(name: str, cls: Mapping[str, Any], indent: str) -> List[str]:
    line = f"{indent}  {name}"
    bases = cls.get("base_classes") or []
    if bases:
        line += f"({', '.join(bases)})"
    if cls.get("is_component"):
        line += " [component]"
    lines = [line]
    docstring = cls.get("docstring")
    if docstring:
        lines.append(f"{indent}    doc: {format_value(docstring)}")
    methods = cls.get("methods") or {}
    if methods:
        lines.append(f"{indent}    mth: {', '.join(methods)}")
    return lines


__all__ = [
    "DEFAULT_FLAT_OPTIONS",
    "FlatTextOptions",
    "KEY_ABBREVIATIONS",
    "file_fact_to_dict",
    "format_value",
    "to_dict",
    "to_flat_text",
    "to_json",
]
