"""Tests for JSON and flat text rendering."""

from __future__ import annotations

import json

from repolens.aggregator import AggregationOptions, ResultAggregator
from repolens.formatters import (
    FlatTextOptions,
    file_fact_to_dict,
    format_value,
    to_dict,
    to_flat_text,
    to_json,
)
from repolens.models import AnalysisResult, FileFact, FunctionFact
from tests._fixtures.fact_builder import FactBuilder


def _result() -> AnalysisResult:
    loader = FileFact(
        path="src/b.js",
        language="javascript",
        imports={"react": ["useState"], "./a": ["x"]},
        functions={"load()": FunctionFact(docstring="Fetch data", line_number=4)},
        lines=10,
        extension=".js",
    )
    entry = FileFact(path="a.js", language="javascript", extension=".js")
    return AnalysisResult(
        folder_structure={"src": [loader], "root": [entry]},
        dependencies={"src/b.js": ["a.js", "react"]},
    )


def test_flat_text_layout() -> None:
    text = to_flat_text(_result())

    assert text == "\n\n".join(
        [
            '<file path="a.js"/>',
            "  extension: .js",
            '<file path="src/b.js"/>',
            "  imp: react:[useState], ./a:[x]\n  fn:\n    load()\n      doc: Fetch data\n  extension: .js",
            "\n<dependencies>",
            "  src/b.js: a.js, react",
            "</dependencies>",
        ]
    )


def test_flat_text_without_abbreviations_keeps_line_counts() -> None:
    options = FlatTextOptions(use_abbreviations=False, remove_line_numbers=False)

    text = to_flat_text(_result(), options)

    assert "  imports: react:[useState], ./a:[x]" in text
    assert "  functions:" in text
    assert "  lines: 10" in text


def test_flat_text_skips_files_with_no_content() -> None:
    result = AnalysisResult(folder_structure={"root": [FileFact(path="empty.py", language="python")]})

    assert to_flat_text(result) == ""


def test_format_value() -> None:
    assert format_value(None) == "null"
    assert format_value(True) == "1"
    assert format_value(False) == "0"
    assert format_value(2.0) == "2"
    assert format_value(1.5) == "1.5"
    assert format_value("plain") == "plain"
    assert format_value('say "hi"') == '"say \\"hi\\""'
    assert format_value("two\nlines") == '"two\\nlines"'
    assert format_value({"a": 1}) == '{"a":1}'


def test_file_fact_to_dict_drops_missing_values() -> None:
    data = file_fact_to_dict(FileFact(path="a.js", language="javascript"))

    assert data == {
        "path": "a.js",
        "language": "javascript",
        "imports": {},
        "functions": {},
        "classes": {},
    }


def test_json_output_projects_enriched_records(facts: FactBuilder) -> None:
    facts.add(
        "src/Counter.jsx",
        imports={"react": ["useState"]},
        functions={
            "Counter()": {
                "is_component": True,
                "line_number": 3,
                "state_changes": ["const [count, setCount] = useState(0)"],
                "event_handlers": ["onClick={increment}"],
            }
        },
    )
    result = ResultAggregator(AggregationOptions(include_frameworks=False)).aggregate(facts.build())

    document = json.loads(to_json(result))

    assert set(document) == {
        "folder_structure",
        "summary",
        "dependencies",
        "api_endpoints",
        "circular_dependencies",
        "metadata",
    }
    counter = document["folder_structure"]["src"][0]
    assert counter["functions"]["Counter()"]["state_changes"] == ["const [count, setCount] = useState(0)"]
    assert counter["state_changes"][0] == {
        "type": "useState",
        "line": 3,
        "variable": "count",
        "mutation_type": "update",
    }
    assert set(counter["event_handlers"][0]) == {"type", "event", "handler", "line", "framework"}
    assert document == to_dict(result)
