"""Tests for the shared detector plumbing."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

from repolens.models import FileFact
from repolens.patterns.base import PatternDetector, distribution, function_name
from tests._fixtures.fact_builder import FactBuilder


@dataclass
class _Hit:
    file: str
    line: int
    name: str


class _FunctionLister(PatternDetector[_Hit]):
    name = "functions"

    def detect_file(self, path: str, fact: FileFact) -> Iterable[_Hit]:
        for signature, function in fact.functions.items():
            yield _Hit(file=path, line=function.line_number, name=function_name(signature))

    def stats(self, records: List[_Hit]) -> Dict[str, Any]:
        return {"names": distribution(record.name for record in records)}


def test_distribution_counts_in_first_seen_order() -> None:
    counts = distribution(["GET", "POST", "GET", "DELETE", "GET"])

    assert counts == {"GET": 3, "POST": 1, "DELETE": 1}
    assert list(counts) == ["GET", "POST", "DELETE"]
    assert distribution([]) == {}


def test_records_sorted_by_file_then_line(facts: FactBuilder) -> None:
    facts.add("src/b.js", functions={"late()": {"line_number": 9}, "early()": {"line_number": 2}})
    facts.add("src/a.js", functions={"only()": {"line_number": 5}})
    facts.add("src/broken.js", functions={"skipped()": {}}, error="bad syntax")
    detector = _FunctionLister()

    records = detector.detect(facts.build())

    assert [(record.file, record.line) for record in records] == [
        ("src/a.js", 5),
        ("src/b.js", 2),
        ("src/b.js", 9),
    ]
    assert detector.stats(records) == {"names": {"only": 1, "early": 1, "late": 1}}


def test_function_name_strips_parameters() -> None:
    assert function_name("getUsers(req, res)") == "getUsers"
    assert function_name("(anonymous)") == "anonymous"
