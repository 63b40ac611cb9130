"""Tests for the result aggregator."""

from __future__ import annotations

import time
from typing import Dict

import pytest

from repolens import ENGINE_VERSION
from repolens.aggregator import (
    AggregationOptions,
    ResultAggregator,
    aggregation_stats,
    analyze,
)
from repolens.models import FileFact
from repolens.patterns import StateDetector
from tests._fixtures.fact_builder import FactBuilder


@pytest.fixture
def corpus(facts: FactBuilder) -> Dict[str, FileFact]:
    facts.add(
        "src/App.jsx",
        imports={"react": ["useState"], "./api": ["fetchUsers"]},
        functions={
            "App()": {
                "is_component": True,
                "line_number": 3,
                "state_changes": ["const [users, setUsers] = useState([])"],
            }
        },
        lines=40,
    )
    facts.add("src/api.js", imports={"./App": ["App"]}, lines=20)
    facts.add("main.py", lines=5)
    facts.add("broken.js", error="Unexpected token")
    return facts.build()


def _options(**overrides) -> AggregationOptions:
    return AggregationOptions(include_frameworks=False, **overrides)


def test_folder_structure_groups_by_directory(corpus: Dict[str, FileFact]) -> None:
    result = ResultAggregator(_options()).aggregate(corpus)

    assert list(result.folder_structure) == ["src", "root"]
    assert [fact.path for fact in result.folder_structure["src"]] == ["src/App.jsx", "src/api.js"]
    assert [fact.path for fact in result.folder_structure["root"]] == ["broken.js", "main.py"]


def test_summary_counts(corpus: Dict[str, FileFact]) -> None:
    result = ResultAggregator(_options()).aggregate(corpus)
    expected_state = len(StateDetector().detect(corpus))

    assert result.summary == {
        "total_files": 4,
        "total_lines": 65,
        "languages": {"javascript": 3, "python": 1},
        "extensions": {".jsx": 1, ".js": 2, ".py": 1},
        "api_endpoints": 0,
        "state_patterns": expected_state,
        "event_handlers": 0,
        "circular_dependencies": 1,
    }


def test_dependencies_and_cycles(corpus: Dict[str, FileFact]) -> None:
    result = ResultAggregator(_options()).aggregate(corpus)

    assert result.dependencies == {
        "src/App.jsx": ["react", "src/api.js"],
        "src/api.js": ["src/App.jsx"],
    }
    assert [cycle.chain for cycle in result.circular_dependencies] == [
        ["src/App.jsx", "src/api.js", "src/App.jsx"]
    ]


def test_cycle_detection_can_be_disabled(corpus: Dict[str, FileFact]) -> None:
    result = ResultAggregator(_options(detect_circular_dependencies=False)).aggregate(corpus)

    assert result.circular_dependencies == []
    assert result.summary["circular_dependencies"] == 0
    assert result.dependencies


def test_enrichment_uses_copies(corpus: Dict[str, FileFact]) -> None:
    result = ResultAggregator(_options()).aggregate(corpus)

    enriched = result.folder_structure["src"][0]
    assert enriched.path == "src/App.jsx"
    assert enriched.state_changes
    assert all(record.file == "src/App.jsx" for record in enriched.state_changes)
    assert enriched is not corpus["src/App.jsx"]
    assert corpus["src/App.jsx"].state_changes == []


def test_metadata(corpus: Dict[str, FileFact]) -> None:
    started = time.time() - 2

    result = ResultAggregator(_options(repository_path="/repo")).aggregate(corpus, started)

    assert result.metadata["timestamp"].endswith("Z")
    assert result.metadata["duration_ms"] >= 2000
    assert result.metadata["engine_version"] == ENGINE_VERSION
    assert result.metadata["repository_path"] == "/repo"


def test_frameworks_omitted_when_disabled(corpus: Dict[str, FileFact]) -> None:
    result = ResultAggregator(_options()).aggregate(corpus)

    assert "frameworks" not in result.summary


def test_parallel_matches_sequential(corpus: Dict[str, FileFact]) -> None:
    sequential = ResultAggregator(AggregationOptions()).aggregate(corpus)
    parallel = ResultAggregator(AggregationOptions(parallel=True)).aggregate(corpus)

    assert parallel.summary == sequential.summary
    assert parallel.folder_structure == sequential.folder_structure
    assert parallel.dependencies == sequential.dependencies
    assert parallel.circular_dependencies == sequential.circular_dependencies


def test_detector_selection(corpus: Dict[str, FileFact]) -> None:
    result = ResultAggregator(AggregationOptions(detectors=["API"])).aggregate(corpus)

    assert "frameworks" not in result.summary
    assert result.summary["state_patterns"] == 0
    assert result.folder_structure["src"][0].state_changes == []


def test_unknown_detector_rejected(corpus: Dict[str, FileFact]) -> None:
    with pytest.raises(ValueError, match="bogus"):
        ResultAggregator(AggregationOptions(detectors=["bogus"]))
    with pytest.raises(ValueError):
        analyze(corpus, AggregationOptions(detectors=["bogus"]))


def test_analyze_substitutes_empty_result_on_failure(
    corpus: Dict[str, FileFact], monkeypatch: pytest.MonkeyPatch
) -> None:
    def explode(self, files, start_time=None):
        raise RuntimeError("boom")

    monkeypatch.setattr(ResultAggregator, "aggregate", explode)

    result = analyze(corpus, AggregationOptions(repository_path="/repo"))

    assert result.folder_structure == {}
    assert result.dependencies == {}
    assert result.summary["total_files"] == 0
    assert result.metadata["error"] == "boom"
    assert result.metadata["repository_path"] == "/repo"


def test_aggregation_stats(corpus: Dict[str, FileFact]) -> None:
    result = ResultAggregator(_options()).aggregate(corpus)

    stats = aggregation_stats(result)

    assert stats["aggregation"] == {
        "folder_count": 2,
        "file_count": 4,
        "language_count": 2,
        "dependency_count": 2,
        "total_dependencies": 3,
        "internal_dependencies": 2,
        "external_dependencies": 1,
    }
    assert stats["summary"] is result.summary
