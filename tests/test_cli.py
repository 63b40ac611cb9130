"""Tests for the repolens command line interface."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from repolens.cli import main


@pytest.fixture
def facts_file(tmp_path: Path) -> Path:
    document = {
        "src/a.js": {"language": "javascript", "imports": {"./b": ["x"]}, "lines": 3},
        "src/b.js": {"language": "javascript", "imports": {"./a": ["y"]}, "lines": 4},
    }
    path = tmp_path / "facts.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


def test_analyze_prints_json(
    facts_file: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    main(["analyze", str(facts_file), "--repo", str(tmp_path)])

    report = json.loads(capsys.readouterr().out)
    assert report["summary"]["total_files"] == 2
    assert report["summary"]["total_lines"] == 7
    assert report["summary"]["circular_dependencies"] == 1
    assert report["dependencies"] == {"src/a.js": ["src/b.js"], "src/b.js": ["src/a.js"]}
    assert report["metadata"]["repository_path"] == str(tmp_path)


def test_analyze_max_depth_override(
    facts_file: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    main(["analyze", str(facts_file), "--repo", str(tmp_path), "--max-depth", "1", "--parallel"])

    report = json.loads(capsys.readouterr().out)
    assert report["circular_dependencies"] == []


def test_analyze_text_format(
    facts_file: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    main(["analyze", str(facts_file), "--repo", str(tmp_path), "--format", "text"])

    out = capsys.readouterr().out
    assert '<file path="src/a.js"/>' in out
    assert "  src/a.js: src/b.js" in out


def test_analyze_writes_output_file(facts_file: Path, tmp_path: Path) -> None:
    target = tmp_path / "report.json"

    main(["analyze", str(facts_file), "--repo", str(tmp_path), "--output", str(target)])

    report = json.loads(target.read_text(encoding="utf-8"))
    assert report["summary"]["total_files"] == 2


def test_analyze_rejects_malformed_facts(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    broken = tmp_path / "facts.json"
    broken.write_text("{not json", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main(["analyze", str(broken), "--repo", str(tmp_path)])

    assert excinfo.value.code == 1
    assert "not valid JSON" in capsys.readouterr().err


def test_analyze_rejects_unknown_detectors(
    facts_file: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    (tmp_path / ".repolens.yml").write_text("detectors:\n  enabled: [routes]\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main(["analyze", str(facts_file), "--repo", str(tmp_path)])

    assert excinfo.value.code == 1
    assert "routes" in capsys.readouterr().err


def test_analyze_rejects_negative_depth(facts_file: Path, tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["analyze", str(facts_file), "--repo", str(tmp_path), "--max-depth", "-2"])

    assert excinfo.value.code == 1


def test_frameworks_lists_catalog(capsys: pytest.CaptureFixture[str]) -> None:
    main(["frameworks"])

    out = capsys.readouterr().out
    assert "React: min_confidence=0.30" in out
    assert "Django:" in out
