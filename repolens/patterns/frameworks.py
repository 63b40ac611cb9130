"""Confidence-scored framework detection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Set, Tuple

from ..logging import get_logger
from ..models import FileFact, FrameworkDetection
from .base import distribution
from .catalog import DEFAULT_CATALOG, FrameworkSignature, PatternCatalog
from .matchers import matches

logger = get_logger("patterns.frameworks")


@dataclass(frozen=True)
class PatternMatch:
    pattern_id: str
    file: str
    weight: float
    description: str


@dataclass(frozen=True)
class DetectionEvidence:
    """Matched patterns and cumulative weight for one framework."""

    framework: str
    matches: Tuple[PatternMatch, ...]

    @property
    def score(self) -> float:
        return sum(match.weight for match in self.matches)

    @property
    def files(self) -> List[str]:
        return list(dict.fromkeys(match.file for match in self.matches))

    @property
    def pattern_ids(self) -> List[str]:
        return [match.pattern_id for match in self.matches]


class FrameworkDetector:
    """Scores every catalog signature against a FileFact corpus."""

    def __init__(self, catalog: PatternCatalog = DEFAULT_CATALOG) -> None:
        self.catalog = catalog

    def detect(self, files: Mapping[str, FileFact]) -> List[FrameworkDetection]:
        detections: List[FrameworkDetection] = []
        languages = _languages_present(files)
        for signature in self.catalog:
            evidence = self.collect_evidence(signature, files)
            ceiling = self.ceiling(signature, languages, corpus_size=len(files))
            confidence = min(evidence.score / ceiling, 1.0) if ceiling > 0 else 0.0
            if evidence.matches:
                logger.debug(
                    "%s: score=%.1f ceiling=%.1f confidence=%.2f",
                    signature.name,
                    evidence.score,
                    ceiling,
                    confidence,
                )
            if evidence.matches and confidence >= signature.min_confidence:
                detections.append(
                    FrameworkDetection(
                        name=signature.name,
                        confidence=confidence,
                        evidence_files=evidence.files,
                        patterns_matched=evidence.pattern_ids,
                    )
                )
        detections.sort(key=lambda detection: detection.confidence, reverse=True)
        return detections

    def collect_evidence(
        self, signature: FrameworkSignature, files: Mapping[str, FileFact]
    ) -> DetectionEvidence:
        """Fold every (file, pattern) hit for ``signature`` into one evidence record."""
        hits = tuple(
            PatternMatch(
                pattern_id=pattern.id,
                file=path,
                weight=pattern.weight,
                description=pattern.description,
            )
            for path, fact in files.items()
            if not fact.error
            for pattern in signature.patterns
            if matches(path, fact, pattern)
        )
        return DetectionEvidence(framework=signature.name, matches=hits)

    def ceiling(
        self, signature: FrameworkSignature, languages: Set[str], *, corpus_size: int
    ) -> float:
        """Achievable score for ``signature`` given the languages in the corpus."""
        reachable = 0.0
        for pattern in signature.patterns:
            if pattern.languages is not None:
                if any(language in languages for language in pattern.languages):
                    reachable += pattern.weight
            elif corpus_size > 0:
                reachable += pattern.weight
        return max(reachable * self.catalog.ceiling_factor, self.catalog.ceiling_floor)

    def report(self, files: Mapping[str, FileFact]) -> Dict[str, Any]:
        """Debugging summary of a detection run."""
        return {
            "total_files": len(files),
            "detected_frameworks": [
                {
                    "name": detection.name,
                    "confidence": detection.confidence,
                    "evidence_files": detection.evidence_files,
                    "patterns_matched": detection.patterns_matched,
                }
                for detection in self.detect(files)
            ],
            "language_distribution": distribution(
                fact.language for fact in files.values() if fact.language
            ),
            "supported_frameworks": [
                {
                    "name": signature.name,
                    "min_confidence": signature.min_confidence,
                    "pattern_count": len(signature.patterns),
                    "primary_languages": list(signature.primary_languages),
                }
                for signature in self.catalog
            ],
        }


def _languages_present(files: Mapping[str, FileFact]) -> Set[str]:
    return {
        fact.language for fact in files.values() if fact.language and fact.language != "unknown"
    }


__all__ = ["DetectionEvidence", "FrameworkDetector", "PatternMatch"]
