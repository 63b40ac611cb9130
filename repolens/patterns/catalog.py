"""Immutable framework signature catalog used by the detectors."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterator, Mapping, Optional, Tuple

# Achievable-score ceiling: max(CEILING_FACTOR * reachable weight, CEILING_FLOOR).
CEILING_FACTOR = 0.6
CEILING_FLOOR = 10.0

JS_LANGUAGES = ("javascript", "typescript")


class MatcherKind(str, Enum):
    FILE_NAME = "file_name"
    IMPORT = "import"
    FUNCTION_CALL = "function_call"
    CLASS_NAME = "class_name"
    DECORATOR = "decorator"
    CONTENT = "content"


@dataclass(frozen=True)
class PatternDefinition:
    """A weighted signal that supports one framework hypothesis."""

    id: str
    kind: MatcherKind
    pattern: str
    weight: float
    description: str = ""
    languages: Optional[Tuple[str, ...]] = None
    context: Optional[str] = None

    @property
    def regex(self) -> re.Pattern[str]:
        return re.compile(self.pattern)

    def applies_to(self, language: Optional[str]) -> bool:
        """Language filter; only enforced when both sides are known."""
        if self.languages is None or not language:
            return True
        return language in self.languages


@dataclass(frozen=True)
class FrameworkSignature:
    name: str
    patterns: Tuple[PatternDefinition, ...]
    min_confidence: float
    primary_languages: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FrameworkOverride:
    """Per-framework tuning loaded from configuration."""

    min_confidence: Optional[float] = None
    weights: Mapping[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class PatternCatalog:
    """Ordered, immutable collection of framework signatures."""

    signatures: Tuple[FrameworkSignature, ...]
    ceiling_factor: float = CEILING_FACTOR
    ceiling_floor: float = CEILING_FLOOR

    def __iter__(self) -> Iterator[FrameworkSignature]:
        return iter(self.signatures)

    def __len__(self) -> int:
        return len(self.signatures)

    def get(self, name: str) -> Optional[FrameworkSignature]:
        lowered = name.lower()
        for signature in self.signatures:
            if signature.name.lower() == lowered:
                return signature
        return None

    def names(self) -> Tuple[str, ...]:
        return tuple(signature.name for signature in self.signatures)

    def with_overrides(self, overrides: Mapping[str, FrameworkOverride]) -> "PatternCatalog":
        """Return a new catalog with thresholds and weights replaced.

        Raises ``ValueError`` when an override names an unknown framework or
        pattern id.
        """
        known: Dict[str, FrameworkSignature] = {sig.name.lower(): sig for sig in self.signatures}
        unknown = sorted(name for name in overrides if name.lower() not in known)
        if unknown:
            raise ValueError(f"Unknown frameworks in overrides: {', '.join(unknown)}")

        by_name = {name.lower(): override for name, override in overrides.items()}
        updated = []
        for signature in self.signatures:
            override = by_name.get(signature.name.lower())
            if override is None:
                updated.append(signature)
                continue
            pattern_ids = {pattern.id for pattern in signature.patterns}
            missing = sorted(set(override.weights) - pattern_ids)
            if missing:
                raise ValueError(
                    f"Unknown pattern ids for {signature.name}: {', '.join(missing)}"
                )
            patterns = tuple(
                replace(pattern, weight=float(override.weights[pattern.id]))
                if pattern.id in override.weights
                else pattern
                for pattern in signature.patterns
            )
            min_confidence = signature.min_confidence
            if override.min_confidence is not None:
                min_confidence = override.min_confidence
            updated.append(replace(signature, patterns=patterns, min_confidence=min_confidence))
        return replace(self, signatures=tuple(updated))


def _p(
    pattern_id: str,
    kind: MatcherKind,
    pattern: str,
    weight: float,
    description: str,
    languages: Optional[Tuple[str, ...]] = JS_LANGUAGES,
    context: Optional[str] = None,
) -> PatternDefinition:
    return PatternDefinition(
        id=pattern_id,
        kind=kind,
        pattern=pattern,
        weight=weight,
        description=description,
        languages=languages,
        context=context,
    )


_IMPORT = MatcherKind.IMPORT
_CALL = MatcherKind.FUNCTION_CALL
_FILE = MatcherKind.FILE_NAME
_CLASS = MatcherKind.CLASS_NAME
_DECORATOR = MatcherKind.DECORATOR

REACT = FrameworkSignature(
    name="React",
    min_confidence=0.3,
    primary_languages=JS_LANGUAGES,
    patterns=(
        _p("react_import", _IMPORT, r"^react$", 8, "React library import"),
        _p("react_dom_import", _IMPORT, r"^react-dom$", 7, "ReactDOM import"),
        _p("jsx_component", _CALL, r"^[A-Z][a-zA-Z0-9]*$", 9, "JSX component function", context="has_jsx"),
        _p("use_state_hook", _CALL, r"useState", 8, "useState React hook"),
        _p("use_effect_hook", _CALL, r"useEffect", 7, "useEffect React hook"),
        _p("jsx_extension", _FILE, r"\.(jsx|tsx)$", 6, "JSX file extension"),
        _p("jsx_syntax", MatcherKind.CONTENT, r"<[A-Z][a-zA-Z0-9]*[^>]*>", 7, "JSX syntax in code"),
        _p("react_component_class", _CLASS, r"Component$", 8, "React Component class", context="extends_react"),
    ),
)

REACT_NATIVE = FrameworkSignature(
    name="React Native",
    min_confidence=0.25,
    primary_languages=JS_LANGUAGES,
    patterns=(
        _p("react_native_import", _IMPORT, r"^react-native$", 9, "React Native core import"),
        _p("react_native_community_import", _IMPORT, r"^@react-native-community/", 7, "React Native Community packages"),
        _p("react_native_async_storage", _IMPORT, r"^@react-native-async-storage/async-storage$", 6, "React Native AsyncStorage import"),
        _p("react_navigation_import", _IMPORT, r"^@react-navigation/", 7, "React Navigation import"),
        _p("expo_import", _IMPORT, r"^expo$", 8, "Expo framework import"),
        _p("react_native_view_component", _CALL, r"View", 8, "React Native View component usage", context="has_react_native_import"),
        _p("react_native_text_component", _CALL, r"Text", 7, "React Native Text component usage", context="has_react_native_import"),
        _p("react_native_scrollview", _CALL, r"ScrollView", 6, "React Native ScrollView component", context="has_react_native_import"),
        _p("react_native_touchable", _CALL, r"Touchable(Opacity|Highlight|WithoutFeedback)", 6, "React Native Touchable components", context="has_react_native_import"),
        _p("react_native_flatlist", _CALL, r"FlatList", 6, "React Native FlatList component", context="has_react_native_import"),
        _p("react_native_platform_api", _CALL, r"Platform\.(OS|select)", 7, "React Native Platform API usage"),
        _p("react_native_dimensions_api", _CALL, r"Dimensions\.get", 6, "React Native Dimensions API"),
        _p("react_native_stylesheet", _CALL, r"StyleSheet\.(create|compose)", 8, "React Native StyleSheet usage"),
        _p("react_native_alert_api", _CALL, r"Alert\.(alert|prompt)", 5, "React Native Alert API"),
        _p("react_native_animated_api", _CALL, r"Animated\.(Value|timing|spring)", 6, "React Native Animated API"),
        _p("app_json_config", _FILE, r"app\.json$", 7, "React Native app.json configuration", languages=None),
        _p("metro_config", _FILE, r"metro\.config\.js$", 6, "Metro bundler configuration", languages=None),
        _p("react_native_config_js", _FILE, r"react-native\.config\.js$", 5, "React Native configuration files", languages=None),
        _p("expo_app_config", _FILE, r"app\.(json|config\.(js|ts))$", 7, "Expo app configuration", languages=None, context="has_expo_dependency"),
        _p("native_module_android", _FILE, r"android/.*\.(java|kt)$", 4, "Android native module files", languages=None),
        _p("native_module_ios", _FILE, r"ios/.*\.(m|h|swift)$", 4, "iOS native module files", languages=None),
    ),
)

_PY = ("python",)

DJANGO = FrameworkSignature(
    name="Django",
    min_confidence=0.4,
    primary_languages=_PY,
    patterns=(
        _p("django_import", _IMPORT, r"^django", 9, "Django framework import", _PY),
        _p("django_models_import", _IMPORT, r"^django\.db\.models$", 8, "Django models import", _PY),
        _p("django_views_import", _IMPORT, r"^django\.views", 7, "Django views import", _PY),
        _p("models_py_file", _FILE, r"models\.py$", 8, "Django models.py file", _PY),
        _p("views_py_file", _FILE, r"views\.py$", 7, "Django views.py file", _PY),
        _p("urls_py_file", _FILE, r"urls\.py$", 7, "Django urls.py file", _PY),
        _p("django_model_class", _CLASS, r"Model$", 8, "Django Model class", _PY, context="django_models"),
        _p("django_admin_register", _CALL, r"admin\.register", 6, "Django admin register", _PY),
        _p("django_settings", _FILE, r"settings\.py$", 7, "Django settings file", _PY),
        _p("django_manage_py", _FILE, r"^manage\.py$", 9, "Django manage.py file", _PY),
    ),
)

_TS_FIRST = ("typescript", "javascript")

NESTJS = FrameworkSignature(
    name="NestJS",
    min_confidence=0.4,
    primary_languages=_TS_FIRST,
    patterns=(
        _p("nestjs_import", _IMPORT, r"^@nestjs/", 9, "NestJS framework import", _TS_FIRST),
        _p("controller_decorator", _DECORATOR, r"Controller", 8, "@Controller decorator", _TS_FIRST),
        _p("injectable_decorator", _DECORATOR, r"Injectable", 7, "@Injectable decorator", _TS_FIRST),
        _p("module_decorator", _DECORATOR, r"Module", 8, "@Module decorator", _TS_FIRST),
        _p("get_decorator", _DECORATOR, r"Get", 7, "@Get HTTP decorator", _TS_FIRST),
        _p("post_decorator", _DECORATOR, r"Post", 7, "@Post HTTP decorator", _TS_FIRST),
        _p("nest_factory", _CALL, r"NestFactory\.create", 8, "NestFactory usage", _TS_FIRST),
        _p("nestjs_main_file", _FILE, r"main\.ts$", 6, "NestJS main.ts file", ("typescript",)),
    ),
)

_DART = ("dart",)

FLUTTER = FrameworkSignature(
    name="Flutter",
    min_confidence=0.4,
    primary_languages=_DART,
    patterns=(
        _p("flutter_import", _IMPORT, r"^package:flutter/", 9, "Flutter framework import", _DART),
        _p("material_import", _IMPORT, r"^package:flutter/material\.dart$", 7, "Flutter Material import", _DART),
        _p("cupertino_import", _IMPORT, r"^package:flutter/cupertino\.dart$", 6, "Flutter Cupertino import", _DART),
        _p("stateless_widget", _CLASS, r"StatelessWidget$", 8, "StatelessWidget class", _DART, context="extends"),
        _p("stateful_widget", _CLASS, r"StatefulWidget$", 8, "StatefulWidget class", _DART, context="extends"),
        _p("widget_build_method", _CALL, r"build.*Widget", 7, "Widget build method", _DART),
        _p("flutter_pubspec", _FILE, r"pubspec\.yaml$", 8, "Flutter pubspec.yaml", None, context="has_flutter_dependency"),
        _p("flutter_main_dart", _FILE, r"main\.dart$", 6, "Flutter main.dart file", _DART),
    ),
)

EXPRESS = FrameworkSignature(
    name="Express",
    min_confidence=0.3,
    primary_languages=JS_LANGUAGES,
    patterns=(
        _p("express_import", _IMPORT, r"^express$", 9, "Express framework import"),
        _p("express_app_creation", _CALL, r"express\(\)", 8, "Express app creation"),
        _p("express_get_route", _CALL, r"\.get\(", 7, "Express GET route"),
        _p("express_post_route", _CALL, r"\.post\(", 7, "Express POST route"),
        _p("express_listen", _CALL, r"\.listen\(", 8, "Express app.listen"),
        _p("express_router", _IMPORT, r"^express$", 6, "Express Router usage", context="router_import"),
        _p("express_middleware", _CALL, r"\.use\(", 5, "Express middleware usage"),
    ),
)

DEFAULT_CATALOG = PatternCatalog(
    signatures=(REACT, REACT_NATIVE, DJANGO, NESTJS, FLUTTER, EXPRESS),
)


__all__ = [
    "CEILING_FACTOR",
    "CEILING_FLOOR",
    "DEFAULT_CATALOG",
    "FrameworkOverride",
    "FrameworkSignature",
    "JS_LANGUAGES",
    "MatcherKind",
    "PatternCatalog",
    "PatternDefinition",
]
