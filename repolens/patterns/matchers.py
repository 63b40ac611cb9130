"""Signal matchers: pure predicates over a single FileFact."""

from __future__ import annotations

from typing import Callable, Dict, Iterable

from ..models import Decorator, FileFact
from .catalog import JS_LANGUAGES, MatcherKind, PatternDefinition

Matcher = Callable[[str, FileFact, PatternDefinition], bool]

_HOOK_IMPORTS = {"use_state_hook": "useState", "use_effect_hook": "useEffect"}
_BASE_CLASS_CONTEXTS = {"extends", "extends_react", "django_models"}
_JSX_CONTENT_PATTERNS = {"jsx_syntax"}


def match_file_name(path: str, fact: FileFact, pattern: PatternDefinition) -> bool:
    return pattern.regex.search(path) is not None


def match_import(path: str, fact: FileFact, pattern: PatternDefinition) -> bool:
    regex = pattern.regex
    return any(regex.search(module) for module in fact.imports)


def match_function_call(path: str, fact: FileFact, pattern: PatternDefinition) -> bool:
    if not fact.functions:
        return False
    regex = pattern.regex

    hook = _HOOK_IMPORTS.get(pattern.id)
    if hook is not None:
        if hook in fact.imports.get("react", []):
            return True
        for function in fact.functions.values():
            if any(regex.search(hint.expression) for hint in function.state_changes):
                return True

    if any(regex.search(signature) for signature in fact.functions):
        return True

    if pattern.context == "has_jsx" and fact.language in JS_LANGUAGES:
        for signature, function in fact.functions.items():
            if function.is_component and "(" in signature:
                name = signature.split("(", 1)[0]
                if name and regex.search(name):
                    return True
    return False


def match_class_name(path: str, fact: FileFact, pattern: PatternDefinition) -> bool:
    regex = pattern.regex
    check_bases = pattern.context in _BASE_CLASS_CONTEXTS
    for name, cls in fact.classes.items():
        if regex.search(name):
            return True
        if check_bases and any(regex.search(base) for base in cls.base_classes):
            return True
    return False


def match_decorator(path: str, fact: FileFact, pattern: PatternDefinition) -> bool:
    regex = pattern.regex
    return any(regex.search(decorator.name) for decorator in _all_decorators(fact))


def match_content(path: str, fact: FileFact, pattern: PatternDefinition) -> bool:
    # Raw source is not part of a FileFact; JSX presence is inferred from language.
    if pattern.id in _JSX_CONTENT_PATTERNS:
        return fact.language in JS_LANGUAGES
    return False


def _all_decorators(fact: FileFact) -> Iterable[Decorator]:
    for function in fact.functions.values():
        yield from function.decorators
    for cls in fact.classes.values():
        yield from cls.decorators
        for method in cls.methods.values():
            yield from method.decorators


MATCHERS: Dict[MatcherKind, Matcher] = {
    MatcherKind.FILE_NAME: match_file_name,
    MatcherKind.IMPORT: match_import,
    MatcherKind.FUNCTION_CALL: match_function_call,
    MatcherKind.CLASS_NAME: match_class_name,
    MatcherKind.DECORATOR: match_decorator,
    MatcherKind.CONTENT: match_content,
}


def matches(path: str, fact: FileFact, pattern: PatternDefinition) -> bool:
    """Return True when ``pattern`` fires for the file at ``path``."""
    if not pattern.applies_to(fact.language):
        return False
    return MATCHERS[pattern.kind](path, fact, pattern)


__all__ = ["MATCHERS", "Matcher", "matches"]
