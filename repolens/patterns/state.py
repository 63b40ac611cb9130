"""State-management detection for React, Redux, MobX, Django and generic code."""

from __future__ import annotations

import re
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

from ..hints import Mutation, StateHint, StateHintKind
from ..models import ClassFact, FileFact, FunctionFact, StatePatternRecord
from .base import PatternDetector, distribution, function_name, has_import
from .catalog import JS_LANGUAGES

STATE_PATTERN_TYPES = (
    "useState",
    "useReducer",
    "setState",
    "dispatch",
    "redux_action",
    "redux_reducer",
    "mobx_observable",
    "django_save",
    "django_create",
    "django_update",
    "django_delete",
)

_REACT_BASES = ("Component", "PureComponent")
_LIFECYCLE_METHODS = {
    "componentDidMount",
    "componentDidUpdate",
    "componentWillUnmount",
    "getDerivedStateFromProps",
}

_ACTION_CREATOR_NAMES = (
    re.compile(r"^(set|update|add|remove|delete|create|fetch|load|save)", re.IGNORECASE),
    re.compile(r"Action$", re.IGNORECASE),
    re.compile(r"Creator$", re.IGNORECASE),
)
_REDUCER_NAMES = (
    re.compile(r"Reducer$", re.IGNORECASE),
    re.compile(r"^(state|app|root|main|user|auth|data)", re.IGNORECASE),
)
_STORE_CREATION_NAMES = re.compile(r"createStore|configureStore|setupStore|initStore", re.IGNORECASE)

_MOBX_DECORATORS = ("observable", "observer", "computed", "action")
_MOBX_CREATION_NAMES = re.compile(r"createStore|makeObservable|observable|Store$", re.IGNORECASE)

_DJANGO_VIEW_NAMES = re.compile(r"(View|List|Detail|Create|Update|Delete)$", re.IGNORECASE)
_DJANGO_VIEW_SUFFIXES = ("View", "List", "Detail", "Create", "Update", "Delete")
_DJANGO_MODEL_METHODS = {
    "save": Mutation.UPDATE,
    "create": Mutation.CREATE,
    "update": Mutation.UPDATE,
    "delete": Mutation.DELETE,
    "get_or_create": Mutation.CREATE,
    "update_or_create": Mutation.UPDATE,
}

_STATE_RELATED_NAMES = re.compile(r"(State|Store|Manager|Handler)$|manage|handle", re.IGNORECASE)


def _first_group(pattern: str, text: str) -> Optional[str]:
    match = re.search(pattern, text)
    return match.group(1) if match else None


def _use_state_variable(expression: str) -> str:
    found = _first_group(r"\[([^,\]]+)", expression)
    return found.strip() if found else "unknown"


def _set_state_variable(expression: str) -> str:
    found = _first_group(r"setState\s*\(\s*\{([^:}]+)", expression)
    return found.strip() if found else "unknown"


def _action_type_variable(expression: str) -> str:
    return _first_group(r"type:\s*['\"]([^'\"]+)['\"]", expression) or "unknown"


_REACT_HINTS: Dict[StateHintKind, Callable[[str], str]] = {
    StateHintKind.USE_STATE: _use_state_variable,
    StateHintKind.USE_REDUCER: lambda expression: "unknown",
    StateHintKind.SET_STATE: _set_state_variable,
    StateHintKind.DISPATCH: _action_type_variable,
}

_ORM_HINTS: Dict[StateHintKind, str] = {
    StateHintKind.ORM_SAVE: "django_save",
    StateHintKind.ORM_CREATE: "django_create",
    StateHintKind.ORM_UPDATE: "django_update",
    StateHintKind.ORM_DELETE: "django_delete",
}


def action_type(name: str) -> str:
    """``addTodo`` -> ``ADD_TODO``."""
    return re.sub(r"([A-Z])", r"_\1", name).upper().lstrip("_")


def dispatch_action(expression: str) -> str:
    declared = _first_group(r"type:\s*['\"]([^'\"]+)['\"]", expression)
    if declared:
        return declared
    creator = _first_group(r"dispatch\s*\(\s*([a-zA-Z_$][a-zA-Z0-9_$]*)\s*\(", expression)
    if creator:
        return action_type(creator)
    return "unknown_action"


def _hook_variable(name: str, hook: str) -> str:
    if hook == "useState":
        cleaned = re.sub(r"Hook$", "", re.sub(r"Component$", "", re.sub(r"^use", "", name)))
        return cleaned.lower() or "state"
    return re.sub(r"^use", "", name).lower() or "state"


def _django_model_variable(expression: str) -> str:
    model = _first_group(r"(\w+)\.objects\.", expression) or _first_group(r"(\w+)\.save\(", expression)
    return model.lower() if model else "model"


def _model_from_view(name: str) -> str:
    for suffix in _DJANGO_VIEW_SUFFIXES:
        if name.endswith(suffix):
            name = name[: -len(suffix)]
    return name.lower() or "model"


class StateDetector(PatternDetector[StatePatternRecord]):
    """Detects state creation and mutation sites."""

    name = "state"

    def detect_file(self, path: str, fact: FileFact) -> Iterable[StatePatternRecord]:
        if fact.language in JS_LANGUAGES:
            yield from self._react(path, fact)
            yield from self._redux(path, fact)
            yield from self._mobx(path, fact)
        elif fact.language == "python":
            yield from self._django(path, fact)
        yield from self._generic(path, fact)

    @staticmethod
    def _record(
        record_type: str,
        mutation: Mutation,
        *,
        path: str,
        container: str,
        line: int,
        framework: str,
        variable: Optional[str],
        detected_via: str,
        context: str = "function",
        is_async: bool = False,
        **metadata: Any,
    ) -> StatePatternRecord:
        return StatePatternRecord(
            type=record_type,
            line=line,
            mutation_type=mutation.value,
            context=context,
            container=container,
            framework=framework,
            file=path,
            variable=variable,
            is_async=is_async,
            metadata={"detected_via": detected_via, **metadata},
        )

    # -- React -------------------------------------------------------------

    def _react(self, path: str, fact: FileFact) -> Iterator[StatePatternRecord]:
        if not has_import(
            fact,
            lambda module: module == "react" or module.startswith("react/") or module == "@types/react",
        ):
            return
        react_imports = fact.imports.get("react", [])
        for signature, function in fact.functions.items():
            name = function_name(signature)
            for hint in function.state_changes:
                extractor = _REACT_HINTS.get(hint.kind)
                if extractor is None:
                    continue
                yield self._record(
                    hint.kind.value,
                    Mutation.UPDATE,
                    path=path,
                    container=name,
                    line=function.line_number,
                    framework="React",
                    variable=extractor(hint.expression),
                    detected_via="analyzer_state_changes",
                    original_pattern=hint.expression,
                )
            yield from self._react_hooks(path, name, function, react_imports)

        for class_name, cls in fact.classes.items():
            if any(base in declared for declared in cls.base_classes for base in _REACT_BASES):
                yield from self._react_class(path, class_name, cls)

    def _react_hooks(
        self, path: str, name: str, function: FunctionFact, react_imports: List[str]
    ) -> Iterator[StatePatternRecord]:
        common = {
            "is_custom_hook": name.startswith("use"),
            "is_component": function.is_component,
        }
        if "useState" in react_imports or function.is_hook:
            yield self._record(
                "useState",
                Mutation.UPDATE,
                path=path,
                container=name,
                line=function.line_number,
                framework="React",
                variable=_hook_variable(name, "useState"),
                detected_via="import_analysis",
                **common,
            )
        if "useReducer" in react_imports:
            yield self._record(
                "useReducer",
                Mutation.UPDATE,
                path=path,
                container=name,
                line=function.line_number,
                framework="React",
                variable=_hook_variable(name, "useReducer"),
                detected_via="import_analysis",
                **common,
            )
        if "useContext" in react_imports:
            yield self._record(
                "useState",
                Mutation.READ,
                path=path,
                container=name,
                line=function.line_number,
                framework="React",
                variable="context",
                detected_via="context_api",
                pattern_type="useContext",
                **common,
            )

    def _react_class(self, path: str, class_name: str, cls: ClassFact) -> Iterator[StatePatternRecord]:
        for signature, method in cls.methods.items():
            if function_name(signature) == "constructor":
                yield self._record(
                    "setState",
                    Mutation.CREATE,
                    path=path,
                    container=class_name,
                    line=method.line_number or cls.line_number,
                    framework="React",
                    variable="state",
                    detected_via="constructor_analysis",
                    context="class",
                    pattern_type="state_initialization",
                )
                break

        for signature, method in cls.methods.items():
            method_name = function_name(signature)
            container = f"{class_name}.{method_name}"
            for hint in method.state_changes:
                if hint.kind is not StateHintKind.SET_STATE:
                    continue
                yield self._record(
                    "setState",
                    Mutation.UPDATE,
                    path=path,
                    container=container,
                    line=method.line_number,
                    framework="React",
                    variable=_set_state_variable(hint.expression),
                    detected_via="method_analysis",
                    context="class",
                    method=method_name,
                )
            if method_name in _LIFECYCLE_METHODS:
                yield self._record(
                    "setState",
                    Mutation.UPDATE,
                    path=path,
                    container=container,
                    line=method.line_number,
                    framework="React",
                    variable="lifecycle_state",
                    detected_via="lifecycle_analysis",
                    context="class",
                    lifecycle_method=method_name,
                )

    # -- Redux -------------------------------------------------------------

    def _redux(self, path: str, fact: FileFact) -> Iterator[StatePatternRecord]:
        if not has_import(fact, lambda module: "redux" in module):
            return
        store_imports = (
            "createStore" in fact.imports.get("redux", [])
            or "configureStore" in fact.imports.get("redux", [])
            or "configureStore" in fact.imports.get("@reduxjs/toolkit", [])
        )
        for signature, function in fact.functions.items():
            name = function_name(signature)
            if _is_action_creator(name, function):
                yield self._record(
                    "redux_action",
                    Mutation.CREATE,
                    path=path,
                    container=name,
                    line=function.line_number,
                    framework="Redux",
                    variable=action_type(name),
                    detected_via="function_analysis",
                    action_creator=name,
                )
            if _is_reducer(name, function):
                yield self._record(
                    "redux_reducer",
                    Mutation.UPDATE,
                    path=path,
                    container=name,
                    line=function.line_number,
                    framework="Redux",
                    variable=re.sub(r"Reducer$", "", name, flags=re.IGNORECASE).lower(),
                    detected_via="function_analysis",
                    reducer=name,
                )
            for hint in function.state_changes:
                if hint.kind is not StateHintKind.DISPATCH:
                    continue
                yield self._record(
                    "dispatch",
                    Mutation.UPDATE,
                    path=path,
                    container=name,
                    line=function.line_number,
                    framework="Redux",
                    variable=dispatch_action(hint.expression),
                    detected_via="state_changes_analysis",
                    original_call=hint.expression,
                )
            if store_imports or _STORE_CREATION_NAMES.search(name):
                yield self._record(
                    "redux_action",
                    Mutation.CREATE,
                    path=path,
                    container=name,
                    line=function.line_number,
                    framework="Redux",
                    variable="store",
                    detected_via="store_analysis",
                    pattern_type="store_creation",
                )

        if "@reduxjs/toolkit" not in fact.imports:
            return
        for signature, function in fact.functions.items():
            name = function_name(signature)
            if "Slice" in name or "slice" in name:
                yield self._record(
                    "redux_reducer",
                    Mutation.CREATE,
                    path=path,
                    container=name,
                    line=function.line_number,
                    framework="Redux Toolkit",
                    variable=re.sub(r"Slice$", "", name).lower(),
                    detected_via="rtk_slice_analysis",
                    slice_name=name,
                )
            if "Thunk" in name or "thunk" in name:
                yield self._record(
                    "redux_action",
                    Mutation.CREATE,
                    path=path,
                    container=name,
                    line=function.line_number,
                    framework="Redux Toolkit",
                    variable=re.sub(r"Thunk$", "", name).lower(),
                    detected_via="rtk_thunk_analysis",
                    is_async=True,
                    thunk_name=name,
                )

    # -- MobX --------------------------------------------------------------

    def _mobx(self, path: str, fact: FileFact) -> Iterator[StatePatternRecord]:
        if not has_import(fact, lambda module: "mobx" in module):
            return
        for class_name, cls in fact.classes.items():
            if not any(
                marker in decorator.name for decorator in cls.decorators for marker in _MOBX_DECORATORS
            ):
                continue
            yield self._record(
                "mobx_observable",
                Mutation.CREATE,
                path=path,
                container=class_name,
                line=cls.line_number,
                framework="MobX",
                variable=class_name.lower(),
                detected_via="class_decorator_analysis",
                context="class",
                store_class=class_name,
            )
            for signature, method in cls.methods.items():
                method_name = function_name(signature)
                for decorator in method.decorators:
                    if "action" not in decorator.name:
                        continue
                    yield self._record(
                        "mobx_observable",
                        Mutation.UPDATE,
                        path=path,
                        container=f"{class_name}.{method_name}",
                        line=method.line_number,
                        framework="MobX",
                        variable=method_name,
                        detected_via="action_decorator_analysis",
                        context="class",
                        store_class=class_name,
                    )

        for signature, function in fact.functions.items():
            name = function_name(signature)
            documented = bool(function.docstring and "observable" in function.docstring)
            if _MOBX_CREATION_NAMES.search(name) or documented:
                variable = re.sub(r"Store$", "", re.sub(r"^create", "", name)).lower() or "observable"
                yield self._record(
                    "mobx_observable",
                    Mutation.CREATE,
                    path=path,
                    container=name,
                    line=function.line_number,
                    framework="MobX",
                    variable=variable,
                    detected_via="function_analysis",
                    observable_creator=name,
                )

    # -- Django ------------------------------------------------------------

    def _django(self, path: str, fact: FileFact) -> Iterator[StatePatternRecord]:
        if not has_import(fact, lambda module: "django" in module):
            return
        view_imports = has_import(
            fact, lambda module: "django.views" in module or "django.shortcuts" in module
        )
        for signature, function in fact.functions.items():
            name = function_name(signature)
            for hint in function.state_changes:
                pattern_type = _ORM_HINTS.get(hint.kind)
                if pattern_type is None or hint.mutation is None:
                    continue
                yield self._record(
                    pattern_type,
                    hint.mutation,
                    path=path,
                    container=name,
                    line=function.line_number,
                    framework="Django",
                    variable=_django_model_variable(hint.expression),
                    detected_via="state_change_analysis",
                    original_pattern=hint.expression,
                )
            has_request = any("request" in param.lower() for param in function.parameters)
            if has_request or (view_imports and _DJANGO_VIEW_NAMES.search(name)):
                yield self._record(
                    "django_save",
                    Mutation.UPDATE,
                    path=path,
                    container=name,
                    line=function.line_number,
                    framework="Django",
                    variable=_model_from_view(name),
                    detected_via="view_analysis",
                    view_function=name,
                )

        if "models.py" not in path and "models/" not in path:
            return
        for class_name, cls in fact.classes.items():
            if not any("Model" in base for base in cls.base_classes):
                continue
            yield self._record(
                "django_create",
                Mutation.CREATE,
                path=path,
                container=class_name,
                line=cls.line_number,
                framework="Django",
                variable=class_name.lower(),
                detected_via="model_class_analysis",
                context="class",
                model_class=class_name,
            )
            for signature, method in cls.methods.items():
                method_name = function_name(signature)
                mutation = _DJANGO_MODEL_METHODS.get(method_name)
                if mutation is None:
                    continue
                yield self._record(
                    "django_save",
                    mutation,
                    path=path,
                    container=f"{class_name}.{method_name}",
                    line=method.line_number,
                    framework="Django",
                    variable=class_name.lower(),
                    detected_via="model_method_analysis",
                    context="class",
                    model_class=class_name,
                )

    # -- Generic -----------------------------------------------------------

    def _generic(self, path: str, fact: FileFact) -> Iterator[StatePatternRecord]:
        for signature, function in fact.functions.items():
            name = function_name(signature)
            for hint in function.state_changes:
                if hint.kind is not StateHintKind.GENERIC or hint.mutation is None:
                    continue
                yield self._record(
                    "useState",
                    hint.mutation,
                    path=path,
                    container=name,
                    line=function.line_number,
                    framework="Generic",
                    variable=_generic_variable(hint),
                    detected_via="generic_pattern_analysis",
                    original_pattern=hint.expression,
                    language=fact.language,
                )
        for signature, function in fact.functions.items():
            name = function_name(signature)
            if _STATE_RELATED_NAMES.search(name):
                yield self._record(
                    "useState",
                    Mutation.UPDATE,
                    path=path,
                    container=name,
                    line=function.line_number,
                    framework="Generic",
                    variable=name.lower(),
                    detected_via="naming_convention_analysis",
                )

    # -- Statistics --------------------------------------------------------

    def stats(self, records: List[StatePatternRecord]) -> Dict[str, Any]:
        types = {pattern_type: 0 for pattern_type in STATE_PATTERN_TYPES}
        mutations = {mutation.value: 0 for mutation in Mutation}
        for record in records:
            if record.type in types:
                types[record.type] += 1
            mutations[record.mutation_type] = mutations.get(record.mutation_type, 0) + 1
        return {
            "total_patterns": len(records),
            "pattern_distribution": types,
            "framework_distribution": distribution(record.framework for record in records),
            "mutation_distribution": mutations,
            "files_with_state": list(dict.fromkeys(record.file for record in records)),
        }


def _generic_variable(hint: StateHint) -> str:
    return _first_group(r"(\w+)\s*[=\(]", hint.expression) or "state"


def _is_action_creator(name: str, function: FunctionFact) -> bool:
    if any(pattern.search(name) for pattern in _ACTION_CREATOR_NAMES):
        return True
    if function.docstring and ("action" in function.docstring or "type" in function.docstring):
        return True
    return len(function.parameters) <= 3 and len(name) > 3


def _is_reducer(name: str, function: FunctionFact) -> bool:
    if any(pattern.search(name) for pattern in _REDUCER_NAMES):
        return True
    params = function.parameters
    if len(params) == 2 and ("state" in params or "action" in params):
        return True
    docstring = function.docstring or ""
    return "reducer" in docstring or ("state" in docstring and "action" in docstring)


__all__ = ["STATE_PATTERN_TYPES", "StateDetector", "action_type", "dispatch_action"]
