"""Event handler detection for DOM, React, Electron, Django and generic code."""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, Iterator, List

from ..hints import EventHint, EventHintKind
from ..models import EventHandlerRecord, FileFact, FunctionFact
from .base import PatternDetector, distribution, function_name, has_import
from .catalog import JS_LANGUAGES

_DOM_EVENT_NAMES = (
    "click",
    "change",
    "submit",
    "load",
    "focus",
    "blur",
    "mouseOver",
    "mouseOut",
    "keyDown",
    "keyUp",
)

_REACT_HINT_KINDS = {
    EventHintKind.REACT_CLICK,
    EventHintKind.REACT_CHANGE,
    EventHintKind.REACT_SUBMIT,
    EventHintKind.REACT_OTHER,
}
_DOM_HINT_KINDS = {EventHintKind.DOM_LISTENER, EventHintKind.DOM_PROPERTY}
_IPC_HINT_KINDS = {EventHintKind.IPC_HANDLE, EventHintKind.IPC_ON}

_REACT_NAMING = (
    (re.compile(r"handle.*click", re.IGNORECASE), "click", "onClick"),
    (re.compile(r"handle.*change", re.IGNORECASE), "change", "onChange"),
    (re.compile(r"handle.*submit", re.IGNORECASE), "submit", "onSubmit"),
    (re.compile(r"on.*click", re.IGNORECASE), "click", "onClick"),
    (re.compile(r"on.*change", re.IGNORECASE), "change", "onChange"),
)

_IPC_SETUP_NAMES = re.compile(r"setup.*ipc|init.*ipc|register.*handler|handler.*setup", re.IGNORECASE)
_IPC_NAME_NOISE = re.compile(r"setup|init|register|handler", re.IGNORECASE)

_EMITTER_NAMES = re.compile(r"emit|listener|observer|notify", re.IGNORECASE)
_CALLBACK_NAMES = re.compile(r"callback|cb$|done$|complete$", re.IGNORECASE)
_ON_PREFIX = re.compile(r"on[A-Z]")

_SIGNAL_DECORATORS = ("receiver", "post_save", "pre_save", "post_delete", "pre_delete", "signal")
_FORM_HANDLER_NAMES = re.compile(r"form.*valid|form.*submit|post|form.*save", re.IGNORECASE)

_HANDLER_NAMES = re.compile(r"handle|click|change|submit|handler|listener|callback", re.IGNORECASE)


def _dashed(name: str) -> str:
    return re.sub(r"([A-Z])", r"-\1", name).lower()


def _dom_event_name(expression: str) -> str:
    match = re.search(r"addEventListener\s*\(\s*['\"]([^'\"]+)['\"]", expression)
    if match:
        return match.group(1)
    match = re.search(r"on([a-zA-Z]+)", expression, re.IGNORECASE)
    if match:
        return match.group(1).lower()
    return "unknown"


def _react_event_name(expression: str) -> str:
    match = re.search(r"on([A-Z][a-zA-Z]*)", expression)
    return match.group(1).lower() if match else "click"


def _ipc_channel(expression: str) -> str:
    match = re.search(r"['\"]([^'\"]*)['\"]", expression)
    return match.group(1) if match and match.group(1) else "unknown-channel"


def infer_ipc_channel(name: str) -> str:
    """``setupFileIpc`` -> ``file-ipc``."""
    channel = _dashed(_IPC_NAME_NOISE.sub("", name))
    if channel.startswith("-"):
        channel = channel[1:]
    return re.sub(r"--+", "-", channel) or "unknown-channel"


def custom_event_name(name: str) -> str:
    """``emitUserCreated`` -> ``user-created``."""
    event = _dashed(_EMITTER_NAMES.sub("", name))
    if event.startswith("-"):
        event = event[1:]
    return event or "custom-event"


def infer_event_type(name: str) -> str:
    lowered = name.lower()
    if "click" in lowered:
        return "onClick"
    if "change" in lowered:
        return "onChange"
    if "submit" in lowered:
        return "onSubmit"
    if "listener" in lowered:
        return "addEventListener"
    return "dom_event"


def infer_event(name: str) -> str:
    lowered = name.lower()
    for event in ("click", "change", "submit", "focus", "blur", "load"):
        if event in lowered:
            return event
    return "unknown"


class EventDetector(PatternDetector[EventHandlerRecord]):
    """Detects functions that register for or respond to events."""

    name = "events"

    def detect_file(self, path: str, fact: FileFact) -> Iterable[EventHandlerRecord]:
        if fact.language in JS_LANGUAGES:
            uses_react = has_import(
                fact, lambda module: module == "react" or module.startswith("react/")
            )
            yield from self._dom(path, fact, uses_react)
            if uses_react:
                yield from self._react(path, fact)
            if has_import(fact, lambda module: "electron" in module):
                yield from self._electron(path, fact)
            yield from self._custom(path, fact)
        elif fact.language == "python":
            if has_import(fact, lambda module: "django" in module):
                yield from self._django(path, fact)
        yield from self._generic(path, fact)

    @staticmethod
    def _record(
        handler_type: str,
        event: str,
        *,
        path: str,
        handler: str,
        line: int,
        framework: str,
        detected_via: str,
        **metadata: Any,
    ) -> EventHandlerRecord:
        return EventHandlerRecord(
            type=handler_type,
            event=event,
            handler=handler,
            line=line,
            framework=framework,
            file=path,
            metadata={"detected_via": detected_via, **metadata},
        )

    # -- DOM ---------------------------------------------------------------

    def _dom(self, path: str, fact: FileFact, uses_react: bool) -> Iterator[EventHandlerRecord]:
        # React-style hints count as DOM handlers when React is not imported.
        accepted = _DOM_HINT_KINDS if uses_react else _DOM_HINT_KINDS | _REACT_HINT_KINDS
        for signature, function in fact.functions.items():
            name = function_name(signature)
            for hint in function.event_handlers:
                if hint.kind not in accepted:
                    continue
                handler_type = (
                    "addEventListener" if hint.kind is EventHintKind.DOM_LISTENER else "dom_event"
                )
                yield self._record(
                    handler_type,
                    _dom_event_name(hint.expression),
                    path=path,
                    handler=name,
                    line=function.line_number,
                    framework="DOM",
                    detected_via="analyzer_event_handlers",
                    original_handler=hint.expression,
                )
            lowered = name.lower()
            for event in _DOM_EVENT_NAMES:
                if event.lower() in lowered:
                    yield self._record(
                        "dom_event",
                        event.lower(),
                        path=path,
                        handler=name,
                        line=function.line_number,
                        framework="DOM",
                        detected_via="function_naming_pattern",
                    )

    # -- React -------------------------------------------------------------

    def _react(self, path: str, fact: FileFact) -> Iterator[EventHandlerRecord]:
        for signature, function in fact.functions.items():
            name = function_name(signature)
            for hint in function.event_handlers:
                if hint.kind not in _REACT_HINT_KINDS:
                    continue
                yield self._react_hint(path, name, function, hint)
            if function.is_component or name[:1] == name[:1].upper():
                for pattern, event, handler_type in _REACT_NAMING:
                    if pattern.search(name):
                        yield self._record(
                            handler_type,
                            event,
                            path=path,
                            handler=name,
                            line=function.line_number,
                            framework="React",
                            detected_via="react_naming_convention",
                            naming_pattern=pattern.pattern,
                        )

    def _react_hint(
        self, path: str, name: str, function: FunctionFact, hint: EventHint
    ) -> EventHandlerRecord:
        return self._record(
            hint.kind.value,
            _react_event_name(hint.expression),
            path=path,
            handler=name,
            line=function.line_number,
            framework="React",
            detected_via="analyzer_event_handlers",
            original_handler=hint.expression,
            is_component=function.is_component,
        )

    # -- Electron ----------------------------------------------------------

    def _electron(self, path: str, fact: FileFact) -> Iterator[EventHandlerRecord]:
        for signature, function in fact.functions.items():
            name = function_name(signature)
            for hint in function.event_handlers:
                if hint.kind not in _IPC_HINT_KINDS:
                    continue
                channel = _ipc_channel(hint.expression)
                yield self._record(
                    hint.kind.value,
                    channel,
                    path=path,
                    handler=name,
                    line=function.line_number,
                    framework="Electron",
                    detected_via="analyzer_event_handlers",
                    original_handler=hint.expression,
                    channel=channel,
                    ipc_type="handle" if hint.kind is EventHintKind.IPC_HANDLE else "on",
                )
            if _IPC_SETUP_NAMES.search(name):
                yield self._record(
                    "ipc_handle",
                    infer_ipc_channel(name),
                    path=path,
                    handler=name,
                    line=function.line_number,
                    framework="Electron",
                    detected_via="function_naming_analysis",
                    setup_function=True,
                )

    # -- Custom emitters and callbacks -------------------------------------

    def _custom(self, path: str, fact: FileFact) -> Iterator[EventHandlerRecord]:
        emitter_import = "EventEmitter" in fact.imports.get("events", []) or has_import(
            fact, lambda module: "eventemitter" in module
        )
        for signature, function in fact.functions.items():
            name = function_name(signature)
            if emitter_import or _EMITTER_NAMES.search(name):
                yield self._record(
                    "addEventListener",
                    custom_event_name(name),
                    path=path,
                    handler=name,
                    line=function.line_number,
                    framework="Custom",
                    detected_via="custom_pattern_analysis",
                    event_emitter_pattern=True,
                )
            if _CALLBACK_NAMES.search(name) or _ON_PREFIX.search(name):
                yield self._record(
                    "dom_event",
                    "callback",
                    path=path,
                    handler=name,
                    line=function.line_number,
                    framework="Custom",
                    detected_via="callback_analysis",
                    callback_pattern=True,
                )

    # -- Django ------------------------------------------------------------

    def _django(self, path: str, fact: FileFact) -> Iterator[EventHandlerRecord]:
        form_imports = has_import(fact, lambda module: "forms" in module)
        for signature, function in fact.functions.items():
            name = function_name(signature)
            for decorator in function.decorators:
                lowered = decorator.name.lower()
                if not any(signal in lowered for signal in _SIGNAL_DECORATORS):
                    continue
                yield self._record(
                    "dom_event",
                    lowered.replace("_", "-", 1),
                    path=path,
                    handler=name,
                    line=function.line_number,
                    framework="Django",
                    detected_via="django_signal_analysis",
                    signal_decorator=decorator.name,
                )
            has_request = any("request" in param.lower() for param in function.parameters)
            if (form_imports or has_request) and _FORM_HANDLER_NAMES.search(name):
                yield self._record(
                    "onSubmit",
                    "form_submit",
                    path=path,
                    handler=name,
                    line=function.line_number,
                    framework="Django",
                    detected_via="django_form_analysis",
                    form_handler=True,
                )

    # -- Generic -----------------------------------------------------------

    def _generic(self, path: str, fact: FileFact) -> Iterator[EventHandlerRecord]:
        for signature, function in fact.functions.items():
            name = function_name(signature)
            if _HANDLER_NAMES.search(name) or _ON_PREFIX.search(name):
                yield self._record(
                    infer_event_type(name),
                    infer_event(name),
                    path=path,
                    handler=name,
                    line=function.line_number,
                    framework="Generic",
                    detected_via="naming_pattern_analysis",
                )

    # -- Statistics --------------------------------------------------------

    def stats(self, records: List[EventHandlerRecord]) -> Dict[str, Any]:
        return {
            "total_handlers": len(records),
            "type_distribution": distribution(record.type for record in records),
            "framework_distribution": distribution(record.framework for record in records),
            "event_distribution": distribution(record.event for record in records),
            "files_with_handlers": list(dict.fromkeys(record.file for record in records)),
        }


__all__ = ["EventDetector", "custom_event_name", "infer_event", "infer_event_type", "infer_ipc_channel"]
