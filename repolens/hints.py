"""Typed hints attached to functions by upstream parsers.

Parsers emit loosely shaped strings (state changes, event handlers) and dicts
(API endpoints).  They are classified exactly once, when facts are loaded, into
a small tagged union per category so detectors can dispatch on ``kind``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Tuple


class Mutation(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class StateHintKind(str, Enum):
    USE_STATE = "useState"
    USE_REDUCER = "useReducer"
    SET_STATE = "setState"
    DISPATCH = "dispatch"
    MOBX = "mobx"
    ORM_SAVE = "django_save"
    ORM_CREATE = "django_create"
    ORM_UPDATE = "django_update"
    ORM_DELETE = "django_delete"
    GENERIC = "generic"
    UNKNOWN = "unknown"


class EventHintKind(str, Enum):
    DOM_LISTENER = "addEventListener"
    DOM_PROPERTY = "dom_event"
    REACT_CLICK = "onClick"
    REACT_CHANGE = "onChange"
    REACT_SUBMIT = "onSubmit"
    REACT_OTHER = "react_event"
    IPC_HANDLE = "ipc_handle"
    IPC_ON = "ipc_on"
    UNKNOWN = "unknown"


class ApiHintKind(str, Enum):
    EXPRESS = "express"
    NEST = "nest"
    DJANGO = "django"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class StateHint:
    kind: StateHintKind
    expression: str
    mutation: Optional[Mutation] = None


@dataclass(frozen=True)
class EventHint:
    kind: EventHintKind
    expression: str


@dataclass(frozen=True)
class ApiHint:
    kind: ApiHintKind
    raw_type: str
    method: Optional[str] = None
    route: Optional[str] = None
    line: Optional[int] = None


# Order matters: the first marker found in the expression decides the kind.
_REACT_STATE_MARKERS: Tuple[Tuple[str, StateHintKind], ...] = (
    ("useState", StateHintKind.USE_STATE),
    ("useReducer", StateHintKind.USE_REDUCER),
    ("setState", StateHintKind.SET_STATE),
    ("dispatch", StateHintKind.DISPATCH),
)
_MOBX_STATE_MARKERS = ("observable", "action", "computed")
_ORM_STATE_MARKERS: Tuple[Tuple[str, StateHintKind, Mutation], ...] = (
    ("django_save", StateHintKind.ORM_SAVE, Mutation.UPDATE),
    ("django_create", StateHintKind.ORM_CREATE, Mutation.CREATE),
    ("django_update", StateHintKind.ORM_UPDATE, Mutation.UPDATE),
    ("django_delete", StateHintKind.ORM_DELETE, Mutation.DELETE),
    (".save(", StateHintKind.ORM_SAVE, Mutation.UPDATE),
    (".create(", StateHintKind.ORM_CREATE, Mutation.CREATE),
    (".update(", StateHintKind.ORM_UPDATE, Mutation.UPDATE),
    (".delete(", StateHintKind.ORM_DELETE, Mutation.DELETE),
)
_GENERIC_STATE_PATTERNS: Tuple[Tuple[re.Pattern[str], Mutation], ...] = (
    (re.compile(r"set\w+", re.IGNORECASE), Mutation.UPDATE),
    (re.compile(r"update\w+", re.IGNORECASE), Mutation.UPDATE),
    (re.compile(r"create\w+", re.IGNORECASE), Mutation.CREATE),
    (re.compile(r"delete\w+", re.IGNORECASE), Mutation.DELETE),
    (re.compile(r"add\w+", re.IGNORECASE), Mutation.CREATE),
    (re.compile(r"remove\w+", re.IGNORECASE), Mutation.DELETE),
)


def classify_state_hint(expression: str) -> StateHint:
    """Classify a raw state-change string into a :class:`StateHint`."""
    for marker, kind in _REACT_STATE_MARKERS:
        if marker in expression:
            return StateHint(kind=kind, expression=expression, mutation=Mutation.UPDATE)
    if any(marker in expression for marker in _MOBX_STATE_MARKERS):
        return StateHint(kind=StateHintKind.MOBX, expression=expression)
    for marker, kind, mutation in _ORM_STATE_MARKERS:
        if marker in expression:
            return StateHint(kind=kind, expression=expression, mutation=mutation)
    for pattern, mutation in _GENERIC_STATE_PATTERNS:
        if pattern.search(expression):
            return StateHint(kind=StateHintKind.GENERIC, expression=expression, mutation=mutation)
    return StateHint(kind=StateHintKind.UNKNOWN, expression=expression)


_IPC_MARKERS = (
    "ipc_handle",
    "ipc_on",
    "ipcMain.handle",
    "ipcMain.on",
    "ipcRenderer.on",
    "ipcRenderer.send",
)
_REACT_EVENT_MARKERS = (
    "onClick",
    "onChange",
    "onSubmit",
    "onFocus",
    "onBlur",
    "onMouseOver",
    "onMouseOut",
    "onKeyDown",
    "onKeyUp",
)
_DOM_PROPERTY_MARKERS = ("onclick", "onchange", "onsubmit", "onload")


def classify_event_hint(expression: str) -> EventHint:
    """Classify a raw event-handler string into an :class:`EventHint`."""
    if any(marker in expression for marker in _IPC_MARKERS):
        kind = EventHintKind.IPC_HANDLE if "handle" in expression else EventHintKind.IPC_ON
        return EventHint(kind=kind, expression=expression)
    if "addEventListener" in expression:
        return EventHint(kind=EventHintKind.DOM_LISTENER, expression=expression)
    if any(marker in expression for marker in _REACT_EVENT_MARKERS):
        if "onClick" in expression:
            kind = EventHintKind.REACT_CLICK
        elif "onChange" in expression:
            kind = EventHintKind.REACT_CHANGE
        elif "onSubmit" in expression:
            kind = EventHintKind.REACT_SUBMIT
        else:
            kind = EventHintKind.REACT_OTHER
        return EventHint(kind=kind, expression=expression)
    lowered = expression.lower()
    if any(marker in lowered for marker in _DOM_PROPERTY_MARKERS):
        return EventHint(kind=EventHintKind.DOM_PROPERTY, expression=expression)
    return EventHint(kind=EventHintKind.UNKNOWN, expression=expression)


_EXPRESS_API_TYPES = (
    "express_route",
    "router_route",
    "express_get",
    "express_post",
    "express_put",
    "express_delete",
    "express_patch",
)
_NEST_API_TYPES = (
    "nest_get",
    "nest_post",
    "nest_put",
    "nest_delete",
    "nest_patch",
    "get_endpoint",
    "post_endpoint",
    "put_endpoint",
    "delete_endpoint",
    "patch_endpoint",
)
_DJANGO_API_TYPES = ("django_api_view", "django_path", "django_url", "django_view")


def classify_api_hint(raw: Mapping[str, Any]) -> ApiHint:
    """Classify a raw API endpoint mapping into an :class:`ApiHint`."""
    raw_type = str(raw.get("type") or "")
    if any(marker in raw_type for marker in _EXPRESS_API_TYPES):
        kind = ApiHintKind.EXPRESS
    elif any(marker in raw_type for marker in _NEST_API_TYPES):
        kind = ApiHintKind.NEST
    elif any(marker in raw_type for marker in _DJANGO_API_TYPES):
        kind = ApiHintKind.DJANGO
    else:
        kind = ApiHintKind.UNKNOWN

    route = raw.get("route") or raw.get("path") or raw.get("url")
    method = raw.get("method")
    line = raw.get("line")
    return ApiHint(
        kind=kind,
        raw_type=raw_type,
        method=str(method) if method else None,
        route=str(route) if route else None,
        line=line if isinstance(line, int) else None,
    )


_HTTP_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS")


def hint_http_method(hint: ApiHint) -> Optional[str]:
    """Return the HTTP verb for a hint, inferring it from the type when absent."""
    if hint.method:
        method = hint.method.upper()
        if method in _HTTP_METHODS:
            return method
    lowered = hint.raw_type.lower()
    for method in _HTTP_METHODS:
        if method.lower() in lowered:
            return method
    return None


__all__ = [
    "ApiHint",
    "ApiHintKind",
    "EventHint",
    "EventHintKind",
    "Mutation",
    "StateHint",
    "StateHintKind",
    "classify_api_hint",
    "classify_event_hint",
    "classify_state_hint",
    "hint_http_method",
]
