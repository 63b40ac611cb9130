"""Tests for repolens.hints."""

from __future__ import annotations

import pytest

from repolens.hints import (
    ApiHintKind,
    EventHintKind,
    Mutation,
    StateHintKind,
    classify_api_hint,
    classify_event_hint,
    classify_state_hint,
    hint_http_method,
)


@pytest.mark.parametrize(
    ("expression", "kind"),
    [
        ("const [count, setCount] = useState(0)", StateHintKind.USE_STATE),
        ("useReducer(reducer, initial)", StateHintKind.USE_REDUCER),
        ("this.setState({ open: true })", StateHintKind.SET_STATE),
        ("dispatch({ type: 'ADD' })", StateHintKind.DISPATCH),
        ("observable(store)", StateHintKind.MOBX),
        ("user.save()", StateHintKind.ORM_SAVE),
        ("User.objects.create(name=name)", StateHintKind.ORM_CREATE),
        ("total = 1", StateHintKind.UNKNOWN),
    ],
)
def test_classify_state_hint_kinds(expression: str, kind: StateHintKind) -> None:
    assert classify_state_hint(expression).kind is kind


def test_generic_state_hint_carries_mutation() -> None:
    hint = classify_state_hint("removeItem(id)")

    assert hint.kind is StateHintKind.GENERIC
    assert hint.mutation is Mutation.DELETE


def test_orm_delete_hint_is_delete_mutation() -> None:
    hint = classify_state_hint("Order.objects.filter(id=1).delete()")

    assert hint.kind is StateHintKind.ORM_DELETE
    assert hint.mutation is Mutation.DELETE


@pytest.mark.parametrize(
    ("expression", "kind"),
    [
        ("ipcMain.handle('load-file', handler)", EventHintKind.IPC_HANDLE),
        ("ipcRenderer.on('progress', cb)", EventHintKind.IPC_ON),
        ("button.addEventListener('click', go)", EventHintKind.DOM_LISTENER),
        ("onClick={handleClick}", EventHintKind.REACT_CLICK),
        ("onChange={update}", EventHintKind.REACT_CHANGE),
        ("onSubmit={save}", EventHintKind.REACT_SUBMIT),
        ("onBlur={validate}", EventHintKind.REACT_OTHER),
        ("window.onload = start", EventHintKind.DOM_PROPERTY),
        ("subscribe(topic)", EventHintKind.UNKNOWN),
    ],
)
def test_classify_event_hint_kinds(expression: str, kind: EventHintKind) -> None:
    assert classify_event_hint(expression).kind is kind


def test_classify_api_hint_reads_route_aliases() -> None:
    hint = classify_api_hint({"type": "express_route", "path": "/items", "line": 4})

    assert hint.kind is ApiHintKind.EXPRESS
    assert hint.route == "/items"
    assert hint.line == 4
    assert hint.method is None


def test_classify_api_hint_unknown_type() -> None:
    assert classify_api_hint({"type": "graphql_resolver"}).kind is ApiHintKind.UNKNOWN


def test_hint_http_method_prefers_explicit_method() -> None:
    hint = classify_api_hint({"type": "express_get", "method": "post", "route": "/x"})

    assert hint_http_method(hint) == "POST"


def test_hint_http_method_infers_from_type() -> None:
    assert hint_http_method(classify_api_hint({"type": "nest_delete"})) == "DELETE"
    assert hint_http_method(classify_api_hint({"type": "express_route"})) is None
