"""Tests for state-management detection."""

from __future__ import annotations

from repolens.patterns.state import StateDetector, action_type, dispatch_action
from tests._fixtures.fact_builder import FactBuilder


def test_react_hooks_from_hints_and_imports(facts: FactBuilder) -> None:
    facts.add(
        "src/Counter.jsx",
        imports={"react": ["useState"]},
        functions={
            "Counter()": {
                "is_component": True,
                "line_number": 3,
                "state_changes": ["const [count, setCount] = useState(0)"],
            }
        },
    )

    records = StateDetector().detect(facts.build())

    assert [(record.type, record.variable, record.metadata["detected_via"]) for record in records] == [
        ("useState", "count", "analyzer_state_changes"),
        ("useState", "counter", "import_analysis"),
    ]
    assert {record.framework for record in records} == {"React"}
    assert records[1].metadata["is_component"] is True


def test_react_class_component(facts: FactBuilder) -> None:
    facts.add(
        "src/Modal.jsx",
        imports={"react": ["Component"]},
        classes={
            "Modal": {
                "base_classes": ["Component"],
                "line_number": 1,
                "methods": {
                    "constructor(props)": {"line_number": 3},
                    "open()": {"line_number": 8, "state_changes": ["this.setState({ visible: true })"]},
                    "componentDidMount()": {"line_number": 12},
                },
            }
        },
    )

    records = StateDetector().detect(facts.build())

    assert [(record.container, record.mutation_type, record.variable) for record in records] == [
        ("Modal", "create", "state"),
        ("Modal.open", "update", "visible"),
        ("Modal.componentDidMount", "update", "lifecycle_state"),
    ]
    assert {record.context for record in records} == {"class"}


def test_redux_action_creators_and_reducers(facts: FactBuilder) -> None:
    facts.add(
        "store/todos.js",
        imports={"redux": ["combineReducers"]},
        functions={
            "addTodo(text)": {"parameters": ["text"], "line_number": 1},
            "todosReducer(state, action)": {"parameters": ["state", "action"], "line_number": 5},
            "submit()": {"line_number": 20, "state_changes": ["dispatch(addTodo(text))"]},
        },
    )

    records = StateDetector().detect(facts.build())

    pairs = {(record.type, record.variable) for record in records if record.framework == "Redux"}
    assert ("redux_action", "ADD_TODO") in pairs
    assert ("redux_reducer", "todos") in pairs
    assert ("dispatch", "ADD_TODO") in pairs


def test_redux_toolkit_slices_and_thunks(facts: FactBuilder) -> None:
    facts.add(
        "store/user.ts",
        imports={"@reduxjs/toolkit": ["createSlice"]},
        functions={"userSlice()": {"line_number": 2}, "fetchUserThunk()": {"line_number": 9}},
    )

    records = StateDetector().detect(facts.build())

    toolkit = [record for record in records if record.framework == "Redux Toolkit"]
    assert [(record.type, record.variable, record.is_async) for record in toolkit] == [
        ("redux_reducer", "user", False),
        ("redux_action", "fetchuser", True),
    ]


def test_mobx_store_class(facts: FactBuilder) -> None:
    facts.add(
        "stores/cart.ts",
        imports={"mobx": ["observable", "action"]},
        classes={
            "Cart": {
                "decorators": ["observable"],
                "line_number": 2,
                "methods": {"addItem(item)": {"line_number": 6, "decorators": ["action"]}},
            }
        },
    )

    records = StateDetector().detect(facts.build())

    mobx = [record for record in records if record.framework == "MobX"]
    assert [(record.container, record.mutation_type) for record in mobx] == [
        ("Cart", "create"),
        ("Cart.addItem", "update"),
    ]


def test_django_models_and_orm_hints(facts: FactBuilder) -> None:
    facts.add(
        "shop/models.py",
        imports={"django.db.models": ["Model"]},
        classes={
            "Order": {
                "base_classes": ["models.Model"],
                "line_number": 4,
                "methods": {"save(self)": {"line_number": 9}},
            }
        },
    )
    facts.add(
        "shop/services.py",
        imports={"django.db": ["transaction"]},
        functions={
            "close_order(order_id)": {
                "line_number": 2,
                "state_changes": ["Order.objects.filter(id=order_id).delete()"],
            }
        },
    )

    records = StateDetector().detect(facts.build())

    assert [(record.file, record.type, record.mutation_type, record.variable) for record in records] == [
        ("shop/models.py", "django_create", "create", "order"),
        ("shop/models.py", "django_save", "update", "order"),
        ("shop/services.py", "django_delete", "delete", "order"),
    ]


def test_generic_hints_and_naming(facts: FactBuilder) -> None:
    facts.add(
        "lib/cart.py",
        functions={
            "recalculate(items)": {"line_number": 1, "state_changes": ["setTotal(total)"]},
            "CartManager()": {"line_number": 10},
        },
    )

    records = StateDetector().detect(facts.build())

    assert [(record.container, record.variable, record.metadata["detected_via"]) for record in records] == [
        ("recalculate", "setTotal", "generic_pattern_analysis"),
        ("CartManager", "cartmanager", "naming_convention_analysis"),
    ]
    assert {record.framework for record in records} == {"Generic"}


def test_error_files_produce_no_state(facts: FactBuilder) -> None:
    facts.add(
        "src/Counter.jsx",
        imports={"react": ["useState"]},
        functions={"Counter()": {"state_changes": ["useState(0)"]}},
        error="parse failure",
    )

    assert StateDetector().detect(facts.build()) == []


def test_action_helpers() -> None:
    assert action_type("addTodo") == "ADD_TODO"
    assert dispatch_action("dispatch({ type: 'RESET' })") == "RESET"
    assert dispatch_action("dispatch(removeItem(id))") == "REMOVE_ITEM"
    assert dispatch_action("dispatch(action)") == "unknown_action"


def test_stats_count_mutations(facts: FactBuilder) -> None:
    facts.add("lib/cart.py", functions={"CartManager()": {}, "handleSave()": {}})
    detector = StateDetector()

    stats = detector.stats(detector.detect(facts.build()))

    assert stats["total_patterns"] == 2
    assert stats["mutation_distribution"]["update"] == 2
    assert stats["framework_distribution"] == {"Generic": 2}
    assert stats["files_with_state"] == ["lib/cart.py"]
