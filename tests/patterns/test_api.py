"""Tests for API endpoint detection."""

from __future__ import annotations

from repolens.models import RouteParameter
from repolens.patterns.api import ApiDetector, infer_django_route, normalize_route_pattern
from repolens.patterns.base import route_parameters
from tests._fixtures.fact_builder import FactBuilder


def test_route_parameters_extracts_named_segment() -> None:
    assert route_parameters("/users/:id") == [RouteParameter(name="id", type="string", required=True)]


def test_route_parameters_marks_wildcards_optional() -> None:
    params = route_parameters("/files/*")

    assert params == [RouteParameter(name="wildcard0", type="string", required=False)]


def test_express_hint_produces_single_record(facts: FactBuilder) -> None:
    facts.add(
        "server/routes/users.js",
        imports={"express": ["Router"]},
        functions={
            "getUsers()": {
                "line_number": 12,
                "api_endpoints": [{"type": "express_route", "method": "GET", "route": "/users"}],
            }
        },
    )

    records = ApiDetector().detect(facts.build())

    assert len(records) == 1
    record = records[0]
    assert record.framework == "Express"
    assert record.method == "GET"
    assert record.route == "/users"
    assert record.handler == "getUsers"
    assert record.line == 12
    assert record.metadata["detected_via"] == "analyzer_api_endpoints"


def test_express_naming_fallback(facts: FactBuilder) -> None:
    facts.add(
        "server/items.js",
        imports={"express": ["default"]},
        functions={
            "createItem(req, res)": {"line_number": 3},
            "removeItem(req, res)": {"line_number": 9},
            "formatItem(item)": {"line_number": 15},
        },
    )

    records = ApiDetector().detect(facts.build())

    assert [(record.method, record.route, record.handler) for record in records] == [
        ("POST", "/item", "createItem"),
        ("DELETE", "/item", "removeItem"),
    ]
    assert all(record.metadata["detected_via"] == "naming_convention" for record in records)


def test_express_requires_import(facts: FactBuilder) -> None:
    facts.add("client/api.js", imports={"axios": ["default"]}, functions={"getUsers()": {}})

    assert ApiDetector().detect(facts.build()) == []


def test_nest_controller_prefix_composes_route(facts: FactBuilder) -> None:
    facts.add(
        "src/products.controller.ts",
        imports={"@nestjs/common": ["Controller", "Get"]},
        classes={
            "ProductsController": {
                "decorators": [{"name": "Controller", "arguments": ["'products'"]}],
                "line_number": 5,
                "methods": {
                    "findOne(id)": {
                        "line_number": 8,
                        "decorators": [{"name": "Get", "arguments": ["':id'"]}],
                    },
                    "findAll()": {
                        "line_number": 13,
                        "decorators": [{"name": "Get", "arguments": []}],
                    },
                },
            }
        },
    )

    records = ApiDetector().detect(facts.build())

    routes = {record.handler: (record.method, record.route) for record in records}
    assert routes == {
        "ProductsController.findOne": ("GET", "/products/:id"),
        "ProductsController.findAll": ("GET", "/products"),
    }
    find_one = next(record for record in records if record.handler.endswith("findOne"))
    assert find_one.framework == "NestJS"
    assert find_one.parameters == [RouteParameter(name="id")]
    assert find_one.middleware == ["@Get"]


def test_django_api_view_uses_first_method(facts: FactBuilder) -> None:
    facts.add(
        "myapp/views.py",
        imports={"rest_framework.decorators": ["api_view"]},
        functions={
            "user_list(request)": {
                "parameters": ["request"],
                "line_number": 7,
                "decorators": [{"name": "api_view", "arguments": ["['GET', 'POST']"]}],
            }
        },
    )

    records = ApiDetector().detect(facts.build())

    assert len(records) == 1
    assert records[0].method == "GET"
    assert records[0].route == "/user-list/"
    assert records[0].framework == "Django"
    assert records[0].metadata["detected_via"] == "api_view_decorator"


def test_django_function_view_in_views_file(facts: FactBuilder) -> None:
    facts.add(
        "shop/views.py",
        imports={"django.shortcuts": ["render"]},
        functions={
            "order_detail(request, pk)": {"parameters": ["request", "pk"], "line_number": 3},
            "helper(value)": {"parameters": ["value"], "line_number": 9},
        },
    )

    records = ApiDetector().detect(facts.build())

    assert [(record.method, record.route, record.handler) for record in records] == [
        ("GET", "/order-detail/", "order_detail")
    ]


def test_django_class_views(facts: FactBuilder) -> None:
    facts.add(
        "blog/views.py",
        imports={"django.views": ["View"]},
        classes={
            "ArticleListView": {
                "base_classes": ["View"],
                "line_number": 4,
                "methods": {"get(self, request)": {}, "post(self, request)": {}},
            }
        },
    )

    records = ApiDetector().detect(facts.build())

    assert [(record.method, record.route) for record in records] == [
        ("GET", "/article-list/"),
        ("POST", "/article-list/"),
    ]
    assert {record.metadata["detected_via"] for record in records} == {"class_based_view"}


def test_drf_viewset_reports_distinct_actions(facts: FactBuilder) -> None:
    facts.add(
        "api/viewsets.py",
        imports={"rest_framework": ["viewsets"], "django.db": ["models"]},
        classes={
            "UserViewSet": {
                "base_classes": ["viewsets.ModelViewSet"],
                "methods": {"list(self, request)": {}, "retrieve(self, request, pk)": {}, "create(self, request)": {}},
            }
        },
    )

    records = ApiDetector().detect(facts.build())

    assert [record.method for record in records] == ["GET", "POST"]
    assert {record.framework for record in records} == {"Django REST Framework"}


def test_error_files_produce_no_endpoints(facts: FactBuilder) -> None:
    facts.add(
        "server/routes/users.js",
        imports={"express": ["Router"]},
        functions={"getUsers()": {}},
        error="Unexpected token",
    )

    assert ApiDetector().detect(facts.build()) == []


def test_infer_django_route() -> None:
    assert infer_django_route("UserListView") == "/user-list/"
    assert infer_django_route("user_list") == "/user-list/"
    assert infer_django_route("ProfileApi") == "/profile/"
    assert infer_django_route("View") == "/"


def test_infer_django_route_trims_dangling_dashes() -> None:
    assert infer_django_route("user_list_view") == "/user-list/"
    assert infer_django_route("OrderApi") == "/order/"
    assert infer_django_route("_private_view") == "/private/"


def test_stats_summarize_records(facts: FactBuilder) -> None:
    facts.add(
        "server/users.js",
        imports={"express": ["Router"]},
        functions={
            "getUser()": {"api_endpoints": [{"type": "express_get", "route": "/users/:id"}]},
            "getOrder()": {"api_endpoints": [{"type": "express_get", "route": "/orders/:orderId"}]},
        },
    )
    detector = ApiDetector()

    stats = detector.stats(detector.detect(facts.build()))

    assert stats["total_endpoints"] == 2
    assert stats["method_distribution"]["GET"] == 2
    assert stats["framework_distribution"] == {"Express": 2}
    assert stats["files_with_endpoints"] == ["server/users.js"]
    assert {entry["pattern"] for entry in stats["common_patterns"]} == {
        "/users/:param",
        "/orders/:param",
    }


def test_normalize_route_pattern() -> None:
    assert normalize_route_pattern("/a/:id/b/{slug}/<int:pk>") == "/a/:param/b/{param}/<param>"
