"""HTTP endpoint detection for Express, NestJS and Django projects."""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, Iterator, List, Optional

from ..hints import ApiHint, ApiHintKind, hint_http_method
from ..models import ApiEndpointRecord, ClassFact, Decorator, FileFact, FunctionFact
from .base import PatternDetector, distribution, function_name, has_import, route_parameters
from .catalog import JS_LANGUAGES

HTTP_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS")

# Express handlers named like ``getUsers`` or ``removeItem``.
_REST_NAMING = (
    (re.compile(r"^get([A-Z][a-zA-Z]*)", re.IGNORECASE), "GET"),
    (re.compile(r"^post([A-Z][a-zA-Z]*)", re.IGNORECASE), "POST"),
    (re.compile(r"^put([A-Z][a-zA-Z]*)", re.IGNORECASE), "PUT"),
    (re.compile(r"^delete([A-Z][a-zA-Z]*)", re.IGNORECASE), "DELETE"),
    (re.compile(r"^patch([A-Z][a-zA-Z]*)", re.IGNORECASE), "PATCH"),
    (re.compile(r"^create([A-Z][a-zA-Z]*)", re.IGNORECASE), "POST"),
    (re.compile(r"^update([A-Z][a-zA-Z]*)", re.IGNORECASE), "PUT"),
    (re.compile(r"^remove([A-Z][a-zA-Z]*)", re.IGNORECASE), "DELETE"),
)

_NEST_DECORATOR_METHODS = {method.lower(): method for method in HTTP_METHODS}

_DJANGO_VIEW_BASES = (
    "View",
    "TemplateView",
    "ListView",
    "DetailView",
    "CreateView",
    "UpdateView",
    "DeleteView",
    "APIView",
    "GenericAPIView",
    "ListAPIView",
    "CreateAPIView",
    "RetrieveAPIView",
    "UpdateAPIView",
    "DestroyAPIView",
    "ListCreateAPIView",
    "RetrieveUpdateAPIView",
    "RetrieveDestroyAPIView",
    "RetrieveUpdateDestroyAPIView",
)
_DRF_VIEW_BASES = (
    "APIView",
    "GenericAPIView",
    "ViewSet",
    "ModelViewSet",
    "ReadOnlyModelViewSet",
    "ListAPIView",
    "CreateAPIView",
    "RetrieveAPIView",
    "UpdateAPIView",
    "DestroyAPIView",
)
_DRF_ACTIONS = {
    "list": "GET",
    "create": "POST",
    "retrieve": "GET",
    "update": "PUT",
    "partial_update": "PATCH",
    "destroy": "DELETE",
    "get": "GET",
    "post": "POST",
    "put": "PUT",
    "patch": "PATCH",
    "delete": "DELETE",
}
_CLASS_VIEW_METHODS = {method.lower(): method for method in HTTP_METHODS}

_STRIP_QUOTES = re.compile(r"['\"]")
_STRIP_LIST = re.compile(r"[\[\]'\"]")


def infer_django_route(name: str) -> str:
    """Slug a view name into a URL: ``UserListView`` -> ``/user-list/``.

    Dashes left at either end after the ``view``/``api`` suffix is removed are
    trimmed, so ``user_list_view`` gives ``/user-list/`` rather than
    ``/user-list-/``, and a bare ``View`` gives ``/``.
    """
    slug = re.sub(r"([A-Z])", r"-\1", name).lower()
    if slug.startswith("-"):
        slug = slug[1:]
    if slug.endswith("view"):
        slug = slug[: -len("view")]
    if slug.endswith("api"):
        slug = slug[: -len("api")]
    slug = slug.replace("_", "-").strip("-")
    return f"/{slug}/" if slug else "/"


def normalize_route_pattern(route: str) -> str:
    """Replace route parameters with placeholders for grouping."""
    route = re.sub(r":[a-zA-Z0-9_]+", ":param", route)
    route = re.sub(r"\{[a-zA-Z0-9_]+\}", "{param}", route)
    return re.sub(r"<[^>]+>", "<param>", route)


def _with_leading_slash(value: str) -> str:
    return value if value.startswith("/") else f"/{value}"


class ApiDetector(PatternDetector[ApiEndpointRecord]):
    """Detects API endpoints from hints, decorators and naming conventions."""

    name = "api"

    def detect_file(self, path: str, fact: FileFact) -> Iterable[ApiEndpointRecord]:
        if fact.language in JS_LANGUAGES:
            yield from self._express(path, fact)
            yield from self._nestjs(path, fact)
        elif fact.language == "python":
            yield from self._django(path, fact)

    # -- Express -----------------------------------------------------------

    def _express(self, path: str, fact: FileFact) -> Iterator[ApiEndpointRecord]:
        if not has_import(fact, lambda module: "express" in module):
            return
        for signature, function in fact.functions.items():
            handler = function_name(signature)
            from_hints = [
                record
                for record in (
                    self._express_from_hint(hint, path, handler, function.line_number)
                    for hint in function.api_endpoints
                )
                if record is not None
            ]
            if from_hints:
                yield from from_hints
            else:
                yield from self._express_from_name(path, handler, function)
        for hint in fact.api_endpoints:
            record = self._express_from_hint(hint, path, "anonymous", 0)
            if record is not None:
                yield record

    def _express_from_hint(
        self, hint: ApiHint, path: str, handler: str, line: int
    ) -> Optional[ApiEndpointRecord]:
        if hint.kind is not ApiHintKind.EXPRESS:
            return None
        method = hint_http_method(hint)
        if not method or not hint.route:
            return None
        return ApiEndpointRecord(
            type=hint.raw_type or "express_route",
            method=method,
            route=hint.route,
            framework="Express",
            file=path,
            line=line or hint.line or 0,
            handler=handler,
            parameters=route_parameters(hint.route),
            metadata={"detected_via": "analyzer_api_endpoints"},
        )

    def _express_from_name(
        self, path: str, handler: str, function: FunctionFact
    ) -> Iterator[ApiEndpointRecord]:
        lowered = handler.lower()
        for pattern, method in _REST_NAMING:
            match = pattern.match(lowered)
            if match is None:
                continue
            route = f"/{match.group(1).lower()}"
            yield ApiEndpointRecord(
                type="express_handler",
                method=method,
                route=route,
                framework="Express",
                file=path,
                line=function.line_number,
                handler=handler,
                parameters=route_parameters(route),
                metadata={"detected_via": "naming_convention"},
            )

    # -- NestJS ------------------------------------------------------------

    def _nestjs(self, path: str, fact: FileFact) -> Iterator[ApiEndpointRecord]:
        if not has_import(fact, lambda module: module.startswith("@nestjs/") or "nestjs" in module):
            return
        prefix = self._controller_prefix(fact.classes)
        for signature, function in fact.functions.items():
            yield from self._nest_handler(path, function_name(signature), function, prefix)
        for class_name, cls in fact.classes.items():
            for signature, method in cls.methods.items():
                handler = f"{class_name}.{function_name(signature)}"
                yield from self._nest_handler(path, handler, method, prefix)

    def _nest_handler(
        self, path: str, handler: str, function: FunctionFact, prefix: str
    ) -> Iterator[ApiEndpointRecord]:
        from_decorators = [
            record
            for record in (
                self._nest_from_decorator(decorator, path, handler, function.line_number, prefix)
                for decorator in function.decorators
            )
            if record is not None
        ]
        if from_decorators:
            yield from from_decorators
            return
        for hint in function.api_endpoints:
            record = self._nest_from_hint(hint, path, handler, function.line_number, prefix)
            if record is not None:
                yield record

    @staticmethod
    def _controller_prefix(classes: Dict[str, ClassFact]) -> str:
        for cls in classes.values():
            for decorator in cls.decorators:
                if "Controller" not in decorator.name:
                    continue
                if decorator.arguments and decorator.arguments[0]:
                    return _with_leading_slash(_STRIP_QUOTES.sub("", decorator.arguments[0]))
                return ""
        return ""

    @staticmethod
    def _nest_method(decorator: Decorator) -> Optional[str]:
        lowered = decorator.name.lower()
        if lowered in _NEST_DECORATOR_METHODS:
            return _NEST_DECORATOR_METHODS[lowered]
        for name, method in _NEST_DECORATOR_METHODS.items():
            if name in lowered:
                return method
        return None

    def _nest_from_decorator(
        self, decorator: Decorator, path: str, handler: str, line: int, prefix: str
    ) -> Optional[ApiEndpointRecord]:
        method = self._nest_method(decorator)
        if method is None:
            return None
        route = "/"
        if decorator.arguments and decorator.arguments[0]:
            argument = _STRIP_QUOTES.sub("", decorator.arguments[0])
            if argument:
                route = _with_leading_slash(argument)
        if prefix:
            route = prefix if route == "/" else prefix + route
        return ApiEndpointRecord(
            type=f"nestjs_{method.lower()}",
            method=method,
            route=route,
            framework="NestJS",
            file=path,
            line=line,
            handler=handler,
            parameters=route_parameters(route),
            middleware=[f"@{decorator.name}"],
            metadata={"detected_via": "decorator"},
        )

    def _nest_from_hint(
        self, hint: ApiHint, path: str, handler: str, line: int, prefix: str
    ) -> Optional[ApiEndpointRecord]:
        if hint.kind is not ApiHintKind.NEST:
            return None
        method = hint_http_method(hint)
        if method is None:
            return None
        route = hint.route or "/"
        if prefix and not route.startswith(prefix):
            route = prefix + _with_leading_slash(route)
        return ApiEndpointRecord(
            type=hint.raw_type or "nestjs_endpoint",
            method=method,
            route=route,
            framework="NestJS",
            file=path,
            line=line or hint.line or 0,
            handler=handler,
            parameters=route_parameters(route),
            metadata={"detected_via": "analyzer_api_endpoints"},
        )

    # -- Django ------------------------------------------------------------

    def _django(self, path: str, fact: FileFact) -> Iterator[ApiEndpointRecord]:
        if not has_import(
            fact, lambda module: "django" in module or module.startswith("rest_framework")
        ):
            return
        views_file = "views.py" in path or "views/" in path
        urls_file = "urls.py" in path or "urls/" in path
        uses_drf = has_import(
            fact, lambda module: "rest_framework" in module or "serializers" in module
        )

        for signature, function in fact.functions.items():
            handler = function_name(signature)
            records = self._django_from_hints(path, handler, function) or self._django_from_decorators(
                path, handler, function
            )
            if records:
                yield from records
                continue
            if views_file and _has_request_param(function):
                route = infer_django_route(handler)
                yield self._django_record(
                    "django_view", "GET", route, path, function.line_number, handler, "views_file"
                )
            elif urls_file and ("path" in signature or "url" in signature):
                yield self._django_record(
                    "django_url_pattern", "GET", "/unknown/", path, function.line_number, handler, "urls_file"
                )

        for class_name, cls in fact.classes.items():
            if uses_drf and _inherits(cls, _DRF_VIEW_BASES):
                for method in _drf_methods(cls):
                    yield self._django_record(
                        "django_rest_framework",
                        method,
                        infer_django_route(class_name),
                        path,
                        cls.line_number,
                        class_name,
                        "drf_view_class",
                        framework="Django REST Framework",
                    )
            elif views_file and _inherits(cls, _DJANGO_VIEW_BASES):
                for method in _class_view_methods(cls):
                    yield self._django_record(
                        "django_class_view",
                        method,
                        infer_django_route(class_name),
                        path,
                        cls.line_number,
                        class_name,
                        "class_based_view",
                    )

    def _django_from_hints(
        self, path: str, handler: str, function: FunctionFact
    ) -> List[ApiEndpointRecord]:
        records: List[ApiEndpointRecord] = []
        for hint in function.api_endpoints:
            if hint.kind is not ApiHintKind.DJANGO:
                continue
            route = hint.route or infer_django_route(handler)
            record = self._django_record(
                hint.raw_type or "django_endpoint",
                hint_http_method(hint) or "GET",
                route,
                path,
                function.line_number or hint.line or 0,
                handler,
                "analyzer_api_endpoints",
            )
            record.parameters = route_parameters(route)
            records.append(record)
        return records

    def _django_from_decorators(
        self, path: str, handler: str, function: FunctionFact
    ) -> List[ApiEndpointRecord]:
        for decorator in function.decorators:
            if "api_view" not in decorator.name:
                continue
            methods = _api_view_methods(decorator)
            record = self._django_record(
                "django_api_view",
                methods[0],
                infer_django_route(handler),
                path,
                function.line_number,
                handler,
                "api_view_decorator",
            )
            record.middleware = [f"@{decorator.name}"]
            return [record]
        return []

    @staticmethod
    def _django_record(
        record_type: str,
        method: str,
        route: str,
        path: str,
        line: int,
        handler: str,
        detected_via: str,
        *,
        framework: str = "Django",
    ) -> ApiEndpointRecord:
        return ApiEndpointRecord(
            type=record_type,
            method=method,
            route=route,
            framework=framework,
            file=path,
            line=line,
            handler=handler,
            metadata={"detected_via": detected_via},
        )

    # -- Statistics --------------------------------------------------------

    def stats(self, records: List[ApiEndpointRecord]) -> Dict[str, Any]:
        methods = {method: 0 for method in HTTP_METHODS}
        for record in records:
            methods[record.method] = methods.get(record.method, 0) + 1
        patterns = distribution(normalize_route_pattern(record.route) for record in records)
        common = sorted(patterns.items(), key=lambda item: item[1], reverse=True)[:10]
        return {
            "total_endpoints": len(records),
            "method_distribution": methods,
            "framework_distribution": distribution(record.framework for record in records),
            "files_with_endpoints": list(dict.fromkeys(record.file for record in records)),
            "common_patterns": [{"pattern": pattern, "count": count} for pattern, count in common],
        }


def _has_request_param(function: FunctionFact) -> bool:
    return any("request" in parameter.lower() for parameter in function.parameters)


def _inherits(cls: ClassFact, bases: Iterable[str]) -> bool:
    names = tuple(bases)
    return any(known in base for base in cls.base_classes for known in names)


def _method_names(cls: ClassFact) -> Iterator[str]:
    for signature in cls.methods:
        yield signature.split("(", 1)[0].lower()


def _class_view_methods(cls: ClassFact) -> List[str]:
    methods = [_CLASS_VIEW_METHODS[name] for name in _method_names(cls) if name in _CLASS_VIEW_METHODS]
    return methods or ["GET"]


def _drf_methods(cls: ClassFact) -> List[str]:
    methods = [_DRF_ACTIONS[name] for name in _method_names(cls) if name in _DRF_ACTIONS]
    return list(dict.fromkeys(methods)) or ["GET"]


def _api_view_methods(decorator: Decorator) -> List[str]:
    methods: List[str] = []
    if decorator.arguments:
        argument = decorator.arguments[0]
        if "[" in argument and "]" in argument:
            for item in _STRIP_LIST.sub("", argument).split(","):
                method = item.strip().upper()
                if method in HTTP_METHODS:
                    methods.append(method)
    return methods or ["GET"]


__all__ = ["ApiDetector", "HTTP_METHODS", "infer_django_route", "normalize_route_pattern"]
