"""FastAPI application entrypoint for repolens service mode."""

from __future__ import annotations

import asyncio
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .. import ENGINE_VERSION
from ..aggregator import AggregationOptions, analyze
from ..config import ConfigError, load_config
from ..facts import FactFormatError, facts_from_mapping
from ..formatters import to_dict, to_flat_text
from ..models import AnalysisResult
from ..patterns.catalog import DEFAULT_CATALOG


class AnalyzeRequest(BaseModel):
    files: Dict[str, Dict[str, Any]]
    repository_path: str = "."
    include_frameworks: bool = True
    detect_circular_dependencies: bool = True
    max_circular_depth: int = Field(default=10, ge=0)
    format: str = Field(default="json", pattern="^(json|text)$")


class AnalyzeResponse(BaseModel):
    folder_structure: Dict[str, Any] = Field(default_factory=dict)
    summary: Dict[str, Any] = Field(default_factory=dict)
    dependencies: Dict[str, Any] = Field(default_factory=dict)
    api_endpoints: List[Dict[str, Any]] = Field(default_factory=list)
    circular_dependencies: List[Dict[str, Any]] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    text: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    engine_version: str


def _default_options() -> AggregationOptions:
    return AggregationOptions()


def create_app(
    options_factory: Callable[[], AggregationOptions] = _default_options,
) -> FastAPI:
    """Create the FastAPI application exposing repolens analysis."""

    app = FastAPI(title="repolens Service", version=ENGINE_VERSION)

    async def get_options() -> AggregationOptions:
        # Fresh options per request so payload overrides never leak.
        return options_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", engine_version=ENGINE_VERSION)

    @app.get("/frameworks")
    async def frameworks() -> Dict[str, Any]:
        return {
            "frameworks": [
                {
                    "name": signature.name,
                    "min_confidence": signature.min_confidence,
                    "pattern_count": len(signature.patterns),
                    "primary_languages": list(signature.primary_languages),
                }
                for signature in DEFAULT_CATALOG
            ]
        }

    @app.post("/analyze", response_model=AnalyzeResponse)
    async def analyze_files(
        payload: AnalyzeRequest,
        options: AggregationOptions = Depends(get_options),
    ) -> AnalyzeResponse:
        started = time.time()
        files = facts_from_mapping(payload.files)
        options.repository_path = payload.repository_path
        options.include_frameworks = payload.include_frameworks
        options.detect_circular_dependencies = payload.detect_circular_dependencies
        options.max_circular_depth = payload.max_circular_depth

        def _run_analysis() -> AnalysisResult:
            return analyze(files, options, start_time=started)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:  # pragma: no cover - fallback path when not in async context
            result = _run_analysis()
        else:
            result = await loop.run_in_executor(None, _run_analysis)

        if payload.format == "text":
            return AnalyzeResponse(
                summary=result.summary,
                metadata=result.metadata,
                text=to_flat_text(result),
            )
        return AnalyzeResponse(**to_dict(result))

    @app.exception_handler(FactFormatError)
    async def fact_format_handler(_: Any, exc: FactFormatError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Any, exc: ConfigError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "127.0.0.1", port: int = 8000, config_path: Optional[Path] = None
) -> None:  # pragma: no cover - integration path
    factory: Callable[[], AggregationOptions] = _default_options
    if config_path is not None:
        factory = load_config(config_path).to_options
        factory()  # surface configuration errors before binding the port
    uvicorn.run(create_app(factory), host=host, port=port)
