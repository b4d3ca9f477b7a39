"""FastAPI application entrypoint for fairtool service mode."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .. import __version__
from ..archive import ArchiveOpenError, ComparisonError, ContentMismatch
from ..orchestrator import Orchestrator

T = TypeVar("T")


class CatalogRequest(BaseModel):
    artifact_extensions: Optional[List[str]] = None


class CompareRequest(BaseModel):
    trusted: str
    untrusted: str
    threshold: Optional[int] = None


class EntryResult(BaseModel):
    path: str
    status: str
    total_changes: int = 0


class CompareResponse(BaseModel):
    app_name: str
    passed: bool
    core_size: Optional[int] = None
    entries: List[EntryResult] = []
    failures: List[str] = []


class VerifyRequest(BaseModel):
    org: str
    repo: str = "App"


class VerifyResponse(BaseModel):
    status: str
    org: str
    repo: str


class HealthResponse(BaseModel):
    status: str
    version: str


def _default_orchestrator() -> Orchestrator:
    return Orchestrator()


async def _run_blocking(func: Callable[[], T]) -> T:
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:  # pragma: no cover - fallback path when not in async context
        return func()
    return await loop.run_in_executor(None, func)


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing fairtool operations."""

    app = FastAPI(title="Fairtool Service", version=__version__)

    async def get_orchestrator() -> Orchestrator:
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__)

    @app.post("/catalog")
    async def build_catalog(
        payload: CatalogRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> Dict[str, Any]:
        catalog = await _run_blocking(lambda: orchestrator.run_catalog(payload.artifact_extensions))
        return catalog.to_dict()

    @app.post("/compare", response_model=CompareResponse)
    async def compare(
        payload: CompareRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> CompareResponse:
        result = await _run_blocking(
            lambda: orchestrator.compare_artifacts(
                Path(payload.trusted), Path(payload.untrusted), threshold=payload.threshold
            )
        )
        return CompareResponse(
            app_name=result.app_name,
            passed=result.passed,
            core_size=result.core_size,
            entries=[
                EntryResult(path=outcome.path, status=outcome.status, total_changes=outcome.total_changes)
                for outcome in result.outcomes
            ],
            failures=[str(failure) for failure in result.failures],
        )

    @app.post("/verify", response_model=VerifyResponse)
    async def verify(
        payload: VerifyRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> VerifyResponse:
        await _run_blocking(lambda: orchestrator.verify_repository(payload.org, payload.repo))
        return VerifyResponse(status="ok", org=payload.org, repo=payload.repo)

    @app.exception_handler(ArchiveOpenError)
    async def archive_open_handler(_: Any, exc: ArchiveOpenError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ComparisonError)
    async def comparison_handler(_: Any, exc: ComparisonError) -> JSONResponse:
        content: Dict[str, Any] = {"detail": str(exc)}
        if isinstance(exc, ContentMismatch):
            content["path"] = exc.path
            content["total_changes"] = exc.total_changes
        return JSONResponse(status_code=422, content=content)

    @app.exception_handler(RuntimeError)
    async def runtime_error_handler(_: Any, exc: RuntimeError) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(host: str = "0.0.0.0", port: int = 8000) -> None:  # pragma: no cover - integration path
    import uvicorn

    uvicorn.run(create_app(), host=host, port=port)


__all__ = ["create_app", "run_service"]
