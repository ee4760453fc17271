"""FastAPI application entrypoint for aidlprep service mode."""

from __future__ import annotations

import asyncio
from typing import Callable, List, Optional

import uvicorn
from fastapi import Depends, FastAPI
from pydantic import BaseModel, Field

from ..generator import ParcelableIndexGenerator
from ..models import GenerationResult


class GenerateRequest(BaseModel):
    paths: List[str] = Field(min_length=1)
    marker_interface: Optional[str] = None
    dry_run: bool = False
    max_workers: Optional[int] = Field(default=None, ge=1)


class ProjectResult(BaseModel):
    project: str
    status: str
    artifact: Optional[str] = None
    parcelables: List[str] = Field(default_factory=list)
    error: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)
    content: Optional[str] = None

    @classmethod
    def from_result(cls, result: GenerationResult) -> "ProjectResult":
        return cls(
            project=str(result.project),
            status=result.status.value,
            artifact=str(result.artifact) if result.artifact else None,
            parcelables=list(result.parcelables),
            error=result.error,
            warnings=list(result.warnings),
            content=result.content,
        )


class GenerateResponse(BaseModel):
    results: List[ProjectResult]


class HealthResponse(BaseModel):
    status: str


GeneratorFactory = Callable[[Optional[str]], ParcelableIndexGenerator]


def _default_generator(marker_interface: Optional[str] = None) -> ParcelableIndexGenerator:
    return ParcelableIndexGenerator(marker_interface=marker_interface)


def create_app(generator_factory: GeneratorFactory = _default_generator) -> FastAPI:
    """Create the FastAPI application exposing aidlprep operations."""

    app = FastAPI(title="aidlprep", version="1.0.0")

    async def get_generator_factory() -> GeneratorFactory:
        return generator_factory

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/generate", response_model=GenerateResponse)
    async def generate(
        payload: GenerateRequest,
        factory: GeneratorFactory = Depends(get_generator_factory),
    ) -> GenerateResponse:
        generator = factory(payload.marker_interface)

        def _run() -> List[GenerationResult]:
            return generator.run_many(
                payload.paths,
                max_workers=payload.max_workers,
                dry_run=payload.dry_run,
            )

        loop = asyncio.get_running_loop()
        results = await loop.run_in_executor(None, _run)
        return GenerateResponse(results=[ProjectResult.from_result(result) for result in results])

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    app = create_app()
    uvicorn.run(app, host=host, port=port)
