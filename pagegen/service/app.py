"""FastAPI application entrypoint for pagegen service mode."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import unquote, urlparse

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import PageGenConfig
from ..constants import SOURCE_SUFFIX
from ..extractor import extract_metadata
from ..fs import is_within
from ..logging import get_logger
from ..orchestrator import BuildError, BuildReport, Orchestrator

logger = get_logger("service")


class HealthResponse(BaseModel):
    status: str


class BuildRequest(BaseModel):
    force: bool = False


class BuildResponse(BaseModel):
    status: str
    discovered: int
    changed: int
    rendered: int
    skipped: int
    failed: Dict[str, str]
    pages_with_errors: int
    manifest_path: Optional[str] = None
    backup_path: Optional[str] = None


class PageLink(BaseModel):
    name: str
    level: str
    title: str
    url: str


class MetaResponse(BaseModel):
    url: str
    title: Optional[str] = None
    metadata: Dict[str, str]
    diagnostics: List[str]


def create_app(orchestrator_factory: Callable[[], Orchestrator]) -> FastAPI:
    """Create the FastAPI application exposing pagegen builds and outputs."""

    app = FastAPI(title="Pagegen Service", version="1.0.0")
    holder: Dict[str, Orchestrator] = {}

    async def get_orchestrator() -> Orchestrator:
        # One orchestrator per app so concurrent build requests share its cycle lock.
        if "orchestrator" not in holder:
            holder["orchestrator"] = orchestrator_factory()
        return holder["orchestrator"]

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/api/sitemap")
    async def sitemap(orchestrator: Orchestrator = Depends(get_orchestrator)) -> Dict[str, Any]:
        return _read_manifest(orchestrator.config)

    @app.get("/api/pages", response_model=List[PageLink])
    async def pages(orchestrator: Orchestrator = Depends(get_orchestrator)) -> List[PageLink]:
        try:
            manifest = _read_manifest(orchestrator.config)
        except HTTPException:
            return []
        return [
            PageLink(
                name=str(entry.get("name", "")),
                level=str(entry.get("level", "")),
                title=str(entry.get("title", "")),
                url=str(entry.get("url", "")),
            )
            for entry in manifest.get("pages", [])
            if isinstance(entry, dict)
        ]

    @app.get("/api/meta", response_model=MetaResponse)
    async def page_meta(
        url: str = Query(..., min_length=1),
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> MetaResponse:
        config = orchestrator.config
        path = _resolve_page_path(config, url)
        if not path.is_file():
            raise HTTPException(status_code=404, detail=f"Page not found: {url}")
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise HTTPException(status_code=400, detail=f"Page is not readable: {url}") from exc
        result = extract_metadata(text, title_suffix=config.site.name)
        return MetaResponse(
            url=url,
            title=result.metadata.get("title") or result.title,
            metadata=result.metadata,
            diagnostics=result.diagnostics,
        )

    @app.post("/api/build", response_model=BuildResponse)
    async def build(
        payload: BuildRequest | None = None,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> BuildResponse:
        force = payload.force if payload is not None else False

        def _run_build() -> BuildReport:
            return orchestrator.run_build(force=force)

        loop = asyncio.get_running_loop()
        report = await loop.run_in_executor(None, _run_build)
        return BuildResponse(
            status="ok" if report.ok else "partial",
            discovered=report.discovered,
            changed=report.changed,
            rendered=report.rendered,
            skipped=report.skipped,
            failed=dict(report.failed),
            pages_with_errors=report.pages_with_errors,
            manifest_path=str(report.manifest_path) if report.manifest_path else None,
            backup_path=str(report.backup_path) if report.backup_path else None,
        )

    @app.get("/api/backups")
    async def backups(orchestrator: Orchestrator = Depends(get_orchestrator)) -> List[Dict[str, object]]:
        return [info.to_dict() for info in orchestrator.backups.list_snapshots()]

    @app.exception_handler(BuildError)
    async def build_error_handler(_: Any, exc: BuildError) -> JSONResponse:
        logger.error("Build request failed: %s", exc)
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    return app


def _read_manifest(config: PageGenConfig) -> Dict[str, Any]:
    path = config.manifest_path
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Sitemap has not been built yet") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise HTTPException(status_code=500, detail=f"Sitemap unreadable: {exc}") from exc
    if not isinstance(payload, dict):
        raise HTTPException(status_code=500, detail="Sitemap has an unexpected shape")
    return payload


def _resolve_page_path(config: PageGenConfig, url: str) -> Path:
    """Map a page URL onto a rendered file under the output directory."""
    raw = url
    base = config.site.base_url
    if base and raw.startswith(base):
        raw = raw[len(base):]
    relative = unquote(urlparse(raw).path).lstrip("/")
    if not relative or not relative.lower().endswith(SOURCE_SUFFIX):
        raise HTTPException(status_code=400, detail="url must point at an .html page")
    candidate = config.output_dir / relative
    if not is_within(candidate, config.output_dir):
        raise HTTPException(status_code=400, detail="url escapes the site root")
    return candidate


def run_service(
    config: PageGenConfig, host: str = "127.0.0.1", port: int = 8000
) -> None:  # pragma: no cover - integration path
    app = create_app(lambda: Orchestrator(config))
    uvicorn.run(app, host=host, port=port)


__all__ = ["create_app", "run_service"]
