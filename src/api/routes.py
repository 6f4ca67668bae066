"""/projects/{id}/... endpoint handlers."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from sse_starlette.sse import EventSourceResponse

from src.api import service
from src.api.schemas import (
    EditRequest,
    ExtractedAssetSet,
    GenerateRequest,
    SaveVersionRequest,
    ScrapeRequest,
    ScrapingLog,
    Version,
)
from src.auth.dependencies import require_api_key
from src.generation import GenerationClient
from src.scraper import ScrapeError, ScrapingOrchestrator
from src.store.redis import ProjectStore

router = APIRouter(prefix="/projects", dependencies=[Depends(require_api_key)])

SCRAPE_ERROR_STATUS = {
    "invalid_url": 422,
    "quota_exceeded": 429,
    "configuration_missing": 503,
}


def _get_orchestrator(request: Request) -> ScrapingOrchestrator:
    return request.app.state.orchestrator


def _get_generator(request: Request) -> GenerationClient:
    return request.app.state.generator


def _get_store(request: Request) -> ProjectStore:
    return request.app.state.store


def _scrape_http_error(exc: ScrapeError) -> HTTPException:
    return HTTPException(
        status_code=SCRAPE_ERROR_STATUS.get(exc.kind, 502),
        detail={"message": str(exc), "kind": exc.kind},
    )


def _generation_http_error(exc: service.GenerationFailedError) -> HTTPException:
    return HTTPException(
        status_code=502,
        detail={"message": str(exc), "fallback_html": exc.fallback_html},
    )


@router.post("/{project_id}/scrape")
async def scrape(
    project_id: str,
    body: ScrapeRequest,
    orchestrator: ScrapingOrchestrator = Depends(_get_orchestrator),
    store: ProjectStore = Depends(_get_store),
):
    if body.mode == "stream":
        return EventSourceResponse(service.stream_scrape(orchestrator, store, project_id, body))

    try:
        return await service.scrape_project(orchestrator, store, project_id, body)
    except ScrapeError as exc:
        raise _scrape_http_error(exc) from exc


@router.post("/{project_id}/generate", response_model=Version)
async def generate(
    project_id: str,
    body: GenerateRequest,
    generator: GenerationClient = Depends(_get_generator),
    store: ProjectStore = Depends(_get_store),
):
    try:
        return await service.generate_project(generator, store, project_id, body)
    except service.ProjectStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except service.GenerationFailedError as exc:
        raise _generation_http_error(exc) from exc


@router.post("/{project_id}/edit", response_model=Version)
async def edit(
    project_id: str,
    body: EditRequest,
    generator: GenerationClient = Depends(_get_generator),
    store: ProjectStore = Depends(_get_store),
):
    try:
        return await service.edit_project(generator, store, project_id, body)
    except service.ProjectStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except service.GenerationFailedError as exc:
        raise _generation_http_error(exc) from exc


@router.post("/{project_id}/versions", response_model=Version)
async def save_version(
    project_id: str,
    body: SaveVersionRequest,
    store: ProjectStore = Depends(_get_store),
):
    return await service.save_version(store, project_id, body)


@router.get("/{project_id}/versions", response_model=list[Version])
async def list_versions(
    project_id: str,
    store: ProjectStore = Depends(_get_store),
):
    return await store.list_versions(project_id)


@router.get("/{project_id}/style", response_model=ExtractedAssetSet)
async def get_style(
    project_id: str,
    store: ProjectStore = Depends(_get_store),
):
    style = await store.get_style(project_id)
    if style is None:
        raise HTTPException(status_code=404, detail="Project has no scraped assets")
    return style


@router.get("/{project_id}/scrape-logs", response_model=list[ScrapingLog])
async def list_scrape_logs(
    project_id: str,
    store: ProjectStore = Depends(_get_store),
):
    return await store.list_scrape_logs(project_id)
