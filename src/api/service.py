"""Service layer — runs the scrape/generate/edit pipeline for the API routes."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, AsyncGenerator

from src.api.schemas import (
    EditRequest,
    ExtractedAssetSet,
    GenerateRequest,
    SaveVersionRequest,
    ScrapeRequest,
    Version,
)
from src.events import DONE, ERROR, RESULT, EventCallback, emit_event
from src.generation import GenerationClient
from src.scraper import ScrapeError, ScrapingOrchestrator
from src.store.redis import ProjectStore

logger = logging.getLogger(__name__)

GENERATION_PROMPT_PREFIX = (
    "Create a landing page that uses lorem ipsum placeholder text for all marketing content.\n"
    "Additional instructions:\n"
)


class ProjectStateError(Exception):
    """The project is missing something the operation needs (style, a current version)."""


class GenerationFailedError(Exception):
    def __init__(self, message: str, fallback_html: str) -> None:
        super().__init__(message)
        self.fallback_html = fallback_html


async def scrape_project(
    orchestrator: ScrapingOrchestrator,
    store: ProjectStore,
    project_id: str,
    body: ScrapeRequest,
    on_event: EventCallback | None = None,
) -> ExtractedAssetSet:
    """Scrape the brand site, store the style and open the version chain."""
    style = await orchestrator.scrape(body.url, project_id, brand=body.brand, on_event=on_event)
    await store.save_style(project_id, style)
    await store.create_version(project_id, html="", settings=style)
    logger.info(
        "project scraped",
        extra={"project_id": project_id, "colors": len(style.colors), "images": len(style.images)},
    )
    return style


async def stream_scrape(
    orchestrator: ScrapingOrchestrator,
    store: ProjectStore,
    project_id: str,
    body: ScrapeRequest,
) -> AsyncGenerator[dict[str, str], None]:
    """Yield SSE-formatted progress events, then ``result`` or ``error``, then ``done``.

    If the client disconnects, the scrape keeps running so its style and
    first version are still stored.
    """
    logger.info("streaming scrape started", extra={"project_id": project_id, "url": body.url})

    queue: asyncio.Queue[tuple[str, dict[str, Any]] | None] = asyncio.Queue()

    async def on_event(event: str, data: dict[str, Any]) -> None:
        await queue.put((event, data))

    async def run_and_signal_done() -> None:
        try:
            style = await scrape_project(orchestrator, store, project_id, body, on_event=on_event)
            await emit_event(on_event, RESULT, style.model_dump(mode="json"))
        except ScrapeError as exc:
            await emit_event(on_event, ERROR, {"message": str(exc), "kind": exc.kind})
        except Exception:
            logger.exception("streaming scrape failed", extra={"project_id": project_id})
            await emit_event(on_event, ERROR, {"message": "Scrape failed", "kind": "internal"})
        finally:
            await queue.put((DONE, {}))
            await queue.put(None)  # sentinel

    task = asyncio.create_task(run_and_signal_done())

    while True:
        item = await queue.get()
        if item is None:
            break
        event, data = item
        yield {"event": event, "data": json.dumps(data)}

    await task


async def generate_project(
    generator: GenerationClient,
    store: ProjectStore,
    project_id: str,
    body: GenerateRequest,
) -> Version:
    """Merge the user's selection into the style, generate, append a version."""
    style = await store.get_style(project_id)
    if style is None:
        raise ProjectStateError("Project has no scraped assets yet")

    dominant_color = body.dominant_color or (style.colors[0] if style.colors else None)
    style = style.with_selection(
        dominant_color=dominant_color,
        primary_font=body.primary_font,
        logo=body.logo,
    )
    await store.save_style(project_id, style)

    instructions = body.instructions.strip()
    result = await generator.generate(
        f"{GENERATION_PROMPT_PREFIX}{instructions}",
        style,
        style.screenshot,
    )
    if result.error:
        raise GenerationFailedError(result.error, result.html)

    return await store.create_version(
        project_id,
        html=result.html,
        css=result.css,
        prompt_instructions=instructions,
        created_by=body.created_by,
        settings=style,
    )


async def edit_project(
    generator: GenerationClient,
    store: ProjectStore,
    project_id: str,
    body: EditRequest,
) -> Version:
    current = await store.get_current_version(project_id)
    if current is None:
        raise ProjectStateError("Project has no current version to edit")

    style = await store.get_style(project_id)
    result = await generator.edit(
        current.html_content,
        body.instructions,
        screenshot=style.screenshot if style else None,
        model=body.model,
    )
    if result.error:
        raise GenerationFailedError(result.error, result.html)

    return await store.create_version(
        project_id,
        html=result.html,
        css=result.css,
        prompt_instructions=body.instructions,
        created_by=body.created_by,
        settings=current.settings,
    )


async def save_version(
    store: ProjectStore,
    project_id: str,
    body: SaveVersionRequest,
) -> Version:
    current = await store.get_current_version(project_id)
    return await store.create_version(
        project_id,
        html=body.html,
        created_by=body.created_by,
        settings=current.settings if current else None,
    )
