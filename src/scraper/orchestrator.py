"""Scraping orchestrator — markup + screenshot acquisition, asset extraction, audit log."""

from __future__ import annotations

import asyncio
import base64
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, Protocol

import httpx

from src.api.schemas import AssetsFound, ExtractedAssetSet, ScrapingLog
from src.events import EventCallback, emit_status
from src.storage.assets import store_project_assets
from src.storage.base import AssetStorage

from .errors import (
    ConfigurationError,
    InvalidUrlError,
    NetworkExhaustedError,
    QuotaExceededError,
    ScrapeError,
    ScrapingServerError,
)
from .extractors import (
    extract_colors,
    extract_fonts,
    extract_meta_description,
    find_images,
    parse_document,
)
from .images import extract_palette, rgb_string, validate_image
from .models import ScrapeResult, ScreenshotCapture
from .scrapingbee import ScrapingBeeClient
from .urls import resolve_url, validate_url

logger = logging.getLogger(__name__)

EXHAUSTED_MESSAGE = "Failed to scrape website. Please check the URL and try again."
INVALID_URL_MESSAGE = "Invalid URL format. Please use http:// or https://"
SVG_DATA_URI_PREFIX = "data:image/svg+xml;base64,"
MAX_MARKUP_COLORS = 12


class ScrapeLogSink(Protocol):
    async def append_scrape_log(self, project_id: str, log: ScrapingLog) -> None: ...


@dataclass
class _ScrapeRun:
    started: float = field(default_factory=time.monotonic)
    retries: int = 0

    @property
    def duration_ms(self) -> int:
        return int((time.monotonic() - self.started) * 1000)


def _sniff_image_type(data: bytes) -> tuple[str, str]:
    """Return (content type, file extension) for a screenshot payload."""
    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg", "jpg"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp", "webp"
    return "image/png", "png"


class ScrapingOrchestrator:
    """Turns a website URL into a persisted ExtractedAssetSet.

    Raises only ``ScrapeError`` subclasses: missing configuration, invalid
    URL, exhausted quota, or network/server failures that outlived the retry
    budget. Screenshot, palette and per-asset failures degrade the result
    instead. Every call writes exactly one ScrapingLog.
    """

    def __init__(
        self,
        client: ScrapingBeeClient,
        storage: AssetStorage,
        log_sink: ScrapeLogSink,
        *,
        credentials: dict[str, str] | None = None,
        max_attempts: int = 3,
        retry_delay: float = 2.0,
        image_timeout: float = 5.0,
        blank_stddev: float = 0.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._storage = storage
        self._log_sink = log_sink
        self._credentials = credentials or {}
        self._max_attempts = max(1, max_attempts)
        self._retry_delay = retry_delay
        self._image_timeout = image_timeout
        self._blank_stddev = blank_stddev
        self._sleep = sleep

    async def scrape(
        self,
        url: str,
        project_id: str,
        brand: str | None = None,
        on_event: EventCallback | None = None,
    ) -> ExtractedAssetSet:
        url = url.strip()
        run = _ScrapeRun()
        logger.info("scrape started", extra={"url": url, "project_id": project_id, "brand": brand})

        try:
            await emit_status(on_event, "validating", "Checking configuration and URL...")
            self._check_configuration()
            if not validate_url(url):
                raise InvalidUrlError(INVALID_URL_MESSAGE)
            result = await self._fetch_with_retry(url, project_id, run, on_event)
        except ScrapeError as exc:
            logger.warning(
                "scrape failed",
                extra={"url": url, "project_id": project_id, "kind": exc.kind, "retries": run.retries},
            )
            await self._record(project_id, url, run, success=False, errors=[str(exc)])
            raise

        assets = await self._build_asset_set(url, project_id, brand, result, on_event)
        await self._record(project_id, url, run, success=True, assets=assets)
        return assets

    def _check_configuration(self) -> None:
        missing = [name for name, value in self._credentials.items() if not value]
        if missing:
            raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")

    async def _fetch_with_retry(
        self,
        url: str,
        project_id: str,
        run: _ScrapeRun,
        on_event: EventCallback | None,
    ) -> ScrapeResult:
        for attempt in range(1, self._max_attempts + 1):
            try:
                return await self._scrape_once(url, project_id, on_event)
            except QuotaExceededError:
                raise
            except (ScrapingServerError, httpx.TransportError) as exc:
                if attempt == self._max_attempts:
                    raise NetworkExhaustedError(EXHAUSTED_MESSAGE) from exc
                delay = self._retry_delay * attempt
                logger.warning(
                    "scrape attempt failed, retrying",
                    extra={
                        "url": url,
                        "attempt": attempt,
                        "max_attempts": self._max_attempts,
                        "delay": delay,
                        "error": str(exc) or type(exc).__name__,
                    },
                )
                run.retries += 1
                await self._sleep(delay)
            except httpx.HTTPError as exc:
                raise ScrapeError(EXHAUSTED_MESSAGE) from exc
        raise NetworkExhaustedError(EXHAUSTED_MESSAGE)

    async def _scrape_once(
        self,
        url: str,
        project_id: str,
        on_event: EventCallback | None,
    ) -> ScrapeResult:
        await emit_status(on_event, "fetching_markup", "Fetching rendered page...")
        markup = await self._client.fetch_html(url)
        timestamp = datetime.now(timezone.utc).isoformat()

        await emit_status(on_event, "capturing_screenshot", "Capturing screenshot...")
        capture = await self._capture_screenshot(url, project_id)
        return ScrapeResult(
            markup=markup,
            timestamp=timestamp,
            screenshot_url=capture.url,
            palette=capture.palette,
        )

    # --- Screenshot (best effort) ---

    async def _request_screenshot(self, url: str, fallback: bool) -> bytes | None:
        try:
            data = await self._client.fetch_screenshot(url, fallback=fallback)
        except (ScrapeError, httpx.HTTPError):
            logger.warning("screenshot request failed", extra={"url": url, "fallback": fallback}, exc_info=True)
            return None
        if not data:
            logger.warning("screenshot payload empty", extra={"url": url, "fallback": fallback})
            return None
        return data

    async def _is_valid_screenshot(self, data: bytes) -> bool:
        return await validate_image(data, timeout=self._image_timeout, blank_stddev=self._blank_stddev)

    async def _capture_screenshot(self, url: str, project_id: str) -> ScreenshotCapture:
        data = await self._request_screenshot(url, fallback=False)
        if data is None:
            return ScreenshotCapture()

        if not await self._is_valid_screenshot(data):
            logger.warning("screenshot invalid, retrying with longer wait", extra={"url": url})
            data = await self._request_screenshot(url, fallback=True)
            if data is None or not await self._is_valid_screenshot(data):
                logger.warning("fallback screenshot unusable, continuing without screenshot", extra={"url": url})
                return ScreenshotCapture()

        screenshot_url = await self._upload_screenshot(data, project_id)
        if screenshot_url is None:
            return ScreenshotCapture()

        palette = await extract_palette(data, timeout=self._image_timeout)
        return ScreenshotCapture(url=screenshot_url, palette=palette)

    async def _upload_screenshot(self, data: bytes, project_id: str) -> str | None:
        content_type, ext = _sniff_image_type(data)
        path = f"{project_id}/screenshots/{int(time.time() * 1000)}-screenshot.{ext}"
        try:
            return await self._storage.upload(data, path, content_type)
        except Exception:
            logger.warning("screenshot upload failed", extra={"project_id": project_id}, exc_info=True)
            return None

    async def _store_inline_logo(self, data_uri: str, project_id: str) -> str | None:
        path = f"{project_id}/logos/{int(time.time() * 1000)}-logo.svg"
        try:
            svg = base64.b64decode(data_uri[len(SVG_DATA_URI_PREFIX):])
            public_url = await self._storage.upload(svg, path, "image/svg+xml")
            await self._storage.insert_asset(project_id, "logo", public_url, path)
        except Exception:
            logger.warning("inline logo store failed", extra={"project_id": project_id}, exc_info=True)
            return None
        return public_url

    # --- Extraction + persistence ---

    async def _build_asset_set(
        self,
        url: str,
        project_id: str,
        brand: str | None,
        result: ScrapeResult,
        on_event: EventCallback | None,
    ) -> ExtractedAssetSet:
        await emit_status(on_event, "extracting_assets", "Extracting fonts, colors and images...")
        soup = parse_document(result.markup)
        fonts = extract_fonts(soup)
        candidates = find_images(soup, brand)

        if result.palette:
            colors = [rgb_string(color) for color in result.palette]
        else:
            colors = extract_colors(soup)[:MAX_MARKUP_COLORS]

        inline_logo: str | None = None
        remote_logo: str | None = None
        if candidates.logo and candidates.logo.startswith(SVG_DATA_URI_PREFIX):
            inline_logo = await self._store_inline_logo(candidates.logo, project_id)
        elif candidates.logo:
            remote_logo = resolve_url(url, candidates.logo) or None

        images = [
            resolved
            for resolved in (
                resolve_url(url, source)
                for source in [candidates.hero_image, *candidates.feature_images]
            )
            if resolved
        ]

        await emit_status(on_event, "storing_assets", "Saving assets...")
        stored = await store_project_assets(
            self._storage,
            project_id,
            images,
            logo=remote_logo,
            screenshot=result.screenshot_url,
        )

        return ExtractedAssetSet(
            colors=colors,
            fonts=fonts,
            images=stored.images,
            logo=inline_logo or stored.logo,
            screenshot=stored.screenshot,
            screenshot_timestamp=result.timestamp,
            palette=result.palette,
            meta_description=extract_meta_description(soup),
        )

    async def _record(
        self,
        project_id: str,
        url: str,
        run: _ScrapeRun,
        *,
        success: bool,
        assets: ExtractedAssetSet | None = None,
        errors: list[str] | None = None,
    ) -> None:
        found = AssetsFound()
        if assets is not None:
            found = AssetsFound(
                colors=len(assets.colors),
                fonts=len(assets.fonts),
                images=len(assets.images),
                logo=assets.logo is not None,
                screenshot=assets.screenshot is not None,
            )
        log = ScrapingLog(
            timestamp=datetime.now(timezone.utc),
            url=url,
            success=success,
            assets_found=found,
            errors=errors or [],
            duration_ms=run.duration_ms,
            retries=run.retries,
        )
        logger.info(
            "scrape finished",
            extra={
                "project_id": project_id,
                "url": url,
                "success": success,
                "duration_ms": log.duration_ms,
                "retries": log.retries,
                **found.model_dump(),
            },
        )
        try:
            await self._log_sink.append_scrape_log(project_id, log)
        except Exception:
            logger.warning("scrape log write failed", extra={"project_id": project_id}, exc_info=True)
