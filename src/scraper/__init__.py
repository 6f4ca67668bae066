"""Website scraping: rendered markup, screenshots, brand asset extraction."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .errors import (
    ConfigurationError,
    InvalidUrlError,
    NetworkExhaustedError,
    QuotaExceededError,
    ScrapeError,
    ScrapingServerError,
)
from .orchestrator import ScrapeLogSink, ScrapingOrchestrator
from .scrapingbee import ScrapingBeeClient

if TYPE_CHECKING:
    from src.config import Settings
    from src.storage.base import AssetStorage

__all__ = [
    "ConfigurationError",
    "InvalidUrlError",
    "NetworkExhaustedError",
    "QuotaExceededError",
    "ScrapeError",
    "ScrapeLogSink",
    "ScrapingBeeClient",
    "ScrapingOrchestrator",
    "ScrapingServerError",
    "build_orchestrator",
]


def build_orchestrator(
    settings: Settings,
    storage: AssetStorage,
    log_sink: ScrapeLogSink,
) -> ScrapingOrchestrator:
    """Build a scraping orchestrator from configured settings."""
    client = ScrapingBeeClient(
        api_key=settings.scrapingbee_api_key,
        api_url=settings.scrapingbee_api_url,
        timeout_ms=settings.scrapingbee_timeout_ms,
        country_code=settings.scrapingbee_country_code,
    )
    return ScrapingOrchestrator(
        client,
        storage,
        log_sink,
        credentials=settings.required_credentials(),
        max_attempts=settings.scrape_max_retries,
        retry_delay=settings.scrape_retry_delay_seconds,
        image_timeout=settings.image_check_timeout_seconds,
        blank_stddev=settings.screenshot_blank_stddev,
    )
