"""Data models for the scraper package."""

from __future__ import annotations

from dataclasses import dataclass, field

from src.api.schemas import RGB


@dataclass(frozen=True)
class ScreenshotCapture:
    """Outcome of the best-effort screenshot step."""

    url: str | None = None
    palette: list[RGB] | None = None


@dataclass(frozen=True)
class ScrapeResult:
    """Raw output of one successful scrape attempt."""

    markup: str
    timestamp: str
    screenshot_url: str | None = None
    palette: list[RGB] | None = None


@dataclass
class ImageCandidates:
    """Unresolved image sources picked out of a page by the heuristics."""

    logo: str | None = None
    hero_image: str | None = None
    feature_images: list[str] = field(default_factory=list)
