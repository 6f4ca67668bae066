"""Request/response Pydantic models and the persisted project data model."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

RGB = tuple[int, int, int]


class ExtractedAssetSet(BaseModel):
    """Brand assets mined from a website; persisted as the project "style"."""

    colors: list[str] = []
    fonts: list[str] = []
    images: list[str] = []
    logo: str | None = None
    screenshot: str | None = None
    screenshot_timestamp: str | None = None
    palette: list[RGB] | None = None
    dominant_color: str | None = None
    primary_font: str | None = None
    meta_description: str | None = None

    def with_selection(
        self,
        dominant_color: str | None = None,
        primary_font: str | None = None,
        logo: str | None = None,
    ) -> ExtractedAssetSet:
        """Return a full copy carrying the user's color/font choice.

        An uploaded *logo* replaces the scraped one; otherwise it is kept.
        """
        return self.model_copy(
            deep=True,
            update={
                "dominant_color": dominant_color,
                "primary_font": primary_font,
                "logo": logo or self.logo,
            },
        )


class AssetsFound(BaseModel):
    colors: int = 0
    fonts: int = 0
    images: int = 0
    logo: bool = False
    screenshot: bool = False


class ScrapingLog(BaseModel):
    timestamp: datetime
    url: str
    success: bool
    assets_found: AssetsFound = AssetsFound()
    errors: list[str] = []
    duration_ms: int = 0
    retries: int = 0


class GenerationResult(BaseModel):
    html: str
    css: str = ""
    error: str | None = None


class Version(BaseModel):
    id: str
    project_id: str
    version_number: int
    html_content: str = ""
    css_content: str = ""
    prompt_instructions: str | None = None
    created_by: str | None = None
    created_at: datetime
    is_current: bool = False
    settings: ExtractedAssetSet | None = None


# --- Request bodies ---


class ScrapeRequest(BaseModel):
    url: str
    brand: str | None = None
    mode: Literal["sync", "stream"] = "sync"


class GenerateRequest(BaseModel):
    instructions: str = ""
    dominant_color: str | None = None
    primary_font: str | None = None
    logo: str | None = None
    created_by: str | None = None


class EditRequest(BaseModel):
    instructions: str = Field(min_length=1)
    model: str | None = None
    created_by: str | None = None


class SaveVersionRequest(BaseModel):
    html: str
    created_by: str | None = None
