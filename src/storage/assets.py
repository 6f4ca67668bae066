"""Download scraped images and re-host them in project storage."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from urllib.parse import urlparse

import httpx

from .base import AssetStorage, AssetType

logger = logging.getLogger(__name__)

# Stock images used when nothing from the site could be stored.
FALLBACK_IMAGES = (
    "https://images.unsplash.com/photo-1606857521015-7f9fcf423740?w=1200&q=80",
    "https://images.unsplash.com/photo-1618005182384-a83a8bd57fbe?w=1200&q=80",
)

UNSPLASH_HOST = "images.unsplash.com"
VALID_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg")
DOWNLOAD_TIMEOUT = 15.0

_UNSAFE_NAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass
class StoredAssets:
    images: list[str] = field(default_factory=list)
    logo: str | None = None
    screenshot: str | None = None


def is_valid_image_url(url: str) -> bool:
    if url.startswith("data:"):
        return False
    if UNSPLASH_HOST in url:
        return True
    try:
        path = urlparse(url).path.lower()
    except ValueError:
        return False
    return path.endswith(VALID_IMAGE_EXTENSIONS)


def asset_path(project_id: str, asset_type: AssetType, url: str) -> str:
    name = PurePosixPath(urlparse(url).path).name or asset_type
    name = _UNSAFE_NAME_RE.sub("_", name)[-80:]
    return f"{project_id}/{asset_type}s/{int(time.time() * 1000)}-{name}"


async def download_and_store_image(
    storage: AssetStorage,
    url: str,
    project_id: str,
    asset_type: AssetType = "image",
) -> str | None:
    """Copy one remote image into project storage; ``None`` if it can't be used."""
    if url.startswith("data:"):
        return None

    if UNSPLASH_HOST in url:
        return url if "?" in url else f"{url}?w=1200&q=80"

    if not is_valid_image_url(url):
        logger.debug("skipping non-image url", extra={"url": url, "asset_type": asset_type})
        return None

    try:
        async with httpx.AsyncClient(follow_redirects=True, timeout=DOWNLOAD_TIMEOUT) as client:
            resp = await client.get(url)
            resp.raise_for_status()
        content_type = resp.headers.get("content-type", "").split(";")[0].strip()
        if not content_type.startswith("image/") or not resp.content:
            logger.warning(
                "downloaded asset is not an image",
                extra={"url": url, "content_type": content_type},
            )
            return None

        path = asset_path(project_id, asset_type, url)
        public_url = await storage.upload(resp.content, path, content_type)
        await storage.insert_asset(project_id, asset_type, public_url, path)
    except Exception:
        logger.warning(
            "asset store failed",
            extra={"url": url, "project_id": project_id, "asset_type": asset_type},
            exc_info=True,
        )
        return None

    logger.debug("asset stored", extra={"url": url, "stored_url": public_url})
    return public_url


async def store_project_assets(
    storage: AssetStorage,
    project_id: str,
    images: list[str],
    logo: str | None = None,
    screenshot: str | None = None,
) -> StoredAssets:
    """Persist a scrape's screenshot, logo and images.

    The screenshot is already in storage and only gets an asset record.
    If no image survives, the stock ``FALLBACK_IMAGES`` are returned.
    """
    stored = StoredAssets()

    if screenshot:
        try:
            await storage.insert_asset(project_id, "screenshot", screenshot)
        except Exception:
            logger.warning("screenshot record failed", extra={"project_id": project_id}, exc_info=True)
        stored.screenshot = screenshot

    if logo:
        stored.logo = await download_and_store_image(storage, logo, project_id, "logo")

    unique_images = list(dict.fromkeys(url for url in images if url))
    results = await asyncio.gather(
        *(download_and_store_image(storage, url, project_id, "image") for url in unique_images)
    )
    stored.images = [url for url in results if url]

    if not stored.images:
        logger.info(
            "no images stored, using fallback images",
            extra={"project_id": project_id, "candidates": len(unique_images)},
        )
        stored.images = list(FALLBACK_IMAGES)

    logger.info(
        "project assets stored",
        extra={
            "project_id": project_id,
            "images": len(stored.images),
            "logo": stored.logo is not None,
            "screenshot": stored.screenshot is not None,
        },
    )
    return stored
