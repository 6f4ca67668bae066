"""Asset download, re-hosting and stock fallback tests."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from src.storage.assets import (
    FALLBACK_IMAGES,
    asset_path,
    download_and_store_image,
    is_valid_image_url,
    store_project_assets,
)


def _image_response(content=b"img-bytes", content_type="image/jpeg"):
    resp = MagicMock()
    resp.content = content
    resp.headers = {"content-type": content_type}
    resp.raise_for_status = MagicMock()
    return resp


def _patch_download(**kwargs):
    patcher = patch("src.storage.assets.httpx.AsyncClient")
    mock_client = patcher.start()
    ctx = AsyncMock()
    if "side_effect" in kwargs:
        ctx.get.side_effect = kwargs["side_effect"]
    else:
        ctx.get.return_value = kwargs.get("response", _image_response())
    mock_client.return_value.__aenter__ = AsyncMock(return_value=ctx)
    mock_client.return_value.__aexit__ = AsyncMock(return_value=False)
    return patcher, ctx


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://cdn.example.com/a/photo.JPG", True),
        ("https://cdn.example.com/a/logo.svg?v=2", True),
        ("https://images.unsplash.com/photo-123", True),
        ("https://cdn.example.com/a/page.html", False),
        ("data:image/png;base64,AAAA", False),
    ],
)
def test_is_valid_image_url(url, expected):
    assert is_valid_image_url(url) is expected


def test_asset_path_layout():
    path = asset_path("proj-1", "logo", "https://cdn.example.com/img/brand logo.png")
    prefix, _, name = path.rpartition("/")
    assert prefix == "proj-1/logos"
    stamp, _, filename = name.partition("-")
    assert stamp.isdigit()
    assert filename == "brand_logo.png"


@pytest.mark.asyncio
async def test_download_and_store_uploads_and_records(storage):
    patcher, _ = _patch_download()
    try:
        url = await download_and_store_image(storage, "https://cdn.example.com/hero.jpg", "proj-1")
    finally:
        patcher.stop()

    path, data, content_type = storage.uploads[0]
    assert url == f"https://storage.test/{path}"
    assert path.startswith("proj-1/images/")
    assert data == b"img-bytes"
    assert content_type == "image/jpeg"
    assert storage.assets == [
        {"project_id": "proj-1", "type": "image", "url": url, "local_path": path}
    ]


@pytest.mark.asyncio
async def test_unsplash_urls_pass_through(storage):
    url = await download_and_store_image(storage, "https://images.unsplash.com/photo-1", "proj-1")
    assert url == "https://images.unsplash.com/photo-1?w=1200&q=80"
    kept = await download_and_store_image(storage, "https://images.unsplash.com/photo-1?w=400", "proj-1")
    assert kept == "https://images.unsplash.com/photo-1?w=400"
    assert storage.uploads == []


@pytest.mark.asyncio
async def test_non_image_content_type_is_skipped(storage):
    patcher, _ = _patch_download(response=_image_response(b"<html>", "text/html; charset=utf-8"))
    try:
        url = await download_and_store_image(storage, "https://cdn.example.com/x.png", "proj-1")
    finally:
        patcher.stop()

    assert url is None
    assert storage.uploads == []


@pytest.mark.asyncio
async def test_download_failure_is_absorbed(storage):
    patcher, _ = _patch_download(side_effect=httpx.ConnectError("boom"))
    try:
        url = await download_and_store_image(storage, "https://cdn.example.com/x.png", "proj-1")
    finally:
        patcher.stop()

    assert url is None


@pytest.mark.asyncio
async def test_store_project_assets_falls_back_to_stock_images(storage):
    patcher, _ = _patch_download(side_effect=httpx.ConnectError("offline"))
    try:
        stored = await store_project_assets(
            storage,
            "proj-1",
            ["https://cdn.example.com/a.jpg", "https://cdn.example.com/b.png"],
        )
    finally:
        patcher.stop()

    assert stored.images == list(FALLBACK_IMAGES)
    assert len(stored.images) == 2


@pytest.mark.asyncio
async def test_store_project_assets_with_no_candidates(storage):
    stored = await store_project_assets(storage, "proj-1", [])
    assert stored.images == list(FALLBACK_IMAGES)
    assert stored.logo is None
    assert stored.screenshot is None


@pytest.mark.asyncio
async def test_store_project_assets_records_screenshot_and_logo(storage):
    patcher, ctx = _patch_download()
    try:
        stored = await store_project_assets(
            storage,
            "proj-1",
            ["https://cdn.example.com/a.jpg", "https://cdn.example.com/a.jpg", "data:image/png;base64,AA"],
            logo="https://cdn.example.com/logo.png",
            screenshot="https://storage.test/proj-1/screenshots/1-screenshot.png",
        )
    finally:
        patcher.stop()

    assert stored.screenshot == "https://storage.test/proj-1/screenshots/1-screenshot.png"
    assert stored.logo.startswith("https://storage.test/proj-1/logos/")
    assert len(stored.images) == 1
    assert ctx.get.await_count == 2
    assert [a["type"] for a in storage.assets] == ["screenshot", "logo", "image"]
