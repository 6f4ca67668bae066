"""Fixtures — FakeRedis-backed project store, in-memory asset storage, test images."""

import io
import struct

import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis
from PIL import Image, ImageDraw

from src.store.redis import ProjectStore


class MemoryStorage:
    """AssetStorage keeping uploads and asset rows in lists."""

    def __init__(self, fail_uploads: bool = False) -> None:
        self.uploads: list[tuple[str, bytes, str]] = []
        self.assets: list[dict] = []
        self.fail_uploads = fail_uploads

    async def upload(self, data: bytes, path: str, content_type: str) -> str:
        if self.fail_uploads:
            raise RuntimeError("storage unavailable")
        self.uploads.append((path, data, content_type))
        return f"https://storage.test/{path}"

    async def insert_asset(self, project_id, asset_type, url, local_path=None) -> None:
        self.assets.append(
            {"project_id": project_id, "type": asset_type, "url": url, "local_path": local_path}
        )


def _png(image: Image.Image) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


@pytest_asyncio.fixture
async def redis_client():
    client = FakeRedis(decode_responses=True)
    yield client
    await client.aclose()


@pytest_asyncio.fixture
async def store(redis_client):
    """ProjectStore backed by an in-memory FakeRedis instance."""
    return ProjectStore(redis_client)


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def striped_png() -> bytes:
    """A screenshot-like PNG with plenty of contrast."""
    image = Image.new("RGB", (120, 80), (200, 30, 30))
    draw = ImageDraw.Draw(image)
    for x in range(0, 120, 20):
        draw.rectangle([x, 0, x + 9, 79], fill=(30, 30, 200))
    return _png(image)


@pytest.fixture
def blank_png() -> bytes:
    return _png(Image.new("RGB", (120, 80), (255, 255, 255)))


@pytest.fixture
def corrupt_png(striped_png: bytes) -> bytes:
    """Valid header, but the image data runs into a chunk with an unreadable type."""
    idat = striped_png.index(b"IDAT")
    data_start = idat + 4
    return (
        striped_png[: idat - 4]
        + struct.pack(">I", 1)
        + b"IDAT"
        + striped_png[data_start : data_start + 1]
        + b"\x00\x00\x00\x00"  # crc
        + struct.pack(">I", 16)
        + b"\xec\xbdu\xc3"
        + striped_png[data_start + 1 :]
    )


@pytest.fixture
def failing_storage() -> MemoryStorage:
    return MemoryStorage(fail_uploads=True)
