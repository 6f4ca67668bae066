"""Screenshot checks: decode validation, blank-frame detection, palette extraction.

Decoding runs in a worker thread under a timeout. A timed-out decode is not
cancelled; its eventual result is simply ignored.
"""

from __future__ import annotations

import asyncio
import io
import logging

from colorthief import ColorThief
from PIL import Image, ImageStat, UnidentifiedImageError

from src.api.schemas import RGB

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0
PALETTE_SIZE = 6
_BLANK_SAMPLE_SIZE = (256, 256)


def _decode(data: bytes, blank_stddev: float) -> bool:
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            if blank_stddev <= 0:
                return True
            sample = img.convert("L")
            sample.thumbnail(_BLANK_SAMPLE_SIZE)
            stddev = ImageStat.Stat(sample).stddev[0]
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError):
        return False
    except Exception:
        # Pillow reports damaged chunks as SyntaxError, EOFError or struct.error
        logger.warning("screenshot decode failed", extra={"size": len(data)}, exc_info=True)
        return False

    if stddev < blank_stddev:
        logger.info("screenshot looks blank", extra={"stddev": round(stddev, 3)})
        return False
    return True


async def validate_image(
    data: bytes,
    timeout: float = DEFAULT_TIMEOUT,
    blank_stddev: float = 0.0,
) -> bool:
    """Return True if *data* decodes as an image within *timeout* seconds.

    With *blank_stddev* > 0, a decoded image whose grayscale standard
    deviation falls below it is treated as a blank frame and rejected.
    """
    if not data:
        return False
    try:
        return await asyncio.wait_for(asyncio.to_thread(_decode, data, blank_stddev), timeout)
    except asyncio.TimeoutError:
        logger.warning("image validation timed out", extra={"timeout": timeout, "size": len(data)})
        return False
    except Exception:
        logger.warning("image validation failed", extra={"size": len(data)}, exc_info=True)
        return False


def _palette(data: bytes, color_count: int) -> list[RGB]:
    return [tuple(color) for color in ColorThief(io.BytesIO(data)).get_palette(color_count=color_count)]


async def extract_palette(
    data: bytes,
    timeout: float = DEFAULT_TIMEOUT,
    color_count: int = PALETTE_SIZE,
) -> list[RGB] | None:
    """Derive a small ordered palette from an image, dominant color first.

    Returns ``None`` when the image cannot be analysed in time; callers
    carry on without a palette.
    """
    try:
        palette = await asyncio.wait_for(asyncio.to_thread(_palette, data, color_count), timeout)
    except asyncio.TimeoutError:
        logger.warning("palette extraction timed out", extra={"timeout": timeout})
        return None
    except Exception:
        logger.warning("palette extraction failed", exc_info=True)
        return None

    logger.debug("palette extracted", extra={"palette": palette})
    return palette or None


def rgb_string(color: RGB) -> str:
    return f"rgb({', '.join(str(channel) for channel in color)})"
