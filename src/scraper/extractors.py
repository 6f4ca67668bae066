"""Brand-signal heuristics over a parsed page.

Everything here is best-effort pattern matching over markup and raw style
text, not a CSS engine: results are hints for the generator, never
authoritative. The public functions never raise; a failed heuristic yields
an empty result and a warning.
"""

from __future__ import annotations

import base64
import copy
import logging
import re
from urllib.parse import parse_qs, urlparse

from bs4 import BeautifulSoup, Tag

from .models import ImageCandidates

logger = logging.getLogger(__name__)

_INLINE_FONT_RE = re.compile(r"font-family\s*:\s*([^;]+)", re.IGNORECASE)
_CSS_FONT_RE = re.compile(r"font-family\s*:\s*([^;}]+)", re.IGNORECASE)

# Generic families and OS UI stacks say nothing about the brand.
GENERIC_FONTS = frozenset({
    "serif", "sans-serif", "monospace", "cursive", "fantasy", "system-ui",
    "ui-serif", "ui-sans-serif", "ui-monospace", "ui-rounded", "math", "emoji",
    "-apple-system", "blinkmacsystemfont", "segoe ui", "helvetica neue",
    "helvetica", "arial", "noto sans", "liberation sans", "apple color emoji",
    "segoe ui emoji", "segoe ui symbol", "noto color emoji",
    "inherit", "initial", "unset", "revert",
})

_VALID_COLOR_RE = re.compile(
    r"^#(?:[0-9a-f]{6}|[0-9a-f]{3})$|^rgba?\(.*\)$|^hsla?\(.*\)$", re.IGNORECASE
)
_INLINE_COLOR_RES = tuple(
    re.compile(rf"(?<![\w-]){prop}\s*:\s*([^;]+)", re.IGNORECASE)
    for prop in ("color", "background-color", "border-color", "background")
)
_CSS_COLOR_RES = (
    re.compile(r"#[0-9a-f]{3,6}\b", re.IGNORECASE),
    re.compile(r"rgba?\([^)]+\)", re.IGNORECASE),
    re.compile(r"hsla?\([^)]+\)", re.IGNORECASE),
)

LOGO_CONTAINER_SELECTOR = "header, nav, .navbar, .logo"
HERO_SELECTOR = '.hero, [class*="hero"], #hero, [id*="hero"]'
FEATURE_SELECTOR = (
    '.features, [class*="feature"], [id*="feature"], '
    '.cards, [class*="card"], [id*="card"]'
)
_LOGO_TERMS = ("logo", "brand")
_RASTER_RE = re.compile(r"\.(?:jpg|jpeg|png|webp)(?:\?.*)?$", re.IGNORECASE)
_LAZY_SOURCE_ATTRS = ("data-src", "data-lazy-src", "data-original")
MAX_FEATURE_IMAGES = 3

# html.parser lowercases attribute names; SVG needs these back in camel case.
_SVG_ATTR_CASE = {"viewbox": "viewBox", "preserveaspectratio": "preserveAspectRatio"}


def parse_document(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup or "", "html.parser")


# --- Fonts ---


def _split_font_list(value: str) -> list[str]:
    fonts = []
    for raw in value.split(","):
        font = raw.replace("!important", "").strip().strip("'\"").strip()
        if font and not font.startswith("var("):
            fonts.append(font)
    return fonts


def _google_font_families(href: str) -> list[str]:
    families = []
    for value in parse_qs(urlparse(href).query).get("family", []):
        for family in value.split("|"):
            name = family.split(":")[0].replace("+", " ").strip()
            if name:
                families.append(name)
    return families


def extract_fonts(soup: BeautifulSoup) -> list[str]:
    """Collect brand font families in order of first discovery.

    Sources: inline ``style`` attributes, ``<style>`` blocks, and the
    ``family=`` parameters of Google Fonts ``<link>`` tags. Generic and
    system UI families are dropped.
    """
    found: dict[str, None] = {}
    try:
        for element in soup.find_all(style=True):
            for match in _INLINE_FONT_RE.finditer(element.get("style", "")):
                found.update(dict.fromkeys(_split_font_list(match.group(1))))

        for sheet in soup.find_all("style"):
            for match in _CSS_FONT_RE.finditer(sheet.get_text()):
                found.update(dict.fromkeys(_split_font_list(match.group(1))))

        for link in soup.find_all("link", href=True):
            href = link["href"]
            if "fonts.googleapis.com" in href:
                found.update(dict.fromkeys(_google_font_families(href)))
    except Exception:
        logger.warning("font extraction failed", exc_info=True)

    fonts = [font for font in found if font.lower() not in GENERIC_FONTS]
    logger.debug("fonts extracted", extra={"fonts": fonts})
    return fonts


# --- Colors ---


def _clean_color(value: str) -> str:
    return value.replace("!important", "").strip()


def extract_colors(soup: BeautifulSoup) -> list[str]:
    """Collect literal color values from inline styles and ``<style>`` blocks."""
    found: dict[str, None] = {}
    try:
        for element in soup.find_all(style=True):
            style = element.get("style", "")
            for pattern in _INLINE_COLOR_RES:
                for match in pattern.finditer(style):
                    color = _clean_color(match.group(1))
                    if _VALID_COLOR_RE.match(color):
                        found[color] = None

        for sheet in soup.find_all("style"):
            css = sheet.get_text()
            for pattern in _CSS_COLOR_RES:
                for match in pattern.finditer(css):
                    color = match.group(0)
                    if _VALID_COLOR_RE.match(color):
                        found[color] = None
    except Exception:
        logger.warning("color extraction failed", exc_info=True)

    colors = list(found)
    logger.debug("colors extracted", extra={"color_count": len(colors)})
    return colors


# --- Images ---


def _class_text(tag: Tag) -> str:
    value = tag.get("class") or ""
    if isinstance(value, list):
        value = " ".join(value)
    return value.lower()


def _image_source(img: Tag) -> str | None:
    """Return the real source of an ``<img>``, looking past lazy-load placeholders."""
    src = (img.get("src") or "").strip()
    if src and not src.startswith("data:"):
        return src
    for attr in _LAZY_SOURCE_ATTRS:
        value = (img.get(attr) or "").strip()
        if value:
            return value
    return src or None


def _matches_terms(terms: list[str], *values: str) -> bool:
    return any(term in value for term in terms for value in values)


def _svg_data_uri(svg: Tag) -> str:
    svg = copy.copy(svg)
    for lowered, camel in _SVG_ATTR_CASE.items():
        if lowered in svg.attrs:
            svg[camel] = svg.attrs.pop(lowered)
    if not svg.get("xmlns"):
        svg["xmlns"] = "http://www.w3.org/2000/svg"
    encoded = base64.b64encode(str(svg).encode("utf-8")).decode("ascii")
    return f"data:image/svg+xml;base64,{encoded}"


def _find_logo(soup: BeautifulSoup, brand: str | None) -> str | None:
    container = soup.select_one(LOGO_CONTAINER_SELECTOR)
    if container is None:
        logger.debug("no header or navigation container found")
        return None

    terms = list(_LOGO_TERMS)
    if brand and brand.strip():
        terms.append(brand.strip().lower())

    for img in container.find_all("img"):
        if _matches_terms(
            terms,
            (img.get("src") or "").lower(),
            (img.get("alt") or "").lower(),
            _class_text(img),
        ):
            source = _image_source(img)
            if source:
                logger.debug("logo found in <img>", extra={"logo": source})
                return source

    for svg in container.find_all("svg"):
        title = svg.find("title")
        if _matches_terms(
            terms,
            (svg.get("aria-label") or "").lower(),
            title.get_text().lower() if title else "",
            _class_text(svg),
        ):
            logger.debug("logo found in inline <svg>")
            return _svg_data_uri(svg)

    for anchor in container.find_all("a"):
        if _matches_terms(terms, anchor.get_text().lower()):
            img = anchor.find("img")
            if img is not None:
                source = _image_source(img)
                logger.debug("logo found in anchor", extra={"logo": source})
                return source
            break

    return None


def _find_hero_image(soup: BeautifulSoup) -> str | None:
    for section in soup.select(HERO_SELECTOR):
        img = section.find("img")
        if img is not None:
            source = _image_source(img)
            if source:
                return source
    return None


def _find_feature_images(soup: BeautifulSoup) -> list[str]:
    images: list[str] = []
    for section in soup.select(FEATURE_SELECTOR):
        for img in section.find_all("img"):
            source = _image_source(img)
            if source and _RASTER_RE.search(source) and source not in images:
                images.append(source)
                if len(images) == MAX_FEATURE_IMAGES:
                    return images
    return images


def find_images(soup: BeautifulSoup, brand: str | None = None) -> ImageCandidates:
    """Pick logo, hero and feature image sources (unresolved) out of *soup*."""
    candidates = ImageCandidates()
    try:
        candidates.logo = _find_logo(soup, brand)
    except Exception:
        logger.warning("logo search failed", exc_info=True)
    try:
        candidates.hero_image = _find_hero_image(soup)
    except Exception:
        logger.warning("hero image search failed", exc_info=True)
    try:
        candidates.feature_images = _find_feature_images(soup)
    except Exception:
        logger.warning("feature image search failed", exc_info=True)

    logger.debug(
        "image candidates found",
        extra={
            "brand": brand,
            "has_logo": candidates.logo is not None,
            "has_hero": candidates.hero_image is not None,
            "feature_images": len(candidates.feature_images),
        },
    )
    return candidates


def extract_meta_description(soup: BeautifulSoup) -> str | None:
    meta = soup.find("meta", attrs={"name": "description"}) or soup.find(
        "meta", attrs={"property": "og:description"}
    )
    if meta is None:
        return None
    content = (meta.get("content") or "").strip()
    return content or None
