"""Asset URL normalization against the scraped page's URL."""

from __future__ import annotations

import logging
from urllib.parse import urljoin, urlparse

logger = logging.getLogger(__name__)

# Preview sandboxes rewrite asset paths onto their own host; the real asset
# lives under the site's own ``assets/`` directory.
SANDBOX_HOST_PATTERNS = ("local-credentialless.webcontainer-api.io",)

_VALID_SCHEMES = {"http", "https"}


def validate_url(url: str) -> bool:
    """Return True for an absolute http(s) URL with a host."""
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    return parsed.scheme in _VALID_SCHEMES and bool(parsed.netloc)


def _reroot_sandbox_url(base_url: str, url: str) -> str:
    parts = url.split("/")
    start = parts.index("assets") if "assets" in parts else len(parts) - 1
    return urljoin(base_url, "/".join(parts[start:]))


def resolve_url(base_url: str, url: str | None) -> str:
    """Resolve *url* found on the page at *base_url* to an absolute public URL.

    Returns ``""`` for empty input, ``data:`` URIs, and anything that fails
    to resolve; a data URI is never a usable stored asset reference.
    """
    try:
        if not url:
            return ""
        url = url.strip()
        if not url or url.startswith("data:"):
            return ""
        if any(pattern in url for pattern in SANDBOX_HOST_PATTERNS):
            return _reroot_sandbox_url(base_url, url)
        if url.startswith(("http://", "https://")):
            return url
        if url.startswith("//"):
            return f"https:{url}"
        return urljoin(base_url, url)
    except Exception:
        logger.warning("url resolution failed", extra={"base_url": base_url, "url": url}, exc_info=True)
        return ""
