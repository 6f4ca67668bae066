"""ScrapingBee client — rendered markup and full-page screenshots."""

from __future__ import annotations

import json
import logging

import httpx

from .errors import QuotaExceededError, ScrapeError, ScrapingServerError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://app.scrapingbee.com/api/v1/"

QUOTA_EXCEEDED_SIGNATURE = "API calls limit reached"

# Seconds allowed on top of the service-side render timeout before httpx gives up.
_HTML_TIMEOUT_MARGIN = 15.0
_SCREENSHOT_TIMEOUT_MARGIN = 45.0

# Wait, dismiss the cookie banner, wait for it to animate away.
COOKIE_BANNER_SCENARIO = {
    "instructions": [
        {"wait": 3000},
        {"wait_for_and_click": "//*[contains(text(), 'Accept')]"},
        {"wait": 2000},
    ]
}


def _raise_for_status(response: httpx.Response) -> None:
    if response.is_success:
        return
    body = response.text
    status = response.status_code
    logger.warning(
        "scrapingbee request failed",
        extra={"status_code": status, "body": body[:300]},
    )
    if status == 401 and QUOTA_EXCEEDED_SIGNATURE in body:
        raise QuotaExceededError(QUOTA_EXCEEDED_SIGNATURE)
    if status >= 500:
        raise ScrapingServerError(f"Scraping service error ({status}): {body[:300]}", status)
    raise ScrapeError(f"Failed to scrape website: {body[:300]}")


class ScrapingBeeClient:
    """Thin async wrapper around the ScrapingBee HTML API."""

    def __init__(
        self,
        api_key: str,
        *,
        api_url: str = DEFAULT_API_URL,
        timeout_ms: int = 30000,
        country_code: str = "us",
    ) -> None:
        self._api_key = api_key
        self._api_url = api_url or DEFAULT_API_URL
        self._timeout_ms = timeout_ms
        self._country_code = country_code

    def base_params(self, url: str, render_js: bool = True) -> dict[str, str]:
        return {
            "api_key": self._api_key,
            "url": url,
            "render_js": str(render_js).lower(),
            "premium_proxy": "true",
            "block_ads": "true",
            "country_code": self._country_code,
            "device": "desktop",
            "timeout": str(self._timeout_ms),
            "stealth_proxy": "true",
        }

    def screenshot_params(self, url: str, *, fallback: bool = False) -> dict[str, str]:
        params = {
            **self.base_params(url),
            "screenshot": "true",
            "window_width": "1920",
            "window_height": "1080",
            "screenshot_full_page": "true",
            "wait_browser": "load",
        }
        if fallback:
            params["wait"] = "10000"
        else:
            params["wait"] = "5000"
            params["js_scenario"] = json.dumps(COOKIE_BANNER_SCENARIO)
        return params

    async def _get(self, params: dict[str, str], timeout: float) -> httpx.Response:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.get(self._api_url, params=params)
        _raise_for_status(response)
        return response

    async def fetch_html(self, url: str) -> str:
        """Fetch the JavaScript-rendered markup of *url*."""
        logger.debug("requesting rendered markup", extra={"url": url})
        response = await self._get(
            self.base_params(url),
            timeout=self._timeout_ms / 1000 + _HTML_TIMEOUT_MARGIN,
        )
        return response.text

    async def fetch_screenshot(self, url: str, *, fallback: bool = False) -> bytes:
        """Fetch a full-page screenshot of *url*.

        The regular request clicks through a cookie banner; the *fallback*
        request skips the script and waits longer for the page to settle.
        """
        logger.debug("requesting screenshot", extra={"url": url, "fallback": fallback})
        response = await self._get(
            self.screenshot_params(url, fallback=fallback),
            timeout=self._timeout_ms / 1000 + _SCREENSHOT_TIMEOUT_MARGIN,
        )
        return response.content
