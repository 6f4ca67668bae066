"""Scrape failure taxonomy."""

from __future__ import annotations


class ScrapeError(Exception):
    """A scrape that could not produce any markup."""

    kind = "scrape_failed"


class ConfigurationError(ScrapeError):
    kind = "configuration_missing"


class InvalidUrlError(ScrapeError):
    kind = "invalid_url"


class QuotaExceededError(ScrapeError):
    """The scraping account is out of API calls. Never retried."""

    kind = "quota_exceeded"


class ScrapingServerError(ScrapeError):
    """5xx from the scraping service; retried by the orchestrator."""

    kind = "server_error"

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class NetworkExhaustedError(ScrapeError):
    kind = "network_exhausted"
