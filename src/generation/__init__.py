"""Landing page generation against the OpenAI chat completions API."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .client import (
    EmptyCompletionError,
    GenerationClient,
    GenerationConfigError,
    GenerationError,
    is_retryable,
)
from .parser import MarkupNotFoundError, extract_html
from .rate_limit import RateGate
from .templates import default_template

if TYPE_CHECKING:
    from src.config import Settings

__all__ = [
    "EmptyCompletionError",
    "GenerationClient",
    "GenerationConfigError",
    "GenerationError",
    "MarkupNotFoundError",
    "RateGate",
    "build_generation_client",
    "default_template",
    "extract_html",
    "is_retryable",
]


def build_generation_client(settings: Settings, rate_gate: RateGate | None = None) -> GenerationClient:
    """Build a generation client; pass *rate_gate* to share one gate across clients."""
    return GenerationClient(
        api_key=settings.openai_api_key,
        rate_gate=rate_gate or RateGate(settings.min_request_interval_seconds),
        generation_model=settings.generation_model,
        edit_model=settings.edit_model,
        max_retries=settings.generation_max_retries,
        retry_delay=settings.generation_retry_delay_seconds,
    )
