"""OpenAI chat completions for landing page generation and edits."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

import openai
from openai import AsyncOpenAI

from src.api.schemas import ExtractedAssetSet, GenerationResult

from .parser import extract_html
from .prompts import (
    EDIT_SYSTEM_PROMPT,
    SYSTEM_PROMPT,
    format_edit_prompt,
    format_generation_prompt,
)
from .rate_limit import RateGate
from .templates import default_template

logger = logging.getLogger(__name__)

DEFAULT_GENERATION_MODEL = "gpt-4o"
DEFAULT_EDIT_MODEL = "gpt-4-turbo"

COMPLETION_PARAMS: dict[str, Any] = {
    "temperature": 0.7,
    "max_tokens": 4000,
    "top_p": 1,
    "frequency_penalty": 0,
    "presence_penalty": 0,
}

RETRYABLE_EXCEPTIONS = (
    openai.RateLimitError,
    openai.APITimeoutError,
    openai.APIConnectionError,
    openai.InternalServerError,
)
RETRYABLE_SIGNATURES = ("rate_limit", "rate limit", "timeout", "timed out", "network", "internal_error")


class GenerationError(Exception):
    pass


class GenerationConfigError(GenerationError):
    pass


class EmptyCompletionError(GenerationError):
    pass


def is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, RETRYABLE_EXCEPTIONS):
        return True
    message = str(exc).lower()
    return any(signature in message for signature in RETRYABLE_SIGNATURES)


def _error_message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class GenerationClient:
    """Generates and edits landing pages through the chat completions API.

    Never raises: when the retry budget is spent, or a failure is not worth
    retrying, the result carries ``error`` and fallback markup (the default
    template for generation, the unchanged page for edits).
    """

    def __init__(
        self,
        api_key: str,
        rate_gate: RateGate,
        *,
        generation_model: str = DEFAULT_GENERATION_MODEL,
        edit_model: str = DEFAULT_EDIT_MODEL,
        max_retries: int = 3,
        retry_delay: float = 5.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._api_key = api_key
        self._rate_gate = rate_gate
        self._generation_model = generation_model
        self._edit_model = edit_model
        self._max_retries = max(1, max_retries)
        self._retry_delay = retry_delay
        self._sleep = sleep
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self._api_key:
                raise GenerationConfigError("OpenAI API key is not configured")
            self._client = AsyncOpenAI(api_key=self._api_key)
        return self._client

    async def _complete(self, model: str, system: str, content: list[dict[str, Any]]) -> str:
        client = self._get_client()
        await self._rate_gate.wait()
        completion = await client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": content},
            ],
            **COMPLETION_PARAMS,
        )
        text = completion.choices[0].message.content if completion.choices else None
        if not text:
            raise EmptyCompletionError("Failed to generate landing page content")
        return extract_html(text)

    async def _with_retries(
        self,
        operation: str,
        call: Callable[[], Awaitable[str]],
    ) -> tuple[str | None, str | None]:
        """Run *call* under the retry budget; return (html, None) or (None, last error)."""
        last_error: str | None = None
        for attempt in range(1, self._max_retries + 1):
            try:
                return await call(), None
            except Exception as exc:
                last_error = _error_message(exc)
                retryable = is_retryable(exc)
                logger.warning(
                    "generation attempt failed",
                    extra={
                        "operation": operation,
                        "attempt": attempt,
                        "max_retries": self._max_retries,
                        "retryable": retryable,
                        "error": last_error,
                    },
                    exc_info=not retryable,
                )
                if not retryable or attempt == self._max_retries:
                    break
                await self._sleep(self._retry_delay * attempt)
        return None, last_error

    async def generate(
        self,
        prompt: str,
        style: ExtractedAssetSet | None = None,
        screenshot: str | None = None,
    ) -> GenerationResult:
        """Generate a full landing page; the screenshot is attached as an image."""
        content: list[dict[str, Any]] = [
            {"type": "text", "text": format_generation_prompt(prompt, style, screenshot)},
        ]
        if screenshot:
            content.append({"type": "image_url", "image_url": {"url": screenshot, "detail": "high"}})

        logger.info(
            "generating landing page",
            extra={"model": self._generation_model, "has_style": style is not None, "has_screenshot": bool(screenshot)},
        )
        html, error = await self._with_retries(
            "generate",
            lambda: self._complete(self._generation_model, SYSTEM_PROMPT, content),
        )
        if html is not None:
            return GenerationResult(html=html)

        logger.warning("generation failed, using default template", extra={"error": error})
        return GenerationResult(
            html=default_template(style),
            error=error or "Failed to generate content",
        )

    async def edit(
        self,
        current_html: str,
        instructions: str,
        screenshot: str | None = None,
        model: str | None = None,
    ) -> GenerationResult:
        """Apply *instructions* to *current_html*. The screenshot is only referenced by URL."""
        model = model or self._edit_model
        content: list[dict[str, Any]] = [
            {"type": "text", "text": format_edit_prompt(current_html, instructions, screenshot)},
        ]

        logger.info("editing landing page", extra={"model": model, "html_length": len(current_html)})
        html, error = await self._with_retries(
            "edit",
            lambda: self._complete(model, EDIT_SYSTEM_PROMPT, content),
        )
        if html is not None:
            return GenerationResult(html=html)

        logger.warning("edit failed, keeping current markup", extra={"error": error})
        return GenerationResult(
            html=current_html,
            error=error or "Failed to generate updated HTML",
        )
