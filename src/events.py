"""Scrape progress events, streamed to clients as SSE in ``stream`` mode.

A scrape reports ``status`` events for each step in ``SCRAPE_STEPS`` order,
then exactly one ``result`` or ``error`` event, then ``done``.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Coroutine

logger = logging.getLogger(__name__)

STATUS = "status"
RESULT = "result"
ERROR = "error"
DONE = "done"

SCRAPE_STEPS = (
    "validating",
    "fetching_markup",
    "capturing_screenshot",
    "extracting_assets",
    "storing_assets",
)

EventCallback = Callable[[str, dict[str, Any]], Coroutine[Any, Any, None]]


async def emit_event(
    on_event: EventCallback | None,
    event: str,
    data: dict[str, Any] | None = None,
) -> None:
    if on_event is None:
        return
    payload = data or {}
    logger.debug(
        "scrape progress",
        extra={"event": event, "step": payload.get("step"), "kind": payload.get("kind")},
    )
    await on_event(event, payload)


async def emit_status(on_event: EventCallback | None, step: str, message: str) -> None:
    """Report that the scrape entered *step*, one of ``SCRAPE_STEPS``."""
    if step not in SCRAPE_STEPS:
        raise ValueError(f"unknown scrape step: {step}")
    await emit_event(on_event, STATUS, {"step": step, "message": message})
