"""Pull page markup out of a completion."""

from __future__ import annotations

import re

_MARKUP_RE = re.compile(r"```(?:html)?([\s\S]*?)```|<html[\s\S]*?</html>", re.IGNORECASE)


class MarkupNotFoundError(ValueError):
    """The completion contains neither a document nor a fenced block."""


def extract_html(response: str) -> str:
    """Return the markup in *response*.

    A reply that already starts with ``<`` is the document itself. Otherwise
    the first fenced code block (its inner text) or ``<html>…</html>`` span
    wins.
    """
    if response.strip().startswith("<"):
        return response

    match = _MARKUP_RE.search(response)
    if match is None:
        raise MarkupNotFoundError("No valid HTML found in response")
    if match.group(1) is not None and match.group(1).strip():
        return match.group(1).strip()
    return match.group(0)
