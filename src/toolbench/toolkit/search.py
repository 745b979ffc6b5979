"""Web search backed by the DuckDuckGo Instant Answer API.

The API needs no key and returns a JSON document with an abstract, a
direct answer, a definition and a tree of related topics. Those are
flattened into short text snippets for the model.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from toolbench.exceptions import ToolError

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_URL = "https://api.duckduckgo.com/"


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _topic_snippets(topics: list[Any]) -> list[str]:
    """Flatten RelatedTopics, descending into grouped ``Topics`` lists."""
    snippets: list[str] = []
    for topic in topics:
        if not isinstance(topic, dict):
            continue
        nested = topic.get("Topics")
        if isinstance(nested, list):
            snippets.extend(_topic_snippets(nested))
            continue
        text = _text(topic.get("Text"))
        if not text:
            continue
        url = _text(topic.get("FirstURL"))
        snippets.append(f"{text} ({url})" if url else text)
    return snippets


def extract_snippets(payload: dict, max_results: int = 5) -> list[str]:
    """Pull the most useful snippets out of an instant-answer payload.

    Order: direct answer, abstract, definition, then related topics.

    Raises:
        ToolError: If the payload is not a JSON object.
    """
    if not isinstance(payload, dict):
        raise ToolError(f"Unexpected search response: {type(payload).__name__}")

    snippets: list[str] = []
    answer = _text(payload.get("Answer"))
    if answer:
        snippets.append(answer)

    abstract = _text(payload.get("AbstractText"))
    if abstract:
        source = _text(payload.get("AbstractURL"))
        heading = _text(payload.get("Heading"))
        prefix = f"{heading}: " if heading else ""
        snippets.append(f"{prefix}{abstract} ({source})" if source else f"{prefix}{abstract}")

    definition = _text(payload.get("Definition"))
    if definition:
        snippets.append(definition)

    related = payload.get("RelatedTopics")
    if isinstance(related, list):
        snippets.extend(_topic_snippets(related))

    return snippets[:max_results]


class WebSearch:
    """Sync httpx client for the instant-answer search endpoint.

    Usage::

        with WebSearch() as search:
            snippets = search.query("rust programming")
    """

    def __init__(
        self,
        url: str = DEFAULT_SEARCH_URL,
        *,
        timeout: float = 15.0,
        max_results: int = 5,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._url = url
        self._max_results = max_results
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def query(self, text: str) -> list[str]:
        """Run a search and return snippets (possibly empty).

        Raises:
            ToolError: On network errors, non-2xx status or invalid JSON.
        """
        params = {
            "q": text,
            "format": "json",
            "no_html": "1",
            "skip_disambig": "1",
        }
        try:
            response = self._client.get(self._url, params=params)
        except httpx.HTTPError as exc:
            raise ToolError(f"Search request failed: {type(exc).__name__}: {exc}") from exc

        if not response.is_success:
            raise ToolError(
                f"Search API returned HTTP {response.status_code}: {response.text[:200]}"
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise ToolError(f"Search API returned invalid JSON: {exc}") from exc

        snippets = extract_snippets(payload, self._max_results)
        logger.debug("Search %r returned %d snippet(s)", text, len(snippets))
        return snippets

    def close(self) -> None:
        """Close the underlying httpx client."""
        self._client.close()

    def __enter__(self) -> WebSearch:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
