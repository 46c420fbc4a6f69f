"""
Web search client for Compass.

Searches go through Perplexity's chat completions API, which answers the query
from live web results and returns the URLs it used as ``citations``.  The API
key is read from ``PPLX_API_KEY``; model, system prompt and timeout come from
the ``web_search`` block of the agent config.

Unlike a best-effort lookup, a failed search is an error for the whole turn:
HTTP and transport errors propagate to the caller unchanged.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, List, Optional

import httpx

from .tools.agent_config import get_search_settings

PERPLEXITY_URL = "https://api.perplexity.ai/chat/completions"

logger = logging.getLogger("compass.web_search")


@dataclass
class SearchResult:
    """Answer text from the search API plus the URLs it cites, in order."""

    content: str
    citations: List[str] = field(default_factory=list)

    def with_citations(self) -> str:
        """Render the content followed by a numbered list of source links."""
        if not self.citations:
            return self.content
        sources = "\n".join(f"[{idx}] {url}" for idx, url in enumerate(self.citations, start=1))
        return f"{self.content}\n\nSources:\n{sources}"


def _parse_response(data: Any) -> SearchResult:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise ValueError(f"Unexpected search API response: {data!r}") from e

    citations = data.get("citations") or []
    return SearchResult(
        content=content or "",
        citations=[url for url in citations if isinstance(url, str) and url],
    )


def search(query: str, *, client: Optional[httpx.Client] = None) -> SearchResult:
    """Run one query against the search API.

    Args:
        query: Free-text search query chosen by the model.
        client: Optional ``httpx.Client`` to send the request with.  A
            short-lived client is used when omitted.

    Returns:
        The search answer and its citation URLs.

    Raises:
        RuntimeError: ``PPLX_API_KEY`` is not set.
        httpx.HTTPError: The request failed or returned a non-2xx status.
    """
    api_key = os.getenv("PPLX_API_KEY")
    if not api_key:
        raise RuntimeError("No search API key configured.  Set PPLX_API_KEY.")

    settings = get_search_settings()
    payload = {
        "model": settings.model_name,
        "messages": [
            {"role": "system", "content": settings.system_prompt},
            {"role": "user", "content": query},
        ],
    }
    headers = {"Authorization": f"Bearer {api_key}"}

    logger.info(f"Search request (model={settings.model_name}): {query}")
    if client is None:
        with httpx.Client(timeout=settings.timeout) as owned:
            r = owned.post(PERPLEXITY_URL, json=payload, headers=headers)
    else:
        r = client.post(PERPLEXITY_URL, json=payload, headers=headers, timeout=settings.timeout)
    r.raise_for_status()

    result = _parse_response(r.json())
    logger.info(f"Search returned {len(result.content)} chars and {len(result.citations)} citations")
    return result


__all__ = ["SearchResult", "search", "PERPLEXITY_URL"]
