"""
Web search tool.

Declares the ``web_search`` tool the model is offered and wraps the search
client into a traced callable.  The schema is written in Anthropic's tool
format; LangChain converts it for OpenAI-style models when binding.
"""

from typing import Any, Dict

from ..web_search import SearchResult, search as _search

from .langfuse_tracing import traced_tool

WEB_SEARCH_TOOL_NAME = "web_search"

WEB_SEARCH_TOOL: Dict[str, Any] = {
    "name": WEB_SEARCH_TOOL_NAME,
    "description": "Search the web for current information on a given topic",
    "input_schema": {
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "The search query to run",
            }
        },
        "required": ["query"],
    },
}


@traced_tool(WEB_SEARCH_TOOL_NAME)
def search_web(query: str) -> SearchResult:
    """Search the web for a query.

    Args:
        query: The search phrase.

    Returns:
        A :class:`SearchResult` with the answer text and citation URLs.
    """
    return _search(query)
