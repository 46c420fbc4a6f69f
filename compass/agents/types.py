from __future__ import annotations

from typing import List, TypedDict

from langchain_core.messages import AIMessage, BaseMessage, ToolMessage


class CompassState(TypedDict, total=False):
    """Schema for the graph's state."""

    # Normalized conversation sent by the client, oldest first
    history: List[BaseMessage]
    # First model response; may carry a web_search tool call
    response: AIMessage
    # One tool result per tool call on the response; only the first web_search runs
    tool_results: List[ToolMessage]
    reply: str
