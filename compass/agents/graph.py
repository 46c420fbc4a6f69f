from __future__ import annotations

from typing import Any, Dict, List

from langgraph.graph import END, START, StateGraph

from ..tools.llm import to_langchain_messages

from .compass_agent import answer, draft, route, web_search
from .types import CompassState


def get_compass_graph() -> "StateGraph[CompassState]":
    """Construct and return the compiled graph for one Compass turn."""
    graph_builder: StateGraph[CompassState] = StateGraph(CompassState)

    graph_builder.add_node("draft", draft)
    graph_builder.add_node("web_search", web_search)
    graph_builder.add_node("answer", answer)

    graph_builder.add_edge(START, "draft")
    graph_builder.add_conditional_edges(
        "draft",
        route,
        {"web_search": "web_search", END: END},
    )
    graph_builder.add_edge("web_search", "answer")
    graph_builder.add_edge("answer", END)

    return graph_builder.compile()


_compiled_compass_graph = get_compass_graph()


def run_compass(messages: List[Dict[str, Any]]) -> str:
    """Answer the latest turn of a conversation.

    Args:
        messages: Client history as ``{role, content}`` dicts, oldest first.

    Returns:
        The assistant's reply text.
    """
    state: CompassState = {"history": to_langchain_messages(messages)}
    result = _compiled_compass_graph.invoke(state)
    return result["reply"]
