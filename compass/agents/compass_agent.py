"""Graph nodes for a Compass turn.

``draft`` asks the model for a reply with the ``web_search`` tool available.
If the model asks for a search, ``web_search`` runs it once and ``answer``
asks the model again with the results; otherwise the draft is the reply.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Literal, Optional

from langchain_core.messages import AIMessage, ToolMessage
from langgraph.graph import END

from ..tools.agent_config import get_compass_settings
from ..tools.langfuse_tracing import end_span, start_span
from ..tools.llm import get_compass_llm, invoke_llm, message_text
from ..tools.web import WEB_SEARCH_TOOL_NAME, search_web

from .prompts import build_system_prompt
from .types import CompassState

logger = logging.getLogger("compass.agent")


def _system_prompt() -> str:
    return build_system_prompt(get_compass_settings().system_prompt)


def find_search_call(message: AIMessage) -> Optional[Dict[str, Any]]:
    """Return the first ``web_search`` tool call on a model message, if any."""
    for call in getattr(message, "tool_calls", None) or []:
        if call.get("name") == WEB_SEARCH_TOOL_NAME:
            return call
    return None


def draft(state: CompassState) -> CompassState:
    """First completion call over the client's history."""
    _span = start_span(name="agent:draft", metadata={"kind": "agent"})
    try:
        response = invoke_llm(get_compass_llm(), _system_prompt(), state["history"], step="draft")
    except Exception as e:
        end_span(_span, error=str(e))
        raise

    out: CompassState = {"response": response}
    if find_search_call(response) is None:
        out["reply"] = message_text(response)
    end_span(_span, output={"reply": out.get("reply"), "search": "reply" not in out})
    return out


def route(state: CompassState) -> Literal["web_search", "__end__"]:
    """Go to ``web_search`` when the draft asked for a search, else finish."""
    if find_search_call(state["response"]) is not None:
        return "web_search"
    return END


SKIPPED_CALL_RESULT = "Only one search runs per turn."


def web_search(state: CompassState) -> CompassState:
    """Run the model's search once and wrap the results as tool results.

    Every tool call on the draft gets a tool result; only the first
    ``web_search`` call is executed.
    """
    call = find_search_call(state["response"])
    if call is None:
        raise ValueError("web_search node reached without a web_search tool call")
    query = str((call.get("args") or {}).get("query", ""))

    _span = start_span(name="agent:web_search", input={"query": query}, metadata={"kind": "agent"})
    logger.info(f"Model requested web search: {query}")
    try:
        result = search_web(query)
    except Exception as e:
        end_span(_span, error=str(e))
        raise

    tool_results = []
    for other in state["response"].tool_calls:
        if other["id"] == call["id"]:
            content = result.with_citations()
        else:
            logger.warning(f"Skipping extra tool call {other.get('name')} ({other['id']})")
            content = SKIPPED_CALL_RESULT
        tool_results.append(ToolMessage(content=content, tool_call_id=other["id"], name=other.get("name")))
    end_span(_span, output={"citations": result.citations, "tool_results": len(tool_results)})
    return {"tool_results": tool_results}


def answer(state: CompassState) -> CompassState:
    """Second completion call, with the search results appended."""
    _span = start_span(name="agent:answer", metadata={"kind": "agent"})
    messages = [*state["history"], state["response"], *state["tool_results"]]
    try:
        response = invoke_llm(get_compass_llm(), _system_prompt(), messages, step="answer")
    except Exception as e:
        end_span(_span, error=str(e))
        raise

    if find_search_call(response) is not None:
        logger.warning("Model requested another search after results were supplied; ignoring it")
    reply = message_text(response)
    end_span(_span, output={"reply": reply})
    return {"reply": reply}
