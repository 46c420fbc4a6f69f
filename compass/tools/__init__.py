# Helpers shared by the Compass graph nodes.
#
# ``web`` declares the web_search tool and its traced search callable,
# ``llm`` builds chat models and converts messages, ``agent_config`` reads the
# YAML settings and ``langfuse_tracing`` holds the optional tracing hooks.

from .web import WEB_SEARCH_TOOL, WEB_SEARCH_TOOL_NAME, search_web
from .llm import get_compass_llm, get_llm, message_text, to_langchain_messages

__all__ = [
    "WEB_SEARCH_TOOL",
    "WEB_SEARCH_TOOL_NAME",
    "search_web",
    "get_compass_llm",
    "get_llm",
    "message_text",
    "to_langchain_messages",
]
