"""
Utilities for talking to the completion API via LangChain.

Chat models are built lazily from environment variables:

- ``ANTHROPIC_API_KEY`` selects ``ChatAnthropic`` (the default provider).
- otherwise the ``AZURE_OPENAI_*`` variables select ``AzureChatOpenAI``.
- otherwise ``OPENAI_API_KEY`` selects ``ChatOpenAI``.

The module also converts the client's wire-format history into LangChain
messages and pulls reply text back out of model responses.  All requests and
responses are logged.
"""

from __future__ import annotations

import os
import logging
from typing import Any, Dict, Iterable, List, Optional

from langchain_anthropic import ChatAnthropic
from langchain_openai import AzureChatOpenAI, ChatOpenAI
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from .agent_config import DEFAULT_COMPASS_MODEL, get_compass_settings
from .langfuse_tracing import end_span, start_span
from .web import WEB_SEARCH_TOOL

logger = logging.getLogger("compass.llm")

# Cache chat model instances keyed by provider and model name
_cached_llms: Dict[str, Any] = {}


def get_llm(
    model_name: Optional[str] = None,
    *,
    max_tokens: int = 8192,
    temperature: float = 1.0,
) -> Any:
    """Return a lazily constructed chat model instance.

    Args:
        model_name: Anthropic model, Azure deployment or OpenAI model name.
            ``None`` picks the provider's default.
        max_tokens: Upper bound on tokens generated per completion.
        temperature: Sampling temperature.

    Returns:
        A LangChain chat model, or ``None`` if no API key configuration is
        available.
    """
    anthropic_key = os.getenv("ANTHROPIC_API_KEY")
    if anthropic_key:
        model = model_name or DEFAULT_COMPASS_MODEL
        key = f"anthropic:{model}:{max_tokens}:{temperature}"
        if key not in _cached_llms:
            logger.info(f"Initialising Anthropic model (model={model})")
            _cached_llms[key] = ChatAnthropic(
                model=model,
                anthropic_api_key=anthropic_key,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        return _cached_llms[key]

    azure_key = os.getenv("AZURE_OPENAI_API_KEY")
    azure_base = os.getenv("AZURE_OPENAI_API_BASE")
    azure_version = os.getenv("AZURE_OPENAI_API_VERSION")
    azure_deployment = model_name or os.getenv("AZURE_OPENAI_DEPLOYMENT_NAME")
    if azure_key and azure_base and azure_version and azure_deployment:
        key = f"azure:{azure_deployment}:{max_tokens}:{temperature}"
        if key not in _cached_llms:
            logger.info(f"Initialising Azure OpenAI model (deployment={azure_deployment})")
            _cached_llms[key] = AzureChatOpenAI(
                azure_endpoint=azure_base,
                azure_deployment=azure_deployment,
                api_version=azure_version,
                openai_api_key=azure_key,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        return _cached_llms[key]

    openai_key = os.getenv("OPENAI_API_KEY")
    if openai_key:
        key = f"openai:{model_name}:{max_tokens}:{temperature}"
        if key not in _cached_llms:
            kwargs: Dict[str, Any] = {
                "openai_api_key": openai_key,
                "max_tokens": max_tokens,
                "temperature": temperature,
            }
            if model_name:
                kwargs["model"] = model_name
            logger.info("Initialising standard OpenAI model")
            _cached_llms[key] = ChatOpenAI(**kwargs)
        return _cached_llms[key]

    logger.warning("No LLM API keys found.  Compass cannot answer without a completion API.")
    return None


def get_compass_llm() -> Any:
    """Return the Compass chat model with the ``web_search`` tool bound.

    Raises:
        RuntimeError: No completion API credentials are configured.
    """
    settings = get_compass_settings()
    llm = get_llm(
        settings.model_name,
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
    )
    if llm is None:
        raise RuntimeError(
            "No language model configured.  Set ANTHROPIC_API_KEY (or the OpenAI variables)."
        )
    return llm.bind_tools([WEB_SEARCH_TOOL])


def content_blocks(content: Any) -> List[Any]:
    """Normalize message content into a list of content blocks.

    Plain text becomes a single text block; structured content is passed
    through untouched.
    """
    if isinstance(content, list):
        return content
    return [{"type": "text", "text": content}]


def to_langchain_messages(history: Iterable[Dict[str, Any]]) -> List[BaseMessage]:
    """Convert ``{role, content}`` dicts into LangChain messages, preserving order."""
    messages: List[BaseMessage] = []
    for msg in history:
        role = msg.get("role")
        content = content_blocks(msg.get("content", ""))
        if role == "user":
            messages.append(HumanMessage(content=content))
        elif role == "assistant":
            messages.append(AIMessage(content=content))
        else:
            raise ValueError(f"Unsupported message role: {role!r}")
    return messages


def message_text(message: BaseMessage) -> str:
    """Return the text of a model response, joining its text blocks."""
    content = message.content
    if isinstance(content, str):
        return content
    parts: List[str] = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


def invoke_llm(llm: Any, system_prompt: str, messages: List[BaseMessage], *, step: str) -> AIMessage:
    """Send one completion request and return the model's message.

    Args:
        llm: A chat model (usually from :func:`get_compass_llm`).
        system_prompt: Prepended as a system message.
        messages: Conversation so far, oldest first.
        step: Short label for logs and traces (``draft`` or ``answer``).
    """
    span = start_span(
        name=f"llm:{step}",
        input={"messages": len(messages)},
        metadata={"kind": "generation", "step": step},
    )
    logger.info(f"LLM request ({step}): {len(messages)} messages")
    try:
        response = llm.invoke([SystemMessage(content=system_prompt), *messages])
    except Exception as e:
        logger.exception(f"Error during LLM request ({step})")
        end_span(span, error=str(e))
        raise
    tool_calls = [call.get("name") for call in getattr(response, "tool_calls", None) or []]
    logger.info(f"LLM response ({step}): {message_text(response)!r} tool_calls={tool_calls}")
    end_span(span, output={"text": message_text(response), "tool_calls": tool_calls})
    return response
