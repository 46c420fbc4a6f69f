"""Optional Langfuse tracing for Compass requests.

Tracing is a no-op unless ``LANGFUSE_PUBLIC_KEY``, ``LANGFUSE_SECRET_KEY`` and
``LANGFUSE_HOST`` are all set.  Instrumentation happens at three levels:

1) one trace per ``/api/compass`` request (see ``compass.main``)
2) one span per graph node and per completion call (``compass.agents``)
3) tool calls, through the :func:`traced_tool` decorator

The active trace and span live in context variables, so a search started from
inside a graph node nests under that node's span without passing handles around.
"""

from __future__ import annotations

import logging
import os
from contextvars import ContextVar
from typing import Any, Callable, Optional, TypeVar, cast

try:
    from langfuse import Langfuse  # type: ignore
except Exception as e:  # pragma: no cover
    Langfuse = None  # type: ignore
    _langfuse_import_error = e
else:  # pragma: no cover
    _langfuse_import_error = None


_T = TypeVar("_T")

_langfuse_client: Optional[Any] = None

logger = logging.getLogger("compass.langfuse")

_current_trace: ContextVar[Optional[Any]] = ContextVar("compass_current_trace", default=None)
_current_span: ContextVar[Optional[Any]] = ContextVar("compass_current_span", default=None)


def tracing_enabled() -> bool:
    return bool(
        os.getenv("LANGFUSE_PUBLIC_KEY")
        and os.getenv("LANGFUSE_SECRET_KEY")
        and os.getenv("LANGFUSE_HOST")
    )


def get_langfuse() -> Optional[Any]:
    """Return the shared Langfuse client, or None when tracing is off."""
    global _langfuse_client
    if _langfuse_client is not None:
        return _langfuse_client

    if not tracing_enabled():
        return None

    if Langfuse is None:
        logger.warning(
            f"LANGFUSE_* is set but the Langfuse SDK failed to import ({_langfuse_import_error}); "
            "requests will not be traced."
        )
        return None

    _langfuse_client = Langfuse(
        public_key=os.getenv("LANGFUSE_PUBLIC_KEY"),
        secret_key=os.getenv("LANGFUSE_SECRET_KEY"),
        host=os.getenv("LANGFUSE_HOST"),
    )
    return _langfuse_client


def start_trace(
    *,
    name: str,
    input: Optional[Any] = None,
    metadata: Optional[dict[str, Any]] = None,
) -> Optional[Any]:
    """Open a trace for one request and make it current."""
    client = get_langfuse()
    if client is None:
        return None

    trace = client.trace(name=name, input=input, metadata=metadata)
    _current_trace.set(trace)
    _current_span.set(None)
    return trace


def start_span(
    *,
    name: str,
    input: Optional[Any] = None,
    metadata: Optional[dict[str, Any]] = None,
) -> Optional[Any]:
    """Open a span below the current span (or trace) and make it current."""
    trace = _current_trace.get()
    if trace is None:
        return None

    parent = _current_span.get() or trace
    span = parent.span(name=name, input=input, metadata=metadata)
    # Remember the parent so end_span can restore it for sibling spans.
    span._compass_parent = _current_span.get()
    _current_span.set(span)
    return span


def end_span(span: Optional[Any], *, output: Optional[Any] = None, error: Optional[str] = None) -> None:
    if span is None:
        return
    if error:
        span.update(level="ERROR", status_message=error)
    if output is not None:
        span.update(output=output)
    span.end()
    _current_span.set(getattr(span, "_compass_parent", None))


def end_trace(trace: Optional[Any], *, output: Optional[Any] = None, error: Optional[str] = None) -> None:
    if trace is None:
        return
    if error:
        trace.update(level="ERROR", status_message=error)
    if output is not None:
        trace.update(output=output)

    # Flush so the request shows up in the Langfuse UI without waiting for
    # the background batch; a flush failure must not fail the request.
    try:
        client = get_langfuse()
        if client is not None:
            client.flush()
    except Exception:
        logger.exception("Failed to flush Langfuse client")
    _current_trace.set(None)
    _current_span.set(None)


def traced_tool(name: Optional[str] = None) -> Callable[[Callable[..., _T]], Callable[..., _T]]:
    """Record every call of the decorated tool as a ``tool:<name>`` span.

    Usage:
        @traced_tool("web_search")
        def search_web(query):
            ...
    """

    def deco(fn: Callable[..., _T]) -> Callable[..., _T]:
        tool_name = name or fn.__name__

        def wrapped(*args: Any, **kwargs: Any) -> _T:
            span = start_span(
                name=f"tool:{tool_name}",
                input={"args": args, "kwargs": kwargs},
                metadata={"kind": "tool", "tool_name": tool_name},
            )
            try:
                out = fn(*args, **kwargs)
            except Exception as e:
                end_span(span, error=str(e))
                raise
            end_span(span, output=out)
            return out

        wrapped.__name__ = fn.__name__
        wrapped.__doc__ = fn.__doc__
        return cast(Callable[..., _T], wrapped)

    return deco
