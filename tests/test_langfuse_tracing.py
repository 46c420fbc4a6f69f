from __future__ import annotations

from compass.tools import langfuse_tracing as tracing


class FakeObservation:
    def __init__(self, name: str = "trace") -> None:
        self.name = name
        self.children = []
        self.updates = []
        self.ended = False

    def span(self, *, name, input=None, metadata=None):
        child = FakeObservation(name)
        self.children.append(child)
        return child

    def update(self, **kwargs):
        self.updates.append(kwargs)

    def end(self):
        self.ended = True


def test_tracing_is_off_without_env():
    assert not tracing.tracing_enabled()
    assert tracing.start_trace(name="/api/compass") is None
    assert tracing.start_span(name="agent:draft") is None
    tracing.end_span(None)
    tracing.end_trace(None)


def test_traced_tool_passes_results_through():
    @tracing.traced_tool("web_search")
    def lookup(query):
        """Look something up."""
        return query.upper()

    assert lookup("austin") == "AUSTIN"
    assert lookup.__name__ == "lookup"


def test_spans_nest_and_restore_parent():
    trace = FakeObservation()
    token = tracing._current_trace.set(trace)
    try:
        outer = tracing.start_span(name="agent:web_search")
        inner = tracing.start_span(name="tool:web_search")
        tracing.end_span(inner, output={"ok": True})
        sibling = tracing.start_span(name="llm:answer")
        tracing.end_span(sibling)
        tracing.end_span(outer, error="boom")
    finally:
        tracing._current_trace.reset(token)
        tracing._current_span.set(None)

    assert [c.name for c in trace.children] == ["agent:web_search"]
    assert [c.name for c in outer.children] == ["tool:web_search", "llm:answer"]
    assert inner.ended and sibling.ended and outer.ended
    assert {"level": "ERROR", "status_message": "boom"} in outer.updates
