from __future__ import annotations

import json
import threading

import httpx
import pytest

from compass.client import ChatError, ChatSession, ChatTimeout


def _session(handler, timeout: float = 5.0) -> ChatSession:
    client = httpx.Client(base_url="http://compass.test", transport=httpx.MockTransport(handler))
    return ChatSession(timeout=timeout, client=client)


def test_send_posts_full_history_and_appends_reply():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"response": f"reply {len(bodies)}"})

    with _session(handler) as session:
        assert session.send("Hi") == "reply 1"
        assert session.send("I'm in Austin") == "reply 2"

    assert bodies[1]["messages"] == [
        {"role": "user", "content": "Hi"},
        {"role": "assistant", "content": "reply 1"},
        {"role": "user", "content": "I'm in Austin"},
    ]
    assert session.messages[-1] == {"role": "assistant", "content": "reply 2"}


def test_blank_input_is_ignored():
    def handler(request):  # pragma: no cover
        raise AssertionError("no request expected")

    with _session(handler) as session:
        assert session.send("   ") is None
        assert session.messages == []


def test_http_error_keeps_user_message():
    with _session(lambda request: httpx.Response(500, json={"message": "Internal server error"})) as session:
        with pytest.raises(ChatError, match="HTTP error! status: 500"):
            session.send("Hi")
        assert session.messages == [{"role": "user", "content": "Hi"}]


def test_error_field_in_body_is_reported():
    with _session(lambda request: httpx.Response(200, json={"error": "quota exceeded"})) as session:
        with pytest.raises(ChatError, match="quota exceeded"):
            session.send("Hi")


def test_timeout_is_reported_without_cancelling_request():
    release = threading.Event()
    finished = threading.Event()

    def handler(request: httpx.Request) -> httpx.Response:
        release.wait(5)
        finished.set()
        return httpx.Response(200, json={"response": "late"})

    session = _session(handler, timeout=0.05)
    try:
        with pytest.raises(ChatTimeout, match="Request timed out"):
            session.send("Hi")
        assert session.messages == [{"role": "user", "content": "Hi"}]

        release.set()
        assert finished.wait(5), "request should keep running after the timeout"
        assert session.messages == [{"role": "user", "content": "Hi"}]
    finally:
        release.set()
        session.close()


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>proxy</html>"),
        httpx.Response(200, json={"message": "ok"}),
        httpx.Response(200, json=["not", "an", "object"]),
    ],
)
def test_unreadable_body_is_a_chat_error(response):
    with _session(lambda request: response) as session:
        with pytest.raises(ChatError, match="Invalid response from server"):
            session.send("Hi")
        assert session.messages == [{"role": "user", "content": "Hi"}]


def test_hung_requests_do_not_delay_later_turns():
    release = threading.Event()

    def handler(request: httpx.Request) -> httpx.Response:
        last = json.loads(request.content)["messages"][-1]["content"]
        if last.startswith("hang"):
            release.wait(5)
        return httpx.Response(200, json={"response": "ok"})

    session = _session(handler, timeout=0.2)
    try:
        for idx in range(5):
            with pytest.raises(ChatTimeout):
                session.send(f"hang {idx}")
        assert session.send("hello") == "ok"
    finally:
        release.set()
        session.close()
