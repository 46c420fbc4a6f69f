"""
Terminal chat client for Compass.

:class:`ChatSession` keeps the conversation in memory and sends the whole
history to the Compass endpoint on every turn, the same way the browser page
under ``/ui`` does.  The session timeout only decides what the user sees: a
request that outlives it keeps running on its worker thread and its late
response is dropped.

Run ``compass-chat --url http://localhost:8000`` for an interactive session.
"""

from __future__ import annotations

import argparse
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger("compass.client")

DEFAULT_TIMEOUT = 30.0


class ChatError(Exception):
    """A turn failed; the message is meant to be shown to the user."""


class ChatTimeout(ChatError):
    """No reply arrived within the session timeout."""


class ChatSession:
    """In-memory conversation with a Compass server.

    Args:
        base_url: Server root, e.g. ``http://localhost:8000``.
        timeout: Seconds to wait for a reply before reporting a timeout.
        endpoint: Path of the chat endpoint.
        client: Optional ``httpx.Client`` (tests pass one with a mock
            transport).  It must have ``base_url`` set when given.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        *,
        timeout: float = DEFAULT_TIMEOUT,
        endpoint: str = "/api/compass",
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.timeout = timeout
        self.endpoint = endpoint
        self.messages: List[Dict[str, Any]] = []
        # No client-side read timeout: the session timeout below is the only
        # limit the user sees, and it does not abort the request.
        self._client = client or httpx.Client(base_url=base_url, timeout=None)

    def _post(self, history: List[Dict[str, Any]]) -> httpx.Response:
        return self._client.post(self.endpoint, json={"messages": history})

    def send(self, text: str) -> Optional[str]:
        """Send one user message and return the assistant's reply.

        Blank input is ignored and returns ``None``.  The user message is
        kept in the history even when the turn fails.

        Raises:
            ChatTimeout: No reply within ``timeout`` seconds.
            ChatError: The server answered with an error.
        """
        if not text or not text.strip():
            return None

        self.messages.append({"role": "user", "content": text})
        history = list(self.messages)

        # Each turn gets its own worker thread, so a hung request never
        # delays later turns.  shutdown(wait=False) lets it finish in the
        # background.
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="compass-chat")
        future: Future = executor.submit(self._post, history)
        executor.shutdown(wait=False)
        try:
            response = future.result(timeout=self.timeout)
        except FutureTimeoutError:
            logger.warning(f"No reply after {self.timeout}s; the request is left running")
            raise ChatTimeout("Request timed out") from None
        except httpx.HTTPError as e:
            raise ChatError(str(e)) from e

        if response.is_error:
            raise ChatError(f"HTTP error! status: {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise ChatError(f"Invalid response from server: {e}") from e
        if not isinstance(data, dict):
            raise ChatError("Invalid response from server: expected a JSON object")
        if data.get("error"):
            raise ChatError(str(data["error"]))

        reply = data.get("response")
        if not isinstance(reply, str):
            raise ChatError("Invalid response from server: missing reply text")
        self.messages.append({"role": "assistant", "content": reply})
        return reply

    def close(self) -> None:
        # In-flight requests are never cancelled; they fail once the client
        # closes and their results are discarded.
        self._client.close()

    def __enter__(self) -> "ChatSession":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Chat with Compass from the terminal.")
    parser.add_argument("--url", default="http://localhost:8000", help="Compass server URL")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT, help="Seconds to wait for a reply")
    args = parser.parse_args(argv)

    print("Welcome to Compass! How can I help? 👋  (Ctrl-D to quit)")
    with ChatSession(args.url, timeout=args.timeout) as session:
        while True:
            try:
                text = input("> ")
            except (EOFError, KeyboardInterrupt):
                print()
                break
            try:
                reply = session.send(text)
            except ChatError as e:
                print(f"Error: {e}")
                continue
            if reply is not None:
                print(f"\n{reply}\n")


if __name__ == "__main__":
    main()
