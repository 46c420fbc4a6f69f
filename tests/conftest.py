from __future__ import annotations

from typing import Any, List

import pytest
from fastapi.testclient import TestClient
from langchain_core.messages import AIMessage

from compass.main import app
from compass.tools.agent_config import load_agent_config
from compass.web_search import SearchResult

_CREDENTIAL_VARS = (
    "ANTHROPIC_API_KEY",
    "OPENAI_API_KEY",
    "AZURE_OPENAI_API_KEY",
    "AZURE_OPENAI_API_BASE",
    "AZURE_OPENAI_API_VERSION",
    "AZURE_OPENAI_DEPLOYMENT_NAME",
    "PPLX_API_KEY",
    "LANGFUSE_PUBLIC_KEY",
    "LANGFUSE_SECRET_KEY",
    "LANGFUSE_HOST",
    "AGENT_CONFIG_PATH",
)


class FakeLLM:
    """Chat model stand-in that replays canned responses and records calls."""

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.calls: List[list] = []

    def invoke(self, messages: list) -> AIMessage:
        self.calls.append(list(messages))
        out = self.responses.pop(0)
        if isinstance(out, Exception):
            raise out
        return out


class FakeSearch:
    def __init__(self, result: Any) -> None:
        self.result = result
        self.queries: List[str] = []

    def __call__(self, query: str) -> SearchResult:
        self.queries.append(query)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _CREDENTIAL_VARS:
        monkeypatch.delenv(name, raising=False)
    load_agent_config.cache_clear()
    yield
    load_agent_config.cache_clear()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def fake_llm(monkeypatch):
    """Install a FakeLLM; call it with the responses the model should give."""

    def install(*responses: Any) -> FakeLLM:
        llm = FakeLLM(*responses)
        monkeypatch.setattr("compass.agents.compass_agent.get_compass_llm", lambda: llm)
        return llm

    return install


@pytest.fixture
def fake_search(monkeypatch):
    def install(result: Any) -> FakeSearch:
        search = FakeSearch(result)
        monkeypatch.setattr("compass.agents.compass_agent.search_web", search)
        return search

    return install
