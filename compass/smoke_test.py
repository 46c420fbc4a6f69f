"""Tiny local smoke test for the FastAPI app.

Runs without starting Uvicorn: it imports the app and calls endpoints via
FastAPI's TestClient.  With ANTHROPIC_API_KEY (or OpenAI variables) and
PPLX_API_KEY set it also sends a real conversation.

Usage:
  /path/to/.venv/bin/python -m compass.smoke_test
"""

import os

from fastapi.testclient import TestClient

from compass.main import app


def main() -> None:
    client = TestClient(app)

    r = client.get("/")
    assert r.status_code == 200, r.text

    r = client.get("/ui/")
    assert r.status_code in (200, 307), r.text

    r = client.post("/api/compass", json={"messages": []})
    assert r.status_code == 400, r.text

    has_llm = os.getenv("ANTHROPIC_API_KEY") or os.getenv("OPENAI_API_KEY") or os.getenv("AZURE_OPENAI_API_KEY")
    if has_llm and os.getenv("PPLX_API_KEY"):
        r = client.post(
            "/api/compass",
            json={"messages": [{"role": "user", "content": "Where can I find a food bank in Austin, TX?"}]},
        )
        assert r.status_code == 200, r.text
        assert r.json()["response"].strip(), "Expected a non-empty reply"

    print("smoke_test.py: PASS")


if __name__ == "__main__":
    main()
