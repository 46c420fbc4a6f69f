"""
FastAPI server for Compass, the community services navigator.

The chat client keeps the conversation and sends the whole history to
``POST /api/compass`` on every turn.  The endpoint runs the Compass graph
(model draft, optional web search, final answer) and returns the reply as
``{"response": ...}``.  Nothing is stored between requests.

A static browser client is served under ``/ui``.  To start the server run
``uvicorn compass.main:app --reload`` from the project root after installing
dependencies.
"""

from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from .agents import run_compass
from .schemas import ChatRequest, ChatResponse, ErrorResponse

from .tools.langfuse_tracing import start_trace, end_trace


app = FastAPI(title="Compass - Navigate Community Services")

# Application-wide logging.  The level comes from LOG_LEVEL (default: INFO)
# and records go to standard output for the hosting environment to collect.
_log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=_log_level,
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
)
logger = logging.getLogger("compass.main")


@app.middleware("http")
async def no_cache_ui_assets(request: Request, call_next):
    response = await call_next(request)
    # Avoid stale frontend assets during development.
    if request.url.path == "/ui" or request.url.path.startswith("/ui/"):
        response.headers["Cache-Control"] = "no-store"
    return response


@app.post(
    "/api/compass",
    response_model=ChatResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def compass(request: Request) -> JSONResponse:
    """Answer the latest turn of a conversation.

    The body must be ``{"messages": [{"role", "content"}, ...]}`` with at
    least one message.  Invalid bodies are rejected with 400 before any
    outbound call.  Any failure while talking to the completion or search API
    yields 500 with the stringified cause; there is no retry and no partial
    reply.
    """
    try:
        body = ChatRequest.model_validate(await request.json())
    except (ValueError, ValidationError):
        # request.json() raises a ValueError subclass on malformed JSON
        logger.info("Rejected invalid request body")
        return JSONResponse(status_code=400, content={"message": "Invalid request body"})

    messages = [m.model_dump() for m in body.messages]
    logger.info(f"Received chat request with {len(messages)} messages")

    trace = start_trace(
        name="/api/compass",
        input={"messages": messages},
        metadata={"endpoint": "/api/compass"},
    )
    try:
        reply = await run_in_threadpool(run_compass, messages)
    except Exception as e:
        logger.exception("Error in API route")
        end_trace(trace, error=str(e))
        return JSONResponse(
            status_code=500,
            content={"message": "Internal server error", "error": str(e)},
        )

    end_trace(trace, output={"response": reply})
    return JSONResponse({"response": reply})


@app.api_route("/api/compass", methods=["GET", "PUT", "PATCH", "DELETE", "OPTIONS"], include_in_schema=False)
async def compass_method_not_allowed() -> JSONResponse:
    return JSONResponse(status_code=405, content={"message": "Method not allowed"})


@app.get("/")
async def root() -> JSONResponse:
    """Return a brief description of the API."""
    return JSONResponse(
        {
            "message": "Compass backend is running. Open /ui for the chat page or POST a conversation to /api/compass.",
            "endpoints": {"chat": "/api/compass", "ui": "/ui", "docs": "/docs"},
        }
    )


# Mount the static chat page.  The 'frontend' directory sits next to the
# package in the project root.
frontend_dir = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "frontend")
if os.path.isdir(frontend_dir):
    app.mount("/ui", StaticFiles(directory=frontend_dir, html=True), name="ui")
