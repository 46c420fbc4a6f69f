"""Compass: a chat backend that answers community-services questions with live web search."""

from .main import app  # Re-export FastAPI application for uvicorn

__all__ = ["app"]
