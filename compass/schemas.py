"""Pydantic models for the chat endpoint's request and response bodies."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """One turn of the conversation as the client keeps it."""

    role: Literal["user", "assistant"]
    # Plain text, or structured content blocks passed through to the model
    content: Union[str, List[Dict[str, Any]]]


class ChatRequest(BaseModel):
    """Full conversation history, oldest first."""

    messages: List[ChatMessage] = Field(min_length=1)

    model_config = {
        "json_schema_extra": {
            "example": {"messages": [{"role": "user", "content": "Any food banks near Austin, TX?"}]}
        }
    }


class ChatResponse(BaseModel):
    response: str


class ErrorResponse(BaseModel):
    message: str
    error: Optional[str] = None
