"""
Type definitions for AI services.
"""

from typing import Any, Literal, TypedDict

from pydantic import BaseModel


class ChatMessageDict(TypedDict):
    """A chat message in OpenAI wire format."""

    role: Literal["system", "user", "assistant"]
    content: str


DeviceData = dict[str, Any]


class ChatStreamEvent(BaseModel):
    """One event of a streamed chat reply.

    A stream is any number of "delta" events followed by exactly one "done"
    or "error" event.
    """

    type: Literal["delta", "done", "error"]
    content: str = ""
    error: str | None = None
