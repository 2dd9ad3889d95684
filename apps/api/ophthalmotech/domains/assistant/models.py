# apps/api/ophthalmotech/domains/assistant/models.py
from typing import Any, Literal

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str = Field(min_length=1)


class ChatRequest(BaseModel):
    messages: list[ChatMessage] = Field(min_length=1)


class DeviceAnalysisRequest(BaseModel):
    device: dict[str, Any]


class MaintenanceRequest(BaseModel):
    devices: list[dict[str, Any]] = Field(min_length=1)


class AnalysisResponse(BaseModel):
    content: str
