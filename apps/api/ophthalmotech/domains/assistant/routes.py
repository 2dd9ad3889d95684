# apps/api/ophthalmotech/domains/assistant/routes.py
import logging
from typing import AsyncIterator

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from ophthalmotech.domains.assistant.models import (
    AnalysisResponse,
    ChatRequest,
    DeviceAnalysisRequest,
    MaintenanceRequest,
)
from ophthalmotech.shared.ai import (
    AIException,
    AIRateLimitException,
    AITimeoutException,
    ChatMessageDict,
    OpenAIClient,
)
from ophthalmotech.shared.ai.dependencies import get_ai_client
from ophthalmotech.shared.permissions import AccessDecision, Permission
from ophthalmotech.shared.permissions.dependencies import (
    require_access,
    require_permission,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assistant", tags=["Assistant"])


def _ai_http_error(error: AIException) -> HTTPException:
    if isinstance(error, AIRateLimitException):
        code = status.HTTP_429_TOO_MANY_REQUESTS
    elif isinstance(error, AITimeoutException):
        code = status.HTTP_504_GATEWAY_TIMEOUT
    else:
        code = status.HTTP_502_BAD_GATEWAY
    return HTTPException(status_code=code, detail=str(error))


@router.post("/chat", operation_id="chatWithAssistant")
async def chat(
    request: ChatRequest,
    decision: AccessDecision = Depends(require_permission(Permission.AI_CHAT)),
    ai_client: OpenAIClient = Depends(get_ai_client),
) -> StreamingResponse:
    """
    Stream the assistant's reply as newline-delimited JSON events.

    Each line is a "delta" event with a content fragment; the stream ends
    with a single "done" or "error" event. Disconnecting stops generation.
    """
    messages: list[ChatMessageDict] = [
        {"role": m.role, "content": m.content} for m in request.messages
    ]

    async def lines() -> AsyncIterator[str]:
        async for event in ai_client.chat_events(messages):
            yield event.model_dump_json(exclude_none=True) + "\n"

    return StreamingResponse(lines(), media_type="application/x-ndjson")


@router.post(
    "/devices/analyze",
    response_model=AnalysisResponse,
    operation_id="analyzeDevice",
)
async def analyze_device(
    request: DeviceAnalysisRequest,
    decision: AccessDecision = Depends(require_permission(Permission.AI_ANALYZE)),
    ai_client: OpenAIClient = Depends(get_ai_client),
) -> AnalysisResponse:
    try:
        content = await ai_client.analyze_device_data(request.device)
    except AIException as e:
        logger.error("Device analysis failed: %s", e)
        raise _ai_http_error(e)
    return AnalysisResponse(content=content)


@router.post(
    "/maintenance",
    response_model=AnalysisResponse,
    operation_id="recommendMaintenance",
)
async def recommend_maintenance(
    request: MaintenanceRequest,
    decision: AccessDecision = Depends(
        require_access(
            permissions=[Permission.AI_ANALYZE, Permission.MAINTENANCE_READ],
            require_all=True,
        )
    ),
    ai_client: OpenAIClient = Depends(get_ai_client),
) -> AnalysisResponse:
    try:
        content = await ai_client.generate_maintenance_recommendations(
            request.devices
        )
    except AIException as e:
        logger.error("Maintenance recommendations failed: %s", e)
        raise _ai_http_error(e)
    return AnalysisResponse(content=content)
