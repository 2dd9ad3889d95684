from ophthalmotech.shared.ai.client import OpenAIClient, openai_client
from ophthalmotech.shared.ai.config import AIConfig
from ophthalmotech.shared.ai.exceptions import (
    AIConfigurationException,
    AIException,
    AIRateLimitException,
    AIServiceUnavailableException,
    AITimeoutException,
)
from ophthalmotech.shared.ai.types import ChatMessageDict, ChatStreamEvent

__all__ = [
    "OpenAIClient",
    "openai_client",
    "AIConfig",
    "AIConfigurationException",
    "AIException",
    "AIRateLimitException",
    "AIServiceUnavailableException",
    "AITimeoutException",
    "ChatMessageDict",
    "ChatStreamEvent",
]
