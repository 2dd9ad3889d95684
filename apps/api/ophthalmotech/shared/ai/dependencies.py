from ophthalmotech.shared.ai import client as ai_client_module
from ophthalmotech.shared.ai.client import OpenAIClient
from ophthalmotech.shared.exceptions import ServiceNotConfiguredError


def get_ai_client() -> OpenAIClient:
    """AI client dependency; 503 when no API key is configured."""
    if ai_client_module.openai_client is None:
        raise ServiceNotConfiguredError("AI assistant")
    return ai_client_module.openai_client
