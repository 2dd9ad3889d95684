"""
OpenAI-compatible chat client for device analysis and the assistant.
"""

import json
import logging
from typing import AsyncIterator, Iterable

from openai import AsyncOpenAI

from ophthalmotech.shared.ai.config import AIConfig, ai_config
from ophthalmotech.shared.ai.exceptions import (
    AIConfigurationException,
    AIException,
    AIRateLimitException,
    AIServiceUnavailableException,
    AITimeoutException,
)
from ophthalmotech.shared.ai.types import ChatMessageDict, ChatStreamEvent, DeviceData

logger = logging.getLogger(__name__)

DEVICE_ANALYSIS_PROMPT = """
You are an expert medical device analyst. Analyze the provided device data
and provide insights on:
1. Device health status
2. Maintenance recommendations
3. Performance metrics
4. Risk assessment
5. Compliance status

Provide clear, actionable recommendations for healthcare professionals.
"""

MAINTENANCE_PROMPT = """
You are a medical device maintenance expert. Based on the device fleet data,
provide:
1. Priority maintenance recommendations
2. Preventive care schedules
3. Risk mitigation strategies
4. Resource allocation suggestions

Focus on patient safety and operational efficiency.
"""

FILE_ANALYSIS_PROMPT = """
You are a medical device data analyst. Analyze uploaded files and extract:
1. Device specifications
2. Serial numbers and model information
3. Maintenance history
4. Compliance certifications
5. Performance data
6. Safety alerts or recalls

Structure the analysis in a clear, professional format suitable for medical
device management.
"""

ASSISTANT_PROMPT = """
You are OphthalmoTech AI Assistant, specialized in medical device management,
ophthalmology equipment, and healthcare operations.

You help with:
- Medical device troubleshooting
- Maintenance scheduling
- Compliance requirements
- Safety protocols
- Equipment specifications
- Regulatory guidance

Always prioritize patient safety and regulatory compliance in your responses.
"""


class OpenAIClient:
    """
    Wrapper around an OpenAI-compatible client with error classification.
    """

    def __init__(self, config: AIConfig | None = None) -> None:
        config = config or ai_config
        if config is None:
            raise AIConfigurationException("OpenAI configuration is required")
        self.config: AIConfig = config

        self.client = AsyncOpenAI(**self.config.to_openai_kwargs())  # type: ignore[arg-type]

    async def analyze_device_data(self, device_data: DeviceData) -> str:
        """
        Analyze a single device's data.

        Args:
            device_data: Arbitrary device record

        Returns:
            The analysis text

        Raises:
            AIException: If the completion fails
        """
        return await self._complete(
            [
                {"role": "system", "content": DEVICE_ANALYSIS_PROMPT},
                {
                    "role": "user",
                    "content": "Please analyze this medical device data: "
                    f"{json.dumps(device_data, indent=2, default=str)}",
                },
            ],
            max_tokens=self.config.device_analysis_max_tokens,
            temperature=self.config.device_analysis_temperature,
            fallback="No analysis available",
        )

    async def generate_maintenance_recommendations(
        self, devices: list[DeviceData]
    ) -> str:
        """Recommend maintenance priorities for a device fleet."""
        return await self._complete(
            [
                {"role": "system", "content": MAINTENANCE_PROMPT},
                {
                    "role": "user",
                    "content": "Analyze this device fleet and provide maintenance "
                    f"recommendations: {json.dumps(devices, indent=2, default=str)}",
                },
            ],
            max_tokens=self.config.maintenance_max_tokens,
            temperature=self.config.maintenance_temperature,
            fallback="No recommendations available",
        )

    async def analyze_uploaded_file(self, file_content: str, file_name: str) -> str:
        """Extract device information from an uploaded document's text."""
        return await self._complete(
            [
                {"role": "system", "content": FILE_ANALYSIS_PROMPT},
                {
                    "role": "user",
                    "content": f'Analyze this uploaded file "{file_name}":\n\n'
                    f"{file_content}",
                },
            ],
            max_tokens=self.config.file_analysis_max_tokens,
            temperature=self.config.file_analysis_temperature,
            fallback="No analysis available",
        )

    async def generate_response(self, prompt: str) -> str:
        """Answer a single prompt without the assistant persona."""
        return await self._complete(
            [{"role": "user", "content": prompt}],
            max_tokens=self.config.chat_max_tokens,
            temperature=self.config.chat_temperature,
            fallback="No response available",
        )

    async def chat_stream(
        self, messages: Iterable[ChatMessageDict]
    ) -> AsyncIterator[str]:
        """
        Stream the assistant's reply to a conversation.

        Yields:
            Non-empty content fragments in order

        Raises:
            AIException: If the stream cannot be started or breaks off
        """
        conversation: list[ChatMessageDict] = [
            {"role": "system", "content": ASSISTANT_PROMPT},
            *messages,
        ]
        try:
            stream = await self.client.chat.completions.create(
                model=self.config.model,
                messages=conversation,  # type: ignore[arg-type]
                stream=True,
                max_tokens=self.config.chat_max_tokens,
                temperature=self.config.chat_temperature,
            )
        except Exception as e:
            logger.error("Chat stream error: %s", e)
            raise self._classify_error(e)

        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content or ""
                if content:
                    yield content
        except Exception as e:
            logger.error("Chat stream interrupted: %s", e)
            raise self._classify_error(e)
        finally:
            await stream.close()

    async def chat_events(
        self, messages: Iterable[ChatMessageDict]
    ) -> AsyncIterator[ChatStreamEvent]:
        """
        Stream a reply as events with explicit completion and error.

        Errors are reported as a final "error" event instead of being raised.
        Closing the iterator early stops the upstream stream.
        """
        fragments = self.chat_stream(messages)
        try:
            async for content in fragments:
                yield ChatStreamEvent(type="delta", content=content)
        except AIException as e:
            yield ChatStreamEvent(type="error", error=str(e))
            return
        finally:
            await fragments.aclose()  # type: ignore[attr-defined]
        yield ChatStreamEvent(type="done")

    async def _complete(
        self,
        messages: list[ChatMessageDict],
        max_tokens: int,
        temperature: float,
        fallback: str,
    ) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.config.model,
                messages=messages,  # type: ignore[arg-type]
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except Exception as e:
            logger.error("AI completion error: %s", e)
            raise self._classify_error(e)

        if not response.choices:
            return fallback
        return response.choices[0].message.content or fallback

    def _classify_error(self, error: Exception) -> AIException:
        """Map provider errors onto the AI exception hierarchy."""
        if isinstance(error, AIException):
            return error

        error_message = str(error).lower()

        if "rate limit" in error_message or "429" in error_message:
            return AIRateLimitException(f"Rate limit exceeded: {error}")
        elif "timeout" in error_message or "timed out" in error_message:
            return AITimeoutException(f"Request timeout: {error}")
        elif "service unavailable" in error_message or "502" in error_message:
            return AIServiceUnavailableException(f"Service unavailable: {error}")
        else:
            return AIException(f"OpenAI API error: {error}")


# Global client instance
openai_client = OpenAIClient() if ai_config else None
