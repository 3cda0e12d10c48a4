# survey_assistant/llm/lm_studio.py
"""LM Studio client using the OpenAI-compatible API."""

import logging

import httpx
from openai import AsyncOpenAI

logger = logging.getLogger(__name__)


class LMStudioClient:
    """
    Async LM Studio client.

    LM Studio exposes an OpenAI-compatible endpoint at http://localhost:1234/v1.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:1234/v1",
        model: str = "local-model",
        timeout: int = 120,
    ):
        self.base_url = base_url
        self.model = model
        self._client = AsyncOpenAI(base_url=base_url, api_key="lm-studio", timeout=timeout)

    async def health_check(self) -> bool:
        """Return True if the /models endpoint answers with 200."""
        try:
            async with httpx.AsyncClient(timeout=5.0) as http:
                response = await http.get(f"{self.base_url}/models")
            return response.status_code == 200
        except Exception as e:
            logger.error(f"LM Studio health check failed: {e}")
            return False

    async def generate(self, messages: list[dict], json_mode: bool = True) -> str:
        """
        Generate a streaming response from LM Studio.

        json_mode is accepted for interface parity with OllamaClient; the JSON
        shape is enforced by the prompt and validated by the caller.
        """
        logger.info(f"LMStudio.generate: model={self.model}, messages={len(messages)}")

        accumulated = []
        stream = await self._client.chat.completions.create(
            model=self.model,
            messages=messages,
            stream=True,
        )
        async for chunk in stream:
            delta = chunk.choices[0].delta if chunk.choices else None
            if delta and delta.content:
                accumulated.append(delta.content)

        result = "".join(accumulated)
        logger.info(f"LMStudio.generate: {len(result)} chars")
        return result
