# survey_assistant/llm/client.py
"""Ollama client with health checks and streaming JSON generation."""

import logging

import httpx
from ollama import AsyncClient

logger = logging.getLogger(__name__)


class OllamaClient:
    """
    Async Ollama client.

    Generation is a single streamed chat call. Callers own retry and
    fallback decisions; this client never retries on its own.
    """

    def __init__(self, base_url: str, model: str, timeout: int = 120):
        """
        Initialize Ollama client.

        Args:
            base_url: Ollama API base URL (e.g., "http://localhost:11434")
            model: Model name (e.g., "qwen2.5:14b-instruct")
            timeout: Request timeout in seconds
        """
        self.base_url = base_url
        self.model = model
        self.client = AsyncClient(host=base_url, timeout=httpx.Timeout(timeout))

    async def health_check(self) -> bool:
        """
        Check that the Ollama server answers.

        Returns:
            True if the server is reachable, False otherwise. A missing model
            is only logged since Ollama can pull it on demand.
        """
        try:
            models_response = await self.client.list()
            available = [m.get("model") or m.get("name", "") for m in models_response.get("models", [])]
            model_base = self.model.split(":")[0]
            if not any(model_base in name for name in available):
                logger.warning(f"Model {self.model} not found on {self.base_url}")
            return True
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return False

    async def generate(self, messages: list[dict], json_mode: bool = True) -> str:
        """
        Generate a response with streaming.

        Args:
            messages: Chat messages in format [{"role": "user", "content": "..."}]
            json_mode: Ask Ollama to constrain output to JSON

        Returns:
            Full accumulated response text.
        """
        logger.info(f"Generating with model={self.model}, messages={len(messages)}")

        accumulated = []
        async for chunk in await self.client.chat(
            model=self.model,
            messages=messages,
            stream=True,
            format="json" if json_mode else "",
        ):
            if content := chunk.get("message", {}).get("content"):
                accumulated.append(content)

        result = "".join(accumulated)
        logger.info(f"Generated {len(result)} chars")
        return result
