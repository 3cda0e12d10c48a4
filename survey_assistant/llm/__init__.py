# survey_assistant/llm/__init__.py
"""LLM client layer (Ollama and LM Studio)."""

from .client import OllamaClient
from .factory import create_llm_client
from .lm_studio import LMStudioClient

__all__ = ["LMStudioClient", "OllamaClient", "create_llm_client"]
