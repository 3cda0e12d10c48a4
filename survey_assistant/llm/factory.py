# survey_assistant/llm/factory.py
"""Factory for creating the configured LLM client."""

from survey_assistant.config.schema import SurveyAssistantConfig

from .client import OllamaClient
from .lm_studio import LMStudioClient


def create_llm_client(config: SurveyAssistantConfig) -> OllamaClient | LMStudioClient:
    """
    Create the LLM client named by config.adapter.provider.

    Returns:
        OllamaClient for provider="ollama", LMStudioClient for provider="lm_studio"
    """
    if config.adapter.provider == "lm_studio":
        return LMStudioClient(
            base_url=config.lm_studio.base_url,
            model=config.lm_studio.model,
            timeout=config.lm_studio.timeout,
        )
    return OllamaClient(
        base_url=config.ollama.base_url,
        model=config.ollama.model,
        timeout=config.ollama.timeout,
    )
