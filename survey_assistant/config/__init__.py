# survey_assistant/config/__init__.py
"""Configuration management for survey-assistant."""

from .loader import get_config_path, load_config
from .schema import (
    AdapterConfig,
    ConversationConfig,
    GenerationConfig,
    LMStudioConfig,
    OllamaConfig,
    SurveyAssistantConfig,
)

__all__ = [
    "AdapterConfig",
    "ConversationConfig",
    "GenerationConfig",
    "LMStudioConfig",
    "OllamaConfig",
    "SurveyAssistantConfig",
    "get_config_path",
    "load_config",
]
