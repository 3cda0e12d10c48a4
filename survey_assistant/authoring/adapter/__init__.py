# survey_assistant/authoring/adapter/__init__.py
"""Generation adapters: the LLM-backed one and the canned mock."""

from .base import GenerationAdapter
from .llm import LLMGenerationAdapter
from .mock import MockGenerationAdapter
from .parsing import extract_json

__all__ = [
    "GenerationAdapter",
    "LLMGenerationAdapter",
    "MockGenerationAdapter",
    "extract_json",
]
