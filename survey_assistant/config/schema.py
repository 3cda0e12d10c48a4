# survey_assistant/config/schema.py
"""
Pydantic configuration models for survey-assistant.

All models use extra="ignore" to allow unknown YAML keys without crashing.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class OllamaConfig(BaseModel):
    """Ollama server configuration."""

    model_config = ConfigDict(extra="ignore")

    base_url: str = Field(
        default="http://localhost:11434", description="Ollama API base URL"
    )
    model: str = Field(
        default="qwen2.5:14b-instruct",
        description="Ollama model used for survey drafting",
    )
    timeout: int = Field(default=120, description="Request timeout in seconds")


class LMStudioConfig(BaseModel):
    """LM Studio server configuration (OpenAI-compatible API)."""

    model_config = ConfigDict(extra="ignore")

    base_url: str = Field(
        default="http://localhost:1234/v1", description="LM Studio API base URL"
    )
    model: str = Field(default="local-model", description="Model identifier")
    timeout: int = Field(default=120, description="Request timeout in seconds")


class AdapterConfig(BaseModel):
    """Generation adapter selection.

    kind="none" runs every stage on local heuristics only. kind="mock" uses the
    canned in-process adapter, kind="llm" talks to the configured provider.
    """

    model_config = ConfigDict(extra="ignore")

    kind: Literal["none", "mock", "llm"] = Field(
        default="none", description="Which generation adapter backs the remote strategy"
    )
    provider: Literal["ollama", "lm_studio"] = Field(
        default="ollama", description="LLM backend used when kind='llm'"
    )
    call_timeout: float = Field(
        default=60.0,
        gt=0.0,
        description="Upper bound in seconds for one adapter call before falling back",
    )


class GenerationConfig(BaseModel):
    """Question generation defaults and soft limits."""

    model_config = ConfigDict(extra="ignore")

    default_screening_count: int = Field(default=3, ge=1, le=20)
    default_main_count: int = Field(default=5, ge=1, le=20)
    max_screening: int = Field(
        default=20, ge=1, description="Soft limit on screening questions"
    )
    max_main: int = Field(default=20, ge=1, description="Soft limit on main questions")
    max_depth: int = Field(
        default=2, ge=1, description="Maximum length of a branch-rule chain"
    )


class ConversationConfig(BaseModel):
    """Conversation handling settings."""

    model_config = ConfigDict(extra="ignore")

    max_message_length: int = Field(
        default=5000, description="User messages longer than this are truncated"
    )
    draft_key: str = Field(
        default="assistant_draft",
        description="Key under which a confirmed hand-off draft is stored",
    )


class SurveyAssistantConfig(BaseModel):
    """Root configuration model."""

    model_config = ConfigDict(extra="ignore")

    adapter: AdapterConfig = Field(default_factory=AdapterConfig)
    ollama: OllamaConfig = Field(default_factory=OllamaConfig)
    lm_studio: LMStudioConfig = Field(default_factory=LMStudioConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    conversation: ConversationConfig = Field(default_factory=ConversationConfig)
