# survey_assistant/models/__init__.py
"""
Data models for survey-assistant.

Provides Pydantic response models, conversation state and draft storage.
"""

from survey_assistant.models.conversation import (
    ChatEntry,
    Conversation,
    ConversationState,
    generate_conversation_id,
)
from survey_assistant.models.drafts import DraftStore, InMemoryDraftStore
from survey_assistant.models.registry import ConversationRegistry
from survey_assistant.models.responses import (
    ChatMessage,
    ConfirmResponse,
    ConversationSnapshot,
    ListPastSurveysResponse,
    ListTemplatesResponse,
    PastSurveySummary,
    TemplateSummary,
    TurnResponse,
)

__all__ = [
    # Response models
    "ChatMessage",
    "ConfirmResponse",
    "ConversationSnapshot",
    "ListPastSurveysResponse",
    "ListTemplatesResponse",
    "PastSurveySummary",
    "TemplateSummary",
    "TurnResponse",
    # Conversation state
    "ChatEntry",
    "Conversation",
    "ConversationRegistry",
    "ConversationState",
    "generate_conversation_id",
    # Drafts
    "DraftStore",
    "InMemoryDraftStore",
]
