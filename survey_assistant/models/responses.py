# survey_assistant/models/responses.py
"""
Pydantic response models for MCP tool outputs.

All tools return structured responses using these models for consistency.
"""

from typing import Any

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """One chat entry as seen by the UI."""

    id: str = Field(description="Message identifier, unique within the conversation")
    role: str = Field(description="user or assistant")
    text: str = Field(description="Message text")
    attachments: list[str] = Field(default_factory=list, description="Attached file names")


class ConversationSnapshot(BaseModel):
    """Everything the UI needs to render a conversation."""

    conversation_id: str = Field(description="Conversation identifier")
    state: str = Field(
        description="idle/extracting/following_up/proposing/previewing/confirmed/edit_requested"
    )
    messages: list[ChatMessage] = Field(default_factory=list)
    follow_up_prompt: dict[str, Any] | None = Field(
        default=None, description="The follow-up question awaiting an answer, if any"
    )
    preview: dict[str, Any] | None = Field(default=None, description="Current preview document, if any")
    missing_optional: list[str] = Field(
        default_factory=list, description="Labels of optional fields still empty"
    )
    suggestions: list[str] = Field(
        default_factory=list, description="One-click customization suggestions"
    )
    awaiting_response: bool = Field(default=False, description="Whether a turn is in flight")
    requirements: dict[str, Any] | None = Field(
        default=None, description="Current Requirements document (wire format)"
    )


class TurnResponse(BaseModel):
    """Response from tools that advance a conversation."""

    reply: str | None = Field(
        default=None, description="Assistant reply for this turn (None if the turn was superseded)"
    )
    conversation: ConversationSnapshot


class ConfirmResponse(BaseModel):
    """Response from confirm_preview tool."""

    conversation_id: str = Field(description="Conversation identifier")
    draft_key: str = Field(description="Key the hand-off draft was stored under")
    draft: dict[str, Any] = Field(description="The hand-off draft")
    next_steps: str = Field(
        default="Open the survey editor and load the draft by draft_key",
        description="What to do with the draft",
    )


class TemplateSummary(BaseModel):
    """Summary of one survey template."""

    template_id: str
    title: str
    category: str
    description: str
    features: list[str] = Field(default_factory=list)
    method: str
    question_count: int
    prompt: str = Field(description="Chat prompt that recreates the template")


class ListTemplatesResponse(BaseModel):
    """Response from list_templates tool."""

    templates: list[TemplateSummary]
    total: int


class PastSurveySummary(BaseModel):
    """Summary of one past survey."""

    survey_id: str
    title: str
    audience: str
    updated_at: str
    description: str
    method: str


class ListPastSurveysResponse(BaseModel):
    """Response from list_past_surveys tool."""

    surveys: list[PastSurveySummary]
    total: int
