# survey_assistant/models/conversation.py
"""
Conversation state owned by the orchestrator.

Internal models (not exposed over MCP). UI surfaces read them through
ConversationSnapshot.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Literal
from uuid import uuid4

from survey_assistant.authoring.preview import PreviewDocument
from survey_assistant.authoring.schemas import FollowUp, FollowUpQuestion, Requirements

logger = logging.getLogger(__name__)


class ConversationState(Enum):
    """Conversation lifecycle states."""

    IDLE = "idle"
    EXTRACTING = "extracting"
    FOLLOWING_UP = "following_up"
    PROPOSING = "proposing"
    PREVIEWING = "previewing"
    CONFIRMED = "confirmed"
    EDIT_REQUESTED = "edit_requested"


@dataclass
class ChatEntry:
    """One chat bubble."""

    id: str
    role: Literal["user", "assistant"]
    text: str
    attachments: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class Conversation:
    """
    All state of one conversation.

    `turn_seq` increases with every turn; a turn whose number is no longer
    current must not apply its results.
    """

    conversation_id: str
    state: ConversationState = ConversationState.IDLE
    messages: list[ChatEntry] = field(default_factory=list)
    requirements: Requirements | None = None
    follow_up: FollowUp | None = None
    follow_up_prompt: FollowUpQuestion | None = None
    preview: PreviewDocument | None = None
    previewed_requirements: Requirements | None = None
    missing_optional: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    draft: dict | None = None
    turn_seq: int = 0
    awaiting_response: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def add(self, role: Literal["user", "assistant"], text: str, attachments: list[str] | None = None) -> ChatEntry:
        entry = ChatEntry(
            id=f"m{len(self.messages) + 1}",
            role=role,
            text=text,
            attachments=list(attachments or []),
        )
        self.messages.append(entry)
        return entry

    def begin_turn(self) -> int:
        """Start a new turn and return its sequence number."""
        self.turn_seq += 1
        self.awaiting_response = True
        return self.turn_seq

    def is_current(self, seq: int) -> bool:
        return seq == self.turn_seq

    def end_turn(self, seq: int) -> None:
        # A stale turn must not clear the flag owned by the newer one
        if self.is_current(seq):
            self.awaiting_response = False

    def transition(self, state: ConversationState) -> None:
        if state is not self.state:
            logger.debug(f"Conversation {self.conversation_id}: {self.state.value} -> {state.value}")
            self.state = state


def generate_conversation_id() -> str:
    """
    Generate a unique conversation ID.

    Returns:
        12-character hex string (from UUID4)
    """
    return uuid4().hex[:12]
