# survey_assistant/models/registry.py
"""
In-memory registry of live conversations.

Each conversation is owned by exactly one orchestrator; nothing is shared
between conversations.
"""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from survey_assistant.authoring.pipeline.orchestrator import ConversationOrchestrator

logger = logging.getLogger(__name__)


class ConversationRegistry:
    """Map of conversation id to its orchestrator."""

    def __init__(self) -> None:
        self._conversations: dict[str, "ConversationOrchestrator"] = {}
        logger.info("Initialized ConversationRegistry")

    async def add(self, orchestrator: "ConversationOrchestrator") -> None:
        """
        Raises:
            ValueError: If the conversation id is already registered
        """
        conversation_id = orchestrator.conversation.conversation_id
        if conversation_id in self._conversations:
            raise ValueError(f"Conversation {conversation_id} already exists")
        self._conversations[conversation_id] = orchestrator
        logger.info(f"Registered conversation {conversation_id}")

    async def get(self, conversation_id: str) -> "ConversationOrchestrator | None":
        return self._conversations.get(conversation_id)

    async def list_all(self) -> "list[ConversationOrchestrator]":
        """All conversations, newest first."""
        return sorted(
            self._conversations.values(),
            key=lambda o: o.conversation.created_at,
            reverse=True,
        )

    async def remove(self, conversation_id: str) -> bool:
        removed = self._conversations.pop(conversation_id, None) is not None
        if removed:
            logger.info(f"Removed conversation {conversation_id}")
        return removed
