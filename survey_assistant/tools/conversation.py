# survey_assistant/tools/conversation.py
"""
Conversation tool implementations.

Each tool validates its input, drives the conversation's orchestrator and
returns a response model as dict. Caller mistakes become ToolError.
"""

import logging

from fastmcp.exceptions import ToolError

from survey_assistant.authoring.errors import ConversationStateError
from survey_assistant.authoring.pipeline.orchestrator import EDIT_SUGGESTIONS, ConversationOrchestrator
from survey_assistant.config.schema import SurveyAssistantConfig
from survey_assistant.models.drafts import DraftStore
from survey_assistant.models.registry import ConversationRegistry
from survey_assistant.models.responses import ConfirmResponse, TurnResponse
from survey_assistant.validation.sanitize import (
    sanitize_attachments,
    sanitize_conversation_id,
    sanitize_message,
)

logger = logging.getLogger(__name__)


async def get_orchestrator(conversation_id: str, registry: ConversationRegistry) -> ConversationOrchestrator:
    """
    Raises:
        ToolError: If the ID is malformed or unknown
    """
    conversation_id = sanitize_conversation_id(conversation_id)
    orchestrator = await registry.get(conversation_id)
    if orchestrator is None:
        raise ToolError(f"Conversation not found: {conversation_id}")
    return orchestrator


def _turn(orchestrator: ConversationOrchestrator, reply: str | None) -> dict:
    return TurnResponse(reply=reply, conversation=orchestrator.snapshot()).model_dump()


async def start_conversation(
    registry: ConversationRegistry,
    config: SurveyAssistantConfig,
    draft_store: DraftStore | None = None,
    message: str | None = None,
    attachments: list[str] | None = None,
) -> dict:
    """
    Open a new conversation, optionally with its first message.

    Returns:
        TurnResponse as dict
    """
    orchestrator = ConversationOrchestrator.from_config(config, draft_store=draft_store)
    await registry.add(orchestrator)
    logger.info(f"Started conversation {orchestrator.conversation.conversation_id}")

    reply = None
    if message is not None:
        text = sanitize_message(message, config.conversation.max_message_length)
        reply = await orchestrator.submit_user_message(text, sanitize_attachments(attachments))
    return _turn(orchestrator, reply)


async def send_message(
    conversation_id: str,
    message: str,
    registry: ConversationRegistry,
    config: SurveyAssistantConfig,
    attachments: list[str] | None = None,
) -> dict:
    """
    Send a chat message (or a follow-up answer) to a conversation.

    Raises:
        ToolError: If the input is invalid or the conversation is confirmed
    """
    orchestrator = await get_orchestrator(conversation_id, registry)
    text = sanitize_message(message, config.conversation.max_message_length)
    try:
        reply = await orchestrator.submit_user_message(text, sanitize_attachments(attachments))
    except ConversationStateError as e:
        raise ToolError(str(e))
    return _turn(orchestrator, reply)


async def proceed(conversation_id: str, registry: ConversationRegistry, keep_refining: bool = False) -> dict:
    """Answer the proposal: preview as-is, or keep refining through chat."""
    orchestrator = await get_orchestrator(conversation_id, registry)
    try:
        if keep_refining:
            reply = await orchestrator.keep_refining()
        else:
            reply = await orchestrator.proceed_to_preview()
    except ConversationStateError as e:
        raise ToolError(str(e))
    return _turn(orchestrator, reply)


async def get_conversation(conversation_id: str, registry: ConversationRegistry) -> dict:
    orchestrator = await get_orchestrator(conversation_id, registry)
    return orchestrator.snapshot().model_dump()


async def request_edit(
    conversation_id: str, registry: ConversationRegistry, suggestion: str | None = None
) -> dict:
    """
    Reopen the current preview for editing, optionally applying one suggestion.

    Raises:
        ToolError: If there is no preview or the suggestion is unknown
    """
    orchestrator = await get_orchestrator(conversation_id, registry)
    if suggestion is not None and suggestion not in EDIT_SUGGESTIONS:
        raise ToolError(f"Unknown suggestion '{suggestion}'. Choose one of: {', '.join(EDIT_SUGGESTIONS)}")
    try:
        reply = await orchestrator.request_edit()
        if suggestion is not None:
            reply = await orchestrator.choose_suggestion(suggestion)
    except ConversationStateError as e:
        raise ToolError(str(e))
    return _turn(orchestrator, reply)


async def confirm_preview(conversation_id: str, registry: ConversationRegistry) -> dict:
    """
    Confirm the current preview and store the hand-off draft.

    Returns:
        ConfirmResponse as dict
    """
    orchestrator = await get_orchestrator(conversation_id, registry)
    try:
        draft = await orchestrator.confirm_preview()
    except ConversationStateError as e:
        raise ToolError(str(e))
    return ConfirmResponse(
        conversation_id=orchestrator.conversation.conversation_id,
        draft_key=orchestrator.config.conversation.draft_key,
        draft=draft.to_payload(),
    ).model_dump()
