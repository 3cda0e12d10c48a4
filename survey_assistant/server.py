# survey_assistant/server.py
"""
FastMCP server instance with tool registration.

CRITICAL: configure_logging() is called first to prevent stdout pollution.
All logging goes to stderr as JSON.
"""

# Configure logging FIRST before any other imports
from survey_assistant.logging_config import configure_logging

configure_logging()

# Now safe to import everything else
import logging

from fastmcp import FastMCP

from survey_assistant.config.loader import load_config
from survey_assistant.models.drafts import InMemoryDraftStore
from survey_assistant.models.registry import ConversationRegistry
from survey_assistant.tools.catalog import list_past_surveys as _list_past_surveys
from survey_assistant.tools.catalog import list_templates as _list_templates
from survey_assistant.tools.catalog import select_past_survey as _select_past_survey
from survey_assistant.tools.catalog import select_template as _select_template
from survey_assistant.tools.conversation import confirm_preview as _confirm_preview
from survey_assistant.tools.conversation import get_conversation as _get_conversation
from survey_assistant.tools.conversation import proceed as _proceed
from survey_assistant.tools.conversation import request_edit as _request_edit
from survey_assistant.tools.conversation import send_message as _send_message
from survey_assistant.tools.conversation import start_conversation as _start_conversation

logger = logging.getLogger(__name__)

# Create FastMCP instance
mcp = FastMCP("survey-assistant")

# Load configuration
_config = load_config()
logger.info(f"Loaded configuration: adapter={_config.adapter.kind}")

# Conversations and drafts live for the lifetime of the server process
_registry = ConversationRegistry()
_drafts = InMemoryDraftStore()


@mcp.tool()
async def start_conversation(message: str | None = None, attachments: list[str] | None = None) -> dict:
    """Start a survey-authoring conversation, optionally with the first request."""
    return await _start_conversation(_registry, _config, _drafts, message, attachments)


@mcp.tool()
async def send_message(conversation_id: str, message: str, attachments: list[str] | None = None) -> dict:
    """Send a chat message. While a follow-up question is open, the message is its answer."""
    return await _send_message(conversation_id, message, _registry, _config, attachments)


@mcp.tool()
async def proceed(conversation_id: str, keep_refining: bool = False) -> dict:
    """Answer the proposal: generate the preview now, or keep refining via chat."""
    return await _proceed(conversation_id, _registry, keep_refining)


@mcp.tool()
async def get_conversation(conversation_id: str) -> dict:
    """Get messages, follow-up prompt, preview and state of a conversation."""
    return await _get_conversation(conversation_id, _registry)


@mcp.tool()
async def list_templates(keyword: str | None = None, category: str | None = None) -> dict:
    """List survey templates, filtered by keyword and category."""
    return await _list_templates(keyword, category)


@mcp.tool()
async def list_past_surveys(
    keyword: str | None = None, category: str | None = None, method: str | None = None
) -> dict:
    """List past surveys, newest first, filtered by keyword, category and method."""
    return await _list_past_surveys(keyword, category, method)


@mcp.tool()
async def select_template(conversation_id: str, template_id: str) -> dict:
    """Preview a catalog template in the conversation."""
    return await _select_template(conversation_id, template_id, _registry)


@mcp.tool()
async def select_past_survey(conversation_id: str, survey_id: str) -> dict:
    """Preview a past survey in the conversation."""
    return await _select_past_survey(conversation_id, survey_id, _registry)


@mcp.tool()
async def request_edit(conversation_id: str, suggestion: str | None = None) -> dict:
    """Customize the current preview; optionally apply one of the offered suggestions."""
    return await _request_edit(conversation_id, _registry, suggestion)


@mcp.tool()
async def confirm_preview(conversation_id: str) -> dict:
    """Confirm the preview and store the hand-off draft for the survey editor."""
    return await _confirm_preview(conversation_id, _registry)
