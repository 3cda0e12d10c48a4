# survey_assistant/validation/sanitize.py
"""
Input sanitization and validation utilities.

Every function raises fastmcp's ToolError so tool callers get a clean
message instead of a traceback.
"""

import logging
import re
from pathlib import PurePath

from fastmcp.exceptions import ToolError

logger = logging.getLogger(__name__)

CONVERSATION_ID_RE = re.compile(r"^[a-f0-9]{12}$")
MAX_ATTACHMENTS = 10


def sanitize_message(text: str, max_length: int = 5000) -> str:
    """
    Sanitize a chat message.

    Strips whitespace and validates non-empty.
    Truncates to max_length if needed.

    Raises:
        ToolError: If the message is empty after stripping
    """
    cleaned = (text or "").strip()

    if not cleaned:
        raise ToolError("Message cannot be empty")

    if len(cleaned) > max_length:
        logger.warning(f"Message truncated from {len(cleaned)} to {max_length} characters")
        cleaned = cleaned[:max_length]

    return cleaned


def sanitize_conversation_id(conversation_id: str) -> str:
    """
    Conversation IDs are 12 lowercase hex characters.

    Raises:
        ToolError: If the ID format is invalid
    """
    cleaned = (conversation_id or "").strip()
    if not CONVERSATION_ID_RE.match(cleaned):
        raise ToolError(f"Invalid conversation ID '{conversation_id}': must be 12 hex characters")
    return cleaned


def sanitize_attachments(attachments: list[str] | None) -> list[str]:
    """
    Reduce attachments to bare file names.

    Attachments are recorded, never opened, so only the name is kept.

    Raises:
        ToolError: If there are too many attachments
    """
    if not attachments:
        return []
    if len(attachments) > MAX_ATTACHMENTS:
        raise ToolError(f"At most {MAX_ATTACHMENTS} attachments are allowed, got {len(attachments)}")
    names = [PurePath(a.strip()).name for a in attachments if a and a.strip()]
    return [n for n in names if n]


def sanitize_keyword(keyword: str | None) -> str | None:
    if keyword is None:
        return None
    cleaned = keyword.strip()
    return cleaned[:100] or None
