# survey_assistant/validation/__init__.py
"""Input sanitization for tool and CLI callers."""

from survey_assistant.validation.sanitize import (
    sanitize_attachments,
    sanitize_conversation_id,
    sanitize_keyword,
    sanitize_message,
)

__all__ = [
    "sanitize_attachments",
    "sanitize_conversation_id",
    "sanitize_keyword",
    "sanitize_message",
]
