# survey_assistant/logging_config.py
"""
Stderr-only JSON logging configuration.

The MCP server speaks over stdio, so every log line goes to stderr.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

LOG_LEVEL_ENV = "SURVEY_ASSISTANT_LOG_LEVEL"


class JsonFormatter(logging.Formatter):
    """Formats log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            log_data["exc"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False)


def configure_logging(level: str | None = None) -> None:
    """
    Route all logging to stderr as JSON.

    Call before importing modules that log at import time. Existing root
    handlers are removed so nothing writes to stdout.

    Args:
        level: Log level name. Falls back to $SURVEY_ASSISTANT_LOG_LEVEL, then INFO.
    """
    level_name = (level or os.environ.get(LOG_LEVEL_ENV) or "INFO").upper()
    resolved = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(resolved)

    for logger_name in ["httpx", "fastmcp"]:
        logger = logging.getLogger(logger_name)
        logger.handlers.clear()
        logger.addHandler(handler)
        logger.setLevel(max(resolved, logging.WARNING))
        logger.propagate = False
