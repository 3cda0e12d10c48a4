# survey_assistant/__main__.py
"""
Entry point for the survey-assistant MCP server.

CRITICAL: Server imports configure_logging() first to prevent stdout pollution.
"""

import asyncio
import logging

# Import server (which configures logging before anything else)
from survey_assistant.server import mcp

logger = logging.getLogger(__name__)


async def main() -> None:
    """Run the MCP server via stdio transport."""
    logger.info("Starting MCP server on stdio transport")
    await mcp.run_stdio_async()


if __name__ == "__main__":
    asyncio.run(main())
