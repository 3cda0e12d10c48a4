# survey_assistant/tools/__init__.py
"""Tool implementations shared by the MCP server and the CLI."""
