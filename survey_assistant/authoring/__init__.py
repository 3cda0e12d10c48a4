# survey_assistant/authoring/__init__.py
"""Survey authoring core: schemas, adapter, stages and conversation orchestrator."""
