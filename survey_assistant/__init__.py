# survey_assistant/__init__.py
"""
survey-assistant: conversational survey authoring.

Turns a free-text survey request into structured requirements, asks for
missing required fields one at a time, and generates a previewable
screening or main questionnaire.
"""

__version__ = "0.1.0"
