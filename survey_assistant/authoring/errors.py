# survey_assistant/authoring/errors.py
"""Error taxonomy for the authoring pipeline.

A missing required field is not an error; it is the normal state that
drives the follow-up loop.
"""


class SurveyAssistantError(Exception):
    """Base class for all authoring errors."""


class SchemaViolation(SurveyAssistantError):
    """A document failed validation at a stage boundary.

    Attributes:
        path: Dotted path of the offending field ("" for the document root)
        expected: Short description of what was expected there
    """

    def __init__(self, path: str, expected: str, message: str | None = None):
        self.path = path
        self.expected = expected
        detail = message or f"expected {expected}"
        super().__init__(f"{path or '<root>'}: {detail}")


class ReferentialIntegrityError(SchemaViolation):
    """A branch rule references a question id that does not exist."""

    def __init__(self, path: str, reference: str, message: str | None = None):
        self.reference = reference
        super().__init__(
            path,
            "an existing question id or END",
            message or f"unknown question id '{reference}'",
        )


class GenerationFailure(SurveyAssistantError):
    """A generation adapter call errored, timed out, or returned unusable output."""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed: {reason}")


class ConversationStateError(SurveyAssistantError):
    """An operation was requested in a conversation state that does not allow it."""

    def __init__(self, operation: str, state: str):
        self.operation = operation
        self.state = state
        super().__init__(f"Cannot {operation} while conversation is {state}")
