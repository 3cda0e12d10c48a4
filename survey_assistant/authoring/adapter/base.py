# survey_assistant/authoring/adapter/base.py
"""
Generation adapter interface.

An adapter turns text into structure for the three documents. Callers
treat it as a black box that either returns a schema-valid document or
raises; they never see partial output.
"""

from abc import ABC, abstractmethod

from survey_assistant.authoring.schemas import FollowUp, QuestionSet, Requirements


class GenerationAdapter(ABC):
    """
    Replaceable text-to-structure backend.

    Every method returns a validated document or raises GenerationFailure
    (call errored or timed out) or SchemaViolation (output did not validate).
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Adapter identifier used in logs."""

    @abstractmethod
    async def extract_requirements(self, free_text: str) -> Requirements:
        """Extract a Requirements document from free text."""

    @abstractmethod
    async def generate_questions(self, requirements: Requirements) -> QuestionSet:
        """Generate a QuestionSet for a complete-enough Requirements document."""

    @abstractmethod
    async def generate_follow_ups(self, requirements: Requirements) -> FollowUp:
        """Propose follow-up questions for the gaps in a Requirements document."""
