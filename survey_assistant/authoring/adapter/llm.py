# survey_assistant/authoring/adapter/llm.py
"""Generation adapter backed by a local LLM (Ollama or LM Studio)."""

import asyncio
import json
import logging
from typing import Any

from survey_assistant.authoring.errors import GenerationFailure
from survey_assistant.authoring.prompts import load_prompt
from survey_assistant.authoring.schemas import FollowUp, QuestionSet, Requirements
from survey_assistant.authoring.validation import DocumentShape, serialize, validate

from .base import GenerationAdapter
from .parsing import extract_json

logger = logging.getLogger(__name__)


class LLMGenerationAdapter(GenerationAdapter):
    """
    Adapter that prompts an LLM for each document and validates the reply.

    A single call is made per operation. Transport errors, timeouts and
    unparseable replies raise GenerationFailure; a reply that parses but
    does not match the schema raises SchemaViolation.
    """

    def __init__(self, client: Any, call_timeout: float = 60.0):
        """
        Args:
            client: OllamaClient or LMStudioClient (anything with async generate())
            call_timeout: Seconds to wait for one reply
        """
        self._client = client
        self._call_timeout = call_timeout

    @property
    def name(self) -> str:
        return f"llm:{getattr(self._client, 'model', 'unknown')}"

    async def extract_requirements(self, free_text: str) -> Requirements:
        return await self._call(
            "extract_requirements",
            DocumentShape.REQUIREMENTS,
            load_prompt("extract_requirements").format(free_text=free_text),
        )

    async def generate_questions(self, requirements: Requirements) -> QuestionSet:
        return await self._call(
            "generate_questions",
            DocumentShape.QUESTION_SET,
            load_prompt("generate_questions").format(requirements=_as_json(requirements)),
        )

    async def generate_follow_ups(self, requirements: Requirements) -> FollowUp:
        return await self._call(
            "generate_follow_ups",
            DocumentShape.FOLLOW_UP,
            load_prompt("generate_follow_ups").format(requirements=_as_json(requirements)),
        )

    async def _call(self, operation: str, shape: DocumentShape, prompt: str) -> Any:
        messages = [
            {"role": "system", "content": load_prompt("system")},
            {"role": "user", "content": prompt},
        ]
        logger.info(f"{self.name}: {operation} ({len(prompt)} prompt chars)")

        try:
            raw_output = await asyncio.wait_for(
                self._client.generate(messages=messages), timeout=self._call_timeout
            )
        except asyncio.TimeoutError as e:
            raise GenerationFailure(operation, f"timed out after {self._call_timeout}s") from e
        except Exception as e:
            raise GenerationFailure(operation, f"{type(e).__name__}: {e}") from e

        try:
            data = extract_json(raw_output)
        except ValueError as e:
            raise GenerationFailure(operation, f"malformed output: {e}") from e

        return validate(data, shape)


def _as_json(document: Any) -> str:
    return json.dumps(serialize(document), ensure_ascii=False, indent=2)
