# survey_assistant/authoring/schemas/follow_up.py
"""Schema for the FollowUp (depth) document: missing fields and their questions."""

from typing import Any, Literal

from pydantic import Field, field_validator, model_validator

from .common import PRIORITY_RANK, Meta, Priority, WireModel
from .requirements import normalize_path

ExpectedFormat = Literal["text", "enum", "multi", "number", "scale"]
NextAction = Literal["confirm", "regenerate", "proceed"]


class FollowUpQuestion(WireModel):
    """A question that fills exactly one Requirements field."""

    id: str = Field(..., min_length=1)
    target_field: str = Field(..., min_length=1)
    path: str = Field(..., description="Dotted address into the Requirements document")
    question_text: str = Field(..., min_length=1)
    expected_format: ExpectedFormat = Field(default="text")
    options: list[str] = Field(default_factory=list)
    placeholder: str | None = Field(default=None)
    helper_text: str | None = Field(default=None)
    validation: dict[str, Any] = Field(default_factory=dict)
    example_answers: list[str] = Field(default_factory=list)
    priority: Priority = Field(default="medium")
    depends_on: list[str] = Field(default_factory=list)

    @field_validator("path")
    @classmethod
    def _normalize(cls, v: str) -> str:
        return normalize_path(v)


class Scope(WireModel):
    thread_id: str | None = Field(default=None)
    message_id: str | None = Field(default=None)


class FollowUp(WireModel):
    """Ordered follow-up queue for one Requirements document.

    Questions are ordered by priority (high, medium, low), ties broken by
    the order of their field in missing_fields.
    """

    meta: Meta = Field(default_factory=Meta)
    scope: Scope | None = Field(default=None)
    missing_fields: list[str] = Field(default_factory=list)
    deferred_fields: list[str] = Field(default_factory=list)
    additional_questions: list[FollowUpQuestion] = Field(default_factory=list)
    field_mapping: dict[str, str] = Field(default_factory=dict)
    display_text: str = Field(default="")
    next_action: NextAction = Field(default="proceed")

    @field_validator("missing_fields", "deferred_fields")
    @classmethod
    def _normalize_fields(cls, v: list[str]) -> list[str]:
        return [normalize_path(p) for p in v]

    @field_validator("field_mapping")
    @classmethod
    def _normalize_mapping(cls, v: dict[str, str]) -> dict[str, str]:
        return {normalize_path(path): qid for path, qid in v.items()}

    @model_validator(mode="after")
    def _check_queue(self) -> "FollowUp":
        ids = [q.id for q in self.additional_questions]
        if len(ids) != len(set(ids)):
            raise ValueError("follow-up question ids must be unique")

        known = set(ids)
        for q in self.additional_questions:
            unknown = [d for d in q.depends_on if d not in known]
            if unknown:
                raise ValueError(f"question {q.id} depends on unknown ids {unknown}")
        for path, qid in self.field_mapping.items():
            if qid not in known:
                raise ValueError(f"fieldMapping[{path}] points at unknown question '{qid}'")

        order = {path: i for i, path in enumerate(self.missing_fields)}
        keys = [
            (PRIORITY_RANK[q.priority], order.get(q.path, len(order)))
            for q in self.additional_questions
        ]
        if keys != sorted(keys):
            raise ValueError("additionalQuestions must be in priority order, then missing-field order")

        covered = {q.path for q in self.additional_questions} | set(self.deferred_fields)
        uncovered = [p for p in self.missing_fields if p not in covered]
        if uncovered:
            raise ValueError(f"missing fields without a question or deferral: {uncovered}")
        return self

    @property
    def has_questions(self) -> bool:
        return bool(self.additional_questions)
