# survey_assistant/authoring/schemas/question_set.py
"""Schema for the QuestionSet document (screening + main questions)."""

import re
from typing import Any, Literal

from pydantic import ConfigDict, Field, field_validator, model_validator

from .common import Meta, WireModel

END = "END"

QuestionFormat = Literal["single-select", "multi-select", "free-text", "numeric", "5-point-scale"]
InternalType = Literal["SA", "MA", "FA", "NU", "Scale"]

INTERNAL_TYPE_BY_FORMAT: dict[str, str] = {
    "single-select": "SA",
    "multi-select": "MA",
    "free-text": "FA",
    "numeric": "NU",
    "5-point-scale": "Scale",
}


class FrozenWireModel(WireModel):
    model_config = ConfigDict(frozen=True)


class Choice(FrozenWireModel):
    code: str = Field(..., min_length=1)
    label: str = Field(..., min_length=1)

    @field_validator("code", mode="before")
    @classmethod
    def _code_as_text(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


class Scale(FrozenWireModel):
    min: int = Field(default=1)
    max: int = Field(default=5)
    labels: list[str] = Field(..., min_length=2)

    @model_validator(mode="after")
    def _check_bounds(self) -> "Scale":
        if self.min >= self.max:
            raise ValueError("scale min must be below max")
        return self


class Question(FrozenWireModel):
    """One survey question."""

    id: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1)
    format: QuestionFormat
    internal_type: InternalType | None = Field(default=None)
    choices: list[Choice] = Field(default_factory=list)
    scale: Scale | None = Field(default=None)
    analysis_purpose: str | None = Field(default=None)

    @model_validator(mode="before")
    @classmethod
    def _default_internal_type(cls, data: Any) -> Any:
        if isinstance(data, dict) and not (data.get("internalType") or data.get("internal_type")):
            fmt = data.get("format")
            if fmt in INTERNAL_TYPE_BY_FORMAT:
                data = {**data, "internalType": INTERNAL_TYPE_BY_FORMAT[fmt]}
        return data

    @model_validator(mode="after")
    def _check_question(self) -> "Question":
        if self.id == END:
            raise ValueError(f"'{END}' is reserved and cannot be a question id")
        codes = [c.code for c in self.choices]
        if len(codes) != len(set(codes)):
            raise ValueError(f"choice codes must be unique within question {self.id}")
        return self


class BranchCondition(FrozenWireModel):
    equals: str | None = Field(default=None)
    code: str | None = Field(default=None)
    regex: str | None = Field(default=None)

    @field_validator("code", "equals", mode="before")
    @classmethod
    def _as_text(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @field_validator("regex")
    @classmethod
    def _regex_compiles(cls, v: str | None) -> str | None:
        if v is not None:
            try:
                re.compile(v)
            except re.error as e:
                raise ValueError(f"invalid regex: {e}") from e
        return v


class BranchRule(FrozenWireModel):
    """Route from a question to the next question id or END."""

    from_: str = Field(..., alias="from", min_length=1)
    when: BranchCondition | None = Field(default=None)
    go_to: str | None = Field(default=None)
    else_: str | None = Field(default=None, alias="else")

    @model_validator(mode="after")
    def _check_targets(self) -> "BranchRule":
        if self.go_to is None and self.else_ is None:
            raise ValueError("a branch rule needs goTo or else")
        if self.when is not None and self.go_to is None:
            raise ValueError("a conditional branch rule needs goTo")
        return self


class MethodDecomposition(FrozenWireModel):
    screening: str = Field(default="")
    main: str = Field(default="")


class Constraints(FrozenWireModel):
    max_screening: int | None = Field(default=None, ge=0)
    max_main: int | None = Field(default=None, ge=0)
    max_depth: int | None = Field(default=None, ge=1)


class QuestionSet(FrozenWireModel):
    """Generated questionnaire. Never patched; edits produce a new one."""

    meta: Meta = Field(default_factory=Meta)
    method_decomposition: MethodDecomposition = Field(default_factory=MethodDecomposition)
    screening_questions: list[Question] = Field(default_factory=list)
    main_questions: list[Question] = Field(default_factory=list)
    question_rationale: dict[str, str] = Field(default_factory=dict)
    branch_rules: list[BranchRule] = Field(default_factory=list)
    constraints: Constraints = Field(default_factory=Constraints)

    @field_validator("question_rationale", mode="before")
    @classmethod
    def _flatten_rationale(cls, v: Any) -> Any:
        # {"Q1": {"目的": "..."}} is flattened into a single string
        if isinstance(v, dict):
            return {
                key: " / ".join(str(x) for x in val.values()) if isinstance(val, dict) else val
                for key, val in v.items()
            }
        return v

    @model_validator(mode="after")
    def _check_set(self) -> "QuestionSet":
        ids = self.question_ids
        if len(ids) != len(set(ids)):
            raise ValueError("question ids must be unique across screening and main questions")
        limits = self.constraints
        if limits.max_screening is not None and len(self.screening_questions) > limits.max_screening:
            raise ValueError(
                f"{len(self.screening_questions)} screening questions exceed maxScreening={limits.max_screening}"
            )
        if limits.max_main is not None and len(self.main_questions) > limits.max_main:
            raise ValueError(
                f"{len(self.main_questions)} main questions exceed maxMain={limits.max_main}"
            )
        return self

    @property
    def questions(self) -> list[Question]:
        return [*self.screening_questions, *self.main_questions]

    @property
    def question_ids(self) -> list[str]:
        return [q.id for q in self.questions]
