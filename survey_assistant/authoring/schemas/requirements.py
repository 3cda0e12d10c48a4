# survey_assistant/authoring/schemas/requirements.py
"""Schema for the Requirements document (structured survey brief)."""

from pydantic import Field
from pydantic.alias_generators import to_snake

from survey_assistant.authoring.errors import SchemaViolation

from .common import FieldValue, Meta, Priority, WireModel

REQUIRED_FIELDS: tuple[str, ...] = (
    "title",
    "purpose",
    "target_audience",
    "analysis_audience",
)

OPTIONAL_FIELDS: tuple[str, ...] = (
    "contact_target",
    "category_type",
    "usage_style",
    "selection_reason",
    "question_type",
    "answer_format",
    "question_structure",
    "branch_condition",
    "analysis_perspective",
    "method",
    "question_count",
)

FIELD_LABELS: dict[str, str] = {
    "title": "調査タイトル",
    "purpose": "調査目的",
    "target_audience": "調査対象者条件",
    "analysis_audience": "分析対象者条件",
    "contact_target": "接触対象",
    "category_type": "カテゴリ種類",
    "usage_style": "利用スタイル",
    "selection_reason": "選定理由",
    "question_type": "設問タイプ",
    "answer_format": "回答形式",
    "question_structure": "設問構成",
    "branch_condition": "分岐条件",
    "analysis_perspective": "分析視点",
    "method": "調査手法",
    "question_count": "設問数",
}


class RequiredFields(WireModel):
    """The four fields every survey brief must eventually fill."""

    title: FieldValue = Field(..., description="Survey title / theme")
    purpose: FieldValue = Field(..., description="What the survey should find out")
    target_audience: FieldValue = Field(..., description="Who is surveyed")
    analysis_audience: FieldValue = Field(..., description="Whose answers are analysed")


class CompletionPolicy(WireModel):
    """Declared handling of empty vs. inferable fields. Documentation only."""

    unfilled: str = Field(default="空欄のまま残し、ユーザーに確認する")
    inferable: str = Field(default="推定した値は source=inferred として記録する")
    notes: list[str] = Field(default_factory=list)


class ConfirmationQuestion(WireModel):
    """A follow-up question the extractor itself proposes."""

    id: str
    target_field: str = Field(default="")
    question: str
    rationale: str = Field(default="")
    example_answers: list[str] = Field(default_factory=list)
    priority: Priority = Field(default="medium")


class Requirements(WireModel):
    """Structured survey brief extracted from free text.

    Created per turn, updated in place by follow-up answers, and replaced
    (via merge) when new input is extracted.
    """

    meta: Meta = Field(default_factory=Meta)
    required: RequiredFields
    optional: dict[str, FieldValue] = Field(default_factory=dict)
    completion_policy: CompletionPolicy = Field(default_factory=CompletionPolicy)
    confirmation_questions: list[ConfirmationQuestion] = Field(default_factory=list)

    @classmethod
    def blank(cls) -> "Requirements":
        """Document with every declared field present and empty."""
        return cls(
            required=RequiredFields(**{name: FieldValue.empty() for name in REQUIRED_FIELDS}),
            optional={name: FieldValue.empty() for name in OPTIONAL_FIELDS},
        )

    def get(self, path: str) -> FieldValue:
        """FieldValue at a dotted path; absent optional keys read as empty."""
        section, name = split_path(path)
        if section == "required":
            return getattr(self.required, name)
        return self.optional.get(name, FieldValue.empty())

    def set(self, path: str, value: FieldValue) -> None:
        """Write a FieldValue at a dotted path, in place."""
        section, name = split_path(path)
        if section == "required":
            setattr(self.required, name, value)
        else:
            self.optional[name] = value

    def text(self, path: str) -> str | None:
        return self.get(path).as_text()


def normalize_path(path: str) -> str:
    """Canonical snake_case form of a requirement path.

    Raises:
        ValueError: If the path does not address a Requirements field
    """
    parts = [p for p in path.strip().split(".") if p]
    if len(parts) != 2:
        raise ValueError(f"path must be '<section>.<field>', got '{path}'")
    section, name = to_snake(parts[0]), to_snake(parts[1])
    if section not in ("required", "optional"):
        raise ValueError(f"unknown section '{parts[0]}' in path '{path}'")
    if section == "required" and name not in REQUIRED_FIELDS:
        raise ValueError(f"unknown required field '{parts[1]}' in path '{path}'")
    return f"{section}.{name}"


def split_path(path: str) -> tuple[str, str]:
    try:
        section, name = normalize_path(path).split(".")
    except ValueError as e:
        raise SchemaViolation(path, "a Requirements field path", str(e)) from e
    return section, name


def field_label(path_or_name: str) -> str:
    """Human label for a field path or bare field name."""
    name = path_or_name.rsplit(".", 1)[-1]
    return FIELD_LABELS.get(to_snake(name), name)
