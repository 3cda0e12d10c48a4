# survey_assistant/authoring/preview.py
"""
Preview and hand-off documents.

A preview is what the user reviews before confirming; a hand-off draft is
the frozen, flattened form passed to the survey editor.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .lookups import display_category, rationale_for
from .schemas import Question, QuestionSet, Scale

EMPTY_PREVIEW_MESSAGE = "設問が生成されませんでした。条件を変えて、もう一度お試しください。"

_KIND_BY_FORMAT = {
    "single-select": "single",
    "multi-select": "multiple",
    "5-point-scale": "scale",
    "free-text": "text",
    "numeric": "numeric",
}


class PreviewQuestion(BaseModel):
    """One question as shown in the preview."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    kind: Literal["single", "multiple", "scale", "text", "numeric"]
    options: list[str] = Field(default_factory=list)
    scale: Scale | None = None
    section: Literal["screening", "main"]
    category: str = Field(description="Display grouping only; no branching meaning")
    rationale: str
    analysis_purpose: str | None = None


class PreviewDocument(BaseModel):
    """A generated (or selected) survey ready for review."""

    model_config = ConfigDict(frozen=True)

    title: str
    purpose: str = ""
    type: Literal["screening", "main"]
    audience: str | None = None
    source: Literal["chat", "template", "past_survey"] = "chat"
    source_id: str | None = None
    questions: list[PreviewQuestion] = Field(default_factory=list)
    question_set: QuestionSet
    empty_message: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.questions

    @property
    def question_count(self) -> int:
        return len(self.questions)


class DraftQuestion(BaseModel):
    id: str
    text: str


class HandoffDraft(BaseModel):
    """The one durable artifact: what the survey editor receives."""

    title: str
    type: Literal["screening", "main"]
    audience: str | None = None
    questions: list[DraftQuestion] = Field(default_factory=list)

    def to_payload(self) -> dict:
        return self.model_dump(exclude_none=True)


def _preview_question(question: Question, section: str, index: int, rationale: str | None) -> PreviewQuestion:
    return PreviewQuestion(
        id=question.id,
        text=question.text,
        kind=_KIND_BY_FORMAT[question.format],
        options=[c.label for c in question.choices],
        scale=question.scale,
        section=section,
        category=display_category(index),
        rationale=rationale or rationale_for(question.text, question.format),
        analysis_purpose=question.analysis_purpose,
    )


def build_preview(
    question_set: QuestionSet,
    *,
    title: str,
    survey_type: str,
    purpose: str | None = None,
    audience: str | None = None,
    source: str = "chat",
    source_id: str | None = None,
) -> PreviewDocument:
    """
    Flatten a QuestionSet into a preview.

    Questions keep their order (screening first). Display categories cycle
    in emission order. A missing rationale is filled from the keyword table.
    An empty set yields a preview with an explicit empty-state message.
    """
    sections = [("screening", q) for q in question_set.screening_questions] + [
        ("main", q) for q in question_set.main_questions
    ]
    questions = [
        _preview_question(q, section, i, question_set.question_rationale.get(q.id))
        for i, (section, q) in enumerate(sections)
    ]
    return PreviewDocument(
        title=title,
        purpose=purpose or "",
        type=survey_type,
        audience=audience,
        source=source,
        source_id=source_id,
        questions=questions,
        question_set=question_set,
        empty_message=None if questions else EMPTY_PREVIEW_MESSAGE,
    )


def build_handoff_draft(preview: PreviewDocument) -> HandoffDraft:
    """Freeze a preview into the draft handed to the survey editor."""
    return HandoffDraft(
        title=preview.title,
        type=preview.type,
        audience=preview.audience,
        questions=[
            DraftQuestion(id=f"Q{i}", text=q.text) for i, q in enumerate(preview.questions, start=1)
        ],
    )
