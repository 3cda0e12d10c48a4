# survey_assistant/authoring/pipeline/depth.py
"""
Follow-up (depth) engine.

Turns an incomplete Requirements document into a queue of follow-up
questions and writes the user's answers back into it, one question at a
time:

    SCANNING -> QUEUED -> ANSWERING -> (QUEUED | RESOLVED)

Only missing required fields produce questions. Missing optional fields
are reported once the queue drains, never asked.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum

from survey_assistant.authoring.errors import SchemaViolation
from survey_assistant.authoring.schemas import (
    OPTIONAL_FIELDS,
    PRIORITY_RANK,
    REQUIRED_FIELDS,
    FieldValue,
    FollowUp,
    FollowUpQuestion,
    Requirements,
    field_label,
    is_blank,
)
from survey_assistant.authoring.validation import DocumentShape, validate

from .base import AuthoringStage, StageResult

logger = logging.getLogger(__name__)


class DepthState(Enum):
    SCANNING = "scanning"
    QUEUED = "queued"
    ANSWERING = "answering"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class FollowUpTemplate:
    """Local wording for the follow-up question of one required field."""

    question_text: str
    expected_format: str = "text"
    options: tuple[str, ...] = ()
    example_answers: tuple[str, ...] = ()
    placeholder: str | None = None
    helper_text: str | None = None
    validation: dict = field(default_factory=dict)
    priority: str = "high"
    depends_on: tuple[str, ...] = ()


FOLLOW_UP_TEMPLATES: dict[str, FollowUpTemplate] = {
    "title": FollowUpTemplate(
        question_text="この調査のタイトルは何にしますか？",
        example_answers=("顧客満足度調査", "NPS調査"),
        placeholder="例：顧客満足度調査",
        validation={"required": True, "min": 2, "max": 60},
    ),
    "purpose": FollowUpTemplate(
        question_text="この調査で明らかにしたいことは何ですか？",
        example_answers=("満足度と改善点の把握", "推奨意向とその理由の把握"),
        helper_text="調査結果をどのような判断に使うかを書くと設問が具体的になります。",
        validation={"required": True, "min": 2, "max": 200},
    ),
    "target_audience": FollowUpTemplate(
        question_text="どなたを対象に調査しますか？",
        expected_format="enum",
        options=("従業員", "既存顧客", "一般対象者"),
        example_answers=("既存顧客", "従業員"),
        validation={"required": True},
    ),
    "analysis_audience": FollowUpTemplate(
        question_text="分析の対象とする回答者の条件を教えてください。",
        example_answers=("回答者全員", "現在の利用者のみ"),
        validation={"required": True},
        priority="medium",
        depends_on=("target_audience",),
    ),
}


@dataclass(frozen=True)
class ScanResult:
    """Paths of empty fields, required ones in declaration order."""

    missing_required: list[str]
    missing_optional: list[str]

    @property
    def missing_fields(self) -> list[str]:
        # optional gaps only count once every required field is filled
        return self.missing_required or self.missing_optional


def scan(requirements: Requirements) -> ScanResult:
    """Find empty required and optional fields."""
    missing_required = [
        f"required.{name}" for name in REQUIRED_FIELDS if _is_missing(getattr(requirements.required, name))
    ]
    keys = list(dict.fromkeys([*OPTIONAL_FIELDS, *requirements.optional]))
    missing_optional = [
        f"optional.{key}" for key in keys if _is_missing(requirements.optional.get(key))
    ]
    return ScanResult(missing_required=missing_required, missing_optional=missing_optional)


def _is_missing(value: FieldValue | None) -> bool:
    return value is None or value.is_empty or is_blank(value.value)


def field_values(requirements: Requirements) -> dict[str, object]:
    """Non-empty values by path, ignoring source and confidence."""
    paths = [f"required.{name}" for name in REQUIRED_FIELDS]
    paths += [f"optional.{key}" for key in requirements.optional]
    values = {}
    for path in paths:
        value = requirements.get(path)
        if not _is_missing(value):
            values[path] = value.value
    return values


def build_follow_up(requirements: Requirements, previewed: Requirements | None = None) -> FollowUp:
    """
    Build the local FollowUp document for a Requirements document.

    One question per missing required field, ordered by priority and then
    declaration order. Optional gaps are listed as deferred.

    Args:
        requirements: The current Requirements document
        previewed: Requirements behind the preview on screen, if any; when
            they differ from `requirements` the next action is regenerate
    """
    result = scan(requirements)
    ids = {path: f"F{i}" for i, path in enumerate(result.missing_required, start=1)}

    questions = []
    for path, qid in ids.items():
        name = path.split(".", 1)[1]
        template = FOLLOW_UP_TEMPLATES[name]
        questions.append(
            FollowUpQuestion(
                id=qid,
                target_field=name,
                path=path,
                question_text=template.question_text,
                expected_format=template.expected_format,
                options=list(template.options),
                placeholder=template.placeholder,
                helper_text=template.helper_text,
                validation=dict(template.validation),
                example_answers=list(template.example_answers),
                priority=template.priority,
                depends_on=[ids[f"required.{dep}"] for dep in template.depends_on if f"required.{dep}" in ids],
            )
        )
    # sorted() is stable, so equal priorities keep declaration order
    questions = sorted(questions, key=lambda q: PRIORITY_RANK[q.priority])

    if questions:
        labels = "、".join(field_label(q.path) for q in questions)
        display_text = f"調査設計を進めるために、{labels}を教えてください。"
        next_action = "confirm"
    else:
        display_text = ""
        changed = previewed is not None and field_values(previewed) != field_values(requirements)
        next_action = "regenerate" if changed else "proceed"

    return FollowUp(
        missing_fields=result.missing_fields,
        deferred_fields=[] if result.missing_required else result.missing_optional,
        additional_questions=questions,
        field_mapping={q.path: q.id for q in questions},
        display_text=display_text,
        next_action=next_action,
    )


def format_follow_up(question: FollowUpQuestion) -> str:
    """Chat text for a follow-up question, with quick-pick candidates."""
    text = f"{field_label(question.path)}：{question.question_text}"
    candidates = question.example_answers or question.options
    if candidates:
        text += "\n候補: " + " / ".join(candidates)
    return text


class FollowUpEngine:
    """
    Follow-up loop over a single Requirements document.

    Presents one question at a time and never asks for a path twice in the
    same pass. Answers are written verbatim with source="user" and
    confidence 1, directly into the document passed in.
    """

    def __init__(self, requirements: Requirements):
        self.requirements = requirements
        self.state = DepthState.SCANNING
        self.current: FollowUpQuestion | None = None
        self.answered: list[str] = []
        self.missing_optional: list[str] = []
        self._queue: deque[FollowUpQuestion] = deque()

    def load(self, follow_up: FollowUp) -> FollowUpQuestion | None:
        """
        Queue the questions of a FollowUp document and present the first.

        Questions aimed at optional fields are dropped; they never block.

        Returns:
            The question now awaiting an answer, or None if nothing is missing
        """
        if self.state is not DepthState.SCANNING:
            raise RuntimeError(f"Cannot load follow-ups in state {self.state.value}")

        for question in follow_up.additional_questions:
            if question.path.startswith("required."):
                self._queue.append(question)
            else:
                logger.debug(f"Skipping non-blocking follow-up {question.id} for {question.path}")

        self.state = DepthState.QUEUED
        logger.info(f"Follow-up queue loaded with {len(self._queue)} question(s)")
        return self._advance()

    def answer(self, text: str) -> FollowUpQuestion | None:
        """
        Record the answer to the outstanding question.

        Returns:
            The next question, or None once the queue has drained

        Raises:
            RuntimeError: If no question is outstanding
            ValueError: If the answer is empty
        """
        if self.state is not DepthState.ANSWERING or self.current is None:
            raise RuntimeError("No follow-up question is awaiting an answer")
        if is_blank(text):
            raise ValueError("Follow-up answer must not be empty")

        question = self.current
        self.requirements.set(question.path, FieldValue.from_user(text))
        self.answered.append(question.path)
        logger.info(f"Follow-up {question.id} answered for {question.path}")

        self.current = None
        self.state = DepthState.QUEUED
        return self._advance()

    @property
    def pending(self) -> int:
        """Questions not yet answered, including the outstanding one."""
        return len(self._queue) + (1 if self.current else 0)

    def _advance(self) -> FollowUpQuestion | None:
        while self._queue:
            question = self._queue.popleft()
            if question.path in self.answered:
                continue
            self.current = question
            self.state = DepthState.ANSWERING
            return question

        self.state = DepthState.RESOLVED
        self.missing_optional = scan(self.requirements).missing_optional
        logger.info(f"Follow-ups resolved; {len(self.missing_optional)} optional field(s) still empty")
        return None


class FollowUpStage(AuthoringStage):
    """Produce the FollowUp document, adapter first, local templates otherwise."""

    @property
    def name(self) -> str:
        return "follow_up"

    async def execute(self, requirements: Requirements, previewed: Requirements | None = None) -> StageResult:
        """
        Args:
            requirements: The current Requirements document
            previewed: Requirements behind the preview on screen, if any

        Returns:
            StageResult whose output is a validated FollowUp
        """
        try:
            requirements = validate(requirements, DocumentShape.REQUIREMENTS)
            expected = scan(requirements).missing_required
        except Exception as e:
            return self._failed(e)

        follow_up, remote_error = None, None
        if expected:
            follow_up, remote_error = await self._try_remote(
                lambda adapter: self._remote(adapter, requirements, expected)
            )

        strategy = "remote" if follow_up is not None else "local"
        if follow_up is None:
            try:
                follow_up = build_follow_up(requirements, previewed)
            except Exception as e:
                return self._failed(e, remote_error)

        logger.info(
            f"Stage '{self.name}': {len(follow_up.additional_questions)} question(s) via {strategy}"
        )
        return StageResult(
            stage_name=self.name,
            success=True,
            output=follow_up,
            strategy=strategy,
            remote_error=remote_error,
        )

    @staticmethod
    async def _remote(adapter, requirements: Requirements, expected: list[str]) -> FollowUp:
        follow_up = await adapter.generate_follow_ups(requirements)
        asked = [q.path for q in follow_up.additional_questions]
        if sorted(asked) != sorted(expected):
            raise SchemaViolation(
                "additionalQuestions",
                f"one question for each of {expected}",
                f"questions target {asked}",
            )
        return follow_up
