# survey_assistant/authoring/adapter/mock.py
"""
In-process generation adapter with canned output.

Stands in for a real model in demos and tests. Canned documents still go
through the schema validator, so a test can feed a malformed document in
through `responses` and see the same SchemaViolation a model would cause.
"""

import logging
import re
from typing import Any

from survey_assistant.authoring.errors import GenerationFailure
from survey_assistant.authoring.lookups import classify_audience
from survey_assistant.authoring.schemas import (
    REQUIRED_FIELDS,
    FollowUp,
    QuestionSet,
    Requirements,
    field_label,
    utc_now_iso,
)
from survey_assistant.authoring.validation import DocumentShape, validate

from .base import GenerationAdapter

logger = logging.getLogger(__name__)

OPERATIONS = ("extract_requirements", "generate_questions", "generate_follow_ups")


class MockGenerationAdapter(GenerationAdapter):
    """
    Deterministic adapter for local runs and tests.

    Args:
        fail_on: Operation names that raise GenerationFailure instead of answering
        responses: Raw documents (wire dicts) to return per operation instead
            of the canned ones; they are validated before being returned
    """

    def __init__(
        self,
        fail_on: set[str] | None = None,
        responses: dict[str, dict[str, Any]] | None = None,
    ):
        unknown = (set(fail_on or ()) | set(responses or {})) - set(OPERATIONS)
        if unknown:
            raise ValueError(f"Unknown adapter operations: {sorted(unknown)}")
        self._fail_on = set(fail_on or ())
        self._responses = dict(responses or {})
        self.calls: list[str] = []

    @property
    def name(self) -> str:
        return "mock"

    async def extract_requirements(self, free_text: str) -> Requirements:
        document = self._respond("extract_requirements") or _canned_requirements(free_text)
        return validate(document, DocumentShape.REQUIREMENTS)

    async def generate_questions(self, requirements: Requirements) -> QuestionSet:
        document = self._respond("generate_questions") or _canned_question_set()
        return validate(document, DocumentShape.QUESTION_SET)

    async def generate_follow_ups(self, requirements: Requirements) -> FollowUp:
        document = self._respond("generate_follow_ups") or _canned_follow_up(requirements)
        return validate(document, DocumentShape.FOLLOW_UP)

    def _respond(self, operation: str) -> dict[str, Any] | None:
        self.calls.append(operation)
        if operation in self._fail_on:
            logger.info(f"mock adapter: simulated failure for {operation}")
            raise GenerationFailure(operation, "simulated failure")
        return self._responses.get(operation)


def _meta() -> dict[str, str]:
    return {"version": "1.0", "locale": "ja-JP", "generatedAt": utc_now_iso()}


def _field(value: Any = None, source: str = "empty", confidence: float = 0.0) -> dict[str, Any]:
    return {"value": value, "source": source, "confidence": confidence}


def _canned_requirements(free_text: str) -> dict[str, Any]:
    if re.search(r"顧客満足度", free_text):
        title = "顧客満足度調査"
    elif re.search(r"従業員満足|ES", free_text):
        title = "従業員満足度調査"
    elif re.search(r"NPS", free_text, re.IGNORECASE):
        title = "NPS調査"
    else:
        title = None

    purpose = "顧客満足度や改善点の把握" if re.search(r"顧客満足度", free_text) else None
    audience = classify_audience(free_text)

    return {
        "meta": _meta(),
        "required": {
            "title": _field(title, "inferred", 0.9) if title else _field(),
            "purpose": _field(purpose, "inferred", 0.8) if purpose else _field(),
            "targetAudience": _field(audience.value, "inferred", 0.6) if audience else _field(),
            "analysisAudience": _field(),
        },
        "optional": {
            "analysis_perspective": _field(["利用頻度", "年齢"], "inferred", 0.5),
        },
        "completionPolicy": {"unfilled": "空欄", "inferable": "推定: 〜", "notes": []},
        "confirmationQuestions": [],
    }


def _canned_question_set() -> dict[str, Any]:
    return {
        "meta": _meta(),
        "methodDecomposition": {"screening": "対象抽出", "main": "本調査"},
        "screeningQuestions": [
            {
                "id": "S1",
                "text": "本テーマの利用経験はありますか？",
                "format": "single-select",
                "internalType": "SA",
                "choices": [
                    {"code": "1", "label": "現在利用中"},
                    {"code": "2", "label": "過去に利用"},
                    {"code": "3", "label": "未利用"},
                ],
            }
        ],
        "mainQuestions": [
            {
                "id": "Q1",
                "text": "総合満足度を教えてください。",
                "format": "5-point-scale",
                "internalType": "Scale",
                "scale": {"min": 1, "max": 5, "labels": ["非常に不満", "不満", "普通", "満足", "非常に満足"]},
                "analysisPurpose": "KPI把握（平均・Top2Box）",
            }
        ],
        "questionRationale": {"S1": {"目的": "対象抽出"}, "Q1": {"目的": "KPI"}},
        "branchRules": [
            {"from": "S1", "when": {"code": "1"}, "goTo": "Q1"},
            {"from": "S1", "else": "END"},
        ],
        "constraints": {"maxScreening": 5, "maxMain": 15, "maxDepth": 2},
    }


def _canned_follow_up(requirements: Requirements) -> dict[str, Any]:
    missing = [
        f"required.{name}" for name in REQUIRED_FIELDS if getattr(requirements.required, name).is_empty
    ]
    questions = []
    for i, path in enumerate(missing, start=1):
        if path == "required.title":
            questions.append({
                "id": f"Q{i}",
                "targetField": "title",
                "path": path,
                "questionText": "この調査のタイトルは何にしますか？",
                "expectedFormat": "text",
                "validation": {"required": True, "min": 2, "max": 60},
                "exampleAnswers": ["顧客満足度調査", "NPS調査"],
                "priority": "high",
            })
        else:
            questions.append({
                "id": f"Q{i}",
                "targetField": path.split(".")[1],
                "path": path,
                "questionText": f"{field_label(path)}を教えてください。",
                "expectedFormat": "text",
                "priority": "medium",
            })

    return {
        "meta": _meta(),
        "missingFields": missing,
        "additionalQuestions": questions,
        "fieldMapping": {q["path"]: q["id"] for q in questions},
        "displayText": "調査設計を進めるために、不足している項目を入力してください。" if questions else "",
        "nextAction": "confirm" if questions else "proceed",
    }
