# survey_assistant/authoring/pipeline/extraction.py
"""
Requirement extraction: free text to a Requirements document.

Two interchangeable strategies feed the same schema. The adapter is tried
first; the keyword/regex HeuristicExtractor always works offline. Results
are merged into the prior turn's document field by field, the newer
non-empty value winning.
"""

import logging
import re

from survey_assistant.authoring.lookups import (
    ThemeRule,
    classify_audience,
    classify_method,
    match_theme,
)
from survey_assistant.authoring.schemas import (
    REQUIRED_FIELDS,
    FieldValue,
    Requirements,
    field_label,
)
from survey_assistant.authoring.validation import DocumentShape, validate

from .base import AuthoringStage, StageResult

logger = logging.getLogger(__name__)

MIN_QUESTION_COUNT = 1
MAX_QUESTION_COUNT = 20

LABELED_CONFIDENCE = 1.0
WHOLE_TEXT_CONFIDENCE = 0.6
NEEDS_CONFIDENCE = 0.5
DERIVED_CONFIDENCE = 0.5
THEME_PURPOSE_CONFIDENCE = 0.4

LINE_RE = re.compile(r"^([^:：\s]+)\s*[:：]\s*(.+)$")
COUNT_RE = re.compile(r"(\d+)")
WHOLE_TEXT_COUNT_RE = re.compile(r"(\d+)\s*問")
RELATIVE_COUNT_RE = re.compile(r"(?:設問|質問)数?を?\s*(\d+)\s*問\s*(増や|追加|減ら|削)")
NEEDS_RE = re.compile(
    r"([^\s。、．，！？!?]{2,20}?)(?:を|が|について|に関して|か)"
    r"(?:知りたい|調べたい|把握したい|測りたい|聞きたい|確認したい|評価したい)"
)
ADD_OTHER_RE = re.compile(r"その他.*追加|追加.*その他")
TO_SINGLE_RE = re.compile(r"単一選択に(?:変更|して|変え)")
POLITE_RE = re.compile(r"丁寧")

# Label (as typed by the user) -> target field
KEY_ALIASES: dict[str, str] = {
    "テーマ": "title",
    "タイトル": "title",
    "調査タイトル": "title",
    "theme": "title",
    "title": "title",
    "手法": "method",
    "調査手法": "method",
    "調査タイプ": "method",
    "method": "method",
    "設問数": "question_count",
    "質問数": "question_count",
    "count": "question_count",
    "対象者": "target_audience",
    "対象": "target_audience",
    "調査対象": "target_audience",
    "調査対象者": "target_audience",
    "audience": "target_audience",
    "分析対象": "analysis_audience",
    "分析対象者": "analysis_audience",
    "目的": "purpose",
    "調査目的": "purpose",
    "purpose": "purpose",
}

FIELD_PATHS: dict[str, str] = {
    **{name: f"required.{name}" for name in REQUIRED_FIELDS},
    "method": "optional.method",
    "question_count": "optional.question_count",
}


def clamp_count(value: int) -> int:
    return max(MIN_QUESTION_COUNT, min(MAX_QUESTION_COUNT, value))


def parse_labeled_lines(text: str) -> dict[str, str]:
    """Collect `key: value` lines (':' or '：') into a flat lookup; later lines win."""
    lookup: dict[str, str] = {}
    for line in text.splitlines():
        m = LINE_RE.match(line.strip())
        if m:
            lookup[m.group(1).strip()] = m.group(2).strip()
    return lookup


class HeuristicExtractor:
    """
    Local rule-based extraction.

    Labeled lines are read first and recorded as user input. Fields they do
    not resolve are then looked for in the whole text at lower confidence.
    Anything still unknown stays empty; no default is ever filled in here.
    """

    def extract(self, text: str, prior: Requirements | None = None) -> Requirements:
        requirements = Requirements.blank()
        notes: list[str] = []

        self._apply_labeled(requirements, parse_labeled_lines(text))
        self._apply_relative_count(requirements, text, prior, notes)
        self._apply_whole_text(requirements, text, notes)
        self._apply_preferences(requirements, text)

        requirements.completion_policy.notes = notes
        return requirements

    def _apply_labeled(self, requirements: Requirements, lookup: dict[str, str]) -> None:
        for key, raw in lookup.items():
            field = KEY_ALIASES.get(key) or KEY_ALIASES.get(key.lower())
            if field is None:
                continue
            value = self._normalize(field, raw)
            if value is None:
                logger.debug(f"Ignored unrecognised value for '{key}': {raw!r}")
                continue
            requirements.set(FIELD_PATHS[field], FieldValue.from_user(value))

    @staticmethod
    def _normalize(field: str, raw: str) -> str | None:
        if field == "method":
            method = classify_method(raw)
            return method.value if method else None
        if field == "question_count":
            m = COUNT_RE.search(raw)
            return str(clamp_count(int(m.group(1)))) if m else None
        if field == "target_audience":
            category = classify_audience(raw)
            return category.value if category else raw
        return raw

    def _apply_relative_count(
        self,
        requirements: Requirements,
        text: str,
        prior: Requirements | None,
        notes: list[str],
    ) -> None:
        m = RELATIVE_COUNT_RE.search(text)
        if not m or not requirements.get("optional.question_count").is_empty:
            return
        base = prior.text("optional.question_count") if prior else None
        if not base or not base.isdigit():
            logger.debug("Relative question-count edit ignored: no prior count")
            return
        delta = int(m.group(1)) if m.group(2) in ("増や", "追加") else -int(m.group(1))
        requirements.set(
            "optional.question_count", FieldValue.from_user(str(clamp_count(int(base) + delta)))
        )
        notes.append(f"{field_label('question_count')}を{base}から{delta:+d}問調整")

    def _apply_whole_text(self, requirements: Requirements, text: str, notes: list[str]) -> None:
        remaining = text

        if requirements.get("required.title").is_empty:
            found = match_theme(text)
            if found:
                rule, m = found
                _infer(requirements, "required.title", rule.title, WHOLE_TEXT_CONFIDENCE, notes)
                # the phrase that named the theme is not evidence for other fields
                remaining = text[: m.start()] + text[m.end() :]

        if requirements.get("optional.method").is_empty:
            method = classify_method(remaining)
            if method:
                _infer(requirements, "optional.method", method.value, WHOLE_TEXT_CONFIDENCE, notes)

        if requirements.get("optional.question_count").is_empty:
            m = WHOLE_TEXT_COUNT_RE.search(remaining)
            if m and not RELATIVE_COUNT_RE.search(remaining):
                count = str(clamp_count(int(m.group(1))))
                _infer(requirements, "optional.question_count", count, WHOLE_TEXT_CONFIDENCE, notes)

        if requirements.get("required.target_audience").is_empty:
            category = classify_audience(remaining)
            if category:
                _infer(
                    requirements, "required.target_audience", category.value, WHOLE_TEXT_CONFIDENCE, notes
                )

        if requirements.get("required.purpose").is_empty:
            m = NEEDS_RE.search(text)
            if m:
                _infer(requirements, "required.purpose", m.group(1), NEEDS_CONFIDENCE, notes)

    @staticmethod
    def _apply_preferences(requirements: Requirements, text: str) -> None:
        if ADD_OTHER_RE.search(text):
            requirements.set("optional.answer_format", FieldValue.from_user("その他（自由記述）を追加"))
        if TO_SINGLE_RE.search(text):
            requirements.set("optional.question_type", FieldValue.from_user("単一選択"))
        if POLITE_RE.search(text):
            requirements.set("optional.question_structure", FieldValue.from_user("丁寧語"))


def _infer(requirements: Requirements, path: str, value: str, confidence: float, notes: list[str]) -> None:
    requirements.set(path, FieldValue.inferred(value, confidence))
    notes.append(f"{field_label(path)}は入力文から推定（確度{confidence:.1f}）")


def fill_derived_fields(requirements: Requirements) -> list[str]:
    """
    Fill still-empty required fields that follow from other fields.

    Purpose follows from a recognised theme in the title, analysis audience
    from the target audience. Run on the merged document so a value derived
    from this turn never replaces one set in an earlier turn.

    Returns:
        Notes describing what was inferred
    """
    notes: list[str] = []
    title = requirements.text("required.title")
    if requirements.get("required.purpose").is_empty and title:
        found = match_theme(title)
        if found:
            rule: ThemeRule = found[0]
            _infer(requirements, "required.purpose", rule.purpose, THEME_PURPOSE_CONFIDENCE, notes)

    target = requirements.text("required.target_audience")
    if requirements.get("required.analysis_audience").is_empty and target:
        _infer(requirements, "required.analysis_audience", target, DERIVED_CONFIDENCE, notes)
    return notes


def merge_requirements(prior: Requirements | None, new: Requirements) -> Requirements:
    """
    Rightmost-non-empty-wins merge, per field.

    Returns a new document; neither input is modified. Merging a document
    with itself returns an equal document.
    """
    if prior is None:
        return new.model_copy(deep=True)

    merged = new.model_copy(deep=True)
    for name in REQUIRED_FIELDS:
        if getattr(new.required, name).is_empty:
            setattr(merged.required, name, getattr(prior.required, name).model_copy())

    keys = list(dict.fromkeys([*prior.optional, *new.optional]))
    merged.optional = {
        key: _pick(prior.optional.get(key), new.optional.get(key)) for key in keys
    }
    if not new.confirmation_questions:
        merged.confirmation_questions = [q.model_copy() for q in prior.confirmation_questions]
    return merged


def _pick(prior: FieldValue | None, new: FieldValue | None) -> FieldValue:
    if new is not None and not new.is_empty:
        return new.model_copy()
    if prior is not None:
        return prior.model_copy()
    return FieldValue.empty()


class RequirementExtractionStage(AuthoringStage):
    """Extract requirements remotely when possible, locally otherwise, then merge."""

    def __init__(self, adapter=None, extractor: HeuristicExtractor | None = None) -> None:
        super().__init__(adapter)
        self._extractor = extractor or HeuristicExtractor()

    @property
    def name(self) -> str:
        return "requirement_extraction"

    async def execute(self, free_text: str, prior: Requirements | None = None) -> StageResult:
        """
        Extract a Requirements document and merge it over `prior`.

        Args:
            free_text: The user's message
            prior: Requirements from earlier turns of the same conversation

        Returns:
            StageResult whose output is the merged, validated Requirements
        """
        extracted, remote_error = await self._try_remote(
            lambda adapter: adapter.extract_requirements(free_text)
        )
        strategy = "remote" if extracted is not None else "local"

        try:
            if extracted is None:
                extracted = self._extractor.extract(free_text, prior)
            merged = merge_requirements(prior, extracted)
            if strategy == "local":
                merged.completion_policy.notes.extend(fill_derived_fields(merged))
            merged = validate(merged, DocumentShape.REQUIREMENTS)
        except Exception as e:
            return self._failed(e, remote_error)

        logger.info(
            f"Stage '{self.name}': extracted via {strategy} "
            f"({sum(not merged.get(f'required.{n}').is_empty for n in REQUIRED_FIELDS)}/"
            f"{len(REQUIRED_FIELDS)} required fields filled)"
        )
        return StageResult(
            stage_name=self.name,
            success=True,
            output=merged,
            strategy=strategy,
            remote_error=remote_error,
        )


__all__ = [
    "HeuristicExtractor",
    "MAX_QUESTION_COUNT",
    "MIN_QUESTION_COUNT",
    "RequirementExtractionStage",
    "clamp_count",
    "fill_derived_fields",
    "merge_requirements",
    "parse_labeled_lines",
]
