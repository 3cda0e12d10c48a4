# survey_assistant/authoring/schemas/__init__.py
"""Pydantic schemas for the three authoring documents."""

from .common import (
    LOCALE,
    PRIORITY_RANK,
    SCHEMA_VERSION,
    FieldValue,
    Meta,
    is_blank,
    utc_now_iso,
)
from .follow_up import FollowUp, FollowUpQuestion, Scope
from .question_set import (
    END,
    BranchCondition,
    BranchRule,
    Choice,
    Constraints,
    MethodDecomposition,
    Question,
    QuestionSet,
    Scale,
)
from .requirements import (
    FIELD_LABELS,
    OPTIONAL_FIELDS,
    REQUIRED_FIELDS,
    CompletionPolicy,
    ConfirmationQuestion,
    RequiredFields,
    Requirements,
    field_label,
    normalize_path,
)

__all__ = [
    "BranchCondition",
    "BranchRule",
    "Choice",
    "CompletionPolicy",
    "ConfirmationQuestion",
    "Constraints",
    "END",
    "FIELD_LABELS",
    "FieldValue",
    "FollowUp",
    "FollowUpQuestion",
    "LOCALE",
    "Meta",
    "MethodDecomposition",
    "OPTIONAL_FIELDS",
    "PRIORITY_RANK",
    "Question",
    "QuestionSet",
    "REQUIRED_FIELDS",
    "RequiredFields",
    "Requirements",
    "SCHEMA_VERSION",
    "Scale",
    "Scope",
    "field_label",
    "is_blank",
    "normalize_path",
    "utc_now_iso",
]
