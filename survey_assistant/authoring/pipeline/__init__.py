# survey_assistant/authoring/pipeline/__init__.py
"""
Authoring stages.

Exports:
    - AuthoringStage / StageResult: stage base class and result
    - RequirementExtractionStage: free text to Requirements
    - FollowUpStage / FollowUpEngine: missing-field follow-up loop
    - QuestionGenerationStage: Requirements to QuestionSet

The conversation orchestrator lives in
survey_assistant.authoring.pipeline.orchestrator.
"""

from survey_assistant.authoring.pipeline.base import AuthoringStage, StageResult
from survey_assistant.authoring.pipeline.depth import (
    DepthState,
    FollowUpEngine,
    FollowUpStage,
    build_follow_up,
    format_follow_up,
    scan,
)
from survey_assistant.authoring.pipeline.extraction import (
    HeuristicExtractor,
    RequirementExtractionStage,
    fill_derived_fields,
    merge_requirements,
)
from survey_assistant.authoring.pipeline.generation import (
    QuestionGenerationStage,
    RuleBasedQuestionGenerator,
)

__all__ = [
    "AuthoringStage",
    "DepthState",
    "FollowUpEngine",
    "FollowUpStage",
    "HeuristicExtractor",
    "QuestionGenerationStage",
    "RequirementExtractionStage",
    "RuleBasedQuestionGenerator",
    "StageResult",
    "build_follow_up",
    "fill_derived_fields",
    "format_follow_up",
    "merge_requirements",
    "scan",
]
