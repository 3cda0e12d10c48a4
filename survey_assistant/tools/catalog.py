# survey_assistant/tools/catalog.py
"""
Template and past-survey tool implementations.
"""

import logging

from fastmcp.exceptions import ToolError

from survey_assistant.authoring.catalog import (
    build_structured_prompt,
    search_past_surveys,
    search_templates,
)
from survey_assistant.authoring.errors import ConversationStateError
from survey_assistant.authoring.lookups import SurveyMethod
from survey_assistant.models.registry import ConversationRegistry
from survey_assistant.models.responses import (
    ListPastSurveysResponse,
    ListTemplatesResponse,
    PastSurveySummary,
    TemplateSummary,
    TurnResponse,
)
from survey_assistant.validation.sanitize import sanitize_keyword

from .conversation import get_orchestrator

logger = logging.getLogger(__name__)


async def list_templates(keyword: str | None = None, category: str | None = None) -> dict:
    """
    Returns:
        ListTemplatesResponse as dict
    """
    templates = search_templates(sanitize_keyword(keyword), sanitize_keyword(category))
    summaries = [
        TemplateSummary(
            template_id=t.id,
            title=t.title,
            category=t.category,
            description=t.description,
            features=list(t.features),
            method=t.method.value,
            question_count=t.question_count,
            prompt=build_structured_prompt(t),
        )
        for t in templates
    ]
    return ListTemplatesResponse(templates=summaries, total=len(summaries)).model_dump()


async def list_past_surveys(
    keyword: str | None = None,
    category: str | None = None,
    method: str | None = None,
    newest_first: bool = True,
) -> dict:
    """
    Raises:
        ToolError: If method is not 'screening' or 'main'
    """
    try:
        survey_method = SurveyMethod(method) if method else None
    except ValueError:
        raise ToolError(f"Invalid method '{method}': must be 'screening' or 'main'")

    surveys = search_past_surveys(
        sanitize_keyword(keyword), sanitize_keyword(category), survey_method, newest_first
    )
    summaries = [
        PastSurveySummary(
            survey_id=s.id,
            title=s.title,
            audience=s.audience,
            updated_at=s.updated_at,
            description=s.description,
            method=s.method.value,
        )
        for s in surveys
    ]
    return ListPastSurveysResponse(surveys=summaries, total=len(summaries)).model_dump()


async def select_template(conversation_id: str, template_id: str, registry: ConversationRegistry) -> dict:
    orchestrator = await get_orchestrator(conversation_id, registry)
    try:
        reply = await orchestrator.select_template(template_id)
    except KeyError:
        raise ToolError(f"Template not found: {template_id}")
    except ConversationStateError as e:
        raise ToolError(str(e))
    return TurnResponse(reply=reply, conversation=orchestrator.snapshot()).model_dump()


async def select_past_survey(conversation_id: str, survey_id: str, registry: ConversationRegistry) -> dict:
    orchestrator = await get_orchestrator(conversation_id, registry)
    try:
        reply = await orchestrator.select_past_survey(survey_id)
    except KeyError:
        raise ToolError(f"Past survey not found: {survey_id}")
    except ConversationStateError as e:
        raise ToolError(str(e))
    return TurnResponse(reply=reply, conversation=orchestrator.snapshot()).model_dump()
