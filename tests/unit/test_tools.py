# tests/unit/test_tools.py
"""Tests for the tool layer shared by the MCP server and the CLI."""

import pytest
from fastmcp.exceptions import ToolError

from survey_assistant.authoring.pipeline.orchestrator import ConversationOrchestrator
from survey_assistant.config.schema import SurveyAssistantConfig
from survey_assistant.models.drafts import InMemoryDraftStore
from survey_assistant.models.registry import ConversationRegistry
from survey_assistant.tools.catalog import (
    list_past_surveys,
    list_templates,
    select_past_survey,
    select_template,
)
from survey_assistant.tools.conversation import (
    confirm_preview,
    get_conversation,
    proceed,
    request_edit,
    send_message,
    start_conversation,
)
from survey_assistant.validation import (
    sanitize_attachments,
    sanitize_conversation_id,
    sanitize_keyword,
    sanitize_message,
)

NPS_REQUEST = "テーマ: NPS調査\n手法: 本調査\n設問数: 3問\n対象者: 既存顧客"


async def _start(registry, message=None, draft_store=None) -> dict:
    return await start_conversation(registry, SurveyAssistantConfig(), draft_store, message)


class TestSanitize:
    def test_message(self):
        assert sanitize_message("  こんにちは  ") == "こんにちは"
        assert sanitize_message("x" * 20, max_length=5) == "xxxxx"
        with pytest.raises(ToolError):
            sanitize_message("   ")

    def test_conversation_id(self):
        assert sanitize_conversation_id(" abc123def456 ") == "abc123def456"
        with pytest.raises(ToolError):
            sanitize_conversation_id("ABC123DEF456")
        with pytest.raises(ToolError):
            sanitize_conversation_id("../etc")

    def test_attachments_keep_names_only(self):
        assert sanitize_attachments(["/tmp/brief.pdf", "  ", "notes.txt"]) == ["brief.pdf", "notes.txt"]
        assert sanitize_attachments(None) == []
        with pytest.raises(ToolError):
            sanitize_attachments([f"f{i}.txt" for i in range(11)])

    def test_keyword(self):
        assert sanitize_keyword(None) is None
        assert sanitize_keyword("   ") is None
        assert sanitize_keyword(" 満足度 ") == "満足度"


class TestRegistry:
    @pytest.mark.asyncio
    async def test_add_get_remove(self):
        registry = ConversationRegistry()
        orchestrator = ConversationOrchestrator()
        conversation_id = orchestrator.conversation.conversation_id

        await registry.add(orchestrator)

        assert await registry.get(conversation_id) is orchestrator
        with pytest.raises(ValueError):
            await registry.add(orchestrator)
        assert await registry.remove(conversation_id) is True
        assert await registry.remove(conversation_id) is False
        assert await registry.get(conversation_id) is None

    @pytest.mark.asyncio
    async def test_list_all_newest_first(self):
        registry = ConversationRegistry()
        first, second = ConversationOrchestrator(), ConversationOrchestrator()
        second.conversation.created_at = first.conversation.created_at.replace(year=first.conversation.created_at.year + 1)
        await registry.add(first)
        await registry.add(second)

        assert await registry.list_all() == [second, first]


class TestConversationTools:
    """Conversation tools drive the orchestrator and return plain dicts."""

    @pytest.mark.asyncio
    async def test_start_without_message(self):
        result = await _start(ConversationRegistry())

        assert result["reply"] is None
        assert result["conversation"]["state"] == "idle"
        assert len(result["conversation"]["conversation_id"]) == 12

    @pytest.mark.asyncio
    async def test_start_with_message(self):
        result = await _start(ConversationRegistry(), NPS_REQUEST)

        assert result["reply"].startswith("要件が揃いました。")
        assert result["conversation"]["state"] == "previewing"
        assert len(result["conversation"]["preview"]["questions"]) == 3

    @pytest.mark.asyncio
    async def test_follow_up_through_send_message(self):
        registry = ConversationRegistry()
        started = await _start(registry, "従業員満足度を知りたい")
        conversation_id = started["conversation"]["conversation_id"]
        assert started["conversation"]["follow_up_prompt"]["path"] == "required.target_audience"

        await send_message(conversation_id, "従業員", registry, SurveyAssistantConfig())
        result = await send_message(conversation_id, "全員", registry, SurveyAssistantConfig())

        assert result["conversation"]["state"] == "proposing"
        previewed = await proceed(conversation_id, registry)
        assert previewed["conversation"]["state"] == "previewing"

    @pytest.mark.asyncio
    async def test_keep_refining(self):
        registry = ConversationRegistry()
        started = await _start(registry, "従業員満足度を知りたい")
        conversation_id = started["conversation"]["conversation_id"]
        await send_message(conversation_id, "従業員", registry, SurveyAssistantConfig())
        await send_message(conversation_id, "全員", registry, SurveyAssistantConfig())

        result = await proceed(conversation_id, registry, keep_refining=True)

        assert result["conversation"]["state"] == "idle"

    @pytest.mark.asyncio
    async def test_proceed_in_wrong_state(self):
        registry = ConversationRegistry()
        started = await _start(registry)
        with pytest.raises(ToolError):
            await proceed(started["conversation"]["conversation_id"], registry)

    @pytest.mark.asyncio
    async def test_unknown_conversation(self):
        with pytest.raises(ToolError, match="not found"):
            await get_conversation("abc123def456", ConversationRegistry())

    @pytest.mark.asyncio
    async def test_invalid_conversation_id(self):
        with pytest.raises(ToolError, match="Invalid conversation ID"):
            await send_message("nope", "hi", ConversationRegistry(), SurveyAssistantConfig())

    @pytest.mark.asyncio
    async def test_edit_with_suggestion(self):
        registry = ConversationRegistry()
        started = await _start(registry, NPS_REQUEST)
        conversation_id = started["conversation"]["conversation_id"]

        result = await request_edit(conversation_id, registry, suggestion="設問数を+2")

        assert len(result["conversation"]["preview"]["questions"]) == 5

    @pytest.mark.asyncio
    async def test_edit_without_suggestion_offers_choices(self):
        registry = ConversationRegistry()
        started = await _start(registry, NPS_REQUEST)

        result = await request_edit(started["conversation"]["conversation_id"], registry)

        assert result["conversation"]["state"] == "edit_requested"
        assert len(result["conversation"]["suggestions"]) == 5

    @pytest.mark.asyncio
    async def test_edit_unknown_suggestion(self):
        registry = ConversationRegistry()
        started = await _start(registry, NPS_REQUEST)
        with pytest.raises(ToolError, match="Unknown suggestion"):
            await request_edit(started["conversation"]["conversation_id"], registry, suggestion="x")

    @pytest.mark.asyncio
    async def test_confirm(self):
        registry = ConversationRegistry()
        store = InMemoryDraftStore()
        started = await _start(registry, NPS_REQUEST, store)
        conversation_id = started["conversation"]["conversation_id"]

        result = await confirm_preview(conversation_id, registry)

        assert result["draft_key"] == "assistant_draft"
        assert result["draft"]["title"] == "NPS調査"
        assert await store.get("assistant_draft") == result["draft"]
        with pytest.raises(ToolError):
            await send_message(conversation_id, "追加で", registry, SurveyAssistantConfig())

    @pytest.mark.asyncio
    async def test_confirm_without_preview(self):
        registry = ConversationRegistry()
        started = await _start(registry)
        with pytest.raises(ToolError):
            await confirm_preview(started["conversation"]["conversation_id"], registry)


class TestCatalogTools:
    @pytest.mark.asyncio
    async def test_list_templates(self):
        result = await list_templates()

        assert result["total"] == len(result["templates"]) == 13
        nps = next(t for t in result["templates"] if t["template_id"] == "nps-survey")
        assert nps["prompt"].startswith("テーマ: NPS調査")
        assert nps["method"] == "main"

    @pytest.mark.asyncio
    async def test_list_templates_filtered(self):
        result = await list_templates(keyword="  認知経路 ")
        assert [t["template_id"] for t in result["templates"]] == ["product-awareness"]

    @pytest.mark.asyncio
    async def test_list_past_surveys(self):
        result = await list_past_surveys()
        assert [s["survey_id"] for s in result["surveys"]] == ["sv-001", "sv-002", "sv-003", "sv-004"]

        screening = await list_past_surveys(method="screening")
        assert screening["total"] == 1

    @pytest.mark.asyncio
    async def test_list_past_surveys_bad_method(self):
        with pytest.raises(ToolError, match="Invalid method"):
            await list_past_surveys(method="phone")

    @pytest.mark.asyncio
    async def test_select_template(self):
        registry = ConversationRegistry()
        started = await _start(registry)

        result = await select_template(started["conversation"]["conversation_id"], "app-usage", registry)

        assert result["conversation"]["state"] == "previewing"
        assert result["conversation"]["preview"]["source_id"] == "app-usage"

    @pytest.mark.asyncio
    async def test_select_unknown(self):
        registry = ConversationRegistry()
        conversation_id = (await _start(registry))["conversation"]["conversation_id"]

        with pytest.raises(ToolError, match="Template not found"):
            await select_template(conversation_id, "nope", registry)
        with pytest.raises(ToolError, match="Past survey not found"):
            await select_past_survey(conversation_id, "nope", registry)

    @pytest.mark.asyncio
    async def test_select_past_survey(self):
        registry = ConversationRegistry()
        conversation_id = (await _start(registry))["conversation"]["conversation_id"]

        result = await select_past_survey(conversation_id, "sv-003", registry)

        assert result["conversation"]["preview"]["title"] == "サービス体験評価（サポート）"
