# survey_assistant/authoring/pipeline/orchestrator.py
"""
Conversation orchestrator.

Sequences extraction, follow-up and question generation per user turn:

    IDLE -> EXTRACTING -> (FOLLOWING_UP | PROPOSING) -> PREVIEWING
         -> (CONFIRMED | EDIT_REQUESTED)

Adapter failures never reach the user; every stage falls back to its local
strategy. Each turn takes a sequence number and drops its results if a newer
turn started while it was suspended.
"""

import logging
import re

from survey_assistant.authoring.adapter import (
    GenerationAdapter,
    LLMGenerationAdapter,
    MockGenerationAdapter,
)
from survey_assistant.authoring.catalog import (
    get_past_survey,
    get_template,
    past_survey_preview,
    past_survey_requirements,
    template_preview,
    template_requirements,
)
from survey_assistant.authoring.errors import ConversationStateError
from survey_assistant.authoring.lookups import METHOD_LABELS, SurveyMethod
from survey_assistant.authoring.preview import (
    HandoffDraft,
    PreviewDocument,
    build_handoff_draft,
    build_preview,
)
from survey_assistant.authoring.schemas import REQUIRED_FIELDS, Requirements, field_label, is_blank
from survey_assistant.authoring.validation import serialize
from survey_assistant.config.schema import SurveyAssistantConfig
from survey_assistant.llm import create_llm_client
from survey_assistant.models.conversation import Conversation, ConversationState, generate_conversation_id
from survey_assistant.models.drafts import DraftStore, InMemoryDraftStore
from survey_assistant.models.responses import ChatMessage, ConversationSnapshot

from .depth import FollowUpEngine, FollowUpStage, build_follow_up, format_follow_up
from .extraction import RequirementExtractionStage
from .generation import DEFAULT_TITLE, QuestionGenerationStage, RuleBasedQuestionGenerator

logger = logging.getLogger(__name__)

GENERATION_FAILED_MESSAGE = (
    "申し訳ありません。アンケートを生成できませんでした。表現を変えてもう一度お試しください。"
)
EDIT_PROMPT_MESSAGE = (
    "どのようなカスタマイズをしますか？\n"
    "例：設問数の増減、選択肢の追加・修正、質問タイプの変更、文言のトーン調整、対象者の変更 など"
)
KEEP_REFINING_MESSAGE = "承知しました。補足したい内容をチャットで入力してください。"
CONFIRMED_MESSAGE = "アンケートの下書きを作成しました。編集画面で内容を確認してください。"
EDIT_SEED_HEADER = "このテンプレートをベースに作成したいです。"

# label -> message submitted when the suggestion is chosen
EDIT_SUGGESTIONS: dict[str, str] = {
    "設問数を+2": "設問数を2問増やしてください。",
    "選択肢を追加": "選択肢に「その他（自由記述）」を追加してください。",
    "質問タイプ変更": "評価尺度の質問を単一選択に変更してください。",
    "文言を丁寧に": "全体の文言を丁寧語に整えてください。",
    "対象者を既存顧客": "対象者を既存顧客にしてください。",
}

PROCEED_RE = re.compile(r"^(プレビュー|このまま|進め|進んで|はい|OK|ok|proceed)")

# Seeded method lines must read back as the same method
_SEED_METHOD_LABELS = {SurveyMethod.SCREENING: "事前調査", SurveyMethod.MAIN: "本調査"}


def create_adapter(config: SurveyAssistantConfig) -> GenerationAdapter | None:
    """
    Build the generation adapter selected by config.adapter.kind.

    Returns:
        None for kind="none" (local strategies only)
    """
    kind = config.adapter.kind
    if kind == "mock":
        return MockGenerationAdapter()
    if kind == "llm":
        return LLMGenerationAdapter(create_llm_client(config), call_timeout=config.adapter.call_timeout)
    return None


def edit_seed_text(preview: PreviewDocument) -> str:
    """User message describing a preview as the base for a new draft."""
    lines = [EDIT_SEED_HEADER]
    for label, value in (
        ("タイトル", preview.title),
        ("対象", preview.audience),
        ("目的", preview.purpose),
    ):
        if value and not is_blank(value):
            lines.append(f"{label}: {value}")
    if preview.question_count:
        lines.append(f"設問数: {preview.question_count}問")
    lines.append(f"調査タイプ: {_SEED_METHOD_LABELS[SurveyMethod(preview.type)]}")
    return "\n".join(lines)


class ConversationOrchestrator:
    """
    State machine for one conversation.

    Every public operation returns the assistant reply for that turn, or
    None when the turn was superseded by a newer one.

    Example:
        orchestrator = ConversationOrchestrator(config=load_config())
        reply = await orchestrator.submit_user_message("従業員満足度を知りたい")
    """

    def __init__(
        self,
        conversation: Conversation | None = None,
        *,
        adapter: GenerationAdapter | None = None,
        config: SurveyAssistantConfig | None = None,
        draft_store: DraftStore | None = None,
    ) -> None:
        self.config = config or SurveyAssistantConfig()
        self.conversation = conversation or Conversation(conversation_id=generate_conversation_id())
        self.draft_store = draft_store or InMemoryDraftStore()
        self._generator = RuleBasedQuestionGenerator(self.config.generation)
        self._extraction = RequirementExtractionStage(adapter)
        self._follow_up = FollowUpStage(adapter)
        self._generation = QuestionGenerationStage(adapter, self._generator)
        self._engine: FollowUpEngine | None = None
        logger.info(
            f"Created orchestrator for conversation {self.conversation.conversation_id} "
            f"(adapter={adapter.name if adapter else 'none'})"
        )

    @classmethod
    def from_config(
        cls,
        config: SurveyAssistantConfig,
        conversation: Conversation | None = None,
        draft_store: DraftStore | None = None,
    ) -> "ConversationOrchestrator":
        return cls(conversation, adapter=create_adapter(config), config=config, draft_store=draft_store)

    @property
    def state(self) -> ConversationState:
        return self.conversation.state

    # Inbound operations

    async def submit_user_message(self, text: str, attachments: list[str] | None = None) -> str | None:
        """
        Handle a chat message.

        While a follow-up question is outstanding the message is its answer,
        never new intent. In PROPOSING a proceed phrase moves on to the
        preview; anything else refines the requirements.

        Raises:
            ValueError: If the message is empty
            ConversationStateError: If the conversation is already confirmed
        """
        if is_blank(text):
            raise ValueError("Message must not be empty")
        conv = self.conversation
        if conv.state is ConversationState.CONFIRMED:
            raise ConversationStateError("send a message", conv.state.value)

        conv.add("user", text, attachments)
        if attachments:
            logger.info(f"Conversation {conv.conversation_id}: {len(attachments)} attachment(s) recorded")

        if conv.state is ConversationState.FOLLOWING_UP and self._engine is not None:
            return self._answer(text)
        if conv.state is ConversationState.PROPOSING and PROCEED_RE.match(text.strip()):
            return await self._preview_turn()
        return await self._extraction_turn(text)

    async def submit_follow_up_answer(self, text: str) -> str | None:
        """
        Raises:
            ConversationStateError: If no follow-up question is outstanding
        """
        if self.conversation.state is not ConversationState.FOLLOWING_UP:
            raise ConversationStateError("answer a follow-up", self.conversation.state.value)
        return await self.submit_user_message(text)

    async def proceed_to_preview(self) -> str | None:
        """Accept the proposal and generate the preview as-is."""
        if self.conversation.state is not ConversationState.PROPOSING:
            raise ConversationStateError("proceed to preview", self.conversation.state.value)
        return await self._preview_turn()

    async def keep_refining(self) -> str:
        """Decline the proposal; the next message refines the requirements."""
        conv = self.conversation
        if conv.state is not ConversationState.PROPOSING:
            raise ConversationStateError("keep refining", conv.state.value)
        conv.begin_turn()
        conv.transition(ConversationState.IDLE)
        conv.add("assistant", KEEP_REFINING_MESSAGE)
        conv.awaiting_response = False
        return KEEP_REFINING_MESSAGE

    async def select_template(self, template_id: str) -> str:
        """
        Show a catalog template as the preview.

        Raises:
            KeyError: If the template does not exist
        """
        template = get_template(template_id)
        self._check_not_confirmed("select a template")
        reply = f"テンプレート「{template.title}」を選択しました。内容をプレビューで確認してください。"
        self._show_selected(template_requirements(template), template_preview(template), reply)
        return reply

    async def select_past_survey(self, survey_id: str) -> str:
        """
        Show a past survey as the preview.

        Raises:
            KeyError: If the survey does not exist
        """
        survey = get_past_survey(survey_id)
        self._check_not_confirmed("select a past survey")
        reply = f"過去のアンケート「{survey.title}」を読み込みました。内容をプレビューで確認してください。"
        self._show_selected(past_survey_requirements(survey), past_survey_preview(survey), reply)
        return reply

    async def request_edit(self, preview: PreviewDocument | None = None) -> str | None:
        """
        Reopen a preview for customization.

        The preview is seeded back into the chat as a user message, extracted
        as the new base requirements, and the edit suggestions are offered.
        """
        conv = self.conversation
        preview = preview or conv.preview
        if preview is None or conv.state not in (ConversationState.PREVIEWING, ConversationState.EDIT_REQUESTED):
            raise ConversationStateError("request an edit", conv.state.value)

        seed = edit_seed_text(preview)
        conv.add("user", seed)
        conv.preview = preview
        seq = conv.begin_turn()
        conv.transition(ConversationState.EDIT_REQUESTED)
        try:
            result = await self._extraction.execute(seed, None)
            if not conv.is_current(seq):
                return self._discard(seq, "extraction")
            if result.success:
                conv.requirements = result.output
            self._engine = None
            conv.follow_up_prompt = None
            conv.suggestions = list(EDIT_SUGGESTIONS)
            conv.add("assistant", EDIT_PROMPT_MESSAGE)
            return EDIT_PROMPT_MESSAGE
        finally:
            conv.end_turn(seq)

    async def choose_suggestion(self, label: str) -> str | None:
        """
        Submit an edit suggestion exactly like typed input.

        Raises:
            KeyError: If the label is not one of the offered suggestions
        """
        if label not in EDIT_SUGGESTIONS:
            raise KeyError(f"Unknown suggestion: {label}")
        return await self.submit_user_message(EDIT_SUGGESTIONS[label])

    async def confirm_preview(self, preview: PreviewDocument | None = None) -> HandoffDraft:
        """
        Freeze the preview into the hand-off draft and store it.

        Raises:
            ConversationStateError: If there is no non-empty preview to confirm
        """
        conv = self.conversation
        preview = preview or conv.preview
        if conv.state is not ConversationState.PREVIEWING or preview is None:
            raise ConversationStateError("confirm", conv.state.value)
        if preview.is_empty:
            raise ConversationStateError("confirm an empty preview", conv.state.value)

        draft = build_handoff_draft(preview)
        payload = draft.to_payload()
        await self.draft_store.put(self.config.conversation.draft_key, payload)
        conv.draft = payload
        conv.suggestions = []
        conv.transition(ConversationState.CONFIRMED)
        conv.add("assistant", CONFIRMED_MESSAGE)
        logger.info(
            f"Conversation {conv.conversation_id} confirmed: {len(draft.questions)} question(s) handed off"
        )
        return draft

    def snapshot(self) -> ConversationSnapshot:
        """Read-only view of the conversation for UI surfaces."""
        conv = self.conversation
        return ConversationSnapshot(
            conversation_id=conv.conversation_id,
            state=conv.state.value,
            messages=[
                ChatMessage(id=m.id, role=m.role, text=m.text, attachments=m.attachments)
                for m in conv.messages
            ],
            follow_up_prompt=(
                conv.follow_up_prompt.model_dump(mode="json", by_alias=True) if conv.follow_up_prompt else None
            ),
            preview=conv.preview.model_dump(mode="json") if conv.preview else None,
            missing_optional=[field_label(path) for path in conv.missing_optional],
            suggestions=list(conv.suggestions),
            awaiting_response=conv.awaiting_response,
            requirements=serialize(conv.requirements) if conv.requirements else None,
        )

    # Turns

    async def _extraction_turn(self, text: str) -> str | None:
        conv = self.conversation
        seq = conv.begin_turn()
        conv.transition(ConversationState.EXTRACTING)
        try:
            extracted = await self._extraction.execute(text, conv.requirements)
            if not conv.is_current(seq):
                return self._discard(seq, "extraction")
            if not extracted.success:
                return self._generation_failed()
            conv.requirements = extracted.output

            follow_up = await self._follow_up.execute(conv.requirements, conv.previewed_requirements)
            if not conv.is_current(seq):
                return self._discard(seq, "follow-up")
            document = (
                follow_up.output
                if follow_up.success
                else build_follow_up(conv.requirements, conv.previewed_requirements)
            )
            conv.follow_up = document

            if document.has_questions:
                self._engine = FollowUpEngine(conv.requirements)
                question = self._engine.load(document)
                if question is not None:
                    conv.follow_up_prompt = question
                    conv.suggestions = []
                    conv.transition(ConversationState.FOLLOWING_UP)
                    reply = self._follow_up_reply(conv.requirements, format_follow_up(question))
                    conv.add("assistant", reply)
                    return reply

            self._engine = None
            conv.follow_up_prompt = None
            return await self._generate(seq)
        finally:
            conv.end_turn(seq)

    def _answer(self, text: str) -> str:
        conv = self.conversation
        seq = conv.begin_turn()
        try:
            question = self._engine.answer(text)
            if question is not None:
                conv.follow_up_prompt = question
                reply = format_follow_up(question)
                conv.add("assistant", reply)
                return reply

            conv.follow_up_prompt = None
            conv.missing_optional = list(self._engine.missing_optional)
            self._engine = None
            conv.follow_up = None
            conv.transition(ConversationState.PROPOSING)
            reply = self._proposal_reply(conv.missing_optional)
            conv.add("assistant", reply)
            return reply
        finally:
            conv.end_turn(seq)

    async def _preview_turn(self) -> str | None:
        conv = self.conversation
        seq = conv.begin_turn()
        try:
            return await self._generate(seq)
        finally:
            conv.end_turn(seq)

    async def _generate(self, seq: int) -> str | None:
        conv = self.conversation
        requirements = conv.requirements or Requirements.blank()
        result = await self._generation.execute(requirements)
        if not conv.is_current(seq):
            return self._discard(seq, "question generation")
        if not result.success:
            return self._generation_failed()

        method = self._generator.resolve_method(requirements)
        preview = build_preview(
            result.output,
            title=requirements.text("required.title") or DEFAULT_TITLE,
            survey_type=method.value,
            purpose=requirements.text("required.purpose"),
            audience=requirements.text("required.target_audience"),
        )
        conv.previewed_requirements = requirements.model_copy(deep=True)
        conv.preview = preview
        conv.suggestions = []
        conv.transition(ConversationState.PREVIEWING)

        if preview.is_empty:
            reply = preview.empty_message
        else:
            reply = "\n".join([
                "要件が揃いました。",
                f"タイトル: {preview.title}",
                f"モード: {METHOD_LABELS[method]}",
                f"設問数: {preview.question_count}問",
                "この内容で設問をプレビューします。",
            ])
        conv.add("assistant", reply)
        return reply

    # Helpers

    def _show_selected(self, requirements: Requirements, preview: PreviewDocument, reply: str) -> None:
        conv = self.conversation
        conv.begin_turn()
        conv.requirements = requirements
        conv.preview = preview
        conv.previewed_requirements = requirements.model_copy(deep=True)
        conv.follow_up = None
        conv.follow_up_prompt = None
        conv.suggestions = []
        self._engine = None
        conv.transition(ConversationState.PREVIEWING)
        conv.add("assistant", reply)
        conv.awaiting_response = False

    def _check_not_confirmed(self, operation: str) -> None:
        if self.conversation.state is ConversationState.CONFIRMED:
            raise ConversationStateError(operation, self.conversation.state.value)

    def _generation_failed(self) -> str:
        conv = self.conversation
        conv.transition(ConversationState.PREVIEWING if conv.preview else ConversationState.IDLE)
        conv.add("assistant", GENERATION_FAILED_MESSAGE)
        return GENERATION_FAILED_MESSAGE

    def _discard(self, seq: int, step: str) -> None:
        logger.info(
            f"Conversation {self.conversation.conversation_id}: discarded stale {step} result "
            f"from turn {seq} (current turn {self.conversation.turn_seq})"
        )
        return None

    @staticmethod
    def _follow_up_reply(requirements: Requirements, question_text: str) -> str:
        known = [
            f"{field_label(name)}「{requirements.text(f'required.{name}')}」"
            for name in REQUIRED_FIELDS
            if requirements.text(f"required.{name}")
        ]
        summary = f"{'、'.join(known)}として進めます。" if known else ""
        return f"承知しました。{summary}\n{question_text}"

    @staticmethod
    def _proposal_reply(missing_optional: list[str]) -> str:
        if not missing_optional:
            return "必須項目が揃いました。この内容でプレビューしますか？\nチャットで補足しますか？"
        labels = "\n".join(f"・{field_label(path)}" for path in missing_optional)
        return f"不足項目は下記ですが、この内容でプレビューしますか？\nチャットで補足しますか？\n{labels}"
