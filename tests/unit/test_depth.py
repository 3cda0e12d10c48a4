# tests/unit/test_depth.py
"""Unit tests for the follow-up (depth) engine."""

import pytest

from survey_assistant.authoring.adapter import MockGenerationAdapter
from survey_assistant.authoring.pipeline import (
    DepthState,
    FollowUpEngine,
    FollowUpStage,
    build_follow_up,
    format_follow_up,
    scan,
)
from survey_assistant.authoring.schemas import (
    OPTIONAL_FIELDS,
    FieldValue,
    FollowUp,
    FollowUpQuestion,
    Requirements,
)


def _filled(*names: str) -> Requirements:
    requirements = Requirements.blank()
    for name in names:
        requirements.set(f"required.{name}", FieldValue.from_user(f"{name}-value"))
    return requirements


def _complete() -> Requirements:
    return _filled("title", "purpose", "target_audience", "analysis_audience")


class TestScan:
    """Missing-field detection."""

    def test_blank_document(self):
        result = scan(Requirements.blank())
        assert result.missing_required == [
            "required.title",
            "required.purpose",
            "required.target_audience",
            "required.analysis_audience",
        ]
        assert result.missing_optional == [f"optional.{n}" for n in OPTIONAL_FIELDS]

    def test_optional_only_counts_when_required_complete(self):
        assert scan(_filled("title")).missing_fields[0] == "required.purpose"
        assert scan(_complete()).missing_fields == [f"optional.{n}" for n in OPTIONAL_FIELDS]


class TestBuildFollowUp:
    """Local FollowUp documents."""

    def test_one_question_per_missing_required_field(self):
        follow_up = build_follow_up(Requirements.blank())

        assert [q.id for q in follow_up.additional_questions] == ["F1", "F2", "F3", "F4"]
        assert [q.path for q in follow_up.additional_questions] == follow_up.missing_fields
        assert follow_up.field_mapping["required.target_audience"] == "F3"
        assert follow_up.next_action == "confirm"
        assert follow_up.deferred_fields == []

    def test_priorities_and_dependencies(self):
        questions = build_follow_up(Requirements.blank()).additional_questions

        assert [q.priority for q in questions] == ["high", "high", "high", "medium"]
        assert questions[3].depends_on == ["F3"]
        assert questions[2].expected_format == "enum"
        assert questions[2].options == ["従業員", "既存顧客", "一般対象者"]

    def test_dependency_dropped_when_target_known(self):
        follow_up = build_follow_up(_filled("title", "purpose", "target_audience"))
        assert len(follow_up.additional_questions) == 1
        assert follow_up.additional_questions[0].depends_on == []

    def test_display_text_names_fields(self):
        follow_up = build_follow_up(_filled("title", "purpose", "analysis_audience"))
        assert "調査対象者条件" in follow_up.display_text

    def test_complete_document(self):
        follow_up = build_follow_up(_complete())

        assert not follow_up.has_questions
        assert follow_up.next_action == "proceed"
        assert follow_up.deferred_fields == follow_up.missing_fields

    def test_regenerate_only_when_previewed_requirements_changed(self):
        previewed = _complete()
        assert build_follow_up(_complete(), previewed).next_action == "proceed"

        changed = _complete()
        changed.set("required.title", FieldValue.from_user("別の調査"))
        assert build_follow_up(changed, previewed).next_action == "regenerate"

    def test_source_change_alone_is_not_a_change(self):
        previewed = _complete()
        current = _complete()
        current.set("required.title", FieldValue.inferred(previewed.text("required.title"), 0.6))
        assert build_follow_up(current, previewed).next_action == "proceed"


class TestFormatFollowUp:
    def test_candidates_shown(self):
        question = build_follow_up(_filled("title", "purpose")).additional_questions[0]
        assert format_follow_up(question) == (
            "調査対象者条件：どなたを対象に調査しますか？\n候補: 既存顧客 / 従業員"
        )

    def test_no_candidates(self):
        question = FollowUpQuestion(
            id="F1", target_field="purpose", path="required.purpose", question_text="目的は？"
        )
        assert format_follow_up(question) == "調査目的：目的は？"


class TestFollowUpEngine:
    """One-question-at-a-time answering loop."""

    def test_load_presents_first_question(self):
        requirements = Requirements.blank()
        engine = FollowUpEngine(requirements)

        question = engine.load(build_follow_up(requirements))

        assert question.path == "required.title"
        assert engine.state is DepthState.ANSWERING
        assert engine.pending == 4

    def test_answers_resolve_after_k_turns(self):
        requirements = _filled("title", "purpose")
        engine = FollowUpEngine(requirements)
        engine.load(build_follow_up(requirements))

        assert engine.answer("既存顧客").path == "required.analysis_audience"
        assert engine.answer("  直近1年の購入者 ") is None

        assert engine.state is DepthState.RESOLVED
        assert engine.answered == ["required.target_audience", "required.analysis_audience"]
        assert scan(requirements).missing_required == []

    def test_answers_written_verbatim(self):
        requirements = _filled("title", "purpose", "target_audience")
        engine = FollowUpEngine(requirements)
        engine.load(build_follow_up(requirements))

        engine.answer("  直近1年の購入者 ")

        assert requirements.get("required.analysis_audience") == FieldValue.from_user("  直近1年の購入者 ")

    def test_optional_gaps_reported_on_resolve(self):
        requirements = _filled("title", "purpose", "target_audience")
        engine = FollowUpEngine(requirements)
        engine.load(build_follow_up(requirements))
        engine.answer("全員")

        assert engine.missing_optional == [f"optional.{n}" for n in OPTIONAL_FIELDS]

    def test_never_asks_same_path_twice(self):
        requirements = Requirements.blank()
        duplicate = FollowUp(
            missing_fields=["required.title"],
            additional_questions=[
                FollowUpQuestion(id="A", target_field="title", path="required.title", question_text="?", priority="high"),
                FollowUpQuestion(id="B", target_field="title", path="required.title", question_text="??", priority="high"),
            ],
        )
        engine = FollowUpEngine(requirements)

        assert engine.load(duplicate).id == "A"
        assert engine.answer("顧客調査") is None
        assert engine.state is DepthState.RESOLVED

    def test_optional_questions_are_skipped(self):
        follow_up = FollowUp(
            missing_fields=["optional.method"],
            additional_questions=[
                FollowUpQuestion(id="F1", target_field="method", path="optional.method", question_text="?")
            ],
        )
        engine = FollowUpEngine(_complete())

        assert engine.load(follow_up) is None
        assert engine.state is DepthState.RESOLVED

    def test_load_twice_rejected(self):
        engine = FollowUpEngine(Requirements.blank())
        engine.load(build_follow_up(Requirements.blank()))
        with pytest.raises(RuntimeError):
            engine.load(build_follow_up(Requirements.blank()))

    def test_answer_without_question_rejected(self):
        engine = FollowUpEngine(_complete())
        engine.load(build_follow_up(_complete()))
        with pytest.raises(RuntimeError):
            engine.answer("x")

    def test_blank_answer_rejected(self):
        requirements = Requirements.blank()
        engine = FollowUpEngine(requirements)
        engine.load(build_follow_up(requirements))

        with pytest.raises(ValueError):
            engine.answer("   ")
        assert engine.state is DepthState.ANSWERING
        assert requirements.get("required.title").is_empty


class TestFollowUpStage:
    """Remote-then-local FollowUp generation."""

    @pytest.mark.asyncio
    async def test_local(self):
        result = await FollowUpStage().execute(Requirements.blank())

        assert result.success is True
        assert result.strategy == "local"
        assert len(result.output.additional_questions) == 4

    @pytest.mark.asyncio
    async def test_remote_accepted_when_it_covers_every_gap(self):
        adapter = MockGenerationAdapter()
        result = await FollowUpStage(adapter).execute(_filled("title"))

        assert result.strategy == "remote"
        assert [q.path for q in result.output.additional_questions] == [
            "required.purpose",
            "required.target_audience",
            "required.analysis_audience",
        ]

    @pytest.mark.asyncio
    async def test_remote_rejected_when_gaps_differ(self):
        partial = {
            "missingFields": ["required.title"],
            "additionalQuestions": [
                {"id": "Q1", "targetField": "title", "path": "required.title", "questionText": "?", "priority": "high"}
            ],
        }
        adapter = MockGenerationAdapter(responses={"generate_follow_ups": partial})
        result = await FollowUpStage(adapter).execute(Requirements.blank())

        assert result.strategy == "local"
        assert result.remote_error
        assert len(result.output.additional_questions) == 4

    @pytest.mark.asyncio
    async def test_adapter_not_called_when_nothing_missing(self):
        adapter = MockGenerationAdapter()
        previewed = _filled("title", "purpose", "target_audience")
        result = await FollowUpStage(adapter).execute(_complete(), previewed)

        assert adapter.calls == []
        assert result.output.next_action == "regenerate"
