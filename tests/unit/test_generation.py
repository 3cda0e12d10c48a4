# tests/unit/test_generation.py
"""Unit tests for local question generation and the generation stage."""

import pytest

from survey_assistant.authoring.adapter import GenerationAdapter, MockGenerationAdapter
from survey_assistant.authoring.errors import GenerationFailure
from survey_assistant.authoring.lookups import (
    RATIONALE_BY_FORMAT,
    SurveyMethod,
    rationale_for,
)
from survey_assistant.authoring.pipeline import QuestionGenerationStage, RuleBasedQuestionGenerator
from survey_assistant.authoring.pipeline.generation import (
    MAIN_SEEDS,
    OTHER_CHOICE,
    SUPPLEMENTARY_PATTERNS,
    QuestionSeed,
)
from survey_assistant.authoring.schemas import END, FieldValue, Requirements
from survey_assistant.config.schema import GenerationConfig

THREE_SEEDS = (
    QuestionSeed("{title}をご存じですか？", "single-select", ("知っている", "知らない")),
    QuestionSeed("{title}の満足度を教えてください。", "5-point-scale"),
    QuestionSeed("{title}への要望を教えてください。", "free-text"),
)


def _requirements(**optional) -> Requirements:
    requirements = Requirements.blank()
    requirements.set("required.title", FieldValue.from_user("テスト調査"))
    for name, value in optional.items():
        requirements.set(f"optional.{name}", FieldValue.from_user(value))
    return requirements


class FailingAdapter(GenerationAdapter):
    @property
    def name(self) -> str:
        return "failing"

    async def extract_requirements(self, free_text):
        raise GenerationFailure("extract_requirements", "offline")

    async def generate_questions(self, requirements):
        raise GenerationFailure("generate_questions", "offline")

    async def generate_follow_ups(self, requirements):
        raise GenerationFailure("generate_follow_ups", "offline")


class TestSeedSelection:
    """Seeds padded with supplementary patterns."""

    def test_three_seeds_count_five(self):
        generator = RuleBasedQuestionGenerator(main_seeds=THREE_SEEDS)

        seeds = generator.select_seeds(SurveyMethod.MAIN, 5)

        assert seeds[:3] == list(THREE_SEEDS)
        assert seeds[3:] == [SUPPLEMENTARY_PATTERNS[0], SUPPLEMENTARY_PATTERNS[1]]

    def test_three_seeds_count_five_questions(self):
        generator = RuleBasedQuestionGenerator(main_seeds=THREE_SEEDS)

        question_set = generator.generate(_requirements(question_count="5"))

        texts = [q.text for q in question_set.main_questions]
        assert len(texts) == 5
        assert texts[3] == SUPPLEMENTARY_PATTERNS[0].text.format(title="テスト調査")
        assert texts[4] == SUPPLEMENTARY_PATTERNS[1].text.format(title="テスト調査")

    def test_patterns_wrap_around(self):
        generator = RuleBasedQuestionGenerator()
        seeds = generator.select_seeds(SurveyMethod.MAIN, len(MAIN_SEEDS) + 5)
        assert seeds[len(MAIN_SEEDS):] == [*SUPPLEMENTARY_PATTERNS, *SUPPLEMENTARY_PATTERNS[:2]]

    def test_seeds_truncated(self):
        generator = RuleBasedQuestionGenerator()
        assert generator.select_seeds(SurveyMethod.MAIN, 2) == list(MAIN_SEEDS[:2])


class TestExactCount:
    """Generated sets always hold exactly the target count."""

    @pytest.mark.parametrize("count", list(range(1, 21)))
    @pytest.mark.parametrize("method", ["main", "screening"])
    def test_exact(self, count, method):
        question_set = RuleBasedQuestionGenerator().generate(
            _requirements(method=method, question_count=str(count))
        )
        assert len(question_set.questions) == count

    def test_ids(self):
        generator = RuleBasedQuestionGenerator()
        main = generator.generate(_requirements(question_count="3"))
        screening = generator.generate(_requirements(method="screening", question_count="3"))

        assert main.question_ids == ["Q1", "Q2", "Q3"]
        assert main.screening_questions == []
        assert screening.question_ids == ["S1", "S2", "S3"]
        assert screening.main_questions == []


class TestDefaults:
    """Generation is the only place method and count get defaults."""

    def test_blank_document_defaults_to_five_main(self):
        question_set = RuleBasedQuestionGenerator().generate(Requirements.blank())
        assert len(question_set.main_questions) == 5
        assert question_set.main_questions[0].text.startswith("アンケート調査")

    def test_screening_defaults_to_three(self):
        question_set = RuleBasedQuestionGenerator().generate(_requirements(method="screening"))
        assert len(question_set.screening_questions) == 3

    def test_configured_defaults(self):
        generator = RuleBasedQuestionGenerator(GenerationConfig(default_main_count=2))
        assert len(generator.generate(Requirements.blank()).questions) == 2

    def test_method_label_text_is_understood(self):
        generator = RuleBasedQuestionGenerator()
        assert generator.resolve_method(_requirements(method="スクリーニング")) is SurveyMethod.SCREENING
        assert generator.resolve_method(_requirements(method="不明")) is SurveyMethod.MAIN

    def test_with_defaults_copies(self):
        original = Requirements.blank()
        resolved = RuleBasedQuestionGenerator().with_defaults(original)

        assert resolved.get("optional.method") == FieldValue.inferred("main", 0.3)
        assert resolved.get("optional.question_count") == FieldValue.inferred("5", 0.3)
        assert original.get("optional.method").is_empty

    def test_with_defaults_keeps_user_values(self):
        resolved = RuleBasedQuestionGenerator().with_defaults(_requirements(question_count="8"))
        assert resolved.get("optional.question_count") == FieldValue.from_user("8")


class TestBranchRules:
    """Screening eligibility branch."""

    def test_gate_continues_to_next_question(self):
        question_set = RuleBasedQuestionGenerator().generate(_requirements(method="screening", question_count="3"))

        gate, fallback = question_set.branch_rules
        assert gate.from_ == "S1"
        assert gate.when.code == "1"
        assert gate.go_to == "S2"
        assert fallback.else_ == END

    def test_single_question_ends(self):
        question_set = RuleBasedQuestionGenerator().generate(_requirements(method="screening", question_count="1"))
        assert question_set.branch_rules[0].go_to == END

    def test_main_has_no_rules(self):
        assert RuleBasedQuestionGenerator().generate(_requirements()).branch_rules == []


class TestRationale:
    """Designer-facing rationale per question."""

    def test_keyword_rules(self):
        question_set = RuleBasedQuestionGenerator().generate(Requirements.blank())
        rationale = question_set.question_rationale

        assert set(rationale) == set(question_set.question_ids)
        assert "利用状況" in rationale["Q1"]
        assert "KPI" in rationale["Q2"]
        assert "自由記述" in rationale["Q4"]

    def test_format_fallback(self):
        assert rationale_for("好きな色", "multi-select") == RATIONALE_BY_FORMAT["multi-select"]
        assert rationale_for("", "unknown") == RATIONALE_BY_FORMAT["free-text"]

    def test_analysis_purpose_by_format(self):
        question = RuleBasedQuestionGenerator().generate(Requirements.blank()).main_questions[1]
        assert question.format == "5-point-scale"
        assert question.analysis_purpose == "平均・Top2Boxの把握"


class TestPreferences:
    """Edit-suggestion preferences applied to generated questions."""

    def test_other_choice_added_once(self):
        question_set = RuleBasedQuestionGenerator().generate(_requirements(answer_format="その他（自由記述）を追加"))
        usage, _, important = question_set.main_questions[:3]

        assert usage.choices[-1].label == OTHER_CHOICE
        assert [c.label for c in important.choices].count(OTHER_CHOICE) == 1

    def test_scale_to_single(self):
        question_set = RuleBasedQuestionGenerator().generate(_requirements(question_type="単一選択"))
        satisfaction = question_set.main_questions[1]
        assert satisfaction.format == "single-select"
        assert len(satisfaction.choices) == 5

    def test_polite(self):
        question_set = RuleBasedQuestionGenerator().generate(_requirements(question_structure="丁寧語"))
        assert all("教えてください" not in q.text for q in question_set.questions)
        assert "お聞かせください" in question_set.main_questions[0].text


class TestQuestionGenerationStage:
    """Remote-then-local generation with the count guarantee."""

    @pytest.mark.asyncio
    async def test_local(self):
        result = await QuestionGenerationStage().execute(_requirements(question_count="3"))

        assert result.success is True
        assert result.strategy == "local"
        assert len(result.output.questions) == 3

    @pytest.mark.asyncio
    async def test_remote_accepted_when_count_matches(self):
        adapter = MockGenerationAdapter()
        result = await QuestionGenerationStage(adapter).execute(_requirements(question_count="2"))

        assert result.strategy == "remote"
        assert result.output.question_ids == ["S1", "Q1"]

    @pytest.mark.asyncio
    async def test_remote_rejected_on_count_mismatch(self):
        adapter = MockGenerationAdapter()
        result = await QuestionGenerationStage(adapter).execute(_requirements(question_count="5"))

        assert adapter.calls == ["generate_questions"]
        assert result.strategy == "local"
        assert "got 2" in result.remote_error
        assert len(result.output.questions) == 5

    @pytest.mark.asyncio
    async def test_adapter_failure_falls_back(self):
        result = await QuestionGenerationStage(FailingAdapter()).execute(_requirements(question_count="4"))

        assert result.success is True
        assert result.fell_back
        assert len(result.output.questions) == 4

    @pytest.mark.asyncio
    async def test_invalid_input_reported(self):
        result = await QuestionGenerationStage().execute({"required": {}})

        assert result.success is False
        assert result.output is None
        assert result.error
