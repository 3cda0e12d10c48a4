# survey_assistant/authoring/pipeline/generation.py
"""
Question generation: Requirements to QuestionSet.

This is the only stage allowed to fill in defaults (survey method and
question count). The RuleBasedQuestionGenerator is the local strategy and
always emits exactly the target number of questions.
"""

import logging
from dataclasses import dataclass

from survey_assistant.authoring.lookups import (
    ANALYSIS_PURPOSE_BY_FORMAT,
    SurveyMethod,
    classify_method,
    rationale_for,
)
from survey_assistant.authoring.errors import SchemaViolation
from survey_assistant.authoring.schemas import (
    END,
    BranchCondition,
    BranchRule,
    Choice,
    Constraints,
    FieldValue,
    MethodDecomposition,
    Question,
    QuestionSet,
    Requirements,
    Scale,
)
from survey_assistant.authoring.validation import DocumentShape, validate
from survey_assistant.config.schema import GenerationConfig

from .base import AuthoringStage, StageResult
from .extraction import clamp_count

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "アンケート調査"
OTHER_CHOICE = "その他（自由記述）"
GENERATION_DEFAULT_CONFIDENCE = 0.3


@dataclass(frozen=True)
class QuestionSeed:
    """Question template; `{title}` is replaced with the survey title."""

    text: str
    format: str
    options: tuple[str, ...] = ()


SCREENING_SEEDS: tuple[QuestionSeed, ...] = (
    QuestionSeed("本テーマに関する対象条件に当てはまりますか？", "single-select", ("当てはまる", "当てはまらない", "わからない")),
    QuestionSeed(
        "あなたの属性について教えてください（年代）",
        "single-select",
        ("18-24歳", "25-34歳", "35-44歳", "45-54歳", "55歳以上"),
    ),
    QuestionSeed("本テーマに関連する経験はありますか？", "single-select", ("現在経験中", "過去に経験あり", "未経験")),
)

MAIN_SEEDS: tuple[QuestionSeed, ...] = (
    QuestionSeed("{title}に関する現在の利用状況を教えてください。", "single-select", ("現在利用中", "過去に利用", "未利用")),
    QuestionSeed(
        "{title}に対する総合満足度を教えてください。",
        "5-point-scale",
        ("非常に不満", "不満", "普通", "満足", "非常に満足"),
    ),
    QuestionSeed(
        "{title}に関して重要視する点を教えてください。（複数選択可）",
        "multi-select",
        ("品質", "価格", "利便性", "サポート", "ブランド", OTHER_CHOICE),
    ),
    QuestionSeed("{title}の改善してほしい点があれば、具体的に教えてください。", "free-text"),
)

# Appended in this order, wrapping around, when the seeds run out.
SUPPLEMENTARY_PATTERNS: tuple[QuestionSeed, ...] = (
    QuestionSeed(
        "{title}の認知経路を教えてください。",
        "multi-select",
        ("SNS", "検索", "口コミ", "広告", "店頭", OTHER_CHOICE),
    ),
    QuestionSeed(
        "{title}の再利用意向を教えてください。",
        "single-select",
        ("必ず利用する", "おそらく利用する", "わからない", "あまり利用しない", "利用しない"),
    ),
    QuestionSeed(
        "{title}の推奨度を5段階で評価してください。",
        "5-point-scale",
        ("全く勧めない", "あまり勧めない", "どちらでもない", "勧める", "強く勧める"),
    ),
)

POLITE_REPLACEMENTS: tuple[tuple[str, str], ...] = (
    ("教えてください", "お聞かせください"),
    ("評価してください", "ご評価ください"),
    ("ありますか", "ございますか"),
)


@dataclass(frozen=True)
class Preferences:
    """Generation tweaks requested through edit suggestions."""

    add_other_choice: bool = False
    scale_to_single: bool = False
    polite: bool = False

    @classmethod
    def from_requirements(cls, requirements: Requirements) -> "Preferences":
        answer_format = requirements.text("optional.answer_format") or ""
        question_type = requirements.text("optional.question_type") or ""
        structure = requirements.text("optional.question_structure") or ""
        return cls(
            add_other_choice="その他" in answer_format,
            scale_to_single="単一選択" in question_type,
            polite="丁寧" in structure,
        )


def build_question(
    question_id: str, seed: QuestionSeed, title: str, preferences: Preferences = Preferences()
) -> Question:
    """Instantiate one seed as a Question, applying preferences."""
    text = seed.text.format(title=title)
    fmt = seed.format
    options = list(seed.options)

    if preferences.polite:
        for plain, polite in POLITE_REPLACEMENTS:
            text = text.replace(plain, polite)
    if preferences.scale_to_single and fmt == "5-point-scale":
        fmt = "single-select"
    if preferences.add_other_choice and fmt in ("single-select", "multi-select"):
        if not any("その他" in option for option in options):
            options.append(OTHER_CHOICE)

    kwargs: dict = {}
    if fmt in ("single-select", "multi-select"):
        kwargs["choices"] = [Choice(code=str(i), label=label) for i, label in enumerate(options, start=1)]
    elif fmt == "5-point-scale":
        labels = options or ["非常に不満", "不満", "普通", "満足", "非常に満足"]
        kwargs["scale"] = Scale(min=1, max=len(labels), labels=labels)

    return Question(
        id=question_id,
        text=text,
        format=fmt,
        analysis_purpose=ANALYSIS_PURPOSE_BY_FORMAT.get(fmt),
        **kwargs,
    )


def build_question_set(
    seeds: list[QuestionSeed],
    method: SurveyMethod,
    title: str,
    preferences: Preferences = Preferences(),
    config: GenerationConfig | None = None,
) -> QuestionSet:
    """
    Assemble a validated QuestionSet from seeds.

    Screening questions are numbered S1.., main questions Q1... A screening
    set whose first question has choices gets an eligibility branch: code 1
    continues, anything else ends the survey.
    """
    config = config or GenerationConfig()
    prefix = "S" if method is SurveyMethod.SCREENING else "Q"
    questions = [
        build_question(f"{prefix}{i}", seed, title, preferences) for i, seed in enumerate(seeds, start=1)
    ]

    branch_rules: list[BranchRule] = []
    if method is SurveyMethod.SCREENING and questions and questions[0].choices:
        gate = questions[0]
        next_id = questions[1].id if len(questions) > 1 else END
        branch_rules = [
            BranchRule(from_=gate.id, when=BranchCondition(code=gate.choices[0].code), go_to=next_id),
            BranchRule(from_=gate.id, else_=END),
        ]

    question_set = QuestionSet(
        method_decomposition=MethodDecomposition(screening="対象抽出", main="本調査"),
        screening_questions=questions if method is SurveyMethod.SCREENING else [],
        main_questions=questions if method is SurveyMethod.MAIN else [],
        question_rationale={q.id: rationale_for(q.text, q.format) for q in questions},
        branch_rules=branch_rules,
        constraints=Constraints(
            max_screening=config.max_screening,
            max_main=config.max_main,
            max_depth=config.max_depth,
        ),
    )
    return validate(question_set, DocumentShape.QUESTION_SET)


class RuleBasedQuestionGenerator:
    """
    Local question generator.

    Seeds come from the survey method; when there are fewer seeds than the
    target count, supplementary patterns are appended from index 0, wrapping
    around, and the list is cut to exactly the target count.
    """

    def __init__(
        self,
        config: GenerationConfig | None = None,
        screening_seeds: tuple[QuestionSeed, ...] = SCREENING_SEEDS,
        main_seeds: tuple[QuestionSeed, ...] = MAIN_SEEDS,
        patterns: tuple[QuestionSeed, ...] = SUPPLEMENTARY_PATTERNS,
    ):
        self.config = config or GenerationConfig()
        self._seeds = {SurveyMethod.SCREENING: screening_seeds, SurveyMethod.MAIN: main_seeds}
        self._patterns = patterns

    def resolve_method(self, requirements: Requirements) -> SurveyMethod:
        value = requirements.text("optional.method")
        if value:
            try:
                return SurveyMethod(value)
            except ValueError:
                method = classify_method(value)
                if method:
                    return method
        return SurveyMethod.MAIN

    def explicit_count(self, requirements: Requirements) -> int | None:
        value = requirements.text("optional.question_count") or ""
        digits = "".join(ch for ch in value if ch.isdigit())
        return clamp_count(int(digits)) if digits else None

    def resolve_count(self, requirements: Requirements, method: SurveyMethod | None = None) -> int:
        count = self.explicit_count(requirements)
        if count is not None:
            return count
        method = method or self.resolve_method(requirements)
        if method is SurveyMethod.SCREENING:
            return self.config.default_screening_count
        return self.config.default_main_count

    def with_defaults(self, requirements: Requirements) -> Requirements:
        """Copy of the document with method and count filled in for generation."""
        resolved = requirements.model_copy(deep=True)
        method = self.resolve_method(requirements)
        if resolved.get("optional.method").is_empty:
            resolved.set("optional.method", FieldValue.inferred(method.value, GENERATION_DEFAULT_CONFIDENCE))
        if resolved.get("optional.question_count").is_empty:
            count = str(self.resolve_count(requirements, method))
            resolved.set("optional.question_count", FieldValue.inferred(count, GENERATION_DEFAULT_CONFIDENCE))
        return resolved

    def select_seeds(self, method: SurveyMethod, count: int) -> list[QuestionSeed]:
        seeds = list(self._seeds[method])
        i = 0
        while len(seeds) < count:
            seeds.append(self._patterns[i % len(self._patterns)])
            i += 1
        return seeds[:count]

    def generate(self, requirements: Requirements) -> QuestionSet:
        method = self.resolve_method(requirements)
        count = self.resolve_count(requirements, method)
        title = requirements.text("required.title") or DEFAULT_TITLE
        seeds = self.select_seeds(method, count)
        logger.info(f"Rule-based generation: method={method.value}, count={count}")
        return build_question_set(
            seeds, method, title, Preferences.from_requirements(requirements), self.config
        )


class QuestionGenerationStage(AuthoringStage):
    """Generate questions via the adapter when it honours the target count, locally otherwise."""

    def __init__(self, adapter=None, generator: RuleBasedQuestionGenerator | None = None) -> None:
        super().__init__(adapter)
        self.generator = generator or RuleBasedQuestionGenerator()

    @property
    def name(self) -> str:
        return "question_generation"

    async def execute(self, requirements: Requirements) -> StageResult:
        """
        Returns:
            StageResult whose output is a validated QuestionSet with exactly
            the target number of questions. success=False only when neither
            the adapter nor the local generator produced a valid set.
        """
        try:
            requirements = validate(requirements, DocumentShape.REQUIREMENTS)
            resolved = self.generator.with_defaults(requirements)
            target = self.generator.resolve_count(requirements)
        except Exception as e:
            return self._failed(e)

        question_set, remote_error = await self._try_remote(
            lambda adapter: self._remote(adapter, resolved, target)
        )
        strategy = "remote" if question_set is not None else "local"

        if question_set is None:
            try:
                question_set = self.generator.generate(requirements)
            except Exception as e:
                return self._failed(e, remote_error)

        logger.info(
            f"Stage '{self.name}': {len(question_set.questions)} question(s) via {strategy}"
        )
        return StageResult(
            stage_name=self.name,
            success=True,
            output=question_set,
            strategy=strategy,
            remote_error=remote_error,
        )

    @staticmethod
    async def _remote(adapter, requirements: Requirements, target: int) -> QuestionSet:
        question_set = await adapter.generate_questions(requirements)
        total = len(question_set.questions)
        if total != target:
            raise SchemaViolation("questions", f"exactly {target} questions", f"got {total}")
        return question_set
