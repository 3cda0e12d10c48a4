# survey_assistant/authoring/catalog.py
"""
Static template catalog and past-survey list.

Both are plain in-memory data queried with simple predicate filters.
Selecting an entry produces a preview through the same builders the
conversation uses.
"""

import logging
from dataclasses import dataclass, field

from .lookups import METHOD_LABELS, SurveyMethod, audience_for_template
from .pipeline.extraction import fill_derived_fields
from .pipeline.generation import QuestionSeed, build_question_set
from .preview import PreviewDocument, build_preview
from .schemas import FieldValue, Requirements

logger = logging.getLogger(__name__)

SATISFACTION_LABELS = ("非常に不満", "不満", "普通", "満足", "非常に満足")
QUALITY_LABELS = ("非常に悪い", "悪い", "普通", "良い", "非常に良い")
AGE_OPTIONS = ("18-29歳", "30-39歳", "40-49歳", "50-59歳", "60歳以上")


@dataclass(frozen=True)
class SurveyTemplate:
    id: str
    title: str
    category: str
    description: str
    features: tuple[str, ...] = ()
    method: SurveyMethod = SurveyMethod.MAIN
    question_count: int = 5
    questions: tuple[QuestionSeed, ...] = ()


@dataclass(frozen=True)
class PastSurvey:
    id: str
    title: str
    audience: str
    updated_at: str
    description: str
    method: SurveyMethod = SurveyMethod.MAIN
    tags: tuple[str, ...] = field(default=())


SAMPLE_QUESTIONS: tuple[QuestionSeed, ...] = (
    QuestionSeed("サンプル質問：あなたの年齢を教えてください", "single-select", AGE_OPTIONS),
    QuestionSeed("サンプル質問：満足度を5段階で評価してください", "5-point-scale", SATISFACTION_LABELS),
)

TEMPLATES: tuple[SurveyTemplate, ...] = (
    SurveyTemplate(
        id="product-awareness",
        title="商品認知度調査",
        category="認知・広告調査",
        description="商品の認知度と認知経路、興味度を把握",
        features=("認知率", "認知経路", "興味度"),
        question_count=4,
        questions=(
            QuestionSeed("以下の商品をご存知ですか？", "single-select", ("知っている", "聞いたことがある", "知らない")),
            QuestionSeed(
                "どちらでこの商品を知りましたか？（複数選択可）",
                "multi-select",
                ("テレビCM", "インターネット広告", "店頭", "友人・知人", "SNS", "その他"),
            ),
            QuestionSeed(
                "この商品に対する興味度を教えてください",
                "5-point-scale",
                ("全く興味がない", "興味がない", "どちらでもない", "興味がある", "とても興味がある"),
            ),
            QuestionSeed("あなたの年齢を教えてください", "single-select", AGE_OPTIONS),
        ),
    ),
    SurveyTemplate(
        id="brand-awareness",
        title="ブランド認知調査",
        category="認知・広告調査",
        description="ブランド名を知っているか、他社比較での想起率",
        features=("純粋想起", "助成想起", "競合比較"),
        method=SurveyMethod.SCREENING,
        question_count=3,
    ),
    SurveyTemplate(
        id="customer-satisfaction",
        title="顧客満足度（CS調査）",
        category="満足度・評価調査",
        description="商品やサービスの満足度、改善点を確認",
        features=("総合満足度", "項目別評価", "改善要望"),
        question_count=6,
        questions=(
            QuestionSeed("当サービスの総合満足度を教えてください", "5-point-scale", SATISFACTION_LABELS),
            QuestionSeed("商品の品質についてはいかがですか？", "5-point-scale", QUALITY_LABELS),
            QuestionSeed("カスタマーサポートの対応はいかがでしたか？", "5-point-scale", QUALITY_LABELS),
            QuestionSeed("改善してほしい点があれば、具体的にお聞かせください", "free-text"),
            QuestionSeed(
                "今後も継続してご利用いただけますか？",
                "single-select",
                ("必ず利用する", "おそらく利用する", "わからない", "おそらく利用しない", "利用しない"),
            ),
            QuestionSeed("あなたの性別を教えてください", "single-select", ("男性", "女性", "その他", "回答しない")),
        ),
    ),
    SurveyTemplate(
        id="employee-satisfaction",
        title="従業員満足度（ES調査）",
        category="満足度・評価調査",
        description="社内制度や働きやすさを評価",
        features=("職場環境", "制度評価", "エンゲージメント"),
    ),
    SurveyTemplate(
        id="event-satisfaction",
        title="イベント参加満足度",
        category="満足度・評価調査",
        description="イベントやセミナー参加者の評価・改善要望",
        features=("内容評価", "運営評価", "改善提案"),
    ),
    SurveyTemplate(
        id="purchase-behavior",
        title="購買行動調査",
        category="利用実態・行動調査",
        description="購入場所、購入頻度、支払方法などを把握",
        features=("購入チャネル", "購入頻度", "決済方法"),
        questions=(
            QuestionSeed(
                "最も頻繁に購入する場所はどちらですか？",
                "single-select",
                ("実店舗（スーパー）", "実店舗（専門店）", "オンラインショップ", "コンビニ", "その他"),
            ),
            QuestionSeed(
                "購入頻度を教えてください",
                "single-select",
                ("週1回以上", "月2-3回", "月1回", "2-3ヶ月に1回", "半年に1回以下"),
            ),
            QuestionSeed(
                "購入時に重視する点は何ですか？（複数選択可）",
                "multi-select",
                ("価格", "品質", "ブランド", "利便性", "デザイン", "口コミ・評判"),
            ),
            QuestionSeed(
                "現在の価格についてどう思いますか？",
                "5-point-scale",
                ("高すぎる", "やや高い", "適正", "やや安い", "安すぎる"),
            ),
            QuestionSeed(
                "あなたの年収を教えてください",
                "single-select",
                ("300万円未満", "300-500万円", "500-700万円", "700-1000万円", "1000万円以上"),
            ),
        ),
    ),
    SurveyTemplate(
        id="product-usage",
        title="商品利用度調査",
        category="利用実態・行動調査",
        description="利用頻度や利用理由を把握",
        features=("利用頻度", "利用理由", "シーン把握"),
    ),
    SurveyTemplate(
        id="churn-analysis",
        title="解約・離脱理由調査",
        category="利用実態・行動調査",
        description="利用をやめた理由、代替手段を確認",
        features=("離脱理由", "代替選択", "改善要望"),
        method=SurveyMethod.SCREENING,
    ),
    SurveyTemplate(
        id="app-usage",
        title="アプリ利用調査",
        category="利用実態・行動調査",
        description="利便性や改善点を把握",
        features=("利用頻度", "UX評価", "改善要望"),
        question_count=6,
    ),
    SurveyTemplate(
        id="concept-evaluation",
        title="新商品コンセプト評価",
        category="新商品・サービス調査",
        description="アイデア段階での受容性や購入意向を測る",
        features=("コンセプト評価", "購入意向", "改善提案"),
        question_count=5,
        questions=(
            QuestionSeed(
                "このコンセプトの魅力度を教えてください",
                "5-point-scale",
                ("全く魅力的でない", "魅力的でない", "どちらでもない", "魅力的", "非常に魅力的"),
            ),
            QuestionSeed(
                "購入意向はいかがですか？",
                "5-point-scale",
                ("絶対に購入しない", "購入しない", "どちらでもない", "購入する", "絶対に購入する"),
            ),
            QuestionSeed(
                "このコンセプトの独自性をどう評価しますか？",
                "5-point-scale",
                ("全く独自性がない", "独自性がない", "どちらでもない", "独自性がある", "非常に独自性がある"),
            ),
            QuestionSeed("このコンセプトで気になる点や改善提案があれば教えてください", "free-text"),
            QuestionSeed(
                "あなたの職業を教えてください",
                "single-select",
                ("会社員", "公務員", "自営業", "学生", "主婦・主夫", "その他"),
            ),
        ),
    ),
    SurveyTemplate(
        id="price-sensitivity",
        title="価格受容性調査",
        category="新商品・サービス調査",
        description="許容価格帯や価格印象を把握",
        features=("PSM分析", "価格感度", "競合比較"),
    ),
    SurveyTemplate(
        id="brand-image-evaluation",
        title="ブランドイメージ評価",
        category="ブランド・イメージ調査",
        description="信頼性・先進性・親しみやすさなどを測定",
        features=("イメージ評価", "属性分析", "ポジショニング"),
    ),
    SurveyTemplate(
        id="nps-survey",
        title="NPS調査",
        category="満足度・評価調査",
        description="推奨度とその理由を把握",
        features=("推奨度", "推奨理由", "改善要望"),
        question_count=3,
    ),
)

PAST_SURVEYS: tuple[PastSurvey, ...] = (
    PastSurvey("sv-001", "2024年Q4 顧客満足度調査", "既存顧客", "2024-12-18", "満足度／改善点の定点観測"),
    PastSurvey(
        "sv-002", "ブランド認知度調査（秋）", "一般消費者", "2024-10-02", "認知経路と想起の把握", SurveyMethod.SCREENING
    ),
    PastSurvey("sv-003", "サービス体験評価（サポート）", "ユーザー", "2024-08-15", "サポート品質の評価"),
    PastSurvey("sv-004", "NPS調査（年次）", "会員", "2024-05-30", "推奨度と理由"),
)

PAST_SURVEY_QUESTIONS: tuple[QuestionSeed, ...] = (
    QuestionSeed("{title}の総合評価を教えてください", "5-point-scale", SATISFACTION_LABELS),
    QuestionSeed(
        "重視する点を教えてください（複数選択可）",
        "multi-select",
        ("品質", "価格", "使いやすさ", "サポート", "その他"),
    ),
    QuestionSeed("改善してほしい点があれば教えてください", "free-text"),
)


def _matches(keyword: str | None, *texts: str) -> bool:
    if not keyword:
        return True
    needle = keyword.strip().lower()
    return any(needle in text.lower() for text in texts)


def search_templates(keyword: str | None = None, category: str | None = None) -> list[SurveyTemplate]:
    """Templates whose title/description/features contain keyword, optionally within one category."""
    return [
        t
        for t in TEMPLATES
        if _matches(keyword, t.title, t.description, *t.features)
        and (not category or t.category == category)
    ]


def search_past_surveys(
    keyword: str | None = None,
    category: str | None = None,
    method: SurveyMethod | None = None,
    newest_first: bool = False,
) -> list[PastSurvey]:
    """Past surveys filtered by keyword, category text and method."""
    found = [
        s
        for s in PAST_SURVEYS
        if _matches(keyword, s.title, s.description)
        and _matches(category, s.title, s.description)
        and (method is None or s.method is method)
    ]
    if newest_first:
        found.sort(key=lambda s: s.updated_at, reverse=True)
    return found


def get_template(template_id: str) -> SurveyTemplate:
    """
    Raises:
        KeyError: If no template has this id
    """
    for template in TEMPLATES:
        if template.id == template_id:
            return template
    raise KeyError(f"Unknown template: {template_id}")


def get_past_survey(survey_id: str) -> PastSurvey:
    """
    Raises:
        KeyError: If no past survey has this id
    """
    for survey in PAST_SURVEYS:
        if survey.id == survey_id:
            return survey
    raise KeyError(f"Unknown past survey: {survey_id}")


def build_structured_prompt(template: SurveyTemplate) -> str:
    """Chat prompt that recreates a template through the conversation."""
    method_label = "事前抽出" if template.method is SurveyMethod.SCREENING else METHOD_LABELS[SurveyMethod.MAIN]
    return "\n".join([
        f"テーマ: {template.title}",
        f"設問数: {template.question_count}問",
        f"調査タイプ: {method_label}",
        f"対象者: {audience_for_template(template.id)}",
        f"目的: {template.description}",
    ])


def template_requirements(template: SurveyTemplate) -> Requirements:
    requirements = Requirements.blank()
    requirements.set("required.title", FieldValue.from_user(template.title))
    requirements.set("required.purpose", FieldValue.from_user(template.description))
    requirements.set("required.target_audience", FieldValue.from_user(audience_for_template(template.id)))
    requirements.set("optional.method", FieldValue.from_user(template.method.value))
    requirements.set("optional.question_count", FieldValue.from_user(str(template.question_count)))
    fill_derived_fields(requirements)
    return requirements


def past_survey_requirements(survey: PastSurvey) -> Requirements:
    requirements = Requirements.blank()
    requirements.set("required.title", FieldValue.from_user(survey.title))
    requirements.set("required.purpose", FieldValue.from_user(survey.description))
    requirements.set("required.target_audience", FieldValue.from_user(survey.audience))
    requirements.set("optional.method", FieldValue.from_user(survey.method.value))
    fill_derived_fields(requirements)
    return requirements


def template_preview(template: SurveyTemplate) -> PreviewDocument:
    """Preview of a template's own questions (sample questions if it has none)."""
    seeds = list(template.questions or SAMPLE_QUESTIONS)
    question_set = build_question_set(seeds, template.method, template.title)
    logger.info(f"Built template preview {template.id} with {len(seeds)} question(s)")
    return build_preview(
        question_set,
        title=template.title,
        survey_type=template.method.value,
        purpose=template.description,
        audience=audience_for_template(template.id),
        source="template",
        source_id=template.id,
    )


def past_survey_preview(survey: PastSurvey) -> PreviewDocument:
    question_set = build_question_set(list(PAST_SURVEY_QUESTIONS), survey.method, survey.title)
    return build_preview(
        question_set,
        title=survey.title,
        survey_type=survey.method.value,
        purpose=survey.description,
        audience=survey.audience,
        source="past_survey",
        source_id=survey.id,
    )
