# survey_assistant/authoring/lookups.py
"""
Keyword lookup tables shared by extraction, follow-up and generation.

Each concern has exactly one table here; callers never re-implement
their own variant.
"""

import re
from dataclasses import dataclass
from enum import Enum


class AudienceCategory(Enum):
    """Closed set of audience categories recognised from free text."""

    EMPLOYEE = "従業員"
    CUSTOMER = "既存顧客"
    GENERAL = "一般対象者"


class SurveyMethod(Enum):
    SCREENING = "screening"
    MAIN = "main"


# Precedence is list order: employee, then customer, then general.
AUDIENCE_RULES: list[tuple[re.Pattern, AudienceCategory]] = [
    (re.compile(r"従業員|社員|ES"), AudienceCategory.EMPLOYEE),
    (re.compile(r"顧客|ユーザー|会員|CS"), AudienceCategory.CUSTOMER),
    (re.compile(r"一般|消費者"), AudienceCategory.GENERAL),
]

METHOD_RULES: list[tuple[re.Pattern, SurveyMethod]] = [
    (re.compile(r"本調査|main|じっくり", re.IGNORECASE), SurveyMethod.MAIN),
    (re.compile(r"事前調査|事前抽出|スクリーニング|screening|対象.*(絞|しぼ)", re.IGNORECASE), SurveyMethod.SCREENING),
]

METHOD_LABELS: dict[SurveyMethod, str] = {
    SurveyMethod.SCREENING: "対象抽出（スクリーニング）",
    SurveyMethod.MAIN: "本調査",
}


@dataclass(frozen=True)
class ThemeRule:
    """Whole-text theme keyword and what it implies."""

    key: str
    pattern: re.Pattern
    title: str
    purpose: str


THEME_RULES: list[ThemeRule] = [
    ThemeRule(
        key="employee_satisfaction",
        pattern=re.compile(r"従業員満足|ES"),
        title="従業員満足度（ES）調査",
        purpose="従業員の満足度と職場の改善点を把握する",
    ),
    ThemeRule(
        key="customer_satisfaction",
        pattern=re.compile(r"顧客満足|CS"),
        title="顧客満足度（CS）調査",
        purpose="顧客の満足度と改善点を把握する",
    ),
    ThemeRule(
        key="nps",
        pattern=re.compile(r"NPS", re.IGNORECASE),
        title="NPS調査",
        purpose="推奨意向とその理由を把握する",
    ),
    ThemeRule(
        key="brand_awareness",
        pattern=re.compile(r"ブランド認知|認知度"),
        title="ブランド認知度調査",
        purpose="ブランドの認知状況と認知経路を把握する",
    ),
]

# Ordered, first match wins.
RATIONALE_RULES: list[tuple[re.Pattern, str]] = [
    (re.compile(r"満足|満足度"), "KPIの把握が必要なので、5件法でTop2Box/平均を確認する設問を作成"),
    (re.compile(r"推奨|薦め|NPS"), "口コミ意向を見たいので、推奨度を段階評価で測る設問を作成"),
    (re.compile(r"購入意向|購入|利用意向"), "需要の強さを判断したいので、意向の段階評価設問を作成"),
    (re.compile(r"魅力|魅力度"), "第一印象の強さを把握したいので、魅力度の段階評価設問を作成"),
    (re.compile(r"独自性|差別化"), "差別化の認識を確認したいので、独自性の段階評価設問を作成"),
    (re.compile(r"認知|知って"), "到達状況を把握したいので、認知有無の単一選択設問を作成"),
    (re.compile(r"利用状況|頻度"), "セグメント分けのため、現状把握（利用状況/頻度）の単一選択設問を作成"),
    (re.compile(r"価格|PSM|高い|安い"), "価格印象を確認したいので、価格に関する段階評価/選択設問を作成"),
    (re.compile(r"改善|理由|自由記述|ご自由に"), "具体策を集めたいので、自由記述で理由/改善案を収集する設問を作成"),
    (re.compile(r"年齢|性別|職業|年収"), "分析軸の把握が必要なので、基本属性の単一選択設問を作成"),
]

RATIONALE_BY_FORMAT: dict[str, str] = {
    "single-select": "判断の明確化が必要なので、単一選択の設問を作成",
    "multi-select": "重視点を網羅把握したいので、複数選択の設問を作成",
    "5-point-scale": "強さの度合いを把握したいので、段階評価の設問を作成",
    "free-text": "具体的な声を集めたいので、自由記述の設問を作成",
    "numeric": "具体的な声を集めたいので、自由記述の設問を作成",
}

DISPLAY_CATEGORIES: tuple[str, ...] = ("基本事実", "態度・意識", "改善要望", "認知経路")

ANALYSIS_PURPOSE_BY_FORMAT: dict[str, str] = {
    "single-select": "構成比の把握（クロス集計の軸）",
    "multi-select": "選択率の把握",
    "5-point-scale": "平均・Top2Boxの把握",
    "free-text": "自由回答の分類・要因把握",
    "numeric": "平均・分布の把握",
}

DEFAULT_TEMPLATE_AUDIENCE = "一般対象者"

AUDIENCE_BY_TEMPLATE: dict[str, str] = {
    "customer-satisfaction": "既存顧客",
    "employee-satisfaction": "全従業員",
    "product-usage": "商品利用経験者",
    "brand-image-evaluation": "一般消費者",
    "event-satisfaction": "イベント参加者",
    "concept-evaluation": "一般消費者",
    "app-usage": "アプリ利用者",
    "ad-effectiveness": "広告接触者",
    "nps-survey": "顧客",
    "churn-analysis": "解約者",
    "product-awareness": "一般消費者（18-65歳）",
    "purchase-behavior": "商品購入経験者",
}


def classify_audience(text: str) -> AudienceCategory | None:
    for pattern, category in AUDIENCE_RULES:
        if pattern.search(text):
            return category
    return None


def classify_method(text: str) -> SurveyMethod | None:
    for pattern, method in METHOD_RULES:
        if pattern.search(text):
            return method
    return None


def match_theme(text: str) -> tuple[ThemeRule, re.Match] | None:
    """First theme rule found in text, with the match that evidenced it."""
    for rule in THEME_RULES:
        if m := rule.pattern.search(text):
            return rule, m
    return None


def rationale_for(text: str, fmt: str) -> str:
    """Designer-facing reason for a question, by keyword then by answer format."""
    for pattern, rationale in RATIONALE_RULES:
        if pattern.search(text or ""):
            return rationale
    return RATIONALE_BY_FORMAT.get(fmt, RATIONALE_BY_FORMAT["free-text"])


def display_category(index: int) -> str:
    return DISPLAY_CATEGORIES[index % len(DISPLAY_CATEGORIES)]


def audience_for_template(template_id: str) -> str:
    return AUDIENCE_BY_TEMPLATE.get(template_id, DEFAULT_TEMPLATE_AUDIENCE)
