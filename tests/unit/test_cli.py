# tests/unit/test_cli.py
"""
CLI unit tests.

Tests each command via typer's CliRunner. The chat command gets an
in-memory default config so nothing touches the user's config directory.
"""

import json
from unittest.mock import patch

from typer.testing import CliRunner

from survey_assistant.cli import app
from survey_assistant.config.schema import SurveyAssistantConfig

runner = CliRunner()


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestHelp:
    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert "Conversational survey authoring" in result.output

    def test_help_flag(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("chat", "extract", "generate", "templates", "serve"):
            assert command in result.output


class TestExtract:
    def test_extract_prints_requirements_and_follow_up(self):
        result = runner.invoke(app, ["extract", "従業員満足度を知りたい"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["strategy"] == "local"
        assert data["requirements"]["required"]["title"]["value"] == "従業員満足度（ES）調査"
        paths = [q["path"] for q in data["followUp"]["additionalQuestions"]]
        assert paths == ["required.target_audience", "required.analysis_audience"]

    def test_extract_with_mock_adapter(self):
        result = runner.invoke(app, ["extract", "顧客満足度について調べたい", "--mock"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["strategy"] == "remote"


class TestGenerate:
    def test_generate_json(self):
        result = runner.invoke(app, ["generate", "テーマ: NPS調査\n設問数: 3問", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert [q["id"] for q in data["mainQuestions"]] == ["Q1", "Q2", "Q3"]

    def test_generate_table(self):
        result = runner.invoke(app, ["generate", "テーマ: NPS調査\n設問数: 2問"])

        assert result.exit_code == 0
        assert "NPS調査" in result.output
        assert "Q2" in result.output


class TestTemplates:
    def test_templates(self):
        result = runner.invoke(app, ["templates"])
        assert result.exit_code == 0
        assert "product-awareness" in result.output
        assert "nps-survey" in result.output

    def test_templates_no_match(self):
        result = runner.invoke(app, ["templates", "-k", "存在しないキーワード"])
        assert result.exit_code == 0
        assert "No templates found." in result.output

    def test_past_surveys(self):
        result = runner.invoke(app, ["templates", "--past", "-k", "NPS"])
        assert result.exit_code == 0
        assert "sv-004" in result.output
        assert "sv-001" not in result.output


class TestChat:
    @patch("survey_assistant.config.loader.load_config", return_value=SurveyAssistantConfig())
    def test_chat_to_confirm(self, mock_config):
        """A one-line request goes to preview, then confirm prints the draft."""
        result = runner.invoke(app, ["chat"], input="NPS調査を既存顧客に3問で\nconfirm\n")

        assert result.exit_code == 0
        assert "要件が揃いました" in result.output
        assert '"questions"' in result.output
        mock_config.assert_called_once()

    @patch("survey_assistant.config.loader.load_config", return_value=SurveyAssistantConfig())
    def test_chat_follow_up_and_exit(self, mock_config):
        result = runner.invoke(app, ["chat"], input="従業員満足度を知りたい\n既存顧客\nexit\n")

        assert result.exit_code == 0
        assert "どなたを対象に調査しますか" in result.output
        assert "分析の対象とする回答者" in result.output

    @patch("survey_assistant.config.loader.load_config", return_value=SurveyAssistantConfig())
    def test_chat_edit_suggestion(self, mock_config):
        result = runner.invoke(
            app, ["chat"], input="NPS調査を既存顧客に3問で\nedit\n設問数を+2\nexit\n"
        )

        assert result.exit_code == 0
        assert "どのようなカスタマイズをしますか" in result.output
        assert "設問数: 5問" in result.output

    @patch("survey_assistant.config.loader.load_config", return_value=SurveyAssistantConfig())
    def test_chat_eof_cancels(self, mock_config):
        result = runner.invoke(app, ["chat"], input="")
        assert result.exit_code == 130
