"""
Tests for the Claude AI-powered feedback analyzer.

Tests cover:
- Feedback analysis parsing and taxonomy validation
- Error handling for malformed responses and API failures
- Title suggestion and the deterministic fallback title
- Generic title detection
"""

import pytest
import json
import anthropic
import httpx
from unittest.mock import MagicMock, patch

from app.schemas.ai import FeedbackAnalysis
from app.services.analyzer import (
    FeedbackAnalyzer,
    compact,
    fallback_ticket_title,
    form_value_by_label,
    get_analyzer,
    is_generic_title,
)


def claude_response(text: str) -> MagicMock:
    response = MagicMock()
    response.content = [MagicMock(text=text)]
    return response


def api_error() -> anthropic.APIError:
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    return anthropic.APIConnectionError(request=request)


@pytest.mark.analyzer
class TestAnalyzeFeedback:
    """Test suite for FeedbackAnalyzer.analyze_feedback."""

    def test_analyzer_initialization(self):
        analyzer = FeedbackAnalyzer(api_key="test_api_key_12345")

        assert analyzer.client is not None
        assert analyzer.MODEL == "claude-sonnet-4-5-20250514"
        assert analyzer.MAX_TOKENS_ANALYSIS == 512

    def test_analyze_success(self):
        analyzer = FeedbackAnalyzer(api_key="test_key")
        payload = {
            "suggestedCategory": "facility-amenities",
            "suggestedPriority": "high",
            "suggestedDepartment": "facilities",
            "sentiment": "negative",
            "sentimentScore": 18,
            "tags": ["showers", " hot water "],
            "suggestedTitle": "No hot water in the women's showers",
        }

        with patch.object(analyzer.client.messages, "create") as mock_create:
            mock_create.return_value = claude_response(json.dumps(payload))

            result = analyzer.analyze_feedback("The showers have had no hot water all week.")

            assert result.suggested_category == "facility-amenities"
            assert result.suggested_priority == "high"
            assert result.suggested_department == "facilities"
            assert result.sentiment == "negative"
            assert result.sentiment_score == 18
            assert result.tags == ["showers", "hot water"]
            assert result.suggested_title == "No hot water in the women's showers"
            mock_create.assert_called_once()

    def test_code_fenced_json(self):
        analyzer = FeedbackAnalyzer(api_key="test_key")
        text = '```json\n{"suggestedCategory": "instructor-related", "sentiment": "positive"}\n```'

        with patch.object(analyzer.client.messages, "create") as mock_create:
            mock_create.return_value = claude_response(text)

            result = analyzer.analyze_feedback("Coach Meera's reformer class was brilliant.")

            assert result.suggested_category == "instructor-related"
            assert result.sentiment == "positive"

    def test_out_of_taxonomy_values_defaulted(self):
        analyzer = FeedbackAnalyzer(api_key="test_key")
        payload = {
            "suggestedCategory": "parking",
            "suggestedPriority": "urgent",
            "suggestedDepartment": "security",
            "sentiment": "furious",
            "sentimentScore": 250,
            "tags": "not-a-list",
        }

        with patch.object(analyzer.client.messages, "create") as mock_create:
            mock_create.return_value = claude_response(json.dumps(payload))

            result = analyzer.analyze_feedback("Someone took my parking spot again.")

            assert result.suggested_category == "miscellaneous"
            assert result.suggested_priority == "medium"
            assert result.suggested_department == "operations"
            assert result.sentiment == "neutral"
            assert result.sentiment_score == 100
            assert result.tags == []

    def test_invalid_json_gives_neutral_analysis(self):
        analyzer = FeedbackAnalyzer(api_key="test_key")

        with patch.object(analyzer.client.messages, "create") as mock_create:
            mock_create.return_value = claude_response("Invalid JSON {{{")

            result = analyzer.analyze_feedback("The studio was too cold this morning.")

            assert result == FeedbackAnalysis()

    def test_api_error_propagates(self):
        analyzer = FeedbackAnalyzer(api_key="test_key")

        with patch.object(analyzer.client.messages, "create") as mock_create:
            mock_create.side_effect = api_error()

            with pytest.raises(anthropic.APIError):
                analyzer.analyze_feedback("The studio was too cold this morning.")


@pytest.mark.analyzer
class TestSuggestTitle:
    """Test suite for FeedbackAnalyzer.suggest_title."""

    CONTEXT = {
        "category_name": "Facilities & Equipment",
        "subcategory_name": "Equipment Malfunction",
        "client_name": "Priya Shah",
        "location_name": "Kenkre House",
        "description": "Treadmill belt slipping during the 7am class.",
        "form_data": {},
    }

    def test_title_from_claude(self):
        analyzer = FeedbackAnalyzer(api_key="test_key")

        with patch.object(analyzer.client.messages, "create") as mock_create:
            mock_create.return_value = claude_response('"Treadmill belt slipping at Kenkre House"\n')

            title = analyzer.suggest_title(self.CONTEXT)

            assert title == "Treadmill belt slipping at Kenkre House"
            assert mock_create.call_args.kwargs["max_tokens"] == FeedbackAnalyzer.MAX_TOKENS_TITLE

    def test_empty_answer_uses_fallback(self):
        analyzer = FeedbackAnalyzer(api_key="test_key")

        with patch.object(analyzer.client.messages, "create") as mock_create:
            mock_create.return_value = claude_response("   ")

            title = analyzer.suggest_title(self.CONTEXT)

            assert title == "Equipment Malfunction — Priya Shah — Kenkre House"

    def test_api_error_uses_fallback(self):
        analyzer = FeedbackAnalyzer(api_key="test_key")

        with patch.object(analyzer.client.messages, "create") as mock_create:
            mock_create.side_effect = api_error()

            title = analyzer.suggest_title(self.CONTEXT)

            assert title == "Equipment Malfunction — Priya Shah — Kenkre House"

    def test_long_title_truncated(self):
        analyzer = FeedbackAnalyzer(api_key="test_key")

        with patch.object(analyzer.client.messages, "create") as mock_create:
            mock_create.return_value = claude_response("x" * 300)

            assert len(analyzer.suggest_title(self.CONTEXT)) == 120


@pytest.mark.analyzer
class TestTitleHelpers:
    """Test suite for title helper functions."""

    @pytest.mark.parametrize("title", [None, "", "   ", "New ticket", "NEW  TICKET"])
    def test_generic_titles(self, title):
        assert is_generic_title(title, "Belt slipping")

    def test_title_equal_to_description_is_generic(self):
        assert is_generic_title("Belt  slipping ", "Belt slipping")

    def test_specific_title(self):
        assert not is_generic_title("Treadmill belt slipping", "The belt slipped twice")

    def test_fallback_prefers_issue_type(self):
        title = fallback_ticket_title(
            category_name="Facilities & Equipment",
            subcategory_name="Equipment Malfunction",
            form_data={"issue type": "Broken Treadmill"},
        )

        assert title == "Broken Treadmill"

    def test_fallback_without_anything(self):
        assert fallback_ticket_title() == "Support Ticket"

    def test_fallback_truncated(self):
        title = fallback_ticket_title(subcategory_name="Equipment", client_name="x" * 200)

        assert len(title) == 120
        assert title.endswith("...")

    def test_form_value_by_label(self):
        assert form_value_by_label({" Issue Type ": "  AC  not working "}, "issue type") == "AC not working"
        assert form_value_by_label(None, "Issue Type") == ""

    def test_compact(self):
        assert compact(None) == ""
        assert compact(" a \n  b ") == "a b"


@pytest.mark.analyzer
class TestGetAnalyzer:
    """Test suite for the analyzer factory."""

    def test_without_key(self):
        with patch("app.config.settings.ANTHROPIC_API_KEY", None):
            assert get_analyzer() is None

    def test_with_key(self):
        with patch("app.config.settings.ANTHROPIC_API_KEY", "sk-ant-test"):
            assert isinstance(get_analyzer(), FeedbackAnalyzer)
