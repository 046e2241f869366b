"""
Claude AI-powered feedback analyzer.

This module provides the FeedbackAnalyzer class that uses Claude AI to:
1. Suggest category, priority, department, sentiment and tags for feedback
2. Suggest a specific title for tickets submitted with a generic one

Both degrade to deterministic fallbacks when the API key is not configured
or the response cannot be parsed.
"""

import json
import logging
import re
from typing import Any, Dict, Optional
import anthropic

from app.models import VALID_DEPARTMENTS, VALID_PRIORITIES
from app.schemas.ai import FeedbackAnalysis
from app.services.prompts import (
    ANALYSIS_SYSTEM_PROMPT,
    TITLE_SYSTEM_PROMPT,
    build_analysis_prompt,
    build_title_prompt,
    FEEDBACK_CATEGORIES,
    SENTIMENTS
)

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 120
GENERIC_TITLES = {"", "new ticket"}


def compact(value: Any) -> str:
    """Collapse runs of whitespace and trim. None becomes an empty string."""
    if value is None:
        return ""
    return re.sub(r"\s+", " ", str(value)).strip()


def form_value_by_label(form_data: Optional[Dict[str, Any]], label: str) -> str:
    """Case-insensitive lookup of a form answer by its key."""
    if not form_data:
        return ""
    wanted = label.strip().lower()
    for key, value in form_data.items():
        if key.strip().lower() == wanted:
            return compact(value)
    return ""


def is_generic_title(title: Optional[str], description: Optional[str]) -> bool:
    """Blank, "New ticket", or just a copy of the description."""
    cleaned = compact(title)
    if cleaned.lower() in GENERIC_TITLES:
        return True
    return cleaned == compact(description)


def fallback_ticket_title(
    category_name: Optional[str] = None,
    subcategory_name: Optional[str] = None,
    issue_type: Optional[str] = None,
    client_name: Optional[str] = None,
    location_name: Optional[str] = None,
    form_data: Optional[Dict[str, Any]] = None,
) -> str:
    """
    Title built from the ticket's own fields, e.g.
    "Equipment Malfunction — Priya Shah — Kenkre House".
    """
    issue = compact(issue_type) or form_value_by_label(form_data, "Issue Type")
    parts = [issue or compact(subcategory_name) or compact(category_name) or "Support Ticket"]
    if compact(client_name):
        parts.append(compact(client_name))
    if compact(location_name):
        parts.append(compact(location_name))

    title = " — ".join(parts)
    if len(title) > MAX_TITLE_LENGTH:
        return title[:MAX_TITLE_LENGTH - 3] + "..."
    return title


def _strip_code_fence(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = re.sub(r"^```(?:json)?\s*", "", text)
        text = re.sub(r"\s*```$", "", text)
    return text


class FeedbackAnalyzer:
    """
    Analyzes customer feedback using Claude.

    Uses Claude Sonnet 4.5 to:
    - Classify free-text feedback against the studio's taxonomy
    - Write ticket titles when staff leave the default one
    """

    MODEL = "claude-sonnet-4-5-20250514"
    MAX_TOKENS_ANALYSIS = 512
    MAX_TOKENS_TITLE = 64

    def __init__(self, api_key: str):
        """
        Initialize the analyzer with Anthropic API credentials.

        Args:
            api_key: Anthropic API key for Claude access
        """
        self.client = anthropic.Anthropic(api_key=api_key)

    def analyze_feedback(self, text: str) -> FeedbackAnalysis:
        """
        Suggest routing and sentiment for a piece of feedback.

        Args:
            text: Feedback text, at least 10 characters

        Returns:
            FeedbackAnalysis. Values outside the taxonomy are replaced by the
            neutral defaults; an unparseable response gives the neutral
            analysis.

        Raises:
            anthropic.APIError: If the Claude API call fails
        """
        try:
            response = self.client.messages.create(
                model=self.MODEL,
                max_tokens=self.MAX_TOKENS_ANALYSIS,
                system=ANALYSIS_SYSTEM_PROMPT,
                messages=[
                    {"role": "user", "content": build_analysis_prompt(text)}
                ]
            )

            result = json.loads(_strip_code_fence(response.content[0].text))
            return self._validate_analysis(result)

        except (json.JSONDecodeError, AttributeError) as e:
            logger.error(f"Failed to parse Claude feedback analysis: {e}")
            return FeedbackAnalysis()
        except anthropic.APIError as e:
            logger.error(f"Claude API error for feedback analysis: {e}")
            raise

    def suggest_title(self, context: Dict[str, Any]) -> str:
        """
        Suggest a ticket title.

        Args:
            context: Dictionary with keys category_name, subcategory_name,
                     issue_type, client_name, location_name,
                     incident_datetime, description, form_data

        Returns:
            A title; the fallback title when Claude fails or answers empty
        """
        fallback = fallback_ticket_title(
            category_name=context.get("category_name"),
            subcategory_name=context.get("subcategory_name"),
            issue_type=context.get("issue_type"),
            client_name=context.get("client_name"),
            location_name=context.get("location_name"),
            form_data=context.get("form_data"),
        )
        payload = {
            "category": compact(context.get("category_name")),
            "subCategory": compact(context.get("subcategory_name")),
            "issueType": compact(context.get("issue_type"))
            or form_value_by_label(context.get("form_data"), "Issue Type"),
            "clientName": compact(context.get("client_name")),
            "location": compact(context.get("location_name")),
            "incidentDateTime": compact(context.get("incident_datetime")),
            "description": compact(context.get("description")),
        }

        try:
            response = self.client.messages.create(
                model=self.MODEL,
                max_tokens=self.MAX_TOKENS_TITLE,
                system=TITLE_SYSTEM_PROMPT,
                messages=[
                    {"role": "user", "content": build_title_prompt(payload)}
                ]
            )
            title = compact(response.content[0].text).strip('"')
        except anthropic.APIError as e:
            logger.error(f"Claude title suggestion failed, using fallback: {e}")
            return fallback

        if not title:
            return fallback
        return title[:MAX_TITLE_LENGTH]

    def _validate_analysis(self, result: dict) -> FeedbackAnalysis:
        """
        Coerce Claude's JSON into a FeedbackAnalysis.

        Args:
            result: Parsed JSON object from the response

        Returns:
            FeedbackAnalysis with out-of-taxonomy values defaulted
        """
        defaults = FeedbackAnalysis()
        if not isinstance(result, dict):
            logger.warning(f"Unexpected analysis payload: {result!r}")
            return defaults

        category = result.get("suggestedCategory")
        priority = result.get("suggestedPriority")
        department = result.get("suggestedDepartment")
        sentiment = result.get("sentiment")

        if category not in FEEDBACK_CATEGORIES:
            logger.warning(f"Invalid suggested category: {category}")
            category = defaults.suggested_category
        if priority not in VALID_PRIORITIES:
            logger.warning(f"Invalid suggested priority: {priority}")
            priority = defaults.suggested_priority
        if department not in VALID_DEPARTMENTS:
            logger.warning(f"Invalid suggested department: {department}")
            department = defaults.suggested_department
        if sentiment not in SENTIMENTS:
            sentiment = defaults.sentiment

        try:
            score = int(result.get("sentimentScore", defaults.sentiment_score))
        except (TypeError, ValueError):
            score = defaults.sentiment_score
        score = min(max(score, 0), 100)

        tags = result.get("tags") or []
        if not isinstance(tags, list):
            tags = []

        return FeedbackAnalysis(
            suggested_category=category,
            suggested_priority=priority,
            suggested_department=department,
            sentiment=sentiment,
            sentiment_score=score,
            tags=[compact(t) for t in tags if compact(t)][:5],
            suggested_title=compact(result.get("suggestedTitle"))[:100],
        )


def get_analyzer() -> Optional[FeedbackAnalyzer]:
    """
    Factory function to create a FeedbackAnalyzer with config from settings.

    Returns:
        Configured FeedbackAnalyzer, or None when ANTHROPIC_API_KEY is not
        set (callers then use the fallbacks)
    """
    from app.config import settings

    if not settings.ANTHROPIC_API_KEY:
        logger.debug("ANTHROPIC_API_KEY not configured; AI suggestions disabled")
        return None

    return FeedbackAnalyzer(api_key=settings.ANTHROPIC_API_KEY)
