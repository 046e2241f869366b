"""
Prompt templates and taxonomy for Claude feedback analysis.

This module contains:
- Feedback categories the analyzer may suggest
- System prompts for feedback analysis and ticket title suggestion
- Prompt builder functions
"""

import json

# Feedback taxonomy (slugs, independent of the category rows in the database)
FEEDBACK_CATEGORIES = [
    "class-experience",
    "instructor-related",
    "facility-amenities",
    "membership-billing",
    "booking-technology",
    "customer-service",
    "sales-marketing",
    "health-safety",
    "community-culture",
    "retail-merchandise",
    "special-programs",
    "miscellaneous",
]

SENTIMENTS = ["positive", "neutral", "negative"]

ANALYSIS_SYSTEM_PROMPT = f"""You analyze customer feedback for a boutique fitness studio chain.
Staff log feedback from clients at the front desk, by phone and by email; your
analysis pre-fills the ticket form.

Extract:
1. Suggested category, one of: {", ".join(FEEDBACK_CATEGORIES)}
2. Suggested priority (critical, high, medium, low) based on urgency and severity
   - critical: injury, safety hazard, legal or payment failure affecting many clients
   - high: client cannot train or was charged incorrectly
   - medium: degraded experience, complaint needing a reply
   - low: suggestion or compliment, log only
3. Suggested department: operations, facilities, training, sales, client_success,
   marketing, finance, management
4. Sentiment: positive, neutral, negative
5. Sentiment score from 0 to 100, where 100 is most positive
6. Up to 5 short tags
7. A brief ticket title (max 100 characters)

Respond with JSON only:
{{
  "suggestedCategory": "facility-amenities",
  "suggestedPriority": "medium",
  "suggestedDepartment": "facilities",
  "sentiment": "negative",
  "sentimentScore": 25,
  "tags": ["shower", "hot water"],
  "suggestedTitle": "No hot water in women's showers at Kenkre House"
}}"""

TITLE_SYSTEM_PROMPT = """You write concise customer support ticket titles.
Return ONLY the title text, without quotes. Keep it under 90 characters.
Make it specific and operational."""


def build_analysis_prompt(text: str) -> str:
    """
    Build the user prompt for analyzing one piece of feedback.

    Args:
        text: Feedback as written by the client or the staff member

    Returns:
        Formatted prompt string for Claude
    """
    return f"""Analyze this customer feedback:

\"\"\"
{text}
\"\"\""""


def build_title_prompt(payload: dict) -> str:
    """Title request: the ticket's context as compact JSON."""
    return json.dumps(payload, ensure_ascii=False)
