from pydantic import BaseModel, Field
from typing import List


class AnalyzeRequest(BaseModel):
    text: str = Field(min_length=10)


class FeedbackAnalysis(BaseModel):
    """Suggestions returned by the feedback analyzer."""
    suggested_category: str = "miscellaneous"
    suggested_priority: str = "medium"
    suggested_department: str = "operations"
    sentiment: str = "neutral"
    sentiment_score: int = Field(default=50, ge=0, le=100)
    tags: List[str] = []
    suggested_title: str = ""
