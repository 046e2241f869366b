"""
AI assist endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException
from starlette.concurrency import run_in_threadpool
from typing import Optional
import anthropic
import logging

from app.api.deps import get_current_user
from app.models import User
from app.schemas import AnalyzeRequest, FeedbackAnalysis
from app.services.analyzer import FeedbackAnalyzer, get_analyzer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/analyze", response_model=FeedbackAnalysis)
async def analyze_feedback(
    data: AnalyzeRequest,
    analyzer: Optional[FeedbackAnalyzer] = Depends(get_analyzer),
    _: User = Depends(get_current_user)
):
    """
    Suggest category, priority, department and sentiment for feedback text.

    Returns the neutral analysis when no Anthropic key is configured.
    """
    if analyzer is None:
        logger.info("Analyzer not configured, returning default analysis")
        return FeedbackAnalysis()

    try:
        return await run_in_threadpool(analyzer.analyze_feedback, data.text)
    except anthropic.APIError as e:
        raise HTTPException(status_code=502, detail=f"Analysis service error: {e}")
