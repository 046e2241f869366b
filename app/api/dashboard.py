"""
Dashboard API endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_current_user
from app.models import User
from app.schemas import TicketStats
from app.services.tickets import TicketService

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=TicketStats)
async def get_dashboard_stats(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """Ticket counts by status and priority, plus open escalations."""
    stats = await TicketService(db).get_stats()
    return TicketStats(**stats)
