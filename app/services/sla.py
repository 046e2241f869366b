"""
SLA deadlines and ticket numbers.
"""

from datetime import datetime, timedelta
from typing import Optional

from app.config import settings

SLA_WINDOWS = {
    "critical": timedelta(hours=2),
    "high": timedelta(hours=24),
    "medium": timedelta(hours=48),
}


def compute_sla_deadline(priority: Optional[str], now: datetime) -> Optional[datetime]:
    """
    Deadline for a ticket created at `now`.

    Low priority (and anything unrecognised) has no deadline. Stamped once at
    creation and not recomputed when the priority changes later.
    """
    window = SLA_WINDOWS.get(priority or "")
    if window is None:
        return None
    return now + window


def format_ticket_number(now: datetime, count: int, prefix: Optional[str] = None) -> str:
    """
    Number for the ticket after `count` existing tickets, e.g. P57-202504-00123.

    The suffix is a global running total; it does not restart each month.
    """
    prefix = prefix or settings.TICKET_NUMBER_PREFIX
    return f"{prefix}-{now.year:04d}{now.month:02d}-{count + 1:05d}"
