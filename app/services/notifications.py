"""
In-app notifications.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Notification

logger = logging.getLogger(__name__)


async def create_notification(
    session: AsyncSession,
    user_id: UUID,
    type: str,
    title: str,
    message: str,
    ticket_id: Optional[UUID] = None,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        ticket_id=ticket_id,
        type=type,
        title=title,
        message=message,
        is_read=False,
    )
    session.add(notification)
    await session.flush()
    logger.debug(f"Notified user {user_id}: {title}")
    return notification


async def list_notifications(
    session: AsyncSession,
    user_id: UUID,
    unread_only: bool = False
) -> List[Notification]:
    stmt = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        stmt = stmt.where(Notification.is_read.is_(False))
    stmt = stmt.order_by(Notification.created_at.desc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def mark_read(session: AsyncSession, notification_id: UUID, user_id: UUID) -> Optional[Notification]:
    """Mark one of the user's notifications read. None if it is not theirs."""
    notification = await session.get(Notification, notification_id)
    if notification is None or notification.user_id != user_id:
        return None
    notification.is_read = True
    await session.flush()
    return notification


async def mark_all_read(session: AsyncSession, user_id: UUID) -> int:
    result = await session.execute(
        update(Notification)
        .where(Notification.user_id == user_id)
        .where(Notification.is_read.is_(False))
        .values(is_read=True)
    )
    return result.rowcount or 0
