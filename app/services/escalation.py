"""
Escalation sweep.

Applies the active escalation rules: unresolved tickets of a rule's priority
that have been open longer than the rule allows are flagged as escalated and
the configured role is notified. Run periodically by the scheduler.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import ACTIVE_STATUSES, EscalationRule, Ticket, TicketHistory, User
from app.services.notifications import create_notification

logger = logging.getLogger(__name__)


class EscalationService:
    """Finds overdue tickets and escalates them."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_active_rules(self) -> List[EscalationRule]:
        result = await self.session.execute(
            select(EscalationRule)
            .where(EscalationRule.is_active.is_(True))
            .order_by(EscalationRule.escalate_after_minutes)
        )
        return list(result.scalars().all())

    async def get_overdue_tickets(self, rule: EscalationRule, now: datetime) -> List[Ticket]:
        cutoff = now - timedelta(minutes=rule.escalate_after_minutes)
        result = await self.session.execute(
            select(Ticket)
            .where(Ticket.priority == rule.priority)
            .where(Ticket.status.in_(ACTIVE_STATUSES))
            .where(Ticket.is_escalated.is_(False))
            .where(Ticket.created_at <= cutoff)
            .order_by(Ticket.created_at)
        )
        return list(result.scalars().all())

    async def get_role_users(self, role: str) -> List[User]:
        result = await self.session.execute(
            select(User)
            .where(User.role == role)
            .where(User.is_active.is_(True))
            .order_by(User.created_at)
        )
        return list(result.scalars().all())

    async def escalate(self, ticket: Ticket, rule: EscalationRule, now: datetime) -> None:
        recipients = await self.get_role_users(rule.escalate_to_role)
        escalated_to: Optional[User] = recipients[0] if recipients else None

        ticket.is_escalated = True
        ticket.escalated_at = now
        ticket.escalated_to_id = escalated_to.id if escalated_to else None
        ticket.escalation_reason = (
            f"Unresolved {rule.escalate_after_minutes} minutes after creation ({rule.name})"
        )

        # History needs an actor; use the reporter when nobody holds the role
        actor_id = escalated_to.id if escalated_to else ticket.reported_by_id
        self.session.add(TicketHistory(
            ticket_id=ticket.id,
            user_id=actor_id,
            action="escalated",
            new_value=rule.escalate_to_role,
            description=ticket.escalation_reason,
        ))

        notify_ids = [u.id for u in recipients]
        if rule.notify_original_assignee and ticket.assignee_id and ticket.assignee_id not in notify_ids:
            notify_ids.append(ticket.assignee_id)

        for user_id in notify_ids:
            await create_notification(
                self.session,
                user_id=user_id,
                ticket_id=ticket.id,
                type="ticket_escalated",
                title=f"Ticket {ticket.ticket_number} escalated",
                message=ticket.escalation_reason,
            )

    async def sweep(self, now: Optional[datetime] = None) -> int:
        """
        Apply every active rule once.

        Returns:
            Number of tickets escalated
        """
        now = now or datetime.utcnow()
        escalated = 0

        for rule in await self.get_active_rules():
            tickets = await self.get_overdue_tickets(rule, now)
            for ticket in tickets:
                await self.escalate(ticket, rule, now)
                escalated += 1
            if tickets:
                await self.session.flush()
                logger.info(f"Escalation rule '{rule.name}' escalated {len(tickets)} tickets")

        return escalated
