"""
Ticket lifecycle: creation, updates, comments, listing and stats.

Creation runs the intake pipeline in order: reference checks, title
suggestion for generic titles, assignment resolution, SLA deadline, ticket
number, insert.
"""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from starlette.concurrency import run_in_threadpool

from app.models import (
    Category,
    Location,
    Notification,
    PRIVILEGED_ROLES,
    Subcategory,
    Ticket,
    TicketAttachment,
    TicketComment,
    TicketHistory,
    User,
)
from app.schemas.ticket import CommentCreate, TicketCreate, TicketUpdate
from app.services.analyzer import (
    FeedbackAnalyzer,
    fallback_ticket_title,
    form_value_by_label,
    is_generic_title,
)
from app.services.assignment import AssignmentResolver
from app.services.notifications import create_notification
from app.services.sla import compute_sla_deadline, format_ticket_number

logger = logging.getLogger(__name__)

# Global field ids used when building a title from the form
CLIENT_NAME_FIELD = "GLB-006"
LOCATION_FIELD = "GLB-004"
INCIDENT_FIELD = "GLB-003"
DESCRIPTION_FIELD = "GLB-012"


class TicketReferenceError(Exception):
    """Raised when a new ticket points at a row that does not exist."""
    pass


class TicketFilters(BaseModel):
    """Query parameters for listing tickets. Status and priority are comma-separated."""
    status: Optional[str] = None
    priority: Optional[str] = None
    category_id: Optional[UUID] = None
    assignee_id: Optional[UUID] = None
    department: Optional[str] = None
    search: Optional[str] = None
    limit: int = 50
    offset: int = 0


def can_change_status(ticket: Ticket, user: User) -> bool:
    """Admins, managers, the assignee and the reporter may move a ticket."""
    if user.role in PRIVILEGED_ROLES:
        return True
    if ticket.assignee_id is not None and ticket.assignee_id == user.id:
        return True
    return ticket.reported_by_id == user.id


def is_ticket_number_conflict(error: IntegrityError) -> bool:
    """Whether an insert failed on the unique ticket number rather than another constraint."""
    return "ticket_number" in str(error.orig)


def _split(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]


class TicketService:
    """Ticket operations on one database session."""

    def __init__(self, session: AsyncSession, analyzer: Optional[FeedbackAnalyzer] = None):
        self.session = session
        self.analyzer = analyzer

    async def count_tickets(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(Ticket))
        return result.scalar_one()

    async def next_ticket_number(self, now: Optional[datetime] = None) -> str:
        """Number the next created ticket would get, if nothing else is created first."""
        now = now or datetime.utcnow()
        return format_ticket_number(now, await self.count_tickets())

    async def check_references(self, data: TicketCreate) -> None:
        """Raise TicketReferenceError for the first referenced row that is missing."""
        references = [
            (Category, data.category_id, "Category"),
            (Subcategory, data.subcategory_id, "Subcategory"),
            (Location, data.location_id, "Location"),
            (User, data.assignee_id, "Assignee"),
        ]
        for model, row_id, label in references:
            if row_id is not None and await self.session.get(model, row_id) is None:
                raise TicketReferenceError(f"{label} not found")

        if data.subcategory_id is not None:
            subcategory = await self.session.get(Subcategory, data.subcategory_id)
            if subcategory.category_id != data.category_id:
                raise TicketReferenceError("Subcategory does not belong to the category")

    async def suggest_title(self, data: TicketCreate) -> str:
        """Title for a ticket submitted with a generic one."""
        form_data = data.form_data or {}

        category = await self.session.get(Category, data.category_id)
        subcategory = None
        if data.subcategory_id is not None:
            subcategory = await self.session.get(Subcategory, data.subcategory_id)
        location_name = form_data.get(LOCATION_FIELD)
        if data.location_id is not None:
            location = await self.session.get(Location, data.location_id)
            if location is not None:
                location_name = location.name

        context = {
            "category_name": category.name if category else None,
            "subcategory_name": subcategory.name if subcategory else None,
            "issue_type": form_value_by_label(form_data, "Issue Type"),
            "client_name": data.client_name or form_data.get(CLIENT_NAME_FIELD),
            "location_name": location_name,
            "incident_datetime": data.incident_datetime or form_data.get(INCIDENT_FIELD),
            "description": data.description or form_data.get(DESCRIPTION_FIELD),
            "form_data": form_data,
        }

        if self.analyzer is None:
            return fallback_ticket_title(
                category_name=context["category_name"],
                subcategory_name=context["subcategory_name"],
                issue_type=context["issue_type"],
                client_name=context["client_name"],
                location_name=context["location_name"],
                form_data=form_data,
            )
        # The Anthropic client is synchronous
        return await run_in_threadpool(self.analyzer.suggest_title, context)

    async def create_ticket(
        self,
        data: TicketCreate,
        reporter: User,
        now: Optional[datetime] = None
    ) -> Ticket:
        """
        Create a ticket from a submitted form.

        Department, priority and assignee are backfilled by the assignment
        resolver; explicit values are kept. form_data is stored as given.

        Raises:
            TicketReferenceError: If the category, subcategory, location or
                assignee does not exist
            sqlalchemy.exc.IntegrityError: If another request took the same
                ticket number first
        """
        await self.check_references(data)

        title = data.title
        if is_generic_title(data.title, data.description):
            title = await self.suggest_title(data)

        assignment = await AssignmentResolver(self.session).resolve(
            category_id=data.category_id,
            subcategory_id=data.subcategory_id,
            department=data.department,
            priority=data.priority,
            assignee_id=data.assignee_id,
        )
        priority = assignment.priority or "medium"

        # Numbered immediately before the insert
        now = now or datetime.utcnow()
        ticket_number = format_ticket_number(now, await self.count_tickets())

        fields = data.model_dump(exclude={"title", "priority", "department", "assignee_id"})
        ticket = Ticket(
            **fields,
            ticket_number=ticket_number,
            title=title,
            priority=priority,
            department=assignment.department,
            assignee_id=assignment.assignee_id,
            reported_by_id=reporter.id,
            reported_datetime=now,
            sla_deadline=compute_sla_deadline(priority, now),
            escalated_at=now if data.is_escalated else None,
            created_at=now,
            updated_at=now,
        )
        self.session.add(ticket)
        await self.session.flush()

        self.session.add(TicketHistory(
            ticket_id=ticket.id,
            user_id=reporter.id,
            action="ticket_created",
            description="Ticket was created",
        ))

        if assignment.auto_assigned and ticket.assignee_id != reporter.id:
            await create_notification(
                self.session,
                user_id=ticket.assignee_id,
                ticket_id=ticket.id,
                type="ticket_assigned",
                title=f"Ticket {ticket.ticket_number} assigned to you",
                message=ticket.title,
            )

        await self.session.flush()
        logger.info(
            f"Created ticket {ticket.ticket_number} "
            f"(priority={ticket.priority}, department={ticket.department})"
        )
        return ticket

    async def get_ticket(self, ticket_id: UUID, with_details: bool = False) -> Optional[Ticket]:
        stmt = select(Ticket).where(Ticket.id == ticket_id)
        if with_details:
            stmt = stmt.options(
                selectinload(Ticket.comments),
                selectinload(Ticket.history),
                selectinload(Ticket.attachments),
            ).execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_tickets(self, filters: TicketFilters) -> List[Ticket]:
        stmt = select(Ticket)

        statuses = _split(filters.status)
        if statuses:
            stmt = stmt.where(Ticket.status.in_(statuses))
        priorities = _split(filters.priority)
        if priorities:
            stmt = stmt.where(Ticket.priority.in_(priorities))
        if filters.category_id:
            stmt = stmt.where(Ticket.category_id == filters.category_id)
        if filters.assignee_id:
            stmt = stmt.where(Ticket.assignee_id == filters.assignee_id)
        if filters.department:
            stmt = stmt.where(Ticket.department == filters.department)
        if filters.search:
            pattern = f"%{filters.search}%"
            stmt = stmt.where(or_(
                Ticket.title.ilike(pattern),
                Ticket.ticket_number.ilike(pattern),
                Ticket.client_name.ilike(pattern),
            ))

        stmt = stmt.order_by(Ticket.created_at.desc()).limit(filters.limit).offset(filters.offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def update_ticket(self, ticket: Ticket, data: TicketUpdate) -> Ticket:
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(ticket, key, value)
        await self.session.flush()
        return ticket

    async def change_status(self, ticket: Ticket, status: str, actor: User) -> Ticket:
        """Move a ticket; resolved_at and closed_at are stamped only the first time."""
        previous = ticket.status
        now = datetime.utcnow()

        ticket.status = status
        if status == "resolved" and ticket.resolved_at is None:
            ticket.resolved_at = now
        if status == "closed" and ticket.closed_at is None:
            ticket.closed_at = now

        self.session.add(TicketHistory(
            ticket_id=ticket.id,
            user_id=actor.id,
            action="status_change",
            previous_value=previous,
            new_value=status,
            description=f"Status changed from {previous} to {status}",
        ))
        await self.session.flush()
        logger.info(f"Ticket {ticket.ticket_number} status {previous} -> {status}")
        return ticket

    async def change_priority(self, ticket: Ticket, priority: str, actor: User) -> Ticket:
        """Change priority. The SLA deadline stamped at creation is left as is."""
        previous = ticket.priority
        ticket.priority = priority

        self.session.add(TicketHistory(
            ticket_id=ticket.id,
            user_id=actor.id,
            action="priority_change",
            previous_value=previous,
            new_value=priority,
            description=f"Priority changed from {previous} to {priority}",
        ))
        await self.session.flush()
        return ticket

    async def add_comment(self, ticket: Ticket, data: CommentCreate, actor: User) -> TicketComment:
        """Add a comment. The first one stamps first_response_at."""
        comment = TicketComment(
            ticket_id=ticket.id,
            user_id=actor.id,
            content=data.content,
            is_internal=data.is_internal,
        )
        self.session.add(comment)

        if ticket.first_response_at is None:
            ticket.first_response_at = datetime.utcnow()

        self.session.add(TicketHistory(
            ticket_id=ticket.id,
            user_id=actor.id,
            action="comment_added",
            description="Internal note added" if data.is_internal else "Comment added",
        ))
        await self.session.flush()
        return comment

    async def list_comments(self, ticket_id: UUID) -> List[TicketComment]:
        result = await self.session.execute(
            select(TicketComment)
            .where(TicketComment.ticket_id == ticket_id)
            .order_by(TicketComment.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_history(self, ticket_id: UUID) -> List[TicketHistory]:
        result = await self.session.execute(
            select(TicketHistory)
            .where(TicketHistory.ticket_id == ticket_id)
            .order_by(TicketHistory.created_at.desc())
        )
        return list(result.scalars().all())

    async def delete_ticket(self, ticket_id: UUID) -> bool:
        """Delete a ticket and everything hanging off it."""
        for model in (TicketComment, TicketHistory, TicketAttachment, Notification):
            await self.session.execute(delete(model).where(model.ticket_id == ticket_id))

        result = await self.session.execute(delete(Ticket).where(Ticket.id == ticket_id))
        deleted = (result.rowcount or 0) > 0
        if deleted:
            logger.info(f"Deleted ticket {ticket_id}")
        return deleted

    async def get_stats(self) -> dict:
        result = await self.session.execute(
            select(Ticket.status, func.count()).group_by(Ticket.status)
        )
        by_status = {status: count for status, count in result.all()}

        escalated = await self.session.execute(
            select(func.count()).select_from(Ticket).where(Ticket.is_escalated.is_(True))
        )

        return {
            "total": sum(by_status.values()),
            "open": by_status.get("open", 0),
            "in_progress": by_status.get("in_progress", 0),
            "pending": by_status.get("pending", 0),
            "resolved": by_status.get("resolved", 0) + by_status.get("closed", 0),
            "escalated": escalated.scalar_one(),
        }
