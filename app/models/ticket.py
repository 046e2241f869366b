"""
Ticket model and the records owned by a ticket (comments, attachments, history).
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, JSONType


# Valid values for check constraints
VALID_STATUSES = ["open", "in_progress", "pending", "resolved", "closed", "escalated"]
VALID_PRIORITIES = ["low", "medium", "high", "critical"]
VALID_DEPARTMENTS = [
    "operations",
    "facilities",
    "training",
    "sales",
    "client_success",
    "marketing",
    "finance",
    "management",
]


def _in_check(column: str, values: list) -> str:
    return f"{column} IN ({', '.join(repr(v) for v in values)})"


class Ticket(Base):
    """
    A customer feedback / support ticket.

    Department, priority and assignee are backfilled by the assignment
    resolver at creation time; the SLA deadline is stamped once and never
    recomputed.
    """

    __tablename__ = "tickets"

    # Primary key
    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    ticket_number: Mapped[str] = mapped_column(
        String(32),
        unique=True,
        nullable=False,
        index=True
    )

    # Category/Subcategory
    category_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("categories.id"),
        nullable=False,
        index=True
    )
    subcategory_id: Mapped[Optional[UUID]] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("subcategories.id"),
        nullable=True
    )

    # Client information
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    client_email: Mapped[Optional[str]] = mapped_column(String(255))
    client_phone: Mapped[Optional[str]] = mapped_column(String(50))
    client_status: Mapped[Optional[str]] = mapped_column(String(100))
    client_mood: Mapped[Optional[str]] = mapped_column(String(100))

    # Issue details
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    action_taken_immediately: Mapped[Optional[str]] = mapped_column(Text)

    # Location and timing
    location_id: Mapped[Optional[UUID]] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("locations.id"),
        nullable=True
    )
    incident_datetime: Mapped[Optional[datetime]] = mapped_column(DateTime)
    reported_datetime: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        server_default=func.now(),
        nullable=False
    )

    # Status and priority
    status: Mapped[str] = mapped_column(
        String(20),
        default="open",
        server_default="open",
        nullable=False,
        index=True
    )
    priority: Mapped[str] = mapped_column(
        String(20),
        default="medium",
        server_default="medium",
        nullable=False,
        index=True
    )

    # Assignment
    department: Mapped[Optional[str]] = mapped_column(String(50), index=True)
    assignee_id: Mapped[Optional[UUID]] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("users.id"),
        nullable=True,
        index=True
    )
    reported_by_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False
    )

    # SLA tracking
    sla_deadline: Mapped[Optional[datetime]] = mapped_column(DateTime, index=True)
    first_response_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    # AI-generated tags and analysis
    ai_tags: Mapped[Optional[list]] = mapped_column(JSONType)
    ai_sentiment: Mapped[Optional[str]] = mapped_column(String(20))
    ai_sentiment_score: Mapped[Optional[int]] = mapped_column(Integer)
    ai_suggested_category: Mapped[Optional[str]] = mapped_column(String(100))
    ai_keywords: Mapped[Optional[list]] = mapped_column(JSONType)

    # Dynamic form answers, stored as submitted
    form_data: Mapped[dict] = mapped_column(JSONType, default=dict)

    # Escalation
    is_escalated: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default="false",
        nullable=False
    )
    escalated_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    escalated_to_id: Mapped[Optional[UUID]] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("users.id"),
        nullable=True
    )
    escalation_reason: Mapped[Optional[str]] = mapped_column(Text)

    # Follow-up
    follow_up_required: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default="false",
        nullable=False
    )
    follow_up_date: Mapped[Optional[datetime]] = mapped_column(DateTime)

    attachments_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        server_default=func.now(),
        index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        server_default=func.now(),
        onupdate=datetime.utcnow
    )

    # Relationships (loaded explicitly with selectinload)
    comments: Mapped[List["TicketComment"]] = relationship(
        "TicketComment",
        back_populates="ticket",
        order_by="desc(TicketComment.created_at)",
        passive_deletes=True
    )
    history: Mapped[List["TicketHistory"]] = relationship(
        "TicketHistory",
        back_populates="ticket",
        order_by="desc(TicketHistory.created_at)",
        passive_deletes=True
    )
    attachments: Mapped[List["TicketAttachment"]] = relationship(
        "TicketAttachment",
        back_populates="ticket",
        passive_deletes=True
    )

    __table_args__ = (
        CheckConstraint(_in_check("status", VALID_STATUSES), name="check_valid_status"),
        CheckConstraint(_in_check("priority", VALID_PRIORITIES), name="check_valid_priority"),
        CheckConstraint(_in_check("department", VALID_DEPARTMENTS), name="check_valid_department"),
    )

    def __repr__(self) -> str:
        return f"<Ticket(id={self.id}, number={self.ticket_number}, title='{self.title}')>"


class TicketComment(Base):
    """A client-facing comment or internal note on a ticket."""

    __tablename__ = "ticket_comments"

    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
    ticket_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("tickets.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_internal: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default="false",
        nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        server_default=func.now()
    )

    ticket: Mapped["Ticket"] = relationship("Ticket", back_populates="comments")


class TicketAttachment(Base):
    """Metadata for a file attached to a ticket (the file itself lives in storage)."""

    __tablename__ = "ticket_attachments"

    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
    ticket_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("tickets.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_type: Mapped[str] = mapped_column(String(100), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    file_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    uploaded_by_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        server_default=func.now()
    )

    ticket: Mapped["Ticket"] = relationship("Ticket", back_populates="attachments")


class TicketHistory(Base):
    """
    Append-only audit trail entry.

    action is one of ticket_created, status_change, priority_change,
    comment_added, escalated.
    """

    __tablename__ = "ticket_history"

    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
    ticket_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("tickets.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False
    )
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    previous_value: Mapped[Optional[str]] = mapped_column(Text)
    new_value: Mapped[Optional[str]] = mapped_column(Text)
    description: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        server_default=func.now()
    )

    ticket: Mapped["Ticket"] = relationship("Ticket", back_populates="history")

    def __repr__(self) -> str:
        return f"<TicketHistory(ticket_id={self.ticket_id}, action={self.action})>"


class Notification(Base):
    """In-app notification for a single user."""

    __tablename__ = "notifications"

    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
        index=True
    )
    ticket_id: Mapped[Optional[UUID]] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("tickets.id", ondelete="CASCADE"),
        nullable=True
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default="false",
        nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        server_default=func.now()
    )
