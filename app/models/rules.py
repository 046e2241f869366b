"""
AssignmentRule and EscalationRule models.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.ticket import VALID_DEPARTMENTS, VALID_PRIORITIES, _in_check
from app.models.user import VALID_ROLES


class AssignmentRule(Base):
    """
    Precedence-scored override for new tickets.

    A null category_id / subcategory_id acts as a wildcard. The resolver
    only ever reads active rules.
    """

    __tablename__ = "assignment_rules"

    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category_id: Mapped[Optional[UUID]] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("categories.id"),
        nullable=True
    )
    subcategory_id: Mapped[Optional[UUID]] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("subcategories.id"),
        nullable=True
    )
    department: Mapped[Optional[str]] = mapped_column(String(50))
    priority: Mapped[Optional[str]] = mapped_column(String(20))
    assign_to_user_id: Mapped[Optional[UUID]] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("users.id"),
        nullable=True
    )
    assign_to_team_id: Mapped[Optional[UUID]] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("teams.id"),
        nullable=True
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        server_default="true",
        nullable=False,
        index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint(_in_check("department", VALID_DEPARTMENTS), name="check_valid_rule_department"),
        CheckConstraint(_in_check("priority", VALID_PRIORITIES), name="check_valid_rule_priority"),
    )

    def __repr__(self) -> str:
        return f"<AssignmentRule(id={self.id}, name='{self.name}')>"


class EscalationRule(Base):
    """Escalate unresolved tickets of a priority after a fixed delay."""

    __tablename__ = "escalation_rules"

    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    priority: Mapped[str] = mapped_column(String(20), nullable=False)
    escalate_after_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    escalate_to_role: Mapped[str] = mapped_column(String(20), nullable=False)
    notify_original_assignee: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        server_default="true",
        nullable=False
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        server_default="true",
        nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint(_in_check("priority", VALID_PRIORITIES), name="check_valid_escalation_priority"),
        CheckConstraint(_in_check("escalate_to_role", VALID_ROLES), name="check_valid_escalation_role"),
        CheckConstraint("escalate_after_minutes > 0", name="check_escalation_delay_positive"),
    )
