"""
Category, Subcategory and Location models.

Subcategories carry their dynamic form definition as an embedded JSON blob
(`form_fields`), either a bare list of field objects or `{"fields": [...]}`.
"""

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, String, Text, func
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, JSONType
from app.models.ticket import VALID_DEPARTMENTS, _in_check


class Category(Base):
    """Top level of the ticket taxonomy."""

    __tablename__ = "categories"

    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    icon: Mapped[Optional[str]] = mapped_column(String(100))
    color: Mapped[Optional[str]] = mapped_column(String(20))
    default_department: Mapped[Optional[str]] = mapped_column(String(50))
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

    subcategories: Mapped[List["Subcategory"]] = relationship(
        "Subcategory",
        back_populates="category",
        order_by="Subcategory.name"
    )

    __table_args__ = (
        CheckConstraint(
            _in_check("default_department", VALID_DEPARTMENTS),
            name="check_valid_category_department"
        ),
    )

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name='{self.name}')>"


class Subcategory(Base):
    """Second level of the taxonomy, owning an embedded form definition."""

    __tablename__ = "subcategories"

    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
    category_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("categories.id"),
        nullable=False,
        index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    form_fields: Mapped[Optional[Any]] = mapped_column(JSONType)
    default_department: Mapped[Optional[str]] = mapped_column(String(50))
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

    category: Mapped["Category"] = relationship("Category", back_populates="subcategories")

    __table_args__ = (
        CheckConstraint(
            _in_check("default_department", VALID_DEPARTMENTS),
            name="check_valid_subcategory_department"
        ),
    )

    def __repr__(self) -> str:
        return f"<Subcategory(id={self.id}, name='{self.name}')>"


class Location(Base):
    """Studio location a ticket can be filed against."""

    __tablename__ = "locations"

    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(Text)
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
