"""
Database models for the feedback desk application.

This module exports all SQLAlchemy models and taxonomy constants
used throughout the application.
"""

from app.models.ticket import (
    Ticket,
    TicketComment,
    TicketAttachment,
    TicketHistory,
    Notification,
    VALID_STATUSES,
    VALID_PRIORITIES,
    VALID_DEPARTMENTS,
)
from app.models.user import User, Team, VALID_ROLES
from app.models.catalog import Category, Subcategory, Location
from app.models.rules import AssignmentRule, EscalationRule

# Statuses that still count as "being worked"
ACTIVE_STATUSES = ["open", "in_progress", "pending"]

# Roles allowed to change settings
PRIVILEGED_ROLES = ["admin", "manager"]

GLOBAL_CATEGORY_NAME = "Global"
GLOBAL_SUBCATEGORY_NAME = "Global"

# Export all models
__all__ = [
    "Ticket",
    "TicketComment",
    "TicketAttachment",
    "TicketHistory",
    "Notification",
    "User",
    "Team",
    "Category",
    "Subcategory",
    "Location",
    "AssignmentRule",
    "EscalationRule",
    "VALID_STATUSES",
    "VALID_PRIORITIES",
    "VALID_DEPARTMENTS",
    "VALID_ROLES",
    "ACTIVE_STATUSES",
    "PRIVILEGED_ROLES",
    "GLOBAL_CATEGORY_NAME",
    "GLOBAL_SUBCATEGORY_NAME",
]
