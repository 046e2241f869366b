from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from uuid import UUID
from enum import Enum

from app.schemas.ticket import DepartmentEnum


class RoleEnum(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    TEAM_MEMBER = "team_member"
    SUPPORT_STAFF = "support_staff"


class UserResponse(BaseModel):
    id: UUID
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: str
    profile_image_url: Optional[str] = None
    role: str
    department: Optional[str] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class NotificationResponse(BaseModel):
    id: UUID
    user_id: UUID
    ticket_id: Optional[UUID] = None
    type: str
    title: str
    message: str
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UnreadCount(BaseModel):
    count: int


class UserUpdate(BaseModel):
    """Admin changes to a user's role and routing department."""
    role: Optional[RoleEnum] = None
    department: Optional[DepartmentEnum] = None
    is_active: Optional[bool] = None

    class Config:
        use_enum_values = True
