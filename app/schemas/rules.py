from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from uuid import UUID

from app.schemas.ticket import DepartmentEnum, PriorityEnum
from app.schemas.user import RoleEnum


class AssignmentRuleCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    category_id: Optional[UUID] = None
    subcategory_id: Optional[UUID] = None
    department: Optional[DepartmentEnum] = None
    priority: Optional[PriorityEnum] = None
    assign_to_user_id: Optional[UUID] = None
    assign_to_team_id: Optional[UUID] = None
    is_active: bool = True

    class Config:
        use_enum_values = True


class AssignmentRuleUpdate(BaseModel):
    name: Optional[str] = None
    category_id: Optional[UUID] = None
    subcategory_id: Optional[UUID] = None
    department: Optional[DepartmentEnum] = None
    priority: Optional[PriorityEnum] = None
    assign_to_user_id: Optional[UUID] = None
    assign_to_team_id: Optional[UUID] = None
    is_active: Optional[bool] = None

    class Config:
        use_enum_values = True


class AssignmentRuleResponse(BaseModel):
    id: UUID
    name: str
    category_id: Optional[UUID] = None
    subcategory_id: Optional[UUID] = None
    department: Optional[str] = None
    priority: Optional[str] = None
    assign_to_user_id: Optional[UUID] = None
    assign_to_team_id: Optional[UUID] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class AssignmentPreviewRequest(BaseModel):
    """What-if input for the resolver; nothing is persisted."""
    category_id: UUID
    subcategory_id: Optional[UUID] = None
    department: Optional[DepartmentEnum] = None
    priority: Optional[PriorityEnum] = None
    assignee_id: Optional[UUID] = None

    class Config:
        use_enum_values = True


class AssignmentPreviewResponse(BaseModel):
    department: Optional[str] = None
    priority: Optional[str] = None
    assignee_id: Optional[UUID] = None
    rule_id: Optional[UUID] = None
    rule_name: Optional[str] = None
    score: int = 0


class EscalationRuleCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    priority: PriorityEnum
    escalate_after_minutes: int = Field(gt=0)
    escalate_to_role: RoleEnum
    notify_original_assignee: bool = True
    is_active: bool = True

    class Config:
        use_enum_values = True


class EscalationRuleResponse(BaseModel):
    id: UUID
    name: str
    priority: str
    escalate_after_minutes: int
    escalate_to_role: str
    notify_original_assignee: bool
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
