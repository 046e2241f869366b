from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime, timezone
from uuid import UUID
from enum import Enum


class StatusEnum(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    PENDING = "pending"
    RESOLVED = "resolved"
    CLOSED = "closed"
    ESCALATED = "escalated"


class PriorityEnum(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class DepartmentEnum(str, Enum):
    OPERATIONS = "operations"
    FACILITIES = "facilities"
    TRAINING = "training"
    SALES = "sales"
    CLIENT_SUCCESS = "client_success"
    MARKETING = "marketing"
    FINANCE = "finance"
    MANAGEMENT = "management"


def _as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Columns are naive UTC
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class TicketCreate(BaseModel):
    """
    Body of POST /api/tickets.

    Priority defaults to "medium" here, before the assignment resolver runs,
    so a rule priority only ever applies when a caller sends an explicit null.
    """
    category_id: UUID
    subcategory_id: Optional[UUID] = None
    client_name: str = Field(min_length=1, max_length=255)
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    client_status: Optional[str] = None
    client_mood: Optional[str] = None
    title: Optional[str] = None
    description: str = Field(min_length=1)
    action_taken_immediately: Optional[str] = None
    location_id: Optional[UUID] = None
    incident_datetime: Optional[datetime] = None
    status: StatusEnum = "open"
    priority: Optional[PriorityEnum] = "medium"
    department: Optional[DepartmentEnum] = None
    assignee_id: Optional[UUID] = None
    is_escalated: bool = False
    escalation_reason: Optional[str] = None
    follow_up_required: bool = False
    follow_up_date: Optional[datetime] = None
    attachments_count: int = Field(default=0, ge=0)
    form_data: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("incident_datetime", "follow_up_date")
    @classmethod
    def naive_utc(cls, value):
        return _as_naive_utc(value)

    class Config:
        use_enum_values = True


class TicketUpdate(BaseModel):
    """Partial update; only fields present in the body are applied."""
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    client_status: Optional[str] = None
    client_mood: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    action_taken_immediately: Optional[str] = None
    location_id: Optional[UUID] = None
    department: Optional[DepartmentEnum] = None
    assignee_id: Optional[UUID] = None
    follow_up_required: Optional[bool] = None
    follow_up_date: Optional[datetime] = None
    form_data: Optional[Dict[str, Any]] = None

    @field_validator("follow_up_date")
    @classmethod
    def naive_utc(cls, value):
        return _as_naive_utc(value)

    class Config:
        use_enum_values = True


class TicketStatusUpdate(BaseModel):
    status: StatusEnum

    class Config:
        use_enum_values = True


class TicketPriorityUpdate(BaseModel):
    priority: PriorityEnum

    class Config:
        use_enum_values = True


class TicketResponse(BaseModel):
    id: UUID
    ticket_number: str
    category_id: UUID
    subcategory_id: Optional[UUID] = None
    client_name: str
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    client_status: Optional[str] = None
    client_mood: Optional[str] = None
    title: str
    description: str
    action_taken_immediately: Optional[str] = None
    location_id: Optional[UUID] = None
    incident_datetime: Optional[datetime] = None
    reported_datetime: datetime
    status: str
    priority: str
    department: Optional[str] = None
    assignee_id: Optional[UUID] = None
    reported_by_id: UUID
    sla_deadline: Optional[datetime] = None
    first_response_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    ai_tags: Optional[List[str]] = None
    ai_sentiment: Optional[str] = None
    ai_sentiment_score: Optional[int] = None
    ai_suggested_category: Optional[str] = None
    ai_keywords: Optional[List[str]] = None
    form_data: Optional[Dict[str, Any]] = None
    is_escalated: bool
    escalated_at: Optional[datetime] = None
    escalated_to_id: Optional[UUID] = None
    escalation_reason: Optional[str] = None
    follow_up_required: bool
    follow_up_date: Optional[datetime] = None
    attachments_count: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CommentCreate(BaseModel):
    content: str = Field(min_length=1)
    is_internal: bool = False


class CommentResponse(BaseModel):
    id: UUID
    ticket_id: UUID
    user_id: UUID
    content: str
    is_internal: bool
    created_at: datetime

    class Config:
        from_attributes = True


class HistoryResponse(BaseModel):
    id: UUID
    ticket_id: UUID
    user_id: UUID
    action: str
    previous_value: Optional[str] = None
    new_value: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AttachmentResponse(BaseModel):
    id: UUID
    file_name: str
    file_type: str
    file_size: int
    file_url: str
    uploaded_by_id: UUID
    created_at: datetime

    class Config:
        from_attributes = True


class TicketDetailResponse(TicketResponse):
    """Ticket with its comments, history and attachments."""
    comments: List[CommentResponse] = []
    history: List[HistoryResponse] = []
    attachments: List[AttachmentResponse] = []


class TicketStats(BaseModel):
    """Counts for the dashboard header."""
    total: int
    open: int
    in_progress: int
    pending: int
    resolved: int
    escalated: int


class NextTicketNumber(BaseModel):
    ticket_number: str
