from app.schemas.common import MessageResponse, HealthResponse
from app.schemas.fields import (
    FieldType, ValidationRuleType, ValidationRule, FieldDefinition,
    EffectiveField, EffectiveFieldsResponse,
    FormValidationRequest, FormValidationResponse
)
from app.schemas.ticket import (
    StatusEnum, PriorityEnum, DepartmentEnum,
    TicketCreate, TicketUpdate, TicketStatusUpdate, TicketPriorityUpdate,
    TicketResponse, TicketDetailResponse, TicketStats, NextTicketNumber,
    CommentCreate, CommentResponse, HistoryResponse, AttachmentResponse
)
from app.schemas.catalog import (
    CategoryCreate, CategoryUpdate, CategoryResponse, CategoryWithSubcategories,
    SubcategoryCreate, SubcategoryUpdate, SubcategoryResponse,
    SubcategoryFormUpdate, FormDuplicateRequest, LocationResponse
)
from app.schemas.rules import (
    AssignmentRuleCreate, AssignmentRuleUpdate, AssignmentRuleResponse,
    AssignmentPreviewRequest, AssignmentPreviewResponse,
    EscalationRuleCreate, EscalationRuleResponse
)
from app.schemas.user import RoleEnum, UserResponse, UserUpdate, NotificationResponse, UnreadCount
from app.schemas.ai import AnalyzeRequest, FeedbackAnalysis

__all__ = [
    # Common
    "MessageResponse",
    "HealthResponse",
    # Fields
    "FieldType",
    "ValidationRuleType",
    "ValidationRule",
    "FieldDefinition",
    "EffectiveField",
    "EffectiveFieldsResponse",
    "FormValidationRequest",
    "FormValidationResponse",
    # Ticket
    "StatusEnum",
    "PriorityEnum",
    "DepartmentEnum",
    "TicketCreate",
    "TicketUpdate",
    "TicketStatusUpdate",
    "TicketPriorityUpdate",
    "TicketResponse",
    "TicketDetailResponse",
    "TicketStats",
    "NextTicketNumber",
    "CommentCreate",
    "CommentResponse",
    "HistoryResponse",
    "AttachmentResponse",
    # Catalog
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryResponse",
    "CategoryWithSubcategories",
    "SubcategoryCreate",
    "SubcategoryUpdate",
    "SubcategoryResponse",
    "SubcategoryFormUpdate",
    "FormDuplicateRequest",
    "LocationResponse",
    # Rules
    "AssignmentRuleCreate",
    "AssignmentRuleUpdate",
    "AssignmentRuleResponse",
    "AssignmentPreviewRequest",
    "AssignmentPreviewResponse",
    "EscalationRuleCreate",
    "EscalationRuleResponse",
    # Users
    "RoleEnum",
    "UserResponse",
    "UserUpdate",
    "NotificationResponse",
    "UnreadCount",
    # AI
    "AnalyzeRequest",
    "FeedbackAnalysis",
]
