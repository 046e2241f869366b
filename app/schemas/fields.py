from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Union
from uuid import UUID
from enum import Enum


class FieldType(str, Enum):
    AUTO_GENERATED = "Auto-generated"
    DATETIME = "DateTime"
    DATE = "Date"
    DROPDOWN = "Dropdown"
    TEXT = "Text"
    EMAIL = "Email"
    PHONE = "Phone"
    LONG_TEXT = "Long Text"
    CHECKBOX = "Checkbox"
    FILE_UPLOAD = "File Upload"
    NUMBER = "Number"


class ValidationRuleType(str, Enum):
    MIN_LENGTH = "minLength"
    MAX_LENGTH = "maxLength"
    PATTERN = "pattern"
    MIN = "min"
    MAX = "max"


class ValidationRule(BaseModel):
    type: ValidationRuleType
    value: Union[int, float, str]
    message: str = "Invalid value"


class FieldDefinition(BaseModel):
    """A typed dynamic form field. Built from embedded JSON by the field catalog."""
    id: str
    label: str
    field_type: FieldType = FieldType.TEXT
    options: Optional[List[str]] = None
    description: str = ""
    is_required: bool = False
    is_hidden: bool = False
    validation: List[ValidationRule] = []


class EffectiveField(FieldDefinition):
    """Field as served to the form renderer."""
    widget: str


class EffectiveFieldsResponse(BaseModel):
    category_id: UUID
    subcategory_id: Optional[UUID] = None
    fields: List[EffectiveField]
    visible_count: int


class FormValidationRequest(BaseModel):
    category_id: UUID
    subcategory_id: Optional[UUID] = None
    answers: Dict[str, object] = Field(default_factory=dict)


class FormValidationResponse(BaseModel):
    valid: bool
    errors: Dict[str, str] = {}
