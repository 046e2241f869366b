from pydantic import BaseModel, Field
from typing import Optional, List, Any
from datetime import datetime
from uuid import UUID

from app.schemas.ticket import DepartmentEnum


class CategoryBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    default_department: Optional[DepartmentEnum] = None

    class Config:
        use_enum_values = True


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    default_department: Optional[DepartmentEnum] = None
    is_active: Optional[bool] = None

    class Config:
        use_enum_values = True


class CategoryResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    default_department: Optional[str] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class SubcategoryCreate(BaseModel):
    category_id: UUID
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    default_department: Optional[DepartmentEnum] = None
    form_fields: Optional[Any] = None

    class Config:
        use_enum_values = True


class SubcategoryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    default_department: Optional[DepartmentEnum] = None
    is_active: Optional[bool] = None

    class Config:
        use_enum_values = True


class SubcategoryResponse(BaseModel):
    id: UUID
    category_id: UUID
    name: str
    description: Optional[str] = None
    default_department: Optional[str] = None
    form_fields: Optional[Any] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class SubcategoryFormUpdate(BaseModel):
    """Replace the embedded form definition. Bare list or {"fields": [...]}."""
    form_fields: Any


class FormDuplicateRequest(BaseModel):
    source_subcategory_id: UUID


class CategoryWithSubcategories(CategoryResponse):
    subcategories: List[SubcategoryResponse] = []


class LocationResponse(BaseModel):
    id: UUID
    name: str
    address: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True
