"""
Catalog API endpoints: categories, subcategories, locations and the
dynamic form (effective fields and validation).
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional
from uuid import UUID

from app.api.deps import get_db, get_current_user
from app.models import Category, Location, User
from app.schemas import (
    CategoryResponse, EffectiveFieldsResponse, FormValidationRequest,
    FormValidationResponse, LocationResponse, SubcategoryResponse, UserResponse
)
from app.services.field_catalog import FieldCatalog
from app.services.forms import validate_form

router = APIRouter(tags=["catalog"])


@router.get("/categories", response_model=List[CategoryResponse])
async def list_categories(
    include_inactive: bool = False,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    query = select(Category).order_by(Category.name)
    if not include_inactive:
        query = query.where(Category.is_active.is_(True))
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/categories/{category_id}/subcategories", response_model=List[SubcategoryResponse])
async def list_subcategories(
    category_id: UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """Active subcategories of a category; empty for an unknown category."""
    return await FieldCatalog(db).get_subcategories(category_id)


@router.get("/locations", response_model=List[LocationResponse])
async def list_locations(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    result = await db.execute(
        select(Location).where(Location.is_active.is_(True)).order_by(Location.name)
    )
    return result.scalars().all()


@router.get("/users", response_model=List[UserResponse])
async def list_users(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """Active users, for assignee pickers."""
    result = await db.execute(
        select(User).where(User.is_active.is_(True)).order_by(User.first_name, User.email)
    )
    return result.scalars().all()


@router.get("/forms/fields", response_model=EffectiveFieldsResponse)
async def get_form_fields(
    category_id: UUID,
    subcategory_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """
    Fields to render for a category/subcategory selection.

    Global fields come first; subcategory fields with the same id replace
    them in place. Hidden fields are left out.
    """
    fields = await FieldCatalog(db).get_rendered_fields(category_id, subcategory_id)
    return EffectiveFieldsResponse(
        category_id=category_id,
        subcategory_id=subcategory_id,
        fields=fields,
        visible_count=len(fields),
    )


@router.post("/forms/validate", response_model=FormValidationResponse)
async def validate_form_answers(
    data: FormValidationRequest,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """
    Validate answers against the effective fields.

    Always 200; `errors` maps field id to message for every failing field.
    """
    fields = await FieldCatalog(db).get_effective_fields(data.category_id, data.subcategory_id)
    errors = validate_form(fields, data.answers)
    return FormValidationResponse(valid=not errors, errors=errors)
