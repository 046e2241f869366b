"""
Admin settings API endpoints. Admin and manager roles only.

Covers the ticket taxonomy (categories, subcategories and their embedded
forms), assignment and escalation rules, and user roles.
"""

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List
from uuid import UUID
import logging

from app.api.deps import get_db, require_admin_or_manager
from app.models import AssignmentRule, Category, EscalationRule, Subcategory, User
from app.schemas import (
    AssignmentPreviewRequest, AssignmentPreviewResponse,
    AssignmentRuleCreate, AssignmentRuleResponse, AssignmentRuleUpdate,
    CategoryCreate, CategoryResponse, CategoryUpdate,
    EscalationRuleCreate, EscalationRuleResponse,
    FormDuplicateRequest, MessageResponse, SubcategoryCreate, SubcategoryFormUpdate,
    SubcategoryResponse, SubcategoryUpdate, UserResponse, UserUpdate
)
from app.services.assignment import AssignmentResolver
from app.services.escalation import EscalationService
from app.services.field_catalog import FieldCatalog
from app.tasks.scheduler import get_job_status

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


# Users

@router.get("/users", response_model=List[UserResponse])
async def list_users(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin_or_manager)
):
    """All users, including deactivated ones."""
    result = await db.execute(select(User).order_by(User.created_at))
    return result.scalars().all()


@router.patch("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: UUID,
    data: UserUpdate,
    db: AsyncSession = Depends(get_db),
    actor: User = Depends(require_admin_or_manager)
):
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(user, key, value)
    await db.flush()
    logger.info(f"User {user.email} updated by {actor.email}")
    return user


# Categories

@router.post("/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    data: CategoryCreate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin_or_manager)
):
    category = Category(**data.model_dump(), is_active=True)
    db.add(category)
    try:
        await db.flush()
    except IntegrityError:
        raise HTTPException(status_code=409, detail="Category name already exists")
    return category


@router.patch("/categories/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: UUID,
    data: CategoryUpdate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin_or_manager)
):
    """Update a category. Set is_active to false to retire it."""
    category = await db.get(Category, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(category, key, value)
    try:
        await db.flush()
    except IntegrityError:
        raise HTTPException(status_code=409, detail="Category name already exists")
    return category


# Subcategories and forms

@router.post(
    "/subcategories",
    response_model=SubcategoryResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_subcategory(
    data: SubcategoryCreate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin_or_manager)
):
    if not await db.get(Category, data.category_id):
        raise HTTPException(status_code=404, detail="Category not found")

    subcategory = Subcategory(**data.model_dump(), is_active=True)
    db.add(subcategory)
    await db.flush()
    return subcategory


@router.patch("/subcategories/{subcategory_id}", response_model=SubcategoryResponse)
async def update_subcategory(
    subcategory_id: UUID,
    data: SubcategoryUpdate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin_or_manager)
):
    subcategory = await db.get(Subcategory, subcategory_id)
    if not subcategory:
        raise HTTPException(status_code=404, detail="Subcategory not found")

    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(subcategory, key, value)
    await db.flush()
    return subcategory


@router.put("/subcategories/{subcategory_id}/form", response_model=SubcategoryResponse)
async def replace_subcategory_form(
    subcategory_id: UUID,
    data: SubcategoryFormUpdate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin_or_manager)
):
    """
    Replace the embedded form definition.

    Accepts a bare list of field objects or {"fields": [...]} and stores it
    as given.
    """
    form = data.form_fields
    if not isinstance(form, list) and not (isinstance(form, dict) and isinstance(form.get("fields"), list)):
        raise HTTPException(
            status_code=400,
            detail='form_fields must be a list or an object with a "fields" list'
        )

    subcategory = await FieldCatalog(db).save_form_fields(subcategory_id, form)
    if not subcategory:
        raise HTTPException(status_code=404, detail="Subcategory not found")
    return subcategory


@router.post("/subcategories/{subcategory_id}/duplicate-form", response_model=SubcategoryResponse)
async def duplicate_subcategory_form(
    subcategory_id: UUID,
    data: FormDuplicateRequest,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin_or_manager)
):
    """Copy another subcategory's form onto this one."""
    catalog = FieldCatalog(db)
    if not await db.get(Subcategory, subcategory_id):
        raise HTTPException(status_code=404, detail="Subcategory not found")

    subcategory = await catalog.duplicate_form(data.source_subcategory_id, subcategory_id)
    if not subcategory:
        raise HTTPException(status_code=404, detail="Source subcategory not found")
    return subcategory


# Assignment rules

@router.get("/assignment-rules", response_model=List[AssignmentRuleResponse])
async def list_assignment_rules(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin_or_manager)
):
    """All rules in evaluation order (oldest first)."""
    result = await db.execute(
        select(AssignmentRule).order_by(AssignmentRule.created_at, AssignmentRule.id)
    )
    return result.scalars().all()


@router.post(
    "/assignment-rules",
    response_model=AssignmentRuleResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_assignment_rule(
    data: AssignmentRuleCreate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin_or_manager)
):
    rule = AssignmentRule(**data.model_dump())
    db.add(rule)
    await db.flush()
    logger.info(f"Created assignment rule '{rule.name}'")
    return rule


@router.patch("/assignment-rules/{rule_id}", response_model=AssignmentRuleResponse)
async def update_assignment_rule(
    rule_id: UUID,
    data: AssignmentRuleUpdate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin_or_manager)
):
    rule = await db.get(AssignmentRule, rule_id)
    if not rule:
        raise HTTPException(status_code=404, detail="Assignment rule not found")

    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(rule, key, value)
    await db.flush()
    return rule


@router.delete("/assignment-rules/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_assignment_rule(
    rule_id: UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin_or_manager)
):
    rule = await db.get(AssignmentRule, rule_id)
    if not rule:
        raise HTTPException(status_code=404, detail="Assignment rule not found")
    await db.delete(rule)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/assignment-rules/preview", response_model=AssignmentPreviewResponse)
async def preview_assignment(
    data: AssignmentPreviewRequest,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin_or_manager)
):
    """Show how a ticket with these values would be routed. Nothing is saved."""
    result = await AssignmentResolver(db).resolve(
        category_id=data.category_id,
        subcategory_id=data.subcategory_id,
        department=data.department,
        priority=data.priority,
        assignee_id=data.assignee_id,
    )
    return AssignmentPreviewResponse(
        department=result.department,
        priority=result.priority,
        assignee_id=result.assignee_id,
        rule_id=result.rule.id if result.rule else None,
        rule_name=result.rule.name if result.rule else None,
        score=result.score,
    )


# Escalation rules

@router.get("/escalation-rules", response_model=List[EscalationRuleResponse])
async def list_escalation_rules(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin_or_manager)
):
    result = await db.execute(
        select(EscalationRule).order_by(EscalationRule.priority, EscalationRule.escalate_after_minutes)
    )
    return result.scalars().all()


@router.post(
    "/escalation-rules",
    response_model=EscalationRuleResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_escalation_rule(
    data: EscalationRuleCreate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin_or_manager)
):
    rule = EscalationRule(**data.model_dump())
    db.add(rule)
    await db.flush()
    return rule


@router.delete("/escalation-rules/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_escalation_rule(
    rule_id: UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin_or_manager)
):
    rule = await db.get(EscalationRule, rule_id)
    if not rule:
        raise HTTPException(status_code=404, detail="Escalation rule not found")
    await db.delete(rule)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Scheduled jobs

@router.get("/jobs")
async def list_scheduled_jobs(_: User = Depends(require_admin_or_manager)):
    """Scheduled background jobs and their next run times."""
    return {"jobs": get_job_status()}


@router.post("/jobs/escalation-sweep", response_model=MessageResponse)
async def run_escalation_sweep(
    db: AsyncSession = Depends(get_db),
    actor: User = Depends(require_admin_or_manager)
):
    """Run the escalation rules now instead of waiting for the scheduler."""
    escalated = await EscalationService(db).sweep()
    logger.info(f"Manual escalation sweep by {actor.email}: {escalated} tickets")
    return MessageResponse(message=f"Escalated {escalated} tickets")
