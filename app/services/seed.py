"""
Seed the taxonomy: default categories, the Global form and studio locations.

Safe to run repeatedly; existing rows are left alone apart from an empty
Global form, which is filled in.
"""

import logging
from typing import Dict

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Category, Location, Subcategory, GLOBAL_CATEGORY_NAME, GLOBAL_SUBCATEGORY_NAME
from app.services.field_catalog import normalize_form_fields
from app.services.field_defaults import DEFAULT_CATEGORIES, GLOBAL_FIELDS, LOCATIONS

logger = logging.getLogger(__name__)


async def seed_catalog(session: AsyncSession) -> Dict[str, int]:
    stats = {"categories": 0, "subcategories": 0, "locations": 0}

    categories = {}
    for name, description, color, icon, department in DEFAULT_CATEGORIES:
        result = await session.execute(
            select(Category).where(func.lower(Category.name) == name.lower())
        )
        category = result.scalar_one_or_none()
        if category is None:
            category = Category(
                name=name,
                description=description,
                color=color,
                icon=icon,
                default_department=department,
                is_active=True,
            )
            session.add(category)
            stats["categories"] += 1
        categories[name] = category
    await session.flush()

    global_category = categories[GLOBAL_CATEGORY_NAME]
    result = await session.execute(
        select(Subcategory)
        .where(Subcategory.category_id == global_category.id)
        .where(func.lower(Subcategory.name) == GLOBAL_SUBCATEGORY_NAME.lower())
    )
    global_subcategory = result.scalar_one_or_none()
    if global_subcategory is None:
        global_subcategory = Subcategory(
            category_id=global_category.id,
            name=GLOBAL_SUBCATEGORY_NAME,
            description="Fields shown on every ticket",
            is_active=True,
        )
        session.add(global_subcategory)
        stats["subcategories"] += 1
    if not normalize_form_fields(global_subcategory.form_fields):
        global_subcategory.form_fields = {"fields": [dict(f) for f in GLOBAL_FIELDS]}

    result = await session.execute(select(Location.name))
    existing_locations = set(result.scalars().all())
    for name in LOCATIONS:
        if name not in existing_locations:
            session.add(Location(name=name, is_active=True))
            stats["locations"] += 1

    await session.flush()
    logger.info(
        f"Seeded {stats['categories']} categories, "
        f"{stats['subcategories']} subcategories, {stats['locations']} locations"
    )
    return stats
