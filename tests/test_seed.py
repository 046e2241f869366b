"""
Tests for seeding the default catalog.
"""

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Category, Location
from app.services.field_catalog import FieldCatalog
from app.services.field_defaults import DEFAULT_CATEGORIES, GLOBAL_FIELDS, LOCATIONS
from app.services.seed import seed_catalog


@pytest.mark.asyncio
@pytest.mark.database
class TestSeedCatalog:
    """Test suite for seed_catalog."""

    async def test_seed_empty_database(self, db_session: AsyncSession):
        stats = await seed_catalog(db_session)

        assert stats == {
            "categories": len(DEFAULT_CATEGORIES),
            "subcategories": 1,
            "locations": len(LOCATIONS),
        }
        global_fields = await FieldCatalog(db_session).get_global_fields()
        assert [f.id for f in global_fields] == [f["id"] for f in GLOBAL_FIELDS]

    async def test_seed_is_idempotent(self, db_session: AsyncSession):
        await seed_catalog(db_session)

        stats = await seed_catalog(db_session)

        assert stats == {"categories": 0, "subcategories": 0, "locations": 0}
        count = await db_session.execute(select(func.count()).select_from(Category))
        assert count.scalar_one() == len(DEFAULT_CATEGORIES)

    async def test_existing_category_kept(self, db_session: AsyncSession, create_category):
        existing = await create_category(name="global", description="Ours")

        await seed_catalog(db_session)

        assert existing.description == "Ours"
        locations = await db_session.execute(select(Location.name))
        assert set(locations.scalars().all()) == set(LOCATIONS)
