"""
Pytest fixtures and configuration for Studio Feedback Desk tests.

This module provides shared fixtures for:
- Test database setup/teardown with async support
- Mock Claude analyzer
- Model factories (users, categories, subcategories, rules, tickets)
- An HTTP client against the app with auth and database overridden
"""

import os

# Settings are read at import time; the real app must never see a live database
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("ESCALATION_SWEEP_ENABLED", "false")
os.environ.setdefault("AI_RATE_LIMIT", "10000")
os.environ.setdefault("GENERAL_RATE_LIMIT", "10000")

import pytest
import pytest_asyncio
from datetime import datetime, timedelta
from typing import AsyncGenerator
from unittest.mock import MagicMock
from faker import Faker
from httpx import ASGITransport, AsyncClient

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.pool import StaticPool

from app.database import Base
from app.models import (
    AssignmentRule,
    Category,
    EscalationRule,
    Location,
    Subcategory,
    Ticket,
    User,
)
from app.services.analyzer import FeedbackAnalyzer
from app.services.field_defaults import GLOBAL_FIELDS

# Initialize Faker for generating test data
fake = Faker()

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    In-memory SQLite engine with all tables created.

    StaticPool keeps the single in-memory connection alive for the test.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Clean database session for each test, rolled back afterwards."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


# Mock Claude analyzer
@pytest.fixture
def mock_analyzer() -> MagicMock:
    """FeedbackAnalyzer stand-in that answers without calling Claude."""
    analyzer = MagicMock(spec=FeedbackAnalyzer)
    analyzer.suggest_title.return_value = "Treadmill belt slipping at Kenkre House"
    return analyzer


# Database model factory fixtures
@pytest_asyncio.fixture
async def create_user(db_session: AsyncSession):
    """Factory fixture for creating users."""
    async def _create_user(**kwargs) -> User:
        defaults = {
            "email": fake.unique.email(),
            "first_name": fake.first_name(),
            "last_name": fake.last_name(),
            "role": "support_staff",
            "is_active": True,
        }
        defaults.update(kwargs)

        user = User(**defaults)
        db_session.add(user)
        await db_session.flush()
        return user

    return _create_user


@pytest_asyncio.fixture
async def create_category(db_session: AsyncSession):
    """Factory fixture for creating categories."""
    async def _create_category(**kwargs) -> Category:
        defaults = {
            "name": fake.unique.catch_phrase(),
            "description": fake.sentence(),
            "default_department": None,
            "is_active": True,
        }
        defaults.update(kwargs)

        category = Category(**defaults)
        db_session.add(category)
        await db_session.flush()
        return category

    return _create_category


@pytest_asyncio.fixture
async def create_subcategory(db_session: AsyncSession):
    """Factory fixture for creating subcategories with an embedded form."""
    async def _create_subcategory(category: Category, **kwargs) -> Subcategory:
        defaults = {
            "category_id": category.id,
            "name": fake.unique.bs().title(),
            "form_fields": None,
            "is_active": True,
        }
        defaults.update(kwargs)

        subcategory = Subcategory(**defaults)
        db_session.add(subcategory)
        await db_session.flush()
        return subcategory

    return _create_subcategory


@pytest_asyncio.fixture
async def create_rule(db_session: AsyncSession):
    """
    Factory fixture for assignment rules.

    Rules are stamped a second apart so creation order is deterministic.
    """
    base_time = datetime(2025, 1, 1, 9, 0, 0)
    counter = {"n": 0}

    async def _create_rule(**kwargs) -> AssignmentRule:
        counter["n"] += 1
        defaults = {
            "name": f"Rule {counter['n']}",
            "is_active": True,
            "created_at": base_time + timedelta(seconds=counter["n"]),
        }
        defaults.update(kwargs)

        rule = AssignmentRule(**defaults)
        db_session.add(rule)
        await db_session.flush()
        return rule

    return _create_rule


@pytest_asyncio.fixture
async def create_escalation_rule(db_session: AsyncSession):
    async def _create_escalation_rule(**kwargs) -> EscalationRule:
        defaults = {
            "name": "Critical after 30 minutes",
            "priority": "critical",
            "escalate_after_minutes": 30,
            "escalate_to_role": "manager",
            "notify_original_assignee": True,
            "is_active": True,
        }
        defaults.update(kwargs)

        rule = EscalationRule(**defaults)
        db_session.add(rule)
        await db_session.flush()
        return rule

    return _create_escalation_rule


@pytest_asyncio.fixture
async def create_ticket(db_session: AsyncSession, create_user, create_category):
    """
    Factory fixture for inserting tickets directly, bypassing intake.

    Creates a reporter and category when none are given.
    """
    async def _create_ticket(**kwargs) -> Ticket:
        if "reported_by_id" not in kwargs:
            kwargs["reported_by_id"] = (await create_user()).id
        if "category_id" not in kwargs:
            kwargs["category_id"] = (await create_category()).id

        now = datetime.utcnow()
        defaults = {
            "ticket_number": f"P57-{now:%Y%m}-{fake.unique.random_int(min=1, max=99999):05d}",
            "client_name": fake.name(),
            "title": fake.sentence(nb_words=6),
            "description": fake.text(max_nb_chars=200),
            "status": "open",
            "priority": "medium",
            "form_data": {},
            "created_at": now,
            "updated_at": now,
        }
        defaults.update(kwargs)

        ticket = Ticket(**defaults)
        db_session.add(ticket)
        await db_session.flush()
        return ticket

    return _create_ticket


@pytest_asyncio.fixture
async def global_catalog(db_session: AsyncSession, create_category, create_subcategory):
    """Global category and subcategory holding the built-in global fields."""
    category = await create_category(name="Global")
    subcategory = await create_subcategory(
        category,
        name="Global",
        form_fields={"fields": [dict(f) for f in GLOBAL_FIELDS]},
    )
    return category, subcategory


@pytest_asyncio.fixture
async def location(db_session: AsyncSession) -> Location:
    studio = Location(name="Kenkre House", is_active=True)
    db_session.add(studio)
    await db_session.flush()
    return studio


# HTTP client fixtures
@pytest_asyncio.fixture
async def staff_user(create_user) -> User:
    return await create_user(role="support_staff", email="staff@studio.test")


@pytest_asyncio.fixture
async def admin_user(create_user) -> User:
    return await create_user(role="admin", email="admin@studio.test")


@pytest_asyncio.fixture
async def make_client(db_session: AsyncSession):
    """
    Factory for an HTTP client acting as a given user.

    The database dependency yields the test session, and the analyzer
    dependency returns None (no Anthropic key) unless one is passed.
    """
    from app.main import app
    from app.api.deps import get_db, get_current_user
    from app.services.analyzer import get_analyzer

    clients = []

    async def _make_client(user: User, analyzer=None) -> AsyncClient:
        async def override_get_db():
            yield db_session

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_current_user] = lambda: user
        app.dependency_overrides[get_analyzer] = lambda: analyzer

        client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        clients.append(client)
        return client

    yield _make_client

    for client in clients:
        await client.aclose()
    app.dependency_overrides.clear()
