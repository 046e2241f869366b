"""
Tests for the background scheduler and the escalation sweep job.
"""

import importlib
import pytest
from datetime import datetime, timedelta
from unittest.mock import patch
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.models import Category, EscalationRule, Ticket, User
from app.tasks import escalation_sweep_job, get_job_status, setup_scheduler

scheduler_module = importlib.import_module("app.tasks.scheduler")


@pytest.mark.escalation
class TestSchedulerSetup:
    """Test suite for scheduler configuration."""

    def test_disabled_sweep_not_scheduled(self):
        with patch.object(scheduler_module.settings, "ESCALATION_SWEEP_ENABLED", False):
            setup_scheduler()

        assert not scheduler_module.scheduler.running
        assert get_job_status() == []


@pytest.mark.asyncio
@pytest.mark.database
@pytest.mark.escalation
class TestEscalationSweepJob:
    """Test suite for escalation_sweep_job."""

    async def test_job_commits_escalations(self, test_engine: AsyncEngine):
        session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

        async with session_factory() as session:
            manager = User(email="manager@studio.test", role="manager")
            reporter = User(email="desk@studio.test")
            category = Category(name="Health & Safety")
            session.add_all([manager, reporter, category])
            await session.flush()
            session.add_all([
                EscalationRule(
                    name="Critical after 30 minutes",
                    priority="critical",
                    escalate_after_minutes=30,
                    escalate_to_role="manager",
                ),
                Ticket(
                    ticket_number="P57-202504-00001",
                    category_id=category.id,
                    client_name="Priya Shah",
                    title="Member slipped near the pool",
                    description="Wet floor near the pool entrance, no sign posted.",
                    priority="critical",
                    reported_by_id=reporter.id,
                    created_at=datetime.utcnow() - timedelta(hours=2),
                ),
            ])
            await session.commit()

        with patch.object(scheduler_module, "AsyncSessionLocal", session_factory):
            escalated = await escalation_sweep_job()

        assert escalated == 1
        async with session_factory() as session:
            ticket = (await session.execute(select(Ticket))).scalar_one()
            assert ticket.is_escalated
            assert ticket.escalated_to_id == manager.id
