"""
Tests for the ticket intake pipeline and lifecycle.

Tests cover:
- Creation: routing backfill, SLA stamp, numbering, title suggestion
- Status and priority changes with history
- Comments and first response time
- Listing filters, deletion and dashboard stats
"""

import pytest
from datetime import datetime, timedelta
from uuid import uuid4
from unittest.mock import AsyncMock, patch
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Notification, Ticket, TicketHistory
from app.schemas.ticket import CommentCreate, TicketCreate, TicketUpdate
from app.services.tickets import (
    TicketFilters, TicketReferenceError, TicketService, can_change_status,
    is_ticket_number_conflict
)


APRIL_10 = datetime(2025, 4, 10, 9, 15, 0)

DESCRIPTION = (
    "Treadmill number three stopped mid-run and the belt kept slipping "
    "for the rest of the class."
)


def make_ticket_data(category, subcategory=None, **kwargs) -> TicketCreate:
    payload = {
        "category_id": category.id,
        "subcategory_id": subcategory.id if subcategory else None,
        "client_name": "Priya Shah",
        "title": "Treadmill belt slipping",
        "description": DESCRIPTION,
        "form_data": {"GLB-006": "Priya Shah", "GLB-012": DESCRIPTION},
    }
    payload.update(kwargs)
    return TicketCreate(**payload)


@pytest.mark.asyncio
@pytest.mark.database
class TestCreateTicket:
    """Test suite for TicketService.create_ticket."""

    async def test_facilities_ticket_end_to_end(
        self, db_session: AsyncSession, create_category, create_subcategory, create_user
    ):
        """Category default routes to facilities; medium gets 48h; number uses the running count."""
        category = await create_category(name="Facilities & Equipment", default_department="facilities")
        subcategory = await create_subcategory(category, name="Equipment Malfunction")
        reporter = await create_user()
        service = TicketService(db_session)

        with patch.object(TicketService, "count_tickets", AsyncMock(return_value=122)):
            ticket = await service.create_ticket(
                make_ticket_data(category, subcategory),
                reporter=reporter,
                now=APRIL_10,
            )

        assert ticket.department == "facilities"
        assert ticket.priority == "medium"
        assert ticket.sla_deadline == APRIL_10 + timedelta(hours=48)
        assert ticket.ticket_number == "P57-202504-00123"
        assert ticket.status == "open"
        assert ticket.assignee_id is None
        assert ticket.reported_by_id == reporter.id
        assert ticket.form_data == {"GLB-006": "Priya Shah", "GLB-012": DESCRIPTION}

        history = (await db_session.execute(
            select(TicketHistory).where(TicketHistory.ticket_id == ticket.id)
        )).scalars().all()
        assert [h.action for h in history] == ["ticket_created"]

    async def test_numbers_follow_ticket_count(
        self, db_session: AsyncSession, create_category, create_user
    ):
        category = await create_category()
        reporter = await create_user()
        service = TicketService(db_session)

        first = await service.create_ticket(make_ticket_data(category), reporter, now=APRIL_10)
        second = await service.create_ticket(make_ticket_data(category), reporter, now=APRIL_10)

        assert first.ticket_number == "P57-202504-00001"
        assert second.ticket_number == "P57-202504-00002"
        assert await service.next_ticket_number(now=APRIL_10) == "P57-202504-00003"

    async def test_rule_assigns_and_notifies(
        self, db_session: AsyncSession, create_category, create_subcategory, create_rule, create_user
    ):
        category = await create_category(default_department="operations")
        subcategory = await create_subcategory(category)
        technician = await create_user(role="team_member")
        reporter = await create_user()
        await create_rule(
            category_id=category.id,
            subcategory_id=subcategory.id,
            department="facilities",
            priority="critical",
            assign_to_user_id=technician.id,
        )

        ticket = await TicketService(db_session).create_ticket(
            make_ticket_data(category, subcategory, priority=None),
            reporter=reporter,
            now=APRIL_10,
        )

        assert ticket.department == "facilities"
        assert ticket.priority == "critical"
        assert ticket.sla_deadline == APRIL_10 + timedelta(hours=2)
        assert ticket.assignee_id == technician.id

        notifications = (await db_session.execute(
            select(Notification).where(Notification.user_id == technician.id)
        )).scalars().all()
        assert len(notifications) == 1
        assert notifications[0].type == "ticket_assigned"
        assert notifications[0].ticket_id == ticket.id

    async def test_explicit_values_not_overridden(
        self, db_session: AsyncSession, create_category, create_rule, create_user
    ):
        category = await create_category(default_department="operations")
        reporter = await create_user()
        await create_rule(category_id=category.id, department="finance", priority="critical")

        ticket = await TicketService(db_session).create_ticket(
            make_ticket_data(category, department="sales", priority="low"),
            reporter=reporter,
            now=APRIL_10,
        )

        assert ticket.department == "sales"
        assert ticket.priority == "low"
        assert ticket.sla_deadline is None

    async def test_null_priority_without_rule_defaults_to_medium(
        self, db_session: AsyncSession, create_category, create_user
    ):
        category = await create_category()
        reporter = await create_user()

        ticket = await TicketService(db_session).create_ticket(
            make_ticket_data(category, priority=None), reporter, now=APRIL_10
        )

        assert ticket.priority == "medium"
        assert ticket.department is None

    async def test_generic_title_uses_fallback_without_analyzer(
        self, db_session: AsyncSession, create_category, create_subcategory, create_user, location
    ):
        category = await create_category(name="Facilities & Equipment")
        subcategory = await create_subcategory(category, name="Equipment Malfunction")
        reporter = await create_user()

        ticket = await TicketService(db_session).create_ticket(
            make_ticket_data(category, subcategory, title="New ticket", location_id=location.id),
            reporter,
            now=APRIL_10,
        )

        assert ticket.title == "Equipment Malfunction — Priya Shah — Kenkre House"

    async def test_title_copied_from_description_is_replaced(
        self, db_session: AsyncSession, create_category, create_user, mock_analyzer
    ):
        category = await create_category()
        reporter = await create_user()

        ticket = await TicketService(db_session, analyzer=mock_analyzer).create_ticket(
            make_ticket_data(category, title=DESCRIPTION), reporter, now=APRIL_10
        )

        assert ticket.title == "Treadmill belt slipping at Kenkre House"
        context = mock_analyzer.suggest_title.call_args[0][0]
        assert context["client_name"] == "Priya Shah"
        assert context["category_name"] == category.name

    async def test_specific_title_kept(
        self, db_session: AsyncSession, create_category, create_user, mock_analyzer
    ):
        category = await create_category()
        reporter = await create_user()

        ticket = await TicketService(db_session, analyzer=mock_analyzer).create_ticket(
            make_ticket_data(category), reporter, now=APRIL_10
        )

        assert ticket.title == "Treadmill belt slipping"
        mock_analyzer.suggest_title.assert_not_called()

    async def test_number_counted_after_title_suggestion(
        self, db_session: AsyncSession, create_category, create_user, mock_analyzer
    ):
        category = await create_category()
        reporter = await create_user()
        calls = []
        mock_analyzer.suggest_title.side_effect = lambda context: calls.append("title") or "Belt slipping"

        async def count_tickets():
            calls.append("count")
            return 0

        service = TicketService(db_session, analyzer=mock_analyzer)
        with patch.object(service, "count_tickets", count_tickets):
            ticket = await service.create_ticket(
                make_ticket_data(category, title="New ticket"), reporter, now=APRIL_10
            )

        assert calls == ["title", "count"]
        assert ticket.ticket_number == "P57-202504-00001"

    @pytest.mark.parametrize("field,message", [
        ("category_id", "Category not found"),
        ("subcategory_id", "Subcategory not found"),
        ("location_id", "Location not found"),
        ("assignee_id", "Assignee not found"),
    ])
    async def test_unknown_reference_rejected(
        self, db_session: AsyncSession, create_category, create_user, field, message
    ):
        category = await create_category()
        reporter = await create_user()

        with pytest.raises(TicketReferenceError, match=message):
            await TicketService(db_session).create_ticket(
                make_ticket_data(category, **{field: uuid4()}), reporter, now=APRIL_10
            )

        count = await db_session.execute(select(func.count()).select_from(Ticket))
        assert count.scalar_one() == 0

    async def test_subcategory_of_other_category_rejected(
        self, db_session: AsyncSession, create_category, create_subcategory, create_user
    ):
        category = await create_category()
        other = await create_category()
        subcategory = await create_subcategory(other)
        reporter = await create_user()

        with pytest.raises(TicketReferenceError, match="does not belong"):
            await TicketService(db_session).create_ticket(
                make_ticket_data(category, subcategory), reporter, now=APRIL_10
            )


class TestTicketNumberConflict:
    """Test suite for is_ticket_number_conflict."""

    def test_unique_ticket_number_violation(self):
        error = IntegrityError(
            "INSERT INTO tickets", {},
            Exception('duplicate key value violates unique constraint "tickets_ticket_number_key"')
        )

        assert is_ticket_number_conflict(error)

    def test_foreign_key_violation(self):
        error = IntegrityError(
            "INSERT INTO tickets", {},
            Exception('insert or update on table "tickets" violates foreign key constraint "tickets_category_id_fkey"')
        )

        assert not is_ticket_number_conflict(error)


@pytest.mark.asyncio
@pytest.mark.database
class TestTicketLifecycle:
    """Test suite for status, priority and comment changes."""

    async def test_status_change_stamps_once(self, db_session: AsyncSession, create_ticket, create_user):
        ticket = await create_ticket()
        actor = await create_user(role="manager")
        service = TicketService(db_session)

        await service.change_status(ticket, "resolved", actor)
        first_resolved = ticket.resolved_at
        await service.change_status(ticket, "open", actor)
        await service.change_status(ticket, "resolved", actor)

        assert first_resolved is not None
        assert ticket.resolved_at == first_resolved

        history = await service.list_history(ticket.id)
        changes = [(h.previous_value, h.new_value) for h in history if h.action == "status_change"]
        assert sorted(changes) == sorted([("open", "resolved"), ("resolved", "open"), ("open", "resolved")])

    async def test_closing_stamps_closed_at(self, db_session: AsyncSession, create_ticket, create_user):
        ticket = await create_ticket()

        await TicketService(db_session).change_status(ticket, "closed", await create_user())

        assert ticket.closed_at is not None
        assert ticket.resolved_at is None

    async def test_priority_change_keeps_sla(self, db_session: AsyncSession, create_ticket, create_user):
        deadline = APRIL_10 + timedelta(hours=48)
        ticket = await create_ticket(priority="medium", sla_deadline=deadline)

        await TicketService(db_session).change_priority(ticket, "critical", await create_user())

        assert ticket.priority == "critical"
        assert ticket.sla_deadline == deadline

    async def test_first_comment_sets_first_response(
        self, db_session: AsyncSession, create_ticket, create_user
    ):
        ticket = await create_ticket()
        actor = await create_user()
        service = TicketService(db_session)

        await service.add_comment(ticket, CommentCreate(content="Called the client back"), actor)
        first_response = ticket.first_response_at
        await service.add_comment(ticket, CommentCreate(content="Part ordered", is_internal=True), actor)

        assert first_response is not None
        assert ticket.first_response_at == first_response
        assert len(await service.list_comments(ticket.id)) == 2

    async def test_update_applies_only_sent_fields(self, db_session: AsyncSession, create_ticket):
        ticket = await create_ticket(client_email="old@example.com")

        await TicketService(db_session).update_ticket(ticket, TicketUpdate(client_phone="+91 98200 12345"))

        assert ticket.client_phone == "+91 98200 12345"
        assert ticket.client_email == "old@example.com"

    async def test_can_change_status(self, create_ticket, create_user):
        reporter = await create_user()
        assignee = await create_user(role="team_member")
        stranger = await create_user()
        manager = await create_user(role="manager")
        ticket = await create_ticket(reported_by_id=reporter.id, assignee_id=assignee.id)

        assert can_change_status(ticket, reporter)
        assert can_change_status(ticket, assignee)
        assert can_change_status(ticket, manager)
        assert not can_change_status(ticket, stranger)

    async def test_delete_ticket(self, db_session: AsyncSession, create_ticket, create_user):
        ticket = await create_ticket()
        service = TicketService(db_session)
        await service.add_comment(ticket, CommentCreate(content="note"), await create_user())

        assert await service.delete_ticket(ticket.id) is True
        assert await service.delete_ticket(ticket.id) is False


@pytest.mark.asyncio
@pytest.mark.database
class TestListAndStats:
    """Test suite for listing filters and dashboard counts."""

    async def test_filters(self, db_session: AsyncSession, create_ticket, create_category):
        category = await create_category()
        await create_ticket(status="open", priority="high", category_id=category.id, client_name="Asha Rao")
        await create_ticket(status="pending", priority="low", department="finance", client_name="Ben Ortiz")
        await create_ticket(status="closed", priority="high", client_name="Dev Menon")
        service = TicketService(db_session)

        assert len(await service.list_tickets(TicketFilters(status="open,pending"))) == 2
        assert len(await service.list_tickets(TicketFilters(priority="high"))) == 2
        assert len(await service.list_tickets(TicketFilters(category_id=category.id))) == 1
        assert len(await service.list_tickets(TicketFilters(department="finance"))) == 1
        assert len(await service.list_tickets(TicketFilters(search="asha"))) == 1
        assert len(await service.list_tickets(TicketFilters(limit=1))) == 1

    async def test_stats(self, db_session: AsyncSession, create_ticket):
        await create_ticket(status="open")
        await create_ticket(status="open", is_escalated=True)
        await create_ticket(status="in_progress")
        await create_ticket(status="resolved")
        await create_ticket(status="closed")

        stats = await TicketService(db_session).get_stats()

        assert stats == {
            "total": 5,
            "open": 2,
            "in_progress": 1,
            "pending": 0,
            "resolved": 2,
            "escalated": 1,
        }
