"""
Tests for SLA deadlines and ticket numbering.
"""

import pytest
from datetime import datetime, timedelta

from app.services.sla import compute_sla_deadline, format_ticket_number


NOW = datetime(2025, 4, 10, 14, 30, 0)


@pytest.mark.sla
class TestSlaDeadline:
    """Test suite for compute_sla_deadline."""

    @pytest.mark.parametrize("priority,hours", [
        ("critical", 2),
        ("high", 24),
        ("medium", 48),
    ])
    def test_windows(self, priority, hours):
        assert compute_sla_deadline(priority, NOW) == NOW + timedelta(hours=hours)

    def test_low_priority_has_no_deadline(self):
        assert compute_sla_deadline("low", NOW) is None

    def test_unknown_priority_has_no_deadline(self):
        assert compute_sla_deadline(None, NOW) is None
        assert compute_sla_deadline("urgent", NOW) is None

    def test_deadline_crosses_month_boundary(self):
        now = datetime(2025, 4, 30, 23, 0, 0)

        assert compute_sla_deadline("medium", now) == datetime(2025, 5, 2, 23, 0, 0)


@pytest.mark.sla
class TestTicketNumber:
    """Test suite for format_ticket_number."""

    def test_format(self):
        assert format_ticket_number(NOW, 122, prefix="P57") == "P57-202504-00123"

    def test_first_ticket(self):
        assert format_ticket_number(datetime(2025, 1, 1), 0, prefix="P57") == "P57-202501-00001"

    def test_counter_is_global_across_months(self):
        """The suffix keeps counting when the month changes."""
        assert format_ticket_number(datetime(2025, 5, 1), 123, prefix="P57") == "P57-202505-00124"

    def test_counter_wider_than_padding(self):
        assert format_ticket_number(NOW, 123456, prefix="P57") == "P57-202504-123457"

    def test_prefix_from_settings(self):
        assert format_ticket_number(NOW, 0).endswith("-202504-00001")
