"""
Unit tests for per-card metrics: days in stage and deadline urgency.
"""

from datetime import datetime, timedelta, timezone

import pytest

from models.application import ApplicationRecord
from utils.card_metrics import UrgencyLevel, days_in_stage, deadline_urgency

NOW = datetime(2026, 3, 10, 12, 0, 0, tzinfo=timezone.utc)


def record(**fields):
    return ApplicationRecord(id="1", status="Applied", **fields)


class TestDaysInStage:
    """Tests for days_in_stage."""

    def test_uses_updated_at(self):
        r = record(created_at=NOW - timedelta(days=20), updated_at=NOW - timedelta(days=3))
        assert days_in_stage(r, NOW) == 3

    def test_falls_back_to_created_at(self):
        r = record(created_at=NOW - timedelta(days=5, hours=23))
        assert days_in_stage(r, NOW) == 5

    def test_zero_without_timestamps(self):
        assert days_in_stage(record(), NOW) == 0

    def test_future_timestamp_clamped_to_zero(self):
        assert days_in_stage(record(updated_at=NOW + timedelta(days=2)), NOW) == 0

    def test_naive_timestamps_treated_as_utc(self):
        r = ApplicationRecord(id="1", updated_at="2026-03-08T12:00:00")
        assert days_in_stage(r, NOW) == 2

    def test_parses_database_strings(self):
        r = ApplicationRecord(id="1", updated_at="2026-03-01T12:00:00.000Z")
        assert days_in_stage(r, NOW) == 9


class TestDeadlineUrgency:
    """Tests for deadline_urgency."""

    def test_none_without_deadline(self):
        assert deadline_urgency(record(), NOW) is None

    def test_overdue(self):
        urgency = deadline_urgency(record(application_deadline=NOW - timedelta(days=2)), NOW)
        assert urgency.level == UrgencyLevel.OVERDUE
        assert urgency.label == "Overdue"

    def test_overdue_by_hours(self):
        urgency = deadline_urgency(record(application_deadline=NOW - timedelta(hours=3)), NOW)
        assert urgency.level == UrgencyLevel.OVERDUE

    @pytest.mark.parametrize(
        "delta,level,label",
        [
            (timedelta(hours=5), UrgencyLevel.URGENT, "1d left"),
            (timedelta(days=3), UrgencyLevel.URGENT, "3d left"),
            (timedelta(days=3, hours=1), UrgencyLevel.SOON, "4d left"),
            (timedelta(days=7), UrgencyLevel.SOON, "7d left"),
            (timedelta(days=12), UrgencyLevel.COMFORTABLE, "12d left"),
        ],
    )
    def test_levels(self, delta, level, label):
        urgency = deadline_urgency(record(application_deadline=NOW + delta), NOW)
        assert urgency.level == level
        assert urgency.label == label

    def test_to_dict(self):
        urgency = deadline_urgency(record(application_deadline=NOW + timedelta(days=2)), NOW)
        assert urgency.to_dict() == {"level": "urgent", "days_left": 2, "label": "2d left"}
