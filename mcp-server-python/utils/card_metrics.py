"""Per-card metrics shown on the pipeline board."""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional

from models.application import ApplicationRecord

SECONDS_PER_DAY = 24 * 60 * 60
URGENT_DAYS = 3
SOON_DAYS = 7


class UrgencyLevel(str, Enum):
    OVERDUE = "overdue"
    URGENT = "urgent"
    SOON = "soon"
    COMFORTABLE = "comfortable"


@dataclass(frozen=True)
class DeadlineUrgency:
    level: UrgencyLevel
    days_left: int
    label: str

    def to_dict(self) -> Dict[str, object]:
        return {"level": self.level.value, "days_left": self.days_left, "label": self.label}


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps in the database are UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _now(now: Optional[datetime]) -> datetime:
    return _as_utc(now) if now is not None else datetime.now(timezone.utc)


def days_in_stage(record: ApplicationRecord, now: Optional[datetime] = None) -> int:
    """
    Whole days since the record last changed.

    Uses updated_at, falling back to created_at; 0 when neither is known or
    the timestamp lies in the future.
    """
    since = record.updated_at or record.created_at
    if since is None:
        return 0
    elapsed = (_now(now) - _as_utc(since)).total_seconds()
    return max(0, math.floor(elapsed / SECONDS_PER_DAY))


def deadline_urgency(
    record: ApplicationRecord, now: Optional[datetime] = None
) -> Optional[DeadlineUrgency]:
    """
    Classify how close the application deadline is.

    Days left are rounded up, so a deadline later today counts as 1 day.
    Any deadline already in the past is overdue.

    Returns:
        DeadlineUrgency, or None when the record has no deadline
    """
    if record.application_deadline is None:
        return None

    remaining = (_as_utc(record.application_deadline) - _now(now)).total_seconds()
    days_left = math.ceil(remaining / SECONDS_PER_DAY)

    if remaining < 0:
        return DeadlineUrgency(UrgencyLevel.OVERDUE, days_left, "Overdue")
    if days_left <= URGENT_DAYS:
        level = UrgencyLevel.URGENT
    elif days_left <= SOON_DAYS:
        level = UrgencyLevel.SOON
    else:
        level = UrgencyLevel.COMFORTABLE
    return DeadlineUrgency(level, days_left, f"{days_left}d left")
