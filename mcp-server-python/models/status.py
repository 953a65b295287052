"""
Centralized, type-safe status definitions for the job pipeline board.

Application status is free text at the storage boundary (legacy rows may
carry labels that no longer exist). Every raw value is normalized into the
closed ``PipelineColumn`` enum as soon as it is read; ``PipelineColumn.OTHER``
is the explicit variant for anything unrecognized.

``PipelineColumn`` inherits from ``(str, Enum)`` so members compare equal to
the plain column ids stored in the ``jobs`` table and serialize naturally to
JSON at the tool boundary.
"""

from enum import Enum


class PipelineColumn(str, Enum):
    """Board columns in pipeline order.

    The value is the column id, which is also the canonical status string
    written to the database when a record is moved into the column.
    ``OTHER`` is synthetic: records land there when their status is not
    recognized, and nothing can be moved into it.
    """

    INTERESTED = "Interested"
    APPLIED = "Applied"
    PHONE_SCREEN = "Phone Screen"
    INTERVIEW = "Interview"
    OFFER = "Offer"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    OTHER = "unknown"


class ReminderType(str, Enum):
    """Delivery channel for follow-up reminders."""

    EMAIL = "email"
    NOTIFICATION = "notification"
    SMS = "sms"
