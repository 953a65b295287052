"""
Async SQLite implementation of the transition executor's collaborators.

Every call opens its own ApplicationsWriter and commits on its own, so the
status write, the history entry and each side effect are independent: a
failing history insert never rolls back an already-committed status. The
blocking SQLite work runs in a worker thread via ``asyncio.to_thread`` so the
event loop stays responsive.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from db.applications_writer import ApplicationsWriter
from models.application import StatusTransitionEvent
from models.status import ReminderType
from utils.validation import get_current_utc_timestamp

logger = logging.getLogger(__name__)

DEFAULT_FOLLOW_UP_DAYS = 7


class SqlitePipelineStore:
    """ApplicationStore, ChecklistService and ReminderService backed by SQLite."""

    def __init__(
        self,
        db_path: Optional[str] = None,
        follow_up_days: int = DEFAULT_FOLLOW_UP_DAYS,
        reminder_type: str = ReminderType.EMAIL.value,
    ):
        self.db_path = db_path
        self.follow_up_days = follow_up_days
        self.reminder_type = reminder_type

    async def update_status(self, record_id: str, status: str, timestamp: str) -> None:
        await asyncio.to_thread(self._update_status, record_id, status, timestamp)

    async def append_status_event(self, event: StatusTransitionEvent) -> None:
        await asyncio.to_thread(self._append_status_event, event)

    async def mark_item_complete(self, record_id: str, item_key: str) -> bool:
        return await asyncio.to_thread(self._mark_item_complete, record_id, item_key)

    async def create_follow_up(self, record_id: str, user_id: str) -> None:
        await asyncio.to_thread(self._create_follow_up, record_id, user_id)

    def _update_status(self, record_id: str, status: str, timestamp: str) -> None:
        with ApplicationsWriter(self.db_path) as writer:
            writer.update_job_status(record_id, status, timestamp)
            writer.commit()

    def _append_status_event(self, event: StatusTransitionEvent) -> None:
        with ApplicationsWriter(self.db_path) as writer:
            writer.insert_status_event(event)
            writer.commit()

    def _mark_item_complete(self, record_id: str, item_key: str) -> bool:
        with ApplicationsWriter(self.db_path) as writer:
            changed = writer.complete_checklist_item(record_id, item_key, get_current_utc_timestamp())
            writer.commit()
        if changed:
            logger.info("Checklist item '%s' completed for job %s", item_key, record_id)
        return changed

    def _create_follow_up(self, record_id: str, user_id: str) -> None:
        now = datetime.now(timezone.utc)
        reminder_date = (now + timedelta(days=self.follow_up_days)).isoformat(
            timespec="milliseconds"
        ).replace("+00:00", "Z")
        with ApplicationsWriter(self.db_path) as writer:
            writer.insert_reminder(
                record_id, user_id, reminder_date, self.reminder_type, get_current_utc_timestamp()
            )
            writer.commit()
        logger.info("Follow-up reminder for job %s scheduled at %s", record_id, reminder_date)
