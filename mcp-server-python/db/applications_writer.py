"""
Database writer layer for the job pipeline tools.

Provides write access to the pipeline database with transaction management:
status updates, status history, archiving, deadlines, checklist completion
and reminders.
"""

import json
import logging
import sqlite3
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from db.applications_reader import resolve_db_path
from db.schema import job_columns, missing_tables
from models.application import StatusTransitionEvent
from models.errors import (
    create_db_error,
    create_db_not_found_error,
    create_not_found_error,
)

logger = logging.getLogger(__name__)


class ApplicationsWriter:
    """
    Context manager for write operations on the pipeline database.

    Provides transaction management with automatic rollback on exceptions
    and guaranteed connection cleanup.

    Usage:
        with ApplicationsWriter(db_path) as writer:
            writer.ensure_pipeline_tables()
            writer.update_job_status("job-1", "Applied", timestamp)
            writer.commit()
    """

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path
        self.resolved_path: Optional[Path] = None
        self.conn: Optional[sqlite3.Connection] = None
        self._in_transaction = False

    def __enter__(self):
        """
        Open connection and begin transaction.

        Raises:
            ToolError: If database file doesn't exist or connection fails
        """
        self.resolved_path = resolve_db_path(self.db_path)

        if not self.resolved_path.exists() or not self.resolved_path.is_file():
            raise create_db_not_found_error(str(self.resolved_path))

        try:
            self.conn = sqlite3.connect(str(self.resolved_path))
            self.conn.row_factory = sqlite3.Row
            self.conn.execute("BEGIN")
            self._in_transaction = True
            return self

        except sqlite3.OperationalError as e:
            error_msg = str(e)
            if "unable to open database" in error_msg.lower():
                raise create_db_not_found_error(str(self.resolved_path)) from e
            else:
                raise create_db_error(error_msg, retryable=True, original_error=e) from e

        except sqlite3.Error as e:
            raise create_db_error(str(e), retryable=False, original_error=e) from e

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Rollback on exception, close connection always."""
        try:
            if exc_type is not None and self._in_transaction:
                self.rollback()
        finally:
            if self.conn is not None:
                self.conn.close()
                self.conn = None

        return False

    def _require_connection(self) -> sqlite3.Connection:
        if self.conn is None:
            raise create_db_error("Connection not established", retryable=False)
        return self.conn

    def ensure_pipeline_tables(self) -> None:
        """
        Verify that all pipeline tables exist.

        Raises:
            ToolError: If any required table is missing
        """
        conn = self._require_connection()
        try:
            missing = missing_tables(conn)
        except sqlite3.Error as e:
            raise create_db_error(str(e), retryable=False, original_error=e) from e

        if missing:
            missing_str = ", ".join(f"'{name}'" for name in missing)
            raise create_db_error(
                f"Schema error: missing required tables: {missing_str}. Database migration required.",
                retryable=False,
            )

    def ensure_job_columns(self, required_columns: Sequence[str]) -> None:
        """
        Verify that the jobs table has all of ``required_columns``.

        Raises:
            ToolError: If any column is missing
        """
        conn = self._require_connection()
        try:
            present = job_columns(conn)
        except sqlite3.Error as e:
            raise create_db_error(str(e), retryable=False, original_error=e) from e

        missing = [name for name in required_columns if name not in present]
        if missing:
            missing_str = ", ".join(f"'{name}'" for name in missing)
            raise create_db_error(
                f"Schema error: jobs table is missing required columns: {missing_str}. Database migration required.",
                retryable=False,
            )

    def validate_jobs_exist(self, job_ids: List[str]) -> List[str]:
        """
        Check which job ids exist in the database.

        Returns:
            List of missing job ids in input order (empty if all exist)
        """
        conn = self._require_connection()
        if not job_ids:
            return []

        try:
            placeholders = ",".join("?" * len(job_ids))
            rows = conn.execute(
                f"SELECT id FROM jobs WHERE id IN ({placeholders})", job_ids
            ).fetchall()
            existing_ids = {row["id"] for row in rows}
            return [job_id for job_id in job_ids if job_id not in existing_ids]

        except sqlite3.Error as e:
            raise create_db_error(str(e), retryable=False, original_error=e) from e

    def get_statuses(self, job_ids: List[str]) -> Dict[str, str]:
        """Current raw status for each existing job id."""
        conn = self._require_connection()
        if not job_ids:
            return {}

        try:
            placeholders = ",".join("?" * len(job_ids))
            rows = conn.execute(
                f"SELECT id, status FROM jobs WHERE id IN ({placeholders})", job_ids
            ).fetchall()
            return {row["id"]: row["status"] for row in rows}

        except sqlite3.Error as e:
            raise create_db_error(str(e), retryable=False, original_error=e) from e

    def get_archive_states(self, job_ids: List[str]) -> Dict[str, bool]:
        """Whether each existing job id is archived."""
        conn = self._require_connection()
        if not job_ids:
            return {}

        try:
            placeholders = ",".join("?" * len(job_ids))
            rows = conn.execute(
                f"SELECT id, COALESCE(is_archived, 0) AS is_archived FROM jobs WHERE id IN ({placeholders})",
                job_ids,
            ).fetchall()
            return {row["id"]: bool(row["is_archived"]) for row in rows}

        except sqlite3.Error as e:
            raise create_db_error(str(e), retryable=False, original_error=e) from e

    def get_deadlines(self, job_ids: List[str]) -> Dict[str, Optional[str]]:
        """Current application_deadline for each existing job id."""
        conn = self._require_connection()
        if not job_ids:
            return {}

        try:
            placeholders = ",".join("?" * len(job_ids))
            rows = conn.execute(
                f"SELECT id, application_deadline FROM jobs WHERE id IN ({placeholders})", job_ids
            ).fetchall()
            return {row["id"]: row["application_deadline"] for row in rows}

        except sqlite3.Error as e:
            raise create_db_error(str(e), retryable=False, original_error=e) from e

    def update_job_status(self, job_id: str, status: str, timestamp: str) -> None:
        """
        Update status and updated_at of a single job.

        Raises:
            ToolError: NOT_FOUND if the job does not exist, DB_ERROR on failure
        """
        conn = self._require_connection()

        try:
            cursor = conn.execute(
                """
                UPDATE jobs
                SET status = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (status, timestamp, job_id),
            )
        except sqlite3.Error as e:
            raise create_db_error(str(e), retryable=False, original_error=e) from e

        if cursor.rowcount == 0:
            raise create_not_found_error(job_id)

    def set_archived(
        self, job_id: str, archived: bool, timestamp: str, reason: Optional[str] = None
    ) -> None:
        """
        Archive or restore a single job.

        Archiving stamps archived_at with ``timestamp`` and stores ``reason``;
        restoring clears both. Status and updated_at are left alone.

        Raises:
            ToolError: NOT_FOUND if the job does not exist, DB_ERROR on failure
        """
        conn = self._require_connection()

        if archived:
            params = (1, timestamp, reason, job_id)
        else:
            params = (0, None, None, job_id)

        try:
            cursor = conn.execute(
                """
                UPDATE jobs
                SET is_archived = ?,
                    archived_at = ?,
                    archive_reason = ?
                WHERE id = ?
                """,
                params,
            )
        except sqlite3.Error as e:
            raise create_db_error(str(e), retryable=False, original_error=e) from e

        if cursor.rowcount == 0:
            raise create_not_found_error(job_id)

    def update_deadline(self, job_id: str, deadline: Optional[str]) -> None:
        """
        Set or clear the application deadline of a single job.

        Raises:
            ToolError: NOT_FOUND if the job does not exist, DB_ERROR on failure
        """
        conn = self._require_connection()

        try:
            cursor = conn.execute(
                "UPDATE jobs SET application_deadline = ? WHERE id = ?",
                (deadline, job_id),
            )
        except sqlite3.Error as e:
            raise create_db_error(str(e), retryable=False, original_error=e) from e

        if cursor.rowcount == 0:
            raise create_not_found_error(job_id)

    def insert_status_event(self, event: StatusTransitionEvent) -> None:
        """Append one row to job_status_history."""
        conn = self._require_connection()

        try:
            conn.execute(
                """
                INSERT INTO job_status_history (job_id, user_id, from_status, to_status, changed_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (event.job_id, event.user_id, event.from_status, event.to_status, event.changed_at),
            )
        except sqlite3.Error as e:
            raise create_db_error(str(e), retryable=False, original_error=e) from e

    def complete_checklist_item(self, job_id: str, item_key: str, timestamp: str) -> bool:
        """
        Mark the checklist item identified by ``item_key`` as completed.

        The item whose id equals ``item_key`` is completed. Checklists without
        such an id fall back to the first unfinished item whose text contains
        it. Both comparisons ignore case. The completion percentage is
        recomputed.

        Returns:
            True if the item changed, False otherwise (including when
            the job has no checklist)
        """
        conn = self._require_connection()

        try:
            row = conn.execute(
                "SELECT id, checklist_items FROM application_checklists WHERE job_id = ?",
                (job_id,),
            ).fetchone()
            if row is None:
                logger.debug("No checklist for job %s", job_id)
                return False

            try:
                items = json.loads(row["checklist_items"] or "[]")
            except json.JSONDecodeError:
                logger.warning("Checklist for job %s is not valid JSON, leaving it untouched", job_id)
                return False
            if not isinstance(items, list):
                return False

            needle = item_key.casefold()
            entries = [item for item in items if isinstance(item, dict)]
            target = next(
                (item for item in entries if str(item.get("id", "")).casefold() == needle),
                None,
            )
            if target is None:
                target = next(
                    (
                        item
                        for item in entries
                        if not item.get("completed")
                        and needle in str(item.get("text", "")).casefold()
                    ),
                    None,
                )

            if target is None or target.get("completed"):
                return False
            target["completed"] = True

            total = len(items)
            completed = sum(1 for item in items if isinstance(item, dict) and item.get("completed"))
            percentage = round(completed / total * 100) if total else 0

            conn.execute(
                """
                UPDATE application_checklists
                SET checklist_items = ?,
                    completion_percentage = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (json.dumps(items), percentage, timestamp, row["id"]),
            )
            return True

        except sqlite3.Error as e:
            raise create_db_error(str(e), retryable=False, original_error=e) from e

    def insert_reminder(
        self, job_id: str, user_id: str, reminder_date: str, reminder_type: str, timestamp: str
    ) -> None:
        """Insert an unsent reminder for a job."""
        conn = self._require_connection()

        try:
            conn.execute(
                """
                INSERT INTO deadline_reminders (
                    job_id, user_id, reminder_date, reminder_type, is_sent, created_at
                ) VALUES (?, ?, ?, ?, 0, ?)
                """,
                (job_id, user_id, reminder_date, reminder_type, timestamp),
            )
        except sqlite3.Error as e:
            raise create_db_error(str(e), retryable=False, original_error=e) from e

    def commit(self) -> None:
        """
        Commit the transaction and start a new one.

        Raises:
            ToolError: If commit fails
        """
        conn = self._require_connection()

        if not self._in_transaction:
            return

        try:
            conn.commit()
            # Keep the writer usable for follow-up steps in the same context
            conn.execute("BEGIN")
            self._in_transaction = True

        except sqlite3.Error as e:
            raise create_db_error(
                f"Failed to commit transaction: {str(e)}", retryable=True, original_error=e
            ) from e

    def rollback(self) -> None:
        """
        Rollback the transaction.

        Failures are logged, not raised, since rollback runs during error
        handling.
        """
        if self.conn is None or not self._in_transaction:
            return

        try:
            self.conn.rollback()
            self._in_transaction = False
        except sqlite3.Error as e:
            logger.warning("Rollback failed: %s", e)
