"""
Integration tests for the bulk_update_application_deadline MCP tool.
"""

import os
import sqlite3
import tempfile

import pytest

from db.schema import ensure_schema
from models.errors import ErrorCode
from tools.bulk_update_application_deadline import bulk_update_application_deadline


@pytest.fixture
def temp_db():
    """Create a temporary pipeline database with a few applications."""
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    conn = sqlite3.connect(path)
    ensure_schema(conn)
    conn.executemany(
        """
        INSERT INTO jobs (id, status, application_deadline, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?)
        """,
        [
            ("job-1", "Interested", None, "2026-01-01T00:00:00Z", "2026-01-02T00:00:00Z"),
            ("job-2", "Applied", "2026-03-01", "2026-01-01T00:00:00Z", None),
            ("job-3", "Interview", "2026-02-15", "2026-01-01T00:00:00Z", None),
        ],
    )
    conn.commit()
    conn.close()

    yield path

    try:
        os.unlink(path)
    except OSError:
        pass


def deadlines(path):
    conn = sqlite3.connect(path)
    try:
        return dict(conn.execute("SELECT id, application_deadline FROM jobs").fetchall())
    finally:
        conn.close()


class TestBulkDeadlineSuccess:
    """Tests for successful batches."""

    def test_sets_deadline(self, temp_db):
        result = bulk_update_application_deadline(
            {"job_ids": ["job-1", "job-3"], "application_deadline": "2026-03-01", "db_path": temp_db}
        )

        assert result == {
            "application_deadline": "2026-03-01",
            "updated_count": 2,
            "unchanged_count": 0,
            "failed_count": 0,
            "results": [
                {"id": "job-1", "success": True, "action": "updated"},
                {"id": "job-3", "success": True, "action": "updated"},
            ],
        }
        assert deadlines(temp_db) == {
            "job-1": "2026-03-01",
            "job-2": "2026-03-01",
            "job-3": "2026-03-01",
        }

    def test_equal_deadline_is_noop(self, temp_db):
        result = bulk_update_application_deadline(
            {"job_ids": ["job-2", "job-3"], "application_deadline": " 2026-03-01 ", "db_path": temp_db}
        )
        assert [item["action"] for item in result["results"]] == ["noop", "updated"]
        assert result["unchanged_count"] == 1

    def test_null_clears_deadline(self, temp_db):
        result = bulk_update_application_deadline(
            {"job_ids": ["job-1", "job-2"], "application_deadline": None, "db_path": temp_db}
        )

        assert "application_deadline" not in result
        assert [item["action"] for item in result["results"]] == ["noop", "updated"]
        assert deadlines(temp_db)["job-2"] is None

    def test_datetime_deadline_accepted(self, temp_db):
        result = bulk_update_application_deadline(
            {"job_ids": ["job-1"], "application_deadline": "2026-03-01T17:00:00Z", "db_path": temp_db}
        )
        assert result["updated_count"] == 1
        assert deadlines(temp_db)["job-1"] == "2026-03-01T17:00:00Z"

    def test_status_and_updated_at_untouched(self, temp_db):
        bulk_update_application_deadline(
            {"job_ids": ["job-1"], "application_deadline": "2026-04-01", "db_path": temp_db}
        )
        conn = sqlite3.connect(temp_db)
        try:
            row = conn.execute("SELECT status, updated_at FROM jobs WHERE id = 'job-1'").fetchone()
        finally:
            conn.close()
        assert row == ("Interested", "2026-01-02T00:00:00Z")


class TestBulkDeadlineFailures:
    """Tests for rejected batches."""

    def test_missing_id_rolls_back_whole_batch(self, temp_db):
        result = bulk_update_application_deadline(
            {"job_ids": ["job-1", "missing"], "application_deadline": "2026-05-01", "db_path": temp_db}
        )

        assert result["updated_count"] == 0
        assert result["failed_count"] == 1
        assert result["results"][1] == {
            "id": "missing",
            "success": False,
            "error": "Job ID missing does not exist",
        }
        assert deadlines(temp_db)["job-1"] is None

    @pytest.mark.parametrize(
        "deadline, message",
        [
            ("next friday", "Invalid application_deadline: 'next friday' is not an ISO 8601 date"),
            ("", "Invalid application_deadline: cannot be empty"),
            (20260301, "Invalid application_deadline type: expected string, got int"),
        ],
    )
    def test_invalid_deadline(self, temp_db, deadline, message):
        result = bulk_update_application_deadline(
            {"job_ids": ["job-1"], "application_deadline": deadline, "db_path": temp_db}
        )
        assert result["error"]["code"] == ErrorCode.VALIDATION_ERROR.value
        assert result["error"]["message"] == message

    def test_deadline_is_required(self, temp_db):
        result = bulk_update_application_deadline({"job_ids": ["job-1"], "db_path": temp_db})
        assert result["error"]["code"] == ErrorCode.VALIDATION_ERROR.value
        assert result["error"]["message"].startswith("Invalid application_deadline:")

    def test_duplicate_ids_rejected(self, temp_db):
        result = bulk_update_application_deadline(
            {"job_ids": ["job-1", "job-1"], "application_deadline": "2026-03-01", "db_path": temp_db}
        )
        assert result["error"]["code"] == ErrorCode.VALIDATION_ERROR.value

    def test_missing_database(self, tmp_path):
        result = bulk_update_application_deadline(
            {
                "job_ids": ["job-1"],
                "application_deadline": "2026-03-01",
                "db_path": str(tmp_path / "nope.db"),
            }
        )
        assert result["error"]["code"] == ErrorCode.DB_NOT_FOUND.value
