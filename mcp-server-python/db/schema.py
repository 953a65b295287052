"""
SQLite schema for the job pipeline database.

Used by the import script and by tests to create a fresh database. The tools
themselves never create tables; they fail with DB_NOT_FOUND / DB_ERROR
instead.
"""

import sqlite3

REQUIRED_TABLES = (
    "jobs",
    "job_status_history",
    "application_checklists",
    "deadline_reminders",
)

ARCHIVE_COLUMNS = ("is_archived", "archived_at", "archive_reason")

# Columns added after the first release, with their declarations
ADDED_JOB_COLUMNS = (("archive_reason", "TEXT"),)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS jobs (
    id TEXT PRIMARY KEY,
    job_title TEXT,
    company_name TEXT,
    location TEXT,
    job_url TEXT,
    status TEXT NOT NULL DEFAULT 'Interested',
    salary REAL,
    application_deadline TEXT,
    is_archived INTEGER NOT NULL DEFAULT 0,
    archived_at TEXT,
    archive_reason TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_jobs_status ON jobs(status);
CREATE INDEX IF NOT EXISTS idx_jobs_created_at ON jobs(created_at);

CREATE TABLE IF NOT EXISTS job_status_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    job_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    from_status TEXT,
    to_status TEXT NOT NULL,
    changed_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_job_status_history_job ON job_status_history(job_id);

CREATE TABLE IF NOT EXISTS application_checklists (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    job_id TEXT NOT NULL UNIQUE,
    user_id TEXT,
    checklist_items TEXT NOT NULL DEFAULT '[]',
    completion_percentage INTEGER NOT NULL DEFAULT 0,
    updated_at TEXT
);

CREATE TABLE IF NOT EXISTS deadline_reminders (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    job_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    reminder_date TEXT NOT NULL,
    reminder_type TEXT NOT NULL DEFAULT 'email',
    is_sent INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_deadline_reminders_job ON deadline_reminders(job_id);
"""


def ensure_schema(conn: sqlite3.Connection) -> None:
    """Create all pipeline tables and indexes if they do not exist.

    Existing jobs tables are upgraded with the columns they lack.
    """
    conn.executescript(SCHEMA_SQL)
    present = job_columns(conn)
    for name, declaration in ADDED_JOB_COLUMNS:
        if name not in present:
            conn.execute(f"ALTER TABLE jobs ADD COLUMN {name} {declaration}")


def job_columns(conn: sqlite3.Connection) -> list:
    """Return the column names of the jobs table."""
    return [row[1] for row in conn.execute("PRAGMA table_info(jobs)").fetchall()]


def missing_tables(conn: sqlite3.Connection) -> list:
    """Return the required tables that are absent, in declaration order."""
    rows = conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
    present = {row[0] for row in rows}
    return [name for name in REQUIRED_TABLES if name not in present]
