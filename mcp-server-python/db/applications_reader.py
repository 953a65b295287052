"""
Database reader layer for the job pipeline tools.

Provides read-only access to the pipeline database with connection
management and deterministic query execution.
"""

import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional

from models.errors import (
    create_db_error,
    create_db_not_found_error,
)

# Default database path relative to repository root
DEFAULT_DB_PATH = "data/pipeline/jobs.db"

APPLICATION_COLUMNS = """
    id,
    job_title,
    company_name,
    status,
    salary,
    application_deadline,
    is_archived,
    created_at,
    updated_at
"""


def resolve_db_path(db_path: Optional[str] = None) -> Path:
    """
    Resolve the database path with support for overrides and defaults.

    Resolution order:
    1. Provided db_path parameter
    2. JOBPIPELINE_DB environment variable
    3. JOBPIPELINE_ROOT/data/pipeline/jobs.db
    4. Default path: data/pipeline/jobs.db

    Args:
        db_path: Optional database path override

    Returns:
        Resolved absolute Path to the database
    """
    if db_path is not None:
        path_str = db_path
    else:
        db_env = os.getenv("JOBPIPELINE_DB")
        if db_env:
            path_str = db_env
        else:
            root_env = os.getenv("JOBPIPELINE_ROOT")
            if root_env:
                return Path(root_env) / "data" / "pipeline" / "jobs.db"
            path_str = DEFAULT_DB_PATH

    path = Path(path_str)

    # If relative, resolve from repository root
    if not path.is_absolute():
        current_file = Path(__file__).resolve()
        repo_root = current_file.parents[2]  # db/ -> mcp-server-python/ -> repo/
        path = repo_root / path

    return path


@contextmanager
def get_connection(db_path: Optional[str] = None):
    """
    Context manager for read-only SQLite connections.

    Args:
        db_path: Optional database path override

    Yields:
        sqlite3.Connection: Database connection with sqlite3.Row rows

    Raises:
        ToolError: If database file doesn't exist or connection fails
    """
    resolved_path = resolve_db_path(db_path)

    if not resolved_path.exists() or not resolved_path.is_file():
        raise create_db_not_found_error(str(resolved_path))

    conn = None
    try:
        uri = f"file:{resolved_path}?mode=ro"
        conn = sqlite3.connect(uri, uri=True)
        conn.row_factory = sqlite3.Row

        yield conn

    except sqlite3.OperationalError as e:
        error_msg = str(e)
        if "unable to open database" in error_msg.lower():
            raise create_db_not_found_error(str(resolved_path)) from e
        else:
            raise create_db_error(error_msg, retryable=True, original_error=e) from e

    except sqlite3.Error as e:
        raise create_db_error(str(e), retryable=False, original_error=e) from e

    finally:
        if conn is not None:
            conn.close()


def query_applications(
    conn: sqlite3.Connection, include_archived: bool = False
) -> List[Dict[str, Any]]:
    """
    Query job applications, newest first.

    Results are ordered by (created_at DESC, id DESC); the board keeps this
    order within each column.

    Args:
        conn: Database connection
        include_archived: Whether archived applications are returned

    Returns:
        List of application rows as dictionaries

    Raises:
        ToolError: If query execution fails
    """
    query = f"SELECT {APPLICATION_COLUMNS} FROM jobs"
    if not include_archived:
        query += " WHERE COALESCE(is_archived, 0) = 0"
    query += " ORDER BY created_at DESC, id DESC"

    try:
        rows = conn.execute(query).fetchall()
        return [dict(row) for row in rows]
    except sqlite3.Error as e:
        raise create_db_error(str(e), retryable=False, original_error=e) from e


def query_application(conn: sqlite3.Connection, job_id: str) -> Optional[Dict[str, Any]]:
    """Fetch one application row by id, or None if it does not exist."""
    try:
        row = conn.execute(
            f"SELECT {APPLICATION_COLUMNS} FROM jobs WHERE id = ?", (job_id,)
        ).fetchone()
        return dict(row) if row is not None else None
    except sqlite3.Error as e:
        raise create_db_error(str(e), retryable=False, original_error=e) from e


def query_status_history(conn: sqlite3.Connection, job_id: str) -> List[Dict[str, Any]]:
    """
    Query the status history of one application, oldest first.

    Raises:
        ToolError: If query execution fails
    """
    query = """
        SELECT job_id, user_id, from_status, to_status, changed_at
        FROM job_status_history
        WHERE job_id = ?
        ORDER BY changed_at ASC, id ASC
    """
    try:
        rows = conn.execute(query, (job_id,)).fetchall()
        return [dict(row) for row in rows]
    except sqlite3.Error as e:
        raise create_db_error(str(e), retryable=False, original_error=e) from e
