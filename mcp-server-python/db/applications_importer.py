"""
Bulk import of job applications into the pipeline database.

Reads a YAML (or JSON, which YAML parses too) list of applications, normalizes
each entry to the ``jobs`` row shape and inserts it idempotently by id.
Optional per-application checklists are stored in ``application_checklists``.
"""

import json
import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from models.errors import create_db_error, create_validation_error
from models.status import PipelineColumn

logger = logging.getLogger(__name__)

# Alternative keys accepted in import files, first match wins
_FIELD_ALIASES = {
    "job_title": ("job_title", "title", "position"),
    "company_name": ("company_name", "company"),
    "job_url": ("job_url", "url"),
    "application_deadline": ("application_deadline", "deadline"),
}


def _normalize_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _normalize_timestamp(value: Any) -> Optional[str]:
    """ISO 8601 string for dates/datetimes (YAML parses them natively)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return _normalize_text(value)


def _first(record: Dict[str, Any], keys: Tuple[str, ...]) -> Any:
    for key in keys:
        if record.get(key) not in (None, ""):
            return record[key]
    return None


def load_application_file(path: Path) -> List[Dict[str, Any]]:
    """
    Load the list of applications from a YAML or JSON file.

    The file holds either a list of mappings or a mapping with an
    ``applications`` list.

    Raises:
        ToolError: VALIDATION_ERROR if the file is unreadable or malformed
    """
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise create_validation_error(f"Cannot read import file: {path}") from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise create_validation_error(f"Invalid YAML in import file: {e}") from e

    if isinstance(data, dict):
        data = data.get("applications")
    if data is None:
        return []
    if not isinstance(data, list):
        raise create_validation_error("Import file must contain a list of applications")
    return data


def normalize_application(
    record: Any, now: str, default_status: str = PipelineColumn.INTERESTED.value
) -> Optional[Dict[str, Any]]:
    """
    Map one import entry to a ``jobs`` row.

    Statuses are stored as given (unrecognized ones land in the Other column);
    a missing status gets ``default_status``. Entries that are not mappings or
    have neither a title nor a company are skipped (None).
    """
    if not isinstance(record, dict):
        return None

    job_title = _normalize_text(_first(record, _FIELD_ALIASES["job_title"]))
    company_name = _normalize_text(_first(record, _FIELD_ALIASES["company_name"]))
    if not job_title and not company_name:
        return None

    salary = record.get("salary")
    try:
        salary = float(salary) if salary not in (None, "") else None
    except (TypeError, ValueError):
        logger.debug("Ignoring non-numeric salary %r for %s", salary, job_title)
        salary = None

    checklist = record.get("checklist")
    if checklist is not None and not isinstance(checklist, list):
        checklist = None

    return {
        "id": _normalize_text(record.get("id")) or str(uuid.uuid4()),
        "job_title": job_title,
        "company_name": company_name,
        "location": _normalize_text(record.get("location")),
        "job_url": _normalize_text(_first(record, _FIELD_ALIASES["job_url"])),
        "status": _normalize_text(record.get("status")) or default_status,
        "salary": salary,
        "application_deadline": _normalize_timestamp(
            _first(record, _FIELD_ALIASES["application_deadline"])
        ),
        "is_archived": 1 if record.get("is_archived") else 0,
        "created_at": _normalize_timestamp(record.get("created_at")) or now,
        "updated_at": _normalize_timestamp(record.get("updated_at")),
        "checklist": checklist,
    }


def _checklist_row(items: List[Any]) -> Tuple[str, int]:
    normalized = []
    for index, item in enumerate(items):
        if isinstance(item, str):
            item = {"text": item}
        if not isinstance(item, dict):
            continue
        normalized.append(
            {
                "id": str(item.get("id") or index + 1),
                "text": str(item.get("text") or ""),
                "completed": bool(item.get("completed", False)),
            }
        )
    completed = sum(1 for item in normalized if item["completed"])
    percentage = round(completed / len(normalized) * 100) if normalized else 0
    return json.dumps(normalized), percentage


def insert_applications(
    conn: sqlite3.Connection, items: List[Dict[str, Any]]
) -> Tuple[int, int]:
    """
    Insert normalized applications, ignoring ids that already exist.

    Returns:
        (inserted, duplicates)

    Raises:
        ToolError: DB_ERROR if an insert fails
    """
    inserted = 0
    duplicates = 0
    try:
        for item in items:
            cursor = conn.execute(
                """
                INSERT OR IGNORE INTO jobs (
                    id, job_title, company_name, location, job_url, status, salary,
                    application_deadline, is_archived, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    item["id"],
                    item["job_title"],
                    item["company_name"],
                    item["location"],
                    item["job_url"],
                    item["status"],
                    item["salary"],
                    item["application_deadline"],
                    item["is_archived"],
                    item["created_at"],
                    item["updated_at"],
                ),
            )
            if cursor.rowcount == 0:
                duplicates += 1
                continue
            inserted += 1

            if item.get("checklist"):
                checklist_json, percentage = _checklist_row(item["checklist"])
                conn.execute(
                    """
                    INSERT OR IGNORE INTO application_checklists (
                        job_id, checklist_items, completion_percentage, updated_at
                    ) VALUES (?, ?, ?, ?)
                    """,
                    (item["id"], checklist_json, percentage, item["created_at"]),
                )
        conn.commit()
    except sqlite3.Error as e:
        conn.rollback()
        raise create_db_error(str(e), retryable=False, original_error=e) from e

    return inserted, duplicates
