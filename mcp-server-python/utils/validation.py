"""
Input validation for the job pipeline tools.

Validators raise ToolError with VALIDATION_ERROR on bad input and return the
cleaned value otherwise.
"""

from datetime import datetime, timezone
from typing import List, Optional

from models.errors import create_validation_error
from models.status import PipelineColumn

DEFAULT_BULK_UPDATE_LIMIT = 100


def validate_job_id(job_id) -> str:
    """
    Validate a job application id.

    Ids are opaque strings; integers are accepted for convenience and
    converted to their string form.

    Args:
        job_id: The id value to validate

    Returns:
        Validated id as a string

    Raises:
        ToolError: If job_id is invalid
    """
    if job_id is None:
        raise create_validation_error("Invalid job ID: cannot be null")

    # bool is a subclass of int in Python, reject explicitly
    if isinstance(job_id, bool) or not isinstance(job_id, (str, int)):
        raise create_validation_error(
            f"Invalid job ID type: expected string, got {type(job_id).__name__}"
        )

    job_id = str(job_id)
    if not job_id.strip():
        raise create_validation_error("Invalid job ID: cannot be empty")

    if job_id != job_id.strip():
        raise create_validation_error(
            f"Invalid job ID: '{job_id}' contains leading or trailing whitespace"
        )

    return job_id


def validate_status(status) -> str:
    """
    Validate a free-text target status.

    Any non-empty string is accepted here; whether it names a real column is
    decided by the status registry.

    Raises:
        ToolError: If status is null, not a string, or empty
    """
    if status is None:
        raise create_validation_error("Invalid status: cannot be null")

    if isinstance(status, PipelineColumn):
        return status.value

    if not isinstance(status, str):
        raise create_validation_error(
            f"Invalid status type: expected string, got {type(status).__name__}"
        )

    if not status.strip():
        raise create_validation_error("Invalid status: cannot be empty")

    return status.strip()


def validate_optional_user_id(user_id) -> Optional[str]:
    """Validate an optional actor user id."""
    if user_id is None:
        return None
    if not isinstance(user_id, str):
        raise create_validation_error(
            f"Invalid actor_user_id type: expected string, got {type(user_id).__name__}"
        )
    if not user_id.strip():
        raise create_validation_error("Invalid actor_user_id: cannot be empty")
    return user_id.strip()


def validate_deadline(deadline) -> Optional[str]:
    """
    Validate an application deadline.

    None clears the deadline. Otherwise an ISO 8601 date ("2026-03-01") or
    datetime string is required; it is stored as given, without surrounding
    whitespace.

    Raises:
        ToolError: If the deadline is not a parsable date
    """
    if deadline is None:
        return None
    if not isinstance(deadline, str):
        raise create_validation_error(
            f"Invalid application_deadline type: expected string, got {type(deadline).__name__}"
        )

    value = deadline.strip()
    if not value:
        raise create_validation_error("Invalid application_deadline: cannot be empty")

    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise create_validation_error(
            f"Invalid application_deadline: '{value}' is not an ISO 8601 date"
        ) from None

    return value


def validate_batch_size(job_ids: list, limit: int = DEFAULT_BULK_UPDATE_LIMIT) -> None:
    """
    Validate the batch size for bulk operations.

    Empty batches are valid. Batches above ``limit`` are rejected.

    Raises:
        ToolError: If batch size exceeds the limit
    """
    if not job_ids:
        return

    if len(job_ids) > limit:
        raise create_validation_error(
            f"Batch size too large: {len(job_ids)} jobs exceeds maximum of {limit}"
        )


def validate_unique_job_ids(job_ids: List[str]) -> None:
    """
    Validate that all job ids in the batch are unique.

    Raises:
        ToolError: If duplicate ids are found
    """
    seen = set()
    duplicates = set()
    for job_id in job_ids:
        if job_id in seen:
            duplicates.add(job_id)
        else:
            seen.add(job_id)

    if duplicates:
        duplicate_list = ", ".join(sorted(str(dup_id) for dup_id in duplicates))
        raise create_validation_error(f"Duplicate job IDs found in batch: {duplicate_list}")


def get_current_utc_timestamp() -> str:
    """
    Generate a UTC timestamp in ISO 8601 format with millisecond precision.

    Returns a timestamp string in the format: YYYY-MM-DDTHH:MM:SS.mmmZ
    Example: 2026-02-04T03:47:36.966Z

    All jobs touched by one operation receive the same timestamp.
    """
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
