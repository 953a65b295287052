"""
MCP tool handlers for bulk_archive_applications and bulk_restore_applications.

Archiving hides a selection of applications from the board (and from the
stats when archived records are excluded) without touching their status.
Restoring brings them back. Each batch runs in one atomic transaction.
"""

from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from db.applications_writer import ApplicationsWriter
from db.schema import ARCHIVE_COLUMNS
from models.errors import ToolError, create_internal_error
from schemas.bulk_archive_applications import (
    BulkArchiveApplicationsRequest,
    BulkArchiveApplicationsResponse,
    BulkRestoreApplicationsRequest,
)
from schemas.bulk_update_application_status import BulkUpdateResultItem
from tools.bulk_update_application_status import (
    collect_id_failures,
    failure_results,
    missing_id_failures,
)
from utils.pydantic_error_mapper import map_pydantic_validation_error
from utils.validation import (
    DEFAULT_BULK_UPDATE_LIMIT,
    get_current_utc_timestamp,
    validate_batch_size,
    validate_job_id,
    validate_unique_job_ids,
)


def _response(archived: bool, updated_count: int, job_count: int, results) -> Dict[str, Any]:
    return BulkArchiveApplicationsResponse(
        archived=archived,
        updated_count=updated_count,
        unchanged_count=job_count - updated_count,
        failed_count=0,
        results=results,
    ).model_dump(exclude_none=True)


def _failure_response(
    archived: bool, job_ids: List[Any], failures: Dict[str, str]
) -> Dict[str, Any]:
    return BulkArchiveApplicationsResponse(
        archived=archived,
        updated_count=0,
        unchanged_count=0,
        failed_count=len(failures),
        results=failure_results(job_ids, failures),
    ).model_dump(exclude_none=True)


def set_archived_batch(
    raw_job_ids: List[Any],
    archived: bool,
    db_path: Optional[str] = None,
    reason: Optional[str] = None,
    limit: int = DEFAULT_BULK_UPDATE_LIMIT,
) -> Dict[str, Any]:
    """
    Archive or restore a batch of applications atomically.

    Records already in the requested state report ``noop`` and keep their
    archived_at and archive_reason.

    Raises:
        ToolError: On batch-level validation or database failures
    """
    validate_batch_size(raw_job_ids, limit)

    if not raw_job_ids:
        return _response(archived, 0, 0, [])

    failures = collect_id_failures(raw_job_ids)
    if failures:
        return _failure_response(archived, raw_job_ids, failures)

    job_ids = [validate_job_id(job_id) for job_id in raw_job_ids]
    validate_unique_job_ids(job_ids)

    with ApplicationsWriter(db_path) as writer:
        writer.ensure_pipeline_tables()
        writer.ensure_job_columns(ARCHIVE_COLUMNS)

        missing_ids = writer.validate_jobs_exist(job_ids)
        if missing_ids:
            writer.rollback()
            return _failure_response(archived, job_ids, missing_id_failures(missing_ids))

        states = writer.get_archive_states(job_ids)
        timestamp = get_current_utc_timestamp()
        results = []
        updated_count = 0

        for job_id in job_ids:
            if states.get(job_id, False) == archived:
                results.append(BulkUpdateResultItem(id=job_id, success=True, action="noop"))
                continue

            writer.set_archived(job_id, archived, timestamp, reason)
            updated_count += 1
            results.append(
                BulkUpdateResultItem(
                    id=job_id, success=True, action="archived" if archived else "restored"
                )
            )

        writer.commit()

    return _response(archived, updated_count, len(job_ids), results)


def bulk_archive_applications(
    args: Dict[str, Any], limit: int = DEFAULT_BULK_UPDATE_LIMIT
) -> Dict[str, Any]:
    """
    Archive several applications in one atomic transaction.

    Args:
        args: Dictionary containing parameters:
            - job_ids (list): Application ids (strings; integers accepted)
            - archive_reason (str, optional): Stored with each archived record
            - db_path (str, optional): Database path override
        limit: Maximum number of ids per batch

    Returns:
        Dictionary with structure (success case):
        {
            "archived": true,
            "updated_count": int,
            "unchanged_count": int,   # Already archived
            "failed_count": 0,
            "results": [
                {"id": str, "success": true, "action": "archived" | "noop"},
                ...
            ]
        }

        Validation failure case: updated_count 0, failed_count > 0 and
        every result has success false with an error message.

        On system error, returns {"error": {"code", "message", "retryable"}}.
    """
    try:
        request = BulkArchiveApplicationsRequest.model_validate(args)
        return set_archived_batch(
            request.job_ids, True, request.db_path, request.archive_reason, limit
        )

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        internal_error = create_internal_error(message=str(e), original_error=e)
        return internal_error.to_dict()


def bulk_restore_applications(
    args: Dict[str, Any], limit: int = DEFAULT_BULK_UPDATE_LIMIT
) -> Dict[str, Any]:
    """
    Restore several archived applications in one atomic transaction.

    Clears is_archived, archived_at and archive_reason. Records that are not
    archived report ``noop``.

    Args:
        args: Dictionary containing parameters:
            - job_ids (list): Application ids (strings; integers accepted)
            - db_path (str, optional): Database path override
        limit: Maximum number of ids per batch

    Returns:
        Same structure as bulk_archive_applications with "archived": false
        and action "restored" or "noop".
    """
    try:
        request = BulkRestoreApplicationsRequest.model_validate(args)
        return set_archived_batch(request.job_ids, False, request.db_path, limit=limit)

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        internal_error = create_internal_error(message=str(e), original_error=e)
        return internal_error.to_dict()
