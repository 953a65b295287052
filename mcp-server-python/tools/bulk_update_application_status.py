"""
Main MCP tool handler for bulk_update_application_status.

Moves a selection of applications to one column in a single atomic
transaction. Status-entry hooks (checklist, reminders) are not run for bulk
moves; history events are written when an actor is known.
"""

from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from db.applications_writer import ApplicationsWriter
from models.application import StatusTransitionEvent
from models.errors import (
    ToolError,
    create_internal_error,
    create_transition_in_progress_error,
    create_validation_error,
)
from models.status import PipelineColumn
from schemas.bulk_update_application_status import (
    BulkUpdateApplicationStatusRequest,
    BulkUpdateApplicationStatusResponse,
    BulkUpdateResultItem,
)
from utils.pydantic_error_mapper import map_pydantic_validation_error
from utils.status_registry import resolve_column
from tools.move_application import get_in_flight
from utils.transition_executor import UNKNOWN_TARGET_MESSAGE, InFlightSet
from utils.validation import (
    DEFAULT_BULK_UPDATE_LIMIT,
    get_current_utc_timestamp,
    validate_batch_size,
    validate_job_id,
    validate_status,
    validate_unique_job_ids,
)


def resolve_target(status: Any) -> PipelineColumn:
    """Validate the requested status and return its column; unknown is rejected."""
    target = resolve_column(validate_status(status))
    if target == PipelineColumn.OTHER:
        raise create_validation_error(UNKNOWN_TARGET_MESSAGE)
    return target


def _item_key(job_id: Any, index: int) -> str:
    if isinstance(job_id, str) and job_id:
        return job_id
    if isinstance(job_id, int) and not isinstance(job_id, bool):
        return str(job_id)
    return f"item_{index}"


def collect_id_failures(job_ids: List[Any]) -> Dict[str, str]:
    """
    Validate every id of the batch.

    Returns:
        Dictionary mapping the item key (the id, or ``item_<index>`` when the
        id cannot be shown) to its error message. Empty if all ids are valid.
    """
    failures = {}
    for index, job_id in enumerate(job_ids):
        try:
            validate_job_id(job_id)
        except ToolError as e:
            failures[_item_key(job_id, index)] = e.message
    return failures


def failure_results(job_ids: List[Any], failures: Dict[str, str]) -> List[BulkUpdateResultItem]:
    """Every item is reported as failed; items without their own error were rolled back."""
    results = []
    for index, job_id in enumerate(job_ids):
        key = _item_key(job_id, index)
        error = failures.get(key) or failures.get(f"item_{index}") or "Not updated: batch rolled back"
        results.append(BulkUpdateResultItem(id=key, success=False, error=error))
    return results


def missing_id_failures(missing_ids: List[str]) -> Dict[str, str]:
    return {job_id: f"Job ID {job_id} does not exist" for job_id in missing_ids}


def build_failure_response(
    job_ids: List[Any], failures: Dict[str, str], target: PipelineColumn
) -> Dict[str, Any]:
    return BulkUpdateApplicationStatusResponse(
        status=target.value,
        updated_count=0,
        unchanged_count=0,
        failed_count=len(failures),
        results=failure_results(job_ids, failures),
    ).model_dump(exclude_none=True)


def write_batch(
    db_path: Optional[str],
    job_ids: List[str],
    target: PipelineColumn,
    actor_user_id: Optional[str],
) -> Dict[str, Any]:
    """Write the target status to every id in one transaction and build the response."""
    with ApplicationsWriter(db_path) as writer:
        writer.ensure_pipeline_tables()

        missing_ids = writer.validate_jobs_exist(job_ids)
        if missing_ids:
            writer.rollback()
            return build_failure_response(job_ids, missing_id_failures(missing_ids), target)

        current_statuses = writer.get_statuses(job_ids)
        timestamp = get_current_utc_timestamp()
        results = []
        updated_count = 0

        for job_id in job_ids:
            from_status = current_statuses.get(job_id) or ""
            if resolve_column(from_status) == target:
                results.append(BulkUpdateResultItem(id=job_id, success=True, action="noop"))
                continue

            writer.update_job_status(job_id, target.value, timestamp)
            if actor_user_id:
                writer.insert_status_event(
                    StatusTransitionEvent(
                        job_id=job_id,
                        user_id=actor_user_id,
                        from_status=from_status,
                        to_status=target.value,
                        changed_at=timestamp,
                    )
                )
            updated_count += 1
            results.append(BulkUpdateResultItem(id=job_id, success=True, action="updated"))

        writer.commit()

    return BulkUpdateApplicationStatusResponse(
        status=target.value,
        updated_count=updated_count,
        unchanged_count=len(job_ids) - updated_count,
        failed_count=0,
        results=results,
    ).model_dump(exclude_none=True)


def bulk_update_application_status(
    args: Dict[str, Any],
    default_actor_user_id: Optional[str] = None,
    limit: int = DEFAULT_BULK_UPDATE_LIMIT,
    in_flight: Optional[InFlightSet] = None,
) -> Dict[str, Any]:
    """
    Move several applications to one pipeline column atomically.

    Steps:
    1. Validate request shape, target status and batch size
    2. Validate each id and reject duplicates
    3. Reserve the ids in the database's in-flight set; ids with a pending
       move reject the whole batch with TRANSITION_IN_PROGRESS
    4. Open a transaction, check the schema and that every id exists
    5. If anything failed: roll back and return per-item failures
    6. Otherwise write the canonical status to every record not already in
       the target column, append one history event per changed record when
       an actor is known, and commit

    Args:
        args: Dictionary containing parameters:
            - job_ids (list): Application ids (strings; integers accepted)
            - status (str): Target column id or alias (not "unknown")
            - actor_user_id (str, optional): User for the audit trail
            - db_path (str, optional): Database path override
        default_actor_user_id: Actor used when the request carries none
        limit: Maximum number of ids per batch
        in_flight: Injected in-flight set; the shared one for db_path when omitted

    Returns:
        Dictionary with structure (success case):
        {
            "status": str,            # Canonical status written
            "updated_count": int,
            "unchanged_count": int,   # Already in the target column
            "failed_count": 0,
            "results": [
                {"id": str, "success": true, "action": "updated" | "noop"},
                ...
            ]
        }

        Validation failure case: updated_count 0, failed_count > 0 and
        every result has success false with an error message.

        On system error, returns:
        {
            "error": {
                "code": str,         # VALIDATION_ERROR, TRANSITION_IN_PROGRESS, DB_NOT_FOUND,
                                     # DB_ERROR, INTERNAL_ERROR
                "message": str,
                "retryable": bool
            }
        }
    """
    try:
        request = BulkUpdateApplicationStatusRequest.model_validate(args)
        actor_user_id = request.actor_user_id or default_actor_user_id

        target = resolve_target(request.status)
        validate_batch_size(request.job_ids, limit)

        if not request.job_ids:
            return BulkUpdateApplicationStatusResponse(
                status=target.value, updated_count=0, failed_count=0, results=[]
            ).model_dump(exclude_none=True)

        failures = collect_id_failures(request.job_ids)
        if failures:
            return build_failure_response(request.job_ids, failures, target)

        job_ids = [validate_job_id(job_id) for job_id in request.job_ids]
        validate_unique_job_ids(job_ids)

        if in_flight is None:
            in_flight = get_in_flight(request.db_path)
        busy = in_flight.claim(job_ids)
        if busy:
            raise create_transition_in_progress_error(", ".join(busy))

        try:
            return write_batch(request.db_path, job_ids, target, actor_user_id)
        finally:
            in_flight.release(job_ids)

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        internal_error = create_internal_error(message=str(e), original_error=e)
        return internal_error.to_dict()
