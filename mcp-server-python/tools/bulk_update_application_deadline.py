"""
Main MCP tool handler for bulk_update_application_deadline.

Sets (or clears) the application deadline of a selection of applications in
one atomic transaction. Deadlines drive the urgency shown on board cards.
"""

from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from db.applications_writer import ApplicationsWriter
from models.errors import ToolError, create_internal_error
from schemas.bulk_update_application_deadline import (
    BulkUpdateApplicationDeadlineRequest,
    BulkUpdateApplicationDeadlineResponse,
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
    validate_batch_size,
    validate_job_id,
    validate_unique_job_ids,
)


def _failure_response(
    deadline: Optional[str], job_ids: List[Any], failures: Dict[str, str]
) -> Dict[str, Any]:
    return BulkUpdateApplicationDeadlineResponse(
        application_deadline=deadline,
        updated_count=0,
        unchanged_count=0,
        failed_count=len(failures),
        results=failure_results(job_ids, failures),
    ).model_dump(exclude_none=True)


def bulk_update_application_deadline(
    args: Dict[str, Any], limit: int = DEFAULT_BULK_UPDATE_LIMIT
) -> Dict[str, Any]:
    """
    Set one application deadline on several applications atomically.

    Steps:
    1. Validate request shape, deadline (ISO 8601 date or null) and batch size
    2. Validate each id and reject duplicates
    3. Open a transaction, check the schema and that every id exists
    4. If anything failed: roll back and return per-item failures
    5. Otherwise write the deadline to every record whose deadline differs,
       and commit. Status, updated_at and history are untouched.

    Args:
        args: Dictionary containing parameters:
            - job_ids (list): Application ids (strings; integers accepted)
            - application_deadline (str | None): New deadline; null clears it
            - db_path (str, optional): Database path override
        limit: Maximum number of ids per batch

    Returns:
        Dictionary with structure (success case):
        {
            "application_deadline": str,   # Omitted when cleared
            "updated_count": int,
            "unchanged_count": int,        # Deadline already equal
            "failed_count": 0,
            "results": [
                {"id": str, "success": true, "action": "updated" | "noop"},
                ...
            ]
        }

        Validation failure case: updated_count 0, failed_count > 0 and
        every result has success false with an error message.

        On system error, returns {"error": {"code", "message", "retryable"}}.
    """
    try:
        request = BulkUpdateApplicationDeadlineRequest.model_validate(args)
        deadline = request.application_deadline
        validate_batch_size(request.job_ids, limit)

        if not request.job_ids:
            return BulkUpdateApplicationDeadlineResponse(
                application_deadline=deadline, updated_count=0, failed_count=0, results=[]
            ).model_dump(exclude_none=True)

        failures = collect_id_failures(request.job_ids)
        if failures:
            return _failure_response(deadline, request.job_ids, failures)

        job_ids = [validate_job_id(job_id) for job_id in request.job_ids]
        validate_unique_job_ids(job_ids)

        with ApplicationsWriter(request.db_path) as writer:
            writer.ensure_pipeline_tables()

            missing_ids = writer.validate_jobs_exist(job_ids)
            if missing_ids:
                writer.rollback()
                return _failure_response(deadline, job_ids, missing_id_failures(missing_ids))

            current_deadlines = writer.get_deadlines(job_ids)
            results = []
            updated_count = 0

            for job_id in job_ids:
                if (current_deadlines.get(job_id) or None) == deadline:
                    results.append(BulkUpdateResultItem(id=job_id, success=True, action="noop"))
                    continue

                writer.update_deadline(job_id, deadline)
                updated_count += 1
                results.append(BulkUpdateResultItem(id=job_id, success=True, action="updated"))

            writer.commit()

        return BulkUpdateApplicationDeadlineResponse(
            application_deadline=deadline,
            updated_count=updated_count,
            unchanged_count=len(job_ids) - updated_count,
            failed_count=0,
            results=results,
        ).model_dump(exclude_none=True)

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        internal_error = create_internal_error(message=str(e), original_error=e)
        return internal_error.to_dict()
