"""
Main MCP tool handler for move_application.

Keyboard-equivalent of dropping a card onto a column: looks up the current
status and runs the transition executor against the SQLite store.
"""

import asyncio
from typing import Any, Dict, Optional, Tuple

from pydantic import ValidationError

from db.applications_reader import get_connection, query_application, resolve_db_path
from db.pipeline_store import DEFAULT_FOLLOW_UP_DAYS, SqlitePipelineStore
from models.errors import ToolError, create_internal_error, create_not_found_error
from models.status import ReminderType
from schemas.move_application import MoveApplicationRequest, MoveApplicationResponse
from utils.notifications import CollectingNotificationSink
from utils.pydantic_error_mapper import map_pydantic_validation_error
from utils.transition_executor import (
    InFlightSet,
    OutcomeKind,
    TransitionExecutor,
    TransitionOutcome,
)

_ACTIONS = {
    OutcomeKind.OK: "updated",
    OutcomeKind.NOOP: "noop",
    OutcomeKind.ERROR: "blocked",
}

# One in-flight set per database, shared by every executor and bulk update
# writing to it
_in_flight_sets: Dict[str, InFlightSet] = {}
_executors: Dict[Tuple[str, int, str], TransitionExecutor] = {}


def get_in_flight(db_path: Optional[str] = None) -> InFlightSet:
    """Return the set of job ids with a pending status write for a database."""
    key = str(resolve_db_path(db_path))
    return _in_flight_sets.setdefault(key, InFlightSet())


def get_executor(
    db_path: Optional[str] = None,
    follow_up_days: int = DEFAULT_FOLLOW_UP_DAYS,
    reminder_type: str = ReminderType.EMAIL.value,
) -> TransitionExecutor:
    """Return the shared executor for a database, creating it on first use."""
    key = (str(resolve_db_path(db_path)), follow_up_days, reminder_type)
    executor = _executors.get(key)
    if executor is None:
        store = SqlitePipelineStore(db_path, follow_up_days=follow_up_days, reminder_type=reminder_type)
        executor = TransitionExecutor(
            store, checklist=store, reminders=store, in_flight=get_in_flight(db_path)
        )
        _executors[key] = executor
    return executor


def _load_current_status(job_id: str, db_path: Optional[str]) -> str:
    with get_connection(db_path) as conn:
        row = query_application(conn, job_id)
    if row is None:
        raise create_not_found_error(job_id)
    return row["status"] or ""


def build_move_response(
    outcome: TransitionOutcome, notifications: CollectingNotificationSink
) -> Dict[str, Any]:
    """Build the structured response for a transition outcome."""
    error = outcome.error
    return MoveApplicationResponse(
        job_id=outcome.record_id,
        previous_status=outcome.from_status,
        target_status=outcome.to_status,
        action=_ACTIONS[outcome.kind],
        success=outcome.kind != OutcomeKind.ERROR,
        column=outcome.title,
        message=outcome.message,
        error_code=error.code.value if error else None,
        retryable=error.retryable if error else None,
        notifications=notifications.to_list(),
    ).model_dump(exclude_none=True)


async def move_application(
    args: Dict[str, Any],
    default_actor_user_id: Optional[str] = None,
    follow_up_days: int = DEFAULT_FOLLOW_UP_DAYS,
    reminder_type: str = ReminderType.EMAIL.value,
    executor: Optional[TransitionExecutor] = None,
) -> Dict[str, Any]:
    """
    Move one job application to another pipeline column.

    Steps:
    1. Validate input (job_id, target_status, actor_user_id, db_path)
    2. Read the application's current status (NOT_FOUND if missing)
    3. Run the transition executor: unknown target is blocked, same column
       (aliases included) is a noop, otherwise status is written, the
       history event appended and status-entry hooks run
    4. Return the outcome with the collected notifications

    Args:
        args: Dictionary containing parameters:
            - job_id (str): Application id
            - target_status (str): Target column id or an alias of it
            - actor_user_id (str, optional): User for the audit trail
            - db_path (str, optional): Database path override
        default_actor_user_id: Actor used when the request carries none
        follow_up_days: Days until the follow-up reminder created on Applied
        reminder_type: Reminder channel
        executor: Injected executor; the shared one for db_path when omitted

    Returns:
        Dictionary with structure:
        {
            "job_id": str,
            "previous_status": str,
            "target_status": str,
            "action": str,              # "updated", "noop" or "blocked"
            "success": bool,
            "column": str,              # Target column title (optional)
            "message": str,             # Notification text (optional)
            "error_code": str,          # Blocked only
            "retryable": bool,          # Blocked only
            "notifications": [{"level": str, "message": str}]
        }

        On request-level error, returns:
        {
            "error": {
                "code": str,            # VALIDATION_ERROR, NOT_FOUND, DB_NOT_FOUND, DB_ERROR, INTERNAL_ERROR
                "message": str,
                "retryable": bool
            }
        }
    """
    try:
        request = MoveApplicationRequest.model_validate(args)

        current_status = await asyncio.to_thread(
            _load_current_status, request.job_id, request.db_path
        )

        notifications = CollectingNotificationSink()
        if executor is None:
            executor = get_executor(request.db_path, follow_up_days, reminder_type)

        outcome = await executor.execute(
            request.job_id,
            current_status,
            request.target_status,
            request.actor_user_id or default_actor_user_id,
            notifications=notifications,
        )
        return build_move_response(outcome, notifications)

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        internal_error = create_internal_error(message=str(e), original_error=e)
        return internal_error.to_dict()
