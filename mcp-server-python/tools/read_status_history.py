"""
Main MCP tool handler for read_status_history.

Returns the audit trail of one application, oldest event first.
"""

from typing import Any, Dict

from pydantic import ValidationError

from db.applications_reader import get_connection, query_application, query_status_history
from models.errors import ToolError, create_internal_error, create_not_found_error
from schemas.read_status_history import (
    ReadStatusHistoryRequest,
    ReadStatusHistoryResponse,
    StatusHistoryItem,
)
from utils.pydantic_error_mapper import map_pydantic_validation_error


def read_status_history(args: Dict[str, Any]) -> Dict[str, Any]:
    """
    Read the status history of one job application.

    Args:
        args: Dictionary containing parameters:
            - job_id (str): Application id
            - db_path (str, optional): Database path override

    Returns:
        Dictionary with structure (success case):
        {
            "job_id": str,
            "events": [
                {
                    "user_id": str,
                    "from_status": str,
                    "to_status": str,
                    "changed_at": str
                },
                ...
            ],
            "count": int
        }

        On error, returns:
        {
            "error": {
                "code": str,         # VALIDATION_ERROR, NOT_FOUND, DB_NOT_FOUND, DB_ERROR, INTERNAL_ERROR
                "message": str,
                "retryable": bool
            }
        }
    """
    try:
        request = ReadStatusHistoryRequest.model_validate(args)

        with get_connection(request.db_path) as conn:
            if query_application(conn, request.job_id) is None:
                raise create_not_found_error(request.job_id)
            rows = query_status_history(conn, request.job_id)

        events = [
            StatusHistoryItem(
                user_id=row["user_id"],
                from_status=row["from_status"],
                to_status=row["to_status"],
                changed_at=row["changed_at"],
            )
            for row in rows
        ]
        return ReadStatusHistoryResponse(
            job_id=request.job_id, events=events, count=len(events)
        ).model_dump()

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        internal_error = create_internal_error(message=str(e), original_error=e)
        return internal_error.to_dict()
