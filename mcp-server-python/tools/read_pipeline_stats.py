"""
Main MCP tool handler for read_pipeline_stats.
"""

from typing import Any, Dict

from pydantic import ValidationError

from db.applications_reader import get_connection, query_applications
from models.errors import ToolError, create_internal_error
from schemas.read_pipeline_stats import ReadPipelineStatsRequest, ReadPipelineStatsResponse
from utils.pipeline_stats import compute_stats
from utils.pydantic_error_mapper import map_pydantic_validation_error


def read_pipeline_stats(args: Dict[str, Any]) -> Dict[str, Any]:
    """
    Summarize the pipeline: totals, stage groups and response rate.

    Args:
        args: Dictionary containing parameters:
            - include_archived (bool, optional): Count archived applications
              (default: True)
            - db_path (str, optional): Database path override

    Returns:
        Dictionary with structure (success case):
        {
            "total": int,
            "active": int,            # Not archived
            "applied": int,
            "interviewing": int,      # Phone Screen + Interview
            "offers": int,            # Offer + Accepted
            "rejected": int,
            "response_rate": int,     # Percentage, rounded
            "by_column": {str: int}   # Count per column id
        }

        On error, returns:
        {
            "error": {
                "code": str,         # VALIDATION_ERROR, DB_NOT_FOUND, DB_ERROR, INTERNAL_ERROR
                "message": str,
                "retryable": bool
            }
        }
    """
    try:
        request = ReadPipelineStatsRequest.model_validate(args)

        with get_connection(request.db_path) as conn:
            rows = query_applications(conn, include_archived=request.include_archived)

        stats = compute_stats(rows)
        return ReadPipelineStatsResponse(**stats.to_dict()).model_dump()

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        internal_error = create_internal_error(message=str(e), original_error=e)
        return internal_error.to_dict()
