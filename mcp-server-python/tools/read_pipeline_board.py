"""
Main MCP tool handler for read_pipeline_board.

Reads the applications, projects them onto the board columns and attaches
per-card metrics.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import ValidationError

from db.applications_reader import get_connection, query_applications
from models.application import ApplicationRecord
from models.errors import ToolError, create_internal_error
from schemas.read_pipeline_board import (
    BoardCard,
    BoardColumnView,
    ReadPipelineBoardRequest,
    ReadPipelineBoardResponse,
)
from utils.board_model import BoardModel
from utils.card_metrics import days_in_stage, deadline_urgency
from utils.pydantic_error_mapper import map_pydantic_validation_error


def to_board_card(record: ApplicationRecord, now: Optional[datetime] = None) -> BoardCard:
    """Map an ApplicationRecord to its card view with metrics."""
    urgency = deadline_urgency(record, now)
    return BoardCard(
        **record.model_dump(mode="json"),
        days_in_stage=days_in_stage(record, now),
        deadline_urgency=urgency.to_dict() if urgency else None,
    )


def build_board_response(board: BoardModel, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Render a BoardModel as the read_pipeline_board payload."""
    projection = board.project()
    columns = [
        BoardColumnView(
            id=column.id,
            title=column.title,
            style=column.style,
            count=board.count(column.column),
            jobs=[to_board_card(record, now) for record in projection[column.column]],
        )
        for column in board.visible_columns()
    ]
    return ReadPipelineBoardResponse(columns=columns, total_count=len(board)).model_dump()


def read_pipeline_board(args: Dict[str, Any]) -> Dict[str, Any]:
    """
    Read the pipeline board: every column in order with its applications.

    Args:
        args: Dictionary containing parameters:
            - include_archived (bool, optional): Include archived applications
              (default: False)
            - db_path (str, optional): Database path override

    Returns:
        Dictionary with structure (success case):
        {
            "columns": [
                {
                    "id": str,          # Column id, also the stored status
                    "title": str,
                    "style": str,       # Presentation token
                    "count": int,       # Alias-folded count
                    "jobs": [...]       # Cards, newest first
                }
            ],
            "total_count": int
        }

        The "Other" column (id "unknown") is present only when some
        application has an unrecognized status.

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
        request = ReadPipelineBoardRequest.model_validate(args)

        with get_connection(request.db_path) as conn:
            rows = query_applications(conn, include_archived=request.include_archived)

        return build_board_response(BoardModel(rows))

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        internal_error = create_internal_error(message=str(e), original_error=e)
        return internal_error.to_dict()
