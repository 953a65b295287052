"""Pydantic schemas for bulk_update_application_deadline tool."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import field_validator

from models.errors import ToolError
from schemas.bulk_update_application_status import BulkUpdateResultItem
from schemas.common import DbPathMixin, StrictIgnoreRequest, StrictResponse
from utils.validation import validate_deadline


class BulkUpdateApplicationDeadlineRequest(DbPathMixin, StrictIgnoreRequest):
    """Request schema for bulk_update_application_deadline."""

    job_ids: list[Any]
    # Required; null clears the deadline
    application_deadline: Optional[str]

    @field_validator("application_deadline", mode="before")
    @classmethod
    def validate_application_deadline(cls, value: Any) -> Optional[str]:
        try:
            return validate_deadline(value)
        except ToolError as e:
            raise ValueError(e.message) from e


class BulkUpdateApplicationDeadlineResponse(StrictResponse):
    """Success/failure response schema for bulk_update_application_deadline."""

    application_deadline: Optional[str] = None
    updated_count: int
    unchanged_count: int = 0
    failed_count: int
    results: list[BulkUpdateResultItem]
