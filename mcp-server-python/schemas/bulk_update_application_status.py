"""Pydantic schemas for bulk_update_application_status tool."""

from __future__ import annotations

from typing import Any, Optional

from schemas.common import ActorMixin, DbPathMixin, StrictIgnoreRequest, StrictResponse


class BulkUpdateApplicationStatusRequest(ActorMixin, DbPathMixin, StrictIgnoreRequest):
    """Request schema for bulk_update_application_status."""

    # Items are validated one by one so failures can be reported per id
    job_ids: list[Any]
    status: Any


class BulkUpdateResultItem(StrictResponse):
    """Per-item result schema for bulk_update_application_status."""

    id: str
    success: bool
    action: Optional[str] = None
    error: Optional[str] = None


class BulkUpdateApplicationStatusResponse(StrictResponse):
    """Success/failure response schema for bulk_update_application_status."""

    status: Optional[str] = None
    updated_count: int
    unchanged_count: int = 0
    failed_count: int
    results: list[BulkUpdateResultItem]
