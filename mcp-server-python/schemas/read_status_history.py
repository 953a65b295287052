"""Pydantic schemas for read_status_history tool."""

from __future__ import annotations

from typing import Optional

from schemas.common import DbPathMixin, JobIdMixin, StrictIgnoreRequest, StrictResponse


class ReadStatusHistoryRequest(JobIdMixin, DbPathMixin, StrictIgnoreRequest):
    """Request schema for read_status_history."""


class StatusHistoryItem(StrictResponse):
    user_id: str
    from_status: Optional[str] = None
    to_status: str
    changed_at: str


class ReadStatusHistoryResponse(StrictResponse):
    """Success response schema for read_status_history."""

    job_id: str
    events: list[StatusHistoryItem]
    count: int
