"""Pydantic schemas for read_pipeline_board tool."""

from __future__ import annotations

from typing import Optional

from schemas.common import DbPathMixin, StrictIgnoreRequest, StrictResponse


class ReadPipelineBoardRequest(DbPathMixin, StrictIgnoreRequest):
    """Request schema for read_pipeline_board."""

    include_archived: bool = False


class DeadlineUrgencyView(StrictResponse):
    level: str
    days_left: int
    label: str


class BoardCard(StrictResponse):
    """One application card as rendered on the board."""

    id: str
    job_title: Optional[str] = None
    company_name: Optional[str] = None
    status: str
    salary: Optional[float] = None
    application_deadline: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    is_archived: bool = False
    days_in_stage: int
    deadline_urgency: Optional[DeadlineUrgencyView] = None


class BoardColumnView(StrictResponse):
    """One board column with its cards in board order."""

    id: str
    title: str
    style: str
    count: int
    jobs: list[BoardCard]


class ReadPipelineBoardResponse(StrictResponse):
    """Success response schema for read_pipeline_board."""

    columns: list[BoardColumnView]
    total_count: int
