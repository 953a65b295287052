"""Pydantic schemas for read_pipeline_stats tool."""

from __future__ import annotations

from schemas.common import DbPathMixin, StrictIgnoreRequest, StrictResponse


class ReadPipelineStatsRequest(DbPathMixin, StrictIgnoreRequest):
    """Request schema for read_pipeline_stats."""

    include_archived: bool = True


class ReadPipelineStatsResponse(StrictResponse):
    """Success response schema for read_pipeline_stats."""

    total: int
    active: int
    applied: int
    interviewing: int
    offers: int
    rejected: int
    response_rate: int
    by_column: dict[str, int]
