"""Pydantic schemas for move_application tool."""

from __future__ import annotations

from typing import Optional

from pydantic import field_validator

from schemas.common import (
    ActorMixin,
    DbPathMixin,
    JobIdMixin,
    StrictIgnoreRequest,
    StrictResponse,
    validate_optional_non_empty_str,
)


class MoveApplicationRequest(JobIdMixin, ActorMixin, DbPathMixin, StrictIgnoreRequest):
    """Request schema for move_application."""

    target_status: str

    @field_validator("target_status")
    @classmethod
    def validate_target_status(cls, value: str) -> str:
        return validate_optional_non_empty_str(value, "target_status").strip()


class NotificationView(StrictResponse):
    level: str
    message: str


class MoveApplicationResponse(StrictResponse):
    """Outcome of a single pipeline move."""

    job_id: str
    previous_status: Optional[str] = None
    target_status: str
    action: str
    success: bool
    column: Optional[str] = None
    message: Optional[str] = None
    error_code: Optional[str] = None
    retryable: Optional[bool] = None
    notifications: list[NotificationView] = []
