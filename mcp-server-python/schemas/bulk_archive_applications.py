"""Pydantic schemas for bulk_archive_applications and bulk_restore_applications tools."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import field_validator

from schemas.bulk_update_application_status import BulkUpdateResultItem
from schemas.common import (
    DbPathMixin,
    StrictIgnoreRequest,
    StrictResponse,
    validate_optional_non_empty_str,
)


class BulkRestoreApplicationsRequest(DbPathMixin, StrictIgnoreRequest):
    """Request schema for bulk_restore_applications."""

    job_ids: list[Any]


class BulkArchiveApplicationsRequest(BulkRestoreApplicationsRequest):
    """Request schema for bulk_archive_applications."""

    archive_reason: Optional[str] = None

    @field_validator("archive_reason")
    @classmethod
    def validate_archive_reason(cls, value: Optional[str]) -> Optional[str]:
        value = validate_optional_non_empty_str(value, "archive_reason")
        return value.strip() if value is not None else None


class BulkArchiveApplicationsResponse(StrictResponse):
    """Response schema shared by bulk archive and bulk restore."""

    archived: bool
    updated_count: int
    unchanged_count: int = 0
    failed_count: int
    results: list[BulkUpdateResultItem]
