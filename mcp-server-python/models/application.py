"""
Domain records for the job pipeline board.

``ApplicationRecord`` mirrors a row of the ``jobs`` table and
``StatusTransitionEvent`` mirrors a row of ``job_status_history``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    ValidationError,
    ValidatorFunctionWrapHandler,
    field_validator,
    model_validator,
)


class ApplicationRecord(BaseModel):
    """One job application as stored in the ``jobs`` table.

    Accepts raw database rows: extra columns are ignored, empty strings are
    normalised to None, and a missing status is kept as an empty string so
    that the record still resolves to a board column. Optional fields that
    cannot be parsed fall back to their default, so only a missing or
    unusable id makes a row invalid.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    job_title: Optional[str] = None
    company_name: Optional[str] = None
    status: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    application_deadline: Optional[datetime] = None
    salary: Optional[float] = None
    is_archived: bool = False

    @model_validator(mode="before")
    @classmethod
    def empty_strings_to_none(cls, data: Any) -> Any:
        """Convert empty-string values to None, except for status."""
        if isinstance(data, dict):
            return {
                k: (None if v == "" and k != "status" else v) for k, v in data.items()
            }
        return data

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("status", mode="before")
    @classmethod
    def coerce_status(cls, value: Any) -> Any:
        if value is None:
            return ""
        if not isinstance(value, str):
            return str(value)
        return value

    @field_validator(
        "job_title",
        "company_name",
        "created_at",
        "updated_at",
        "application_deadline",
        "salary",
        mode="wrap",
    )
    @classmethod
    def unparsable_to_none(cls, value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
        # Free-text deadlines ("next friday") and salaries ("competitive") exist in real data
        try:
            return handler(value)
        except ValidationError:
            return None

    @field_validator("is_archived", mode="wrap")
    @classmethod
    def coerce_archived(cls, value: Any, handler: ValidatorFunctionWrapHandler) -> bool:
        # SQLite stores booleans as 0/1 and NULL for legacy rows
        if value is None:
            return False
        try:
            return handler(value)
        except ValidationError:
            return False


class StatusTransitionEvent(BaseModel):
    """Append-only audit entry written after an accepted status change."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    job_id: str
    user_id: str
    from_status: str
    to_status: str
    changed_at: str
