"""Shared schema primitives for MCP tool request/response models."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from models.errors import ToolError
from utils.validation import validate_job_id, validate_optional_user_id


def validate_optional_non_empty_str(value: Optional[str], field_name: str) -> Optional[str]:
    """Validate optional string fields that cannot be empty/whitespace."""
    if value is None:
        return None
    if not value.strip():
        raise ValueError(f"Invalid {field_name}: cannot be empty")
    return value


class StrictIgnoreRequest(BaseModel):
    """Request base with strict typing and ignored unknown fields."""

    model_config = ConfigDict(extra="ignore", strict=True)


class StrictResponse(BaseModel):
    """Response/result base with strict typing and forbidden unknown fields."""

    model_config = ConfigDict(extra="forbid")


class DbPathMixin(BaseModel):
    """Reusable db_path field validation."""

    db_path: Optional[str] = None

    @field_validator("db_path")
    @classmethod
    def validate_db_path(cls, value: Optional[str]) -> Optional[str]:
        return validate_optional_non_empty_str(value, "db_path")


class ActorMixin(BaseModel):
    """Reusable actor_user_id field validation."""

    actor_user_id: Optional[str] = None

    @field_validator("actor_user_id")
    @classmethod
    def validate_actor_user_id(cls, value: Optional[str]) -> Optional[str]:
        try:
            return validate_optional_user_id(value)
        except ToolError as e:
            raise ValueError(e.message) from e


class JobIdMixin(BaseModel):
    """Reusable job_id field: opaque string, integers accepted and converted."""

    job_id: str

    @field_validator("job_id", mode="before")
    @classmethod
    def validate_job_id(cls, value: Any) -> str:
        try:
            return validate_job_id(value)
        except ToolError as e:
            raise ValueError(e.message) from e
