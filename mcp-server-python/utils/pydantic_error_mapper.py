"""Convert Pydantic validation errors to the ToolError contract."""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from models.errors import ToolError, create_validation_error


def _loc_to_field(loc: tuple[Any, ...]) -> str:
    parts = [str(part) for part in loc if part != "__root__"]
    return ".".join(parts)


def _clean_pydantic_message(message: str) -> str:
    # field_validator ValueErrors come through as "Value error, <msg>"
    prefix = "Value error, "
    return message[len(prefix):] if message.startswith(prefix) else message


def map_pydantic_validation_error(error: ValidationError) -> ToolError:
    """Map the first Pydantic issue to a VALIDATION_ERROR naming the field."""
    issues = error.errors()
    if not issues:
        return create_validation_error("Invalid input")

    first = issues[0]
    field = _loc_to_field(first.get("loc", ()))
    message = _clean_pydantic_message(first.get("msg", "Invalid input"))

    if not field:
        return create_validation_error(message)
    if message.startswith("Invalid "):
        return create_validation_error(message)
    return create_validation_error(f"Invalid {field}: {message}")
