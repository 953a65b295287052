"""
Tests for the request schemas and the Pydantic error mapping.
"""

import pytest
from pydantic import ValidationError

from models.errors import ErrorCode
from schemas.bulk_update_application_status import (
    BulkUpdateApplicationStatusRequest,
    BulkUpdateResultItem,
)
from schemas.move_application import MoveApplicationRequest
from schemas.read_pipeline_board import ReadPipelineBoardRequest
from utils.pydantic_error_mapper import map_pydantic_validation_error


def mapped_message(model, args):
    with pytest.raises(ValidationError) as exc_info:
        model.model_validate(args)
    error = map_pydantic_validation_error(exc_info.value)
    assert error.code == ErrorCode.VALIDATION_ERROR
    return error.message


class TestMoveApplicationRequest:
    def test_valid_request(self):
        request = MoveApplicationRequest.model_validate(
            {"job_id": 12, "target_status": " Applied ", "actor_user_id": " u1 ", "x": 1}
        )
        assert request.job_id == "12"
        assert request.target_status == "Applied"
        assert request.actor_user_id == "u1"
        assert request.db_path is None

    def test_custom_validator_message_is_kept(self):
        message = mapped_message(MoveApplicationRequest, {"job_id": None, "target_status": "A"})
        assert message == "Invalid job ID: cannot be null"

    def test_missing_field_names_field(self):
        message = mapped_message(MoveApplicationRequest, {"job_id": "job-1"})
        assert message.startswith("Invalid target_status:")

    def test_blank_db_path(self):
        message = mapped_message(
            MoveApplicationRequest, {"job_id": "a", "target_status": "A", "db_path": ""}
        )
        assert message == "Invalid db_path: cannot be empty"


class TestBulkUpdateRequest:
    def test_items_are_not_validated_by_schema(self):
        request = BulkUpdateApplicationStatusRequest.model_validate(
            {"job_ids": [None, 1, "a"], "status": "Applied"}
        )
        assert request.job_ids == [None, 1, "a"]

    def test_job_ids_must_be_list(self):
        message = mapped_message(
            BulkUpdateApplicationStatusRequest, {"job_ids": "a", "status": "Applied"}
        )
        assert message.startswith("Invalid job_ids:")

    def test_result_item_forbids_extra_fields(self):
        with pytest.raises(ValidationError):
            BulkUpdateResultItem(id="a", success=True, unexpected=1)


class TestReadPipelineBoardRequest:
    def test_defaults(self):
        request = ReadPipelineBoardRequest.model_validate({})
        assert request.include_archived is False

    def test_strict_bool(self):
        message = mapped_message(ReadPipelineBoardRequest, {"include_archived": 1})
        assert message.startswith("Invalid include_archived:")
