#!/usr/bin/env python3
"""
MCP Server entry point for the job application pipeline board.

The server exposes the pipeline board as MCP tools: reading the board and
its statistics, moving one application between columns (with audit trail and
status-entry side effects), bulk status, archive and deadline changes for a
selection, and the status history of an application.

Usage:
    python server.py

The server runs in stdio mode by default, which is the standard transport
for MCP servers that are invoked by LLM agents.
"""

import logging

from mcp.server.fastmcp import FastMCP

from config import get_config
from tools.bulk_archive_applications import bulk_archive_applications, bulk_restore_applications
from tools.bulk_update_application_deadline import bulk_update_application_deadline
from tools.bulk_update_application_status import bulk_update_application_status
from tools.move_application import move_application
from tools.read_pipeline_board import read_pipeline_board
from tools.read_pipeline_stats import read_pipeline_stats
from tools.read_status_history import read_status_history

# Create FastMCP server instance
config = get_config()
mcp = FastMCP(
    name=config.server_name,
    instructions=(
        "This server provides tools for a job application pipeline board. "
        "Columns in order: Interested, Applied, Phone Screen, Interview, Offer, Accepted, "
        "Rejected, plus an 'Other' column (id 'unknown') for unrecognized statuses."
        "\n\n"
        "READ TOOLS:\n"
        "Use read_pipeline_board to see every column with its applications. "
        "Use read_pipeline_stats for totals, stage groups and the response rate. "
        "Use read_status_history to see how one application moved through the pipeline."
        "\n\n"
        "WRITE TOOLS:\n"
        "Use move_application to move one application to another column; moving to Applied "
        "also completes the 'application' checklist item and schedules a follow-up reminder. "
        "Use bulk_update_application_status to move a selection of applications atomically "
        "(no checklist or reminder side effects). Applications cannot be moved to 'unknown'. "
        "Use bulk_archive_applications to archive a selection (hidden from the board by default) "
        "and bulk_restore_applications to bring archived applications back. "
        "Use bulk_update_application_deadline to set or clear the deadline of a selection."
    ),
)


@mcp.tool(
    name="read_pipeline_board",
    description=(
        "Read the job application pipeline board: every column in order with its title, "
        "count and applications (newest first), including days in stage and deadline urgency. "
        "The 'Other' column appears only when an application has an unrecognized status."
    ),
)
def read_pipeline_board_tool(
    include_archived: bool = False,
    db_path: str | None = None,
) -> dict:
    """
    Read the pipeline board.

    Args:
        include_archived: Include archived applications (default: false).
        db_path: Optional database path override (default: data/pipeline/jobs.db).

    Returns:
        Dictionary with "columns" (id, title, style, count, jobs) and
        "total_count", or {"error": {...}} on failure.
    """
    args = {}
    if include_archived:
        args["include_archived"] = include_archived
    if db_path is not None:
        args["db_path"] = db_path

    return read_pipeline_board(args)


@mcp.tool(
    name="move_application",
    description=(
        "Move one job application to another pipeline column. Moving within the same column "
        "(including status aliases such as 'Offer Received') is a no-op; moving to 'unknown' is "
        "blocked. A successful move records a status history event and runs column side effects."
    ),
)
async def move_application_tool(
    job_id: str,
    target_status: str,
    actor_user_id: str | None = None,
    db_path: str | None = None,
) -> dict:
    """
    Move one application to another pipeline column.

    Args:
        job_id: Application id.
        target_status: Target column id or an alias of it (for example "Applied",
            "Phone Screen", "Offer Received").
        actor_user_id: User attributed in the status history (default:
            JOBPIPELINE_ACTOR_USER_ID). Without an actor no history event or
            follow-up reminder is written.
        db_path: Optional database path override (default: data/pipeline/jobs.db).

    Returns:
        Dictionary with job_id, previous_status, target_status, action
        ("updated", "noop" or "blocked"), success, message and notifications,
        or {"error": {...}} on request-level failure.
    """
    args = {"job_id": job_id, "target_status": target_status}
    if actor_user_id is not None:
        args["actor_user_id"] = actor_user_id
    if db_path is not None:
        args["db_path"] = db_path

    return await move_application(
        args,
        default_actor_user_id=config.actor_user_id,
        follow_up_days=config.follow_up_days,
        reminder_type=config.reminder_type,
    )


@mcp.tool(
    name="bulk_update_application_status",
    description=(
        "Move several job applications to one pipeline column in a single atomic transaction. "
        "Any invalid or missing id rolls back the whole batch. Records already in the target "
        "column are left unchanged."
    ),
)
def bulk_update_application_status_tool(
    job_ids: list,
    status: str,
    actor_user_id: str | None = None,
    db_path: str | None = None,
) -> dict:
    """
    Move a selection of applications to one column atomically.

    Args:
        job_ids: Application ids (unique, at most JOBPIPELINE_BULK_UPDATE_LIMIT).
        status: Target column id or alias; 'unknown' is rejected.
        actor_user_id: User attributed in the status history (default:
            JOBPIPELINE_ACTOR_USER_ID).
        db_path: Optional database path override (default: data/pipeline/jobs.db).

    Returns:
        Dictionary with status, updated_count, unchanged_count, failed_count and
        per-id results, or {"error": {...}} on failure.
    """
    args = {"job_ids": job_ids, "status": status}
    if actor_user_id is not None:
        args["actor_user_id"] = actor_user_id
    if db_path is not None:
        args["db_path"] = db_path

    return bulk_update_application_status(
        args,
        default_actor_user_id=config.actor_user_id,
        limit=config.bulk_update_limit,
    )


@mcp.tool(
    name="bulk_archive_applications",
    description=(
        "Archive several job applications in a single atomic transaction. Archived applications "
        "keep their status but are hidden from the board unless include_archived is set. "
        "Any invalid or missing id rolls back the whole batch."
    ),
)
def bulk_archive_applications_tool(
    job_ids: list,
    archive_reason: str | None = None,
    db_path: str | None = None,
) -> dict:
    """
    Archive a selection of applications atomically.

    Args:
        job_ids: Application ids (unique, at most JOBPIPELINE_BULK_UPDATE_LIMIT).
        archive_reason: Optional reason stored with each archived application.
        db_path: Optional database path override (default: data/pipeline/jobs.db).

    Returns:
        Dictionary with archived, updated_count, unchanged_count, failed_count
        and per-id results, or {"error": {...}} on failure.
    """
    args = {"job_ids": job_ids}
    if archive_reason is not None:
        args["archive_reason"] = archive_reason
    if db_path is not None:
        args["db_path"] = db_path

    return bulk_archive_applications(args, limit=config.bulk_update_limit)


@mcp.tool(
    name="bulk_restore_applications",
    description=(
        "Restore several archived job applications in a single atomic transaction, clearing "
        "their archive date and reason. Applications that are not archived are left unchanged."
    ),
)
def bulk_restore_applications_tool(job_ids: list, db_path: str | None = None) -> dict:
    """
    Restore a selection of archived applications atomically.

    Args:
        job_ids: Application ids (unique, at most JOBPIPELINE_BULK_UPDATE_LIMIT).
        db_path: Optional database path override (default: data/pipeline/jobs.db).

    Returns:
        Dictionary with archived (false), updated_count, unchanged_count,
        failed_count and per-id results, or {"error": {...}} on failure.
    """
    args = {"job_ids": job_ids}
    if db_path is not None:
        args["db_path"] = db_path

    return bulk_restore_applications(args, limit=config.bulk_update_limit)


@mcp.tool(
    name="bulk_update_application_deadline",
    description=(
        "Set the application deadline of several job applications in a single atomic "
        "transaction. The deadline is an ISO 8601 date such as 2026-03-01; null clears it."
    ),
)
def bulk_update_application_deadline_tool(
    job_ids: list,
    application_deadline: str | None,
    db_path: str | None = None,
) -> dict:
    """
    Set one deadline on a selection of applications atomically.

    Args:
        job_ids: Application ids (unique, at most JOBPIPELINE_BULK_UPDATE_LIMIT).
        application_deadline: ISO 8601 date or datetime, or null to clear.
        db_path: Optional database path override (default: data/pipeline/jobs.db).

    Returns:
        Dictionary with application_deadline, updated_count, unchanged_count,
        failed_count and per-id results, or {"error": {...}} on failure.
    """
    args = {"job_ids": job_ids, "application_deadline": application_deadline}
    if db_path is not None:
        args["db_path"] = db_path

    return bulk_update_application_deadline(args, limit=config.bulk_update_limit)


@mcp.tool(
    name="read_status_history",
    description="Read the status change history of one job application, oldest first.",
)
def read_status_history_tool(job_id: str, db_path: str | None = None) -> dict:
    """
    Read the status history of one application.

    Args:
        job_id: Application id.
        db_path: Optional database path override (default: data/pipeline/jobs.db).

    Returns:
        Dictionary with job_id, events and count, or {"error": {...}}.
    """
    args = {"job_id": job_id}
    if db_path is not None:
        args["db_path"] = db_path

    return read_status_history(args)


@mcp.tool(
    name="read_pipeline_stats",
    description=(
        "Summarize the job application pipeline: total, active, applied, interviewing, "
        "offers, rejected, response rate and per-column counts."
    ),
)
def read_pipeline_stats_tool(
    include_archived: bool = True,
    db_path: str | None = None,
) -> dict:
    """
    Summarize the pipeline.

    Args:
        include_archived: Count archived applications (default: true).
        db_path: Optional database path override (default: data/pipeline/jobs.db).

    Returns:
        Dictionary with the statistics, or {"error": {...}}.
    """
    args = {"include_archived": include_archived}
    if db_path is not None:
        args["db_path"] = db_path

    return read_pipeline_stats(args)


def main():
    """
    Main entry point for the MCP server.

    Runs the server in stdio mode, which is the standard transport
    for MCP servers that are invoked by LLM agents.
    """
    config.setup_logging()

    logger = logging.getLogger(__name__)
    logger.info("Starting Job Pipeline MCP Server")
    logger.info(f"Server name: {config.server_name}")
    logger.info(f"Database path: {config.db_path}")

    warnings = config.validate()
    for warning in warnings:
        logger.warning(warning)

    logger.info("Server starting in stdio mode")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
