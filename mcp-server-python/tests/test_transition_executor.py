"""
Unit tests for the transition executor.

Collaborators are in-memory fakes so each rule can be checked in isolation:
unknown targets are blocked, same-column moves are silent no-ops, accepted
moves persist, audit and hooks are best effort, and a record cannot be moved
twice concurrently.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from models.application import StatusTransitionEvent
from models.errors import ErrorCode, ToolError, create_db_error, create_not_found_error
from models.status import PipelineColumn
from utils.notifications import CollectingNotificationSink, NotificationLevel
from utils.transition_executor import (
    APPLICATION_CHECKLIST_ITEM,
    UNKNOWN_TARGET_MESSAGE,
    HookContext,
    InFlightSet,
    OutcomeKind,
    TransitionExecutor,
)


class FakeStore:
    """In-memory ApplicationStore/ChecklistService/ReminderService."""

    def __init__(self, statuses=None):
        self.statuses = dict(statuses or {})
        self.events = []
        self.completed_items = []
        self.reminders = []
        self.update_calls = 0

    async def update_status(self, record_id, status, timestamp):
        self.update_calls += 1
        if record_id not in self.statuses:
            raise create_not_found_error(record_id)
        self.statuses[record_id] = status

    async def append_status_event(self, event: StatusTransitionEvent):
        self.events.append(event)

    async def mark_item_complete(self, record_id, item_key):
        self.completed_items.append((record_id, item_key))
        return True

    async def create_follow_up(self, record_id, user_id):
        self.reminders.append((record_id, user_id))


@pytest.fixture
def store():
    return FakeStore({"job-1": "Interested", "job-2": "Offer Received"})


@pytest.fixture
def sink():
    return CollectingNotificationSink()


@pytest.fixture
def executor(store, sink):
    return TransitionExecutor(store, checklist=store, reminders=store, notifications=sink)


class TestRejectedMoves:
    """Tests for moves that never reach the store."""

    @pytest.mark.asyncio
    async def test_unknown_target_is_blocked(self, executor, store, sink):
        outcome = await executor.execute("job-1", "Interested", "unknown", "user-1")

        assert outcome.kind == OutcomeKind.ERROR
        assert outcome.error.code == ErrorCode.VALIDATION_ERROR
        assert outcome.message == UNKNOWN_TARGET_MESSAGE
        assert store.update_calls == 0
        assert store.statuses["job-1"] == "Interested"
        assert [n.message for n in sink.notifications] == [UNKNOWN_TARGET_MESSAGE]
        assert sink.notifications[0].level == NotificationLevel.ERROR

    @pytest.mark.asyncio
    @pytest.mark.parametrize("target", ["Ghosted", "", None])
    async def test_unrecognized_target_is_blocked(self, executor, store, target):
        outcome = await executor.execute("job-1", "Interested", target, "user-1")
        assert outcome.kind == OutcomeKind.ERROR
        assert store.update_calls == 0

    @pytest.mark.asyncio
    async def test_same_column_is_silent_noop(self, executor, store, sink):
        outcome = await executor.execute("job-1", "Interested", "Interested", "user-1")

        assert outcome.kind == OutcomeKind.NOOP
        assert store.update_calls == 0
        assert store.events == []
        assert sink.notifications == []

    @pytest.mark.asyncio
    async def test_alias_of_same_column_is_noop(self, executor, store, sink):
        outcome = await executor.execute("job-2", "Offer Received", "Offer", "user-1")

        assert outcome.kind == OutcomeKind.NOOP
        assert store.statuses["job-2"] == "Offer Received"
        assert sink.notifications == []

    @pytest.mark.asyncio
    async def test_unknown_source_to_unknown_target_is_blocked_not_noop(self, executor, store):
        outcome = await executor.execute("job-1", "Ghosted", "unknown", "user-1")
        assert outcome.kind == OutcomeKind.ERROR
        assert store.update_calls == 0


class TestAcceptedMoves:
    """Tests for moves that persist."""

    @pytest.mark.asyncio
    async def test_move_persists_canonical_status(self, executor, store, sink):
        outcome = await executor.execute("job-1", "Interested", "phone screen", "user-1")

        assert outcome.ok
        assert outcome.to_status == "Phone Screen"
        assert outcome.title == "Phone Screen"
        assert store.statuses["job-1"] == "Phone Screen"
        assert outcome.message == "Job moved to Phone Screen"
        assert sink.notifications[0].level == NotificationLevel.SUCCESS
        assert sink.notifications[0].message == "Job moved to Phone Screen"

    @pytest.mark.asyncio
    async def test_offer_received_to_accepted(self, executor, store, sink):
        outcome = await executor.execute("job-2", "Offer Received", "Accepted", "user-1")

        assert outcome.ok
        assert store.statuses["job-2"] == "Accepted"
        assert store.update_calls == 1
        assert [(e.job_id, e.from_status, e.to_status) for e in store.events] == [
            ("job-2", "Offer Received", "Accepted")
        ]
        assert [n.level for n in sink.notifications] == [NotificationLevel.SUCCESS]
        assert "Accepted" in sink.notifications[0].message
        assert store.completed_items == []
        assert store.reminders == []

    @pytest.mark.asyncio
    async def test_move_from_other_column(self, executor, store):
        store.statuses["job-3"] = "Ghosted"
        outcome = await executor.execute("job-3", "Ghosted", "Rejected", "user-1")
        assert outcome.ok
        assert store.statuses["job-3"] == "Rejected"

    @pytest.mark.asyncio
    async def test_audit_event_appended_with_actor(self, executor, store):
        await executor.execute("job-1", "Interested", "Rejected", "user-1")

        assert len(store.events) == 1
        event = store.events[0]
        assert event.job_id == "job-1"
        assert event.user_id == "user-1"
        assert event.from_status == "Interested"
        assert event.to_status == "Rejected"
        assert event.changed_at.endswith("Z")

    @pytest.mark.asyncio
    async def test_no_audit_event_without_actor(self, executor, store):
        outcome = await executor.execute("job-1", "Interested", "Rejected")
        assert outcome.ok
        assert store.events == []

    @pytest.mark.asyncio
    async def test_missing_from_status_recorded_as_empty(self, executor, store):
        store.statuses["job-4"] = None
        await executor.execute("job-4", None, "Applied", "user-1")
        assert store.events[0].from_status == ""


class TestAppliedHooks:
    """Tests for the status-entry hooks of the Applied column."""

    @pytest.mark.asyncio
    async def test_applied_completes_checklist_and_schedules_reminder(self, executor, store):
        await executor.execute("job-1", "Interested", "Applied", "user-1")

        assert store.completed_items == [("job-1", APPLICATION_CHECKLIST_ITEM)]
        assert store.reminders == [("job-1", "user-1")]

    @pytest.mark.asyncio
    async def test_applied_without_actor_skips_reminder(self, executor, store):
        await executor.execute("job-1", "Interested", "Applied")

        assert store.completed_items == [("job-1", APPLICATION_CHECKLIST_ITEM)]
        assert store.reminders == []

    @pytest.mark.asyncio
    async def test_other_columns_run_no_hooks(self, executor, store):
        await executor.execute("job-1", "Interested", "Interview", "user-1")
        assert store.completed_items == []
        assert store.reminders == []

    @pytest.mark.asyncio
    async def test_hooks_without_services_are_skipped(self, store, sink):
        executor = TransitionExecutor(store, notifications=sink)
        outcome = await executor.execute("job-1", "Interested", "Applied", "user-1")
        assert outcome.ok

    @pytest.mark.asyncio
    async def test_custom_hooks(self, store, sink):
        seen = []

        async def on_offer(context: HookContext):
            seen.append((context.record_id, context.from_status, context.to_column))

        executor = TransitionExecutor(
            store, notifications=sink, hooks={PipelineColumn.OFFER: [on_offer]}
        )
        await executor.execute("job-1", "Interested", "Offer Received", "user-1")
        await executor.execute("job-1", "Offer", "Applied", "user-1")

        assert seen == [("job-1", "Interested", PipelineColumn.OFFER)]


class TestFailures:
    """Tests for failure isolation."""

    @pytest.mark.asyncio
    async def test_primary_write_failure_reports_error(self, executor, store, sink):
        store.update_status = AsyncMock(side_effect=create_db_error("database is locked", True))

        outcome = await executor.execute("job-1", "Interested", "Applied", "user-1")

        assert outcome.kind == OutcomeKind.ERROR
        assert outcome.error.code == ErrorCode.DB_ERROR
        assert outcome.message.startswith("Failed to update job status: ")
        assert "database is locked" in outcome.message
        assert sink.notifications[-1].level == NotificationLevel.ERROR
        assert store.events == []
        assert store.completed_items == []
        assert store.reminders == []

    @pytest.mark.asyncio
    async def test_unexpected_write_exception_becomes_internal_error(self, executor, store):
        store.update_status = AsyncMock(side_effect=RuntimeError("boom"))

        outcome = await executor.execute("job-1", "Interested", "Applied", "user-1")

        assert outcome.kind == OutcomeKind.ERROR
        assert outcome.error.code == ErrorCode.INTERNAL_ERROR
        assert outcome.message == "Failed to update job status: boom"

    @pytest.mark.asyncio
    async def test_missing_record_reports_not_found(self, executor):
        outcome = await executor.execute("missing", "Interested", "Applied", "user-1")
        assert outcome.error.code == ErrorCode.NOT_FOUND
        assert outcome.message == "Failed to update job status: Job not found: missing"

    @pytest.mark.asyncio
    async def test_audit_failure_does_not_fail_move(self, executor, store, sink):
        store.append_status_event = AsyncMock(side_effect=ToolError(ErrorCode.DB_ERROR, "nope"))

        outcome = await executor.execute("job-1", "Interested", "Applied", "user-1")

        assert outcome.ok
        assert store.statuses["job-1"] == "Applied"
        assert store.reminders == [("job-1", "user-1")]
        assert [n.level for n in sink.notifications] == [NotificationLevel.SUCCESS]

    @pytest.mark.asyncio
    async def test_hook_failure_does_not_fail_move_or_later_hooks(self, executor, store, sink):
        store.mark_item_complete = AsyncMock(side_effect=RuntimeError("checklist down"))

        outcome = await executor.execute("job-1", "Interested", "Applied", "user-1")

        assert outcome.ok
        assert store.reminders == [("job-1", "user-1")]
        assert [n.level for n in sink.notifications] == [NotificationLevel.SUCCESS]


class TestConcurrency:
    """Tests for the per-record in-flight guard."""

    @pytest.mark.asyncio
    async def test_second_move_of_same_record_is_rejected(self, executor, store):
        release = asyncio.Event()
        original = store.update_status

        async def slow_update(record_id, status, timestamp):
            await release.wait()
            await original(record_id, status, timestamp)

        store.update_status = slow_update

        first = asyncio.create_task(executor.execute("job-1", "Interested", "Applied", "user-1"))
        await asyncio.sleep(0)
        assert executor.is_in_flight("job-1")

        second = await executor.execute("job-1", "Interested", "Rejected", "user-1")
        assert second.kind == OutcomeKind.ERROR
        assert second.error.code == ErrorCode.TRANSITION_IN_PROGRESS
        assert second.error.retryable is True

        release.set()
        first_outcome = await first

        assert first_outcome.ok
        assert store.statuses["job-1"] == "Applied"
        assert not executor.is_in_flight("job-1")

    @pytest.mark.asyncio
    async def test_different_records_move_concurrently(self, executor, store):
        outcomes = await asyncio.gather(
            executor.execute("job-1", "Interested", "Applied", "user-1"),
            executor.execute("job-2", "Offer Received", "Accepted", "user-1"),
        )
        assert all(outcome.ok for outcome in outcomes)

    @pytest.mark.asyncio
    async def test_lock_released_after_failure(self, executor, store):
        store.update_status = AsyncMock(side_effect=RuntimeError("boom"))
        await executor.execute("job-1", "Interested", "Applied", "user-1")
        assert not executor.is_in_flight("job-1")

    @pytest.mark.asyncio
    async def test_record_held_by_another_writer_is_rejected(self, store, sink):
        shared = InFlightSet()
        executor = TransitionExecutor(store, notifications=sink, in_flight=shared)
        assert shared.claim(["job-1"]) == []

        outcome = await executor.execute("job-1", "Interested", "Applied", "user-1")

        assert outcome.error.code == ErrorCode.TRANSITION_IN_PROGRESS
        assert store.update_calls == 0
        assert "job-1" in shared

        shared.release(["job-1"])
        assert (await executor.execute("job-1", "Interested", "Applied", "user-1")).ok


class TestInFlightSet:
    """Tests for the all-or-nothing id reservation."""

    def test_claim_reserves_all_ids(self):
        in_flight = InFlightSet()
        assert in_flight.claim(["a", "b"]) == []
        assert "a" in in_flight and "b" in in_flight

    def test_claim_with_busy_id_reserves_nothing(self):
        in_flight = InFlightSet()
        in_flight.claim(["b"])

        assert in_flight.claim(["a", "b", "c"]) == ["b"]
        assert "a" not in in_flight
        assert len(in_flight) == 1

    def test_release(self):
        in_flight = InFlightSet()
        in_flight.claim(["a", "b"])
        in_flight.release(["a", "missing"])
        assert "a" not in in_flight
        assert "b" in in_flight


class TestNotifications:
    """Tests for notification routing."""

    @pytest.mark.asyncio
    async def test_per_call_sink_overrides_default(self, executor, sink):
        call_sink = CollectingNotificationSink()
        await executor.execute("job-1", "Interested", "Applied", notifications=call_sink)

        assert [n.message for n in call_sink.notifications] == ["Job moved to Applied"]
        assert sink.notifications == []
