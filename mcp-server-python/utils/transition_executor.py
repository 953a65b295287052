"""
Transition executor for pipeline status changes.

Given (record, from_status, to_status, actor) this module validates the move,
persists the new status, appends the audit event and runs status-entry
hooks. Only input rejections and primary-write failures reach the user as
errors; audit and hook failures are logged and absorbed.

Execution order:
1. Reject moves into the Other/unknown bucket
2. Treat moves within the same column (aliases included) as no-ops
3. Reject a second move of a record whose previous move is still pending
4. Persist the canonical status (single-row update)
5. Append the StatusTransitionEvent (best effort)
6. Run status-entry hooks for the target column (best effort)
7. Report the outcome through the notification sink
"""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Protocol, Set

from models.application import StatusTransitionEvent
from models.errors import (
    ErrorCode,
    ToolError,
    create_transition_in_progress_error,
    create_validation_error,
)
from models.status import PipelineColumn
from utils.notifications import LoggingNotificationSink, NotificationSink
from utils.status_registry import get_column, resolve_column
from utils.validation import get_current_utc_timestamp

logger = logging.getLogger(__name__)

UNKNOWN_TARGET_MESSAGE = "Cannot move job to unknown status"

# Checklist item completed when an application is submitted
APPLICATION_CHECKLIST_ITEM = "application"


class ApplicationStore(Protocol):
    """Row-oriented persistence for job applications and their history."""

    async def update_status(self, record_id: str, status: str, timestamp: str) -> None:
        """Set status/updated_at for one record. Raises ToolError on failure."""
        ...

    async def append_status_event(self, event: StatusTransitionEvent) -> None: ...


class ChecklistService(Protocol):
    async def mark_item_complete(self, record_id: str, item_key: str) -> bool: ...


class ReminderService(Protocol):
    async def create_follow_up(self, record_id: str, user_id: str) -> None: ...


class OutcomeKind(str, Enum):
    OK = "ok"
    NOOP = "noop"
    ERROR = "error"


@dataclass(frozen=True)
class TransitionOutcome:
    kind: OutcomeKind
    record_id: str
    from_status: str
    to_status: str
    column: Optional[PipelineColumn] = None
    message: Optional[str] = None
    error: Optional[ToolError] = None

    @property
    def ok(self) -> bool:
        return self.kind == OutcomeKind.OK

    @property
    def title(self) -> Optional[str]:
        return get_column(self.column).title if self.column else None


@dataclass(frozen=True)
class HookContext:
    record_id: str
    from_status: str
    to_column: PipelineColumn
    actor_user_id: Optional[str]


StatusHook = Callable[[HookContext], Awaitable[None]]


class InFlightSet:
    """
    Ids of records whose status write has not finished yet.

    One instance is shared by every writer of a database, so single moves and
    bulk updates of the same record never interleave. Writers may run on
    different threads, hence the lock.
    """

    def __init__(self):
        self._ids: Set[str] = set()
        self._lock = threading.Lock()

    def __contains__(self, record_id: object) -> bool:
        with self._lock:
            return record_id in self._ids

    def __len__(self) -> int:
        with self._lock:
            return len(self._ids)

    def claim(self, record_ids: Iterable[str]) -> List[str]:
        """
        Reserve all of ``record_ids`` or none of them.

        Returns:
            Ids already held by another writer, in input order. Nothing is
            reserved unless this is empty.
        """
        ids = list(record_ids)
        with self._lock:
            busy = [record_id for record_id in ids if record_id in self._ids]
            if not busy:
                self._ids.update(ids)
            return busy

    def release(self, record_ids: Iterable[str]) -> None:
        with self._lock:
            self._ids.difference_update(record_ids)


@dataclass
class TransitionExecutor:
    """
    Validates and applies a single status transition.

    Usage:
        executor = TransitionExecutor(store, checklist=store, reminders=store)
        outcome = await executor.execute("job-1", "Interested", "Applied", "user-1")
    """

    store: ApplicationStore
    checklist: Optional[ChecklistService] = None
    reminders: Optional[ReminderService] = None
    notifications: NotificationSink = field(default_factory=LoggingNotificationSink)
    hooks: Dict[PipelineColumn, List[StatusHook]] = field(default_factory=dict)
    in_flight: InFlightSet = field(default_factory=InFlightSet, repr=False)

    def __post_init__(self):
        if not self.hooks:
            self.hooks = {
                PipelineColumn.APPLIED: [self._complete_application_item, self._schedule_follow_up],
            }

    def is_in_flight(self, record_id: str) -> bool:
        return record_id in self.in_flight

    async def execute(
        self,
        record_id: str,
        from_status: str,
        to_status: str,
        actor_user_id: Optional[str] = None,
        notifications: Optional[NotificationSink] = None,
    ) -> TransitionOutcome:
        """
        Apply a status transition and report the outcome.

        Args:
            record_id: Job application id
            from_status: Status the record had when the move started (raw)
            to_status: Target column id or any alias of it
            actor_user_id: User attributed in the audit trail; None skips the
                audit event and user-scoped hooks
            notifications: Sink for this call only; defaults to the executor's

        Returns:
            TransitionOutcome with kind OK, NOOP or ERROR
        """
        sink = notifications or self.notifications
        from_status = from_status or ""
        target = resolve_column(to_status)

        if target == PipelineColumn.OTHER:
            error = create_validation_error(UNKNOWN_TARGET_MESSAGE)
            return self._fail(record_id, from_status, to_status, error, sink)

        if resolve_column(from_status) == target:
            logger.debug("Status of %s unchanged (%s), skipping update", record_id, target.value)
            return TransitionOutcome(
                OutcomeKind.NOOP, record_id, from_status, target.value, column=target
            )

        if self.in_flight.claim([record_id]):
            error = create_transition_in_progress_error(record_id)
            return self._fail(record_id, from_status, target.value, error, sink)

        try:
            return await self._apply(record_id, from_status, target, actor_user_id, sink)
        finally:
            self.in_flight.release([record_id])

    async def _apply(
        self,
        record_id: str,
        from_status: str,
        target: PipelineColumn,
        actor_user_id: Optional[str],
        sink: NotificationSink,
    ) -> TransitionOutcome:
        timestamp = get_current_utc_timestamp()

        try:
            await self.store.update_status(record_id, target.value, timestamp)
        except ToolError as e:
            return self._fail(record_id, from_status, target.value, e, sink)
        except Exception as e:
            logger.exception("Unexpected error updating status of %s", record_id)
            return self._fail(
                record_id,
                from_status,
                target.value,
                ToolError(ErrorCode.INTERNAL_ERROR, str(e) or "Unknown error", True, e),
                sink,
            )

        if actor_user_id:
            event = StatusTransitionEvent(
                job_id=record_id,
                user_id=actor_user_id,
                from_status=from_status,
                to_status=target.value,
                changed_at=timestamp,
            )
            try:
                await self.store.append_status_event(event)
            except Exception as e:
                logger.warning("Failed to record status history for %s: %s", record_id, e)
        else:
            logger.info("No actor for move of %s; status history not recorded", record_id)

        context = HookContext(record_id, from_status, target, actor_user_id)
        for hook in self.hooks.get(target, []):
            try:
                await hook(context)
            except Exception as e:
                logger.warning(
                    "Status hook %s failed for %s: %s", getattr(hook, "__name__", hook), record_id, e
                )

        title = get_column(target).title
        message = f"Job moved to {title}"
        sink.notify_success(message)
        return TransitionOutcome(
            OutcomeKind.OK, record_id, from_status, target.value, column=target, message=message
        )

    def _fail(
        self,
        record_id: str,
        from_status: str,
        to_status: str,
        error: ToolError,
        sink: NotificationSink,
    ) -> TransitionOutcome:
        if error.code in (ErrorCode.VALIDATION_ERROR, ErrorCode.TRANSITION_IN_PROGRESS):
            message = error.message
        else:
            message = f"Failed to update job status: {error.message or 'Unknown error'}"
            logger.error("Error updating status of %s: %s", record_id, error.message)
        sink.notify_error(message)
        return TransitionOutcome(
            OutcomeKind.ERROR, record_id, from_status, to_status, message=message, error=error
        )

    async def _complete_application_item(self, context: HookContext) -> None:
        if self.checklist is None:
            return
        await self.checklist.mark_item_complete(context.record_id, APPLICATION_CHECKLIST_ITEM)

    async def _schedule_follow_up(self, context: HookContext) -> None:
        if self.reminders is None or not context.actor_user_id:
            return
        await self.reminders.create_follow_up(context.record_id, context.actor_user_id)
