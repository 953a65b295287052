"""
Tests for the PipelineBoard session: snapshot reloads, selection retention
and drag-to-transition wiring.
"""

import asyncio
import logging

import pytest

from models.errors import create_not_found_error
from models.status import PipelineColumn
from utils.drag_controller import (
    DragState,
    DropTarget,
    InputModality,
    Point,
    Rect,
    TransitionRequest,
)
from utils.pipeline_board import PipelineBoard
from utils.transition_executor import OutcomeKind, TransitionExecutor


class MemoryStore:
    """Records kept in memory; the loader reads them back as rows."""

    def __init__(self, statuses):
        self.statuses = dict(statuses)
        self.load_calls = 0
        self.fail_load = False

    async def load(self):
        self.load_calls += 1
        if self.fail_load:
            raise RuntimeError("database unavailable")
        return [{"id": record_id, "status": status} for record_id, status in self.statuses.items()]

    async def update_status(self, record_id, status, timestamp):
        if record_id not in self.statuses:
            raise create_not_found_error(record_id)
        self.statuses[record_id] = status

    async def append_status_event(self, event):
        pass


def make_targets():
    return [
        DropTarget(PipelineColumn.INTERESTED, Rect(0, 0, 100, 500)),
        DropTarget(PipelineColumn.APPLIED, Rect(110, 0, 100, 500)),
        DropTarget(PipelineColumn.REJECTED, Rect(220, 0, 100, 500)),
    ]


@pytest.fixture
def store():
    return MemoryStore({"job-1": "Interested", "job-2": "Applied", "job-3": "Ghosted"})


@pytest.fixture
def board(store):
    return PipelineBoard(
        store.load,
        TransitionExecutor(store),
        actor_user_id="user-1",
        targets=make_targets(),
        pointer_activation_distance=5,
    )


class TestSnapshot:
    """Tests for reload/refresh and selection handling."""

    @pytest.mark.asyncio
    async def test_reload_projects_records(self, board):
        model = await board.reload()
        projection = model.project()
        assert [r.id for r in projection[PipelineColumn.INTERESTED]] == ["job-1"]
        assert [r.id for r in projection[PipelineColumn.OTHER]] == ["job-3"]

    @pytest.mark.asyncio
    async def test_reload_clears_selection(self, board):
        await board.reload()
        board.selection.select("job-1")
        await board.reload()
        assert len(board.selection) == 0

    @pytest.mark.asyncio
    async def test_refresh_retains_existing_selection(self, board, store):
        await board.reload()
        board.selection.select("job-1")
        board.selection.select("job-2")
        del store.statuses["job-2"]

        await board.refresh()

        assert board.selection.ids == ["job-1"]

    def test_controller_options_forwarded(self, board):
        assert board.controller.pointer_activation_distance == 5


class TestDragToTransition:
    """Tests for drops turning into executed transitions."""

    @pytest.mark.asyncio
    async def test_keyboard_drop_moves_record(self, board, store):
        await board.reload()
        loads_before = store.load_calls

        board.controller.pick_up(board.card("job-1"))
        board.controller.key_down("ArrowRight")
        board.controller.key_down("ArrowRight")
        board.controller.key_down("Enter")

        assert board.controller.state == DragState.IDLE
        assert board.pending_count == 1

        outcomes = await board.drain()

        assert [o.kind for o in outcomes] == [OutcomeKind.OK]
        assert store.statuses["job-1"] == "Applied"
        assert board.board.column_of("job-1") == PipelineColumn.APPLIED
        assert store.load_calls == loads_before + 1

    @pytest.mark.asyncio
    async def test_pointer_drop_moves_record(self, board, store):
        await board.reload()

        board.controller.press(board.card("job-1"), Point(50, 50), InputModality.POINTER, 0)
        board.controller.move(Point(260, 50), 16)
        request = board.controller.release()
        await board.drain()

        assert request.to_status == "Rejected"
        assert store.statuses["job-1"] == "Rejected"

    @pytest.mark.asyncio
    async def test_noop_drop_does_not_refresh(self, board, store):
        await board.reload()
        loads_before = store.load_calls

        board.controller.press(board.card("job-2"), Point(150, 50))
        board.controller.move(Point(160, 60))
        board.controller.release()
        outcomes = await board.drain()

        assert outcomes[0].kind == OutcomeKind.NOOP
        assert store.load_calls == loads_before

    @pytest.mark.asyncio
    async def test_outcomes_recorded(self, board):
        await board.reload()
        board.controller.pick_up(board.card("job-1"))
        # First arrow focuses the card's own column
        board.controller.key_down("ArrowRight")
        board.controller.key_down("Space")
        await board.drain()
        assert len(board.outcomes) == 1
        assert board.outcomes[0].kind == OutcomeKind.NOOP

    @pytest.mark.asyncio
    async def test_refresh_failure_is_logged(self, board, store, caplog):
        await board.reload()
        store.fail_load = True

        board.controller.pick_up(board.card("job-1"))
        board.controller.key_down("ArrowLeft")
        board.controller.key_down("Enter")

        with caplog.at_level(logging.WARNING, logger="utils.pipeline_board"):
            outcomes = await board.drain()

        assert outcomes[0].kind == OutcomeKind.OK
        assert store.statuses["job-1"] == "Rejected"
        assert "refresh" in caplog.text

    @pytest.mark.asyncio
    async def test_drain_without_pending(self, board):
        assert await board.drain() == []

    @pytest.mark.asyncio
    async def test_submit_schedules_task(self, board, store):
        await board.reload()
        task = board.submit(TransitionRequest("job-1", "Interested", "Applied"))

        assert isinstance(task, asyncio.Task)
        outcome = await task
        assert outcome.ok
