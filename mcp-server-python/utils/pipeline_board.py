"""
Pipeline board session: snapshot, selection, drag controller and executor.

Drops are turned into asyncio tasks so the controller returns to IDLE
immediately; each finished transition triggers a full refetch and
re-projection of the board.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Sequence, Set

from models.application import ApplicationRecord
from utils.board_model import BoardModel, SelectionSet
from utils.drag_controller import CollisionStrategy, DragController, DropTarget, TransitionRequest
from utils.transition_executor import OutcomeKind, TransitionExecutor, TransitionOutcome

logger = logging.getLogger(__name__)

RecordLoader = Callable[[], Awaitable[Iterable[Any]]]


class PipelineBoard:
    """
    Usage:
        board = PipelineBoard(loader, executor, actor_user_id="user-1", targets=targets)
        await board.reload()
        board.controller.pick_up(board.card("job-1"))
        board.controller.key_down("ArrowRight")
        board.controller.key_down("Enter")
        await board.drain()
    """

    def __init__(
        self,
        loader: RecordLoader,
        executor: TransitionExecutor,
        actor_user_id: Optional[str] = None,
        targets: Sequence[DropTarget] = (),
        collision: Optional[CollisionStrategy] = None,
        **controller_options,
    ):
        self.loader = loader
        self.executor = executor
        self.actor_user_id = actor_user_id
        self.board = BoardModel([])
        self.selection = SelectionSet()
        self.controller = DragController(
            targets, on_transition=self.submit, collision=collision, **controller_options
        )
        self.outcomes: List[TransitionOutcome] = []
        self._pending: Set[asyncio.Task] = set()

    async def reload(self) -> BoardModel:
        """Refetch the records and clear the selection."""
        await self.refresh()
        self.selection.clear()
        return self.board

    async def refresh(self) -> BoardModel:
        """Refetch and re-project; keeps selected ids that still exist."""
        records = await self.loader()
        self.board = BoardModel(records)
        self.selection.retain(record.id for record in self.board.records)
        return self.board

    def card(self, record_id: str) -> Optional[ApplicationRecord]:
        return self.board.find(record_id)

    def submit(self, request: TransitionRequest) -> asyncio.Task:
        """Schedule a transition without waiting for it. Needs a running loop."""
        task = asyncio.get_running_loop().create_task(self._run(request))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _run(self, request: TransitionRequest) -> TransitionOutcome:
        outcome = await self.executor.execute(
            request.record_id, request.from_status, request.to_status, self.actor_user_id
        )
        self.outcomes.append(outcome)
        if outcome.kind != OutcomeKind.NOOP:
            try:
                await self.refresh()
            except Exception as e:
                logger.warning("Board refresh after moving %s failed: %s", request.record_id, e)
        return outcome

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def drain(self) -> List[TransitionOutcome]:
        """Wait for every scheduled transition to finish."""
        if not self._pending:
            return []
        return list(await asyncio.gather(*list(self._pending)))
