"""
Drag interaction state machine for the pipeline board.

The controller turns pointer, touch and keyboard gestures into at most one
transition request per drag. It knows nothing about the concrete gesture
backend: callers feed it synthetic events and describe the drop targets
through the DragSource / DropTarget / CollisionStrategy interfaces.

States:
    IDLE -> DRAGGING                on activation (distance, long press, key)
    DRAGGING -> HOVERING_TARGET     when the pointer enters a drop target
    HOVERING_TARGET -> DRAGGING     when it leaves
    DRAGGING | HOVERING_TARGET -> IDLE   on drop or cancel

The submit callback is invoked after the controller is already back in IDLE
and its return value is ignored; persistence is the caller's concern.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Protocol, Sequence

from models.status import PipelineColumn

logger = logging.getLogger(__name__)

DEFAULT_POINTER_ACTIVATION_DISTANCE = 8.0
DEFAULT_TOUCH_ACTIVATION_DELAY_MS = 150
DEFAULT_TOUCH_ACTIVATION_TOLERANCE = 8.0

KEY_PICK_UP = {"Space", "Enter", " "}
KEY_CANCEL = {"Escape"}
KEY_NEXT = {"ArrowRight", "ArrowDown"}
KEY_PREVIOUS = {"ArrowLeft", "ArrowUp"}


class DragState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    HOVERING_TARGET = "hovering_target"


class InputModality(str, Enum):
    POINTER = "pointer"
    TOUCH = "touch"
    KEYBOARD = "keyboard"


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def distance_to(self, other: "Point") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


@dataclass(frozen=True)
class Rect:
    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def center(self) -> Point:
        return Point(self.left + self.width / 2, self.top + self.height / 2)

    def contains(self, point: Point) -> bool:
        return self.left <= point.x <= self.right and self.top <= point.y <= self.bottom


class DragSource(Protocol):
    """Anything that can be picked up: a card on the board."""

    @property
    def id(self) -> str: ...

    @property
    def status(self) -> str: ...


@dataclass(frozen=True)
class DropTarget:
    """A droppable column and its on-screen bounds."""

    column: PipelineColumn
    bounds: Rect


class CollisionStrategy(Protocol):
    def detect(self, point: Point, targets: Sequence[DropTarget]) -> Optional[DropTarget]: ...


class BoundingBoxCollision:
    """First target whose bounds contain the point."""

    def detect(self, point: Point, targets: Sequence[DropTarget]) -> Optional[DropTarget]:
        for target in targets:
            if target.bounds.contains(point):
                return target
        return None


class ClosestCenterCollision:
    """
    Target whose center is closest to the point.

    Only targets containing the point, or within ``max_distance`` of their
    center, are candidates, so releasing far away from every column still
    counts as dropping outside.
    """

    def __init__(self, max_distance: Optional[float] = None):
        self.max_distance = max_distance

    def detect(self, point: Point, targets: Sequence[DropTarget]) -> Optional[DropTarget]:
        best: Optional[DropTarget] = None
        best_distance = math.inf
        for target in targets:
            distance = point.distance_to(target.bounds.center)
            in_reach = target.bounds.contains(point) or (
                self.max_distance is not None and distance <= self.max_distance
            )
            if in_reach and distance < best_distance:
                best, best_distance = target, distance
        return best


@dataclass(frozen=True)
class DragSession:
    """The in-progress drag. Exists only between activation and drop/cancel."""

    record_id: str
    from_status: str
    modality: InputModality
    candidate_column: Optional[PipelineColumn] = None


@dataclass(frozen=True)
class TransitionRequest:
    record_id: str
    from_status: str
    to_status: str


@dataclass
class _PendingPress:
    source_id: str
    source_status: str
    origin: Point
    modality: InputModality
    pressed_at_ms: float


class DragController:
    """
    Drag state machine with pointer, touch and keyboard input.

    Usage:
        controller = DragController(targets, on_transition=board.submit)
        controller.press(card, Point(10, 10), InputModality.POINTER, 0)
        controller.move(Point(300, 40), 16)
        controller.release()
    """

    def __init__(
        self,
        targets: Sequence[DropTarget] = (),
        on_transition: Optional[Callable[[TransitionRequest], object]] = None,
        collision: Optional[CollisionStrategy] = None,
        pointer_activation_distance: float = DEFAULT_POINTER_ACTIVATION_DISTANCE,
        touch_activation_delay_ms: float = DEFAULT_TOUCH_ACTIVATION_DELAY_MS,
        touch_activation_tolerance: float = DEFAULT_TOUCH_ACTIVATION_TOLERANCE,
    ):
        self.targets: List[DropTarget] = list(targets)
        self.on_transition = on_transition
        self.collision = collision or BoundingBoxCollision()
        self.pointer_activation_distance = pointer_activation_distance
        self.touch_activation_delay_ms = touch_activation_delay_ms
        self.touch_activation_tolerance = touch_activation_tolerance
        self.session: Optional[DragSession] = None
        self._pending: Optional[_PendingPress] = None

    @property
    def state(self) -> DragState:
        if self.session is None:
            return DragState.IDLE
        if self.session.candidate_column is None:
            return DragState.DRAGGING
        return DragState.HOVERING_TARGET

    @property
    def active_record_id(self) -> Optional[str]:
        return self.session.record_id if self.session else None

    @property
    def candidate_column(self) -> Optional[PipelineColumn]:
        return self.session.candidate_column if self.session else None

    def set_targets(self, targets: Sequence[DropTarget]) -> None:
        self.targets = list(targets)

    # Pointer / touch

    def press(
        self,
        source: DragSource,
        point: Point,
        modality: InputModality = InputModality.POINTER,
        timestamp_ms: float = 0,
    ) -> None:
        """Arm a drag; it only starts once the activation constraint is met."""
        if self.session is not None:
            return
        self._pending = _PendingPress(source.id, source.status, point, modality, timestamp_ms)

    def move(self, point: Point, timestamp_ms: float = 0) -> DragState:
        """Feed a pointer/touch position; may activate, hover or leave a target."""
        if self.session is None:
            if self._pending is None:
                return DragState.IDLE
            if not self._activation_met(self._pending, point, timestamp_ms):
                return DragState.IDLE
            pending = self._pending
            self._pending = None
            self._start(pending.source_id, pending.source_status, pending.modality)

        if self.session.modality == InputModality.KEYBOARD:
            return self.state

        target = self.collision.detect(point, self.targets)
        self._hover(target.column if target else None)
        return self.state

    def hold(self, timestamp_ms: float) -> DragState:
        """Advance time without movement so a touch long press can activate in place."""
        if self.session is None and self._pending is not None:
            return self.move(self._pending.origin, timestamp_ms)
        return self.state

    def release(self, point: Optional[Point] = None) -> Optional[TransitionRequest]:
        """End the gesture. Emits a request only when hovering a target."""
        self._pending = None
        if self.session is None:
            return None
        if point is not None and self.session.modality != InputModality.KEYBOARD:
            target = self.collision.detect(point, self.targets)
            self._hover(target.column if target else None)
        return self.drop()

    def _activation_met(self, pending: _PendingPress, point: Point, timestamp_ms: float) -> bool:
        moved = pending.origin.distance_to(point)
        if pending.modality == InputModality.TOUCH:
            if moved > self.touch_activation_tolerance:
                # Treated as a scroll, not a long press
                self._pending = None
                return False
            return timestamp_ms - pending.pressed_at_ms >= self.touch_activation_delay_ms
        return moved >= self.pointer_activation_distance

    # Keyboard

    def pick_up(self, source: DragSource) -> bool:
        """Start a keyboard drag on the focused card."""
        if self.session is not None:
            return False
        self._pending = None
        self._start(source.id, source.status, InputModality.KEYBOARD)
        return True

    def focus_next(self) -> Optional[PipelineColumn]:
        return self._shift_focus(1)

    def focus_previous(self) -> Optional[PipelineColumn]:
        return self._shift_focus(-1)

    def key_down(self, key: str, focused: Optional[DragSource] = None) -> Optional[TransitionRequest]:
        """
        Keyboard bindings: Space/Enter picks up the focused card or drops the
        active one, arrows move between columns, Escape cancels.
        """
        if key in KEY_PICK_UP:
            if self.session is None:
                if focused is not None:
                    self.pick_up(focused)
                return None
            return self.drop()
        if self.session is None:
            return None
        if key in KEY_CANCEL:
            self.cancel()
        elif key in KEY_NEXT:
            self.focus_next()
        elif key in KEY_PREVIOUS:
            self.focus_previous()
        return None

    def _shift_focus(self, step: int) -> Optional[PipelineColumn]:
        if self.session is None or not self.targets:
            return None
        columns = [target.column for target in self.targets]
        current = self.session.candidate_column
        if current in columns:
            index = (columns.index(current) + step) % len(columns)
        else:
            index = 0 if step > 0 else len(columns) - 1
        self._hover(columns[index])
        return columns[index]

    # Common

    def drop(self) -> Optional[TransitionRequest]:
        """Finish the drag at the current candidate column, if any."""
        session = self.session
        self.session = None
        self._pending = None
        if session is None:
            return None
        if session.candidate_column is None:
            logger.debug("Drag of %s ended outside any column", session.record_id)
            return None

        request = TransitionRequest(
            record_id=session.record_id,
            from_status=session.from_status,
            to_status=session.candidate_column.value,
        )
        logger.debug("Drop %s onto %s", session.record_id, request.to_status)
        if self.on_transition is not None:
            self.on_transition(request)
        return request

    def cancel(self) -> None:
        if self.session is not None:
            logger.debug("Drag of %s cancelled", self.session.record_id)
        self.session = None
        self._pending = None

    def _start(self, record_id: str, from_status: str, modality: InputModality) -> None:
        self.session = DragSession(record_id=record_id, from_status=from_status, modality=modality)
        logger.debug("Drag started: %s (%s)", record_id, modality.value)

    def _hover(self, column: Optional[PipelineColumn]) -> None:
        if self.session is None or self.session.candidate_column == column:
            return
        self.session = DragSession(
            record_id=self.session.record_id,
            from_status=self.session.from_status,
            modality=self.session.modality,
            candidate_column=column,
        )
