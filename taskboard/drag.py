from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .aggregate import BoardAggregate
from .errors import InvalidTransition, NotFound
from .models import Board, DragItem, ItemType, drag_item
from .planner import Command, ContainerTarget, Destination, DropTarget, Rect, ReorderPlanner

logger = logging.getLogger(__name__)

ACTIVATION_DISTANCE = 5.0


# === States ===


@dataclass(frozen=True)
class Idle:
    pass


IDLE = Idle()


@dataclass(frozen=True)
class Pressed:
    """Pointer is down on an item but has not travelled far enough to drag."""

    item: DragItem
    x: float
    y: float


@dataclass
class Dragging:
    item: DragItem
    origin: Destination
    snapshot: Board
    current: Destination
    over: Optional[Tuple[str, str]] = None


DragState = Union[Idle, Pressed, Dragging]


def target_key(target: Optional[DropTarget]) -> Optional[Tuple[str, str]]:
    if target is None:
        return None
    if isinstance(target, ContainerTarget):
        return (ItemType.LIST.value, target.list_id)
    return (target.item.type.value, target.item.id)


class DragSession:
    """Tracks one pointer gesture at a time over a board aggregate.

    Hover events move the dragged item inside the aggregate right away so the
    board can be redrawn. Releasing the pointer plans the final position into
    a single command; cancelling puts the aggregate back exactly as it was
    when the drag started.
    """

    def __init__(
        self,
        aggregate: BoardAggregate,
        planner: Optional[ReorderPlanner] = None,
        activation_distance: float = ACTIVATION_DISTANCE,
    ) -> None:
        self.aggregate = aggregate
        self.planner = planner or ReorderPlanner(aggregate)
        self.activation_distance = activation_distance
        self.state: DragState = IDLE

    @property
    def is_dragging(self) -> bool:
        return isinstance(self.state, Dragging)

    @property
    def active_item(self) -> Optional[DragItem]:
        if isinstance(self.state, (Pressed, Dragging)):
            return self.state.item
        return None

    @property
    def provisional(self) -> Optional[Destination]:
        if isinstance(self.state, Dragging):
            return self.state.current
        return None

    @property
    def snapshot(self) -> Optional[Board]:
        if isinstance(self.state, Dragging):
            return self.state.snapshot
        return None

    def pointer_down(self, item_id: str, item_type: ItemType, x: float = 0.0, y: float = 0.0) -> None:
        if not isinstance(self.state, Idle):
            raise InvalidTransition(f"pointer down while {type(self.state).__name__.lower()}")
        item = drag_item(item_id, item_type)
        self.planner.position(item)
        self.state = Pressed(item, x, y)
        if self.activation_distance <= 0:
            self._activate(item)

    def pointer_move(self, x: float, y: float) -> bool:
        state = self.state
        if isinstance(state, Pressed):
            if math.hypot(x - state.x, y - state.y) >= self.activation_distance:
                self._activate(state.item)
        return self.is_dragging

    def _activate(self, item: DragItem) -> None:
        origin = self.planner.position(item)
        self.state = Dragging(item, origin, self.aggregate.snapshot(), origin)
        logger.debug("drag started: %s %s at %s", item.type.value, item.id, origin)

    def pointer_over(
        self, target: Optional[DropTarget], pointer: Optional[Rect] = None
    ) -> Optional[Destination]:
        """Hover ``target``; returns the new provisional position when the item moved."""
        state = self.state
        if not isinstance(state, Dragging):
            return None
        key = target_key(target)
        if key == state.over:
            return None
        state.over = key
        if target is None:
            return None
        try:
            dest = self.planner.preview(state.item, target, pointer)
        except NotFound as exc:
            logger.info("drag cancelled: %s", exc)
            self.cancel()
            return None
        if dest is not None:
            state.current = dest
        return dest

    def pointer_up(self) -> Optional[Command]:
        state = self.state
        if not isinstance(state, Dragging):
            self.state = IDLE
            return None
        if state.over is None:
            logger.debug("drop outside any target")
            self.cancel()
            return None
        self.state = IDLE
        try:
            if self.planner.position(state.item) == state.origin:
                logger.debug("drop at origin, nothing to save")
                return None
            command = self.planner.settle(state.item)
        except NotFound as exc:
            logger.info("drop cancelled: %s", exc)
            self.aggregate.restore(state.snapshot)
            return None
        logger.debug("drop planned: %s", command)
        return command

    def cancel(self) -> None:
        state = self.state
        self.state = IDLE
        if isinstance(state, Dragging):
            self.aggregate.restore(state.snapshot)
            logger.debug("drag cancelled: %s %s", state.item.type.value, state.item.id)
