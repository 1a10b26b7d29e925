"""A client's working copy of one board.

``BoardSession`` owns the aggregate for the lifetime of a board view and is
the only thing that mutates it. Moves are applied optimistically and then
saved with exactly one persistence command. The aggregate is not rolled back
while that command is in flight. If it fails the error is raised to the
caller and the optimistic state is kept, unless ``revert_on_failure`` is set.

Two clients moving cards on the same board are not reconciled: the last
order key written wins.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from .aggregate import BoardAggregate
from .config import Settings, get_settings
from .drag import DragSession
from .errors import PersistenceError
from .models import Board, BoardList, Card, ItemType
from .planner import (
    CardPositionCommand,
    Command,
    Destination,
    DropTarget,
    ListOrderCommand,
    Rect,
    ReorderPlanner,
)

logger = logging.getLogger(__name__)


class Persistence(Protocol):
    async def load_board(self, board_id: str) -> Board: ...

    async def save_card_position(self, card_id: str, list_id: str, order: float) -> None: ...

    async def save_list_order(self, list_id: str, order: float) -> None: ...

    async def create_list(self, board_id: str, title: str) -> BoardList: ...

    async def create_card(self, list_id: str, title: str, description: Optional[str] = None) -> Card: ...

    async def delete_list(self, list_id: str) -> None: ...

    async def delete_card(self, card_id: str) -> None: ...


class BoardSession:
    def __init__(
        self,
        aggregate: BoardAggregate,
        persistence: Persistence,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        self.aggregate = aggregate
        self.persistence = persistence
        self.planner = ReorderPlanner(aggregate)
        self.drag = DragSession(aggregate, self.planner, settings.activation_distance)
        self.revert_on_failure = settings.revert_on_failure

    @classmethod
    async def open(
        cls, persistence: Persistence, board_id: str, settings: Optional[Settings] = None
    ) -> BoardSession:
        board = await persistence.load_board(board_id)
        return cls(BoardAggregate(board), persistence, settings)

    async def reload(self) -> None:
        self.drag.cancel()
        board = await self.persistence.load_board(self.aggregate.id)
        self.aggregate.restore(board)

    # === Gesture events ===

    def pointer_down(self, item_id: str, item_type: ItemType, x: float = 0.0, y: float = 0.0) -> None:
        self.drag.pointer_down(item_id, item_type, x, y)

    def pointer_move(self, x: float, y: float) -> bool:
        return self.drag.pointer_move(x, y)

    def pointer_over(self, target: Optional[DropTarget], pointer: Optional[Rect] = None) -> Optional[Destination]:
        return self.drag.pointer_over(target, pointer)

    def cancel(self) -> None:
        self.drag.cancel()

    async def pointer_up(self) -> Optional[Command]:
        snapshot = self.drag.snapshot
        command = self.drag.pointer_up()
        if command is not None:
            await self.commit(command, snapshot)
        return command

    # === Direct moves ===

    async def move_card(self, card_id: str, list_id: str, index: int) -> CardPositionCommand:
        snapshot = self.aggregate.snapshot()
        command = self.planner.plan_card_move(card_id, list_id, index)
        await self.commit(command, snapshot)
        return command

    async def move_list(self, list_id: str, index: int) -> ListOrderCommand:
        snapshot = self.aggregate.snapshot()
        command = self.planner.plan_list_move(list_id, index)
        await self.commit(command, snapshot)
        return command

    async def commit(self, command: Command, snapshot: Optional[Board] = None) -> None:
        try:
            if isinstance(command, CardPositionCommand):
                await self.persistence.save_card_position(command.card_id, command.list_id, command.order)
            else:
                await self.persistence.save_list_order(command.list_id, command.order)
        except PersistenceError as exc:
            logger.warning("move not saved on board %s: %s", self.aggregate.id, exc)
            if self.revert_on_failure and snapshot is not None:
                self.aggregate.restore(snapshot)
            raise

    # === Structural changes ===

    async def add_list(self, title: str) -> BoardList:
        lst = await self.persistence.create_list(self.aggregate.id, title)
        self.aggregate.insert_list(lst)
        return lst

    async def remove_list(self, list_id: str) -> BoardList:
        self.aggregate.get_list(list_id)
        await self.persistence.delete_list(list_id)
        return self.aggregate.remove_list(list_id)

    async def add_card(self, list_id: str, title: str, description: Optional[str] = None) -> Card:
        self.aggregate.get_list(list_id)
        card = await self.persistence.create_card(list_id, title, description)
        self.aggregate.insert_card(card)
        return card

    async def remove_card(self, card_id: str) -> Card:
        self.aggregate.find_card(card_id)
        await self.persistence.delete_card(card_id)
        return self.aggregate.remove_card(card_id)
