"""Translate drag-and-drop outcomes into board moves and persistence commands.

A gesture produces at most one command: the card (or list) id, its final
container and a freshly allocated order key. Hover positions are applied to
the aggregate as they happen so the board can re-render, but only the
position held when the pointer is released is ever planned into a command.

Destination indexes follow sortable-list semantics. Inside the container the
item already occupies, dropping on another item takes that item's slot, so
dragging down lands after it and dragging up lands before it. When the item
enters a different container, the pointer decides: below the target's
midpoint inserts after it, otherwise before it. The asymmetry keeps a hover
over the same target from bouncing the item back and forth. Dropping on a
container itself sends the item to the end of it, including its own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import NamedTuple, Optional, Union

from .aggregate import BoardAggregate
from .models import CardRef, DragItem, ListRef
from .ordering import BASE_ORDER, allocate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Rect:
    left: float
    top: float
    width: float
    height: float

    @property
    def center_x(self) -> float:
        return self.left + self.width / 2

    @property
    def center_y(self) -> float:
        return self.top + self.height / 2


# === Drop targets ===


@dataclass(frozen=True)
class ContainerTarget:
    """The empty area of a list."""

    list_id: str


@dataclass(frozen=True)
class ItemTarget:
    """Another card or list, with its on-screen geometry."""

    item: DragItem
    rect: Rect


DropTarget = Union[ContainerTarget, ItemTarget]


# === Persistence commands ===


@dataclass(frozen=True)
class CardPositionCommand:
    card_id: str
    list_id: str
    order: float


@dataclass(frozen=True)
class ListOrderCommand:
    list_id: str
    order: float


Command = Union[CardPositionCommand, ListOrderCommand]


class Destination(NamedTuple):
    container_id: str
    index: int


def is_below(pointer: Optional[Rect], rect: Rect) -> bool:
    return pointer is not None and pointer.center_y > rect.center_y


class ReorderPlanner:
    def __init__(self, aggregate: BoardAggregate) -> None:
        self.aggregate = aggregate

    def position(self, item: DragItem) -> Destination:
        if isinstance(item, CardRef):
            agg = self.aggregate
            return Destination(agg.container_of(item.id).id, agg.card_index(item.id))
        return Destination(self.aggregate.id, self.aggregate.list_index(item.id))

    def destination(
        self, item: DragItem, target: DropTarget, pointer: Optional[Rect] = None
    ) -> Optional[Destination]:
        """Where ``item`` would land over ``target``; ``None`` when it stays put."""
        if isinstance(item, CardRef):
            return self._card_destination(item, target, pointer)
        return self._list_destination(item, target)

    def _card_destination(
        self, item: CardRef, target: DropTarget, pointer: Optional[Rect]
    ) -> Optional[Destination]:
        agg = self.aggregate
        current = agg.container_of(item.id).id
        if isinstance(target, ItemTarget) and isinstance(target.item, CardRef):
            over_id = target.item.id
            if over_id == item.id:
                return None
            dest = agg.container_of(over_id).id
            index = agg.card_index(over_id)
            if dest != current and is_below(pointer, target.rect):
                index += 1
            return Destination(dest, index)
        list_id = target.list_id if isinstance(target, ContainerTarget) else target.item.id
        size = len(agg.get_list(list_id).cards)
        if list_id == current:
            if agg.card_index(item.id) == size - 1:
                return None
            return Destination(list_id, size - 1)
        return Destination(list_id, size)

    def _list_destination(self, item: ListRef, target: DropTarget) -> Optional[Destination]:
        agg = self.aggregate
        if isinstance(target, ContainerTarget):
            over_id = target.list_id
        elif isinstance(target.item, CardRef):
            over_id = agg.container_of(target.item.id).id
        else:
            over_id = target.item.id
        agg.list_index(item.id)
        if over_id == item.id:
            return None
        return Destination(agg.id, agg.list_index(over_id))

    def preview(
        self, item: DragItem, target: DropTarget, pointer: Optional[Rect] = None
    ) -> Optional[Destination]:
        """Apply the hover position of ``item`` to the aggregate without planning a command."""
        dest = self.destination(item, target, pointer)
        if dest is None:
            return None
        if isinstance(item, CardRef):
            self.aggregate.move_card(item.id, dest.container_id, dest.index)
        else:
            self.aggregate.move_list(item.id, dest.index)
        return self.position(item)

    def settle(self, item: DragItem) -> Command:
        """Allocate an order key for the slot ``item`` occupies now and write it back."""
        agg = self.aggregate
        if isinstance(item, CardRef):
            lst = agg.container_of(item.id)
            if len(lst.cards) == 1:
                order = BASE_ORDER
            else:
                order = allocate(*agg.card_neighbors(item.id))
            agg.set_card_order(item.id, order)
            logger.debug("card %s -> list %s order %r", item.id, lst.id, order)
            return CardPositionCommand(item.id, lst.id, order)
        if len(agg.lists) == 1:
            order = BASE_ORDER
        else:
            order = allocate(*agg.list_neighbors(item.id))
        agg.set_list_order(item.id, order)
        logger.debug("list %s order %r", item.id, order)
        return ListOrderCommand(item.id, order)

    def plan_card_move(self, card_id: str, target_list_id: str, target_index: int) -> CardPositionCommand:
        item = CardRef(card_id)
        origin = self.position(item)
        self.aggregate.move_card(card_id, target_list_id, target_index)
        if self.position(item) == origin:
            card = self.aggregate.find_card(card_id)
            return CardPositionCommand(card_id, card.list_id, card.order)
        return self.settle(item)

    def plan_list_move(self, list_id: str, target_index: int) -> ListOrderCommand:
        item = ListRef(list_id)
        origin = self.position(item)
        self.aggregate.move_list(list_id, target_index)
        if self.position(item) == origin:
            return ListOrderCommand(list_id, self.aggregate.get_list(list_id).order)
        return self.settle(item)
