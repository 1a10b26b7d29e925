from __future__ import annotations

import copy
import logging
from bisect import bisect_right
from typing import Dict, List, NamedTuple, Optional

from .errors import NotFound, TaskboardError
from .models import Board, BoardList, Card

logger = logging.getLogger(__name__)


class Neighbors(NamedTuple):
    """Order keys on either side of a slot, ``None`` at a container edge."""

    before: Optional[float]
    after: Optional[float]


def _by_order(item) -> float:
    return item.order


def _clamp(index: int, length: int) -> int:
    return max(0, min(index, length))


def _neighbors(seq: list, index: int) -> Neighbors:
    before = seq[index - 1].order if index > 0 else None
    after = seq[index + 1].order if index + 1 < len(seq) else None
    return Neighbors(before, after)


class BoardAggregate:
    """In-memory board tree: lists ordered on the board, cards ordered per list.

    Every mutation is applied in place and is visible to the next read.
    Positional moves do not touch order keys; callers allocate a key for the
    new slot and write it back with ``set_card_order`` / ``set_list_order``.
    """

    def __init__(self, board: Board) -> None:
        self.board = board
        self._reindex()

    def _reindex(self) -> None:
        self.board.lists.sort(key=_by_order)
        self._lists: Dict[str, BoardList] = {}
        self._card_parent: Dict[str, str] = {}
        for lst in self.board.lists:
            lst.cards.sort(key=_by_order)
            self._lists[lst.id] = lst
            for card in lst.cards:
                self._card_parent[card.id] = lst.id

    # === Reads ===

    @property
    def id(self) -> str:
        return self.board.id

    @property
    def lists(self) -> List[BoardList]:
        return self.board.lists

    def get_list(self, list_id: str) -> BoardList:
        try:
            return self._lists[list_id]
        except KeyError:
            raise NotFound("list", list_id) from None

    def container_of(self, card_id: str) -> BoardList:
        try:
            return self._lists[self._card_parent[card_id]]
        except KeyError:
            raise NotFound("card", card_id) from None

    def find_card(self, card_id: str) -> Card:
        return self.container_of(card_id).cards[self.card_index(card_id)]

    def card_index(self, card_id: str) -> int:
        cards = self.container_of(card_id).cards
        for i, card in enumerate(cards):
            if card.id == card_id:
                return i
        raise NotFound("card", card_id)

    def list_index(self, list_id: str) -> int:
        for i, lst in enumerate(self.board.lists):
            if lst.id == list_id:
                return i
        raise NotFound("list", list_id)

    def has_card(self, card_id: str) -> bool:
        return card_id in self._card_parent

    def has_list(self, list_id: str) -> bool:
        return list_id in self._lists

    def card_ids(self) -> List[str]:
        return [card.id for lst in self.board.lists for card in lst.cards]

    def card_neighbors(self, card_id: str) -> Neighbors:
        return _neighbors(self.container_of(card_id).cards, self.card_index(card_id))

    def list_neighbors(self, list_id: str) -> Neighbors:
        return _neighbors(self.board.lists, self.list_index(list_id))

    # === Moves ===

    def move_card(self, card_id: str, target_list_id: str, target_index: int) -> Neighbors:
        """Move a card to ``target_index`` of the target list.

        The index is the card's final position once it has left its current
        slot, clamped to the target length. Returns the order keys of the
        cards now surrounding it.
        """
        source = self.container_of(card_id)
        target = self.get_list(target_list_id)
        card = source.cards.pop(self.card_index(card_id))
        index = _clamp(target_index, len(target.cards))
        target.cards.insert(index, card)
        card.list_id = target.id
        self._card_parent[card.id] = target.id
        return _neighbors(target.cards, index)

    def move_list(self, list_id: str, target_index: int) -> Neighbors:
        lists = self.board.lists
        lst = lists.pop(self.list_index(list_id))
        index = _clamp(target_index, len(lists))
        lists.insert(index, lst)
        return _neighbors(lists, index)

    def set_card_order(self, card_id: str, order: float) -> None:
        self.find_card(card_id).order = order

    def set_list_order(self, list_id: str, order: float) -> None:
        self.get_list(list_id).order = order

    # === Structural changes ===

    def insert_card(self, card: Card) -> int:
        if card.id in self._card_parent:
            raise TaskboardError(f"card {card.id} already on board")
        cards = self.get_list(card.list_id).cards
        index = bisect_right(cards, card.order, key=_by_order)
        cards.insert(index, card)
        self._card_parent[card.id] = card.list_id
        return index

    def remove_card(self, card_id: str) -> Card:
        cards = self.container_of(card_id).cards
        card = cards.pop(self.card_index(card_id))
        del self._card_parent[card_id]
        return card

    def insert_list(self, lst: BoardList) -> int:
        if lst.id in self._lists:
            raise TaskboardError(f"list {lst.id} already on board")
        lst.cards.sort(key=_by_order)
        index = bisect_right(self.board.lists, lst.order, key=_by_order)
        self.board.lists.insert(index, lst)
        self._lists[lst.id] = lst
        for card in lst.cards:
            self._card_parent[card.id] = lst.id
        return index

    def remove_list(self, list_id: str) -> BoardList:
        lst = self.board.lists.pop(self.list_index(list_id))
        del self._lists[list_id]
        for card in lst.cards:
            del self._card_parent[card.id]
        return lst

    # === Snapshots ===

    def snapshot(self) -> Board:
        return copy.deepcopy(self.board)

    def restore(self, snapshot: Board) -> None:
        self.board = copy.deepcopy(snapshot)
        self._reindex()
        logger.debug("board %s restored from snapshot", self.board.id)
